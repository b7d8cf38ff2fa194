"""Business rules checked before a schedule entry is written."""
from datetime import date
from typing import Iterable, Optional

from .models import AbsenceType, EntryUpdate, ScheduleEntry
from .store import ScheduleStore

MAX_CONCURRENT_VACATION = 2


class VacationLimitExceeded(ValueError):
    def __init__(self, day: date, limit: int = MAX_CONCURRENT_VACATION):
        self.day = day
        self.limit = limit
        super().__init__(f"Maximal {limit} Mitarbeiter dürfen gleichzeitig Urlaub haben.")


def vacation_count(day: date, entries: Iterable[ScheduleEntry], exclude_employee: Optional[str] = None) -> int:
    return sum(
        1 for en in entries
        if en.date == day
        and en.absence == AbsenceType.VACATION
        and en.employee_id != exclude_employee
    )


def can_apply_vacation(
    employee_id: str,
    day: date,
    current_entries: Iterable[ScheduleEntry],
    update: Optional[EntryUpdate] = None,
) -> bool:
    """Whether ``employee_id`` may be marked on vacation on ``day``.

    Fewer than MAX_CONCURRENT_VACATION *other* employees may already be on
    vacation that day. Updates that do not set a vacation always pass.
    """
    if update is not None and not update.sets_vacation:
        return True
    return vacation_count(day, current_entries, exclude_employee=employee_id) < MAX_CONCURRENT_VACATION


def apply_entry_update(
    store: ScheduleStore, employee_id: str, day: date, update: EntryUpdate
) -> Optional[ScheduleEntry]:
    """Check the business rules and write the update as one step.

    Raises VacationLimitExceeded without touching the store if the update
    would put too many employees on vacation at once.
    """
    with store.lock:
        if update.sets_vacation and not can_apply_vacation(employee_id, day, store.entries_on(day), update):
            raise VacationLimitExceeded(day)
        return store.upsert_entry(employee_id, day, update)
