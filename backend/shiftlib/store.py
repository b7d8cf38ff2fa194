"""
In-memory plan store: employees, shift definitions and schedule entries.

The store enforces the structural invariants only (unique ids, one entry per
employee and date, no empty entries). Business rules such as the vacation cap
live in :mod:`shiftlib.rules` and must be checked before calling
:meth:`ScheduleStore.upsert_entry`.
"""
import threading
import uuid
from datetime import date
from typing import Dict, Iterable, List, Optional, Tuple

from .defaults import default_state
from .models import (
    AbsenceType, Employee, EntryUpdate, PlanState, ScheduleEntry, Shift,
)
from .persistence import StateFile

EntryKey = Tuple[str, date]


def is_effectively_empty(entry: ScheduleEntry) -> bool:
    """True if the entry carries no shift, no absence and no hour override."""
    return (
        not entry.shift_id
        and (entry.absence is None or entry.absence == AbsenceType.NONE)
        and not entry.actual_hours
    )


def new_id() -> str:
    return str(uuid.uuid4())


class ScheduleStore:
    def __init__(self, state: Optional[PlanState] = None, state_file: Optional[StateFile] = None):
        self.state_file = state_file
        # Re-entrant so that rule check + write can hold it across upsert_entry()
        self.lock = threading.RLock()
        self._employees: Dict[str, Employee] = {}
        self._shifts: Dict[str, Shift] = {}
        self._entries: Dict[EntryKey, ScheduleEntry] = {}
        if state is not None:
            self._load(state)

    @classmethod
    def from_state(cls, state: PlanState, state_file: Optional[StateFile] = None) -> 'ScheduleStore':
        return cls(state, state_file)

    @classmethod
    def open(cls, path: str) -> 'ScheduleStore':
        """Load the plan from ``path``; seed and save defaults if it does not exist."""
        state_file = StateFile(path)
        state = state_file.load()
        store = cls(state if state is not None else default_state(), state_file)
        if state is None:
            store._commit()
        return store

    def _load(self, state: PlanState) -> None:
        employees: Dict[str, Employee] = {}
        for e in state.employees:
            if e.id in employees:
                raise ValueError(f"Doppelte Mitarbeiter-ID: {e.id}")
            employees[e.id] = e.model_copy()
        shifts: Dict[str, Shift] = {}
        for s in state.shifts:
            if s.id in shifts:
                raise ValueError(f"Doppelte Schicht-ID: {s.id}")
            shifts[s.id] = s.model_copy()
        entries: Dict[EntryKey, ScheduleEntry] = {}
        for en in state.entries:
            key = (en.employee_id, en.date)
            if key in entries:
                raise ValueError(f"Doppelter Eintrag für {en.employee_id} am {en.date.isoformat()}")
            if en.employee_id not in employees:
                raise ValueError(f"Eintrag am {en.date.isoformat()} für unbekannten Mitarbeiter {en.employee_id}")
            if not is_effectively_empty(en):
                entries[key] = en.model_copy()
        self._employees, self._shifts, self._entries = employees, shifts, entries

    def _commit(self) -> None:
        if self.state_file is not None:
            self.state_file.save(self.snapshot())

    # ── Snapshot ───────────────────────────────────────────────
    def snapshot(self) -> PlanState:
        with self.lock:
            return PlanState(
                employees=[e.model_copy() for e in self._employees.values()],
                shifts=[s.model_copy() for s in self._shifts.values()],
                entries=[en.model_copy() for en in self._entries.values()],
            )

    def replace_state(self, state: PlanState) -> None:
        with self.lock:
            self._load(state)
            self._commit()

    def reset(self) -> None:
        self.replace_state(default_state())

    # ── Employees ──────────────────────────────────────────────
    def list_employees(self) -> List[Employee]:
        with self.lock:
            return [e.model_copy() for e in self._employees.values()]

    def get_employee(self, employee_id: str) -> Optional[Employee]:
        e = self._employees.get(employee_id)
        return e.model_copy() if e is not None else None

    def add_employee(self, employee: Employee) -> Employee:
        with self.lock:
            if employee.id in self._employees:
                raise ValueError(f"Mitarbeiter-ID {employee.id} existiert bereits")
            self._employees[employee.id] = employee.model_copy()
            self._commit()
            return employee.model_copy()

    def update_employee(self, employee_id: str, data: dict) -> Optional[Employee]:
        with self.lock:
            current = self._employees.get(employee_id)
            if current is None:
                return None
            data = {k: v for k, v in data.items() if k != 'id'}
            updated = Employee.model_validate({**current.model_dump(), **data})
            self._employees[employee_id] = updated
            self._commit()
            return updated.model_copy()

    def delete_employee(self, employee_id: str) -> bool:
        """Remove the employee and every entry keyed to them."""
        with self.lock:
            if self._employees.pop(employee_id, None) is None:
                return False
            for key in [k for k in self._entries if k[0] == employee_id]:
                del self._entries[key]
            self._commit()
            return True

    # ── Shifts ─────────────────────────────────────────────────
    def list_shifts(self) -> List[Shift]:
        with self.lock:
            return [s.model_copy() for s in self._shifts.values()]

    def get_shift(self, shift_id: str) -> Optional[Shift]:
        s = self._shifts.get(shift_id)
        return s.model_copy() if s is not None else None

    def add_shift(self, shift: Shift) -> Shift:
        with self.lock:
            if shift.id in self._shifts:
                raise ValueError(f"Schicht-ID {shift.id} existiert bereits")
            self._shifts[shift.id] = shift.model_copy()
            self._commit()
            return shift.model_copy()

    def update_shift(self, shift_id: str, data: dict) -> Optional[Shift]:
        with self.lock:
            current = self._shifts.get(shift_id)
            if current is None:
                return None
            data = {k: v for k, v in data.items() if k != 'id'}
            updated = Shift.model_validate({**current.model_dump(), **data})
            self._shifts[shift_id] = updated
            self._commit()
            return updated.model_copy()

    def delete_shift(self, shift_id: str) -> bool:
        """Remove a shift definition. Entries referencing it are kept as-is."""
        with self.lock:
            if self._shifts.pop(shift_id, None) is None:
                return False
            self._commit()
            return True

    # ── Entries ────────────────────────────────────────────────
    def find_entry(self, employee_id: str, day: date) -> Optional[ScheduleEntry]:
        en = self._entries.get((employee_id, day))
        return en.model_copy() if en is not None else None

    def list_entries(
        self,
        employee_id: Optional[str] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> List[ScheduleEntry]:
        """Entries, optionally filtered by employee and inclusive date range, sorted by date."""
        with self.lock:
            result = [
                en.model_copy() for en in self._entries.values()
                if (employee_id is None or en.employee_id == employee_id)
                and (start is None or en.date >= start)
                and (end is None or en.date <= end)
            ]
        result.sort(key=lambda en: (en.date, en.employee_id))
        return result

    def upsert_entry(self, employee_id: str, day: date, update: EntryUpdate) -> Optional[ScheduleEntry]:
        """Merge ``update`` onto the entry for (employee_id, day).

        Returns the stored entry, or None if the merge left nothing worth
        keeping and the entry was removed. Unknown employees are a no-op
        returning None.
        """
        with self.lock:
            if employee_id not in self._employees:
                return None
            key = (employee_id, day)
            base = self._entries.get(key) or ScheduleEntry(employee_id=employee_id, date=day)
            merged = base.model_copy(update=update.changes())
            if is_effectively_empty(merged):
                self._entries.pop(key, None)
                stored = None
            else:
                self._entries[key] = merged
                stored = merged.model_copy()
            self._commit()
            return stored

    def delete_entry(self, employee_id: str, day: date) -> bool:
        with self.lock:
            if self._entries.pop((employee_id, day), None) is None:
                return False
            self._commit()
            return True

    def entries_on(self, day: date) -> Iterable[ScheduleEntry]:
        with self.lock:
            return [en.model_copy() for en in self._entries.values() if en.date == day]
