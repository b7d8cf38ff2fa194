"""Schedule router: read, merge-update and delete schedule entries."""
from datetime import date, datetime
from fastapi import APIRouter, HTTPException, Query
from typing import Optional
from shiftlib.models import EntryUpdate
from shiftlib.rules import (
    MAX_CONCURRENT_VACATION, VacationLimitExceeded, apply_entry_update, vacation_count,
)
from shiftlib.stats import month_days
from ..dependencies import get_store, _check_month, _check_year, _logger
from .events import broadcast

router = APIRouter()


def _parse_date(value: str) -> date:
    try:
        return datetime.strptime(value, '%Y-%m-%d').date()
    except ValueError:
        raise HTTPException(status_code=400, detail="Ungültiges Datumsformat, bitte JJJJ-MM-TT verwenden")


@router.get("/api/schedule", tags=["Schedule"], summary="Get monthly schedule",
            description="Return all stored entries of a month, optionally for a single employee.")
def get_schedule(
    year: int = Query(..., description="Year"),
    month: int = Query(..., description="Month (1-12)"),
    employee_id: Optional[str] = Query(None, description="Filter by employee ID"),
):
    _check_month(month)
    _check_year(year)
    days = month_days(year, month)
    return get_store().list_entries(employee_id=employee_id, start=days[0], end=days[-1])


@router.get("/api/schedule/vacation-check", tags=["Schedule"], summary="Check the concurrent-vacation cap",
            description="Tell whether the employee could be marked on vacation on the date without breaking the cap.")
def vacation_check(
    employee_id: str = Query(...),
    date: str = Query(..., description="Date in YYYY-MM-DD format"),
):
    day = _parse_date(date)
    others = vacation_count(day, get_store().entries_on(day), exclude_employee=employee_id)
    return {
        "employee_id": employee_id,
        "date": day.isoformat(),
        "others_on_vacation": others,
        "limit": MAX_CONCURRENT_VACATION,
        "allowed": others < MAX_CONCURRENT_VACATION,
    }


@router.get("/api/schedule/{employee_id}/{date}", tags=["Schedule"], summary="Get one schedule entry")
def get_entry(employee_id: str, date: str):
    entry = get_store().find_entry(employee_id, _parse_date(date))
    if entry is None:
        raise HTTPException(status_code=404, detail="Kein Eintrag für diesen Tag")
    return entry


@router.patch("/api/schedule/{employee_id}/{date}", tags=["Schedule"], summary="Update schedule entry",
              description=(
                  "Merge the given fields onto the entry for this employee and date. Fields not sent are kept, "
                  "`null` clears a field. An entry left without shift, absence and hours is removed.\n\n"
                  "Setting `absence` to `VACATION` fails with 409 if two other employees are already on vacation."
              ))
def update_entry(employee_id: str, date: str, body: EntryUpdate):
    day = _parse_date(date)
    store = get_store()
    shift_id = body.changes().get('shift_id')
    # existence checks and write are atomic against delete_employee
    with store.lock:
        if store.get_employee(employee_id) is None:
            raise HTTPException(status_code=404, detail=f"Mitarbeiter ID {employee_id} nicht gefunden")
        if shift_id and store.get_shift(shift_id) is None:
            raise HTTPException(status_code=404, detail=f"Schicht ID {shift_id} nicht gefunden")
        try:
            entry = apply_entry_update(store, employee_id, day, body)
        except VacationLimitExceeded as e:
            _logger.warning("Vacation rejected employee=%s date=%s: %s", employee_id, day, e)
            raise HTTPException(status_code=409, detail=str(e))
    broadcast("entry_changed", {"employee_id": employee_id, "date": day.isoformat()})
    return {"ok": True, "entry": entry, "removed": entry is None}


@router.delete("/api/schedule/{employee_id}/{date}", tags=["Schedule"], summary="Delete schedule entry")
def delete_entry(employee_id: str, date: str):
    day = _parse_date(date)
    if not get_store().delete_entry(employee_id, day):
        raise HTTPException(status_code=404, detail="Kein Eintrag für diesen Tag")
    broadcast("entry_changed", {"employee_id": employee_id, "date": day.isoformat()})
    return {"ok": True}
