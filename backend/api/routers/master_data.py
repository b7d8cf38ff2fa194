"""Master data router: shift definitions, federal states, public holidays."""
import random
from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel, Field, ValidationError
from typing import Optional
from shiftlib.holidays import compute_holidays
from shiftlib.models import Region, Shift
from shiftlib.store import new_id
from ..dependencies import get_store, _check_year, _logger
from .events import broadcast

router = APIRouter()

_TIME_PATTERN = r'^([01]\d|2[0-3]):[0-5]\d$'
_COLOR_PATTERN = r'^#[0-9a-fA-F]{6}$'


@router.get("/api/shifts", tags=["Shifts"], summary="List shift definitions")
def get_shifts():
    return get_store().list_shifts()


@router.get("/api/regions", tags=["Holidays"], summary="List federal states")
def get_regions():
    return [{"code": r.value, "name": r.display_name} for r in Region]


@router.get("/api/holidays", tags=["Holidays"], summary="Public holidays of a federal state",
            description="Return the statutory public holidays of `region` in `year`, sorted by date.")
def get_holidays(
    year: int = Query(..., description="Year (YYYY)"),
    region: Region = Query(..., description="Federal state code, e.g. BY"),
):
    _check_year(year)
    return [
        {"date": h.date.isoformat(), "name": h.name, "weekday": h.date.weekday()}
        for h in compute_holidays(year, region)
    ]


# ── Write: Shifts ─────────────────────────────────────────────

class ShiftCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    start_time: str = Field('08:00', pattern=_TIME_PATTERN)
    end_time: str = Field('17:00', pattern=_TIME_PATTERN)
    color: Optional[str] = Field(None, pattern=_COLOR_PATTERN)
    hours: float = Field(8, ge=0, le=24)


class ShiftUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    start_time: Optional[str] = Field(None, pattern=_TIME_PATTERN)
    end_time: Optional[str] = Field(None, pattern=_TIME_PATTERN)
    color: Optional[str] = Field(None, pattern=_COLOR_PATTERN)
    hours: Optional[float] = Field(None, ge=0, le=24)


def _name_taken(name: str, exclude_id: Optional[str] = None) -> bool:
    wanted = name.strip().lower()
    return any(s.name.strip().lower() == wanted and s.id != exclude_id for s in get_store().list_shifts())


@router.post("/api/shifts", tags=["Shifts"], summary="Create shift definition")
def create_shift(body: ShiftCreate):
    if not body.name.strip():
        raise HTTPException(status_code=400, detail="Feld 'name' darf nicht leer sein")
    if _name_taken(body.name):
        raise HTTPException(status_code=409, detail=f"Schicht mit dem Namen '{body.name}' existiert bereits")
    shift = Shift(
        id=new_id(),
        name=body.name.strip(),
        start_time=body.start_time,
        end_time=body.end_time,
        color=body.color or f"#{random.randint(0, 0xFFFFFF):06x}",
        hours=body.hours,
    )
    record = get_store().add_shift(shift)
    broadcast("shift_changed", {"shift_id": record.id, "action": "created"})
    return {"ok": True, "record": record}


@router.put("/api/shifts/{shift_id}", tags=["Shifts"], summary="Update shift definition")
def update_shift(shift_id: str, body: ShiftUpdate):
    data = {k: v for k, v in body.model_dump().items() if v is not None}
    if not data:
        raise HTTPException(status_code=400, detail="Keine Felder zum Aktualisieren angegeben")
    if 'name' in data and _name_taken(data['name'], exclude_id=shift_id):
        raise HTTPException(status_code=409, detail=f"Schicht mit dem Namen '{data['name']}' existiert bereits")
    try:
        record = get_store().update_shift(shift_id, data)
    except ValidationError:
        raise HTTPException(status_code=400, detail="Ungültige Schichtdaten")
    if record is None:
        raise HTTPException(status_code=404, detail=f"Schicht ID {shift_id} nicht gefunden")
    broadcast("shift_changed", {"shift_id": shift_id, "action": "updated"})
    return {"ok": True, "record": record}


@router.delete("/api/shifts/{shift_id}", tags=["Shifts"], summary="Delete shift definition",
               description="Schedule entries that reference the shift are kept; they count 0 nominal hours afterwards.")
def delete_shift(shift_id: str):
    if not get_store().delete_shift(shift_id):
        raise HTTPException(status_code=404, detail=f"Schicht ID {shift_id} nicht gefunden")
    _logger.info("Shift %s deleted; referencing entries kept", shift_id)
    broadcast("shift_changed", {"shift_id": shift_id, "action": "deleted"})
    return {"ok": True}
