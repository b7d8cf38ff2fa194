"""Employees router."""
from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field, ValidationError
from typing import Optional
from shiftlib.models import Employee, Region
from shiftlib.store import new_id
from ..dependencies import get_store, _logger
from .events import broadcast

router = APIRouter()


@router.get("/api/employees", tags=["Employees"], summary="List employees")
def get_employees():
    return get_store().list_employees()


@router.get("/api/employees/{emp_id}", tags=["Employees"], summary="Get employee by ID")
def get_employee(emp_id: str):
    e = get_store().get_employee(emp_id)
    if e is None:
        raise HTTPException(status_code=404, detail=f"Mitarbeiter ID {emp_id} nicht gefunden")
    return e


# ── Write: Employees ─────────────────────────────────────────

class EmployeeCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    region: Region = Region.BW
    yearly_vacation_entitlement: float = Field(30, ge=0, le=366)


class EmployeeUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    region: Optional[Region] = None
    yearly_vacation_entitlement: Optional[float] = Field(None, ge=0, le=366)


@router.post("/api/employees", tags=["Employees"], summary="Create employee")
def create_employee(body: EmployeeCreate):
    if not body.name.strip():
        raise HTTPException(status_code=400, detail="Feld 'name' darf nicht leer sein")
    emp = Employee(id=new_id(), name=body.name.strip(), region=body.region,
                   yearly_vacation_entitlement=body.yearly_vacation_entitlement)
    record = get_store().add_employee(emp)
    broadcast("employee_changed", {"employee_id": record.id, "action": "created"})
    return {"ok": True, "record": record}


@router.put("/api/employees/{emp_id}", tags=["Employees"], summary="Update employee")
def update_employee(emp_id: str, body: EmployeeUpdate):
    data = body.model_dump(exclude_unset=True, exclude_none=True)
    if not data:
        raise HTTPException(status_code=400, detail="Keine Felder zum Aktualisieren angegeben")
    try:
        record = get_store().update_employee(emp_id, data)
    except ValidationError:
        raise HTTPException(status_code=400, detail="Ungültige Mitarbeiterdaten")
    if record is None:
        raise HTTPException(status_code=404, detail=f"Mitarbeiter ID {emp_id} nicht gefunden")
    broadcast("employee_changed", {"employee_id": emp_id, "action": "updated"})
    return {"ok": True, "record": record}


@router.delete("/api/employees/{emp_id}", tags=["Employees"], summary="Delete employee",
               description="Remove the employee together with all of their schedule entries.")
def delete_employee(emp_id: str):
    if not get_store().delete_employee(emp_id):
        raise HTTPException(status_code=404, detail=f"Mitarbeiter ID {emp_id} nicht gefunden")
    _logger.info("Employee %s deleted with all schedule entries", emp_id)
    broadcast("employee_changed", {"employee_id": emp_id, "action": "deleted"})
    return {"ok": True}
