"""Seed data for a fresh plan (no state file yet)."""
from .models import Employee, PlanState, Region, Shift

DEFAULT_SHIFTS = [
    Shift(id='early', name='Frühschicht', start_time='07:30', end_time='16:30', color='#3b82f6', hours=8),
    Shift(id='late', name='Spätschicht', start_time='11:00', end_time='20:00', color='#8b5cf6', hours=8),
]

INITIAL_EMPLOYEES = [
    Employee(id='1', name='Max Mustermann', region=Region.BW, yearly_vacation_entitlement=30),
    Employee(id='2', name='Erika Musterfrau', region=Region.BY, yearly_vacation_entitlement=30),
    Employee(id='3', name='John Doe', region=Region.BE, yearly_vacation_entitlement=30),
    Employee(id='4', name='Jane Smith', region=Region.NW, yearly_vacation_entitlement=30),
    Employee(id='5', name='Hans Müller', region=Region.HE, yearly_vacation_entitlement=30),
]


def default_state() -> PlanState:
    return PlanState(
        employees=[e.model_copy() for e in INITIAL_EMPLOYEES],
        shifts=[s.model_copy() for s in DEFAULT_SHIFTS],
        entries=[],
    )
