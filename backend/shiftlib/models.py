"""
Data model for the shift planner: regions, shifts, employees, schedule entries.

All records are pydantic models so that the full plan state can be validated
on load and dumped to JSON on save without a separate schema.
"""
import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field


class Region(str, Enum):
    """German federal states (Bundesländer), keyed by their official code."""
    BW = 'BW'
    BY = 'BY'
    BE = 'BE'
    BB = 'BB'
    HB = 'HB'
    HH = 'HH'
    HE = 'HE'
    MV = 'MV'
    NI = 'NI'
    NW = 'NW'
    RP = 'RP'
    SL = 'SL'
    SN = 'SN'
    ST = 'ST'
    SH = 'SH'
    TH = 'TH'

    @property
    def display_name(self) -> str:
        return _REGION_NAMES[self.value]


_REGION_NAMES = {
    'BW': 'Baden-Württemberg',
    'BY': 'Bayern',
    'BE': 'Berlin',
    'BB': 'Brandenburg',
    'HB': 'Bremen',
    'HH': 'Hamburg',
    'HE': 'Hessen',
    'MV': 'Mecklenburg-Vorpommern',
    'NI': 'Niedersachsen',
    'NW': 'Nordrhein-Westfalen',
    'RP': 'Rheinland-Pfalz',
    'SL': 'Saarland',
    'SN': 'Sachsen',
    'ST': 'Sachsen-Anhalt',
    'SH': 'Schleswig-Holstein',
    'TH': 'Thüringen',
}


class AbsenceType(str, Enum):
    NONE = 'NONE'
    VACATION = 'VACATION'
    SICK = 'SICK'

    @property
    def display_name(self) -> str:
        return {'NONE': '', 'VACATION': 'Urlaub', 'SICK': 'Krank'}[self.value]


class Holiday(BaseModel):
    model_config = ConfigDict(frozen=True)

    date: datetime.date
    name: str


class Shift(BaseModel):
    id: str = Field(..., min_length=1)
    name: str
    start_time: str = Field(..., pattern=r'^\d{2}:\d{2}$')
    end_time: str = Field(..., pattern=r'^\d{2}:\d{2}$')
    color: str = '#3b82f6'
    hours: float = Field(..., ge=0)


class Employee(BaseModel):
    id: str = Field(..., min_length=1)
    name: str
    region: Region
    yearly_vacation_entitlement: float = Field(30, ge=0)


class ScheduleEntry(BaseModel):
    """What one employee does on one calendar date.

    shift_id is an opaque reference: the shift it names may have been deleted
    since, which aggregation treats as zero nominal hours.
    """
    employee_id: str
    date: datetime.date
    shift_id: Optional[str] = None
    absence: Optional[AbsenceType] = None
    actual_hours: Optional[float] = None


class EntryUpdate(BaseModel):
    """Partial update for a schedule entry.

    Only fields that were explicitly set take part in the merge; an explicit
    ``None`` clears the stored value.
    """
    shift_id: Optional[str] = None
    absence: Optional[AbsenceType] = None
    actual_hours: Optional[float] = Field(None, ge=0)

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True)

    @property
    def sets_vacation(self) -> bool:
        return self.changes().get('absence') == AbsenceType.VACATION


class PlanState(BaseModel):
    """Serialisable snapshot of the whole plan."""
    employees: List[Employee] = []
    shifts: List[Shift] = []
    entries: List[ScheduleEntry] = []


class EmployeeMonthStats(BaseModel):
    employee_id: str
    target_hours: float = 0.0
    actual_hours: float = 0.0
    vacation_days: int = 0
    sick_days: int = 0

    @computed_field
    @property
    def variance(self) -> float:
        return self.actual_hours - self.target_hours


class VacationBalance(BaseModel):
    employee_id: str
    year: int
    entitlement: float
    used: int

    @computed_field
    @property
    def remaining(self) -> float:
        return self.entitlement - self.used
