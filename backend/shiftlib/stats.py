"""
Monthly hour accounts: target vs. actual hours, vacation and sick days, plus
the cross-employee weekend workload.

Everything here is recomputed from scratch on each call. Missing data (no
entry, unknown shift) counts as zero, never as an error.
"""
import calendar
from datetime import date
from typing import Dict, FrozenSet, Iterable, List, Mapping

from .holidays import holiday_dates
from .models import (
    AbsenceType, Employee, EmployeeMonthStats, ScheduleEntry, Shift, VacationBalance,
)

HOURS_PER_DAY = 8.0


def month_days(year: int, month: int) -> List[date]:
    num_days = calendar.monthrange(year, month)[1]
    return [date(year, month, d) for d in range(1, num_days + 1)]


def is_weekend(day: date) -> bool:
    return day.weekday() >= 5


def build_holidays_by_employee(
    employees: Iterable[Employee], days: Iterable[date]
) -> Dict[str, FrozenSet[date]]:
    """Holiday dates per employee for every year touched by ``days``."""
    years = sorted({d.year for d in days})
    result: Dict[str, FrozenSet[date]] = {}
    for emp in employees:
        dates: FrozenSet[date] = frozenset()
        for y in years:
            dates |= holiday_dates(y, emp.region)
        result[emp.id] = dates
    return result


def entry_hours(entry: ScheduleEntry, shifts_map: Mapping[str, Shift]) -> float:
    """Explicit hours if set, else the referenced shift's nominal hours, else 0."""
    if entry.actual_hours is not None:
        return entry.actual_hours
    shift = shifts_map.get(entry.shift_id) if entry.shift_id else None
    return shift.hours if shift is not None else 0.0


def compute_monthly_stats(
    employees: Iterable[Employee],
    shifts: Iterable[Shift],
    entries: Iterable[ScheduleEntry],
    holidays_by_employee: Mapping[str, FrozenSet[date]],
    days: Iterable[date],
) -> Dict[str, EmployeeMonthStats]:
    shifts_map = {s.id: s for s in shifts}
    entries_map = {(en.employee_id, en.date): en for en in entries}
    days = list(days)

    result: Dict[str, EmployeeMonthStats] = {}
    for emp in employees:
        holidays = holidays_by_employee.get(emp.id, frozenset())
        target = 0.0
        actual = 0.0
        vacation = 0
        sick = 0
        for day in days:
            if not is_weekend(day) and day not in holidays:
                target += HOURS_PER_DAY

            entry = entries_map.get((emp.id, day))
            if entry is None:
                continue
            if entry.absence == AbsenceType.VACATION:
                vacation += 1
                actual += HOURS_PER_DAY
            elif entry.absence == AbsenceType.SICK:
                sick += 1
                actual += HOURS_PER_DAY
            elif entry.shift_id:
                actual += entry_hours(entry, shifts_map)
            elif entry.actual_hours:
                actual += entry.actual_hours

        result[emp.id] = EmployeeMonthStats(
            employee_id=emp.id,
            target_hours=target,
            actual_hours=actual,
            vacation_days=vacation,
            sick_days=sick,
        )
    return result


def compute_weekend_hours(
    shifts: Iterable[Shift],
    entries: Iterable[ScheduleEntry],
    days: Iterable[date],
) -> Dict[date, float]:
    """Hours worked by anyone on each weekend day of the month."""
    shifts_map = {s.id: s for s in shifts}
    totals: Dict[date, float] = {d: 0.0 for d in days if is_weekend(d)}
    for en in entries:
        if en.date in totals:
            totals[en.date] += entry_hours(en, shifts_map)
    return totals


def vacation_overview(
    employees: Iterable[Employee], entries: Iterable[ScheduleEntry], year: int
) -> Dict[str, VacationBalance]:
    """Vacation days taken in ``year`` against each employee's yearly entitlement."""
    used: Dict[str, int] = {}
    for en in entries:
        if en.date.year == year and en.absence == AbsenceType.VACATION:
            used[en.employee_id] = used.get(en.employee_id, 0) + 1
    return {
        emp.id: VacationBalance(
            employee_id=emp.id,
            year=year,
            entitlement=emp.yearly_vacation_entitlement,
            used=used.get(emp.id, 0),
        )
        for emp in employees
    }


def monthly_report(store, year: int, month: int) -> dict:
    """Per-employee statistics and weekend rollup for one month of ``store``."""
    state = store.snapshot()
    days = month_days(year, month)
    stats = compute_monthly_stats(
        state.employees,
        state.shifts,
        state.entries,
        build_holidays_by_employee(state.employees, days),
        days,
    )
    return {
        'year': year,
        'month': month,
        'employees': state.employees,
        'stats': stats,
        'weekend_hours': compute_weekend_hours(state.shifts, state.entries, days),
    }
