"""Tests for the monthly hour accounts (shiftlib.stats)."""
from datetime import date

from shiftlib.models import (
    AbsenceType, Employee, EntryUpdate, Region, ScheduleEntry, Shift,
)
from shiftlib.stats import (
    build_holidays_by_employee, compute_monthly_stats, compute_weekend_hours,
    entry_hours, month_days, monthly_report, vacation_overview,
)

EARLY = Shift(id='early', name='Früh', start_time='07:30', end_time='16:30', hours=8)
SHORT = Shift(id='short', name='Kurz', start_time='08:00', end_time='12:00', hours=4)


def _stats(employees, shifts, entries, days):
    return compute_monthly_stats(
        employees, shifts, entries, build_holidays_by_employee(employees, days), days,
    )


class TestMonthDays:
    def test_lengths(self):
        assert len(month_days(2026, 2)) == 28
        assert len(month_days(2024, 2)) == 29
        assert len(month_days(2026, 4)) == 30

    def test_first_and_last(self):
        days = month_days(2026, 12)
        assert days[0] == date(2026, 12, 1)
        assert days[-1] == date(2026, 12, 31)


class TestTargetHours:
    def test_easter_weekday_holidays(self):
        # April 2026 in Berlin: 8 weekend days, Good Friday (3rd) and Easter Monday (6th)
        emp = Employee(id='e', name='E', region=Region.BE)
        days = month_days(2026, 4)
        assert sum(1 for d in days if d.weekday() >= 5) == 8
        stats = _stats([emp], [], [], days)
        assert stats['e'].target_hours == (30 - 8 - 2) * 8

    def test_month_without_holidays(self):
        emp = Employee(id='e', name='E', region=Region.BE)
        days = month_days(2026, 9)
        assert sum(1 for d in days if d.weekday() >= 5) == 8
        assert _stats([emp], [], [], days)['e'].target_hours == (30 - 8) * 8

    def test_single_weekday_holiday(self):
        # All Saints 2027 is a Monday
        bw = Employee(id='bw', name='BW', region=Region.BW)
        nov = month_days(2027, 11)
        assert sum(1 for d in nov if d.weekday() >= 5) == 8
        assert _stats([bw], [], [], nov)['bw'].target_hours == (30 - 8 - 1) * 8

    def test_regional_holiday_only_for_that_region(self):
        days = month_days(2026, 1)
        by = Employee(id='by', name='BY', region=Region.BY)
        be = Employee(id='be', name='BE', region=Region.BE)
        stats = _stats([by, be], [], [], days)
        # Epiphany 2026 is a Tuesday
        assert stats['be'].target_hours - stats['by'].target_hours == 8


class TestActualHours:
    days = month_days(2026, 3)
    emp = Employee(id='e', name='E', region=Region.BE)

    def _entry(self, day, **kw):
        return ScheduleEntry(employee_id='e', date=date(2026, 3, day), **kw)

    def test_shift_nominal_hours(self):
        stats = _stats([self.emp], [EARLY, SHORT], [
            self._entry(2, shift_id='early'), self._entry(3, shift_id='short'),
        ], self.days)
        assert stats['e'].actual_hours == 12

    def test_override_wins_over_shift(self):
        stats = _stats([self.emp], [EARLY], [self._entry(2, shift_id='early', actual_hours=10)], self.days)
        assert stats['e'].actual_hours == 10

    def test_dangling_shift_counts_zero(self):
        stats = _stats([self.emp], [], [self._entry(2, shift_id='deleted')], self.days)
        assert stats['e'].actual_hours == 0

    def test_dangling_shift_with_override(self):
        stats = _stats([self.emp], [], [self._entry(2, shift_id='deleted', actual_hours=5)], self.days)
        assert stats['e'].actual_hours == 5

    def test_manual_hours_without_shift(self):
        stats = _stats([self.emp], [], [self._entry(2, actual_hours=6.5)], self.days)
        assert stats['e'].actual_hours == 6.5

    def test_vacation_and_sick_count_eight_hours(self):
        stats = _stats([self.emp], [SHORT], [
            self._entry(2, absence=AbsenceType.VACATION, shift_id='short'),
            self._entry(3, absence=AbsenceType.SICK),
            self._entry(4, absence=AbsenceType.SICK, actual_hours=2),
        ], self.days)
        s = stats['e']
        assert s.vacation_days == 1
        assert s.sick_days == 2
        assert s.actual_hours == 24

    def test_variance(self):
        stats = _stats([self.emp], [EARLY], [self._entry(2, shift_id='early')], self.days)
        s = stats['e']
        assert s.variance == s.actual_hours - s.target_hours
        assert 'variance' in s.model_dump()

    def test_entries_outside_month_ignored(self):
        other = ScheduleEntry(employee_id='e', date=date(2026, 4, 1), shift_id='early')
        assert _stats([self.emp], [EARLY], [other], self.days)['e'].actual_hours == 0

    def test_idempotent(self):
        entries = [self._entry(2, shift_id='early'), self._entry(7, actual_hours=3)]
        first = _stats([self.emp], [EARLY], entries, self.days)
        second = _stats([self.emp], [EARLY], entries, self.days)
        assert first == second


class TestWeekendHours:
    def test_sums_all_employees(self):
        days = month_days(2026, 3)
        sat = date(2026, 3, 7)
        entries = [
            ScheduleEntry(employee_id='a', date=sat, shift_id='early'),
            ScheduleEntry(employee_id='b', date=sat, shift_id='short', actual_hours=5),
            ScheduleEntry(employee_id='c', date=date(2026, 3, 9), shift_id='early'),  # Monday
        ]
        weekend = compute_weekend_hours([EARLY, SHORT], entries, days)
        assert weekend[sat] == 13
        assert date(2026, 3, 9) not in weekend
        assert weekend[date(2026, 3, 8)] == 0
        assert all(d.weekday() >= 5 for d in weekend)

    def test_entry_hours(self):
        shifts = {'early': EARLY}
        assert entry_hours(ScheduleEntry(employee_id='a', date=date(2026, 3, 7), shift_id='early'), shifts) == 8
        assert entry_hours(ScheduleEntry(employee_id='a', date=date(2026, 3, 7), shift_id='x'), shifts) == 0
        assert entry_hours(ScheduleEntry(employee_id='a', date=date(2026, 3, 7),
                                         absence=AbsenceType.VACATION), shifts) == 0

    def test_deleted_employee_no_longer_counted(self, store):
        sat = date(2026, 3, 7)
        store.upsert_entry('1', sat, EntryUpdate(shift_id='early'))
        store.upsert_entry('2', sat, EntryUpdate(shift_id='late'))
        assert monthly_report(store, 2026, 3)['weekend_hours'][sat] == 16
        store.delete_employee('1')
        assert monthly_report(store, 2026, 3)['weekend_hours'][sat] == 8

    def test_keyword_days_argument(self):
        days = month_days(2026, 3)
        weekend = compute_weekend_hours(shifts=[EARLY], entries=[], days=days)
        assert len(weekend) == 9
        emp = Employee(id='e', name='E', region=Region.BE)
        stats = compute_monthly_stats(
            employees=[emp], shifts=[], entries=[],
            holidays_by_employee=build_holidays_by_employee([emp], days), days=days,
        )
        assert stats['e'].target_hours == 22 * 8


class TestVacationOverview:
    def test_counts_year_only(self):
        emp = Employee(id='e', name='E', region=Region.BY, yearly_vacation_entitlement=30)
        entries = [
            ScheduleEntry(employee_id='e', date=date(2026, 1, 5), absence=AbsenceType.VACATION),
            ScheduleEntry(employee_id='e', date=date(2026, 8, 3), absence=AbsenceType.VACATION),
            ScheduleEntry(employee_id='e', date=date(2025, 12, 30), absence=AbsenceType.VACATION),
            ScheduleEntry(employee_id='e', date=date(2026, 8, 4), absence=AbsenceType.SICK),
        ]
        balance = vacation_overview([emp], entries, 2026)['e']
        assert balance.used == 2
        assert balance.remaining == 28


class TestMonthlyReport:
    def test_report_covers_all_employees(self, store):
        report = monthly_report(store, 2026, 1)
        assert set(report['stats']) == {e.id for e in store.list_employees()}
        assert len(report['weekend_hours']) == 9
