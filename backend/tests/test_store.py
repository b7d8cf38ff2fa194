"""Tests for the in-memory plan store (shiftlib.store)."""
from datetime import date

import pytest

from shiftlib.models import (
    AbsenceType, Employee, EntryUpdate, PlanState, Region, ScheduleEntry, Shift,
)
from shiftlib.store import ScheduleStore, is_effectively_empty

D = date(2026, 3, 10)
MAX = Employee(id='1', name='Max', region=Region.BW)


class TestIsEffectivelyEmpty:
    def test_bare_entry_is_empty(self):
        assert is_effectively_empty(ScheduleEntry(employee_id='1', date=D))

    def test_absence_none_is_empty(self):
        assert is_effectively_empty(ScheduleEntry(employee_id='1', date=D, absence=AbsenceType.NONE))

    def test_zero_hours_is_empty(self):
        assert is_effectively_empty(ScheduleEntry(employee_id='1', date=D, actual_hours=0))

    @pytest.mark.parametrize("fields", [
        {'shift_id': 'early'},
        {'absence': AbsenceType.VACATION},
        {'absence': AbsenceType.SICK},
        {'actual_hours': 4.5},
    ])
    def test_any_content_is_not_empty(self, fields):
        assert not is_effectively_empty(ScheduleEntry(employee_id='1', date=D, **fields))


class TestUpsertEntry:
    def test_creates_entry(self, store):
        stored = store.upsert_entry('1', D, EntryUpdate(shift_id='early'))
        assert stored.shift_id == 'early'
        assert store.find_entry('1', D) == stored

    def test_merges_into_single_entry(self, store):
        store.upsert_entry('1', D, EntryUpdate(shift_id='early'))
        store.upsert_entry('1', D, EntryUpdate(absence=AbsenceType.VACATION))
        entries = store.list_entries(employee_id='1')
        assert len(entries) == 1
        assert entries[0].shift_id == 'early'
        assert entries[0].absence == AbsenceType.VACATION

    def test_unset_fields_are_retained(self, store):
        store.upsert_entry('1', D, EntryUpdate(shift_id='early', actual_hours=6))
        store.upsert_entry('1', D, EntryUpdate(shift_id='late'))
        entry = store.find_entry('1', D)
        assert entry.shift_id == 'late'
        assert entry.actual_hours == 6

    def test_explicit_none_clears_field(self, store):
        store.upsert_entry('1', D, EntryUpdate(shift_id='early', actual_hours=6))
        store.upsert_entry('1', D, EntryUpdate(actual_hours=None))
        assert store.find_entry('1', D).actual_hours is None

    def test_collapse_removes_entry(self, store):
        store.upsert_entry('1', D, EntryUpdate(shift_id='early', absence=AbsenceType.SICK, actual_hours=3))
        result = store.upsert_entry('1', D, EntryUpdate(shift_id=None, absence=AbsenceType.NONE, actual_hours=None))
        assert result is None
        assert store.find_entry('1', D) is None
        assert store.list_entries() == []

    def test_empty_update_on_missing_key_stores_nothing(self, store):
        assert store.upsert_entry('1', D, EntryUpdate(absence=AbsenceType.NONE)) is None
        assert store.list_entries() == []

    def test_unknown_employee_is_noop(self, store):
        assert store.upsert_entry('ghost', D, EntryUpdate(shift_id='early')) is None
        assert store.find_entry('ghost', D) is None
        assert store.list_entries() == []

    def test_entry_after_employee_deleted_is_noop(self, store):
        store.delete_employee('1')
        assert store.upsert_entry('1', D, EntryUpdate(absence=AbsenceType.SICK)) is None
        assert store.list_entries(employee_id='1') == []

    def test_other_keys_untouched(self, store):
        store.upsert_entry('1', D, EntryUpdate(shift_id='early'))
        store.upsert_entry('2', D, EntryUpdate(shift_id='late'))
        store.upsert_entry('1', D, EntryUpdate(shift_id=None))
        assert store.find_entry('2', D).shift_id == 'late'

    def test_returned_entry_is_a_copy(self, store):
        stored = store.upsert_entry('1', D, EntryUpdate(shift_id='early'))
        stored.shift_id = 'late'
        assert store.find_entry('1', D).shift_id == 'early'


class TestDeleteEntry:
    def test_delete_existing(self, store):
        store.upsert_entry('1', D, EntryUpdate(shift_id='early'))
        assert store.delete_entry('1', D) is True
        assert store.find_entry('1', D) is None

    def test_delete_missing_is_noop(self, store):
        assert store.delete_entry('1', D) is False


class TestEmployees:
    def test_delete_employee_cascades(self, store):
        for day in (date(2026, 3, 7), date(2026, 3, 8), date(2026, 3, 9)):
            store.upsert_entry('1', day, EntryUpdate(shift_id='early'))
        store.upsert_entry('2', date(2026, 3, 7), EntryUpdate(shift_id='late'))
        assert store.delete_employee('1') is True
        assert store.get_employee('1') is None
        assert store.find_entry('1', date(2026, 3, 7)) is None
        assert all(en.employee_id != '1' for en in store.list_entries())
        assert store.find_entry('2', date(2026, 3, 7)) is not None

    def test_delete_unknown_employee(self, store):
        assert store.delete_employee('nope') is False

    def test_duplicate_id_rejected(self, store):
        with pytest.raises(ValueError):
            store.add_employee(Employee(id='1', name='Dup', region=Region.BY))

    def test_update_employee(self, store):
        updated = store.update_employee('1', {'region': Region.SN, 'id': 'ignored'})
        assert updated.id == '1'
        assert updated.region == Region.SN
        assert store.get_employee('1').region == Region.SN

    def test_update_unknown_employee(self, store):
        assert store.update_employee('nope', {'name': 'X'}) is None


class TestShifts:
    def test_delete_shift_keeps_entries(self, store):
        store.upsert_entry('1', D, EntryUpdate(shift_id='early'))
        assert store.delete_shift('early') is True
        assert store.get_shift('early') is None
        assert store.find_entry('1', D).shift_id == 'early'

    def test_add_and_update_shift(self, store):
        store.add_shift(Shift(id='night', name='Nacht', start_time='22:00', end_time='06:00', hours=8))
        store.update_shift('night', {'hours': 7.5})
        assert store.get_shift('night').hours == 7.5

    def test_duplicate_shift_rejected(self, store):
        with pytest.raises(ValueError):
            store.add_shift(Shift(id='early', name='X', start_time='06:00', end_time='14:00', hours=8))


class TestSnapshot:
    def test_round_trip(self, store):
        store.upsert_entry('1', D, EntryUpdate(shift_id='early', actual_hours=9))
        store.upsert_entry('2', D, EntryUpdate(absence=AbsenceType.VACATION))
        snap = store.snapshot()
        restored = ScheduleStore.from_state(PlanState.model_validate_json(snap.model_dump_json()))
        assert restored.snapshot().model_dump() == snap.model_dump()

    def test_list_entries_date_range(self, store):
        store.upsert_entry('1', date(2026, 2, 28), EntryUpdate(shift_id='early'))
        store.upsert_entry('1', date(2026, 3, 1), EntryUpdate(shift_id='early'))
        store.upsert_entry('1', date(2026, 3, 31), EntryUpdate(shift_id='early'))
        store.upsert_entry('1', date(2026, 4, 1), EntryUpdate(shift_id='early'))
        march = store.list_entries(start=date(2026, 3, 1), end=date(2026, 3, 31))
        assert [en.date.day for en in march] == [1, 31]

    def test_load_rejects_duplicate_entry_keys(self):
        state = PlanState(employees=[MAX], entries=[
            ScheduleEntry(employee_id='1', date=D, shift_id='a'),
            ScheduleEntry(employee_id='1', date=D, shift_id='b'),
        ])
        with pytest.raises(ValueError):
            ScheduleStore.from_state(state)

    def test_load_drops_empty_entries(self):
        state = PlanState(employees=[MAX], entries=[ScheduleEntry(employee_id='1', date=D, absence=AbsenceType.NONE)])
        assert ScheduleStore.from_state(state).list_entries() == []

    def test_reset_restores_defaults(self, store):
        store.delete_employee('1')
        store.reset()
        assert store.get_employee('1') is not None
        assert len(store.list_employees()) == 5

    def test_empty_store_starts_empty(self, empty_store):
        assert empty_store.list_employees() == []
        assert empty_store.list_shifts() == []
        empty_store.add_employee(Employee(id='x', name='X', region=Region.HB))
        assert [e.id for e in empty_store.snapshot().employees] == ['x']

    def test_load_rejects_entry_for_unknown_employee(self):
        state = PlanState(employees=[MAX], entries=[
            ScheduleEntry(employee_id='ghost', date=D, shift_id='early'),
        ])
        with pytest.raises(ValueError, match="unbekannten Mitarbeiter ghost"):
            ScheduleStore.from_state(state)

    def test_replace_state_with_orphans_keeps_current_plan(self, store):
        store.upsert_entry('1', D, EntryUpdate(shift_id='early'))
        bad = PlanState(employees=[MAX], entries=[ScheduleEntry(employee_id='ghost', date=D, shift_id='early')])
        with pytest.raises(ValueError):
            store.replace_state(bad)
        assert len(store.list_employees()) == 5
        assert store.find_entry('1', D).shift_id == 'early'
