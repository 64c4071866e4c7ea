"""
Unit tests for data models (studiocrew/models/__init__.py).
Pure Python: no DB, no mocking required.
"""

import dataclasses

import pytest
from studiocrew.models import (
    AssignmentDiff, ConflictCheck, ConflictingBooking, DaySlotAssignment, Event,
    Person, QuotationDetails, StaffAssignment, ROLES, ROLE_FIELDS,
)


def test_roles_in_display_order():
    assert ROLES == ('Photographer', 'Cinematographer', 'Drone Pilot', 'Same Day Editor', 'Other')


def test_every_role_has_a_slot_list():
    day = DaySlotAssignment(day=1)
    for role in ROLES:
        assert getattr(day, ROLE_FIELDS[role]) == []
        assert day.slots_for(role) is getattr(day, ROLE_FIELDS[role])


def test_slot_lists_are_not_shared_between_days():
    first, second = DaySlotAssignment(day=1), DaySlotAssignment(day=2)
    first.photographer_ids.append('a')
    assert second.photographer_ids == []


def test_event_defaults_to_one_day_without_quotation():
    event = Event(title='Portfolio Shoot')
    assert event.total_days == 1
    assert event.quotation_source_id is None
    assert event.quotation_details is None


def test_assignment_defaults():
    a = StaffAssignment(person_id='a', role='Photographer')
    assert a.day_number == 1
    assert a.person_kind is None
    assert a.save_batch is None


def test_person_is_immutable_and_tagged():
    person = Person(kind='freelancer', id='f-1', full_name='Farah Iqbal')
    assert person.is_freelancer
    with pytest.raises(dataclasses.FrozenInstanceError):
        person.kind = 'staff'


def test_diff_has_changes():
    assert not AssignmentDiff().has_changes
    assert AssignmentDiff(removed=[StaffAssignment(person_id='a')]).has_changes


def test_conflict_check_has_conflict():
    assert not ConflictCheck(person_id='a').has_conflict
    assert ConflictCheck(person_id='a', conflicts=[ConflictingBooking(event_id='ev-2')]).has_conflict


def test_quotation_details_default_is_empty():
    details = QuotationDetails()
    assert details.days == []
    assert details.same_day_editing is False
