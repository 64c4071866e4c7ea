"""
Slot Reconciler
Turns persisted assignments plus the quotation's requirements into editable,
per-day crew slots, and provides the slot edits the event form performs.

Slot lists are fixed-length for quotation-governed roles: slot i holds the
i-th person already booked for that role/day, or '' when unfilled. All
functions here are pure and return new objects; nothing is mutated in place.
"""

import logging
from dataclasses import replace
from typing import Dict, Iterable, List, Optional

from studiocrew.engine.requirements import required_count
from studiocrew.models import (
    DaySlotAssignment, QuotationDetails, StaffAssignment,
    ROLES, ROLE_FIELDS, ROLE_PHOTOGRAPHER, ROLE_CINEMATOGRAPHER,
)

logger = logging.getLogger(__name__)

# Roles every manual event day starts with one empty slot for
_SEEDED_ROLES = (ROLE_PHOTOGRAPHER, ROLE_CINEMATOGRAPHER)


class SlotValidationError(ValueError):
    """Slot state that must not be saved or an edit that is not allowed."""


# =============================================================================
# RECONCILIATION
# =============================================================================

def group_by_day(existing: Iterable[StaffAssignment]) -> Dict[int, Dict[str, List[str]]]:
    """
    Partition assignments into {day_number: {role: [person_id, ...]}},
    keeping retrieval order. Roles outside the crew roles (legacy 'Editor'
    rows) are skipped.

    A person appears at most once per role and day; repeated rows (left by an
    interrupted insert-first save) collapse onto the first.
    """
    grouped: Dict[int, Dict[str, List[str]]] = {}
    for assignment in existing:
        if assignment.role not in ROLE_FIELDS:
            logger.debug(f"group_by_day: skipping {assignment.role!r} row for {assignment.person_id}")
            continue
        if not assignment.person_id:
            continue
        day = grouped.setdefault(assignment.day_number, {role: [] for role in ROLES})
        ids = day[assignment.role]
        if assignment.person_id in ids:
            logger.warning(
                f"group_by_day: {assignment.person_id} stored twice as {assignment.role} "
                f"on day {assignment.day_number}, keeping one"
            )
            continue
        ids.append(assignment.person_id)
    return grouped


def reconcile(
    existing: Iterable[StaffAssignment],
    total_days: int,
    quotation_details: Optional[QuotationDetails] = None,
) -> List[DaySlotAssignment]:
    """
    Build the editable slot state for days 1..total_days.

    Per role and day:
      - required > 0: exactly `required` slots, filled from existing ids in
        order, padded with ''. Surplus ids are dropped (logged).
      - required == 0 with existing ids: ids kept as they are.
      - required == 0, nothing booked, no quotation at all: one empty slot
        for Photographer and Cinematographer, none for the opt-in roles.
    Feeding the output back in (as assignments) yields the same output.
    """
    grouped = group_by_day(existing)

    beyond = sorted(day for day in grouped if day > total_days or day < 1)
    if beyond:
        logger.info(f"reconcile: ignoring assignments on days {beyond} outside 1..{total_days}")

    result = []
    for day in range(1, total_days + 1):
        booked = grouped.get(day, {role: [] for role in ROLES})
        slots = DaySlotAssignment(day=day)

        for role in ROLES:
            ids = booked[role]
            required = required_count(role, day - 1, quotation_details)

            if required > 0:
                role_slots = [ids[i] if i < len(ids) else '' for i in range(required)]
                if len(ids) > required:
                    logger.warning(
                        f"reconcile: day {day} {role} needs {required}, dropping booked {ids[required:]}"
                    )
            elif ids:
                role_slots = list(ids)
            elif quotation_details is None and role in _SEEDED_ROLES:
                role_slots = ['']
            else:
                role_slots = []

            setattr(slots, ROLE_FIELDS[role], role_slots)

        result.append(slots)

    logger.debug(f"reconcile: {total_days} day(s), quotation={'yes' if quotation_details else 'no'}")
    return result


def slot_assignments(day_slots: Iterable[DaySlotAssignment]) -> List[StaffAssignment]:
    """Filled slots as in-memory assignments (no event, kind or date yet)."""
    rows = []
    for day in day_slots:
        for role in ROLES:
            for person_id in day.slots_for(role):
                if person_id and person_id.strip():
                    rows.append(StaffAssignment(person_id=person_id, role=role, day_number=day.day))
    return rows


def resize_days(
    day_slots: Iterable[DaySlotAssignment],
    total_days: int,
    quotation_details: Optional[QuotationDetails] = None,
) -> List[DaySlotAssignment]:
    """Re-run reconciliation over the current form state, e.g. after total_days changes."""
    if total_days < 1:
        raise SlotValidationError(f"An event lasts at least one day, got total_days={total_days}")
    return reconcile(slot_assignments(day_slots), total_days, quotation_details)


# =============================================================================
# SLOT EDITS
# =============================================================================

def _copy_days(day_slots: Iterable[DaySlotAssignment]) -> List[DaySlotAssignment]:
    return [replace(day, **{attr: list(getattr(day, attr)) for attr in ROLE_FIELDS.values()})
            for day in day_slots]


def _find_day(day_slots: List[DaySlotAssignment], day: int) -> DaySlotAssignment:
    for entry in day_slots:
        if entry.day == day:
            return entry
    raise SlotValidationError(f"Day {day} is not part of this event")


def _check_role(role: str) -> None:
    if role not in ROLE_FIELDS:
        raise SlotValidationError(f"Unknown crew role {role!r}")


def set_slot(
    day_slots: Iterable[DaySlotAssignment],
    day: int,
    role: str,
    slot_index: int,
    person_id: str,
) -> List[DaySlotAssignment]:
    """Put a person into (or, with '', clear) one slot."""
    _check_role(role)
    updated = _copy_days(day_slots)
    slots = _find_day(updated, day).slots_for(role)
    if slot_index < 0 or slot_index >= len(slots):
        raise SlotValidationError(f"Day {day} has no {role} slot #{slot_index + 1}")
    slots[slot_index] = person_id or ''
    return updated


def add_slot(
    day_slots: Iterable[DaySlotAssignment],
    day: int,
    role: str,
    quotation_details: Optional[QuotationDetails] = None,
) -> List[DaySlotAssignment]:
    """Append an empty slot. Only manual events may change slot counts."""
    _check_role(role)
    if quotation_details is not None:
        raise SlotValidationError("Crew slot counts come from the quotation and cannot be changed")
    updated = _copy_days(day_slots)
    _find_day(updated, day).slots_for(role).append('')
    return updated


def remove_slot(
    day_slots: Iterable[DaySlotAssignment],
    day: int,
    role: str,
    slot_index: int,
    quotation_details: Optional[QuotationDetails] = None,
) -> List[DaySlotAssignment]:
    """Drop one slot (and whoever is in it). Only manual events may change slot counts."""
    _check_role(role)
    if quotation_details is not None:
        raise SlotValidationError("Crew slot counts come from the quotation and cannot be changed")
    updated = _copy_days(day_slots)
    slots = _find_day(updated, day).slots_for(role)
    if slot_index < 0 or slot_index >= len(slots):
        raise SlotValidationError(f"Day {day} has no {role} slot #{slot_index + 1}")
    del slots[slot_index]
    return updated


# =============================================================================
# VALIDATION
# =============================================================================

def validate_day_slots(day_slots: Iterable[DaySlotAssignment]) -> None:
    """
    Reject slot state that cannot be saved.
    Raises SlotValidationError when a person fills two slots of the same role on one day.
    """
    for day in day_slots:
        for role in ROLES:
            seen = set()
            for person_id in day.slots_for(role):
                if not person_id:
                    continue
                if person_id in seen:
                    raise SlotValidationError(
                        f"{person_id} is assigned more than once as {role} on day {day.day}"
                    )
                seen.add(person_id)
