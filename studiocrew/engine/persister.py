"""
Assignment Differ & Persister
Flattens the edited crew slots into assignment rows, works out which bookings
were gained and lost relative to what is stored, and replaces the event's
stored set with the new one.

Bookings are identified by person + role + day: moving someone to another day
is one removal plus one addition. The returned diff is the only hand-off to
notification dispatch; nothing here sends anything.
"""

import logging
import uuid
from dataclasses import replace
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional

from studiocrew.engine.conflicts import DateLike, to_date
from studiocrew.engine.directory import PersonDirectory
from studiocrew.engine.slots import validate_day_slots
from studiocrew.models import AssignmentDiff, DaySlotAssignment, StaffAssignment, ROLES

logger = logging.getLogger(__name__)


def assignment_key(assignment: StaffAssignment) -> str:
    """Composite identity of a booking: person, role, day."""
    return f"{assignment.person_id}-{assignment.role}-{assignment.day_number}"


def day_date_for(event_date: DateLike, day_number: int) -> date:
    """Calendar date of an event day (day 1 is the event date)."""
    return to_date(event_date) + timedelta(days=day_number - 1)


# =============================================================================
# FLATTEN AND DIFF
# =============================================================================

def flatten_day_slots(
    event_id: str,
    firm_id: Optional[str],
    day_slots: Iterable[DaySlotAssignment],
    event_date: DateLike,
    directory: PersonDirectory,
) -> List[StaffAssignment]:
    """
    Concrete assignment rows for every filled slot.

    Empty slots are skipped. Ids the directory does not know are dropped with
    a warning rather than failing the save.
    """
    rows = []
    for day in day_slots:
        day_date = day_date_for(event_date, day.day)
        for role in ROLES:
            for person_id in day.slots_for(role):
                if not person_id or not person_id.strip():
                    continue
                person = directory.get(person_id)
                if person is None:
                    logger.warning(f"flatten_day_slots: unknown person {person_id!r} ({role}, day {day.day}) dropped")
                    continue
                rows.append(StaffAssignment(
                    event_id=event_id,
                    person_id=person.id,
                    person_kind=person.kind,
                    role=role,
                    day_number=day.day,
                    day_date=day_date,
                    firm_id=firm_id,
                ))
    return rows


def _by_key(assignments: Iterable[StaffAssignment]) -> Dict[str, StaffAssignment]:
    keyed: Dict[str, StaffAssignment] = {}
    for assignment in assignments:
        keyed.setdefault(assignment_key(assignment), assignment)
    return keyed


def diff_assignments(before: Iterable[StaffAssignment], after: Iterable[StaffAssignment]) -> AssignmentDiff:
    """
    added = after minus before, removed = before minus after, by composite key.
    Order follows the input lists.
    """
    before_keyed = _by_key(before)
    after_keyed = _by_key(after)
    return AssignmentDiff(
        added=[a for key, a in after_keyed.items() if key not in before_keyed],
        removed=[a for key, a in before_keyed.items() if key not in after_keyed],
    )


# =============================================================================
# PERSIST
# =============================================================================

def persist_assignments(store, event_id: str, rows: List[StaffAssignment]) -> None:
    """
    Make the stored set for the event equal `rows`.

    Transactional stores swap the rows in one transaction. Otherwise the new
    rows are inserted first under a fresh batch marker and the older rows
    deleted afterwards, so an interruption leaves a superset rather than an
    empty set.
    """
    if store.supports_transactions:
        try:
            store.replace_assignments(event_id, rows)
        except Exception as e:
            logger.error(f"Saving crew for event {event_id} failed (replace, rolled back): {e}")
            raise
        return

    batch = uuid.uuid4().hex
    stamped = [replace(row, save_batch=batch) for row in rows]
    if stamped:
        try:
            store.insert_assignments(stamped)
        except Exception as e:
            logger.error(f"Saving crew for event {event_id} failed (insert, previous crew intact): {e}")
            raise
    try:
        store.delete_assignments(event_id, keep_batch=batch)
    except Exception as e:
        logger.error(
            f"Saving crew for event {event_id} failed (delete, batch {batch} stored "
            f"alongside the previous crew): {e}"
        )
        raise


def save_assignments(
    store,
    event_id: str,
    day_slots: List[DaySlotAssignment],
    event_date: Optional[DateLike],
    directory: PersonDirectory,
    firm_id: Optional[str] = None,
) -> AssignmentDiff:
    """
    Validate, diff against the stored set, and persist.

    Raises:
        SlotValidationError: before anything is written
        ValueError: when the event has no date yet
    Returns: AssignmentDiff of bookings gained and lost by this save
    """
    validate_day_slots(day_slots)
    if not event_date:
        raise ValueError(f"Event {event_id} needs an event date before crew can be saved")

    before = store.fetch_assignments(event_id)
    after = flatten_day_slots(event_id, firm_id, day_slots, event_date, directory)
    diff = diff_assignments(before, after)

    persist_assignments(store, event_id, after)

    logger.info(
        f"Saved crew for event {event_id}: {len(after)} assignments "
        f"(+{len(diff.added)} / -{len(diff.removed)})"
    )
    return diff
