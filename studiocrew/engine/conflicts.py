"""
Conflict Detector
Finds a person's other bookings that fall inside the dates of the event being
staffed, and gates the assignment on a human decision when there are any.

A conflict is a warning the user can override, never a refusal.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Callable, Iterable, List, Optional, Tuple, Union

from studiocrew.models import ConflictCheck, ConflictingBooking, Person, StaffAssignment

logger = logging.getLogger(__name__)

CURRENT_EVENT_LABEL = 'Current event (unsaved)'

DateLike = Union[date, datetime, str]
DateRange = Tuple[date, date]


# =============================================================================
# DATE HELPERS
# =============================================================================

def to_date(value: DateLike) -> date:
    """Calendar date from a date, datetime or 'YYYY-MM-DD' string."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value.strip()[:10])
    raise ValueError(f"Not a date: {value!r}")


def event_date_range(event_date: DateLike, total_days: int = 1, end_date: Optional[DateLike] = None) -> DateRange:
    """
    Inclusive (start, end) of an event. An explicit end date wins over
    total_days.
    """
    start = to_date(event_date)
    if end_date:
        return start, to_date(end_date)
    return start, start + timedelta(days=max(total_days, 1) - 1)


def dates_overlap(first: DateRange, second: DateRange) -> bool:
    """True when two inclusive date ranges share at least one day."""
    return first[0] <= second[1] and second[0] <= first[1]


# =============================================================================
# DETECTION
# =============================================================================

def _bookings_in_window(
    person_id: str,
    window: DateRange,
    assignments: Iterable[StaffAssignment],
    label: Optional[str] = None,
) -> List[ConflictingBooking]:
    found = []
    for assignment in assignments:
        if assignment.person_id != person_id or assignment.day_date is None:
            continue
        if window[0] <= assignment.day_date <= window[1]:
            found.append(ConflictingBooking(
                event_id=assignment.event_id,
                event_title=label or assignment.event_title,
                role=assignment.role,
                day_date=assignment.day_date,
            ))
    return found


def find_conflicts(
    person_id: str,
    start_date: DateLike,
    window_days: int,
    other_assignments: Iterable[StaffAssignment],
    pending: Optional[Iterable[StaffAssignment]] = None,
) -> List[ConflictingBooking]:
    """
    Bookings of `person_id` whose day_date lies in
    [start_date, start_date + window_days - 1].

    Args:
        other_assignments: bookings of every other event of the firm
        pending: unsaved rows of the event being edited, reported under
                 CURRENT_EVENT_LABEL
    Returns: conflicting bookings ordered by date
    """
    window = event_date_range(start_date, window_days)
    conflicts = _bookings_in_window(person_id, window, other_assignments)
    if pending:
        conflicts += _bookings_in_window(person_id, window, pending, label=CURRENT_EVENT_LABEL)
    conflicts.sort(key=lambda booking: booking.day_date)
    return conflicts


def check_conflicts(
    person_id: str,
    person_name: str,
    role: str,
    event_date: Optional[DateLike],
    window_days: int,
    other_assignments: Iterable[StaffAssignment],
    on_confirm: Callable[[], None],
    confirm: Callable[[ConflictCheck], bool],
    pending: Optional[Iterable[StaffAssignment]] = None,
) -> bool:
    """
    Gate an assignment on the person's other commitments.

    No candidate or no event date yet: on_confirm() runs straight away.
    No conflicts: on_confirm() runs without asking. Otherwise confirm() is
    asked with the findings; on_confirm() runs only if it returns True.
    A dismissed/declined prompt leaves everything untouched.

    Returns: True when on_confirm() ran
    """
    if not person_id or not event_date:
        on_confirm()
        return True

    conflicts = find_conflicts(person_id, event_date, window_days, other_assignments, pending)
    if not conflicts:
        on_confirm()
        return True

    check = ConflictCheck(person_id=person_id, person_name=person_name, role=role, conflicts=conflicts)
    logger.info(
        f"Conflict: {person_name} ({person_id}) has {len(conflicts)} booking(s) "
        f"within {window_days} day(s) from {to_date(event_date)}"
    )

    if confirm(check):
        logger.info(f"Conflict overridden: {person_name} assigned as {role}")
        on_confirm()
        return True

    logger.info(f"Assignment of {person_name} as {role} cancelled")
    return False


def annotate_conflicts(
    people: Iterable[Person],
    start_date: DateLike,
    window_days: int,
    other_assignments: Iterable[StaffAssignment],
) -> List[ConflictCheck]:
    """Picker view: every candidate with their bookings in the window."""
    other_assignments = list(other_assignments)
    return [
        ConflictCheck(
            person_id=person.id,
            person_name=person.full_name,
            role=person.role or '',
            conflicts=find_conflicts(person.id, start_date, window_days, other_assignments),
        )
        for person in people
    ]


def fetch_other_assignments(store, firm_id: str, exclude_event_id: Optional[str]) -> List[StaffAssignment]:
    """
    Bookings of the firm outside the edited event. A failed read yields no
    bookings: conflict checks warn, they never block.
    """
    try:
        return store.fetch_all_assignments(firm_id, exclude_event_id)
    except Exception as e:
        logger.warning(f"Conflict lookup failed for firm {firm_id}, continuing without it: {e}")
        return []
