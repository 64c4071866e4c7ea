"""
Crew Completeness
Compares stored bookings with what the quotation asks for, day by day. Drives
the "crew incomplete" marker on event lists and the staff-status filter.
"""

import logging
from collections import Counter
from typing import Dict, Iterable, List, Optional

from studiocrew.engine.requirements import required_count
from studiocrew.models import (
    CrewCompleteness, CrewShortfall, Event, QuotationDetails, StaffAssignment, ROLES,
)

logger = logging.getLogger(__name__)

STATUS_NONE = 'none'
STATUS_INCOMPLETE = 'incomplete'
STATUS_COMPLETE = 'complete'

# CLI/UI filter name -> staff status
STAFF_STATUS_FILTERS = {
    'staff_complete': STATUS_COMPLETE,
    'staff_incomplete': STATUS_INCOMPLETE,
    'no_staff': STATUS_NONE,
}


def check_crew_completeness(
    event: Event,
    assignments: Iterable[StaffAssignment],
    quotation_details: Optional[QuotationDetails] = None,
) -> CrewCompleteness:
    """
    Per day and per role with a requirement, report where fewer people are
    booked than required. Events without a quotation have nothing to check.
    """
    if not event.quotation_source_id:
        return CrewCompleteness(is_complete=True, reason='No quotation requirements to check')

    details = quotation_details or event.quotation_details
    if details is None:
        return CrewCompleteness(is_complete=True, reason='Quotation details not loaded - assuming complete')
    if not details.days:
        return CrewCompleteness(is_complete=True, reason='No day-wise crew requirements found')

    booked = Counter((a.day_number, a.role) for a in assignments)
    missing: List[CrewShortfall] = []

    for day in range(1, (event.total_days or 1) + 1):
        if day > len(details.days):
            continue
        for role in ROLES:
            required = required_count(role, day - 1, details)
            if required <= 0:
                continue
            assigned = booked[(day, role)]
            if assigned < required:
                missing.append(CrewShortfall(day=day, role=role, required=required, assigned=assigned))

    if missing:
        logger.debug(f"check_crew_completeness: event {event.id} short on {len(missing)} role/day(s)")
        return CrewCompleteness(is_complete=False, reason='Crew assignments incomplete', missing=missing)
    return CrewCompleteness(is_complete=True, reason='All crew requirements met')


def is_crew_incomplete(event: Event, assignments: Iterable[StaffAssignment]) -> bool:
    return not check_crew_completeness(event, assignments).is_complete


def staff_status(event: Event, assignments: Iterable[StaffAssignment]) -> str:
    """'none' with no bookings at all, else 'incomplete' or 'complete'."""
    assignments = list(assignments)
    if not assignments:
        return STATUS_NONE
    if is_crew_incomplete(event, assignments):
        return STATUS_INCOMPLETE
    return STATUS_COMPLETE


def filter_events_by_staff_status(
    events: Iterable[Event],
    assignments_by_event: Dict[str, List[StaffAssignment]],
    status_filter: Optional[str],
) -> List[Event]:
    """
    Keep events matching a filter from STAFF_STATUS_FILTERS.
    No filter (or an unknown one) keeps everything.
    """
    wanted = STAFF_STATUS_FILTERS.get(status_filter or '')
    if wanted is None:
        return list(events)
    return [e for e in events if staff_status(e, assignments_by_event.get(e.id, [])) == wanted]
