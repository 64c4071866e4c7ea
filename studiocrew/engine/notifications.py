"""
Crew notifications
Builds the payloads the external dispatcher (WhatsApp sender) needs for people
newly assigned to or removed from an event. Sending is the caller's job: the
relay hands each payload to a `send` callable it is given.
"""

import logging
from typing import Callable, List, Optional

from studiocrew.bus.events import bus as default_bus, EventBus, EVENT_CREW_SAVED
from studiocrew.engine.directory import PersonDirectory
from studiocrew.models import AssignmentDiff, Event, NotificationPayload, StaffAssignment

logger = logging.getLogger(__name__)

NOTIFY_ASSIGNMENT = 'event_assignment'
NOTIFY_UNASSIGNMENT = 'event_unassignment'


def _payload(kind: str, assignment: StaffAssignment, event: Event, directory: PersonDirectory) -> Optional[NotificationPayload]:
    person = directory.get(assignment.person_id)
    if person is None or not person.phone:
        logger.debug(f"No phone for {assignment.person_id}, skipping {kind} notification")
        return None
    return {
        'notification_type': kind,
        'staff_name': person.full_name,
        'staff_phone': person.phone,
        'person_kind': person.kind,
        'event_id': event.id,
        'event_name': event.title,
        'role': assignment.role,
        'day_number': assignment.day_number,
        'day_date': assignment.day_date.isoformat() if assignment.day_date else None,
        'total_days': event.total_days,
        'event_date': event.event_date.isoformat() if event.event_date else None,
        'event_end_date': event.event_end_date.isoformat() if event.event_end_date else None,
        'venue': event.venue,
        'firm_id': event.firm_id,
    }


def build_notifications(diff: AssignmentDiff, event: Event, directory: PersonDirectory) -> List[NotificationPayload]:
    """Unassignments first, then assignments. People without a phone are skipped."""
    payloads = []
    for kind, assignments in ((NOTIFY_UNASSIGNMENT, diff.removed), (NOTIFY_ASSIGNMENT, diff.added)):
        for assignment in assignments:
            payload = _payload(kind, assignment, event, directory)
            if payload:
                payloads.append(payload)
    return payloads


class NotificationRelay:
    """
    Listens for crew saves on the bus and forwards notification payloads.
    A failed send is logged and the rest still go out.
    """

    def __init__(self, send: Callable[[NotificationPayload], None], event_bus: EventBus = None):
        self.send = send
        self.bus = event_bus or default_bus

    def start(self):
        self.bus.on(EVENT_CREW_SAVED, self.on_crew_saved)
        return self

    def stop(self):
        self.bus.off(EVENT_CREW_SAVED, self.on_crew_saved)

    def on_crew_saved(self, event_data: dict):
        payloads = build_notifications(event_data['diff'], event_data['event'], event_data['directory'])
        sent = 0
        for payload in payloads:
            try:
                self.send(payload)
                sent += 1
            except Exception as e:
                logger.warning(f"Notification to {payload['staff_name']} failed: {e}")
        logger.info(f"Crew notifications for event {event_data['event'].id}: {sent}/{len(payloads)} sent")
