"""
Crew Service - load, edit and save an event's crew.

CrewEditor holds one event's editable slot state the way the event form does:
loaded from the store and reconciled with the quotation, edited slot by slot
(with the double-booking gate on every assignment), then saved as a whole.
Saving returns the diff and announces it on the bus for notification relays.
"""

import logging
from typing import Callable, List, Optional

from studiocrew.bus.events import bus, EVENT_CREW_SAVED, EVENT_CONFLICT_DETECTED, EVENT_CONFLICT_OVERRIDDEN
from studiocrew.engine import slots as slot_ops
from studiocrew.engine.conflicts import check_conflicts, fetch_other_assignments
from studiocrew.engine.directory import PersonDirectory, load_person_directory
from studiocrew.engine.persister import day_date_for, save_assignments
from studiocrew.engine.requirements import resolve_quotation_details
from studiocrew.engine.slots import SlotValidationError
from studiocrew.models import (
    AssignmentDiff, ConflictCheck, DaySlotAssignment, Event, QuotationDetails, StaffAssignment, ROLES,
)

logger = logging.getLogger(__name__)

ConfirmFn = Callable[[ConflictCheck], bool]


class CrewEditor:
    """Editable crew of one event."""

    def __init__(
        self,
        store,
        event: Event,
        directory: PersonDirectory,
        quotation_details: Optional[QuotationDetails] = None,
        day_slots: Optional[List[DaySlotAssignment]] = None,
    ):
        self.store = store
        self.event = event
        self.directory = directory
        self.quotation_details = quotation_details
        self.day_slots = day_slots if day_slots is not None else slot_ops.reconcile([], event.total_days, quotation_details)

    @classmethod
    def load(cls, store, event: Event, directory: Optional[PersonDirectory] = None) -> 'CrewEditor':
        """Reconcile stored assignments with the event's quotation snapshot."""
        if directory is None:
            directory = load_person_directory(store, event.firm_id)
        quotation_details = resolve_quotation_details(event, store)
        existing = store.fetch_assignments(event.id) if event.id else []
        day_slots = slot_ops.reconcile(existing, event.total_days, quotation_details)
        logger.debug(f"CrewEditor.load: event {event.id}, {len(existing)} stored assignments")
        return cls(store, event, directory, quotation_details, day_slots)

    @property
    def is_quotation_governed(self) -> bool:
        return self.quotation_details is not None

    # -- edits ---------------------------------------------------------------

    def first_open_slot(self, day: int, role: str) -> Optional[int]:
        """Index of the first empty slot for a role on a day, None when all are filled."""
        for entry in self.day_slots:
            if entry.day == day:
                for index, person_id in enumerate(entry.slots_for(role)):
                    if not person_id:
                        return index
                return None
        raise SlotValidationError(f"Day {day} is not part of this event")

    def assign(
        self,
        day: int,
        role: str,
        slot_index: int,
        person_id: str,
        confirm: ConfirmFn,
        include_unsaved: bool = False,
    ) -> bool:
        """
        Put a person into a slot after the double-booking check.

        confirm() is only asked when the person has other bookings in the
        event's dates; declining leaves the slot as it was.
        Returns: True when the slot was filled
        """
        candidate = slot_ops.set_slot(self.day_slots, day, role, slot_index, person_id)
        if person_id:
            if person_id not in self.directory:
                raise SlotValidationError(f"Unknown person {person_id!r}")
            current = next(d for d in self.day_slots if d.day == day).slots_for(role)
            if any(pid == person_id for i, pid in enumerate(current) if i != slot_index):
                raise SlotValidationError(f"{self.directory.name_of(person_id)} already has a {role} slot on day {day}")

        def apply():
            self.day_slots = candidate

        def ask(check: ConflictCheck) -> bool:
            bus.emit(EVENT_CONFLICT_DETECTED, {'event_id': self.event.id, 'check': check})
            accepted = confirm(check)
            if accepted:
                bus.emit(EVENT_CONFLICT_OVERRIDDEN, {'event_id': self.event.id, 'check': check})
            return accepted

        needs_check = bool(person_id and self.event.event_date)
        other = fetch_other_assignments(self.store, self.event.firm_id, self.event.id) if needs_check else []
        pending = self.pending_assignments(exclude=(day, role, slot_index)) if include_unsaved else None

        return check_conflicts(
            person_id,
            self.directory.name_of(person_id),
            role,
            self.event.event_date,
            self.event.total_days,
            other,
            on_confirm=apply,
            confirm=ask,
            pending=pending,
        )

    def clear(self, day: int, role: str, slot_index: int) -> None:
        self.day_slots = slot_ops.set_slot(self.day_slots, day, role, slot_index, '')

    def add_slot(self, day: int, role: str) -> None:
        self.day_slots = slot_ops.add_slot(self.day_slots, day, role, self.quotation_details)

    def remove_slot(self, day: int, role: str, slot_index: int) -> None:
        self.day_slots = slot_ops.remove_slot(self.day_slots, day, role, slot_index, self.quotation_details)

    def resize(self, total_days: int) -> None:
        """Follow a change of the event's length."""
        self.day_slots = slot_ops.resize_days(self.day_slots, total_days, self.quotation_details)
        self.event.total_days = total_days

    def pending_assignments(self, exclude=None) -> List[StaffAssignment]:
        """Unsaved filled slots of this event, dated, optionally minus one (day, role, slot)."""
        rows = []
        if not self.event.event_date:
            return rows
        for entry in self.day_slots:
            for role in ROLES:
                for index, person_id in enumerate(entry.slots_for(role)):
                    if not person_id or (entry.day, role, index) == exclude:
                        continue
                    rows.append(StaffAssignment(
                        event_id=self.event.id,
                        person_id=person_id,
                        person_kind=self.directory.kind_of(person_id),
                        role=role,
                        day_number=entry.day,
                        day_date=day_date_for(self.event.event_date, entry.day),
                        firm_id=self.event.firm_id,
                    ))
        return rows

    # -- save ----------------------------------------------------------------

    def save(self) -> AssignmentDiff:
        """
        Persist the slots and announce the diff on the bus.
        Listener failures never undo the save.
        """
        diff = save_assignments(
            self.store,
            self.event.id,
            self.day_slots,
            self.event.event_date,
            self.directory,
            firm_id=self.event.firm_id,
        )
        bus.emit(EVENT_CREW_SAVED, {'event': self.event, 'diff': diff, 'directory': self.directory})
        return diff
