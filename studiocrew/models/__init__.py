"""
Data Models
Dataclasses for all entities. These are pure Python objects, no database logic.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Optional


# =============================================================================
# ROLES AND PERSON KINDS
# =============================================================================

ROLE_PHOTOGRAPHER = 'Photographer'
ROLE_CINEMATOGRAPHER = 'Cinematographer'
ROLE_DRONE_PILOT = 'Drone Pilot'
ROLE_SAME_DAY_EDITOR = 'Same Day Editor'
ROLE_OTHER = 'Other'

# Display order of crew roles on a day
ROLES = (
    ROLE_PHOTOGRAPHER,
    ROLE_CINEMATOGRAPHER,
    ROLE_DRONE_PILOT,
    ROLE_SAME_DAY_EDITOR,
    ROLE_OTHER,
)

# Role -> DaySlotAssignment list attribute
ROLE_FIELDS = {
    ROLE_PHOTOGRAPHER: 'photographer_ids',
    ROLE_CINEMATOGRAPHER: 'cinematographer_ids',
    ROLE_DRONE_PILOT: 'drone_pilot_ids',
    ROLE_SAME_DAY_EDITOR: 'same_day_editor_ids',
    ROLE_OTHER: 'other_crew_ids',
}

PERSON_STAFF = 'staff'
PERSON_FREELANCER = 'freelancer'
PERSON_KINDS = (PERSON_STAFF, PERSON_FREELANCER)


# =============================================================================
# QUOTATION SNAPSHOT
# =============================================================================

@dataclass
class DayConfig:
    """Crew counts a quotation asks for on one event day. None = not specified."""
    photographers: Optional[int] = None
    cinematographers: Optional[int] = None
    drone: Optional[int] = None
    same_day_editors: Optional[int] = None
    other_crew: Optional[int] = None


@dataclass
class QuotationDetails:
    """Day-by-day crew configuration captured from a quotation."""
    days: List[DayConfig] = field(default_factory=list)
    same_day_editing: bool = False


# =============================================================================
# EVENTS AND PEOPLE
# =============================================================================

@dataclass
class Event:
    """A (possibly multi-day) shoot booked by the studio."""
    id: Optional[str] = None
    firm_id: Optional[str] = None
    title: str = ''
    event_date: Optional[date] = None
    event_end_date: Optional[date] = None
    total_days: int = 1
    venue: Optional[str] = None
    quotation_source_id: Optional[str] = None
    quotation_details: Optional[QuotationDetails] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class Staff:
    """Internal team member (profiles table)."""
    id: str = ''
    full_name: str = ''
    role: Optional[str] = None
    mobile_number: Optional[str] = None
    firm_id: Optional[str] = None


@dataclass
class Freelancer:
    """External contractor."""
    id: str = ''
    full_name: str = ''
    role: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    firm_id: Optional[str] = None


@dataclass(frozen=True)
class Person:
    """
    Staff or freelancer in one id space. `kind` is the tag: it decides
    whether a persisted assignment row carries staff_id or freelancer_id.
    """
    kind: str
    id: str
    full_name: str = ''
    role: Optional[str] = None
    phone: Optional[str] = None

    @property
    def is_freelancer(self) -> bool:
        return self.kind == PERSON_FREELANCER


# =============================================================================
# ASSIGNMENTS
# =============================================================================

@dataclass
class StaffAssignment:
    """One persisted booking of a person in a role on one event day."""
    event_id: Optional[str] = None
    person_id: str = ''
    person_kind: Optional[str] = None
    role: str = ''
    day_number: int = 1
    day_date: Optional[date] = None
    firm_id: Optional[str] = None
    id: Optional[int] = None
    event_title: Optional[str] = None
    save_batch: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass
class DaySlotAssignment:
    """Editable crew slots for one event day. '' marks an unfilled slot."""
    day: int = 1
    photographer_ids: List[str] = field(default_factory=list)
    cinematographer_ids: List[str] = field(default_factory=list)
    drone_pilot_ids: List[str] = field(default_factory=list)
    same_day_editor_ids: List[str] = field(default_factory=list)
    other_crew_ids: List[str] = field(default_factory=list)

    def slots_for(self, role: str) -> List[str]:
        return getattr(self, ROLE_FIELDS[role])


@dataclass
class AssignmentDiff:
    """Bookings gained and lost by a save, for the notification dispatcher."""
    added: List[StaffAssignment] = field(default_factory=list)
    removed: List[StaffAssignment] = field(default_factory=list)

    @property
    def has_changes(self) -> bool:
        return bool(self.added or self.removed)


# =============================================================================
# CONFLICTS AND COMPLETENESS
# =============================================================================

@dataclass
class ConflictingBooking:
    """An existing booking that overlaps the date window being checked."""
    event_id: Optional[str] = None
    event_title: Optional[str] = None
    role: str = ''
    day_date: Optional[date] = None


@dataclass
class ConflictCheck:
    """Outcome of scanning a candidate's other commitments."""
    person_id: str = ''
    person_name: str = ''
    role: str = ''
    conflicts: List[ConflictingBooking] = field(default_factory=list)

    @property
    def has_conflict(self) -> bool:
        return bool(self.conflicts)


@dataclass
class CrewShortfall:
    """A role on a day with fewer people assigned than the quotation asks for."""
    day: int = 1
    role: str = ''
    required: int = 0
    assigned: int = 0


@dataclass
class CrewCompleteness:
    is_complete: bool = True
    reason: Optional[str] = None
    missing: List[CrewShortfall] = field(default_factory=list)


# Notification payloads are plain dicts handed to the external dispatcher
NotificationPayload = Dict[str, Any]
