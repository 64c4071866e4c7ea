"""
Requirement Resolver
How many people of each crew role a quotation asks for on a given event day.
Pure functions; the only I/O is resolve_quotation_details() falling back to
the live quotation for events saved before snapshots existed.
"""

import json
import logging
from typing import Any, Dict, Optional

from studiocrew.models import (
    DayConfig, Event, QuotationDetails,
    ROLES, ROLE_PHOTOGRAPHER, ROLE_CINEMATOGRAPHER, ROLE_DRONE_PILOT,
    ROLE_SAME_DAY_EDITOR, ROLE_OTHER,
)

logger = logging.getLogger(__name__)

# Role -> DayConfig attribute (Same Day Editor is resolved separately)
_DAY_FIELDS = {
    ROLE_PHOTOGRAPHER: 'photographers',
    ROLE_CINEMATOGRAPHER: 'cinematographers',
    ROLE_DRONE_PILOT: 'drone',
    ROLE_OTHER: 'other_crew',
}

# Snapshot JSON key -> DayConfig attribute
_JSON_KEYS = {
    'photographers': 'photographers',
    'cinematographers': 'cinematographers',
    'drone': 'drone',
    'sameDayEditors': 'same_day_editors',
    'otherCrew': 'other_crew',
}


def _count(value: Any) -> Optional[int]:
    """Coerce a stored crew count to int. None when absent or unreadable."""
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        logger.debug(f"_count: ignoring non-numeric crew count {value!r}")
        return None


def parse_quotation_details(raw: Any) -> Optional[QuotationDetails]:
    """
    Parse a quotation_details snapshot (dict, or JSON text as older rows store it).
    Returns None when there is nothing to parse.
    """
    if raw is None or raw == '':
        return None
    if isinstance(raw, QuotationDetails):
        return raw
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError as e:
            logger.warning(f"parse_quotation_details: unreadable snapshot, treating as absent ({e})")
            return None
    if not isinstance(raw, dict):
        logger.warning(f"parse_quotation_details: unexpected snapshot type {type(raw).__name__}")
        return None

    days = []
    raw_days = raw.get('days')
    if isinstance(raw_days, list):
        for entry in raw_days:
            entry = entry if isinstance(entry, dict) else {}
            days.append(DayConfig(**{attr: _count(entry.get(key)) for key, attr in _JSON_KEYS.items()}))

    return QuotationDetails(days=days, same_day_editing=bool(raw.get('sameDayEditing')))


def required_count(role: str, day_index: int, quotation_details: Optional[QuotationDetails]) -> int:
    """
    Required number of people for a role on a day.

    Args:
        role: one of the crew roles (unknown roles require nobody)
        day_index: 0-based index into quotation_details.days
        quotation_details: snapshot, or None for a manual event
    Returns: the count, 0 when the quotation is absent or has no entry for the day
    """
    if quotation_details is None:
        return 0
    if day_index < 0 or day_index >= len(quotation_details.days):
        return 0

    day_config = quotation_details.days[day_index]

    if role == ROLE_SAME_DAY_EDITOR:
        # Older quotations only carry the quotation-level flag
        if day_config.same_day_editors and day_config.same_day_editors > 0:
            return day_config.same_day_editors
        return 1 if quotation_details.same_day_editing else 0

    attr = _DAY_FIELDS.get(role)
    if attr is None:
        return 0
    return max(getattr(day_config, attr) or 0, 0)


def required_counts(day_index: int, quotation_details: Optional[QuotationDetails]) -> Dict[str, int]:
    """required_count() for every crew role on one day."""
    return {role: required_count(role, day_index, quotation_details) for role in ROLES}


def resolve_quotation_details(event: Event, store) -> Optional[QuotationDetails]:
    """
    Day configuration governing an event's crew slots.

    The snapshot on the event wins, so later edits to the quotation do not
    reshape an existing event. Events with a quotation source but no snapshot
    read the live quotation once. A failed read leaves the event unconstrained.
    """
    if event.quotation_details is not None:
        return event.quotation_details
    if not event.quotation_source_id:
        return None

    try:
        details = store.fetch_quotation_details(event.quotation_source_id)
    except Exception as e:
        logger.warning(
            f"resolve_quotation_details: could not load quotation {event.quotation_source_id} "
            f"for event {event.id}: {e}"
        )
        return None

    if details is None:
        logger.info(f"Event {event.id} references quotation {event.quotation_source_id} without details")
    return details
