"""
Assignment Store - persistence boundary for crew assignments.

`AssignmentStore` is the interface the engine talks to. `PostgresAssignmentStore`
implements it against the studio database. Staff and freelancer bookings share
one table; `staff_type` says which of `staff_id` / `freelancer_id` is set.
"""

import logging
from datetime import timedelta
from typing import Any, Dict, List, Optional

from psycopg2.extras import execute_values

from studiocrew.config import config
from studiocrew.db.connection import get_db_cursor
from studiocrew.engine.requirements import parse_quotation_details
from studiocrew.models import (
    Event, Freelancer, QuotationDetails, Staff, StaffAssignment,
    PERSON_FREELANCER, PERSON_KINDS, PERSON_STAFF,
)

logger = logging.getLogger(__name__)

_INSERT_COLUMNS = (
    'event_id', 'staff_id', 'freelancer_id', 'staff_type', 'role',
    'day_number', 'day_date', 'firm_id', 'save_batch',
)

_ASSIGNMENT_SELECT = """
    SELECT a.id, a.event_id, a.staff_id, a.freelancer_id, a.staff_type, a.role,
           a.day_number, a.day_date, a.firm_id, a.save_batch, a.created_at,
           e.title AS event_title, e.event_date
    FROM event_staff_assignments a
    JOIN events e ON e.id = a.event_id
"""


# =============================================================================
# ROW MAPPING
# =============================================================================

def assignment_to_row(assignment: StaffAssignment) -> Dict[str, Any]:
    """
    Map an assignment onto table columns. Exactly one of staff_id /
    freelancer_id is populated, chosen by the person kind.
    """
    if assignment.person_kind not in PERSON_KINDS:
        raise ValueError(
            f"Assignment for {assignment.person_id!r} has invalid person kind {assignment.person_kind!r}"
        )
    is_freelancer = assignment.person_kind == PERSON_FREELANCER
    return {
        'event_id': assignment.event_id,
        'staff_id': None if is_freelancer else assignment.person_id,
        'freelancer_id': assignment.person_id if is_freelancer else None,
        'staff_type': assignment.person_kind,
        'role': assignment.role,
        'day_number': assignment.day_number,
        'day_date': assignment.day_date,
        'firm_id': assignment.firm_id,
        'save_batch': assignment.save_batch,
    }


def row_to_assignment(row: Dict[str, Any]) -> StaffAssignment:
    """Build an assignment from a joined row. Legacy rows may lack day_date."""
    freelancer_id = row.get('freelancer_id')
    person_id = row.get('staff_id') or freelancer_id or ''
    kind = row.get('staff_type') or (PERSON_FREELANCER if freelancer_id else PERSON_STAFF)

    day_number = row.get('day_number') or 1
    day_date = row.get('day_date')
    if day_date is None and row.get('event_date') is not None:
        day_date = row['event_date'] + timedelta(days=day_number - 1)

    return StaffAssignment(
        id=row.get('id'),
        event_id=row.get('event_id'),
        person_id=person_id,
        person_kind=kind,
        role=row.get('role') or '',
        day_number=day_number,
        day_date=day_date,
        firm_id=row.get('firm_id'),
        event_title=row.get('event_title'),
        save_batch=row.get('save_batch'),
        created_at=row.get('created_at'),
    )


def row_to_event(row: Dict[str, Any]) -> Event:
    return Event(
        id=row.get('id'),
        firm_id=row.get('firm_id'),
        title=row.get('title') or '',
        event_date=row.get('event_date'),
        event_end_date=row.get('event_end_date'),
        total_days=row.get('total_days') or 1,
        venue=row.get('venue'),
        quotation_source_id=row.get('quotation_source_id'),
        quotation_details=parse_quotation_details(row.get('quotation_details')),
        created_at=row.get('created_at'),
        updated_at=row.get('updated_at'),
    )


# =============================================================================
# INTERFACE
# =============================================================================

class AssignmentStore:
    """
    Persistence operations the crew engine depends on.

    supports_transactions: when True, replace_assignments() swaps an event's
    rows atomically. When False the persister falls back to insert-first.
    """

    supports_transactions = False

    def fetch_assignments(self, event_id: str) -> List[StaffAssignment]:
        raise NotImplementedError

    def fetch_all_assignments(self, firm_id: str, exclude_event_id: Optional[str] = None) -> List[StaffAssignment]:
        raise NotImplementedError

    def delete_assignments(self, event_id: str, keep_batch: Optional[str] = None) -> int:
        raise NotImplementedError

    def insert_assignments(self, rows: List[StaffAssignment]) -> int:
        raise NotImplementedError

    def replace_assignments(self, event_id: str, rows: List[StaffAssignment]) -> None:
        raise NotImplementedError

    def fetch_quotation_details(self, quotation_id: str) -> Optional[QuotationDetails]:
        raise NotImplementedError

    def fetch_event(self, event_id: str) -> Optional[Event]:
        raise NotImplementedError

    def list_events(self, firm_id: str) -> List[Event]:
        raise NotImplementedError

    def list_staff(self, firm_id: str) -> List[Staff]:
        raise NotImplementedError

    def list_freelancers(self, firm_id: str) -> List[Freelancer]:
        raise NotImplementedError


# =============================================================================
# POSTGRESQL
# =============================================================================

class PostgresAssignmentStore(AssignmentStore):
    """AssignmentStore over the studio PostgreSQL database."""

    def __init__(self, strategy: Optional[str] = None):
        self.strategy = strategy or config.CREW_SAVE_STRATEGY
        self.supports_transactions = self.strategy == 'transaction'

    # -- assignments ---------------------------------------------------------

    def fetch_assignments(self, event_id: str) -> List[StaffAssignment]:
        """All rows for one event, in insertion order within each day."""
        with get_db_cursor() as cur:
            cur.execute(_ASSIGNMENT_SELECT + """
                WHERE a.event_id = %s
                ORDER BY a.day_number ASC, a.id ASC
            """, (event_id,))
            rows = cur.fetchall()
        logger.debug(f"fetch_assignments: event_id={event_id} → {len(rows)} rows")
        return [row_to_assignment(row) for row in rows]

    def fetch_all_assignments(self, firm_id: str, exclude_event_id: Optional[str] = None) -> List[StaffAssignment]:
        """Every booking of the firm, optionally without one event (the one being edited)."""
        conditions = ["e.firm_id = %(firm_id)s"]
        params = {'firm_id': firm_id}
        if exclude_event_id:
            conditions.append("a.event_id <> %(exclude_event_id)s")
            params['exclude_event_id'] = exclude_event_id

        where_clause = " AND ".join(conditions)

        with get_db_cursor() as cur:
            cur.execute(_ASSIGNMENT_SELECT + f"""
                WHERE {where_clause}
                ORDER BY a.day_date ASC NULLS LAST, a.id ASC
            """, params)
            rows = cur.fetchall()
        logger.debug(f"fetch_all_assignments: firm_id={firm_id} exclude={exclude_event_id} → {len(rows)} rows")
        return [row_to_assignment(row) for row in rows]

    def delete_assignments(self, event_id: str, keep_batch: Optional[str] = None) -> int:
        """
        Delete an event's rows. With keep_batch, rows stamped with that
        batch survive (insert-first strategy).
        Returns: number of rows deleted
        """
        with get_db_cursor() as cur:
            deleted = self._delete(cur, event_id, keep_batch)
        logger.info(f"Deleted {deleted} assignments for event {event_id}")
        return deleted

    def insert_assignments(self, rows: List[StaffAssignment]) -> int:
        """Bulk insert. Returns: number of rows inserted"""
        if not rows:
            return 0
        with get_db_cursor() as cur:
            self._insert(cur, rows)
        logger.info(f"Inserted {len(rows)} assignments")
        return len(rows)

    def replace_assignments(self, event_id: str, rows: List[StaffAssignment]) -> None:
        """Delete-all then bulk insert inside one transaction."""
        with get_db_cursor() as cur:
            deleted = self._delete(cur, event_id, None)
            if rows:
                self._insert(cur, rows)
        logger.info(f"Replaced assignments for event {event_id}: -{deleted} +{len(rows)}")

    @staticmethod
    def _delete(cur, event_id: str, keep_batch: Optional[str]) -> int:
        if keep_batch is None:
            cur.execute("DELETE FROM event_staff_assignments WHERE event_id = %s", (event_id,))
        else:
            cur.execute("""
                DELETE FROM event_staff_assignments
                WHERE event_id = %s AND save_batch IS DISTINCT FROM %s
            """, (event_id, keep_batch))
        return cur.rowcount

    @staticmethod
    def _insert(cur, rows: List[StaffAssignment]) -> None:
        values = []
        for assignment in rows:
            row = assignment_to_row(assignment)
            values.append(tuple(row[col] for col in _INSERT_COLUMNS))
        execute_values(
            cur,
            f"INSERT INTO event_staff_assignments ({', '.join(_INSERT_COLUMNS)}) VALUES %s",
            values,
        )

    # -- quotations and events -----------------------------------------------

    def fetch_quotation_details(self, quotation_id: str) -> Optional[QuotationDetails]:
        with get_db_cursor() as cur:
            cur.execute("SELECT quotation_details FROM quotations WHERE id = %s", (quotation_id,))
            row = cur.fetchone()
        if not row:
            logger.debug(f"fetch_quotation_details: quotation_id={quotation_id} not found")
            return None
        return parse_quotation_details(row['quotation_details'])

    def fetch_event(self, event_id: str) -> Optional[Event]:
        with get_db_cursor() as cur:
            cur.execute("SELECT * FROM events WHERE id = %s", (event_id,))
            row = cur.fetchone()
        if row:
            return row_to_event(row)
        logger.debug(f"fetch_event: event_id={event_id} not found")
        return None

    def list_events(self, firm_id: str) -> List[Event]:
        with get_db_cursor() as cur:
            cur.execute("""
                SELECT * FROM events
                WHERE firm_id = %s
                ORDER BY event_date ASC NULLS LAST
            """, (firm_id,))
            rows = cur.fetchall()
        logger.debug(f"list_events: firm_id={firm_id} → {len(rows)} events")
        return [row_to_event(row) for row in rows]

    # -- people --------------------------------------------------------------

    def list_staff(self, firm_id: str) -> List[Staff]:
        with get_db_cursor() as cur:
            cur.execute("""
                SELECT id, full_name, role, mobile_number, firm_id
                FROM profiles
                WHERE firm_id = %s
                ORDER BY full_name ASC
            """, (firm_id,))
            rows = cur.fetchall()
        return [Staff(**row) for row in rows]

    def list_freelancers(self, firm_id: str) -> List[Freelancer]:
        with get_db_cursor() as cur:
            cur.execute("""
                SELECT id, full_name, role, phone, email, firm_id
                FROM freelancers
                WHERE firm_id = %s
                ORDER BY full_name ASC
            """, (firm_id,))
            rows = cur.fetchall()
        return [Freelancer(**row) for row in rows]
