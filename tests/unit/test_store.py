"""
Unit tests for the assignment store (studiocrew/db/store.py) and the
connection helpers it runs on (studiocrew/db/connection.py).

Strategy: patch studiocrew.db.store.get_db_cursor with a contextmanager that
yields a MagicMock cursor. Rows returned by the cursor are plain dicts, as
RealDictCursor gives them. execute_values is patched too, since it needs a real
psycopg2 cursor to build its SQL.
"""

import pytest
from contextlib import contextmanager
from datetime import date
from unittest.mock import MagicMock, patch

from studiocrew.db.connection import get_db_connection
from studiocrew.db.store import (
    AssignmentStore,
    PostgresAssignmentStore,
    assignment_to_row,
    row_to_assignment,
    row_to_event,
)
from studiocrew.models import Event, Freelancer, Staff, StaffAssignment


# ---------------------------------------------------------------------------
# Fixtures and helpers
# ---------------------------------------------------------------------------

ASSIGNMENT_ROW = {
    'id': 3, 'event_id': 'ev-1', 'staff_id': None, 'freelancer_id': 'f-1',
    'staff_type': 'freelancer', 'role': 'Drone Pilot', 'day_number': 2,
    'day_date': date(2026, 11, 21), 'firm_id': 'firm-1', 'save_batch': None,
    'created_at': None, 'event_title': 'Sharma Wedding', 'event_date': date(2026, 11, 20),
}

EVENT_ROW = {
    'id': 'ev-1', 'firm_id': 'firm-1', 'title': 'Sharma Wedding',
    'event_date': date(2026, 11, 20), 'event_end_date': date(2026, 11, 21),
    'total_days': 2, 'venue': 'Leela Palace', 'quotation_source_id': 'q-1',
    'quotation_details': {'days': [{'photographers': 2}], 'sameDayEditing': True},
    'created_at': None, 'updated_at': None,
}


def make_cursor(fetchone=None, fetchall=None, rowcount=1):
    """Build a MagicMock cursor with preset return values."""
    cur = MagicMock()
    cur.fetchone.return_value = fetchone
    cur.fetchall.return_value = fetchall if fetchall is not None else []
    cur.rowcount = rowcount
    return cur


def cursor_patch(cur):
    """Return a patch context manager that replaces get_db_cursor with one yielding cur."""
    @contextmanager
    def _mock_ctx():
        yield cur

    return patch('studiocrew.db.store.get_db_cursor', _mock_ctx)


def assignment(person_id='s-1', kind='staff', **kwargs):
    defaults = dict(event_id='ev-1', person_id=person_id, person_kind=kind, role='Photographer',
                    day_number=1, day_date=date(2026, 11, 20), firm_id='firm-1')
    defaults.update(kwargs)
    return StaffAssignment(**defaults)


# ---------------------------------------------------------------------------
# Row mapping
# ---------------------------------------------------------------------------

class TestRowMapping:

    def test_staff_booking_sets_staff_id_only(self):
        row = assignment_to_row(assignment('s-1', 'staff'))
        assert row['staff_id'] == 's-1'
        assert row['freelancer_id'] is None
        assert row['staff_type'] == 'staff'

    def test_freelancer_booking_sets_freelancer_id_only(self):
        row = assignment_to_row(assignment('f-1', 'freelancer'))
        assert row['staff_id'] is None
        assert row['freelancer_id'] == 'f-1'
        assert row['staff_type'] == 'freelancer'

    def test_unknown_kind_is_rejected(self):
        with pytest.raises(ValueError, match='person kind'):
            assignment_to_row(assignment(kind=None))

    def test_row_to_assignment_reads_freelancer(self):
        a = row_to_assignment(ASSIGNMENT_ROW)
        assert a.person_id == 'f-1'
        assert a.person_kind == 'freelancer'
        assert a.day_number == 2
        assert a.day_date == date(2026, 11, 21)
        assert a.event_title == 'Sharma Wedding'

    def test_legacy_row_without_day_date_uses_event_date(self):
        a = row_to_assignment(dict(ASSIGNMENT_ROW, day_date=None, staff_type=None))
        assert a.day_date == date(2026, 11, 21)
        assert a.person_kind == 'freelancer'

    def test_legacy_row_without_staff_type_defaults_to_staff(self):
        a = row_to_assignment({'event_id': 'ev-1', 'staff_id': 's-1', 'role': 'Photographer'})
        assert a.person_kind == 'staff'
        assert a.day_number == 1
        assert a.day_date is None

    def test_row_to_event_parses_snapshot(self):
        event = row_to_event(EVENT_ROW)
        assert event.total_days == 2
        assert event.quotation_details.days[0].photographers == 2
        assert event.quotation_details.same_day_editing is True

    def test_row_to_event_defaults(self):
        event = row_to_event({'id': 'ev-9'})
        assert event.total_days == 1
        assert event.title == ''
        assert event.quotation_details is None


# ---------------------------------------------------------------------------
# Interface
# ---------------------------------------------------------------------------

def test_base_store_is_abstract():
    store = AssignmentStore()
    assert store.supports_transactions is False
    with pytest.raises(NotImplementedError):
        store.fetch_assignments('ev-1')


@pytest.mark.parametrize('strategy, transactional', [('transaction', True), ('insert_first', False)])
def test_strategy_decides_transaction_support(strategy, transactional):
    assert PostgresAssignmentStore(strategy).supports_transactions is transactional


# ---------------------------------------------------------------------------
# Assignment reads
# ---------------------------------------------------------------------------

class TestFetch:

    def test_fetch_assignments_for_event(self):
        cur = make_cursor(fetchall=[ASSIGNMENT_ROW])
        with cursor_patch(cur):
            rows = PostgresAssignmentStore('transaction').fetch_assignments('ev-1')
        assert [r.person_id for r in rows] == ['f-1']
        sql, params = cur.execute.call_args[0]
        assert 'WHERE a.event_id = %s' in sql
        assert params == ('ev-1',)

    def test_fetch_all_excludes_edited_event(self):
        cur = make_cursor(fetchall=[])
        with cursor_patch(cur):
            PostgresAssignmentStore('transaction').fetch_all_assignments('firm-1', 'ev-1')
        sql, params = cur.execute.call_args[0]
        assert 'a.event_id <> %(exclude_event_id)s' in sql
        assert params == {'firm_id': 'firm-1', 'exclude_event_id': 'ev-1'}

    def test_fetch_all_without_exclusion(self):
        cur = make_cursor(fetchall=[ASSIGNMENT_ROW])
        with cursor_patch(cur):
            rows = PostgresAssignmentStore('transaction').fetch_all_assignments('firm-1')
        sql, params = cur.execute.call_args[0]
        assert 'exclude_event_id' not in sql
        assert params == {'firm_id': 'firm-1'}
        assert rows[0].event_title == 'Sharma Wedding'


# ---------------------------------------------------------------------------
# Assignment writes
# ---------------------------------------------------------------------------

class TestWrite:

    def test_delete_all_for_event(self):
        cur = make_cursor(rowcount=4)
        with cursor_patch(cur):
            deleted = PostgresAssignmentStore('insert_first').delete_assignments('ev-1')
        assert deleted == 4
        sql, params = cur.execute.call_args[0]
        assert 'DELETE FROM event_staff_assignments' in sql
        assert params == ('ev-1',)

    def test_delete_keeps_current_batch(self):
        cur = make_cursor(rowcount=2)
        with cursor_patch(cur):
            PostgresAssignmentStore('insert_first').delete_assignments('ev-1', keep_batch='b-1')
        sql, params = cur.execute.call_args[0]
        assert 'save_batch IS DISTINCT FROM %s' in sql
        assert params == ('ev-1', 'b-1')

    def test_insert_uses_one_bulk_statement(self):
        cur = make_cursor()
        rows = [assignment('s-1'), assignment('f-1', 'freelancer', save_batch='b-1')]
        with cursor_patch(cur), patch('studiocrew.db.store.execute_values') as bulk:
            count = PostgresAssignmentStore('insert_first').insert_assignments(rows)
        assert count == 2
        bulk.assert_called_once()
        _, sql, values = bulk.call_args[0]
        assert sql.startswith('INSERT INTO event_staff_assignments (event_id, staff_id, freelancer_id')
        assert values[0][:4] == ('ev-1', 's-1', None, 'staff')
        assert values[1][:4] == ('ev-1', None, 'f-1', 'freelancer')
        assert values[1][-1] == 'b-1'

    def test_insert_nothing_skips_database(self):
        with patch('studiocrew.db.store.get_db_cursor') as get_cursor:
            assert PostgresAssignmentStore('insert_first').insert_assignments([]) == 0
        get_cursor.assert_not_called()

    def test_replace_deletes_then_inserts_on_one_cursor(self):
        cur = make_cursor(rowcount=1)
        with cursor_patch(cur), patch('studiocrew.db.store.execute_values') as bulk:
            PostgresAssignmentStore('transaction').replace_assignments('ev-1', [assignment()])
        assert 'DELETE FROM event_staff_assignments' in cur.execute.call_args[0][0]
        assert bulk.call_args[0][0] is cur

    def test_replace_with_empty_set_only_deletes(self):
        cur = make_cursor(rowcount=3)
        with cursor_patch(cur), patch('studiocrew.db.store.execute_values') as bulk:
            PostgresAssignmentStore('transaction').replace_assignments('ev-1', [])
        cur.execute.assert_called_once()
        bulk.assert_not_called()


# ---------------------------------------------------------------------------
# Quotations, events, people
# ---------------------------------------------------------------------------

class TestLookups:

    def test_fetch_quotation_details(self):
        cur = make_cursor(fetchone={'quotation_details': '{"days": [{"cinematographers": 1}]}'})
        with cursor_patch(cur):
            details = PostgresAssignmentStore('transaction').fetch_quotation_details('q-1')
        assert details.days[0].cinematographers == 1

    def test_fetch_quotation_details_missing(self):
        with cursor_patch(make_cursor(fetchone=None)):
            assert PostgresAssignmentStore('transaction').fetch_quotation_details('q-404') is None

    def test_fetch_event(self):
        with cursor_patch(make_cursor(fetchone=EVENT_ROW)):
            event = PostgresAssignmentStore('transaction').fetch_event('ev-1')
        assert isinstance(event, Event)
        assert event.title == 'Sharma Wedding'

    def test_fetch_event_missing(self):
        with cursor_patch(make_cursor(fetchone=None)):
            assert PostgresAssignmentStore('transaction').fetch_event('ev-404') is None

    def test_list_events_for_firm(self):
        cur = make_cursor(fetchall=[EVENT_ROW])
        with cursor_patch(cur):
            events = PostgresAssignmentStore('transaction').list_events('firm-1')
        assert [e.id for e in events] == ['ev-1']
        assert cur.execute.call_args[0][1] == ('firm-1',)

    def test_list_staff_and_freelancers(self):
        staff_cur = make_cursor(fetchall=[
            {'id': 's-1', 'full_name': 'Asha Rao', 'role': 'Photographer', 'mobile_number': '+91', 'firm_id': 'firm-1'},
        ])
        freelancer_cur = make_cursor(fetchall=[
            {'id': 'f-1', 'full_name': 'Farah Iqbal', 'role': 'Drone Pilot', 'phone': '+91',
             'email': None, 'firm_id': 'firm-1'},
        ])
        store = PostgresAssignmentStore('transaction')
        with cursor_patch(staff_cur):
            staff = store.list_staff('firm-1')
        with cursor_patch(freelancer_cur):
            freelancers = store.list_freelancers('firm-1')
        assert staff == [Staff(id='s-1', full_name='Asha Rao', role='Photographer', mobile_number='+91', firm_id='firm-1')]
        assert isinstance(freelancers[0], Freelancer)
        assert freelancers[0].full_name == 'Farah Iqbal'


# ---------------------------------------------------------------------------
# Connection: one with-block is one transaction
# ---------------------------------------------------------------------------

class TestConnection:

    def test_commits_and_closes_on_success(self):
        conn = MagicMock()
        with patch('studiocrew.db.connection.psycopg2.connect', return_value=conn):
            with get_db_connection():
                pass
        conn.commit.assert_called_once()
        conn.rollback.assert_not_called()
        conn.close.assert_called_once()

    def test_rolls_back_and_reraises_on_error(self):
        conn = MagicMock()
        with patch('studiocrew.db.connection.psycopg2.connect', return_value=conn):
            with pytest.raises(RuntimeError):
                with get_db_connection():
                    raise RuntimeError("insert failed")
        conn.rollback.assert_called_once()
        conn.commit.assert_not_called()
        conn.close.assert_called_once()
