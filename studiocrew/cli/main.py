#!/usr/bin/env python3
"""
Studio Crew Terminal CLI
Command-line interface for staffing events: view, assign, clear, check conflicts.
"""

import logging
from collections import defaultdict
from datetime import date
from typing import Optional

import click
import psycopg2

from studiocrew.config import config
from studiocrew.db.store import PostgresAssignmentStore
from studiocrew.engine.completeness import STAFF_STATUS_FILTERS, check_crew_completeness, filter_events_by_staff_status, staff_status
from studiocrew.engine.conflicts import find_conflicts
from studiocrew.engine.crew import CrewEditor
from studiocrew.engine.notifications import NotificationRelay, NOTIFY_ASSIGNMENT
from studiocrew.engine.persister import day_date_for
from studiocrew.engine.slots import SlotValidationError
from studiocrew.logging_config import configure_logging, log_call
from studiocrew.models import AssignmentDiff, ConflictCheck, ROLES

ROLE_CHOICE = click.Choice(ROLES, case_sensitive=False)


def get_store():
    """Store used by every command."""
    return PostgresAssignmentStore()


def _load_editor(store, event_id: str) -> Optional[CrewEditor]:
    logger = logging.getLogger("studiocrew")
    event = store.fetch_event(event_id)
    if not event:
        logger.warning(f"event_id={event_id} not found")
        click.echo(f"Event {event_id} not found.", err=True)
        return None
    return CrewEditor.load(store, event)


def _confirm_conflict(check: ConflictCheck, assume_yes: bool = False) -> bool:
    """Show someone's other bookings and ask whether to double-book them."""
    click.echo(
        f"\n⚠ {check.person_name} is already booked on {len(check.conflicts)} "
        f"day(s) during this event:"
    )
    for booking in check.conflicts:
        title = booking.event_title or booking.event_id
        click.echo(f"  {booking.day_date}  {booking.role:<16} {title}")
    if assume_yes:
        click.echo("  (--yes given, assigning anyway)")
        return True
    return click.confirm(f"Assign {check.person_name} as {check.role} anyway?", default=False)


def _echo_notification(payload: dict):
    verb = 'assigned to' if payload['notification_type'] == NOTIFY_ASSIGNMENT else 'removed from'
    click.echo(
        f"  → notify {payload['staff_name']} ({payload['staff_phone']}): "
        f"{verb} {payload['event_name']} as {payload['role']}, day {payload['day_number']}"
    )


def _save_and_report(editor: CrewEditor) -> Optional[AssignmentDiff]:
    logger = logging.getLogger("studiocrew")
    event_id = editor.event.id
    relay = NotificationRelay(_echo_notification).start()
    try:
        diff = editor.save()
    except ValueError as e:
        logger.warning(f"crew save refused for event {event_id}: {e}")
        click.echo(f"Error: {e}", err=True)
        return None
    except psycopg2.Error as e:
        logger.error(f"crew save database error for event {event_id}: {e}", exc_info=True)
        click.echo(f"Database error: {e}", err=True)
        click.echo("Re-run the command to retry.", err=True)
        return None
    except Exception as e:
        logger.error(f"crew save unexpected error for event {event_id}: {e}", exc_info=True)
        click.echo(f"Unexpected error: {e}", err=True)
        return None
    finally:
        relay.stop()

    if not diff.has_changes:
        click.echo("✓ Saved, no crew changes.")
        return diff

    click.echo(f"✓ Saved crew: {len(diff.added)} added, {len(diff.removed)} removed")
    for a in diff.added:
        click.echo(f"  + {editor.directory.name_of(a.person_id)}: {a.role}, day {a.day_number}")
    for a in diff.removed:
        click.echo(f"  - {editor.directory.name_of(a.person_id)}: {a.role}, day {a.day_number}")
    return diff


@click.group()
def cli():
    """Studio Crew - multi-day crew assignment for events"""
    configure_logging()
    logging.getLogger("studiocrew").debug(
        f"CLI start | tz={config.TIMEZONE} save_strategy={config.CREW_SAVE_STRATEGY}"
    )


# =============================================================================
# CREW COMMANDS
# =============================================================================

@cli.group()
def crew():
    """View and edit event crew"""
    pass


@crew.command('show')
@click.argument('event_id')
@log_call
def crew_show(event_id):
    """Show an event's crew slots, day by day"""
    store = get_store()
    editor = _load_editor(store, event_id)
    if not editor:
        return
    event = editor.event

    click.echo(f"\n{'='*80}")
    click.echo(f"EVENT {event.id}: {event.title}")
    click.echo(f"{'='*80}")
    click.echo(f"Date:        {event.event_date or '(not set)'}")
    click.echo(f"Days:        {event.total_days}")
    if editor.is_quotation_governed:
        click.echo(f"Crew from:   quotation {event.quotation_source_id or '(snapshot)'}")
    else:
        click.echo("Crew from:   manual event (no quotation)")

    for day in editor.day_slots:
        day_date = day_date_for(event.event_date, day.day) if event.event_date else None
        click.echo(f"\nDay {day.day}" + (f" ({day_date})" if day_date else ""))
        click.echo("-" * 40)
        shown = False
        for role in ROLES:
            for index, person_id in enumerate(day.slots_for(role)):
                label = role if index == 0 else ''
                if person_id:
                    person = editor.directory.get(person_id)
                    name = f"{person.full_name} ({person.kind})" if person else f"{person_id} (unknown)"
                else:
                    name = "(open)"
                click.echo(f"  {label:<16} {index + 1}. {name}")
                shown = True
        if not shown:
            click.echo("  No crew slots.")

    click.echo()


@crew.command('assign')
@click.argument('event_id')
@click.argument('person_id')
@click.option('--day', type=int, default=1, show_default=True, help='Event day (1-based)')
@click.option('--role', type=ROLE_CHOICE, required=True, help='Crew role')
@click.option('--slot', type=int, help='Slot number (1-based); first open slot when omitted')
@click.option('--yes', 'assume_yes', is_flag=True, help='Assign even if the person is double-booked')
@log_call
def crew_assign(event_id, person_id, day, role, slot, assume_yes):
    """Assign a person to a crew slot and save"""
    logger = logging.getLogger("studiocrew")
    store = get_store()
    editor = _load_editor(store, event_id)
    if not editor:
        return

    try:
        if slot is not None:
            slot_index = slot - 1
        else:
            slot_index = editor.first_open_slot(day, role)
            if slot_index is None:
                if editor.is_quotation_governed:
                    raise SlotValidationError(
                        f"All {role} slots on day {day} are filled; pass --slot to replace someone"
                    )
                editor.add_slot(day, role)
                slot_index = editor.first_open_slot(day, role)

        if config.CONFLICT_CHECK_ENABLED:
            confirm = lambda check: _confirm_conflict(check, assume_yes)
        else:
            confirm = lambda check: True

        assigned = editor.assign(day, role, slot_index, person_id, confirm)
    except SlotValidationError as e:
        logger.warning(f"crew_assign | {e}")
        raise click.ClickException(str(e))

    if not assigned:
        click.echo("Assignment cancelled, nothing saved.")
        return

    _save_and_report(editor)


@crew.command('clear')
@click.argument('event_id')
@click.option('--day', type=int, default=1, show_default=True, help='Event day (1-based)')
@click.option('--role', type=ROLE_CHOICE, required=True, help='Crew role')
@click.option('--slot', type=int, required=True, help='Slot number (1-based)')
@log_call
def crew_clear(event_id, day, role, slot):
    """Empty a crew slot and save"""
    logger = logging.getLogger("studiocrew")
    store = get_store()
    editor = _load_editor(store, event_id)
    if not editor:
        return

    try:
        editor.clear(day, role, slot - 1)
    except SlotValidationError as e:
        logger.warning(f"crew_clear | {e}")
        raise click.ClickException(str(e))

    _save_and_report(editor)


@crew.command('conflicts')
@click.argument('person_id')
@click.option('--date', 'start', required=True, help='First day to check (YYYY-MM-DD)')
@click.option('--days', type=int, default=1, show_default=True, help='Number of days to check')
@click.option('--exclude', 'exclude_event_id', help='Event to leave out (the one being edited)')
@click.option('--firm', 'firm_id', default=lambda: config.DEFAULT_FIRM_ID, help='Firm ID')
@log_call
def crew_conflicts(person_id, start, days, exclude_event_id, firm_id):
    """List a person's bookings within a date window"""
    try:
        start_date = date.fromisoformat(start)
    except ValueError:
        raise click.BadParameter("please use YYYY-MM-DD", param_hint="--date")

    store = get_store()
    others = store.fetch_all_assignments(firm_id, exclude_event_id)
    conflicts = find_conflicts(person_id, start_date, days, others)

    if not conflicts:
        click.echo(f"No conflicts for {person_id} from {start_date} ({days} day(s)).")
        return

    click.echo(f"\n{len(conflicts)} booking(s) for {person_id}:\n")
    click.echo(f"{'Date':<12} {'Role':<17} {'Event':<40}")
    click.echo("-" * 70)
    for booking in conflicts:
        title = booking.event_title or booking.event_id or ''
        click.echo(f"{str(booking.day_date):<12} {booking.role:<17} {title[:38]:<40}")


@crew.command('status')
@click.option('--firm', 'firm_id', default=lambda: config.DEFAULT_FIRM_ID, help='Firm ID')
@click.option('--filter', 'status_filter', type=click.Choice(sorted(STAFF_STATUS_FILTERS)), help='Only events with this staff status')
@log_call
def crew_status(firm_id, status_filter):
    """Staffing status of every event"""
    store = get_store()
    events = store.list_events(firm_id)
    by_event = defaultdict(list)
    for assignment in store.fetch_all_assignments(firm_id):
        by_event[assignment.event_id].append(assignment)

    events = filter_events_by_staff_status(events, by_event, status_filter)
    if not events:
        click.echo("No events found.")
        return

    click.echo(f"\n{len(events)} event(s):\n")
    click.echo(f"{'ID':<12} {'Title':<32} {'Date':<12} {'Staff':<10}")
    click.echo("-" * 70)
    for event in events:
        assignments = by_event.get(event.id, [])
        status = staff_status(event, assignments)
        click.echo(f"{str(event.id)[:11]:<12} {event.title[:30]:<32} {str(event.event_date or ''):<12} {status:<10}")
        if status == 'incomplete':
            for gap in check_crew_completeness(event, assignments).missing:
                click.echo(f"{'':<12} day {gap.day}: {gap.role} {gap.assigned}/{gap.required}")


if __name__ == '__main__':
    cli()
