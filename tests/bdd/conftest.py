"""
Shared fixtures and step definitions for BDD tests.

- runner, studio, context: available to all scenario files in this directory
- studio: in-memory store with two photographers, a drone pilot and three
  events, handed to the CLI in place of the database
- no_logging: autouse, prevents log file creation during tests
- 'the output contains' / 'stored crew' steps: shared across all feature files
"""

from datetime import date

import pytest
from unittest.mock import patch
from click.testing import CliRunner
from pytest_bdd import given, then, parsers

from studiocrew.models import DayConfig, Event, Freelancer, QuotationDetails, Staff


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def studio(memory_store):
    memory_store.staff = [
        Staff(id='asha', full_name='Asha Rao', role='Photographer', mobile_number='+919800000001'),
        Staff(id='bilal', full_name='Bilal Khan', role='Photographer', mobile_number='+919800000002'),
    ]
    memory_store.freelancers = [
        Freelancer(id='farah', full_name='Farah Iqbal', role='Drone Pilot', phone='+919800000003'),
    ]
    memory_store.add_event(Event(id='ev-2', firm_id='firm-1', title='Mehta Reception',
                                 event_date=date(2026, 11, 21)))
    with patch("studiocrew.cli.main.get_store", return_value=memory_store):
        yield memory_store


@pytest.fixture
def context():
    """Mutable dict shared between Given/When/Then steps within a scenario."""
    return {}


@pytest.fixture(autouse=True)
def no_logging():
    with patch("studiocrew.cli.main.configure_logging"):
        yield


@given(parsers.parse('a {days:d}-day wedding quoted with {photographers:d} photographers and {cinematographers:d} cinematographer per day'))
def quoted_wedding(studio, days, photographers, cinematographers):
    studio.add_event(Event(
        id='ev-1', firm_id='firm-1', title='Sharma Wedding', event_date=date(2026, 11, 20),
        total_days=days, quotation_source_id='q-1',
        quotation_details=QuotationDetails(days=[
            DayConfig(photographers=photographers, cinematographers=cinematographers, drone=0)
            for _ in range(days)
        ]),
    ))


@given(parsers.parse('a {days:d}-day manual shoot'))
def manual_shoot(studio, days):
    studio.add_event(Event(id='ev-1', firm_id='firm-1', title='Portfolio Shoot',
                           event_date=date(2026, 11, 20), total_days=days))


@given(parsers.parse('{person} is booked as {role} on day {day:d}'))
def booked_on_event(studio, person, role, day):
    studio.seed('ev-1', person, role, day)


@given(parsers.parse('{person} is booked for the Mehta Reception on {day_date}'))
def booked_elsewhere(studio, person, day_date):
    studio.seed('ev-2', person, 'Photographer', 1, day_date=date.fromisoformat(day_date))


@then(parsers.parse('the output contains "{text}"'))
def output_contains(context, text):
    assert text in context["result"].output, (
        f"Expected {text!r} in output:\n{context['result'].output}"
    )


@then(parsers.parse('the stored crew is "{crew}"'))
def stored_crew(studio, crew):
    expected = sorted(k.strip() for k in crew.split(',') if k.strip())
    actual = sorted(f"{r.person_id}-{r.role}-{r.day_number}" for r in studio.rows_for('ev-1'))
    assert actual == expected


@then('the stored crew is empty')
def stored_crew_empty(studio):
    assert studio.rows_for('ev-1') == []
