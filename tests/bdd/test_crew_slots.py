from pytest_bdd import scenarios, when, then, parsers
from studiocrew.cli.main import cli

scenarios("features/crew_slots.feature")


@when("the studio views the event crew")
def view_crew(runner, context, studio):
    context["result"] = runner.invoke(cli, ["crew", "show", "ev-1"])


@then(parsers.parse('the output does not contain "{text}"'))
def output_lacks(context, text):
    assert text not in context["result"].output
