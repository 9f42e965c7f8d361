import pytest

from events.selection import actions as a
from events.selection.state import SelectionState
from events.tests.test_selection.factories import loaded, make_catalog, make_ticket, run


@pytest.fixture
def details_state() -> SelectionState:
    """Free ticket selected, on the details step."""
    catalog = make_catalog(tickets=[make_ticket("free", price=0)])
    return run(loaded(catalog), a.SelectTicket("free"), a.ContinueToDetails())


@pytest.fixture
def filled_identity() -> tuple[a.Action, ...]:
    return (
        a.UpdateIdentity("first_name", "Ada"),
        a.UpdateIdentity("last_name", "Lovelace"),
        a.UpdateIdentity("email", "ada@example.com"),
    )
