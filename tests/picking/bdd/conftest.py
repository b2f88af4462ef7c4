"""Shared BDD fixtures and step definitions for the Picking domain."""

import pytest
from picking.routing.optimizer import PathOptimizationService
from picking.session.errors import InvalidStateError
from picking.session.events import (
    InstructionSkipped,
    PickConfirmed,
    PickSessionCancelled,
    PickSessionCompleted,
    PickSessionFailed,
    PickSessionPaused,
    PickSessionResumed,
    PickSessionStarted,
    ShortPickRecorded,
)
from picking.session.session import PickSession
from picking.shared.location import Location
from pytest_bdd import given, parsers, then

_SESSION_EVENT_CLASSES = {
    "PickSessionStarted": PickSessionStarted,
    "PickConfirmed": PickConfirmed,
    "ShortPickRecorded": ShortPickRecorded,
    "InstructionSkipped": InstructionSkipped,
    "PickSessionPaused": PickSessionPaused,
    "PickSessionResumed": PickSessionResumed,
    "PickSessionCompleted": PickSessionCompleted,
    "PickSessionCancelled": PickSessionCancelled,
    "PickSessionFailed": PickSessionFailed,
}


@pytest.fixture()
def error():
    """Container for captured domain errors."""
    return {"exc": None}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(
    parsers.cfparse("a started pick session with {count:d} instructions of {quantity:d} units"),
    target_fixture="session",
)
def started_session(count, quantity):
    session = PickSession.create(
        task_id="task-bdd",
        worker_id="worker-bdd",
        warehouse_id="wh-bdd",
        strategy="SINGLE",
        cart_id="cart-bdd",
        instructions=[
            {
                "instruction_id": f"ins-{n}",
                "sku": f"SKU-{n:03d}",
                "expected_quantity": quantity,
                "location": {"aisle": "A", "bay": f"{n:02d}", "level": "01"},
            }
            for n in range(1, count + 1)
        ],
    )
    path = PathOptimizationService().optimize_path(session.ordered_instructions, Location.parse("A-01-01"))
    session.start(path)
    session._events.clear()
    return session


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the session status is "{status}"'))
def session_status_is(session, status):
    assert session.status == status


@then(parsers.cfparse("a {event_type} event is raised"))
def session_event_raised(session, event_type):
    event_cls = _SESSION_EVENT_CLASSES[event_type]
    assert any(
        isinstance(e, event_cls) for e in session._events
    ), f"No {event_type} event found. Events: {[type(e).__name__ for e in session._events]}"


@then(parsers.cfparse("the session accuracy is {accuracy:f}"))
def session_accuracy_is(session, accuracy):
    assert round(session.calculate_accuracy(), 2) == pytest.approx(accuracy)


@then(parsers.cfparse('the current instruction is "{instruction_id}"'))
def current_instruction_is(session, instruction_id):
    assert session.current_instruction().instruction_id == instruction_id


@then("the action fails with an invalid state error")
def action_fails_with_invalid_state(error):
    assert error["exc"] is not None, "Expected an invalid state error but none was raised"
    assert isinstance(error["exc"], InvalidStateError)
