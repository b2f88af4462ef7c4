"""Application tests for pick recording commands."""

import json

import pytest
from picking.session.creation import CreatePickSession
from picking.session.errors import NotFoundError
from picking.session.instruction import InstructionStatus
from picking.session.picking import ConfirmPick, RecordShortPick, SkipInstruction
from picking.session.session import PickSession, SessionStatus
from protean import current_domain
from protean.exceptions import ObjectNotFoundError


def _create_session(worker_id="worker-cmd"):
    instructions = [
        {
            "instruction_id": f"ins-{n}",
            "sku": f"SKU-{n}",
            "expected_quantity": 4,
            "location": {"aisle": "A", "bay": f"{n:02d}", "level": "01"},
        }
        for n in (1, 2)
    ]
    return current_domain.process(
        CreatePickSession(
            task_id="task-cmd",
            worker_id=worker_id,
            warehouse_id="wh-001",
            cart_id="cart-001",
            instructions=json.dumps(instructions),
        ),
        asynchronous=False,
    )


def _get(session_id):
    return current_domain.repository_for(PickSession).get(session_id)


class TestConfirmPickCommand:
    def test_confirm_pick_persists(self):
        session_id = _create_session()
        current_domain.process(ConfirmPick(session_id=session_id, instruction_id="ins-1", quantity=4), asynchronous=False)

        session = _get(session_id)
        assert session.find_instruction("ins-1").status == InstructionStatus.PICKED.value
        assert session.current_instruction_index == 1

    def test_all_picks_complete_session(self):
        session_id = _create_session()
        current_domain.process(ConfirmPick(session_id=session_id, instruction_id="ins-1", quantity=4), asynchronous=False)
        current_domain.process(ConfirmPick(session_id=session_id, instruction_id="ins-2", quantity=4), asynchronous=False)

        session = _get(session_id)
        assert session.status == SessionStatus.COMPLETED.value
        assert session.calculate_accuracy() == 100.0

    def test_unknown_session(self):
        with pytest.raises(ObjectNotFoundError):
            current_domain.process(ConfirmPick(session_id="nope", instruction_id="ins-1", quantity=1), asynchronous=False)

    def test_unknown_instruction(self):
        session_id = _create_session()
        with pytest.raises(NotFoundError):
            current_domain.process(
                ConfirmPick(session_id=session_id, instruction_id="ins-9", quantity=1),
                asynchronous=False,
            )


class TestRecordShortPickCommand:
    def test_short_pick_persists_reason(self):
        session_id = _create_session()
        current_domain.process(
            RecordShortPick(session_id=session_id, instruction_id="ins-1", actual_quantity=1, reason="Damaged"),
            asynchronous=False,
        )

        instruction = _get(session_id).find_instruction("ins-1")
        assert instruction.status == InstructionStatus.SHORT_PICKED.value
        assert instruction.short_pick_reason == "Damaged"
        assert instruction.shortage_quantity == 3


class TestSkipInstructionCommand:
    def test_skip_persists(self):
        session_id = _create_session()
        current_domain.process(
            SkipInstruction(session_id=session_id, instruction_id="ins-1", reason="Blocked"),
            asynchronous=False,
        )

        session = _get(session_id)
        assert session.find_instruction("ins-1").status == InstructionStatus.SKIPPED.value
        assert session.current_instruction().instruction_id == "ins-2"
