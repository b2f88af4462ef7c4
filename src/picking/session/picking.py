"""Pick recording — commands and handler.

Handles the worker's actions on individual instructions: confirming a pick,
recording a short pick, and skipping an instruction. Each action advances the
session cursor; the last one completes the session.
"""

import structlog
from protean import handle
from protean.fields import Identifier, Integer, String
from protean.utils.globals import current_domain

from picking.domain import picking
from picking.session.session import PickSession
from picking.utils.logging import bind_session_context, clear_context

logger = structlog.get_logger(__name__)


@picking.command(part_of="PickSession")
class ConfirmPick:
    """Confirm the quantity picked for one instruction."""

    session_id = Identifier(required=True)
    instruction_id = String(required=True, max_length=100)
    quantity = Integer(required=True)


@picking.command(part_of="PickSession")
class RecordShortPick:
    """Record that fewer units than expected were found."""

    session_id = Identifier(required=True)
    instruction_id = String(required=True, max_length=100)
    actual_quantity = Integer(required=True)
    reason = String(max_length=500)


@picking.command(part_of="PickSession")
class SkipInstruction:
    session_id = Identifier(required=True)
    instruction_id = String(required=True, max_length=100)
    reason = String(max_length=500)


@picking.command_handler(part_of=PickSession)
class PickRecordingHandler:
    @handle(ConfirmPick)
    def confirm_pick(self, command):
        repo = current_domain.repository_for(PickSession)
        session = repo.get(command.session_id)
        session.confirm_pick(command.instruction_id, command.quantity)
        repo.add(session)
        _log_completion(session)

    @handle(RecordShortPick)
    def record_short_pick(self, command):
        repo = current_domain.repository_for(PickSession)
        session = repo.get(command.session_id)
        session.short_pick(command.instruction_id, command.actual_quantity, command.reason)
        repo.add(session)

        bind_session_context(str(session.id), worker_id=str(session.worker_id))
        logger.warning(
            "Short pick recorded",
            instruction_id=command.instruction_id,
            actual_quantity=command.actual_quantity,
            reason=command.reason,
        )
        clear_context()
        _log_completion(session)

    @handle(SkipInstruction)
    def skip_instruction(self, command):
        repo = current_domain.repository_for(PickSession)
        session = repo.get(command.session_id)
        session.skip_instruction(command.instruction_id, command.reason)
        repo.add(session)
        _log_completion(session)


def _log_completion(session: PickSession) -> None:
    if session.is_terminal:
        bind_session_context(str(session.id), worker_id=str(session.worker_id))
        logger.info(
            "Pick session completed",
            completed=session.completed_count,
            short_picks=session.short_pick_count,
            accuracy=round(session.calculate_accuracy(), 2),
        )
        clear_context()
