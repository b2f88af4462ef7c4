"""Session lifecycle — pause, resume, complete, cancel and fail."""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from picking.domain import picking
from picking.session.session import PickSession
from picking.utils.logging import bind_session_context, clear_context

logger = structlog.get_logger(__name__)


@picking.command(part_of="PickSession")
class PauseSession:
    session_id = Identifier(required=True)


@picking.command(part_of="PickSession")
class ResumeSession:
    session_id = Identifier(required=True)


@picking.command(part_of="PickSession")
class CompleteSession:
    """Close a session whose instructions are all done."""

    session_id = Identifier(required=True)


@picking.command(part_of="PickSession")
class CancelSession:
    session_id = Identifier(required=True)
    reason = String(max_length=500)


@picking.command(part_of="PickSession")
class FailSession:
    """Stop a session that cannot continue (equipment failure, safety stop)."""

    session_id = Identifier(required=True)
    reason = String(required=True, max_length=500)


@picking.command_handler(part_of=PickSession)
class SessionLifecycleHandler:
    @handle(PauseSession)
    def pause_session(self, command):
        repo = current_domain.repository_for(PickSession)
        session = repo.get(command.session_id)
        session.pause()
        repo.add(session)

    @handle(ResumeSession)
    def resume_session(self, command):
        repo = current_domain.repository_for(PickSession)
        session = repo.get(command.session_id)
        session.resume()
        repo.add(session)

    @handle(CompleteSession)
    def complete_session(self, command):
        repo = current_domain.repository_for(PickSession)
        session = repo.get(command.session_id)
        session.complete()
        repo.add(session)

        bind_session_context(str(session.id), worker_id=str(session.worker_id))
        logger.info("Pick session completed", accuracy=round(session.calculate_accuracy(), 2))
        clear_context()

    @handle(CancelSession)
    def cancel_session(self, command):
        repo = current_domain.repository_for(PickSession)
        session = repo.get(command.session_id)
        session.cancel(command.reason)
        repo.add(session)

        bind_session_context(str(session.id), worker_id=str(session.worker_id))
        logger.warning(
            "Pick session cancelled",
            reason=command.reason,
            completed=session.completed_count,
            total=len(session.instructions),
        )
        clear_context()

    @handle(FailSession)
    def fail_session(self, command):
        repo = current_domain.repository_for(PickSession)
        session = repo.get(command.session_id)
        session.fail(command.reason)
        repo.add(session)

        bind_session_context(str(session.id), worker_id=str(session.worker_id))
        logger.warning("Pick session failed", reason=command.reason)
        clear_context()
