"""Session board — supervisor's view of pick sessions on the floor."""

from protean.core.projector import on
from protean.fields import DateTime, Float, Identifier, Integer, String
from protean.utils.globals import current_domain

from picking.domain import picking
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
from picking.session.session import PickSession, SessionStatus


@picking.projection
class SessionBoard:
    session_id = Identifier(identifier=True, required=True)
    task_id = Identifier(required=True)
    worker_id = Identifier(required=True)
    warehouse_id = Identifier(required=True)
    strategy = String()
    status = String(required=True)
    algorithm = String()
    total_distance = Float()
    estimated_duration = Integer()
    total_instructions = Integer(default=0)
    completed_instructions = Integer(default=0)
    short_picks = Integer(default=0)
    accuracy = Float()
    started_at = DateTime()
    completed_at = DateTime()
    updated_at = DateTime()


@picking.projector(projector_for=SessionBoard, aggregates=[PickSession])
class SessionBoardProjector:
    @on(PickSessionStarted)
    def on_session_started(self, event):
        current_domain.repository_for(SessionBoard).add(
            SessionBoard(
                session_id=event.session_id,
                task_id=event.task_id,
                worker_id=event.worker_id,
                warehouse_id=event.warehouse_id,
                strategy=event.strategy,
                status=SessionStatus.IN_PROGRESS.value,
                algorithm=event.algorithm,
                total_distance=event.total_distance,
                estimated_duration=event.estimated_duration,
                total_instructions=event.total_instructions,
                started_at=event.started_at,
                updated_at=event.started_at,
            )
        )

    @on(PickConfirmed)
    def on_pick_confirmed(self, event):
        repo = current_domain.repository_for(SessionBoard)
        view = repo.get(event.session_id)
        view.completed_instructions += 1
        if event.quantity < event.expected_quantity:
            view.short_picks += 1
        view.updated_at = event.confirmed_at
        repo.add(view)

    @on(ShortPickRecorded)
    def on_short_pick_recorded(self, event):
        repo = current_domain.repository_for(SessionBoard)
        view = repo.get(event.session_id)
        view.completed_instructions += 1
        view.short_picks += 1
        view.updated_at = event.recorded_at
        repo.add(view)

    @on(InstructionSkipped)
    def on_instruction_skipped(self, event):
        repo = current_domain.repository_for(SessionBoard)
        view = repo.get(event.session_id)
        view.completed_instructions += 1
        view.updated_at = event.skipped_at
        repo.add(view)

    @on(PickSessionPaused)
    def on_session_paused(self, event):
        repo = current_domain.repository_for(SessionBoard)
        view = repo.get(event.session_id)
        view.status = SessionStatus.PAUSED.value
        view.updated_at = event.paused_at
        repo.add(view)

    @on(PickSessionResumed)
    def on_session_resumed(self, event):
        repo = current_domain.repository_for(SessionBoard)
        view = repo.get(event.session_id)
        view.status = SessionStatus.IN_PROGRESS.value
        view.updated_at = event.resumed_at
        repo.add(view)

    @on(PickSessionCompleted)
    def on_session_completed(self, event):
        repo = current_domain.repository_for(SessionBoard)
        view = repo.get(event.session_id)
        view.status = SessionStatus.COMPLETED.value
        view.completed_instructions = event.completed_instructions
        view.short_picks = event.short_picks
        view.accuracy = event.accuracy
        view.completed_at = event.completed_at
        view.updated_at = event.completed_at
        repo.add(view)

    @on(PickSessionCancelled)
    def on_session_cancelled(self, event):
        repo = current_domain.repository_for(SessionBoard)
        view = repo.get(event.session_id)
        view.status = SessionStatus.CANCELLED.value
        view.completed_instructions = event.completed_instructions
        view.completed_at = event.cancelled_at
        view.updated_at = event.cancelled_at
        repo.add(view)

    @on(PickSessionFailed)
    def on_session_failed(self, event):
        repo = current_domain.repository_for(SessionBoard)
        view = repo.get(event.session_id)
        view.status = SessionStatus.FAILED.value
        view.completed_instructions = event.completed_instructions
        view.completed_at = event.failed_at
        view.updated_at = event.failed_at
        repo.add(view)
