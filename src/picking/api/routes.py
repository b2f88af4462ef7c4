"""FastAPI routes for the Picking domain."""

import json

from fastapi import APIRouter, Header
from protean.utils.globals import current_domain

from picking.api.schemas import (
    CancelSessionRequest,
    ConfirmPickRequest,
    CreatePickSessionRequest,
    CurrentInstructionResponse,
    InstructionResponse,
    PickSessionResponse,
    ProgressResponse,
    SessionIdResponse,
    ShortPickRequest,
    SkipInstructionRequest,
    StatusResponse,
)
from picking.session.creation import CreatePickSession
from picking.session.errors import NotFoundError
from picking.session.instruction import PickInstruction
from picking.session.lifecycle import CancelSession, CompleteSession, PauseSession, ResumeSession
from picking.session.picking import ConfirmPick, RecordShortPick, SkipInstruction
from picking.session.session import PickSession


def _instruction_response(instruction: PickInstruction | None) -> InstructionResponse | None:
    if instruction is None:
        return None
    return InstructionResponse(
        instruction_id=instruction.instruction_id,
        sku=instruction.sku,
        description=instruction.description,
        expected_quantity=instruction.expected_quantity,
        picked_quantity=instruction.picked_quantity,
        location=instruction.location.display,
        order_id=str(instruction.order_id) if instruction.order_id else None,
        priority=instruction.priority,
        status=instruction.status,
        sequence_number=instruction.sequence_number,
    )


def _session_response(session: PickSession) -> PickSessionResponse:
    path = session.optimized_path
    return PickSessionResponse(
        session_id=str(session.id),
        task_id=str(session.task_id),
        worker_id=str(session.worker_id),
        warehouse_id=str(session.warehouse_id),
        strategy=session.strategy,
        cart_id=str(session.cart_id),
        status=session.status,
        current_instruction_index=session.current_instruction_index,
        algorithm=path.algorithm if path else None,
        total_distance=path.total_distance if path else None,
        estimated_duration=path.estimated_duration if path else None,
        optimized=path.is_optimized if path else None,
        path_progress=path.calculate_progress(session.current_instruction_index) if path else None,
        instructions=[_instruction_response(i) for i in session.ordered_instructions],
        created_at=session.created_at,
        started_at=session.started_at,
        completed_at=session.completed_at,
    )


def _current_instruction_response(session: PickSession) -> CurrentInstructionResponse:
    current = session.current_instruction()
    distance = None
    if current is not None and session.optimized_path is not None:
        distance = session.optimized_path.node_at(session.current_instruction_index).distance_from_previous
    return CurrentInstructionResponse(
        session_id=str(session.id),
        instruction=_instruction_response(current),
        next_instruction=_instruction_response(session.next_instruction()),
        distance_from_previous=distance,
    )


def _active_session_for(worker_id: str) -> PickSession:
    session = current_domain.repository_for(PickSession).find_active_for_worker(worker_id)
    if session is None:
        raise NotFoundError({"worker_id": [f"No active pick session for worker {worker_id}"]})
    return session


# ---------------------------------------------------------------------------
# Pick Session Router
# ---------------------------------------------------------------------------
session_router = APIRouter(prefix="/pick-sessions", tags=["pick-sessions"])


@session_router.post("", status_code=201, response_model=SessionIdResponse)
async def create_pick_session(body: CreatePickSessionRequest) -> SessionIdResponse:
    """Open a pick session and start it on an optimized path."""
    command = CreatePickSession(
        task_id=body.task_id,
        worker_id=body.worker_id,
        warehouse_id=body.warehouse_id,
        strategy=body.strategy,
        cart_id=body.cart_id,
        instructions=json.dumps([instruction.model_dump() for instruction in body.instructions]),
        start_location=body.start_location.model_dump_json() if body.start_location else None,
    )
    result = current_domain.process(command, asynchronous=False)
    return SessionIdResponse(session_id=result)


@session_router.get("/active", response_model=list[PickSessionResponse])
async def list_active_sessions() -> list[PickSessionResponse]:
    sessions = current_domain.repository_for(PickSession).find_active()
    return [_session_response(session) for session in sessions]


@session_router.get("/{session_id}", response_model=PickSessionResponse)
async def get_pick_session(session_id: str) -> PickSessionResponse:
    session = current_domain.repository_for(PickSession).get(session_id)
    return _session_response(session)


@session_router.get("/{session_id}/progress", response_model=ProgressResponse)
async def get_progress(session_id: str) -> ProgressResponse:
    session = current_domain.repository_for(PickSession).get(session_id)
    return ProgressResponse(
        session_id=str(session.id),
        status=session.status,
        total_instructions=len(session.instructions),
        completed_instructions=session.completed_count,
        short_picks=session.short_pick_count,
        progress=session.progress(),
        accuracy=session.calculate_accuracy(),
    )


@session_router.get("/{session_id}/current-instruction", response_model=CurrentInstructionResponse)
async def get_current_instruction(session_id: str) -> CurrentInstructionResponse:
    session = current_domain.repository_for(PickSession).get(session_id)
    return _current_instruction_response(session)


@session_router.put("/{session_id}/confirm", response_model=StatusResponse)
async def confirm_pick(session_id: str, body: ConfirmPickRequest) -> StatusResponse:
    command = ConfirmPick(session_id=session_id, instruction_id=body.instruction_id, quantity=body.quantity)
    current_domain.process(command, asynchronous=False)
    return StatusResponse(status="pick_confirmed")


@session_router.put("/{session_id}/short-pick", response_model=StatusResponse)
async def record_short_pick(session_id: str, body: ShortPickRequest) -> StatusResponse:
    command = RecordShortPick(
        session_id=session_id,
        instruction_id=body.instruction_id,
        actual_quantity=body.actual_quantity,
        reason=body.reason,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse(status="short_pick_recorded")


@session_router.put("/{session_id}/skip", response_model=StatusResponse)
async def skip_instruction(session_id: str, body: SkipInstructionRequest) -> StatusResponse:
    command = SkipInstruction(session_id=session_id, instruction_id=body.instruction_id, reason=body.reason)
    current_domain.process(command, asynchronous=False)
    return StatusResponse(status="instruction_skipped")


@session_router.put("/{session_id}/pause", response_model=StatusResponse)
async def pause_session(session_id: str) -> StatusResponse:
    current_domain.process(PauseSession(session_id=session_id), asynchronous=False)
    return StatusResponse(status="paused")


@session_router.put("/{session_id}/resume", response_model=StatusResponse)
async def resume_session(session_id: str) -> StatusResponse:
    current_domain.process(ResumeSession(session_id=session_id), asynchronous=False)
    return StatusResponse(status="resumed")


@session_router.put("/{session_id}/complete", response_model=StatusResponse)
async def complete_session(session_id: str) -> StatusResponse:
    current_domain.process(CompleteSession(session_id=session_id), asynchronous=False)
    return StatusResponse(status="completed")


@session_router.put("/{session_id}/cancel", response_model=StatusResponse)
async def cancel_session(session_id: str, body: CancelSessionRequest | None = None) -> StatusResponse:
    reason = body.reason if body else None
    current_domain.process(CancelSession(session_id=session_id, reason=reason), asynchronous=False)
    return StatusResponse(status="cancelled")


# ---------------------------------------------------------------------------
# Mobile Router (picker handhelds)
# ---------------------------------------------------------------------------
mobile_router = APIRouter(prefix="/mobile/picks", tags=["mobile"])


@mobile_router.get("/my-session", response_model=PickSessionResponse)
async def my_session(x_worker_id: str = Header()) -> PickSessionResponse:
    return _session_response(_active_session_for(x_worker_id))


@mobile_router.get("/current-instruction", response_model=CurrentInstructionResponse)
async def my_current_instruction(x_worker_id: str = Header()) -> CurrentInstructionResponse:
    return _current_instruction_response(_active_session_for(x_worker_id))
