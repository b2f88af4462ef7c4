"""Session creation — command and handler.

Opening a session is create → optimize → start in one unit of work, so a
session is never persisted without its path.
"""

import json
import os

import structlog
from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from picking.domain import picking
from picking.routing.optimizer import PathOptimizationService
from picking.session.errors import InvalidStateError
from picking.session.session import PickSession, PickStrategy
from picking.shared.location import Location
from picking.utils.logging import bind_session_context, clear_context

logger = structlog.get_logger(__name__)

DEFAULT_START_LOCATION = "A-01-01-01"


def start_location_from_env() -> Location:
    return Location.parse(os.getenv("PICKING_START_LOCATION", DEFAULT_START_LOCATION))


def open_pick_session(
    task_id: str,
    worker_id: str,
    warehouse_id: str,
    strategy: str,
    cart_id: str,
    instructions: list,
    start_location: Location | None = None,
) -> str:
    """Create, optimize and start a session, then add it to the repository.

    Returns the new session id.
    """
    repo = current_domain.repository_for(PickSession)
    active = repo.find_active_for_worker(worker_id)
    if active is not None:
        raise InvalidStateError(
            {"worker_id": [f"Worker {worker_id} already has an active pick session: {active.id}"]}
        )

    session = PickSession.create(
        task_id=task_id,
        worker_id=worker_id,
        warehouse_id=warehouse_id,
        strategy=strategy,
        cart_id=cart_id,
        instructions=instructions,
    )
    path = PathOptimizationService().optimize_path(
        session.ordered_instructions,
        start_location or start_location_from_env(),
    )
    session.start(path)
    repo.add(session)

    bind_session_context(str(session.id), worker_id=str(worker_id))
    logger.info(
        "Pick session started",
        task_id=str(task_id),
        instructions=len(session.instructions),
        algorithm=path.algorithm,
        total_distance=path.total_distance,
    )
    clear_context()
    return str(session.id)


@picking.command(part_of="PickSession")
class CreatePickSession:
    """Open a pick session for a worker and start it on an optimized path."""

    task_id = Identifier(required=True)
    worker_id = Identifier(required=True)
    warehouse_id = Identifier(required=True)
    strategy = String(choices=PickStrategy, default=PickStrategy.SINGLE.value)
    cart_id = Identifier(required=True)
    instructions = Text(required=True)  # JSON list of instruction dicts
    start_location = Text()  # JSON location dict


@picking.command_handler(part_of=PickSession)
class CreatePickSessionHandler:
    @handle(CreatePickSession)
    def create_pick_session(self, command):
        instructions = json.loads(command.instructions) if isinstance(command.instructions, str) else command.instructions
        start_location = None
        if command.start_location:
            start_location = Location(**json.loads(command.start_location))

        return open_pick_session(
            task_id=command.task_id,
            worker_id=command.worker_id,
            warehouse_id=command.warehouse_id,
            strategy=command.strategy,
            cart_id=command.cart_id,
            instructions=instructions,
            start_location=start_location,
        )
