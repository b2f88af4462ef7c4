"""Inbound cross-domain event handler — Picking reacts to Task Execution events.

TaskCreated for a PICK task opens a pick session for the task. The upstream
context payload is translated here: camelCase keys are mapped onto picking's
own vocabulary, unknown enum values fall back to safe defaults and malformed
instructions are dropped. Nothing from the upstream model leaks further in.

Rejections by the picking domain (a worker that already has an active
session, invalid instruction data) are logged and the event is dropped.
"""

import json

import structlog
from protean.exceptions import InvalidOperationError, ValidationError
from protean.utils.globals import current_domain
from protean.utils.mixins import handle
from shared.events.tasks import TaskAssigned, TaskCreated

from picking.domain import picking
from picking.session.creation import open_pick_session
from picking.session.instruction import Priority
from picking.session.session import PickSession, PickStrategy

logger = structlog.get_logger(__name__)

# Register external events so Protean can deserialize them
picking.register_external_event(TaskCreated, "Tasks.TaskCreated.v1")
picking.register_external_event(TaskAssigned, "Tasks.TaskAssigned.v1")

PICK_TASK_TYPE = "PICK"
UNASSIGNED_WORKER = "UNASSIGNED"
SYSTEM_CART = "SYSTEM-CART"


def _text(value, default=None):
    if value is None:
        return default
    text = str(value).strip()
    return text or default


def _int(value):
    if isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        return int(value)
    if isinstance(value, str) and value.strip():
        try:
            return int(value.strip())
        except ValueError:
            logger.warning("Unable to parse numeric value", value=value)
    return None


def parse_strategy(raw) -> str:
    name = _text(raw)
    if name is None:
        return PickStrategy.SINGLE.value
    try:
        return PickStrategy(name.upper()).value
    except ValueError:
        logger.warning("Unknown pick strategy, falling back to SINGLE", strategy=name)
        return PickStrategy.SINGLE.value


def parse_priority(raw) -> str:
    name = _text(raw)
    if name is None:
        return Priority.NORMAL.value
    try:
        return Priority(name.upper()).value
    except ValueError:
        logger.warning("Unknown priority, defaulting to NORMAL", priority=name)
        return Priority.NORMAL.value


def parse_location(raw) -> dict | None:
    if not isinstance(raw, dict):
        return None
    aisle, bay, level = _text(raw.get("aisle")), _text(raw.get("bay")), _text(raw.get("level"))
    if aisle is None or bay is None or level is None:
        return None
    return {"aisle": aisle, "bay": bay, "level": level, "position": _text(raw.get("position"))}


def extract_instructions(context: dict) -> list[dict]:
    """Translate upstream instruction payloads; malformed entries are dropped."""
    raw_instructions = context.get("instructions")
    if not isinstance(raw_instructions, list):
        return []

    instructions = []
    for raw in raw_instructions:
        if not isinstance(raw, dict):
            continue

        instruction_id = _text(raw.get("instructionId"))
        sku = _text(raw.get("itemSku"))
        quantity = _int(raw.get("expectedQuantity"))
        location = parse_location(raw.get("location"))
        if instruction_id is None or sku is None or quantity is None or location is None:
            logger.warning("Skipping instruction with missing required fields", instruction=raw)
            continue
        if quantity <= 0:
            logger.warning("Skipping instruction with invalid quantity", instruction_id=instruction_id, quantity=quantity)
            continue

        instructions.append(
            {
                "instruction_id": instruction_id,
                "sku": sku,
                "description": _text(raw.get("itemDescription")),
                "expected_quantity": quantity,
                "location": location,
                "order_id": _text(raw.get("orderId")),
                "priority": parse_priority(raw.get("priority")),
            }
        )
    return instructions


@picking.event_handler(part_of=PickSession, stream_category="tasks::task")
class TaskEventHandler:
    """Reacts to events from the Task Execution domain."""

    @handle(TaskCreated)
    def on_task_created(self, event: TaskCreated) -> None:
        if (event.task_type or "").upper() != PICK_TASK_TYPE:
            return

        task_id = str(event.task_id)
        try:
            context = json.loads(event.context) if event.context else None
        except json.JSONDecodeError:
            logger.warning("Ignoring task creation event with malformed context", task_id=task_id)
            return
        if not isinstance(context, dict):
            logger.warning("Ignoring task creation event without context payload", task_id=task_id)
            return

        instructions = extract_instructions(context)
        if not instructions:
            logger.warning("Ignoring task creation event without pick instructions", task_id=task_id)
            return

        reference_id = _text(event.reference_id)
        try:
            session_id = open_pick_session(
                task_id=task_id,
                worker_id=_text(context.get("workerId"), UNASSIGNED_WORKER),
                warehouse_id=str(event.warehouse_id),
                strategy=parse_strategy(context.get("strategy")),
                cart_id=_text(context.get("cartId"), reference_id or SYSTEM_CART),
                instructions=instructions,
            )
        except (ValidationError, InvalidOperationError) as exc:
            logger.warning("Could not open pick session for task", task_id=task_id, error=exc.messages)
            return

        logger.info("Pick session opened for task", task_id=task_id, session_id=session_id)

    @handle(TaskAssigned)
    def on_task_assigned(self, event: TaskAssigned) -> None:
        if (event.task_type or "").upper() != PICK_TASK_TYPE:
            return

        task_id = str(event.task_id)
        assigned_to = _text(event.assigned_to)
        if assigned_to is None:
            logger.warning("Ignoring task assignment without a picker", task_id=task_id)
            return

        sessions = current_domain.repository_for(PickSession).find_by_task(task_id)
        if any(session.is_active for session in sessions):
            logger.info("Picker assigned to active pick session", task_id=task_id, worker_id=assigned_to)
        else:
            logger.warning("No active pick session for assigned task", task_id=task_id, worker_id=assigned_to)
