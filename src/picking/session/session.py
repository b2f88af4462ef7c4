"""PickSession aggregate (CQRS) — the core of the picking domain.

The PickSession aggregate owns one worker's pick instructions for a task, the
optimized path computed before work started, and the cursor that tracks the
next instruction to pick. It uses CQRS (not event sourcing): the session is
short-lived and its read side only needs the latest state.

State Machine:
    CREATED → IN_PROGRESS ⇄ PAUSED
    IN_PROGRESS → {COMPLETED, CANCELLED, FAILED}
    PAUSED → {CANCELLED, FAILED}
    CREATED → CANCELLED

Legal operations per state live in one table (_ALLOWED_OPERATIONS) and are
checked before any mutation.
"""

from datetime import UTC, datetime, timedelta
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, HasMany, Identifier, Integer, String, ValueObject

from picking.domain import picking
from picking.routing.path import PickPath
from picking.session.errors import IntegrityError, InvalidStateError, NotFoundError
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
from picking.session.instruction import InstructionStatus, PickInstruction
from picking.shared.location import Location


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class SessionStatus(Enum):
    CREATED = "CREATED"
    IN_PROGRESS = "IN_PROGRESS"
    PAUSED = "PAUSED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    FAILED = "FAILED"


class PickStrategy(Enum):
    SINGLE = "SINGLE"
    BATCH = "BATCH"
    ZONE = "ZONE"
    WAVE = "WAVE"
    CLUSTER = "CLUSTER"

    @property
    def requires_put_wall(self) -> bool:
        return self in (PickStrategy.CLUSTER, PickStrategy.BATCH)

    @property
    def supports_multiple_orders(self) -> bool:
        return self in (PickStrategy.BATCH, PickStrategy.CLUSTER, PickStrategy.WAVE)

    @property
    def max_orders_per_session(self) -> int:
        return _MAX_ORDERS_PER_SESSION[self]


_MAX_ORDERS_PER_SESSION = {
    PickStrategy.SINGLE: 1,
    PickStrategy.BATCH: 10,
    PickStrategy.ZONE: 20,
    PickStrategy.WAVE: 50,
    PickStrategy.CLUSTER: 8,  # cart capacity
}


class SessionOperation(Enum):
    START = "start"
    CONFIRM_PICK = "confirm_pick"
    SHORT_PICK = "short_pick"
    SKIP = "skip"
    PAUSE = "pause"
    RESUME = "resume"
    COMPLETE = "complete"
    CANCEL = "cancel"
    FAIL = "fail"


_ALLOWED_OPERATIONS = {
    SessionStatus.CREATED: {SessionOperation.START, SessionOperation.CANCEL},
    SessionStatus.IN_PROGRESS: {
        SessionOperation.CONFIRM_PICK,
        SessionOperation.SHORT_PICK,
        SessionOperation.SKIP,
        SessionOperation.PAUSE,
        SessionOperation.COMPLETE,
        SessionOperation.CANCEL,
        SessionOperation.FAIL,
    },
    SessionStatus.PAUSED: {SessionOperation.RESUME, SessionOperation.CANCEL, SessionOperation.FAIL},
    SessionStatus.COMPLETED: set(),  # terminal
    SessionStatus.CANCELLED: set(),  # terminal
    SessionStatus.FAILED: set(),  # terminal
}

ACTIVE_STATUSES = {SessionStatus.IN_PROGRESS, SessionStatus.PAUSED}
TERMINAL_STATUSES = {status for status, allowed in _ALLOWED_OPERATIONS.items() if not allowed}


def allowed_operations(status: SessionStatus) -> set[SessionOperation]:
    return _ALLOWED_OPERATIONS[status]


def statuses_allowing(operation: SessionOperation) -> list[SessionStatus]:
    return [status for status, allowed in _ALLOWED_OPERATIONS.items() if operation in allowed]


# ---------------------------------------------------------------------------
# Aggregate Root (CQRS)
# ---------------------------------------------------------------------------
@picking.aggregate
class PickSession:
    task_id = Identifier(required=True)
    worker_id = Identifier(required=True)
    warehouse_id = Identifier(required=True)
    strategy = String(required=True, choices=PickStrategy)
    cart_id = Identifier(required=True)
    status = String(choices=SessionStatus, default=SessionStatus.CREATED.value)
    instructions = HasMany(PickInstruction)
    optimized_path = ValueObject(PickPath)
    current_instruction_index = Integer(default=0, min_value=0)
    cancellation_reason = String(max_length=500)
    failure_reason = String(max_length=500)
    created_at = DateTime()
    started_at = DateTime()
    completed_at = DateTime()
    paused_at = DateTime()

    @invariant.post
    def cursor_stays_within_instructions(self):
        if self.current_instruction_index > len(self.instructions or []):
            raise ValidationError({"current_instruction_index": ["Cursor is past the end of the instruction list"]})

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        task_id: str,
        worker_id: str,
        warehouse_id: str,
        strategy: str,
        cart_id: str,
        instructions: list,
    ):
        """Open a new session in CREATED state.

        ``instructions`` may hold PickInstruction entities or plain dicts with
        the entity's fields (``location`` as a dict or a Location). Input order
        becomes the initial sequence until a path is applied.
        """
        required = {
            "task_id": task_id,
            "worker_id": worker_id,
            "warehouse_id": warehouse_id,
            "strategy": strategy,
            "cart_id": cart_id,
        }
        missing = {name: [f"{name} is required"] for name, value in required.items() if not value}
        if missing:
            raise ValidationError(missing)
        if not instructions:
            raise ValidationError({"instructions": ["Session must have at least one pick instruction"]})

        entities = [_as_instruction(instruction) for instruction in instructions]
        instruction_ids = [entity.instruction_id for entity in entities]
        duplicates = sorted({i for i in instruction_ids if instruction_ids.count(i) > 1})
        if duplicates:
            raise ValidationError({"instructions": [f"Duplicate instruction ids: {', '.join(duplicates)}"]})

        session = cls(
            task_id=task_id,
            worker_id=worker_id,
            warehouse_id=warehouse_id,
            strategy=strategy.value if isinstance(strategy, PickStrategy) else strategy,
            cart_id=cart_id,
            status=SessionStatus.CREATED.value,
            current_instruction_index=0,
            created_at=datetime.now(UTC),
        )
        for index, entity in enumerate(entities):
            entity.sequence_number = index
            session.add_instructions(entity)
        return session

    # -------------------------------------------------------------------
    # Transition guard
    # -------------------------------------------------------------------
    def _assert_allowed(self, operation: SessionOperation) -> None:
        current = SessionStatus(self.status)
        if operation not in _ALLOWED_OPERATIONS[current]:
            expected = ", ".join(status.value for status in statuses_allowing(operation)) or "none"
            raise InvalidStateError(
                {"status": [f"Cannot {operation.value} session in {current.value} state; allowed from: {expected}"]}
            )

    # -------------------------------------------------------------------
    # Start
    # -------------------------------------------------------------------
    def start(self, path: PickPath) -> None:
        """Apply the optimized path and begin picking."""
        self._assert_allowed(SessionOperation.START)
        if path is None:
            raise ValidationError({"optimized_path": ["Optimized path is required to start a session"]})

        by_id = {instruction.instruction_id: instruction for instruction in self.instructions}
        nodes = path.path_nodes
        unknown = [node.instruction_id for node in nodes if node.instruction_id not in by_id]
        if unknown:
            raise IntegrityError(
                {"optimized_path": [f"Path node references unknown instruction: {', '.join(unknown)}"]}
            )

        for node in nodes:
            by_id[node.instruction_id].assign_sequence(node.sequence_number)

        now = datetime.now(UTC)
        self.optimized_path = path
        self.status = SessionStatus.IN_PROGRESS.value
        self.started_at = now
        self.current_instruction_index = 0
        self.raise_(
            PickSessionStarted(
                session_id=str(self.id),
                task_id=str(self.task_id),
                worker_id=str(self.worker_id),
                warehouse_id=str(self.warehouse_id),
                strategy=self.strategy,
                cart_id=str(self.cart_id),
                total_instructions=len(self.instructions),
                algorithm=path.algorithm,
                total_distance=path.total_distance,
                estimated_duration=path.estimated_duration,
                started_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Picking
    # -------------------------------------------------------------------
    def confirm_pick(self, instruction_id: str, quantity: int) -> None:
        self._assert_allowed(SessionOperation.CONFIRM_PICK)
        instruction = self._claim(instruction_id)
        instruction.confirm_pick(quantity)

        self.raise_(
            PickConfirmed(
                session_id=str(self.id),
                instruction_id=instruction_id,
                sku=instruction.sku,
                expected_quantity=instruction.expected_quantity,
                quantity=quantity,
                location=instruction.location.display,
                worker_id=str(self.worker_id),
                confirmed_at=instruction.picked_at,
            )
        )
        self._move_to_next_instruction()

    def short_pick(self, instruction_id: str, actual_quantity: int, reason: str | None = None) -> None:
        self._assert_allowed(SessionOperation.SHORT_PICK)
        instruction = self._claim(instruction_id)
        instruction.short_pick(actual_quantity, reason)

        self.raise_(
            ShortPickRecorded(
                session_id=str(self.id),
                instruction_id=instruction_id,
                sku=instruction.sku,
                expected_quantity=instruction.expected_quantity,
                actual_quantity=actual_quantity,
                location=instruction.location.display,
                reason=reason,
                worker_id=str(self.worker_id),
                recorded_at=instruction.picked_at,
            )
        )
        self._move_to_next_instruction()

    def skip_instruction(self, instruction_id: str, reason: str | None = None) -> None:
        self._assert_allowed(SessionOperation.SKIP)
        instruction = self.find_instruction(instruction_id)
        instruction.skip(reason)

        self.raise_(
            InstructionSkipped(
                session_id=str(self.id),
                instruction_id=instruction_id,
                sku=instruction.sku,
                location=instruction.location.display,
                reason=reason,
                worker_id=str(self.worker_id),
                skipped_at=datetime.now(UTC),
            )
        )
        self._move_to_next_instruction()

    def _claim(self, instruction_id: str) -> PickInstruction:
        """Find an instruction and move it to IN_PROGRESS if nobody started it yet."""
        instruction = self.find_instruction(instruction_id)
        if instruction.status == InstructionStatus.PENDING.value:
            instruction.start()
        return instruction

    def _move_to_next_instruction(self) -> None:
        ordered = self.ordered_instructions
        index = self.current_instruction_index
        while index < len(ordered) and ordered[index].is_complete:
            index += 1
        self.current_instruction_index = index

        if index >= len(ordered) and self.status == SessionStatus.IN_PROGRESS.value:
            self.complete()

    # -------------------------------------------------------------------
    # Pause / Resume
    # -------------------------------------------------------------------
    def pause(self) -> None:
        self._assert_allowed(SessionOperation.PAUSE)
        now = datetime.now(UTC)
        self.status = SessionStatus.PAUSED.value
        self.paused_at = now
        self.raise_(PickSessionPaused(session_id=str(self.id), worker_id=str(self.worker_id), paused_at=now))

    def resume(self) -> None:
        self._assert_allowed(SessionOperation.RESUME)
        self.status = SessionStatus.IN_PROGRESS.value
        self.paused_at = None
        self.raise_(
            PickSessionResumed(session_id=str(self.id), worker_id=str(self.worker_id), resumed_at=datetime.now(UTC))
        )

    # -------------------------------------------------------------------
    # Completion
    # -------------------------------------------------------------------
    def complete(self) -> None:
        """Close the session. Normally triggered by the last pick."""
        self._assert_allowed(SessionOperation.COMPLETE)
        pending = [i for i in self.instructions if not i.is_complete]
        if pending:
            raise InvalidStateError(
                {"status": [f"Cannot complete session with {len(pending)} pending instruction(s)"]}
            )

        now = datetime.now(UTC)
        self.status = SessionStatus.COMPLETED.value
        self.completed_at = now
        self.raise_(
            PickSessionCompleted(
                session_id=str(self.id),
                task_id=str(self.task_id),
                worker_id=str(self.worker_id),
                warehouse_id=str(self.warehouse_id),
                total_instructions=len(self.instructions),
                completed_instructions=self.completed_count,
                short_picks=self.short_pick_count,
                accuracy=self.calculate_accuracy(),
                duration_seconds=self.duration().total_seconds(),
                completed_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Cancellation / Failure
    # -------------------------------------------------------------------
    def cancel(self, reason: str | None = None) -> None:
        self._assert_allowed(SessionOperation.CANCEL)
        now = datetime.now(UTC)
        self.status = SessionStatus.CANCELLED.value
        self.cancellation_reason = reason
        self.completed_at = now
        self.raise_(
            PickSessionCancelled(
                session_id=str(self.id),
                task_id=str(self.task_id),
                worker_id=str(self.worker_id),
                warehouse_id=str(self.warehouse_id),
                reason=reason,
                completed_instructions=self.completed_count,
                total_instructions=len(self.instructions),
                cancelled_at=now,
            )
        )

    def fail(self, reason: str) -> None:
        self._assert_allowed(SessionOperation.FAIL)
        if not reason:
            raise ValidationError({"reason": ["A failure reason is required"]})

        now = datetime.now(UTC)
        self.status = SessionStatus.FAILED.value
        self.failure_reason = reason
        self.completed_at = now
        self.raise_(
            PickSessionFailed(
                session_id=str(self.id),
                task_id=str(self.task_id),
                worker_id=str(self.worker_id),
                warehouse_id=str(self.warehouse_id),
                reason=reason,
                completed_instructions=self.completed_count,
                total_instructions=len(self.instructions),
                failed_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    @property
    def ordered_instructions(self) -> list[PickInstruction]:
        """Instructions in visiting order."""
        return sorted(self.instructions or [], key=lambda i: i.sequence_number)

    @property
    def is_active(self) -> bool:
        return SessionStatus(self.status) in ACTIVE_STATUSES

    @property
    def is_terminal(self) -> bool:
        return SessionStatus(self.status) in TERMINAL_STATUSES

    def find_instruction(self, instruction_id: str) -> PickInstruction:
        instruction = next((i for i in self.instructions or [] if i.instruction_id == instruction_id), None)
        if instruction is None:
            raise NotFoundError({"instruction_id": [f"Instruction not found: {instruction_id}"]})
        return instruction

    def current_instruction(self) -> PickInstruction | None:
        ordered = self.ordered_instructions
        if self.current_instruction_index >= len(ordered):
            return None
        return ordered[self.current_instruction_index]

    def next_instruction(self) -> PickInstruction | None:
        ordered = self.ordered_instructions
        next_index = self.current_instruction_index + 1
        if next_index >= len(ordered):
            return None
        return ordered[next_index]

    def instructions_by_status(self, status: InstructionStatus) -> list[PickInstruction]:
        return [i for i in self.ordered_instructions if i.status == status.value]

    @property
    def completed_count(self) -> int:
        return sum(1 for i in self.instructions or [] if i.is_complete)

    @property
    def short_pick_count(self) -> int:
        return sum(1 for i in self.instructions or [] if i.is_short_pick)

    def has_pending_instructions(self) -> bool:
        return any(not i.is_complete for i in self.instructions or [])

    def progress(self) -> float:
        """Share of instructions in a terminal state, as a percentage."""
        if not self.instructions:
            return 100.0
        return self.completed_count / len(self.instructions) * 100.0

    def calculate_accuracy(self) -> float:
        """Units picked on finished instructions over all expected units, as a percentage."""
        total_expected = sum(i.expected_quantity for i in self.instructions or [])
        if total_expected == 0:
            return 100.0
        total_picked = sum(i.picked_quantity for i in self.instructions if i.is_complete)
        return total_picked / total_expected * 100.0

    def duration(self) -> timedelta:
        if self.started_at is None:
            return timedelta(0)
        end = self.completed_at or datetime.now(UTC)
        return end - self.started_at


def _as_instruction(instruction) -> PickInstruction:
    if isinstance(instruction, PickInstruction):
        return instruction

    data = dict(instruction)
    location = data.get("location")
    if isinstance(location, dict):
        data["location"] = Location(**location)
    handling = data.pop("special_handling", None)
    entity = PickInstruction(**data)
    for tag in handling or []:
        entity.add_special_handling(tag)
    return entity
