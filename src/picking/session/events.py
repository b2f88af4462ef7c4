"""Pick session domain events — immutable facts about session progress.

All events are past tense, versioned, and carry enough data for the session
board projection and for downstream consumers (labor management, inventory
exception handling) without a read back into the session.
"""

from protean.fields import DateTime, Float, Identifier, Integer, String

from picking.domain import picking


@picking.event(part_of="PickSession")
class PickSessionStarted:
    """A session was opened with an optimized path and work can begin."""

    __version__ = 1

    session_id = Identifier(required=True)
    task_id = Identifier(required=True)
    worker_id = Identifier(required=True)
    warehouse_id = Identifier(required=True)
    strategy = String(required=True)
    cart_id = Identifier(required=True)
    total_instructions = Integer(required=True)
    algorithm = String()
    total_distance = Float()
    estimated_duration = Integer()
    started_at = DateTime(required=True)


@picking.event(part_of="PickSession")
class PickConfirmed:
    """A worker confirmed a pick at a location."""

    __version__ = 1

    session_id = Identifier(required=True)
    instruction_id = String(required=True)
    sku = String(required=True)
    expected_quantity = Integer(required=True)
    quantity = Integer(required=True)
    location = String(required=True)
    worker_id = Identifier(required=True)
    confirmed_at = DateTime(required=True)


@picking.event(part_of="PickSession")
class ShortPickRecorded:
    """Fewer units than expected were found at the location."""

    __version__ = 1

    session_id = Identifier(required=True)
    instruction_id = String(required=True)
    sku = String(required=True)
    expected_quantity = Integer(required=True)
    actual_quantity = Integer(required=True)
    location = String(required=True)
    reason = String()
    worker_id = Identifier(required=True)
    recorded_at = DateTime(required=True)


@picking.event(part_of="PickSession")
class InstructionSkipped:
    """A worker skipped an instruction without picking it."""

    __version__ = 1

    session_id = Identifier(required=True)
    instruction_id = String(required=True)
    sku = String(required=True)
    location = String(required=True)
    reason = String()
    worker_id = Identifier(required=True)
    skipped_at = DateTime(required=True)


@picking.event(part_of="PickSession")
class PickSessionPaused:
    """Work on the session was suspended."""

    __version__ = 1

    session_id = Identifier(required=True)
    worker_id = Identifier(required=True)
    paused_at = DateTime(required=True)


@picking.event(part_of="PickSession")
class PickSessionResumed:
    """A paused session was picked back up."""

    __version__ = 1

    session_id = Identifier(required=True)
    worker_id = Identifier(required=True)
    resumed_at = DateTime(required=True)


@picking.event(part_of="PickSession")
class PickSessionCompleted:
    """Every instruction in the session reached a terminal state."""

    __version__ = 1

    session_id = Identifier(required=True)
    task_id = Identifier(required=True)
    worker_id = Identifier(required=True)
    warehouse_id = Identifier(required=True)
    total_instructions = Integer(required=True)
    completed_instructions = Integer(required=True)
    short_picks = Integer(required=True)
    accuracy = Float(required=True)
    duration_seconds = Float(required=True)
    completed_at = DateTime(required=True)


@picking.event(part_of="PickSession")
class PickSessionCancelled:
    """The session was abandoned before all work was done."""

    __version__ = 1

    session_id = Identifier(required=True)
    task_id = Identifier(required=True)
    worker_id = Identifier(required=True)
    warehouse_id = Identifier(required=True)
    reason = String()
    completed_instructions = Integer(required=True)
    total_instructions = Integer(required=True)
    cancelled_at = DateTime(required=True)


@picking.event(part_of="PickSession")
class PickSessionFailed:
    """The session could not continue (equipment, system or safety stop)."""

    __version__ = 1

    session_id = Identifier(required=True)
    task_id = Identifier(required=True)
    worker_id = Identifier(required=True)
    warehouse_id = Identifier(required=True)
    reason = String(required=True)
    completed_instructions = Integer(required=True)
    total_instructions = Integer(required=True)
    failed_at = DateTime(required=True)
