"""Cross-domain event contracts for Task Execution events.

The Task Execution service owns warehouse tasks (pick, pack, replenish, ...).
Picking consumes task creation and assignment to open pick sessions. The
classes are registered as external events via domain.register_external_event()
with matching __type__ strings so Protean's stream deserialization works
correctly.

The upstream ``context`` payload is passed through as JSON with the
producer's camelCase keys; translating it is the consumer's job.
"""

from protean.core.event import BaseEvent
from protean.fields import DateTime, Identifier, String, Text


class TaskCreated(BaseEvent):
    """A warehouse task was created.

    For PICK tasks, ``context`` carries ``strategy``, ``workerId``, ``cartId``
    and ``instructions[]``. ``reference_id`` is the wave the task belongs to.
    """

    __version__ = 1

    task_id = Identifier(required=True)
    task_type = String(required=True)
    warehouse_id = Identifier(required=True)
    reference_id = Identifier()
    priority = String()
    zone_id = String()
    context = Text()  # JSON object
    created_at = DateTime()


class TaskAssigned(BaseEvent):
    """A warehouse task was assigned to a worker."""

    __version__ = 1

    task_id = Identifier(required=True)
    task_type = String(required=True)
    assigned_to = Identifier()
    priority = String()
    zone_id = String()
    assigned_at = DateTime()
