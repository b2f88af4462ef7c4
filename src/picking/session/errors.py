"""Pick session error kinds.

Built on Protean's exception hierarchy so command handlers, event handlers and
the FastAPI integration treat them like any other domain rejection. Every
error carries a ``messages`` dict keyed by the offending field (or ``status``
for lifecycle violations) so callers can correct the command.

Input problems use Protean's own ``ValidationError``.
"""

from protean.exceptions import InvalidOperationError, ObjectNotFoundError


class InvalidStateError(InvalidOperationError):
    """Operation attempted from a state that does not allow it.

    Callers should re-fetch the session before retrying.
    """

    def __init__(self, messages: dict):
        super().__init__(messages)
        self.messages = messages


class NotFoundError(ObjectNotFoundError):
    """An instruction id that the session does not own."""

    def __init__(self, messages: dict):
        super().__init__(messages)
        self.messages = messages


class IntegrityError(InvalidOperationError):
    """A computed pick path disagrees with the session it is applied to.

    Not user-recoverable: it means the path was built from a different
    instruction set.
    """

    def __init__(self, messages: dict):
        super().__init__(messages)
        self.messages = messages
