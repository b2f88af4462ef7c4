"""Picking bounded context — Pick Execution on the warehouse floor.

Drives a worker's pick session from creation through completion: orders the
pick instructions into a low-travel route before work starts, then tracks
every confirm, short pick and skip until the cart is done. Uses CQRS because
the session is a short-lived, linear workflow owned by a single worker.
"""

from protean.domain import Domain

from picking.utils.logging import configure_logging

# Configure logging for the application
configure_logging()

picking = Domain(name="picking")
