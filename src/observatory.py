"""Pick Execution Observatory — real-time message flow observability.

Uses Protean's built-in Observatory server to provide a live dashboard,
Prometheus metrics, and REST API for monitoring the picking event pipeline.

Usage:
    uvicorn src.observatory:app --host 0.0.0.0 --port 9000
"""

from picking.domain import picking
from protean.server.observatory import create_observatory_app

picking.init()

app = create_observatory_app(
    domains=[picking],
    title="Pick Execution Observatory",
)
