"""Pick Execution FastAPI application.

Web server that processes picking commands synchronously via HTTP. Every
request under a picking prefix is wrapped in the picking domain context.

Usage:
    uvicorn src.app:app --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# PROTEAN_ENV controls which config overlay is applied.
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from picking.domain import picking  # noqa: E402

picking.init()

_DOMAIN_PREFIXES = ("/pick-sessions", "/mobile/picks")


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Pick Execution API",
    description="Warehouse pick sessions, path optimization and pick recording",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the picking domain context for picking requests."""
    if request.url.path.startswith(_DOMAIN_PREFIXES):
        with picking.domain_context():
            response = await call_next(request)
        return response
    # Health check, docs, etc.
    return await call_next(request)


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from picking.api.errors import register_picking_exception_handlers  # noqa: E402
from picking.api.routes import mobile_router, session_router  # noqa: E402

app.include_router(session_router)
app.include_router(mobile_router)
register_picking_exception_handlers(app)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(content={"status": "ok", "domains": {"picking": {"name": picking.name}}})
