"""HTTP mapping for picking errors.

Protean's FastAPI integration already maps its base exceptions. The picking
error kinds need their own status codes on top of that, and Starlette picks
the handler registered for the most specific class in the exception's MRO.
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.integrations.fastapi import register_exception_handlers

from picking.session.errors import IntegrityError, InvalidStateError, NotFoundError

_STATUS_CODES = {
    ValidationError: 400,
    ObjectNotFoundError: 404,
    NotFoundError: 404,
    InvalidStateError: 409,
    IntegrityError: 500,
}


def _messages(exc: Exception):
    return getattr(exc, "messages", None) or {"_entity": [str(exc)]}


def register_picking_exception_handlers(app: FastAPI) -> None:
    register_exception_handlers(app)

    for exc_class, status_code in _STATUS_CODES.items():

        async def handler(request: Request, exc: Exception, status_code: int = status_code) -> JSONResponse:
            return JSONResponse(status_code=status_code, content={"error": _messages(exc)})

        app.add_exception_handler(exc_class, handler)
