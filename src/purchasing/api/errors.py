"""Translate domain errors into HTTP responses.

Protean's own handlers are registered first; the handlers below replace the
ones for the exception families the purchasing domain raises. Starlette picks
the most specific registered class, so ``Rejected`` and ``BadRequest`` win
over their ``ValidationError`` base.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.exceptions import InvalidOperationError, ObjectNotFoundError, ValidationError
from protean.integrations.fastapi import register_exception_handlers

from purchasing.shared.errors import BadRequest, Conflict, NotFound, Rejected

logger = structlog.get_logger(__name__)

STATUS_BY_ERROR = {
    ValidationError: 400,
    BadRequest: 400,
    ObjectNotFoundError: 404,
    NotFound: 404,
    InvalidOperationError: 409,
    Conflict: 409,
    Rejected: 422,
}


def _messages(exc):
    messages = getattr(exc, "messages", None)
    if messages is None and exc.args:
        messages = exc.args[0]
    return messages if messages is not None else str(exc)


def _handler(status_code):
    async def handle(request: Request, exc: Exception) -> JSONResponse:
        if status_code >= 409:
            logger.info(
                "Request refused",
                path=request.url.path,
                status_code=status_code,
                error=type(exc).__name__,
            )
        return JSONResponse(status_code=status_code, content={"error": _messages(exc)})

    return handle


def register_error_handlers(app: FastAPI) -> None:
    register_exception_handlers(app)
    for exc_class, status_code in STATUS_BY_ERROR.items():
        app.add_exception_handler(exc_class, _handler(status_code))
