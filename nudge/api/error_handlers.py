"""NUDGE — Exception Handlers for FastAPI."""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from nudge.core.exceptions import NudgeError, NotFoundError, ValidationError
from nudge.core.logging import get_logger

logger = get_logger("api.errors")


def status_for(exc: NudgeError) -> int:
    if isinstance(exc, ValidationError):
        return 400
    if isinstance(exc, NotFoundError):
        return 404
    return 500


async def nudge_exception_handler(request: Request, exc: NudgeError) -> JSONResponse:
    """Map every NudgeError to a structured JSON body."""
    status_code = status_for(exc)
    error_type = exc.__class__.__name__
    log = logger.error if status_code >= 500 else logger.warning
    log(
        f"{error_type}: {exc.message}",
        extra={"endpoint": request.url.path, "status_code": status_code},
    )
    return JSONResponse(
        status_code=status_code,
        content={"error": error_type, "message": exc.message, "details": exc.details},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(NudgeError, nudge_exception_handler)
