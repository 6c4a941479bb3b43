"""FastAPI exception handlers — one place that turns errors into responses.

Learn: Known failures (pmhome.errors) keep their status and message.
Request-body validation is reported as 400. Anything else is logged with
its traceback and answered with a generic 500; no internals leak.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from pmhome.errors import AppError, AuthenticationError

logger = structlog.get_logger()

INTERNAL_ERROR = "Internal server error"


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(
            "request.failed",
            error_type=type(exc).__name__,
            error=exc.message,
        )
        return JSONResponse(status_code=exc.status_code, content={"detail": INTERNAL_ERROR})

    headers = None
    if isinstance(exc, AuthenticationError):
        headers = {"WWW-Authenticate": "Bearer"}
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message},
        headers=headers,
    )


async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    first = exc.errors()[0] if exc.errors() else {}
    field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    message = f"Invalid value for {field}" if field else "Invalid request"
    return JSONResponse(status_code=400, content={"detail": message})


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("request.unhandled_error")
    return JSONResponse(status_code=500, content={"detail": INTERNAL_ERROR})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
