"""
app/core/errors.py

Purpose: HTTP error envelope

- Every error leaving the API is {"error", "code", "details"}
- Domain errors keep their own code and status
- Request validation errors list the offending fields
"""

from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import settings
from app.core.exceptions import HookHostError
from app.core.logging import get_logger
from app.schemas.response import ErrorResponse

logger = get_logger(__name__)


def error_response(status_code: int, error: str, code: str, details: Optional[Any] = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=error, code=code, details=details).model_dump()
    )


def jsonable_errors(exc: RequestValidationError):
    # ctx may carry the raw exception object, which JSONResponse cannot encode
    errors = []
    for error in exc.errors():
        error = dict(error)
        if "ctx" in error:
            error["ctx"] = {key: str(value) for key, value in error["ctx"].items()}
        errors.append(error)
    return errors


def add_exception_handlers(app: FastAPI):
    """
    Registers exception handlers with the FastAPI app.
    """

    @app.exception_handler(HookHostError)
    async def hookhost_exception_handler(request: Request, exc: HookHostError):
        logger.warning(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
        return error_response(exc.status_code, exc.message, exc.code, exc.details)

    # Unknown routes and wrong methods (404, 405)
    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return error_response(exc.status_code, str(exc.detail), "HTTP_ERROR")

    # Malformed Telegram updates
    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return error_response(422, "Input validation failed", "VALIDATION_ERROR", jsonable_errors(exc))

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception on {request.method} {request.url.path}: {exc}", exc_info=True)
        message = "An internal error occurred. Please try again later." if settings.is_production else str(exc)
        return error_response(500, message, "INTERNAL_ERROR")
