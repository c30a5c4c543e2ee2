"""
Error Handling for the Counterfeit Checker

Centralized exception handlers for the FastAPI application. Every error,
expected or not, is returned in the same shape as a successful analysis:

    {"results": [], "errors": ["<message>"]}

Usage:
    from services.error_handler import setup_error_handlers

    app = FastAPI()
    setup_error_handlers(app)
"""

import logging
from typing import Callable

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from services.exceptions import (
    CheckerException,
    AnalysisError,
    ConfigurationError,
    ExternalServiceError,
    ValidationError,
)
from pipeline.response_builder import error_body

logger = logging.getLogger(__name__)


def get_status_code(exc: CheckerException) -> int:
    """Determine HTTP status code for exception."""
    if isinstance(exc, ValidationError):
        return 400
    elif isinstance(exc, ConfigurationError):
        return 500
    elif isinstance(exc, ExternalServiceError):
        return 502
    elif isinstance(exc, AnalysisError):
        return 500
    return 500


def server_error_message(exc: Exception) -> str:
    return f"Server error: {str(exc) or type(exc).__name__}"


def create_error_response(message: str, status_code: int = 500) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=error_body(message))


# ============================================================
# Exception Handlers
# ============================================================

async def handle_checker_exception(request: Request, exc: CheckerException) -> JSONResponse:
    """Handle CheckerException and its subclasses."""
    status_code = get_status_code(exc)

    log_level = logging.WARNING if status_code < 500 else logging.ERROR
    logger.log(
        log_level,
        f"[{exc.code}] {exc.message}",
        extra={"error": exc.to_dict(), "cause": str(exc.cause) if exc.cause else None},
    )

    return create_error_response(exc.message, status_code)


async def handle_generic_exception(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.error(
        f"Unhandled exception in {request.url.path}: {type(exc).__name__}: {exc}",
        exc_info=True,
    )
    return create_error_response(server_error_message(exc), 500)


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """
    Last line of defence for exceptions that escape the route handlers.

    Starlette re-raises unhandled exceptions after the Exception handler
    runs; catching them here keeps the process serving.
    """

    async def dispatch(self, request: Request, call_next: Callable):
        try:
            return await call_next(request)
        except CheckerException as exc:
            return await handle_checker_exception(request, exc)
        except Exception as exc:
            return await handle_generic_exception(request, exc)


# ============================================================
# Setup Function
# ============================================================

def setup_error_handlers(app: FastAPI):
    """Configure error handlers for the FastAPI application."""

    app.add_middleware(ErrorHandlingMiddleware)

    @app.exception_handler(CheckerException)
    async def checker_exception_handler(request: Request, exc: CheckerException):
        return await handle_checker_exception(request, exc)

    logger.info("[ERROR HANDLER] Configured")
