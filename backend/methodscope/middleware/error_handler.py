"""
Error types and global error handlers.

Defines AppException and the analysis-specific subclasses raised by the
services, and registers exception handlers on the FastAPI app so every error
leaves the API as the same JSON envelope.
"""

from __future__ import annotations

import traceback
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from methodscope.utils.logger import get_logger

logger = get_logger(__name__)


class AppException(Exception):
    """Application-level exception that maps to a structured JSON response."""

    def __init__(
        self,
        status_code: int = 400,
        error_code: str = "BAD_REQUEST",
        message: str = "An error occurred.",
        details: dict[str, Any] | None = None,
    ) -> None:
        self.status_code = status_code
        self.error_code = error_code
        self.message = message
        self.details = details or {}
        super().__init__(message)


class MissingSourceError(AppException):
    """No source tree exists for a contract."""

    def __init__(self, contract: str, path: str = "") -> None:
        super().__init__(
            status_code=404,
            error_code="MISSING_SOURCE",
            message=f"No Rust source found for contract '{contract}'.",
            details={"contract": contract, "path": path},
        )


class MissingBindingError(AppException):
    """No generated binding artifact exists for a contract."""

    def __init__(self, contract: str, path: str = "") -> None:
        super().__init__(
            status_code=404,
            error_code="MISSING_BINDING",
            message=f"No TypeScript binding found for contract '{contract}'.",
            details={"contract": contract, "path": path},
        )


class MalformedBindingError(AppException):
    """The binding exists but its Client interface or contract id cannot be located."""

    def __init__(self, reason: str, contract: str = "") -> None:
        super().__init__(
            status_code=422,
            error_code="MALFORMED_BINDING",
            message=f"Malformed binding: {reason}",
            details={"contract": contract} if contract else {},
        )


class AnalysisError(AppException):
    """Unexpected failure while analysing a single function body."""

    def __init__(self, function: str, reason: str) -> None:
        super().__init__(
            status_code=500,
            error_code="ANALYSIS_ERROR",
            message=f"Could not analyse function '{function}': {reason}",
            details={"function": function},
        )


def setup_error_handlers(app: FastAPI) -> None:
    """Register exception handlers on the FastAPI application."""

    @app.exception_handler(AppException)
    async def app_exception_handler(_request: Request, exc: AppException) -> JSONResponse:
        logger.warning(
            "AppException %s: %s  details=%s",
            exc.error_code,
            exc.message,
            exc.details,
        )
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "error": True,
                "error_code": exc.error_code,
                "message": exc.message,
                "details": exc.details,
            },
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(_request: Request, exc: Exception) -> JSONResponse:
        logger.error("Unhandled exception: %s\n%s", exc, traceback.format_exc())
        return JSONResponse(
            status_code=500,
            content={
                "error": True,
                "error_code": "INTERNAL_SERVER_ERROR",
                "message": "An unexpected error occurred while analysing contracts.",
                "details": {},
            },
        )
