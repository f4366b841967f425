"""
HTTP plumbing for the analysis API.

CORS for the frontend, and one middleware wrapped around every request:

- bodies declaring more than MAX_INPUT_SIZE_BYTES (contract sources arrive
  inline) are refused with 413 before they are read;
- each request gets an id (the caller's ``X-Request-ID`` or a fresh one),
  returned with the response together with ``X-Process-Time``;
- one log line per request, promoted to WARNING when it fails or takes
  longer than SLOW_REQUEST_MS. Bodies are never logged.
"""

from __future__ import annotations

import time
import uuid

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from methodscope.config import Settings, get_settings
from methodscope.utils.logger import get_logger

logger = get_logger("request")

REQUEST_ID_HEADER = "X-Request-ID"
PROCESS_TIME_HEADER = "X-Process-Time"


def _declared_length(request: Request) -> int:
    try:
        return int(request.headers.get("content-length", "0"))
    except ValueError:
        return 0


def _too_large(length: int, limit: int, request_id: str) -> JSONResponse:
    return JSONResponse(
        status_code=413,
        content={
            "error": True,
            "error_code": "PAYLOAD_TOO_LARGE",
            "message": (
                f"Request body ({length:,} bytes) exceeds the "
                f"maximum allowed size ({limit:,} bytes)."
            ),
            "details": {"limit": limit},
        },
        headers={REQUEST_ID_HEADER: request_id},
    )


class AnalysisRequestMiddleware(BaseHTTPMiddleware):
    """Size limit, request id, timing and access logging in one pass."""

    def __init__(self, app, max_bytes: int, slow_ms: int) -> None:  # noqa: ANN001
        super().__init__(app)
        self.max_bytes = max_bytes
        self.slow_ms = slow_ms

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:12]
        length = _declared_length(request)
        client = request.client.host if request.client else "unknown"

        if length > self.max_bytes:
            logger.warning(
                "%s %s refused: %d bytes over the %d byte limit  ip=%s  id=%s",
                request.method, request.url.path, length, self.max_bytes, client, request_id,
            )
            return _too_large(length, self.max_bytes, request_id)

        start = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start) * 1000

        response.headers[REQUEST_ID_HEADER] = request_id
        response.headers[PROCESS_TIME_HEADER] = f"{duration_ms:.1f}ms"

        slow = duration_ms > self.slow_ms
        level = "warning" if response.status_code >= 500 or slow else "info"
        getattr(logger, level)(
            "%s %s → %d  %.1fms%s  bytes=%d  ip=%s  id=%s",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
            "  (slow)" if slow else "",
            length,
            client,
            request_id,
        )
        return response


def setup_http(app: FastAPI, settings: Settings | None = None) -> None:
    """Register the request middleware and, outermost, CORS."""
    settings = settings or get_settings()

    app.add_middleware(
        AnalysisRequestMiddleware,
        max_bytes=settings.MAX_INPUT_SIZE_BYTES,
        slow_ms=settings.SLOW_REQUEST_MS,
    )
    # Added last so 413s and errors still carry CORS headers
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins_list,
        allow_credentials=False,
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type", REQUEST_ID_HEADER],
        expose_headers=[REQUEST_ID_HEADER, PROCESS_TIME_HEADER],
        max_age=600,
    )
