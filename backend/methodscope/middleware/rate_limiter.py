"""
Rate limiting.

One slowapi Limiter keyed on the client address. Each route passes its own
limit from Settings (ANALYZE_RATE_LIMIT, GENERATE_RATE_LIMIT,
CONSTRUCTOR_RATE_LIMIT); anything undecorated falls under
DEFAULT_RATE_LIMIT. A refused call answers 429 in the shared error envelope
with a Retry-After matching the limit window.
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from methodscope.config import get_settings
from methodscope.utils.logger import get_logger

logger = get_logger(__name__)

_settings = get_settings()

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[_settings.DEFAULT_RATE_LIMIT],
    enabled=_settings.RATE_LIMIT_ENABLED,
)


def _retry_after(exc: RateLimitExceeded) -> int:
    # Window length of the limit that was hit, e.g. 60 for "30/minute"
    try:
        return int(exc.limit.limit.get_expiry())
    except AttributeError:
        return 60


def setup_rate_limiter(app: FastAPI) -> None:
    """Attach the limiter to the app and render 429s in the shared error envelope."""
    app.state.limiter = limiter

    @app.exception_handler(RateLimitExceeded)
    async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
        retry_after = _retry_after(exc)
        logger.warning(
            "Rate limit hit  path=%s  limit=%s  ip=%s",
            request.url.path, exc.detail, get_remote_address(request),
        )
        return JSONResponse(
            status_code=429,
            content={
                "error": True,
                "error_code": "RATE_LIMIT_EXCEEDED",
                "message": f"Too many analysis requests ({exc.detail}). Retry in {retry_after}s.",
                "details": {"path": request.url.path, "limit": exc.detail, "retry_after": retry_after},
            },
            headers={"Retry-After": str(retry_after)},
        )
