"""
Rate limiting configuration and setup.

Uses slowapi to enforce a per-IP request ceiling on API routes. Every
application gets its own ``Limiter`` built from the settings it was
created with, so counters and ceilings never leak between instances.
Page routes opt out with ``@exempt``, which is replayed onto each new
limiter.
"""

from typing import Callable

from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.requests import Request
from starlette.responses import JSONResponse

from tourbook.core.config import Settings

RATE_LIMIT_MESSAGE = "Too many requests from this IP, please try again in an hour!"

_exempt_routes: list[Callable] = []


def exempt(func: Callable) -> Callable:
    """Keep ``func`` out of the per-IP ceiling of every application."""
    _exempt_routes.append(func)
    return func


def build_limiter(app_settings: Settings) -> Limiter:
    limiter = Limiter(
        key_func=get_remote_address,
        default_limits=[app_settings.rate_limit_default],
        enabled=app_settings.rate_limit_enabled,
    )
    for func in _exempt_routes:
        limiter.exempt(func)
    return limiter


def rate_limit_exceeded_handler(_request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Handle rate limit exceeded errors with the operational error shape.

    Synchronous so that ``SlowAPIMiddleware`` can call it directly.

    Args:
        _request: The incoming HTTP request.
        exc: The rate limit exceeded exception.

    Returns:
        A 429 JSON response.
    """
    return JSONResponse(
        status_code=429,
        content={"status": "fail", "message": RATE_LIMIT_MESSAGE},
    )
