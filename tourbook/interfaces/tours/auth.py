"""
Authentication and authorization dependencies.

``protect`` runs the full verification chain and fails the request;
``is_logged_in`` runs the same chain from the session cookie only and
never fails, so pages can render for anonymous visitors;
``restrict_to`` gates a route on the caller's role and always runs
after ``protect``.
"""

import logging
from typing import Callable, Optional

from fastapi import Depends, Request
from jose import JWTError

from tourbook.domain.tours.auth_service import AuthService, ensure_role
from tourbook.domain.tours.entities import Account, Role
from tourbook.domain.tours.errors import AppError
from tourbook.interfaces.tours.dependencies import get_auth_service

logger = logging.getLogger(__name__)

SESSION_COOKIE = "jwt"
LOGGED_OUT = "loggedout"


def extract_token(request: Request) -> Optional[str]:
    """Bearer token first, then a non-sentinel session cookie."""
    scheme, _, credentials = request.headers.get("Authorization", "").partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()
    cookie = request.cookies.get(SESSION_COOKIE)
    if cookie and cookie != LOGGED_OUT:
        return cookie
    return None


def protect(
    request: Request, auth: AuthService = Depends(get_auth_service)
) -> Account:
    """Resolve the caller or fail with 401."""
    account = auth.authenticate(extract_token(request))
    request.state.user = account
    return account


def is_logged_in(
    request: Request, auth: AuthService = Depends(get_auth_service)
) -> Optional[Account]:
    """Resolve the caller from the session cookie, or None."""
    token = request.cookies.get(SESSION_COOKIE)
    if not token or token == LOGGED_OUT:
        return None
    try:
        account = auth.authenticate(token)
    except (AppError, JWTError) as exc:
        logger.debug("Session cookie ignored: %s", type(exc).__name__)
        return None
    request.state.user = account
    return account


def restrict_to(*roles: Role) -> Callable[..., Account]:
    """Build a dependency admitting only ``roles``."""

    def check_role(account: Account = Depends(protect)) -> Account:
        return ensure_role(account, roles)

    return check_role
