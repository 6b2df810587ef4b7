"""
Identity verification and role checks.

The HTTP layer extracts the raw token; everything after that (signature,
subject lookup, freshness, role) lives here.
"""

import logging
from typing import Iterable, Optional

from tourbook.domain.tours.entities import Account, Role
from tourbook.domain.tours.errors import AuthenticationError, PermissionDeniedError
from tourbook.domain.tours.ports import AccountRepository, TokenService

logger = logging.getLogger(__name__)

NOT_LOGGED_IN = "You are not logged in! Please log in to get access."
ACCOUNT_GONE = "The user belonging to this token no longer exists."
PASSWORD_CHANGED = "User recently changed password! Please log in again."


class AuthService:
    """Resolves a session token to an active, fresh account."""

    def __init__(
        self, account_repo: AccountRepository, token_service: TokenService
    ) -> None:
        self._account_repo = account_repo
        self._token_service = token_service

    def authenticate(self, token: Optional[str]) -> Account:
        """Run the verification chain for one token.

        Raises:
            AuthenticationError: Missing token, unknown account or stale token.
            Token adapter errors: Bad signature or expired token.
        """
        if not token:
            raise AuthenticationError(NOT_LOGGED_IN)

        claims = self._token_service.verify(token)

        account = self._account_repo.get_account(claims.subject)
        if account is None:
            logger.warning("Token subject no longer exists: %s", claims.subject)
            raise AuthenticationError(ACCOUNT_GONE)

        if account.changed_password_after(claims.issued_at):
            logger.warning("Stale token rejected for account=%s", account.id)
            raise AuthenticationError(PASSWORD_CHANGED)

        return account


def ensure_role(account: Account, allowed: Iterable[Role]) -> Account:
    """Return ``account`` if its role is allowed.

    Raises:
        PermissionDeniedError: If the role is not in ``allowed``.
    """
    if account.role not in set(allowed):
        logger.warning(
            "Permission denied for account=%s role=%s", account.id, account.role.value
        )
        raise PermissionDeniedError()
    return account
