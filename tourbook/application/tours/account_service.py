"""
Use cases for accounts: signup, login, password management and profile.

Input:  command DTOs from the interface layer
Output: AuthResult for operations that start a session, documents otherwise
Side effects: writes credentials and reset tokens; sends welcome and
    reset emails through the Mailer port.
Failure cases:
    InvalidInputError   missing credentials, password fields on updateMe,
                        invalid or expired reset token
    AuthenticationError wrong credentials or wrong current password
    NotFoundError       unknown email on forgot-password
    EmailDeliveryError  reset email could not be sent (token is cleared)
"""

import hashlib
import html
import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from tourbook.application.tours.dtos import (
    AuthResult,
    ForgotPasswordCommand,
    LoginCommand,
    ResetPasswordCommand,
    SignupCommand,
    UpdatePasswordCommand,
)
from tourbook.application.tours.resources import ResourceService
from tourbook.domain.tours.entities import Account
from tourbook.domain.tours.errors import (
    AuthenticationError,
    EmailDeliveryError,
    InvalidInputError,
    NotFoundError,
)
from tourbook.domain.tours.ports import (
    AccountRepository,
    Mailer,
    PasswordHasher,
    TokenService,
)

logger = logging.getLogger(__name__)

PROFILE_FIELDS = ("name", "email")
PASSWORD_FIELDS = ("password", "passwordConfirm")

# passwordChangedAt is backdated so a token issued right after the change
# is never considered stale.
PASSWORD_CHANGE_SKEW = timedelta(seconds=1)


def hash_reset_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def _welcome_html(account: Account, url: str) -> str:
    return (
        f"<p>Hi {html.escape(account.first_name)},</p>"
        "<p>Welcome to Tourbook, we're glad to have you!</p>"
        f'<p><a href="{html.escape(url)}">Upload your user photo</a></p>'
    )


def _reset_html(account: Account, url: str, minutes: int) -> str:
    return (
        f"<p>Hi {html.escape(account.first_name)},</p>"
        "<p>Forgot your password? Submit a PATCH request with your new password "
        f'and passwordConfirm to: <a href="{html.escape(url)}">{html.escape(url)}</a></p>'
        f"<p>This link is valid for {minutes} minutes. "
        "If you didn't forget your password, please ignore this email.</p>"
    )


class AccountService(ResourceService):
    """Credential and profile operations over the account repository."""

    def __init__(
        self,
        repo: AccountRepository,
        hasher: PasswordHasher,
        token_service: TokenService,
        mailer: Mailer,
        reset_expires_minutes: int = 10,
        max_limit: Optional[int] = None,
    ) -> None:
        super().__init__(repo, max_limit)
        self._accounts = repo
        self._hasher = hasher
        self._token_service = token_service
        self._mailer = mailer
        self._reset_expires = timedelta(minutes=reset_expires_minutes)

    def _session(self, account: Account) -> AuthResult:
        return AuthResult(account=account, token=self._token_service.issue(account.id))

    def _load(self, account_id: str) -> Account:
        account = self._accounts.get_account(account_id)
        if account is None:
            raise NotFoundError()
        return account

    def signup(self, command: SignupCommand) -> AuthResult:
        """Create a ``user`` account and start a session.

        Any role in the request is ignored; roles are granted by admins.
        """
        doc = self._accounts.create(
            {
                "name": command.name,
                "email": command.email.lower(),
                "passwordHash": self._hasher.hash(command.password),
            }
        )
        account = self._load(doc["id"])
        logger.info("Signed up account=%s", account.id)
        self._mailer.send(
            account.email,
            "Welcome to the Tourbook Family!",
            _welcome_html(account, command.account_url),
        )
        return self._session(account)

    def login(self, command: LoginCommand) -> AuthResult:
        if not command.email or not command.password:
            raise InvalidInputError("Please provide email and password!")
        account = self._accounts.get_by_email(command.email)
        if account is None or not self._hasher.verify(
            command.password, account.password_hash
        ):
            logger.warning("Failed login attempt")
            raise AuthenticationError("Incorrect email or password")
        logger.info("Logged in account=%s", account.id)
        return self._session(account)

    def update_password(
        self, account: Account, command: UpdatePasswordCommand
    ) -> AuthResult:
        if not self._hasher.verify(command.current_password, account.password_hash):
            raise AuthenticationError(
                "Password is Incorrect! Please fill in the Correct Password."
            )
        self._change_password(account.id, command.password)
        return self._session(self._load(account.id))

    def forgot_password(self, command: ForgotPasswordCommand) -> None:
        """Store a hashed one-time token and email the plain token."""
        account = self._accounts.get_by_email(command.email or "")
        if account is None:
            raise NotFoundError("There is no user with that email address.")

        token = secrets.token_hex(32)
        expires = datetime.now(timezone.utc) + self._reset_expires
        self._accounts.set_reset_token(account.id, hash_reset_token(token), expires)

        url = f"{command.reset_url}{token}"
        minutes = int(self._reset_expires.total_seconds() // 60)
        try:
            self._mailer.send(
                account.email,
                f"Your password reset token (valid for only {minutes} minutes)",
                _reset_html(account, url, minutes),
            )
        except Exception as exc:
            logger.exception("Reset email failed for account=%s", account.id)
            self._accounts.set_reset_token(account.id, None, None)
            raise EmailDeliveryError() from exc
        logger.info("Reset token issued for account=%s", account.id)

    def reset_password(self, command: ResetPasswordCommand) -> AuthResult:
        account = self._accounts.get_by_reset_token(hash_reset_token(command.token))
        now = datetime.now(timezone.utc)
        if (
            account is None
            or account.password_reset_expires is None
            or account.password_reset_expires <= now
        ):
            raise InvalidInputError("Token is invalid or has expired")
        self._change_password(account.id, command.password)
        return self._session(self._load(account.id))

    def _change_password(self, account_id: str, password: str) -> None:
        changed_at = datetime.now(timezone.utc) - PASSWORD_CHANGE_SKEW
        self._accounts.set_password(account_id, self._hasher.hash(password), changed_at)

    def update_me(self, account: Account, values: dict[str, Any]) -> dict:
        """Update the caller's own profile; only name and email are kept."""
        if any(values.get(f) is not None for f in PASSWORD_FIELDS):
            raise InvalidInputError(
                "This route is not for password updates. Please use /updateMyPassword"
            )
        allowed = {k: v for k, v in values.items() if k in PROFILE_FIELDS and v is not None}
        if "email" in allowed:
            allowed["email"] = allowed["email"].lower()
        if not allowed:
            return account.to_document()
        return self.update_one(account.id, allowed)

    def delete_me(self, account: Account) -> None:
        self._accounts.deactivate(account.id)
        logger.info("Account deactivated by owner account=%s", account.id)

    def delete_one(self, doc_id: str) -> None:
        """Accounts are never hard-deleted; an admin delete deactivates."""
        if not self._accounts.deactivate(doc_id):
            raise NotFoundError()
