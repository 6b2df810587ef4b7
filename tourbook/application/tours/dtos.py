"""
Data Transfer Objects for the tours application layer.

DTOs carry data between the interface and application layers.
They are plain dataclasses with no behavior.
"""

from dataclasses import dataclass

from tourbook.domain.tours.entities import Account


@dataclass(frozen=True)
class SignupCommand:
    """Input DTO for creating an account.

    Attributes:
        name: Display name.
        email: Login email, stored lowercased.
        password: Plain-text password, hashed before storage.
        account_url: Link included in the welcome email.
    """

    name: str
    email: str
    password: str
    account_url: str = ""


@dataclass(frozen=True)
class LoginCommand:
    email: str | None
    password: str | None


@dataclass(frozen=True)
class UpdatePasswordCommand:
    """Input DTO for a logged-in password change.

    Attributes:
        current_password: Must match the stored credential.
        password: New plain-text password.
    """

    current_password: str
    password: str


@dataclass(frozen=True)
class ForgotPasswordCommand:
    """Input DTO for requesting a reset link.

    Attributes:
        email: Address of the account to reset.
        reset_url: Base URL; the plain reset token is appended to it.
    """

    email: str
    reset_url: str


@dataclass(frozen=True)
class ResetPasswordCommand:
    token: str
    password: str


@dataclass(frozen=True)
class AuthResult:
    """Output DTO for every operation that starts a session.

    Attributes:
        account: The authenticated account.
        token: Freshly issued session token.
    """

    account: Account
    token: str
