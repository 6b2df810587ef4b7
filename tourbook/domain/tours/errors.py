"""
Domain-specific errors for the tours bounded context.

Every error defined here is *operational*: expected, caller-facing and
safe to display. Anything else that escapes a handler is treated as a
programming error by the central error responder.
No framework imports allowed.
"""


class AppError(Exception):
    """Base error carrying an HTTP status code and a display message."""

    is_operational = True

    def __init__(self, message: str, status_code: int = 500) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)

    @property
    def status(self) -> str:
        """``fail`` for caller errors (4xx), ``error`` otherwise."""
        return "fail" if 400 <= self.status_code < 500 else "error"


class InvalidInputError(AppError):
    """Raised when request data violates a business rule."""

    def __init__(self, message: str) -> None:
        super().__init__(message, 400)


class InvalidIdentifierError(AppError):
    """Raised when a path or body identifier is not a valid id."""

    def __init__(self, value: object, field: str = "id") -> None:
        super().__init__(f"Invalid {field}: {value}", 400)
        self.field = field
        self.value = value


class InvalidQueryError(AppError):
    """Raised when query-string filters cannot be turned into a query."""

    def __init__(self, message: str) -> None:
        super().__init__(message, 400)


class NotFoundError(AppError):
    """Raised when a requested document does not exist."""

    def __init__(self, message: str = "No document found with that ID") -> None:
        super().__init__(message, 404)


class AuthenticationError(AppError):
    """Raised when the caller's identity cannot be established."""

    def __init__(self, message: str) -> None:
        super().__init__(message, 401)


class PermissionDeniedError(AppError):
    """Raised when an authenticated caller lacks the required role."""

    def __init__(
        self, message: str = "You do not have permission to perform this action"
    ) -> None:
        super().__init__(message, 403)


class ConflictError(AppError):
    """Raised when a write collides with an existing unique value."""

    def __init__(self, message: str) -> None:
        super().__init__(message, 409)


class EmailDeliveryError(AppError):
    """Raised when an outgoing email could not be handed to the transport."""

    def __init__(
        self, message: str = "There was an error sending the email. Try again later."
    ) -> None:
        super().__init__(message, 500)
