"""
Centralized error responder for FastAPI.

Every exception that escapes a route or dependency ends here. It is first
classified into a status code and message:

- ``AppError`` subclasses are operational and keep their own status.
- Database uniqueness violations become 409, other integrity and data
  errors 400, request validation errors 400, token errors 401 and
  unknown routes 404. These are rewritten into the operational shape.
- Anything else is unclassified (a programming error).

and then rendered as JSON for ``/api`` paths or as the error page
otherwise. In development every error carries full diagnostics. In
production only operational errors show their message; unclassified
errors get a generic 500 and are logged with their traceback.
"""

import logging
import re
import traceback
from dataclasses import dataclass
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.templating import Jinja2Templates
from jose import ExpiredSignatureError, JWTError
from sqlalchemy.exc import DataError, IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import Response

from tourbook.core.config import Settings
from tourbook.domain.tours.errors import AppError

logger = logging.getLogger(__name__)

GENERIC_MESSAGE = "Something went very wrong!"
PAGE_TITLE = "Something went wrong!"
PAGE_FALLBACK_MESSAGE = "Please try again later."

INVALID_TOKEN = "Invalid token! Please log in again."
EXPIRED_TOKEN = "Your token has expired! Please log in again."
INVALID_INPUT = "Invalid input data."
DUPLICATE_VALUE = "Duplicate field value: {value}. Please use another value!"

_POSTGRES_UNIQUE = re.compile(r"Key \((?P<columns>[^)]*)\)=\((?P<values>.*)\) already exists")
_SQLITE_UNIQUE = re.compile(r"UNIQUE constraint failed: (?P<columns>[\w.,\s]+)")
_SQLITE_NOT_NULL = re.compile(r"NOT NULL constraint failed: \w+\.(?P<column>\w+)")
_POSTGRES_NOT_NULL = re.compile(r'null value in column "(?P<column>\w+)"')
_FOREIGN_KEY = re.compile(r"FOREIGN KEY constraint failed|violates foreign key constraint")


@dataclass(frozen=True)
class ClassifiedError:
    """An exception reduced to what the responder needs to render it."""

    status_code: int
    message: str
    name: str
    is_operational: bool

    @property
    def status(self) -> str:
        return "fail" if 400 <= self.status_code < 500 else "error"


def _operational(status_code: int, message: str, exc: Exception) -> ClassifiedError:
    return ClassifiedError(status_code, message, type(exc).__name__, True)


def _integrity_error(exc: IntegrityError) -> ClassifiedError:
    detail = str(exc.orig)

    match = _POSTGRES_UNIQUE.search(detail)
    if match:
        return _operational(409, DUPLICATE_VALUE.format(value=match.group("values")), exc)
    match = _SQLITE_UNIQUE.search(detail)
    if match:
        columns = [c.strip().split(".")[-1] for c in match.group("columns").split(",")]
        return _operational(409, DUPLICATE_VALUE.format(value=", ".join(columns)), exc)

    match = _SQLITE_NOT_NULL.search(detail) or _POSTGRES_NOT_NULL.search(detail)
    if match:
        return _operational(400, f"{INVALID_INPUT} Missing value for {match.group('column')}.", exc)
    if _FOREIGN_KEY.search(detail):
        return _operational(400, f"{INVALID_INPUT} A referenced document does not exist.", exc)
    return _operational(400, INVALID_INPUT, exc)


def _validation_message(exc: RequestValidationError) -> str:
    messages = []
    for error in exc.errors():
        location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        message = str(error.get("msg", "")).removeprefix("Value error, ")
        messages.append(f"{'.'.join(location)}: {message}" if location else message)
    return f"{INVALID_INPUT} {'. '.join(messages)}".strip()


def classify(exc: Exception, path: str = "") -> ClassifiedError:
    """Reduce any exception to status, message and operational flag."""
    if isinstance(exc, AppError):
        return ClassifiedError(exc.status_code, exc.message, type(exc).__name__, exc.is_operational)
    if isinstance(exc, ExpiredSignatureError):
        return _operational(401, EXPIRED_TOKEN, exc)
    if isinstance(exc, JWTError):
        return _operational(401, INVALID_TOKEN, exc)
    if isinstance(exc, IntegrityError):
        return _integrity_error(exc)
    if isinstance(exc, DataError):
        return _operational(400, INVALID_INPUT, exc)
    if isinstance(exc, RequestValidationError):
        return _operational(400, _validation_message(exc), exc)
    if isinstance(exc, StarletteHTTPException):
        if exc.status_code == 404:
            return _operational(404, f"Can't find {path} on this server!", exc)
        return _operational(exc.status_code, str(exc.detail), exc)
    return ClassifiedError(500, str(exc) or type(exc).__name__, type(exc).__name__, False)


def _is_api(request: Request) -> bool:
    return request.url.path.startswith("/api")


def _stack(exc: Exception) -> str:
    return "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))


def _api_body(error: ClassifiedError, exc: Exception, production: bool) -> tuple[int, dict]:
    if not production:
        return error.status_code, {
            "status": error.status,
            "message": error.message,
            "error": {
                "name": error.name,
                "statusCode": error.status_code,
                "isOperational": error.is_operational,
            },
            "stack": _stack(exc),
        }
    if error.is_operational:
        return error.status_code, {"status": error.status, "message": error.message}
    return 500, {"status": "error", "message": GENERIC_MESSAGE}


def _log(request: Request, error: ClassifiedError, exc: Exception) -> None:
    if not error.is_operational:
        logger.error(
            "Unclassified error on %s %s", request.method, request.url.path, exc_info=exc
        )
    elif error.status_code >= 500:
        logger.error("%s on %s: %s", error.name, request.url.path, error.message)
    else:
        logger.warning(
            "%d %s on %s: %s", error.status_code, error.name, request.url.path, error.message
        )


def register_error_handlers(
    app: FastAPI, settings: Settings, templates: Optional[Jinja2Templates] = None
) -> None:
    """Register the responder for every exception family on the application.

    Args:
        app: The FastAPI application instance.
        settings: Selects development or production rendering.
        templates: Renders the error page for non-API requests.
    """

    async def respond(request: Request, exc: Exception) -> Response:
        error = classify(exc, request.url.path)
        _log(request, error, exc)
        headers = getattr(exc, "headers", None) if isinstance(exc, StarletteHTTPException) else None

        if _is_api(request) or templates is None:
            status_code, body = _api_body(error, exc, settings.is_production)
            return JSONResponse(status_code=status_code, content=body, headers=headers)

        if not settings.is_production or error.is_operational:
            message = error.message
        else:
            message = PAGE_FALLBACK_MESSAGE
        return templates.TemplateResponse(
            request,
            "error.html",
            {
                "title": PAGE_TITLE,
                "msg": message,
                "stack": None if settings.is_production else _stack(exc),
                "user": getattr(request.state, "user", None),
            },
            status_code=error.status_code if error.is_operational else 500,
        )

    for exc_class in (
        AppError,
        JWTError,
        IntegrityError,
        DataError,
        RequestValidationError,
        StarletteHTTPException,
        Exception,
    ):
        app.add_exception_handler(exc_class, respond)
