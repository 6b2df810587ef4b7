"""
Request body size ceiling.

Rejects request bodies larger than the configured maximum with ``413``.
A declared ``Content-Length`` is checked up front; bodies without one
(chunked uploads) are counted as they arrive and cut off once they cross
the limit. Whatever the route produced by then is discarded in favour of
the ``413``.
"""

import logging

from starlette.datastructures import Headers
from starlette.responses import JSONResponse
from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = logging.getLogger(__name__)


class BodyTooLarge(Exception):
    """Raised from ``receive`` once the streamed body passes the limit."""


class BodySizeLimitMiddleware:
    def __init__(self, app: ASGIApp, max_bytes: int) -> None:
        self.app = app
        self.max_bytes = max_bytes

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        declared = Headers(scope=scope).get("content-length")
        if declared is not None and declared.isdigit() and int(declared) > self.max_bytes:
            await self._reject(scope, receive, send, declared)
            return

        received = 0
        exceeded = False
        started = False

        async def limited_receive() -> Message:
            nonlocal received, exceeded
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > self.max_bytes:
                    exceeded = True
                    raise BodyTooLarge()
            return message

        async def guarded_send(message: Message) -> None:
            nonlocal started
            if exceeded and not started:
                return
            if message["type"] == "http.response.start":
                started = True
            await send(message)

        try:
            await self.app(scope, limited_receive, guarded_send)
        except BodyTooLarge:
            pass
        if exceeded and not started:
            await self._reject(scope, receive, send, f"more than {received}")

    async def _reject(self, scope: Scope, receive: Receive, send: Send, size: str) -> None:
        logger.warning(
            "Rejected %s %s: body of %s bytes", scope["method"], scope["path"], size
        )
        response = JSONResponse(
            status_code=413,
            content={
                "status": "fail",
                "message": f"Request body exceeds {self.max_bytes} bytes",
            },
        )
        await response(scope, receive, send)
