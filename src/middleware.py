"""HTTP middleware — shared-secret auth and request body ceiling.

Pure ASGI middleware, like the rate limiter in ``src.ratelimit``; the app
stack holds no BaseHTTPMiddleware.
"""

from __future__ import annotations

import logging
import secrets

from starlette.responses import JSONResponse
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from src.errors import AuthError, GatewayError, PayloadTooLarge, ServerMisconfigured

logger = logging.getLogger(__name__)

# Paths that never require authentication
_PUBLIC_EXACT = ("/health",)

API_KEY_HEADER = b"x-api-key"


async def _reject(error: GatewayError, scope: Scope, receive: Receive, send: Send) -> None:
    response = JSONResponse({"message": error.message}, status_code=error.status_code)
    await response(scope, receive, send)


class ApiKeyMiddleware:
    """Require the shared secret in ``x-api-key`` on all routes except public ones.

    Fails closed: with no secret configured every secured route answers 500.
    """

    def __init__(self, app: ASGIApp, api_key: str) -> None:
        self.app = app
        self._api_key = (api_key or "").strip()

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        path = scope["path"]

        if path in _PUBLIC_EXACT:
            await self.app(scope, receive, send)
            return

        if not self._api_key:
            logger.error("Shared secret is not configured; refusing %s", path)
            await _reject(ServerMisconfigured(), scope, receive, send)
            return

        headers = dict(scope.get("headers", []))
        incoming = headers.get(API_KEY_HEADER, b"").decode("utf-8", errors="ignore").strip()

        if incoming and secrets.compare_digest(
            incoming.encode("utf-8"), self._api_key.encode("utf-8")
        ):
            await self.app(scope, receive, send)
            return

        logger.warning("[auth] 401 %s", path)
        await _reject(AuthError(), scope, receive, send)


class BodySizeLimitMiddleware:
    """Reject request bodies larger than ``max_bytes`` with 413.

    Declared ``Content-Length`` is checked up front; bodies without one are
    counted as they stream in and abort with :class:`PayloadTooLarge`.
    """

    def __init__(self, app: ASGIApp, max_bytes: int) -> None:
        self.app = app
        self._max_bytes = max_bytes

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        headers = dict(scope.get("headers", []))
        declared = headers.get(b"content-length")
        if declared is not None and declared.isdigit() and int(declared) > self._max_bytes:
            logger.info("Rejected %s: declared body of %s bytes", scope["path"], declared.decode())
            await _reject(PayloadTooLarge(), scope, receive, send)
            return

        received = 0

        async def limited_receive() -> Message:
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > self._max_bytes:
                    raise PayloadTooLarge()
            return message

        await self.app(scope, limited_receive, send)
