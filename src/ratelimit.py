"""Per-address request rate limiting backed by slowapi.

One limiter per application instance, in-memory storage. Every request
except public paths (the health check) is counted against one bucket per
caller address, shared across all routes.

Enforced by a pure ASGI middleware rather than ``SlowAPIMiddleware``: the
latter resolves the matched endpoint from ``app.routes``, which no longer
exposes endpoints for routers added with ``include_router``.
"""

from __future__ import annotations

import logging
import math
import time

from limits import RateLimitItem, parse
from slowapi import Limiter
from slowapi.util import get_remote_address
from starlette.datastructures import MutableHeaders
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from src.config import LimitsConfig
from src.errors import RateLimited

logger = logging.getLogger(__name__)

# Paths never counted against the limit
_EXEMPT_PATHS = ("/health",)

# Scope name for the single bucket shared by all routes
GLOBAL_SCOPE = "global"


def build_limiter(config: LimitsConfig) -> Limiter:
    return Limiter(
        key_func=get_remote_address,
        enabled=config.rate_limit_enabled,
        headers_enabled=True,
        storage_uri="memory://",
    )


class RateLimitMiddleware:
    """Reject callers over ``rate_limit`` with 429 before any handler runs.

    Responses carry ``X-RateLimit-*`` headers; rejections add ``Retry-After``.
    """

    def __init__(self, app: ASGIApp, limiter: Limiter, rate_limit: str) -> None:
        self.app = app
        self._limiter = limiter
        self._item: RateLimitItem = parse(rate_limit)

    def _headers(self, identifiers: tuple[str, ...]) -> dict[str, str]:
        reset_time, remaining = self._limiter.limiter.get_window_stats(self._item, *identifiers)
        return {
            "X-RateLimit-Limit": str(self._item.amount),
            "X-RateLimit-Remaining": str(remaining),
            "X-RateLimit-Reset": str(int(reset_time)),
        }

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if (
            scope["type"] != "http"
            or not self._limiter.enabled
            or scope["path"] in _EXEMPT_PATHS
        ):
            await self.app(scope, receive, send)
            return

        address = get_remote_address(Request(scope))
        identifiers = (address, GLOBAL_SCOPE)
        allowed = self._limiter.limiter.hit(self._item, *identifiers)
        headers = self._headers(identifiers)

        if not allowed:
            reset_in = max(math.ceil(int(headers["X-RateLimit-Reset"]) - time.time()), 1)
            headers["Retry-After"] = str(reset_in)
            logger.info("Rate limit hit for %s on %s: %s", address, scope["path"], self._item)
            error = RateLimited()
            response = JSONResponse(
                {"message": error.message}, status_code=error.status_code, headers=headers
            )
            await response(scope, receive, send)
            return

        async def send_with_headers(message: Message) -> None:
            if message["type"] == "http.response.start":
                MutableHeaders(scope=message).update(headers)
            await send(message)

        await self.app(scope, receive, send_with_headers)
