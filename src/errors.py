"""Gateway error taxonomy.

Every error carries the HTTP status and the message shown to the client.
Upstream detail never goes into ``message``; it is logged where the error is
raised.
"""

from __future__ import annotations


class GatewayError(Exception):
    status_code = 500
    default_message = "Unexpected server error."

    def __init__(self, message: str | None = None, status_code: int | None = None) -> None:
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class ValidationError(GatewayError):
    status_code = 400
    default_message = "Invalid request."


class AuthError(GatewayError):
    status_code = 401
    default_message = "Unauthorized"


class ServerMisconfigured(GatewayError):
    status_code = 500
    default_message = "Server misconfigured."


class QuotaExceeded(GatewayError):
    status_code = 429
    default_message = "Daily free image limit reached. Try again tomorrow."


class RateLimited(GatewayError):
    status_code = 429
    default_message = "Too many requests. Please slow down."


class UpstreamError(GatewayError):
    """Upstream call failed; ``upstream_status`` is the provider's HTTP status if known."""

    status_code = 500
    default_message = "Upstream service unavailable. Please try again."

    def __init__(
        self,
        message: str | None = None,
        status_code: int | None = None,
        upstream_status: int | None = None,
    ) -> None:
        super().__init__(message, status_code)
        self.upstream_status = upstream_status


class EmptyUpstreamResponse(GatewayError):
    status_code = 502
    default_message = "Upstream response was empty. Please try again."


class PayloadTooLarge(GatewayError):
    status_code = 413
    default_message = "Payload too large. Keep images/text under 16MB."


class NotFound(GatewayError):
    status_code = 404
    default_message = "Not found."


class ServiceUnavailable(GatewayError):
    status_code = 503
    default_message = "Service unavailable."
