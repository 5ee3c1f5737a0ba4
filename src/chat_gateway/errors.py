"""Error taxonomy for the chat gateway.

Every error a caller can observe derives from ChatGatewayError and knows
how to render itself as a JSON body. The handler layer maps them to HTTP
responses; the service layer only raises them.
"""

from typing import Any

UPSTREAM_FAILURE_MESSAGE = "AI service temporarily unavailable. Please try again in a few seconds."
DETAIL_LIMIT = 300


class ChatGatewayError(Exception):
    """Base exception for all chat gateway errors."""

    kind = "ChatGatewayError"
    status_code = 500
    public_message = "Internal server error"

    def __init__(self, message: str | None = None, *, detail: str | None = None) -> None:
        super().__init__(message or self.public_message)
        self.message = message or self.public_message
        self.detail = detail

    def to_payload(self) -> dict[str, Any]:
        """Render the error as a client-safe JSON body."""
        return {"error": self.public_message}

    def __str__(self) -> str:
        return f"{self.kind}: {self.message}"


class BadRequestError(ChatGatewayError):
    """Client input is missing or invalid."""

    kind = "BadRequest"
    status_code = 400
    public_message = "Missing or invalid 'message' in request body"


class MisconfiguredError(ChatGatewayError):
    """The deployment lacks something required, e.g. the provider credential."""

    kind = "Misconfigured"
    status_code = 500
    public_message = "AI key not configured on server"


class UpstreamError(ChatGatewayError):
    """Base class for failures attributed to the upstream provider."""

    kind = "UpstreamError"
    status_code = 502
    public_message = UPSTREAM_FAILURE_MESSAGE

    def __init__(self, message: str | None = None, *, detail: str | None = None, attempts: list | None = None) -> None:
        super().__init__(message, detail=detail)
        # set by the retry loop to every attempt made before the error surfaced
        self.attempts = attempts or []

    def to_payload(self) -> dict[str, Any]:
        detail = self.detail if self.detail is not None else self.message
        return {"error": self.public_message, "detail": detail[:DETAIL_LIMIT]}


class UpstreamRejectedError(UpstreamError):
    """Upstream answered with a 4xx status. Never retried."""

    kind = "UpstreamRejected"

    def __init__(self, upstream_status: int, detail: str) -> None:
        super().__init__(f"Upstream {upstream_status}: {detail}", detail=f"Upstream {upstream_status}: {detail}")
        self.upstream_status = upstream_status


class UpstreamMalformedError(UpstreamError):
    """Upstream answered with something that is not a JSON document."""

    kind = "UpstreamMalformed"


class UpstreamUnavailableError(UpstreamError):
    """Every attempt failed with a transient error."""

    kind = "UpstreamUnavailable"

    def __init__(self, message: str, *, attempts: list | None = None) -> None:
        super().__init__(message, detail=message, attempts=attempts)


class RetryableUpstreamError(Exception):
    """Transient upstream failure (5xx, timeout, transport error).

    Raised by a single provider attempt and consumed by the retry loop;
    it never reaches the handler layer.
    """

    def __init__(self, reason: str, *, upstream_status: int | None = None) -> None:
        super().__init__(reason)
        self.reason = reason
        self.upstream_status = upstream_status
