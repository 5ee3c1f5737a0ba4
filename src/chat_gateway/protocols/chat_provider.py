"""Chat provider protocol.

Defines the interface for the upstream chat-completion API the gateway
delegates text generation to.
"""

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class ChatProvider(Protocol):
    """Protocol for upstream chat-completion providers.

    ``chat`` performs exactly ONE attempt and classifies its outcome:

    - returns the parsed JSON body on success
    - raises RetryableUpstreamError on transient failures (5xx, transport errors)
    - raises UpstreamRejectedError / UpstreamMalformedError on fatal failures

    Retrying, backoff and the per-attempt timeout belong to the caller.
    """

    @property
    def is_configured(self) -> bool:
        """Return True when a credential is available."""
        ...

    @property
    def model_name(self) -> str:
        """Return the model identifier sent upstream."""
        ...

    async def chat(self, message: str) -> Any:
        """Send a single chat request.

        Args:
            message: The user's query, as received

        Returns:
            The decoded JSON response body
        """
        ...

    async def close(self) -> None:
        """Release network resources."""
        ...
