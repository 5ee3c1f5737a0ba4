"""Cohere-based chat provider.

Talks to Cohere's chat endpoint (``POST /v1/chat``) with bearer-token auth
and a ``{"model", "message"}`` JSON body. Any provider speaking the same
request shape can be used by pointing ``CHAT_PROVIDER_URL`` at it.

Each call to ``chat`` is a single attempt. The response is classified
before it is parsed:

- 5xx or a transport failure   -> RetryableUpstreamError
- 4xx                          -> UpstreamRejectedError (never retried)
- non-JSON content type        -> UpstreamMalformedError (body is not parsed)
- 2xx + JSON content type      -> decoded body
"""

import json
import logging
from typing import Any

import httpx

from chat_gateway.config import settings
from chat_gateway.errors import RetryableUpstreamError, UpstreamMalformedError, UpstreamRejectedError

logger = logging.getLogger(__name__)


def is_json_content_type(content_type: str) -> bool:
    """Check a Content-Type header value for a JSON media type."""
    media_type = content_type.split(";", 1)[0].strip().lower()
    return media_type == "application/json" or media_type.endswith("+json")


def _rejection_detail(response: httpx.Response) -> str:
    """Pull a human-readable error out of a 4xx body."""
    text = response.text
    try:
        body = json.loads(text or "{}")
    except json.JSONDecodeError:
        return text
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return json.dumps(body)


class CohereChatProvider:
    """Cohere implementation of ChatProvider protocol.

    This class satisfies the ChatProvider protocol through structural
    typing - no explicit inheritance needed.

    Example:
        ```python
        provider = CohereChatProvider.create(api_key="...")
        body = await provider.chat("Where do I report a broken streetlight?")
        ```
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        model_name: str | None = None,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the Cohere chat provider.

        Args:
            api_key: Bearer credential. Defaults to settings.cohere_api_key.
            base_url: Full chat endpoint URL. Defaults to settings.chat_provider_url.
            model_name: Model sent upstream. Defaults to settings.chat_model.
            timeout: HTTP timeout in seconds. Defaults to settings.upstream_timeout_ms.
            client: Pre-built HTTP client (tests inject one).
        """
        self._api_key = api_key if api_key is not None else settings.cohere_api_key
        self._url = base_url or settings.chat_provider_url
        self._model_name = model_name or settings.chat_model
        self._timeout = timeout if timeout is not None else settings.upstream_timeout_ms / 1000
        self._client = client

    @classmethod
    def create(
        cls,
        api_key: str | None = None,
        base_url: str | None = None,
        model_name: str | None = None,
    ) -> "CohereChatProvider":
        """Factory method to create CohereChatProvider with defaults.

        Args:
            api_key: Bearer credential. If None, uses settings.
            base_url: Chat endpoint URL. If None, uses settings.
            model_name: Model name. If None, uses settings.

        Returns:
            Configured CohereChatProvider
        """
        return cls(api_key=api_key, base_url=base_url, model_name=model_name)

    @property
    def client(self) -> httpx.AsyncClient:
        """Lazy-load the async HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._timeout,
                follow_redirects=True,
                limits=httpx.Limits(max_connections=100, max_keepalive_connections=20),
            )
        return self._client

    @property
    def is_configured(self) -> bool:
        return bool(self._api_key and self._api_key.strip())

    @property
    def model_name(self) -> str:
        return self._model_name

    @property
    def url(self) -> str:
        return self._url

    async def chat(self, message: str) -> Any:
        """Send one chat request and classify the response.

        Args:
            message: The user's query

        Returns:
            The decoded JSON body

        Raises:
            RetryableUpstreamError: On 5xx responses and transport failures
            UpstreamRejectedError: On 4xx responses
            UpstreamMalformedError: On non-JSON or undecodable bodies
        """
        try:
            response = await self.client.post(
                self._url,
                headers={
                    "Authorization": f"Bearer {self._api_key}",
                    "Content-Type": "application/json",
                },
                json={"model": self._model_name, "message": message},
            )
        except httpx.TransportError as e:
            raise RetryableUpstreamError(f"{type(e).__name__}: {e}") from e

        status = response.status_code

        if 500 <= status < 600:
            raise RetryableUpstreamError(
                f"Server error {status}: {response.text[:200]}",
                upstream_status=status,
            )

        if 400 <= status < 500:
            raise UpstreamRejectedError(status, _rejection_detail(response))

        content_type = response.headers.get("content-type", "")
        if not is_json_content_type(content_type):
            raise UpstreamMalformedError(
                f"Non-JSON response from upstream (status {status}, content-type "
                f"{content_type or 'missing'}): {response.text[:500]}"
            )

        if not 200 <= status < 300:
            raise UpstreamMalformedError(f"Unexpected upstream status {status}")

        try:
            return response.json()
        except ValueError as e:
            raise UpstreamMalformedError(f"Undecodable JSON from upstream (status {status}): {e}") from e

    async def close(self) -> None:
        """Close the async HTTP client.

        Should be called when shutting down the application.
        """
        if self._client is not None:
            await self._client.aclose()
            self._client = None
