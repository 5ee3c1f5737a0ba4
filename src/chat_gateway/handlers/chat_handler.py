"""HTTP handlers for chat operations.

Handlers convert between DTOs (API contracts) and service calls.
They handle HTTP concerns like status codes, validation, and error handling.
"""

import logging

from fastapi import HTTPException, status
from fastapi.responses import JSONResponse

from chat_gateway.dto import AskRequest, AskResponse, CacheClearResponse, HealthCheckResponse
from chat_gateway.errors import DETAIL_LIMIT, UPSTREAM_FAILURE_MESSAGE, ChatGatewayError
from chat_gateway.services import ChatService

logger = logging.getLogger(__name__)


class ChatHandler:
    """HTTP handlers for chat operations.

    This handler delegates business logic to ChatService
    and handles HTTP-specific concerns like:
    - Converting entities to DTOs
    - Mapping gateway errors to status codes and JSON error bodies

    Example:
        ```python
        handler = ChatHandler(chat_service=service)

        @app.post("/api/ask", response_model=AskResponse)
        async def ask(request: AskRequest):
            return await handler.ask(request)
        ```
    """

    def __init__(self, chat_service: ChatService) -> None:
        """Initialize the chat handler.

        Args:
            chat_service: The chat service for business logic (required).
        """
        self._chat = chat_service

    async def ask(self, request: AskRequest) -> AskResponse | JSONResponse:
        """Handle POST /api/ask requests.

        Args:
            request: The ask request DTO

        Returns:
            AskResponse on success, a JSON error response otherwise
        """
        try:
            result = await self._chat.handle_chat_request(request.message)
        except ChatGatewayError as e:
            return JSONResponse(status_code=e.status_code, content=e.to_payload())
        except Exception as e:
            logger.exception("Chat request failed unexpectedly")
            return JSONResponse(
                status_code=status.HTTP_502_BAD_GATEWAY,
                content={"error": UPSTREAM_FAILURE_MESSAGE, "detail": str(e)[:DETAIL_LIMIT]},
            )

        return AskResponse(reply=result.reply)

    async def get_stats(self) -> dict:
        """Handle GET /stats requests.

        Raises:
            HTTPException: If an error occurs while fetching stats
        """
        try:
            return self._chat.get_stats()
        except Exception as e:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Failed to get stats: {e}",
            ) from e

    async def reset_stats(self) -> dict:
        """Handle GET /stats/reset requests."""
        self._chat.reset_metrics()
        return {"message": "Performance metrics reset"}

    async def clear_cache(self) -> CacheClearResponse:
        """Handle DELETE /api/cache requests.

        Raises:
            HTTPException: If the cache backend fails
        """
        try:
            count = self._chat.clear_cache()
        except Exception as e:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Failed to clear cache: {e}",
            ) from e

        return CacheClearResponse(
            success=True,
            deleted_count=count,
            message="Cache cleared successfully",
        )

    async def health_check(self) -> HealthCheckResponse:
        """Handle GET /health requests."""
        is_healthy = self._chat.is_healthy()

        return HealthCheckResponse(
            status="healthy" if is_healthy else "unhealthy",
            cache_healthy=is_healthy,
            provider_configured=self._chat.provider_configured,
        )
