import json
import logging
from typing import Any

from fastapi import FastAPI, Request, WebSocket, WebSocketDisconnect, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from chat_gateway.config import Settings, configure_logging, settings
from chat_gateway.dto import (
    AskRequest,
    AskResponse,
    CacheClearResponse,
    ErrorResponse,
    HealthCheckResponse,
    UpstreamErrorResponse,
)
from chat_gateway.errors import BadRequestError
from chat_gateway.protocols import ChatProvider, ReplyCache
from chat_gateway.services import RetryingCaller

from .dependencies import HandlerDep, HubDep, make_lifespan

logger = logging.getLogger(__name__)

API_NAME = "Citipulse Chat Gateway"
API_VERSION = "0.1.0"

# No Content-Security-Policy: /docs loads its assets from a CDN
SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "no-referrer",
    "Strict-Transport-Security": "max-age=15552000; includeSubDomains",
    "Cross-Origin-Opener-Policy": "same-origin",
    "Cross-Origin-Resource-Policy": "same-origin",
    "X-DNS-Prefetch-Control": "off",
    "X-Permitted-Cross-Domain-Policies": "none",
    "X-XSS-Protection": "0",
}


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Attach SECURITY_HEADERS to every HTTP response."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            response.headers[name] = value
        return response


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Answer malformed request bodies with 400 and a stable error field."""
    logger.info("Rejected request to %s: %s", request.url.path, exc.errors())
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": BadRequestError.public_message},
    )


def create_app(
    config: Settings | None = None,
    provider: ChatProvider | None = None,
    cache: ReplyCache | None = None,
    retrying_caller: RetryingCaller | None = None,
) -> FastAPI:
    """Build the FastAPI application.

    Args:
        config: Settings to build from. Defaults to the global settings.
        provider: Upstream provider override.
        cache: Reply cache override.
        retrying_caller: Retry loop override.

    Returns:
        The configured application
    """
    config = config or settings

    app = FastAPI(
        title=API_NAME,
        description="Resilient chat assistant gateway for the Citipulse civic issue platform",
        version=API_VERSION,
        lifespan=make_lifespan(config, provider=provider, cache=cache, retrying_caller=retrying_caller),
    )

    app.add_middleware(
        CORSMiddleware,  # type: ignore[arg-type]
        allow_origins=config.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(SecurityHeadersMiddleware)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_error_handler)  # type: ignore[arg-type]

    @app.get("/")
    async def root() -> dict[str, Any]:
        """Root endpoint with API information."""
        return {
            "name": API_NAME,
            "version": API_VERSION,
            "status": "running",
            "endpoints": {
                "ask": "/api/ask",
                "cache": "/api/cache",
                "stats": "/stats",
                "health": "/health",
                "chat": "/ws/chat",
                "docs": "/docs",
            },
        }

    @app.get("/health", response_model=HealthCheckResponse)
    async def health(handler: HandlerDep) -> HealthCheckResponse:
        """Health check endpoint."""
        return await handler.health_check()

    @app.post(
        "/api/ask",
        response_model=AskResponse,
        responses={
            400: {"model": ErrorResponse},
            500: {"model": ErrorResponse},
            502: {"model": UpstreamErrorResponse},
        },
    )
    async def ask(request: AskRequest, handler: HandlerDep) -> AskResponse | JSONResponse:
        """Ask the chat assistant a question."""
        return await handler.ask(request)

    @app.delete("/api/cache", response_model=CacheClearResponse)
    async def clear_cache(handler: HandlerDep) -> CacheClearResponse:
        """Clear all cached replies."""
        return await handler.clear_cache()

    @app.get("/stats", response_model=dict[str, Any])
    async def get_stats(handler: HandlerDep) -> dict[str, Any]:
        """Get cache and performance statistics."""
        return await handler.get_stats()

    @app.get("/stats/reset", response_model=dict[str, str])
    async def reset_stats(handler: HandlerDep) -> dict[str, str]:
        """Reset performance metrics."""
        return await handler.reset_stats()

    @app.websocket("/ws/chat")
    async def chat_socket(websocket: WebSocket, hub: HubDep) -> None:
        """Broadcast every received message to all connected clients."""
        connection_id = await hub.connect(websocket)
        try:
            while True:
                text = await websocket.receive_text()
                try:
                    payload: Any = json.loads(text)
                except json.JSONDecodeError:
                    payload = text
                await hub.broadcast(payload)
        except WebSocketDisconnect:
            pass
        finally:
            hub.disconnect(connection_id)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    configure_logging()
    uvicorn.run(
        "chat_gateway.api.app:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
    )
