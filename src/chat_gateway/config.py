import logging
import os
from dataclasses import dataclass
from functools import lru_cache

import redis
from dotenv import load_dotenv

load_dotenv()


@dataclass(frozen=True)
class Settings:
    """Application settings loaded from environment variables."""

    # Upstream chat provider
    cohere_api_key: str | None = os.getenv("COHERE_API_KEY")
    chat_provider_url: str = os.getenv("CHAT_PROVIDER_URL", "https://api.cohere.ai/v1/chat")
    chat_model: str = os.getenv("CHAT_MODEL", "command-a-03-2025")

    # Retry policy
    upstream_timeout_ms: int = int(os.getenv("UPSTREAM_TIMEOUT_MS", "10000"))
    upstream_max_retries: int = int(os.getenv("UPSTREAM_MAX_RETRIES", "3"))
    retry_base_delay_ms: int = int(os.getenv("RETRY_BASE_DELAY_MS", "300"))
    retry_max_jitter_ms: int = int(os.getenv("RETRY_MAX_JITTER_MS", "150"))

    # Reply cache
    cache_backend: str = os.getenv("CACHE_BACKEND", "memory")
    cache_ttl_seconds: float = float(os.getenv("CACHE_TTL_SECONDS", "30"))
    cache_max_entries: int = int(os.getenv("CACHE_MAX_ENTRIES", "1024"))
    cache_key_prefix: str = os.getenv("CACHE_KEY_PREFIX", "chat_reply")

    # Redis
    redis_url: str = os.getenv("REDIS_URL", "redis://localhost:6379")
    redis_password: str | None = os.getenv("REDIS_PASSWORD")

    # API
    api_host: str = os.getenv("API_HOST", "0.0.0.0")
    api_port: int = int(os.getenv("PORT", "5000"))
    api_reload: bool = os.getenv("API_RELOAD", "false").lower() == "true"
    cors_allow_origins: str = os.getenv("CORS_ALLOW_ORIGINS", "*")

    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    @property
    def has_provider_credential(self) -> bool:
        """Check whether an upstream API key is configured.

        Returns:
            True if a non-blank key is set, False otherwise
        """
        return bool(self.cohere_api_key and self.cohere_api_key.strip())

    @property
    def allowed_origins(self) -> list[str]:
        """Split CORS_ALLOW_ORIGINS into a list of origins."""
        return [origin.strip() for origin in self.cors_allow_origins.split(",") if origin.strip()]

    def __post_init__(self) -> None:
        """Validate settings after initialization."""
        if self.upstream_timeout_ms <= 0:
            raise ValueError("UPSTREAM_TIMEOUT_MS must be positive")

        if self.upstream_max_retries < 0:
            raise ValueError("UPSTREAM_MAX_RETRIES must not be negative")

        if self.retry_base_delay_ms < 0 or self.retry_max_jitter_ms < 0:
            raise ValueError("RETRY_BASE_DELAY_MS and RETRY_MAX_JITTER_MS must not be negative")

        if self.cache_ttl_seconds <= 0:
            raise ValueError("CACHE_TTL_SECONDS must be positive")

        if self.cache_max_entries < 0:
            raise ValueError("CACHE_MAX_ENTRIES must not be negative")

        if self.cache_backend not in ("memory", "redis"):
            raise ValueError(f"CACHE_BACKEND must be one of ['memory', 'redis'], got {self.cache_backend}")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()


def get_redis_client(config: Settings | None = None) -> redis.Redis:
    """Create a Redis client instance."""
    config = config or settings
    return redis.from_url(
        config.redis_url,
        password=config.redis_password,
        decode_responses=True,
    )


def configure_logging(level: str | None = None) -> None:
    """Install a single timestamped stream handler on the root logger."""
    logging.basicConfig(
        level=(level or settings.log_level).upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        force=True,
    )
