"""Shared fixtures and fakes for chat gateway tests."""

import random
from typing import Any

import pytest

from chat_gateway.config import Settings
from chat_gateway.repositories import MemoryReplyCache
from chat_gateway.services import ChatService, RetryingCaller, RetryPolicy


class FakeClock:
    """Manually advanced Unix clock."""

    def __init__(self, start: float = 0.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingSleep:
    """Async sleep replacement that records delays and advances a FakeClock."""

    def __init__(self, clock: FakeClock | None = None) -> None:
        self.delays: list[float] = []
        self._clock = clock

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        if self._clock is not None:
            self._clock.advance(delay)


class ScriptedProvider:
    """ChatProvider fake that plays back a script of bodies and exceptions."""

    def __init__(self, script: list[Any] | None = None, configured: bool = True) -> None:
        self.script = list(script or [])
        self.configured = configured
        self.messages: list[str] = []
        self.closed = False

    @property
    def is_configured(self) -> bool:
        return self.configured

    @property
    def model_name(self) -> str:
        return "fake-model"

    async def chat(self, message: str) -> Any:
        self.messages.append(message)
        step = self.script.pop(0)
        if isinstance(step, BaseException):
            raise step
        return step

    async def close(self) -> None:
        self.closed = True

    @property
    def calls(self) -> int:
        return len(self.messages)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sleep(clock: FakeClock) -> RecordingSleep:
    return RecordingSleep(clock)


@pytest.fixture
def cache(clock: FakeClock) -> MemoryReplyCache:
    return MemoryReplyCache(max_entries=0, clock=clock)


@pytest.fixture
def make_service(clock: FakeClock, sleep: RecordingSleep, cache: MemoryReplyCache):
    """Build a ChatService around a ScriptedProvider with deterministic time."""

    def _make(provider: ScriptedProvider, max_retries: int = 3) -> ChatService:
        caller = RetryingCaller(
            RetryPolicy(max_retries=max_retries, base_delay=0.3, max_jitter=0.15, timeout=10.0),
            sleep=sleep,
            rng=random.Random(7),
        )
        return ChatService(
            provider=provider,
            cache=cache,
            retrying_caller=caller,
            ttl=30,
            clock=clock,
        )

    return _make


@pytest.fixture
def test_settings() -> Settings:
    """Settings with a credential and no backoff delay."""
    return Settings(
        cohere_api_key="test-key",
        chat_provider_url="https://chat.test/v1/chat",
        chat_model="command-test",
        upstream_timeout_ms=1000,
        upstream_max_retries=3,
        retry_base_delay_ms=0,
        retry_max_jitter_ms=0,
        cache_backend="memory",
        cache_ttl_seconds=30,
    )
