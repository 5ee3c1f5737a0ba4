"""
Tests for the chat service: validation, caching and upstream resolution.
"""

import pytest

from chat_gateway.entities import CacheEntryEntity
from chat_gateway.errors import (
    BadRequestError,
    MisconfiguredError,
    RetryableUpstreamError,
    UpstreamMalformedError,
    UpstreamRejectedError,
    UpstreamUnavailableError,
)
from chat_gateway.services import normalize_query

from .conftest import ScriptedProvider


def test_normalize_query():
    assert normalize_query("  Hello World  ") == "hello world"
    assert normalize_query("STRASSE") == normalize_query("straße")


@pytest.mark.parametrize("message", ["", None, 42, ["hi"], {"text": "hi"}])
async def test_invalid_message_is_rejected_without_upstream_call(make_service, message):
    provider = ScriptedProvider()
    service = make_service(provider)

    with pytest.raises(BadRequestError):
        await service.handle_chat_request(message)

    assert provider.calls == 0


async def test_miss_resolves_upstream_and_populates_cache(make_service, cache, clock):
    provider = ScriptedProvider([{"text": "Call the city hotline."}])
    service = make_service(provider)

    result = await service.handle_chat_request("Who fixes potholes?")

    assert result.reply == "Call the city hotline."
    assert result.cached is False
    assert result.attempts == 1
    assert provider.messages == ["Who fixes potholes?"]
    assert cache.get("who fixes potholes?") == CacheEntryEntity(
        reply="Call the city hotline.",
        expires_at=clock.now + 30,
    )


async def test_live_cache_hit_skips_upstream(make_service, cache, clock):
    cache.set("hello", CacheEntryEntity(reply="cached hi", expires_at=clock.now + 5))
    provider = ScriptedProvider()
    service = make_service(provider)

    result = await service.handle_chat_request("hello")

    assert result.reply == "cached hi"
    assert result.cached is True
    assert provider.calls == 0


async def test_expired_entry_triggers_fresh_resolution(make_service, cache, clock):
    cache.set("hello", CacheEntryEntity(reply="stale", expires_at=clock.now))
    provider = ScriptedProvider([{"text": "fresh"}])
    service = make_service(provider)

    result = await service.handle_chat_request("hello")

    assert result.reply == "fresh"
    assert provider.calls == 1
    assert cache.get("hello").reply == "fresh"


async def test_normalized_queries_share_a_cache_entry(make_service):
    provider = ScriptedProvider([{"text": "Hi there"}])
    service = make_service(provider)

    first = await service.handle_chat_request("  Hello World  ")
    second = await service.handle_chat_request("hello world")

    assert first.cached is False
    assert second.cached is True
    assert second.reply == "Hi there"
    assert provider.calls == 1


async def test_entry_expires_after_ttl(make_service, clock):
    provider = ScriptedProvider([{"text": "one"}, {"text": "two"}])
    service = make_service(provider)

    await service.handle_chat_request("q")
    clock.advance(29)
    assert (await service.handle_chat_request("q")).reply == "one"
    clock.advance(1)
    assert (await service.handle_chat_request("q")).reply == "two"
    assert provider.calls == 2


async def test_missing_credential_fails_without_upstream_call(make_service):
    provider = ScriptedProvider(configured=False)
    service = make_service(provider)

    with pytest.raises(MisconfiguredError):
        await service.handle_chat_request("hi")

    assert provider.calls == 0


async def test_cache_hit_is_served_even_without_credential(make_service, cache, clock):
    cache.set("hi", CacheEntryEntity(reply="cached", expires_at=clock.now + 10))
    service = make_service(ScriptedProvider(configured=False))

    assert (await service.handle_chat_request("hi")).reply == "cached"


async def test_transient_failures_then_success(make_service, sleep, clock):
    provider = ScriptedProvider(
        [
            RetryableUpstreamError("Server error 500", upstream_status=500),
            RetryableUpstreamError("Server error 500", upstream_status=500),
            {"generations": [{"text": "foo"}]},
        ]
    )
    service = make_service(provider)
    started = clock.now

    result = await service.handle_chat_request("retry me")

    assert result.reply == "foo"
    assert result.attempts == 3
    assert provider.calls == 3
    assert len(sleep.delays) == 2
    assert clock.now - started >= sum(sleep.delays)


async def test_rejection_is_not_retried_or_cached(make_service, sleep, cache):
    provider = ScriptedProvider([UpstreamRejectedError(429, "rate limited")])
    service = make_service(provider)

    with pytest.raises(UpstreamRejectedError):
        await service.handle_chat_request("hi")

    assert provider.calls == 1
    assert sleep.delays == []
    assert cache.count_all() == 0


async def test_malformed_response_surfaces(make_service):
    provider = ScriptedProvider([UpstreamMalformedError("Non-JSON response from upstream")])
    service = make_service(provider)

    with pytest.raises(UpstreamMalformedError):
        await service.handle_chat_request("hi")


async def test_exhausted_retries(make_service, sleep):
    provider = ScriptedProvider([RetryableUpstreamError("Server error 503")] * 4)
    service = make_service(provider)

    with pytest.raises(UpstreamUnavailableError) as exc_info:
        await service.handle_chat_request("hi")

    assert provider.calls == 4
    assert len(sleep.delays) == 3
    assert exc_info.value.to_payload() == {
        "error": "AI service temporarily unavailable. Please try again in a few seconds.",
        "detail": "Server error 503",
    }


async def test_failed_resolution_counts_every_attempt(make_service):
    provider = ScriptedProvider([RetryableUpstreamError("Server error 503")] * 4)
    service = make_service(provider)

    with pytest.raises(UpstreamUnavailableError):
        await service.handle_chat_request("hi")

    performance = service.get_stats()["performance"]
    assert performance["upstream_calls"] == 1
    assert performance["upstream_attempts"] == 4
    assert performance["avg_upstream_time_ms"] >= 0
    assert performance["failures"] == {"UpstreamUnavailable": 1}


async def test_fatal_error_after_retry_counts_both_attempts(make_service):
    provider = ScriptedProvider(
        [
            RetryableUpstreamError("Server error 502", upstream_status=502),
            UpstreamMalformedError("Non-JSON response from upstream"),
        ]
    )
    service = make_service(provider)

    with pytest.raises(UpstreamMalformedError) as exc_info:
        await service.handle_chat_request("hi")

    assert len(exc_info.value.attempts) == 2
    performance = service.get_stats()["performance"]
    assert performance["upstream_calls"] == 1
    assert performance["upstream_attempts"] == 2


async def test_stats_track_hits_misses_and_failures(make_service):
    provider = ScriptedProvider([{"text": "a"}, UpstreamRejectedError(401, "invalid api token")])
    service = make_service(provider)

    await service.handle_chat_request("one")
    await service.handle_chat_request("ONE")
    with pytest.raises(UpstreamRejectedError):
        await service.handle_chat_request("two")

    stats = service.get_stats()
    performance = stats["performance"]
    assert performance["total_queries"] == 3
    assert performance["cache_hits"] == 1
    assert performance["cache_misses"] == 2
    assert performance["upstream_calls"] == 2
    assert performance["upstream_attempts"] == 2
    assert performance["failures"] == {"UpstreamRejected": 1}
    assert stats["cache"]["backend"] == "memory"
    assert stats["cache"]["total_entries"] == 1
    assert stats["cache"]["ttl_seconds"] == 30

    service.reset_metrics()
    assert service.get_stats()["performance"]["total_queries"] == 0


async def test_clear_cache(make_service):
    service = make_service(ScriptedProvider([{"text": "a"}, {"text": "b"}]))
    await service.handle_chat_request("a")
    await service.handle_chat_request("b")

    assert service.clear_cache() == 2
    assert service.cache.count_all() == 0
