"""
Tests for the Cohere chat provider's single-attempt classification.
"""

import json

import httpx
import pytest
import respx

from chat_gateway.errors import RetryableUpstreamError, UpstreamMalformedError, UpstreamRejectedError
from chat_gateway.repositories import CohereChatProvider
from chat_gateway.repositories.cohere_chat_provider import is_json_content_type

URL = "https://chat.test/v1/chat"


@pytest.fixture
async def provider():
    provider = CohereChatProvider(api_key="secret", base_url=URL, model_name="command-test", timeout=1.0)
    yield provider
    await provider.close()


@respx.mock
async def test_success_returns_decoded_body(provider):
    route = respx.post(URL).mock(return_value=httpx.Response(200, json={"text": "Hello"}))

    body = await provider.chat("Hi there")

    assert body == {"text": "Hello"}
    request = route.calls.last.request
    assert request.headers["Authorization"] == "Bearer secret"
    assert json.loads(request.content) == {"model": "command-test", "message": "Hi there"}


@respx.mock
async def test_server_error_is_retryable(provider):
    respx.post(URL).mock(return_value=httpx.Response(503, text="upstream overloaded"))

    with pytest.raises(RetryableUpstreamError) as exc_info:
        await provider.chat("hi")

    assert exc_info.value.upstream_status == 503
    assert "Server error 503: upstream overloaded" in exc_info.value.reason


@respx.mock
async def test_transport_error_is_retryable(provider):
    respx.post(URL).mock(side_effect=httpx.ConnectError("connection refused"))

    with pytest.raises(RetryableUpstreamError) as exc_info:
        await provider.chat("hi")

    assert "ConnectError" in exc_info.value.reason


@respx.mock
async def test_client_error_uses_json_message(provider):
    respx.post(URL).mock(return_value=httpx.Response(429, json={"message": "rate limit exceeded"}))

    with pytest.raises(UpstreamRejectedError) as exc_info:
        await provider.chat("hi")

    error = exc_info.value
    assert error.upstream_status == 429
    assert error.detail == "Upstream 429: rate limit exceeded"


@respx.mock
async def test_client_error_with_text_body(provider):
    respx.post(URL).mock(return_value=httpx.Response(401, text="unauthorized"))

    with pytest.raises(UpstreamRejectedError) as exc_info:
        await provider.chat("hi")

    assert exc_info.value.detail == "Upstream 401: unauthorized"


@respx.mock
async def test_html_success_is_malformed(provider):
    respx.post(URL).mock(
        return_value=httpx.Response(
            200,
            text="<html><body>Bad Gateway</body></html>",
            headers={"content-type": "text/html"},
        )
    )

    with pytest.raises(UpstreamMalformedError) as exc_info:
        await provider.chat("hi")

    assert "Non-JSON response" in exc_info.value.message
    assert "text/html" in exc_info.value.message


@respx.mock
async def test_invalid_json_body_is_malformed(provider):
    respx.post(URL).mock(
        return_value=httpx.Response(200, text="{not json", headers={"content-type": "application/json"})
    )

    with pytest.raises(UpstreamMalformedError):
        await provider.chat("hi")


def test_configuration_flags():
    assert CohereChatProvider(api_key="k", base_url=URL).is_configured
    assert not CohereChatProvider(api_key="", base_url=URL).is_configured
    assert not CohereChatProvider(api_key="   ", base_url=URL).is_configured
    assert CohereChatProvider(api_key="k", base_url=URL, model_name="m").model_name == "m"


@pytest.mark.parametrize(
    "content_type, expected",
    [
        ("application/json", True),
        ("application/json; charset=utf-8", True),
        ("application/problem+json", True),
        ("text/html; charset=utf-8", False),
        ("", False),
    ],
)
def test_is_json_content_type(content_type, expected):
    assert is_json_content_type(content_type) is expected
