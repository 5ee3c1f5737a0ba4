"""
Tests for the realtime chat broadcast channel.
"""

import pytest
from fastapi.testclient import TestClient

from chat_gateway.api.app import create_app
from chat_gateway.repositories import MemoryReplyCache

from .conftest import ScriptedProvider


@pytest.fixture
def client(test_settings):
    app = create_app(config=test_settings, provider=ScriptedProvider(), cache=MemoryReplyCache())
    with TestClient(app) as client:
        yield client


def test_message_is_echoed_to_sender(client):
    with client.websocket_connect("/ws/chat") as ws:
        ws.send_json({"user": "ana", "text": "Streetlight out on 5th"})
        assert ws.receive_json() == {
            "event": "receive_message",
            "data": {"user": "ana", "text": "Streetlight out on 5th"},
        }


def test_message_fans_out_to_all_clients(client):
    with client.websocket_connect("/ws/chat") as first:
        # each client's own echo proves it is registered before the next step
        first.send_json({"text": "join 1"})
        assert first.receive_json()["data"] == {"text": "join 1"}

        with client.websocket_connect("/ws/chat") as second:
            second.send_json({"text": "join 2"})
            assert second.receive_json()["data"] == {"text": "join 2"}
            assert first.receive_json()["data"] == {"text": "join 2"}

            first.send_json({"text": "hello"})
            assert first.receive_json()["data"] == {"text": "hello"}
            assert second.receive_json()["data"] == {"text": "hello"}


def test_plain_text_is_broadcast_as_string(client):
    with client.websocket_connect("/ws/chat") as ws:
        ws.send_text("not json")
        assert ws.receive_json() == {"event": "receive_message", "data": "not json"}


def test_disconnect_removes_connection(client):
    hub = client.app.state.broadcast_hub
    with client.websocket_connect("/ws/chat") as ws:
        ws.send_json({"text": "ping"})
        ws.receive_json()
        assert hub.connection_count == 1

    with client.websocket_connect("/ws/chat") as ws:
        ws.send_json({"text": "ping"})
        ws.receive_json()
        assert hub.connection_count == 1
