"""Shared fixtures for presence relay tests."""

import json

import pytest
from fastapi.testclient import TestClient
from loguru import logger
from starlette.websockets import WebSocketState

from presence_relay.server.main import create_app
from presence_relay.server.relay_hub import RelayHub
from presence_relay.shared.config import Settings


class FakeSocket:
    """Stands in for a WebSocket: records every decoded frame sent to it."""

    def __init__(self, fail: bool = False, state: WebSocketState = WebSocketState.CONNECTED):
        self.sent = []
        self.fail = fail
        self.client_state = state
        self.application_state = WebSocketState.CONNECTED

    async def send_text(self, data: str) -> None:
        if self.fail:
            raise RuntimeError("socket gone")
        self.sent.append(json.loads(data))


def presence(user_id, availability="Busy", activity=None):
    resource = {"id": user_id}
    if availability is not None:
        resource["availability"] = availability
    if activity is not None:
        resource["activity"] = activity
    return {"resourceData": resource}


@pytest.fixture
def hub():
    return RelayHub(recent_limit=5)


@pytest.fixture
def test_settings():
    # Heartbeat far enough out that it never fires during a test
    return Settings(_env_file=None, HEARTBEAT_INTERVAL_S=3600, LOG_LEVEL="DEBUG")


@pytest.fixture
def app(test_settings):
    return create_app(test_settings)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def log_lines(client):
    """Loguru messages emitted after the app's lifespan has configured logging."""
    lines = []
    sink_id = logger.add(lambda message: lines.append(message.record["message"]), level="DEBUG")
    yield lines
    logger.remove(sink_id)
