"""Shared fixtures for DCE client tests."""

import asyncio
import json

import pytest

from dce_client.client import AsyncDCEClient
from dce_client.config import ClientConfig
from dce_client.engine import CorrelationEngine
from dce_client.types import ConnectionState

TEST_URL = "ws://localhost:8000/dce/"
FAST_INTERVAL = 0.01


class FakeTransport:
    """In-memory stand-in for ConnectionManager."""

    def __init__(self) -> None:
        self.state = ConnectionState.IDLE
        self.sent: list[str] = []
        self.send_ok = True
        self.on_message = None
        self.on_open = None
        self.on_close = None
        self.on_error = None

    async def connect(self) -> None:
        self.open()

    async def close(self) -> None:
        self.state = ConnectionState.CLOSED

    async def send(self, data: str) -> bool:
        if self.state != ConnectionState.OPEN or not self.send_ok:
            return False
        self.sent.append(data)
        return True

    def open(self) -> None:
        self.state = ConnectionState.OPEN

    def deliver(self, message) -> None:
        raw = message if isinstance(message, (str, bytes)) else json.dumps(message)
        self.on_message(raw)

    def sent_messages(self) -> list[dict]:
        return [json.loads(s) for s in self.sent]


def manifest_message(actions=None, version="1.0"):
    if actions is None:
        actions = [{"name": "a.b", "type": "rpc"}, {"name": "c", "type": "fire"}]
    return {
        "msg_type": "service",
        "status": "ok",
        "data": {"actions": actions, "version": version},
    }


async def wait_for_sent(transport: FakeTransport, count: int, timeout: float = 1.0) -> None:
    async def _poll():
        while len(transport.sent) < count:
            await asyncio.sleep(0.001)

    await asyncio.wait_for(_poll(), timeout=timeout)


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def engine(transport):
    return CorrelationEngine(transport, connect_interval=FAST_INTERVAL)


@pytest.fixture
def config():
    return ClientConfig(
        url=TEST_URL,
        connect_interval=FAST_INTERVAL,
        ready_interval=FAST_INTERVAL,
    )


@pytest.fixture
def client(config, transport):
    return AsyncDCEClient(config=config, transport=transport)
