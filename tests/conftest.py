"""
Pytest configuration for SSE Bridge tests.
"""
import asyncio

import pytest

from sse_bridge.adapters import MemoryAdapter
from sse_bridge.core.config import Settings


def make_settings(**sse) -> Settings:
    """Settings for the in-memory broker with immediate reconnects."""
    return Settings(
        sse=sse,
        broker={
            "host": "localhost",
            "port": 4222,
            "client_id": "test-bridge",
            "topic": "sensors.>",
            "adapter": "memory",
            "reconnect_delay": 0,
        },
    )


async def wait_until(predicate, timeout: float = 2.0) -> None:
    """Poll ``predicate`` until it is true or fail after ``timeout`` seconds."""
    async def _wait():
        while not predicate():
            await asyncio.sleep(0.01)
    await asyncio.wait_for(_wait(), timeout)


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def memory_adapter():
    return MemoryAdapter()
