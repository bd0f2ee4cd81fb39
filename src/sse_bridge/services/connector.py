"""
Upstream connector: keeps exactly one live broker subscription and feeds every
received payload to the fan-out hub.
"""
import asyncio
import logging
from enum import Enum
from typing import Callable

from ..adapters.base import BrokerAdapter

logger = logging.getLogger(__name__)


class ConnectionState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    SUBSCRIBED = "subscribed"
    FAILED = "failed"


def decode_payload(payload: bytes) -> str:
    """Decode a payload as UTF-8, replacing invalid byte sequences."""
    return payload.decode("utf-8", errors="replace")


class UpstreamConnector:
    """
    Drives a ``BrokerAdapter`` through connect -> subscribe -> receive, forever.

    Any error raised while connecting, subscribing or polling abandons the
    connection; the error is logged and the whole cycle starts again after
    ``reconnect_delay`` seconds. There is no backoff.
    """

    def __init__(
        self,
        adapter: BrokerAdapter,
        topic: str,
        sink: Callable[[str], object],
        reconnect_delay: float = 1.0,
    ):
        """
        Args:
            adapter: Broker transport
            topic: Topic to subscribe to
            sink: Called with every decoded message (the hub's publish)
            reconnect_delay: Pause between connection cycles (seconds)
        """
        self._adapter = adapter
        self._topic = topic
        self._sink = sink
        self._reconnect_delay = reconnect_delay
        self._state = ConnectionState.DISCONNECTED
        self.reconnects = 0
        self.messages_received = 0

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def adapter(self) -> BrokerAdapter:
        return self._adapter

    async def run(self) -> None:
        """Run until cancelled."""
        cycle = 0
        while True:
            if cycle > 0:
                self.reconnects += 1
                # sleep(0) still yields when retrying immediately
                await asyncio.sleep(self._reconnect_delay)
            cycle += 1

            try:
                await self._run_once()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                self._set_state(ConnectionState.FAILED)
                logger.error(f"Broker connection failed: {e!r}")
            finally:
                await self._teardown()

            logger.info(f"Reconnecting to broker topic {self._topic}")

    async def _run_once(self) -> None:
        """One connect/subscribe/receive cycle. Only ends by raising."""
        self._set_state(ConnectionState.CONNECTING)
        await self._adapter.connect()
        await self._adapter.subscribe(self._topic)
        self._set_state(ConnectionState.SUBSCRIBED)
        logger.info(f"Subscribed to broker topic {self._topic} via {self._adapter.name}")

        while True:
            payload = await self._adapter.poll()
            if payload is None:
                continue

            data = decode_payload(payload)
            self.messages_received += 1
            logger.debug(data)
            self._sink(data)

    async def _teardown(self) -> None:
        try:
            await self._adapter.disconnect()
        except Exception as e:
            logger.warning(f"Error disconnecting from broker: {e}")
        self._set_state(ConnectionState.DISCONNECTED)

    def _set_state(self, state: ConnectionState) -> None:
        if state != self._state:
            logger.debug(f"Connection state {self._state.value} -> {state.value}")
            self._state = state
