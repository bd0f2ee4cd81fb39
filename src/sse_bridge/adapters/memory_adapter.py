"""
In-memory adapter for the SSE Bridge.

This adapter is primarily used for:
- Local development without a running broker
- Unit testing of the connector, including simulated transport failures

Messages published while the adapter is not subscribed are dropped, exactly
like messages published on a real broker while the bridge is disconnected.
"""
import asyncio
import logging

from .base import BrokerAdapter, SubscriptionError

logger = logging.getLogger(__name__)


class MemoryAdapter(BrokerAdapter):
    """
    In-process broker connection for development and testing.

    Features:
    - NATS-style wildcard subjects ("*" one token, ">" the remaining tokens)
    - Failure injection: ``fail()`` breaks the live connection,
      ``connect_failures`` makes the next connection attempts fail
    - Non-message events via ``ping()``
    """

    def __init__(self, connect_failures: int = 0):
        self.connect_failures = connect_failures
        self.connect_count = 0
        self.subscribe_count = 0
        self._connected = False
        self._pattern: str | None = None
        self._queue: asyncio.Queue | None = None
        self._subscribed = asyncio.Event()

    async def connect(self) -> None:
        """Open a fresh in-memory connection."""
        if self.connect_failures > 0:
            self.connect_failures -= 1
            raise ConnectionError("Memory broker refused the connection")

        self._queue = asyncio.Queue()
        self._connected = True
        self.connect_count += 1
        logger.info(f"Memory adapter connected (connection #{self.connect_count})")

    async def disconnect(self) -> None:
        """Drop the connection and anything still queued on it."""
        self._connected = False
        self._pattern = None
        self._queue = None
        self._subscribed.clear()
        logger.info("Memory adapter disconnected")

    async def subscribe(self, topic: str) -> None:
        if not self._connected:
            raise ConnectionError("Memory adapter not connected")
        if not topic:
            raise SubscriptionError("Topic must not be empty")

        self._pattern = topic
        self.subscribe_count += 1
        self._subscribed.set()
        logger.info(f"Subscribed to {topic}")

    async def poll(self) -> bytes | None:
        if not self._connected or self._queue is None:
            raise ConnectionError("Memory adapter not connected")

        queue = self._queue
        item = await queue.get()
        if isinstance(item, BaseException):
            self._connected = False
            self._subscribed.clear()
            raise item
        return item

    @property
    def is_connected(self) -> bool:
        return self._connected

    @property
    def is_subscribed(self) -> bool:
        return self._subscribed.is_set()

    async def wait_subscribed(self) -> None:
        """Wait until a connection has an active subscription."""
        await self._subscribed.wait()

    def publish(self, topic: str, payload: bytes | str) -> bool:
        """
        Publish a message on the in-memory broker.

        Returns:
            True if the message was delivered to the live subscription
        """
        if isinstance(payload, str):
            payload = payload.encode("utf-8")

        if self._queue is None or self._pattern is None:
            logger.debug(f"No subscription, dropping message for {topic}")
            return False
        if not self._pattern_matches(self._pattern, topic):
            return False

        self._queue.put_nowait(payload)
        return True

    def ping(self) -> None:
        """Emit a non-message protocol event on the live connection."""
        if self._queue is not None:
            self._queue.put_nowait(None)

    def fail(self, error: BaseException | None = None) -> None:
        """Break the live connection; the next poll raises ``error``."""
        if self._queue is None:
            return
        self._queue.put_nowait(error or ConnectionError("Memory broker connection lost"))

    def _pattern_matches(self, pattern: str, topic: str) -> bool:
        """
        Check if a subscription pattern matches a topic.

        Examples:
            "sensors.*" matches "sensors.a" but not "sensors.a.b"
            "sensors.>" matches "sensors.a" and "sensors.a.b"
        """
        if pattern == topic:
            return True

        pattern_parts = pattern.split(".")
        topic_parts = topic.split(".")

        if pattern_parts[-1] == ">":
            prefix = pattern_parts[:-1]
            if len(topic_parts) <= len(prefix):
                return False
            return all(p == "*" or p == t for p, t in zip(prefix, topic_parts))

        if len(pattern_parts) != len(topic_parts):
            return False

        return all(p == "*" or p == t for p, t in zip(pattern_parts, topic_parts))
