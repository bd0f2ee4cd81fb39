"""
Fan-out hub: one publisher, any number of independent subscribers.

Two implementations share the ``FanoutHub`` interface:

- ``BroadcastHub`` (default): a single bounded ring buffer shared by all
  subscribers. A subscriber that falls more than ``capacity`` messages behind
  gets ``SubscriptionLagged`` and resumes from the oldest retained message.
  Memory use is bounded no matter how many subscribers stall.
- ``QueueHub``: an unbounded queue per subscriber. Nothing is ever skipped, but
  a subscriber that stops reading grows its queue without limit.

Hubs are confined to the event loop they are used on. ``publish``,
``subscribe`` and ``close`` never suspend, so they are atomic with respect to
each other; ``publish`` can be called from synchronous code.
"""
import asyncio
import logging
import weakref
from abc import ABC, abstractmethod
from collections import deque
from typing import AsyncIterator

logger = logging.getLogger(__name__)


class SubscriptionClosed(Exception):
    """Raised by ``recv()`` once a subscription or its hub is closed."""
    pass


class SubscriptionLagged(Exception):
    """
    Raised by ``recv()`` when the subscriber fell behind the hub's buffer.

    The subscription stays usable: the next ``recv()`` returns the oldest
    message still retained.
    """

    def __init__(self, skipped: int):
        super().__init__(f"Subscriber lagged behind, {skipped} message(s) skipped")
        self.skipped = skipped


class Subscription(ABC):
    """
    A registration with a ``FanoutHub``.

    Receives every message published after it was created, in publish order,
    until it is closed. Usable as an async context manager (closing on exit)
    and as an async iterator (ending when closed).
    """

    def __init__(self) -> None:
        self._closed = False

    @abstractmethod
    async def recv(self) -> str:
        """
        Wait for the next message.

        Raises:
            SubscriptionClosed: If the subscription or the hub is closed
            SubscriptionLagged: If messages were skipped (broadcast hub only)
        """
        pass

    @abstractmethod
    def close(self) -> None:
        """Deregister from the hub. Idempotent."""
        pass

    @property
    def closed(self) -> bool:
        return self._closed

    def __aiter__(self) -> AsyncIterator[str]:
        return self

    async def __anext__(self) -> str:
        try:
            return await self.recv()
        except SubscriptionClosed:
            raise StopAsyncIteration

    async def __aenter__(self) -> "Subscription":
        return self

    async def __aexit__(self, *exc_info) -> None:
        self.close()


class FanoutHub(ABC):
    """Abstract broadcast point between the upstream connector and sessions."""

    def __init__(self) -> None:
        self._subscribers: "weakref.WeakSet[Subscription]" = weakref.WeakSet()
        self._closed = False

    @abstractmethod
    def publish(self, message: str) -> int:
        """
        Hand ``message`` to every registered subscriber without blocking.

        Returns:
            Number of subscribers the message was made available to
        """
        pass

    @abstractmethod
    def subscribe(self) -> Subscription:
        """
        Register a new subscriber.

        Raises:
            SubscriptionClosed: If the hub is closed
        """
        pass

    @abstractmethod
    def close(self) -> None:
        """Close the hub; pending and future ``recv()`` calls end."""
        pass

    @property
    def subscriber_count(self) -> int:
        return sum(1 for sub in self._subscribers if not sub.closed)

    @property
    def closed(self) -> bool:
        return self._closed

    def _unregister(self, subscription: Subscription) -> None:
        self._subscribers.discard(subscription)

    def _live_subscribers(self) -> list:
        """Registered subscribers, pruning the closed ones."""
        live = []
        for sub in list(self._subscribers):
            if sub.closed:
                self._subscribers.discard(sub)
            else:
                live.append(sub)
        return live


class _BroadcastSubscription(Subscription):
    """Read cursor into a ``BroadcastHub`` ring buffer."""

    def __init__(self, hub: "BroadcastHub", cursor: int):
        super().__init__()
        self._hub = hub
        self._cursor = cursor
        self._wakeup = asyncio.Event()

    async def recv(self) -> str:
        hub = self._hub
        while True:
            if self._closed:
                raise SubscriptionClosed("Subscription closed")

            oldest = hub._oldest_seq
            if self._cursor < oldest:
                skipped = oldest - self._cursor
                self._cursor = oldest
                raise SubscriptionLagged(skipped)

            if self._cursor < hub._next_seq:
                message = hub._buffer[self._cursor - oldest]
                self._cursor += 1
                return message

            if hub.closed:
                self.close()
                raise SubscriptionClosed("Hub closed")

            self._wakeup.clear()
            await self._wakeup.wait()

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._hub._unregister(self)
        self._wakeup.set()

    def _notify(self) -> None:
        self._wakeup.set()


class BroadcastHub(FanoutHub):
    """
    Bounded broadcast hub backed by one ring buffer.

    Every published message gets a sequence number; subscribers track the
    sequence number of the next message they will read. The buffer keeps the
    last ``capacity`` messages, so a subscriber whose cursor points before the
    oldest retained message has lagged.
    """

    def __init__(self, capacity: int = 1024):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        super().__init__()
        self._capacity = capacity
        self._buffer: deque[str] = deque(maxlen=capacity)
        self._next_seq = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def _oldest_seq(self) -> int:
        return self._next_seq - len(self._buffer)

    def publish(self, message: str) -> int:
        if self._closed:
            logger.debug("Hub closed, dropping message")
            return 0

        self._buffer.append(message)
        self._next_seq += 1

        subscribers = self._live_subscribers()
        for sub in subscribers:
            sub._notify()
        return len(subscribers)

    def subscribe(self) -> Subscription:
        if self._closed:
            raise SubscriptionClosed("Hub closed")
        subscription = _BroadcastSubscription(self, self._next_seq)
        self._subscribers.add(subscription)
        return subscription

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        for sub in list(self._subscribers):
            sub._notify()
        logger.info("Broadcast hub closed")


_CLOSED = object()


class _QueueSubscription(Subscription):
    """Subscriber owning an unbounded queue."""

    def __init__(self, hub: "QueueHub"):
        super().__init__()
        self._hub = hub
        self._queue: asyncio.Queue = asyncio.Queue()

    async def recv(self) -> str:
        if self._closed:
            raise SubscriptionClosed("Subscription closed")

        item = await self._queue.get()
        if item is _CLOSED:
            self._closed = True
            self._hub._unregister(self)
            raise SubscriptionClosed("Subscription closed")
        return item

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._hub._unregister(self)
        self._queue.put_nowait(_CLOSED)

    def _deliver(self, item) -> bool:
        if self._closed:
            return False
        self._queue.put_nowait(item)
        return True

    @property
    def backlog(self) -> int:
        return self._queue.qsize()


class QueueHub(FanoutHub):
    """
    Hub with one unbounded queue per subscriber.

    Subscribers that have been closed are pruned on the next publish.
    """

    def publish(self, message: str) -> int:
        if self._closed:
            logger.debug("Hub closed, dropping message")
            return 0

        delivered = 0
        for sub in list(self._subscribers):
            if sub._deliver(message):
                delivered += 1
            else:
                self._subscribers.discard(sub)
        return delivered

    def subscribe(self) -> Subscription:
        if self._closed:
            raise SubscriptionClosed("Hub closed")
        subscription = _QueueSubscription(self)
        self._subscribers.add(subscription)
        return subscription

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        for sub in list(self._subscribers):
            sub._deliver(_CLOSED)
        logger.info("Queue hub closed")


def create_hub(mode: str = "broadcast", buffer_size: int = 1024) -> FanoutHub:
    """Build the hub selected by the ``fanout_mode`` setting."""
    if mode == "broadcast":
        return BroadcastHub(capacity=buffer_size)
    elif mode == "queue":
        return QueueHub()
    else:
        raise ValueError(f"Unknown fan-out mode: {mode}")
