"""
Stream session: adapts one hub subscription into SSE events for one client.
"""
import logging
from datetime import datetime, timezone
from typing import AsyncGenerator, Callable, Dict, Optional
from uuid import uuid4

from .hub import FanoutHub, SubscriptionClosed, SubscriptionLagged

logger = logging.getLogger(__name__)


class StreamSession:
    """
    One connected streaming client.

    Subscribes to the hub as soon as it is created, so the client sees every
    message published from that moment on and nothing from before.
    """

    def __init__(
        self,
        hub: FanoutHub,
        connection_id: Optional[str] = None,
        on_close: Optional[Callable[["StreamSession"], None]] = None,
    ):
        self.connection_id = connection_id or str(uuid4())
        self.connected_at = datetime.now(timezone.utc)
        self.delivered = 0
        self.skipped = 0
        self._subscription = hub.subscribe()
        self._on_close = on_close
        self._started = False
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def events(self) -> AsyncGenerator[Dict[str, str], None]:
        """
        Yield one data-only SSE event per message until the session ends.

        Lag is absorbed: skipped messages are counted, never signalled to the
        client. The subscription is released however the generator finishes,
        including cancellation on client disconnect.
        """
        if self._started:
            raise RuntimeError(f"Session {self.connection_id} was already streamed")
        self._started = True

        try:
            while True:
                try:
                    message = await self._subscription.recv()
                except SubscriptionLagged as e:
                    self.skipped += e.skipped
                    logger.warning(
                        f"Stream {self.connection_id} lagged, skipped {e.skipped} message(s)"
                    )
                    continue
                except SubscriptionClosed:
                    logger.info(f"Stream {self.connection_id} subscription closed")
                    break

                self.delivered += 1
                yield {"data": message}
        finally:
            self.close()

    def close(self) -> None:
        """Release the hub subscription. Idempotent."""
        if self._closed:
            return
        self._closed = True
        self._subscription.close()
        logger.info(
            f"Stream {self.connection_id} closed "
            f"(delivered: {self.delivered}, skipped: {self.skipped})"
        )
        if self._on_close is not None:
            self._on_close(self)

    def info(self) -> Dict[str, object]:
        return {
            "connection_id": self.connection_id,
            "connected_at": self.connected_at.isoformat(),
            "delivered": self.delivered,
            "skipped": self.skipped,
        }
