"""
NATS adapter for the SSE Bridge.

This adapter implements the BrokerAdapter interface on top of nats-py. The
client library's own reconnection is disabled: a lost connection closes the
client and surfaces from ``poll()``, and the Upstream Connector restarts the
full connect/subscribe cycle.
"""
import logging

import nats
from nats.aio.client import Client as NatsClient
from nats.aio.subscription import Subscription
from nats.errors import TimeoutError as NatsTimeoutError
from nats.js.errors import NotFoundError

from .base import AdapterError, BrokerAdapter, SubscriptionError

logger = logging.getLogger(__name__)


class NatsAdapter(BrokerAdapter):
    """
    NATS adapter for the SSE Bridge.

    By default it creates a durable JetStream push consumer (named after the
    client id) and acknowledges every message it receives, giving at-least-once
    delivery. The subject must be captured by a JetStream stream on the server.
    With ``jetstream=False`` it falls back to a NATS Core (at-most-once)
    subscription.
    """

    def __init__(
        self,
        host: str,
        port: int,
        client_id: str,
        credentials: tuple[str, str] | None = None,
        jetstream: bool = True,
        connect_timeout: float = 5.0,
        poll_timeout: float = 1.0,
    ):
        """
        Initialize the NATS adapter.

        Args:
            host: NATS server host
            port: NATS server port
            client_id: Connection name, also the durable consumer name
            credentials: Optional (user, password) pair
            jetstream: Subscribe through JetStream with manual acks
            connect_timeout: Connection attempt timeout (seconds)
            poll_timeout: Longest wait inside a single poll (seconds)
        """
        self._url = f"nats://{host}:{port}"
        self._client_id = client_id
        self._credentials = credentials
        self._jetstream = jetstream
        self._connect_timeout = connect_timeout
        self._poll_timeout = poll_timeout
        self._client: NatsClient | None = None
        self._subscription: Subscription | None = None

    async def connect(self) -> None:
        """Connect to the NATS server without automatic reconnection."""
        if self.is_connected:
            logger.warning("Already connected to NATS")
            return

        logger.info(f"Connecting to NATS at {self._url} as {self._client_id}")

        options = {}
        if self._credentials is not None:
            options["user"], options["password"] = self._credentials

        try:
            self._client = await nats.connect(
                servers=[self._url],
                name=self._client_id,
                connect_timeout=self._connect_timeout,
                allow_reconnect=False,
                error_cb=self._error_callback,
                disconnected_cb=self._disconnected_callback,
                closed_cb=self._closed_callback,
                **options,
            )
            logger.info(f"Connected to NATS server: {self._client.connected_url}")
        except Exception as e:
            raise ConnectionError(f"Failed to connect to NATS at {self._url}: {e}") from e

    async def disconnect(self) -> None:
        """Close the connection, dropping the subscription with it."""
        client, self._client = self._client, None
        self._subscription = None
        if client is None or client.is_closed:
            return

        try:
            await client.close()
        except Exception as e:
            logger.warning(f"Error closing NATS connection: {e}")
        logger.info("Disconnected from NATS")

    async def subscribe(self, topic: str) -> None:
        """
        Subscribe to a NATS subject (wildcards "*" and ">" allowed).
        """
        if not self.is_connected:
            raise ConnectionError("Not connected to NATS")

        try:
            if self._jetstream:
                js = self._client.jetstream()
                self._subscription = await js.subscribe(
                    topic,
                    durable=self._durable_name(),
                    manual_ack=True,
                )
            else:
                self._subscription = await self._client.subscribe(topic)
        except NotFoundError as e:
            raise SubscriptionError(
                f"No JetStream stream captures subject {topic}; create one "
                f"(e.g. `nats stream add --subjects '{topic}'`) or set jetstream = false"
            ) from e
        except Exception as e:
            raise SubscriptionError(f"Failed to subscribe to {topic}: {e}") from e

        mode = "JetStream" if self._jetstream else "core"
        logger.info(f"Subscribed to {topic} ({mode})")

    async def poll(self) -> bytes | None:
        """
        Wait up to ``poll_timeout`` for the next message.

        Returns None when the wait times out on a healthy connection.
        """
        if self._client is None or self._subscription is None:
            raise ConnectionError("Not subscribed to NATS")

        try:
            msg = await self._subscription.next_msg(timeout=self._poll_timeout)
        except NatsTimeoutError:
            if self._client.is_closed or not self._client.is_connected:
                raise ConnectionError("NATS connection lost")
            return None
        except ConnectionError:
            raise
        except Exception as e:
            raise AdapterError(f"Error receiving from NATS: {e}") from e

        if self._jetstream:
            try:
                await msg.ack()
            except Exception as e:
                raise AdapterError(f"Failed to acknowledge message: {e}") from e

        return msg.data

    @property
    def is_connected(self) -> bool:
        """Check if connected to NATS."""
        return self._client is not None and self._client.is_connected

    def _durable_name(self) -> str:
        """Client id made safe for use as a JetStream consumer name."""
        return "".join("_" if c in ".*> " else c for c in self._client_id)

    # NATS callbacks for connection lifecycle

    async def _error_callback(self, e: Exception) -> None:
        logger.error(f"NATS error: {e}")

    async def _disconnected_callback(self) -> None:
        logger.warning("Disconnected from NATS server")

    async def _closed_callback(self) -> None:
        logger.info("NATS connection closed")
