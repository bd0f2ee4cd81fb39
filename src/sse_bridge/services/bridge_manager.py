import asyncio
import logging
from typing import Any, Dict, Optional

from ..adapters import BrokerAdapter, get_adapter
from ..core.config import Settings
from .connector import ConnectionState, UpstreamConnector
from .hub import FanoutHub, create_hub
from .session import StreamSession

logger = logging.getLogger(__name__)


class BridgeManager:
    """
    Owns the fan-out hub, the upstream connector task and the active streams.

    One instance per application; it is created by the app factory and kept
    on ``app.state``.
    """

    def __init__(self, settings: Settings, adapter: Optional[BrokerAdapter] = None):
        self.settings = settings
        self._adapter = adapter
        self.hub: Optional[FanoutHub] = None
        self.connector: Optional[UpstreamConnector] = None
        self.active_sessions: Dict[str, StreamSession] = {}
        self._connector_task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._connector_task is not None and not self._connector_task.done()

    async def start(self) -> None:
        """Create the hub and start the connector background task."""
        if self.running:
            logger.warning("Bridge is already running")
            return

        sse = self.settings.sse
        broker = self.settings.broker

        self.hub = create_hub(sse.fanout_mode, sse.buffer_size)
        adapter = self._adapter or get_adapter(broker)
        self.connector = UpstreamConnector(
            adapter,
            topic=broker.topic,
            sink=self.hub.publish,
            reconnect_delay=broker.reconnect_delay,
        )
        self._connector_task = asyncio.create_task(
            self.connector.run(), name="upstream-connector"
        )
        logger.info(
            f"Bridge started with {adapter.name} and {sse.fanout_mode} fan-out "
            f"(buffer size: {sse.buffer_size})"
        )

    async def stop(self) -> None:
        """Stop the connector and end every active stream."""
        logger.info("Shutting down bridge")

        if self._connector_task is not None:
            self._connector_task.cancel()
            try:
                await self._connector_task
            except asyncio.CancelledError:
                pass
            except Exception as e:
                logger.error(f"Connector task ended with error: {e}", exc_info=True)
            self._connector_task = None

        if self.hub is not None:
            self.hub.close()

        for session in list(self.active_sessions.values()):
            session.close()
        self.active_sessions.clear()

        logger.info("Bridge shutdown complete")

    def open_session(self) -> StreamSession:
        """Register a new streaming client with the hub."""
        if self.hub is None:
            raise RuntimeError("Bridge not started")
        if self.hub.closed:
            raise RuntimeError("Bridge stopped")

        session = StreamSession(self.hub, on_close=self._forget_session)
        self.active_sessions[session.connection_id] = session
        logger.info(
            f"New SSE connection {session.connection_id} "
            f"({len(self.active_sessions)} active)"
        )
        return session

    def _forget_session(self, session: StreamSession) -> None:
        self.active_sessions.pop(session.connection_id, None)

    def health(self) -> Dict[str, Any]:
        connector = self.connector
        state = connector.state if connector else ConnectionState.DISCONNECTED
        return {
            "status": "healthy" if state == ConnectionState.SUBSCRIBED else "degraded",
            "adapter": connector.adapter.name if connector else "none",
            "connection_state": state.value,
            "connected": connector.adapter.is_connected if connector else False,
            "active_streams": len(self.active_sessions),
            "reconnects": connector.reconnects if connector else 0,
            "messages_received": connector.messages_received if connector else 0,
        }
