"""
SSE Bridge - Main FastAPI Application

Relays every message of one broker topic to all connected Server-Sent Events
clients.

Key Features:
- Single upstream subscription with full reconnect on any transport error
- Bounded broadcast fan-out (slow clients skip messages, never block others)
- CORS enabled for any origin
"""
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .adapters import BrokerAdapter
from .api import build_api_router
from .core.config import Settings
from .services.bridge_manager import BridgeManager


def configure_logging(debug: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def create_app(settings: Settings, adapter: Optional[BrokerAdapter] = None) -> FastAPI:
    """
    Build the application.

    Args:
        settings: Loaded configuration
        adapter: Broker adapter to use instead of the configured one
    """
    bridge = BridgeManager(settings, adapter=adapter)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        await bridge.start()
        yield
        await bridge.stop()

    app = FastAPI(
        title="SSE Bridge",
        description="Relays a broker topic to Server-Sent Events clients",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.bridge = bridge

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    app.include_router(build_api_router(settings.sse.path))

    @app.get("/", tags=["Info"])
    async def root():
        """Root endpoint with service info."""
        return {
            "service": "sse-bridge",
            "version": __version__,
            "stream": settings.sse.path,
        }

    return app
