import logging

from fastapi import APIRouter, HTTPException, Request
from sse_starlette.sse import EventSourceResponse
from starlette.background import BackgroundTask

logger = logging.getLogger(__name__)


async def stream_events(request: Request) -> EventSourceResponse:
    """
    Stream broker messages via Server-Sent Events (SSE).

    Each message becomes one data-only event. The stream starts with the first
    message published after the connection is opened; nothing is replayed.
    Comment pings keep idle connections open.

    Response (SSE format):
        data: <message text>
    """
    bridge = request.app.state.bridge

    try:
        session = bridge.open_session()
    except RuntimeError as e:
        raise HTTPException(status_code=503, detail=str(e))

    return EventSourceResponse(
        session.events(),
        ping=bridge.settings.sse.keepalive_interval,
        background=BackgroundTask(session.close),
    )


def build_router(path: str) -> APIRouter:
    """Router with the SSE stream mounted at the configured path."""
    router = APIRouter(tags=["Events"])
    router.add_api_route(path, stream_events, methods=["GET"])
    return router
