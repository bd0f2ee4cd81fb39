from fastapi import APIRouter, Request

from ...models.schemas import ConnectionInfo, ConnectionsResponse

router = APIRouter(tags=["Admin"])


@router.get("/connections", response_model=ConnectionsResponse)
async def list_connections(request: Request) -> ConnectionsResponse:
    """
    List all active SSE connections.

    Note: This endpoint should be protected in production.
    """
    sessions = list(request.app.state.bridge.active_sessions.values())
    return ConnectionsResponse(
        count=len(sessions),
        connections=[ConnectionInfo(**session.info()) for session in sessions],
    )
