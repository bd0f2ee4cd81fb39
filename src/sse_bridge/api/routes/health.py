from fastapi import APIRouter, Request

from ...models.schemas import HealthResponse

router = APIRouter(tags=["Health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request) -> HealthResponse:
    """
    Health check endpoint.

    Returns the upstream connection state and the number of active streams.
    """
    return HealthResponse(**request.app.state.bridge.health())
