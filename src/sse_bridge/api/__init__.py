from fastapi import APIRouter

from .routes import admin, events, health


def build_api_router(stream_path: str) -> APIRouter:
    """Assemble the service routes around the configured stream path."""
    router = APIRouter()
    router.include_router(health.router)
    router.include_router(admin.router, prefix="/admin")
    router.include_router(events.build_router(stream_path))
    return router


__all__ = ["build_api_router"]
