from typing import List

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Health check response."""
    status: str = Field(..., description="'healthy' when subscribed to the broker, else 'degraded'")
    adapter: str = Field(..., description="Active broker adapter")
    connection_state: str = Field(..., description="Upstream connection state")
    connected: bool = Field(..., description="Whether the adapter is connected")
    active_streams: int = Field(..., description="Number of active SSE streams")
    reconnects: int = Field(..., description="Broker reconnection cycles since startup")
    messages_received: int = Field(..., description="Messages received from the broker")


class ConnectionInfo(BaseModel):
    """One active SSE stream."""
    connection_id: str
    connected_at: str = Field(..., description="ISO 8601 timestamp")
    delivered: int = Field(..., description="Messages sent to the client")
    skipped: int = Field(..., description="Messages skipped because the client lagged")


class ConnectionsResponse(BaseModel):
    """Active SSE streams."""
    count: int
    connections: List[ConnectionInfo]
