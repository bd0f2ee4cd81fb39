from .schemas import ConnectionInfo, ConnectionsResponse, HealthResponse

__all__ = ["ConnectionInfo", "ConnectionsResponse", "HealthResponse"]
