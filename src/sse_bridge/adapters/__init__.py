"""
SSE Bridge Adapters

This package provides the adapter pattern implementation for the broker the
bridge subscribes to (NATS, In-Memory).
"""
from ..core.config import BrokerSettings
from .base import AdapterError, BrokerAdapter, SubscriptionError
from .memory_adapter import MemoryAdapter
from .nats_adapter import NatsAdapter


def get_adapter(broker: BrokerSettings) -> BrokerAdapter:
    """
    Factory function to create the appropriate adapter based on configuration.
    """
    adapter_type = broker.adapter.lower()

    if adapter_type == "nats":
        return NatsAdapter(
            host=broker.host,
            port=broker.port,
            client_id=broker.client_id,
            credentials=broker.credentials,
            jetstream=broker.jetstream,
            connect_timeout=broker.connect_timeout,
            poll_timeout=broker.poll_timeout,
        )
    elif adapter_type == "memory":
        return MemoryAdapter()
    else:
        raise ValueError(f"Unknown adapter type: {adapter_type}")


__all__ = [
    "AdapterError",
    "BrokerAdapter",
    "MemoryAdapter",
    "NatsAdapter",
    "SubscriptionError",
    "get_adapter",
]
