"""
Base adapter interface for broker backends.

An adapter wraps one broker connection carrying one topic subscription. The
Upstream Connector drives it through connect -> subscribe -> poll... and tears
it down with disconnect whenever anything fails.
"""
from abc import ABC, abstractmethod


class BrokerAdapter(ABC):
    """
    Abstract base class for broker adapters.

    Adapters must NOT recover from transport failures on their own: any loss of
    the connection has to surface as an exception from ``poll()`` so the
    connector can restart the whole connect/subscribe cycle.
    """

    @abstractmethod
    async def connect(self) -> None:
        """
        Establish a connection to the broker, authenticating if configured.

        Raises:
            ConnectionError: If unable to connect to the broker
        """
        pass

    @abstractmethod
    async def disconnect(self) -> None:
        """
        Tear down the connection and any subscription.

        Must be safe to call when not connected or after a failure.
        """
        pass

    @abstractmethod
    async def subscribe(self, topic: str) -> None:
        """
        Subscribe to a topic with at-least-once semantics where supported.

        Raises:
            SubscriptionError: If the subscription could not be created
            ConnectionError: If not connected to the broker
        """
        pass

    @abstractmethod
    async def poll(self) -> bytes | None:
        """
        Wait for the next broker event.

        Returns:
            The payload of a message event, or None for events that carry no
            message (idle timeouts, pings, acks).

        Raises:
            ConnectionError: If the connection was lost
            AdapterError: For any other transport failure
        """
        pass

    @property
    @abstractmethod
    def is_connected(self) -> bool:
        """Check if the adapter is connected to the broker."""
        pass

    @property
    def name(self) -> str:
        """Return the adapter name for logging."""
        return self.__class__.__name__


class AdapterError(Exception):
    """Base exception for adapter errors."""
    pass


class SubscriptionError(AdapterError):
    """Raised when a subscription could not be created."""
    pass
