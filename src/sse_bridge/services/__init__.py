from .bridge_manager import BridgeManager
from .connector import ConnectionState, UpstreamConnector, decode_payload
from .hub import (
    BroadcastHub,
    FanoutHub,
    QueueHub,
    Subscription,
    SubscriptionClosed,
    SubscriptionLagged,
    create_hub,
)
from .session import StreamSession

__all__ = [
    "BridgeManager",
    "BroadcastHub",
    "ConnectionState",
    "FanoutHub",
    "QueueHub",
    "StreamSession",
    "Subscription",
    "SubscriptionClosed",
    "SubscriptionLagged",
    "UpstreamConnector",
    "create_hub",
    "decode_payload",
]
