"""
SSE Bridge - relays one broker topic to Server-Sent Events clients.

A single upstream subscription feeds a fan-out hub; every connected streaming
client gets its own session reading from the hub.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
