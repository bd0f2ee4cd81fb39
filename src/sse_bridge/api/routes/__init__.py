from . import admin, events, health

__all__ = ["admin", "events", "health"]
