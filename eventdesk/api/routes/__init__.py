"""Route modules exposed by the API package."""

from . import events, ping, tickets

__all__ = ["events", "ping", "tickets"]
