# channel/__init__.py
from .base import Channel, ChannelEvents, ConnectionUpdate
from .local import LocalChannel

__all__ = ["Channel", "ChannelEvents", "ConnectionUpdate", "LocalChannel"]
