"""
StoryGen Events

Synchronous pub/sub primitives shared by the orchestration core.
"""

from .message_bus import MessageEventBus, Subscription
from .debug_log import DebugLog, DebugLogEntry

__all__ = [
    "MessageEventBus",
    "Subscription",
    "DebugLog",
    "DebugLogEntry",
]
