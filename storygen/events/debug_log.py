"""
StoryGen Debug Log

Feed of request/response/info/error entries shown in the debug console.
Agent messages are mirrored here with a link back to the message id so a UI
can jump from a log line to the conversation turn.
"""

from __future__ import annotations

import uuid
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from threading import Lock
from typing import Any, Callable, Deque, Dict, List, Optional

from storygen.core.constants import AgentRole, LOG_ID_PREFIX, LogType
from storygen.core.logging_config import get_logger
from .message_bus import MessageEventBus, Subscription

logger = get_logger("events.debug_log")


@dataclass(frozen=True)
class DebugLogEntry:
    """A single debug console entry."""
    id: str
    type: LogType
    title: str
    data: Any = None
    timestamp: datetime = field(default_factory=datetime.now)
    model: Optional[str] = None
    dynamic_prompt: Optional[str] = None
    final_prompt: Optional[str] = None
    agent_role: Optional[AgentRole] = None
    linked_message_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "title": self.title,
            "data": self.data,
            "timestamp": self.timestamp.isoformat(),
            "model": self.model,
            "dynamic_prompt": self.dynamic_prompt,
            "final_prompt": self.final_prompt,
            "agent_role": self.agent_role.value if self.agent_role else None,
            "linked_message_id": self.linked_message_id,
        }


DebugLogListener = Callable[[DebugLogEntry], None]


class DebugLog:
    """Bounded, observable list of debug entries."""

    def __init__(self, max_entries: int = 1000):
        self.max_entries = max_entries
        self._entries: Deque[DebugLogEntry] = deque(maxlen=max_entries)
        self._bus: MessageEventBus[DebugLogListener] = MessageEventBus("debug_log")
        self._lock = Lock()

    def log(
        self,
        log_type: LogType,
        title: str,
        data: Any = None,
        **fields: Any
    ) -> DebugLogEntry:
        """Record an entry and broadcast it."""
        entry = DebugLogEntry(
            id=f"{LOG_ID_PREFIX}{uuid.uuid4().hex[:12]}",
            type=log_type,
            title=title,
            data=data,
            **fields
        )
        with self._lock:
            self._entries.append(entry)
        if log_type == LogType.ERROR:
            logger.warning(f"{title}: {data}")
        self._bus.publish(entry)
        return entry

    def info(self, title: str, data: Any = None, **fields: Any) -> DebugLogEntry:
        return self.log(LogType.INFO, title, data, **fields)

    def error(self, title: str, data: Any = None, **fields: Any) -> DebugLogEntry:
        return self.log(LogType.ERROR, title, data, **fields)

    def get_entries(self, limit: int = None) -> List[DebugLogEntry]:
        """Get entries in insertion order, optionally only the last `limit`."""
        with self._lock:
            entries = list(self._entries)
        if limit is not None:
            if limit < 1:
                raise ValueError(f"limit must be at least 1, got {limit}")
            return entries[-limit:]
        return entries

    def subscribe(self, listener: DebugLogListener) -> Subscription[DebugLogListener]:
        return self._bus.subscribe(listener)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
        logger.info("Debug log cleared")
