"""
Conversational backend protocol.

The agent registry talks to generation backends only through these two
protocols, so tests can drive it with an in-memory fake and production code
with the Gemini client.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

from storygen.core.exceptions import MissingConfigError


@dataclass
class ChatTurn:
    """A turn of prior conversation handed to a new chat."""
    role: str  # "user" or "model"
    text: str

    def to_dict(self) -> Dict[str, Any]:
        return {"role": self.role, "parts": [{"text": self.text}]}


@dataclass
class ChatReply:
    """Reply from a chat backend."""
    text: str
    model: str
    usage: Dict[str, int] = field(default_factory=dict)
    raw_response: Optional[Dict] = None

    @property
    def input_tokens(self) -> int:
        return int(self.usage.get("input_tokens", 0))

    @property
    def output_tokens(self) -> int:
        return int(self.usage.get("output_tokens", 0))


@runtime_checkable
class ChatSession(Protocol):
    """Live conversational state for one agent role."""

    async def send_message(self, text: str) -> ChatReply:
        """Send a user turn and return the model's reply."""
        ...


@runtime_checkable
class ChatBackend(Protocol):
    """Factory for chat sessions."""

    def start_chat(self, model: str, history: List[ChatTurn]) -> ChatSession:
        """Start a chat primed with `history`."""
        ...


class UnconfiguredChatSession:
    """Session of an UnconfiguredChatBackend; every send fails."""

    def __init__(self, reason: str):
        self.reason = reason

    async def send_message(self, text: str) -> ChatReply:
        raise MissingConfigError(f"Chat backend is not configured: {self.reason}")


class UnconfiguredChatBackend:
    """
    Stand-in used when the server starts without backend credentials.

    The debug console stays usable; generation calls fail on first send.
    """

    def __init__(self, reason: str):
        self.reason = reason

    def start_chat(self, model: str, history: List[ChatTurn]) -> UnconfiguredChatSession:
        return UnconfiguredChatSession(self.reason)
