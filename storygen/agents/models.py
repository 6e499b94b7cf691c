"""
Agent Conversation Data Types

AgentMessage is one immutable turn of an agent's conversation. AgentSession
bundles the live backend chat for one role.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

from storygen.core.constants import AgentRole, MESSAGE_ID_PREFIX, MessageRole
from storygen.llm.backend import ChatSession


def generate_message_id() -> str:
    """Generate a unique message ID."""
    return f"{MESSAGE_ID_PREFIX}{uuid.uuid4().hex[:12]}"


@dataclass(frozen=True)
class PromptMetadata:
    """Prompt provenance attached to priming and user turns."""
    model: Optional[str] = None
    dynamic_prompt: Optional[str] = None  # template before substitution
    final_prompt: Optional[str] = None    # after substitution and review edits


@dataclass(frozen=True)
class AgentMessage:
    """A single turn in an agent conversation."""
    role: MessageRole
    agent_role: AgentRole
    content: str
    id: str = field(default_factory=generate_message_id)
    timestamp: datetime = field(default_factory=datetime.now)
    model: Optional[str] = None
    dynamic_prompt: Optional[str] = None
    final_prompt: Optional[str] = None
    data: Any = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "role": self.role.value,
            "agent_role": self.agent_role.value,
            "content": self.content,
            "timestamp": self.timestamp.isoformat(),
            "model": self.model,
            "dynamic_prompt": self.dynamic_prompt,
            "final_prompt": self.final_prompt,
            "data": self.data,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AgentMessage":
        """Rebuild a message received over the wire."""
        timestamp = data.get("timestamp")
        return cls(
            id=data.get("id") or generate_message_id(),
            role=MessageRole(data["role"]),
            agent_role=AgentRole.parse(data["agent_role"]),
            content=data.get("content", ""),
            timestamp=datetime.fromisoformat(timestamp) if timestamp else datetime.now(),
            model=data.get("model"),
            dynamic_prompt=data.get("dynamic_prompt"),
            final_prompt=data.get("final_prompt"),
            data=data.get("data"),
        )


@dataclass(eq=False)
class AgentSession:
    """Live conversational state of one agent role."""
    role: AgentRole
    model: str
    chat: ChatSession
    system_instruction: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "role": self.role.value,
            "model": self.model,
            "system_instruction": self.system_instruction,
            "created_at": self.created_at.isoformat(),
        }
