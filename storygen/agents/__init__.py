"""
StoryGen Agents

Per-role conversational memory for the production agents.
"""

from .models import AgentMessage, AgentSession, PromptMetadata
from .session_registry import AgentSessionRegistry

__all__ = [
    "AgentMessage",
    "AgentSession",
    "PromptMetadata",
    "AgentSessionRegistry",
]
