"""
StoryGen LLM Module

Backend protocols, the Gemini client and reply parsing.
"""

from .backend import ChatBackend, ChatReply, ChatSession, ChatTurn, UnconfiguredChatBackend
from .parsing import try_parse_structured
from .api_clients import (
    APIError,
    GeminiChatBackend,
    GeminiChatSession,
    GeminiClient,
    create_backend,
)

__all__ = [
    "ChatBackend",
    "ChatReply",
    "ChatSession",
    "ChatTurn",
    "UnconfiguredChatBackend",
    "try_parse_structured",
    "APIError",
    "GeminiChatBackend",
    "GeminiChatSession",
    "GeminiClient",
    "create_backend",
]
