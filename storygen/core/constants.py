"""
StoryGen Constants

Global constants used throughout the StoryGen orchestration core.
"""

from enum import Enum
from typing import Dict, Tuple

from .exceptions import UnknownAgentRoleError

# =============================================================================
# VERSION INFO
# =============================================================================
VERSION = "1.0.0"
PROJECT_NAME = "StoryGen"

# =============================================================================
# AGENT ROLES
# =============================================================================

class AgentRole(Enum):
    """Conversational production roles, each with its own memory."""
    DIRECTOR = "Director"
    SCREENWRITER = "Screenwriter"
    REVIEWER = "Reviewer"
    DESIGNER = "Designer"
    ANALYST = "Analyst"
    VIDEOGRAPHER = "Videographer"

    @classmethod
    def parse(cls, value: str) -> "AgentRole":
        """Parse a role from its value or member name (case-insensitive)."""
        if isinstance(value, cls):
            return value
        name = str(value).strip().lower()
        for role in cls:
            if name in (role.value.lower(), role.name.lower()):
                return role
        raise UnknownAgentRoleError(value)


class MessageRole(Enum):
    """Author of a single turn in an agent conversation."""
    SYSTEM = "system"
    USER = "user"
    MODEL = "model"


# =============================================================================
# DEBUG LOG
# =============================================================================

class LogType(Enum):
    """Debug log entry types shown in the debug console."""
    REQUEST = "req"
    RESPONSE = "res"
    INFO = "info"
    ERROR = "error"


# =============================================================================
# MODELS & PRICING
# =============================================================================

DEFAULT_TEXT_MODEL = "gemini-2.0-flash-exp"

# USD per 1M tokens (input, output), matched by substring of the model name
DEFAULT_MODEL_PRICING: Dict[str, Tuple[float, float]] = {
    "gemini-3-pro": (2.00, 12.00),
}

# Flat per-call costs for media generation
IMAGE_GENERATION_COST = 0.134
VIDEO_GENERATION_COST = 0.75

# Synthetic acknowledgement used when priming an agent session
DEFAULT_ACKNOWLEDGEMENT = "Understood. I am the {role} and I am ready to work."

# =============================================================================
# REVIEW QUEUE
# =============================================================================

REQUEST_ID_PREFIX = "req_"
MESSAGE_ID_PREFIX = "msg_"
LOG_ID_PREFIX = "log_"
