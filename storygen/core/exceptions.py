"""
StoryGen Custom Exceptions

Exception classes for error handling throughout the StoryGen core.
"""


class StorygenError(Exception):
    """Base exception for all StoryGen errors."""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self):
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================

class ConfigurationError(StorygenError):
    """Raised when there's an issue with configuration."""
    pass


class MissingConfigError(ConfigurationError):
    """Raised when a required configuration is missing."""
    pass


class InvalidConfigError(ConfigurationError):
    """Raised when a configuration value is invalid."""
    pass


# =============================================================================
# REVIEW ERRORS
# =============================================================================

class ReviewError(StorygenError):
    """Base exception for review queue errors."""
    pass


class RequestCancelledError(ReviewError):
    """Raised in the submitting task when a reviewer rejects its request.

    Pipeline stages treat this as "cancelled by user": no retry, no alert.
    """

    is_cancellation = True

    def __init__(self, request_id: str, title: str = "", reason: str = None):
        message = f"Request '{title or request_id}' was rejected by the reviewer"
        details = {"request_id": request_id, "title": title}
        if reason:
            details["reason"] = reason
        super().__init__(message, details)
        self.request_id = request_id
        self.title = title
        self.reason = reason


def is_cancellation(error: BaseException) -> bool:
    """Check whether an error means the user vetoed the call."""
    return getattr(error, "is_cancellation", False) is True


# =============================================================================
# AGENT ERRORS
# =============================================================================

class AgentError(StorygenError):
    """Base exception for agent session errors."""
    pass


class UnknownAgentRoleError(AgentError):
    """Raised when a role name does not match any agent role."""

    def __init__(self, role: str):
        message = f"Unknown agent role: '{role}'"
        super().__init__(message, {"role": role})


# =============================================================================
# LLM ERRORS
# =============================================================================

class LLMError(StorygenError):
    """Base exception for LLM-related errors."""
    pass


class LLMProviderError(LLMError):
    """Raised when there's an issue with an LLM provider."""

    def __init__(self, provider: str, reason: str):
        message = f"LLM provider '{provider}' error: {reason}"
        super().__init__(message, {"provider": provider, "reason": reason})


class LLMResponseError(LLMError):
    """Raised when LLM response is invalid or unexpected."""
    pass
