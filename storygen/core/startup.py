"""
Startup validation and environment checks.

Validates required API keys and configuration at application startup.
"""

import os
from dataclasses import dataclass, field
from typing import List

from .config import StorygenConfig


@dataclass
class ValidationResult:
    """Result of environment validation."""
    valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


def validate_environment(config: StorygenConfig = None) -> ValidationResult:
    """
    Validate the environment configuration.

    Checks:
    - The configured backend API key is set (or a Gemini fallback)
    - Review mode defaults worth warning about

    Returns:
        ValidationResult with validation status and any errors/warnings
    """
    config = config or StorygenConfig()
    errors = []
    warnings = []

    key_names = [config.backend.api_key_env]
    if config.backend.provider == "gemini":
        key_names += ["GEMINI_API_KEY", "GOOGLE_API_KEY"]

    if not any((os.environ.get(name) or "").strip() for name in key_names):
        errors.append(
            f"No API key found for backend '{config.backend.provider}'. "
            f"Set one of: {', '.join(dict.fromkeys(key_names))}"
        )

    if config.review.enabled:
        warnings.append(
            "Review mode is enabled at startup - generation calls will wait for approval"
        )

    return ValidationResult(
        valid=len(errors) == 0,
        errors=errors,
        warnings=warnings
    )
