"""StoryGen usage accounting."""

from .usage_meter import UsageMeter, UsageStats

__all__ = ["UsageMeter", "UsageStats"]
