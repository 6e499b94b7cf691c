"""
StoryGen Review

Human-in-the-loop interception of generation payloads.
"""

from .models import PendingRequest, PendingRequestData
from .review_gate import ReviewGate

__all__ = [
    "PendingRequest",
    "PendingRequestData",
    "ReviewGate",
]
