"""
StoryGen - AI-Assisted Story to Video Generation

Orchestration core shared by every pipeline stage (story skeleton, screenplay,
shot list, images, video): the review gate that lets a human edit payloads
before they reach a backend, and the per-role agent memory with its message
bus.

Version: 1.0.0
"""

__version__ = "1.0.0"
__project__ = "StoryGen"

from pathlib import Path

# Load environment variables early - before any other imports that might need them
from storygen.core.env_loader import ensure_env_loaded
ensure_env_loaded()

PACKAGE_ROOT = Path(__file__).parent
PROJECT_ROOT = PACKAGE_ROOT.parent

__all__ = [
    "__version__",
    "__project__",
    "PACKAGE_ROOT",
    "PROJECT_ROOT",
]
