"""
Pytest Configuration and Fixtures

Shared fixtures for all tests.
"""

import pytest
import tempfile
import shutil
from pathlib import Path
from typing import Any, Dict, List, Optional

from storygen.core.config import StorygenConfig
from storygen.llm.backend import ChatReply, ChatTurn
from storygen.review.review_gate import ReviewGate
from storygen.runtime import StorygenRuntime


class FakeChatSession:
    """Scripted chat session; replies are popped in order."""

    def __init__(self, model: str, history: List[ChatTurn], replies: List[Any]):
        self.model = model
        self.history = list(history)
        self.replies = replies
        self.sent: List[str] = []

    async def send_message(self, text: str) -> ChatReply:
        self.sent.append(text)
        reply = self.replies.pop(0) if self.replies else "ok"
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, ChatReply):
            return reply
        return ChatReply(
            text=reply,
            model=self.model,
            usage={"input_tokens": 100, "output_tokens": 50},
        )


class FakeChatBackend:
    """Records every started chat; all sessions share one reply script."""

    def __init__(self, replies: Optional[List[Any]] = None):
        self.replies: List[Any] = list(replies or [])
        self.sessions: List[FakeChatSession] = []

    def start_chat(self, model: str, history: List[ChatTurn]) -> FakeChatSession:
        session = FakeChatSession(model, history, self.replies)
        self.sessions.append(session)
        return session


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    temp_path = tempfile.mkdtemp()
    yield Path(temp_path)
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def sample_config() -> Dict[str, Any]:
    """Sample configuration for testing."""
    return {
        "app_name": "StoryGen",
        "version": "1.0.0",
        "log_level": "DEBUG",
        "review": {
            "enabled": True,
            "head_only_resolution": False
        },
        "agents": {
            "default_model": "gemini-3-pro-preview"
        },
        "backend": {
            "provider": "gemini",
            "api_key_env": "STORYGEN_TEST_KEY",
            "temperature": 0.2,
            "max_tokens": 2048
        },
        "pricing": {
            "gemini-3-pro": [2.0, 12.0],
            "gemini-2.5-flash": [0.3, 2.5]
        },
        "server": {
            "port": 8123,
            "rate_limit": "60/minute"
        },
        "debug": {
            "max_log_entries": 50
        }
    }


@pytest.fixture
def fake_backend() -> FakeChatBackend:
    return FakeChatBackend()


@pytest.fixture
def gate() -> ReviewGate:
    return ReviewGate(enabled=True)


@pytest.fixture
def runtime(fake_backend) -> StorygenRuntime:
    """Independent runtime with review mode off and a fake backend."""
    return StorygenRuntime(StorygenConfig(), backend=fake_backend)
