"""
Review Queue Data Types

PendingRequest is the gate's private record of a suspended generation call;
PendingRequestData is the view handed to observers. Observers never get the
future, so only the gate can settle a request.
"""

from __future__ import annotations

import asyncio
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict

from storygen.core.constants import REQUEST_ID_PREFIX


def generate_request_id() -> str:
    """Generate an opaque request id."""
    return f"{REQUEST_ID_PREFIX}{uuid.uuid4().hex[:12]}"


@dataclass(frozen=True)
class PendingRequestData:
    """Serializable projection of a pending request."""
    id: str
    title: str
    prompt: str
    created_at: datetime
    queue_length: int = 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "prompt": self.prompt,
            "created_at": self.created_at.isoformat(),
            "queue_length": self.queue_length,
        }


@dataclass(eq=False)
class PendingRequest:
    """A payload awaiting human review."""
    title: str
    prompt: str
    future: "asyncio.Future[str]" = field(repr=False)
    id: str = field(default_factory=generate_request_id)
    created_at: datetime = field(default_factory=datetime.now)

    def to_data(self, queue_length: int = 1) -> PendingRequestData:
        return PendingRequestData(
            id=self.id,
            title=self.title,
            prompt=self.prompt,
            created_at=self.created_at,
            queue_length=queue_length,
        )
