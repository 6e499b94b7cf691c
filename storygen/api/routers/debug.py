"""Debug router: log feed, state snapshot and the live SSE stream.

A console that connects calls /snapshot once (or reads the `snapshot` event
at the top of /stream) and then follows incremental events:

- pending_request: new head of the review queue, or null once it drains
- agent_message: a message recorded in some agent's memory
- usage: stats of one backend call
- log: a debug log entry
"""

import asyncio
import json
from typing import Any, AsyncGenerator, Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import StreamingResponse

from storygen.api.deps import get_runtime_dep
from storygen.core.logging_config import get_logger
from storygen.runtime import StorygenRuntime

logger = get_logger("api.debug")

router = APIRouter()

KEEPALIVE_SECONDS = 30.0


def format_event(event_type: str, data: Any) -> str:
    """Format one SSE frame."""
    return f"event: {event_type}\ndata: {json.dumps(data, default=str)}\n\n"


async def event_generator(
    runtime: StorygenRuntime,
    request: Request,
    keepalive: float = KEEPALIVE_SECONDS
) -> AsyncGenerator[str, None]:
    """Bridge the runtime's event buses to an SSE stream."""
    loop = asyncio.get_running_loop()
    queue: asyncio.Queue = asyncio.Queue()

    def forward(event_type: str, data: Any) -> None:
        # Publishers may run on another thread
        loop.call_soon_threadsafe(queue.put_nowait, (event_type, data))

    subscriptions = [
        runtime.agents.subscribe(
            lambda role, message: forward("agent_message", message.to_dict())
        ),
        runtime.usage.subscribe(lambda stats: forward("usage", stats.to_dict())),
        runtime.debug_log.subscribe(lambda entry: forward("log", entry.to_dict())),
        runtime.review_gate.subscribe_to_pending_requests(
            lambda head: forward("pending_request", head.to_dict() if head else None)
        ),
    ]
    logger.info("Debug console connected")

    try:
        yield format_event("snapshot", runtime.snapshot())

        while True:
            if await request.is_disconnected():
                logger.info("Debug console disconnected")
                break

            try:
                event_type, data = await asyncio.wait_for(queue.get(), timeout=keepalive)
                yield format_event(event_type, data)
            except asyncio.TimeoutError:
                yield ": keepalive\n\n"

    except asyncio.CancelledError:
        logger.info("Debug console stream cancelled")
        raise
    finally:
        for subscription in subscriptions:
            subscription.unsubscribe()


@router.get("/stream")
async def stream_debug_events(
    request: Request,
    runtime: StorygenRuntime = Depends(get_runtime_dep)
):
    """Stream review, agent, usage and log events."""
    return StreamingResponse(
        event_generator(runtime, request),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",  # Disable nginx buffering
        }
    )


@router.get("/snapshot")
async def get_snapshot(runtime: StorygenRuntime = Depends(get_runtime_dep)):
    """Full observable state for a console that just connected."""
    return runtime.snapshot()


@router.get("/logs")
async def get_logs(
    limit: Optional[int] = Query(None, ge=1),
    runtime: StorygenRuntime = Depends(get_runtime_dep)
):
    return {"logs": [entry.to_dict() for entry in runtime.debug_log.get_entries(limit)]}


@router.delete("/logs")
async def clear_logs(runtime: StorygenRuntime = Depends(get_runtime_dep)):
    runtime.debug_log.clear()
    return {"success": True}


@router.get("/stats")
async def get_stats(runtime: StorygenRuntime = Depends(get_runtime_dep)):
    """Counters of the review gate and agent registry."""
    return {
        "review": runtime.review_gate.get_status(),
        "agents": runtime.agents.get_stats(),
    }
