"""Review router: toggle review mode and settle pending requests."""

from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from storygen.api.deps import get_runtime_dep
from storygen.runtime import StorygenRuntime

router = APIRouter()


class ReviewModeUpdate(BaseModel):
    enabled: bool


class ResolveRequest(BaseModel):
    prompt: str


class RejectRequest(BaseModel):
    reason: Optional[str] = None


@router.get("/mode")
async def get_review_mode(runtime: StorygenRuntime = Depends(get_runtime_dep)):
    """Get the current review mode."""
    return {"enabled": runtime.review_gate.get_review_mode()}


@router.put("/mode")
async def set_review_mode(
    update: ReviewModeUpdate,
    runtime: StorygenRuntime = Depends(get_runtime_dep)
):
    """Turn review mode on or off for subsequent generation calls."""
    runtime.review_gate.set_review_mode(update.enabled)
    return {"enabled": runtime.review_gate.get_review_mode()}


@router.get("/pending")
async def get_pending_request(runtime: StorygenRuntime = Depends(get_runtime_dep)):
    """Get the request currently awaiting review, if any."""
    head = runtime.review_gate.get_pending_request()
    return {
        "request": head.to_dict() if head else None,
        "pending": runtime.review_gate.pending_count,
    }


@router.post("/pending/{request_id}/resolve")
async def resolve_pending_request(
    request_id: str,
    body: ResolveRequest,
    runtime: StorygenRuntime = Depends(get_runtime_dep)
):
    """Approve a request with the (possibly edited) prompt."""
    success = runtime.review_gate.resolve_pending_request(request_id, body.prompt)
    return {"success": success, "request_id": request_id}


@router.post("/pending/{request_id}/reject")
async def reject_pending_request(
    request_id: str,
    body: Optional[RejectRequest] = None,
    runtime: StorygenRuntime = Depends(get_runtime_dep)
):
    """Veto a request; its caller fails with a cancellation."""
    reason = body.reason if body else None
    success = runtime.review_gate.reject_pending_request(request_id, reason)
    return {"success": success, "request_id": request_id}


@router.get("/status")
async def get_review_status(runtime: StorygenRuntime = Depends(get_runtime_dep)):
    return runtime.review_gate.get_status()
