"""
StoryGen Review Gate

Optional human approval step in front of every generation backend call.

When review mode is on, each submitted payload joins a FIFO queue and the
submitting task suspends until a reviewer resolves it (with a possibly edited
prompt) or rejects it. Only the head of the queue is ever shown to observers,
so a reviewer handles one request at a time while any number wait behind it.

Usage:
    gate = ReviewGate()
    gate.set_review_mode(True)

    gate.subscribe_to_pending_requests(lambda request: show_in_ui(request))

    # In a pipeline stage
    prompt = await gate.submit_for_review(prompt, "Scene 3 - Shot list")

    # From the UI
    gate.resolve_pending_request(request.id, edited_prompt)
    gate.reject_pending_request(request.id)
"""

from __future__ import annotations

import asyncio
from threading import RLock
from typing import Any, Callable, Dict, List, Optional, Tuple

from storygen.core.exceptions import RequestCancelledError
from storygen.core.logging_config import get_logger
from storygen.events.message_bus import MessageEventBus, Subscription
from .models import PendingRequest, PendingRequestData

logger = get_logger("review.gate")

PendingRequestListener = Callable[[Optional[PendingRequestData]], None]


class ReviewGate:
    """
    Review mode toggle plus the queue of requests awaiting approval.

    Features:
    - Bypass with no suspension when review mode is off
    - Strict FIFO, head-only visibility
    - Replay of the current head to late subscribers
    - Stale or out-of-turn ids are logged and ignored, never raised
    """

    def __init__(self, enabled: bool = False, head_only_resolution: bool = True):
        """
        Initialize the review gate.

        Args:
            enabled: Initial review mode
            head_only_resolution: If True, only the request currently shown
                to the reviewer (the head) can be resolved or rejected
        """
        self._enabled = enabled
        self.head_only_resolution = head_only_resolution

        self._queue: List[PendingRequest] = []
        self._lock = RLock()
        self._bus: MessageEventBus[PendingRequestListener] = MessageEventBus("review")

        self._stats = {
            "submitted": 0,
            "bypassed": 0,
            "resolved": 0,
            "edited": 0,
            "rejected": 0,
            "withdrawn": 0,
            "ignored": 0,
        }

    # ==================== REVIEW MODE ====================

    def set_review_mode(self, enabled: bool) -> None:
        """Toggle review mode for subsequent submissions."""
        enabled = bool(enabled)
        if enabled != self._enabled:
            logger.info(f"Review mode {'enabled' if enabled else 'disabled'}")
        self._enabled = enabled

    def get_review_mode(self) -> bool:
        return self._enabled

    @property
    def pending_count(self) -> int:
        return len(self._queue)

    # ==================== SUBMISSION ====================

    async def submit_for_review(self, prompt: str, title: str) -> str:
        """
        Gate an outgoing payload.

        Args:
            prompt: Payload as it would be sent to the backend
            title: Label of the pipeline stage producing it

        Returns:
            The prompt unchanged when review mode is off, otherwise the
            prompt chosen by the reviewer

        Raises:
            RequestCancelledError: If the reviewer rejected the request
        """
        if not self._enabled:
            self._stats["bypassed"] += 1
            return prompt

        loop = asyncio.get_running_loop()
        request = PendingRequest(title=title, prompt=prompt, future=loop.create_future())

        with self._lock:
            self._queue.append(request)
            self._stats["submitted"] += 1
            position = len(self._queue)
            logger.info(f"Queued for review: '{title}' ({request.id}, position {position})")
            if position == 1:
                self._publish_head()

        try:
            return await request.future
        except asyncio.CancelledError:
            self._withdraw(request)
            raise

    # ==================== OBSERVATION ====================

    def subscribe_to_pending_requests(
        self,
        listener: PendingRequestListener
    ) -> Subscription[PendingRequestListener]:
        """
        Observe the head of the queue.

        The listener receives the head's projection, or None once the queue
        drains. If requests are already waiting it is called immediately with
        the current head.
        """
        with self._lock:
            subscription = self._bus.subscribe(listener)
            head = self.get_pending_request()
            if head is not None:
                try:
                    listener(head)
                except Exception as e:
                    logger.error(f"Pending request replay failed for {subscription.sub_id}: {e}")
        return subscription

    def get_pending_request(self) -> Optional[PendingRequestData]:
        """Get the projection of the request currently awaiting review."""
        with self._lock:
            if not self._queue:
                return None
            return self._queue[0].to_data(queue_length=len(self._queue))

    # ==================== RESOLUTION ====================

    def resolve_pending_request(self, request_id: str, new_prompt: str) -> bool:
        """
        Approve a request, handing `new_prompt` back to its caller.

        Returns:
            True if the request was settled, False for stale/out-of-turn ids
        """
        with self._lock:
            taken = self._take(request_id, "resolve")
            if taken is None:
                return False
            request, was_head = taken

            self._settle(request, result=new_prompt)
            self._stats["resolved"] += 1
            if new_prompt != request.prompt:
                self._stats["edited"] += 1
            logger.info(f"Resolved: '{request.title}' ({request.id})")

            if was_head:
                self._publish_head()
        return True

    def reject_pending_request(self, request_id: str, reason: str = None) -> bool:
        """
        Veto a request; its caller fails with RequestCancelledError.

        Returns:
            True if the request was settled, False for stale/out-of-turn ids
        """
        with self._lock:
            taken = self._take(request_id, "reject")
            if taken is None:
                return False
            request, was_head = taken

            self._settle(
                request,
                error=RequestCancelledError(request.id, request.title, reason)
            )
            self._stats["rejected"] += 1
            logger.info(f"Rejected: '{request.title}' ({request.id})")

            if was_head:
                self._publish_head()
        return True

    def reject_all(self, reason: str = None) -> int:
        """Reject every queued request (used at shutdown)."""
        with self._lock:
            requests = list(self._queue)
            self._queue.clear()
            for request in requests:
                self._settle(
                    request,
                    error=RequestCancelledError(request.id, request.title, reason)
                )
            self._stats["rejected"] += len(requests)
            if requests:
                logger.info(f"Rejected {len(requests)} pending request(s)")
                self._publish_head()
        return len(requests)

    # ==================== INTERNALS ====================

    def _take(self, request_id: str, action: str) -> Optional[Tuple[PendingRequest, bool]]:
        """Remove a request by id, honouring head-only resolution."""
        index = next(
            (i for i, request in enumerate(self._queue) if request.id == request_id),
            None
        )
        if index is None:
            self._stats["ignored"] += 1
            logger.warning(f"Cannot {action} '{request_id}': not pending (already handled?)")
            return None
        if index != 0 and self.head_only_resolution:
            self._stats["ignored"] += 1
            logger.warning(
                f"Cannot {action} '{request_id}': not at the head of the queue "
                f"(position {index + 1})"
            )
            return None
        return self._queue.pop(index), index == 0

    def _withdraw(self, request: PendingRequest) -> None:
        """Drop a request whose submitting task was cancelled."""
        with self._lock:
            if request not in self._queue:
                return
            was_head = self._queue[0] is request
            self._queue.remove(request)
            self._stats["withdrawn"] += 1
            logger.info(f"Withdrawn (caller cancelled): '{request.title}' ({request.id})")
            if was_head:
                self._publish_head()

    def _publish_head(self) -> None:
        self._bus.publish(self.get_pending_request())

    @staticmethod
    def _settle(
        request: PendingRequest,
        result: str = None,
        error: BaseException = None
    ) -> None:
        """Complete the request's future on the loop that owns it."""
        future = request.future

        def apply() -> None:
            if future.done():
                return
            if error is not None:
                future.set_exception(error)
            else:
                future.set_result(result)

        loop = future.get_loop()
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None

        if running is loop:
            apply()
        elif loop.is_closed():
            logger.warning(f"Event loop for '{request.id}' is closed; caller is gone")
        else:
            loop.call_soon_threadsafe(apply)

    def get_status(self) -> Dict[str, Any]:
        """Get gate status summary."""
        head = self.get_pending_request()
        return {
            "review_mode": self._enabled,
            "head_only_resolution": self.head_only_resolution,
            "pending": self.pending_count,
            "head": head.to_dict() if head else None,
            "observers": self._bus.listener_count,
            **self._stats,
        }
