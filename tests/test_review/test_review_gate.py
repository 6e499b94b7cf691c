"""
Tests for Review Gate

Tests for storygen/review/review_gate.py
"""

import asyncio

import pytest

from storygen.core.exceptions import RequestCancelledError, is_cancellation
from storygen.review.review_gate import ReviewGate


async def submit(gate: ReviewGate, prompt: str, title: str) -> asyncio.Task:
    """Start a submission and let it reach the queue."""
    task = asyncio.create_task(gate.submit_for_review(prompt, title))
    await asyncio.sleep(0)
    return task


def titles(events):
    return [event.title if event else None for event in events]


class TestReviewMode:
    """Tests for the review mode toggle."""

    def test_default_off(self):
        assert ReviewGate().get_review_mode() is False

    def test_toggle(self):
        gate = ReviewGate()
        gate.set_review_mode(True)
        assert gate.get_review_mode() is True
        gate.set_review_mode(False)
        assert gate.get_review_mode() is False

    @pytest.mark.asyncio
    async def test_bypass_when_off(self):
        gate = ReviewGate(enabled=False)
        events = []
        gate.subscribe_to_pending_requests(events.append)

        result = await gate.submit_for_review("a prompt", "Scene 1")

        assert result == "a prompt"
        assert gate.pending_count == 0
        assert events == []

    @pytest.mark.asyncio
    async def test_disabling_does_not_release_queued_requests(self, gate):
        task = await submit(gate, "p", "Scene 1")

        gate.set_review_mode(False)
        await asyncio.sleep(0)

        assert not task.done()
        assert gate.pending_count == 1
        assert await gate.submit_for_review("q", "Scene 2") == "q"

        gate.resolve_pending_request(gate.get_pending_request().id, "p")
        assert await task == "p"


class TestQueueVisibility:
    """Tests for FIFO, head-only visibility."""

    @pytest.mark.asyncio
    async def test_observers_see_one_request_at_a_time(self, gate):
        events = []
        gate.subscribe_to_pending_requests(events.append)

        tasks = [await submit(gate, f"prompt {i}", f"Scene {i}") for i in (1, 2, 3)]
        assert titles(events) == ["Scene 1"]

        for _ in tasks:
            head = gate.get_pending_request()
            gate.resolve_pending_request(head.id, head.prompt)

        assert titles(events) == ["Scene 1", "Scene 2", "Scene 3", None]
        assert await asyncio.gather(*tasks) == ["prompt 1", "prompt 2", "prompt 3"]

    @pytest.mark.asyncio
    async def test_head_reports_queue_length(self, gate):
        tasks = [await submit(gate, "a", "Scene 1"), await submit(gate, "b", "Scene 2")]

        head = gate.get_pending_request()
        assert head.title == "Scene 1"
        assert head.queue_length == 2
        assert gate.pending_count == 2

        gate.reject_all()
        await asyncio.gather(*tasks, return_exceptions=True)

    @pytest.mark.asyncio
    async def test_replay_on_subscribe(self, gate):
        tasks = [await submit(gate, "a", "Scene 1"), await submit(gate, "b", "Scene 2")]

        events = []
        gate.subscribe_to_pending_requests(events.append)

        assert titles(events) == ["Scene 1"]
        gate.reject_all()
        await asyncio.gather(*tasks, return_exceptions=True)

    def test_no_replay_when_empty(self, gate):
        events = []
        gate.subscribe_to_pending_requests(events.append)
        assert events == []

    @pytest.mark.asyncio
    async def test_failing_replay_is_logged(self, gate):
        task = await submit(gate, "a", "Scene 1")

        def broken(head):
            raise RuntimeError("ui crashed")

        subscription = gate.subscribe_to_pending_requests(broken)

        assert subscription.active
        gate.reject_all()
        await asyncio.gather(task, return_exceptions=True)

    @pytest.mark.asyncio
    async def test_unsubscribed_observer_not_notified(self, gate):
        events = []
        unsubscribe = gate.subscribe_to_pending_requests(events.append)
        unsubscribe()

        task = await submit(gate, "a", "Scene 1")

        assert events == []
        gate.reject_all()
        await asyncio.gather(task, return_exceptions=True)


class TestResolution:
    """Tests for resolving and rejecting requests."""

    @pytest.mark.asyncio
    async def test_resolve_returns_edited_prompt(self, gate):
        task = await submit(gate, "original", "Scene 1")

        head = gate.get_pending_request()
        assert gate.resolve_pending_request(head.id, "edited") is True

        assert await task == "edited"
        assert gate.get_status()["edited"] == 1

    @pytest.mark.asyncio
    async def test_reject_cancels_caller(self, gate):
        task = await submit(gate, "original", "Scene 1")

        head = gate.get_pending_request()
        assert gate.reject_pending_request(head.id, "off tone") is True

        with pytest.raises(RequestCancelledError) as exc_info:
            await task

        error = exc_info.value
        assert error.request_id == head.id
        assert error.title == "Scene 1"
        assert error.reason == "off tone"
        assert is_cancellation(error)
        assert gate.pending_count == 0

    @pytest.mark.asyncio
    async def test_second_resolve_is_noop(self, gate):
        task = await submit(gate, "original", "Scene 1")
        request_id = gate.get_pending_request().id

        assert gate.resolve_pending_request(request_id, "first") is True
        assert gate.resolve_pending_request(request_id, "second") is False
        assert gate.reject_pending_request(request_id) is False

        assert await task == "first"
        assert gate.get_status()["ignored"] == 2

    def test_unknown_id_is_ignored(self, gate):
        assert gate.resolve_pending_request("req_missing", "x") is False
        assert gate.reject_pending_request("req_missing") is False

    @pytest.mark.asyncio
    async def test_rejection_only_cancels_its_own_call(self, gate):
        first = await submit(gate, "a", "Scene 1")
        second = await submit(gate, "b", "Scene 2")

        gate.reject_pending_request(gate.get_pending_request().id)
        gate.resolve_pending_request(gate.get_pending_request().id, "b!")

        with pytest.raises(RequestCancelledError):
            await first
        assert await second == "b!"

    @pytest.mark.asyncio
    async def test_two_scene_scenario(self, gate):
        events = []
        gate.subscribe_to_pending_requests(events.append)

        scene_1 = await submit(gate, "Scene 1 prompt", "Scene 1")
        scene_2 = await submit(gate, "Scene 2 prompt", "Scene 2")
        assert titles(events) == ["Scene 1"]

        gate.resolve_pending_request(events[0].id, "Scene 1 EDITED")
        assert titles(events) == ["Scene 1", "Scene 2"]
        assert await scene_1 == "Scene 1 EDITED"

        gate.resolve_pending_request(events[1].id, "Scene 2 prompt")
        assert await scene_2 == "Scene 2 prompt"
        assert events[-1] is None

    @pytest.mark.asyncio
    async def test_resolve_from_worker_thread(self, gate):
        task = await submit(gate, "original", "Scene 1")
        request_id = gate.get_pending_request().id

        settled = await asyncio.to_thread(gate.resolve_pending_request, request_id, "threaded")

        assert settled is True
        assert await task == "threaded"


class TestHeadOnlyResolution:
    """Tests for out-of-turn resolution."""

    @pytest.mark.asyncio
    async def test_non_head_ignored_by_default(self, gate):
        first = await submit(gate, "a", "Scene 1")
        second = await submit(gate, "b", "Scene 2")
        second_id = gate._queue[1].id

        assert gate.resolve_pending_request(second_id, "b!") is False
        assert gate.pending_count == 2
        assert not second.done()

        gate.reject_all()
        await asyncio.gather(first, second, return_exceptions=True)

    @pytest.mark.asyncio
    async def test_out_of_order_when_allowed(self):
        gate = ReviewGate(enabled=True, head_only_resolution=False)
        events = []
        gate.subscribe_to_pending_requests(events.append)

        first = await submit(gate, "a", "Scene 1")
        second = await submit(gate, "b", "Scene 2")
        second_id = gate._queue[1].id

        assert gate.resolve_pending_request(second_id, "b!") is True
        assert await second == "b!"
        # Head did not change, observers are not re-notified
        assert titles(events) == ["Scene 1"]
        assert gate.get_pending_request().queue_length == 1

        gate.resolve_pending_request(gate.get_pending_request().id, "a")
        assert await first == "a"


class TestWithdrawal:
    """Tests for callers that go away."""

    @pytest.mark.asyncio
    async def test_cancelled_caller_is_withdrawn(self, gate):
        events = []
        gate.subscribe_to_pending_requests(events.append)

        first = await submit(gate, "a", "Scene 1")
        second = await submit(gate, "b", "Scene 2")

        first.cancel()
        with pytest.raises(asyncio.CancelledError):
            await first

        assert gate.pending_count == 1
        assert titles(events) == ["Scene 1", "Scene 2"]
        assert gate.get_status()["withdrawn"] == 1

        gate.resolve_pending_request(gate.get_pending_request().id, "b")
        assert await second == "b"

    @pytest.mark.asyncio
    async def test_reject_all(self, gate):
        events = []
        gate.subscribe_to_pending_requests(events.append)
        tasks = [await submit(gate, "p", f"Scene {i}") for i in range(3)]

        assert gate.reject_all("shutdown") == 3

        results = await asyncio.gather(*tasks, return_exceptions=True)
        assert all(isinstance(result, RequestCancelledError) for result in results)
        assert gate.pending_count == 0
        assert events[-1] is None

    def test_reject_all_empty(self, gate):
        assert gate.reject_all() == 0
