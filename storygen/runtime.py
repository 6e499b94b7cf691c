"""
StoryGen Runtime

Composition root for the orchestration core. One runtime is built at
application start and handed to pipeline stages and the debug console API;
tests build their own independent runtimes.

Usage:
    runtime = StorygenRuntime(config, backend=create_backend(config.backend))
    set_runtime(runtime)

    scene = await runtime.ask_agent(
        AgentRole.SCREENWRITER,
        prompt,
        title="Scene 1 - Screenplay",
        system_instruction=SCREENWRITER_BRIEF,
    )
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from storygen.agents.models import PromptMetadata
from storygen.agents.session_registry import AgentSessionRegistry
from storygen.core.config import StorygenConfig, get_config
from storygen.core.constants import AgentRole
from storygen.core.logging_config import get_logger
from storygen.events.debug_log import DebugLog
from storygen.llm.api_clients import create_backend
from storygen.llm.backend import ChatBackend
from storygen.metrics.usage_meter import UsageMeter
from storygen.review.review_gate import ReviewGate

logger = get_logger("runtime")


class StorygenRuntime:
    """Owns the review gate, agent registry, usage meter and debug log."""

    def __init__(self, config: Optional[StorygenConfig] = None,
                 backend: Optional[ChatBackend] = None):
        self.config = config or StorygenConfig()

        if backend is None:
            backend = create_backend(self.config.backend)

        self.debug_log = DebugLog(max_entries=self.config.debug.max_log_entries)
        self.usage = UsageMeter(pricing=self.config.pricing.models)
        self.review_gate = ReviewGate(
            enabled=self.config.review.enabled,
            head_only_resolution=self.config.review.head_only_resolution,
        )
        self.agents = AgentSessionRegistry(
            backend,
            usage_meter=self.usage,
            debug_log=self.debug_log,
            acknowledgement=self.config.agents.acknowledgement,
        )
        logger.info(
            f"Runtime ready (review mode: {'on' if self.review_gate.get_review_mode() else 'off'})"
        )

    async def review(self, prompt: str, title: str) -> str:
        """Pass a payload through the review gate."""
        return await self.review_gate.submit_for_review(prompt, title)

    async def ask_agent(
        self,
        role: AgentRole,
        prompt: str,
        title: str,
        model: Optional[str] = None,
        system_instruction: Optional[str] = None,
        dynamic_prompt: Optional[str] = None
    ) -> str:
        """
        Review a prompt, then send it through `role`'s session.

        Raises:
            RequestCancelledError: If the reviewer rejected the prompt; the
                backend is not called and nothing is recorded
        """
        final_prompt = await self.review(prompt, title)

        model = model or self.config.agents.default_model
        session = self.agents.get_agent(
            role,
            model,
            system_instruction=system_instruction,
            metadata=PromptMetadata(model=model),
        )
        return await self.agents.send_message(
            role,
            session,
            final_prompt,
            PromptMetadata(
                model=session.model,
                dynamic_prompt=dynamic_prompt,
                final_prompt=final_prompt,
            ),
        )

    def snapshot(self) -> Dict[str, Any]:
        """Full observable state, for a debug console that just connected."""
        head = self.review_gate.get_pending_request()
        return {
            "review_mode": self.review_gate.get_review_mode(),
            "pending_request": head.to_dict() if head else None,
            "usage": self.usage.get_totals().to_dict(),
            "agents": {
                role.value: [message.to_dict() for message in messages]
                for role, messages in self.agents.get_all_histories().items()
            },
            "logs": [entry.to_dict() for entry in self.debug_log.get_entries()],
        }

    def shutdown(self) -> None:
        """Release callers still waiting for review."""
        rejected = self.review_gate.reject_all("Runtime shutting down")
        if rejected:
            logger.info(f"Shutdown rejected {rejected} pending request(s)")


_runtime: Optional[StorygenRuntime] = None


def get_runtime() -> StorygenRuntime:
    """Get the process-wide runtime, creating it from the global config."""
    global _runtime
    if _runtime is None:
        _runtime = StorygenRuntime(get_config())
    return _runtime


def set_runtime(runtime: Optional[StorygenRuntime]) -> None:
    """Install (or clear) the process-wide runtime."""
    global _runtime
    _runtime = runtime
