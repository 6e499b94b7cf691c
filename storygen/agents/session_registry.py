"""
Agent Session Registry

One persistent conversation per agent role (Director, Screenwriter, ...).

Sessions are created lazily, primed with the role's instructions, and keep
their full message history so related requests (e.g. every scene of one
project) share context without resending it. Every recorded message is
broadcast to subscribers such as the debug console.

Usage:
    registry = AgentSessionRegistry(backend)

    session = registry.get_agent(AgentRole.SCREENWRITER, "gemini-2.0-flash-exp",
                                 system_instruction=SCREENWRITER_BRIEF)
    reply = await registry.send_message(AgentRole.SCREENWRITER, session, scene_prompt)

    registry.subscribe(lambda role, message: print(role.value, message.content))
"""

from __future__ import annotations

import dataclasses
from threading import RLock
from typing import Any, Callable, Dict, List, Optional

from storygen.core.constants import (
    DEFAULT_ACKNOWLEDGEMENT,
    AgentRole,
    LogType,
    MessageRole,
)
from storygen.core.logging_config import get_logger
from storygen.events.debug_log import DebugLog
from storygen.events.message_bus import MessageEventBus, Subscription
from storygen.llm.backend import ChatBackend, ChatTurn
from storygen.llm.parsing import try_parse_structured
from storygen.metrics.usage_meter import UsageMeter
from .models import AgentMessage, AgentSession, PromptMetadata

logger = get_logger("agents.registry")

AgentMessageListener = Callable[[AgentRole, AgentMessage], None]


class AgentSessionRegistry:
    """
    Owns one session and one message history per agent role.

    Features:
    - Lazy session creation with a priming exchange
    - Append-only history in real-time order
    - Synchronous broadcast of every recorded message
    - Memory reset per role
    """

    def __init__(
        self,
        backend: ChatBackend,
        usage_meter: Optional[UsageMeter] = None,
        debug_log: Optional[DebugLog] = None,
        acknowledgement: str = DEFAULT_ACKNOWLEDGEMENT
    ):
        """
        Args:
            backend: Chat backend used to start sessions
            usage_meter: Receives token usage of every reply
            debug_log: Mirrors recorded messages as debug entries
            acknowledgement: Synthetic model reply to the priming turn;
                `{role}` is replaced by the role name
        """
        self.backend = backend
        self.usage_meter = usage_meter
        self.debug_log = debug_log
        self.acknowledgement = acknowledgement

        self._sessions: Dict[AgentRole, AgentSession] = {}
        self._histories: Dict[AgentRole, List[AgentMessage]] = {}
        self._bus: MessageEventBus[AgentMessageListener] = MessageEventBus("agents")
        self._lock = RLock()

        self._stats = {
            "sessions_created": 0,
            "messages_sent": 0,
            "replies_received": 0,
            "backend_failures": 0,
            "messages_injected": 0,
            "resets": 0,
            "stale_replies": 0,
        }

    # ==================== SESSIONS ====================

    def get_agent(
        self,
        role: AgentRole,
        model: str,
        system_instruction: Optional[str] = None,
        metadata: Optional[PromptMetadata] = None
    ) -> AgentSession:
        """
        Get the session for `role`, creating and priming it on first use.

        An existing session is returned as is; `model` and
        `system_instruction` only apply when the session is created.
        """
        with self._lock:
            session = self._sessions.get(role)
            if session is not None:
                return session

            history: List[ChatTurn] = []
            if system_instruction:
                history = [
                    ChatTurn("user", system_instruction),
                    ChatTurn("model", self.acknowledgement.format(role=role.value)),
                ]

            session = AgentSession(
                role=role,
                model=model,
                chat=self.backend.start_chat(model, history),
                system_instruction=system_instruction,
            )
            self._sessions[role] = session
            self._histories.setdefault(role, [])
            self._stats["sessions_created"] += 1
            logger.info(f"Session created for {role.value} ({model})")

            if system_instruction:
                metadata = metadata or PromptMetadata()
                self._record(
                    role,
                    AgentMessage(
                        role=MessageRole.SYSTEM,
                        agent_role=role,
                        content=system_instruction,
                        model=metadata.model or model,
                        dynamic_prompt=metadata.dynamic_prompt,
                        final_prompt=metadata.final_prompt,
                    ),
                    LogType.INFO,
                    f"{role.value} primed",
                )
            return session

    def has_session(self, role: AgentRole) -> bool:
        return role in self._sessions

    # ==================== MESSAGING ====================

    async def send_message(
        self,
        role: AgentRole,
        session: AgentSession,
        text: str,
        metadata: Optional[PromptMetadata] = None
    ) -> str:
        """
        Send a user turn through `session` and record both sides.

        The user message is recorded before the backend is called, so it stays
        in history even if the call fails. Backend errors propagate unchanged.

        Nothing is recorded for a session that is no longer the role's current
        one, e.g. a reply arriving after reset_memory(role). The reply text is
        still returned and its usage still tracked.

        Returns:
            The raw reply text
        """
        metadata = metadata or PromptMetadata()
        self._stats["messages_sent"] += 1

        self._record(
            role,
            AgentMessage(
                role=MessageRole.USER,
                agent_role=role,
                content=text,
                model=metadata.model or session.model,
                dynamic_prompt=metadata.dynamic_prompt,
                final_prompt=metadata.final_prompt,
            ),
            LogType.REQUEST,
            f"{role.value} request",
            session=session,
        )

        try:
            reply = await session.chat.send_message(text)
        except Exception as e:
            self._stats["backend_failures"] += 1
            logger.error(f"{role.value} backend call failed: {e}")
            if self.debug_log:
                self.debug_log.error(f"{role.value} backend failure", str(e), agent_role=role)
            raise

        model = reply.model or session.model
        if self.usage_meter and reply.usage:
            self.usage_meter.track(model, reply.input_tokens, reply.output_tokens)

        self._stats["replies_received"] += 1
        recorded = self._record(
            role,
            AgentMessage(
                role=MessageRole.MODEL,
                agent_role=role,
                content=reply.text,
                model=model,
                data=try_parse_structured(reply.text),
            ),
            LogType.RESPONSE,
            f"{role.value} response",
            session=session,
        )
        if not recorded:
            self._stats["stale_replies"] += 1
            logger.warning(
                f"Dropped {role.value} reply from a discarded session ({len(reply.text)} chars)"
            )
        return reply.text

    def inject_message(self, role: AgentRole, message: AgentMessage) -> AgentMessage:
        """Append a pre-built message to `role`'s memory without the backend."""
        if message.agent_role != role:
            message = dataclasses.replace(message, agent_role=role)
        self._stats["messages_injected"] += 1
        self._record(role, message, LogType.INFO, f"{role.value} memory injected")
        return message

    # ==================== HISTORY ====================

    def get_history(self, role: AgentRole) -> List[AgentMessage]:
        """Get `role`'s messages in creation order (empty if none)."""
        with self._lock:
            return list(self._histories.get(role, []))

    def get_all_histories(self) -> Dict[AgentRole, List[AgentMessage]]:
        with self._lock:
            return {role: list(messages) for role, messages in self._histories.items()}

    def reset_memory(self, role: AgentRole) -> None:
        """Discard `role`'s session and history; the next get_agent re-primes."""
        with self._lock:
            self._sessions.pop(role, None)
            removed = len(self._histories.pop(role, []))
            self._stats["resets"] += 1
        logger.info(f"Memory reset for {role.value} ({removed} messages discarded)")
        if self.debug_log:
            self.debug_log.info(f"{role.value} memory reset", {"messages": removed}, agent_role=role)

    # ==================== OBSERVATION ====================

    def subscribe(self, listener: AgentMessageListener) -> Subscription[AgentMessageListener]:
        """Receive (role, message) for every recorded message."""
        return self._bus.subscribe(listener)

    def _record(self, role: AgentRole, message: AgentMessage, log_type: LogType,
                title: str, session: Optional[AgentSession] = None) -> bool:
        """
        Append to history and broadcast, as one step.

        With `session`, the message is only recorded while that session is
        still the role's current one.
        """
        with self._lock:
            if session is not None and self._sessions.get(role) is not session:
                logger.debug(f"[{role.value}] not recorded, session was reset")
                return False
            self._histories.setdefault(role, []).append(message)
            self._bus.publish(role, message)

        logger.debug(f"[{role.value}] {message.role.value}: {message.content[:50]}...")
        if self.debug_log:
            self.debug_log.log(
                log_type,
                title,
                {"content": message.content, "data": message.data},
                model=message.model,
                dynamic_prompt=message.dynamic_prompt,
                final_prompt=message.final_prompt,
                agent_role=role,
                linked_message_id=message.id,
            )
        return True

    def get_stats(self) -> Dict[str, Any]:
        """Get registry statistics."""
        with self._lock:
            return {
                **self._stats,
                "active_sessions": [role.value for role in self._sessions],
                "history_sizes": {
                    role.value: len(messages) for role, messages in self._histories.items()
                },
                "subscribers": self._bus.listener_count,
            }
