"""
StoryGen Message Event Bus

Synchronous multicast pub/sub used by the review gate (pending request
updates), the agent registry (message events), the usage meter and the
debug log.

Usage:
    bus: MessageEventBus[Callable[[AgentRole, AgentMessage], None]] = MessageEventBus("agents")

    subscription = bus.subscribe(lambda role, message: print(role, message))
    bus.publish(AgentRole.DIRECTOR, message)
    subscription.unsubscribe()
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from threading import RLock
from typing import Any, Callable, Dict, Generic, List, Optional, TypeVar

from storygen.core.logging_config import get_logger

logger = get_logger("events.message_bus")

L = TypeVar("L", bound=Callable[..., Any])


@dataclass(eq=False)
class Subscription(Generic[L]):
    """Handle returned by subscribe; calling it unsubscribes."""
    sub_id: str
    listener: L
    bus: Optional["MessageEventBus"] = field(default=None, repr=False)
    created_at: datetime = field(default_factory=datetime.now)
    active: bool = True

    def unsubscribe(self) -> bool:
        """Detach from the bus. Safe to call more than once."""
        if not self.active or self.bus is None:
            return False
        return self.bus.unsubscribe(self)

    def __call__(self) -> bool:
        return self.unsubscribe()


class MessageEventBus(Generic[L]):
    """
    Synchronous, registration-ordered fan-out.

    Delivery rules:
    - publish() calls every listener registered at publish time, in order
    - a listener removed during a publish is not called again for it
    - a failing listener is logged and does not stop the others
    """

    def __init__(self, name: str = "bus"):
        self.name = name
        self._subscriptions: List[Subscription[L]] = []
        self._lock = RLock()
        self._next_sub_id = 0
        self._events_published = 0
        self._listener_errors = 0

    def _generate_sub_id(self) -> str:
        self._next_sub_id += 1
        return f"{self.name}_sub_{self._next_sub_id:06d}"

    @property
    def listener_count(self) -> int:
        return len(self._subscriptions)

    def subscribe(self, listener: L) -> Subscription[L]:
        """Register a listener and return its subscription handle."""
        with self._lock:
            subscription = Subscription(
                sub_id=self._generate_sub_id(),
                listener=listener,
                bus=self,
            )
            self._subscriptions.append(subscription)
        logger.debug(f"[{self.name}] subscription created: {subscription.sub_id}")
        return subscription

    def unsubscribe(self, subscription: Subscription[L]) -> bool:
        """Remove a subscription. Returns False if it was already removed."""
        with self._lock:
            subscription.active = False
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)
                logger.debug(f"[{self.name}] subscription removed: {subscription.sub_id}")
                return True
            return False

    def publish(self, *args: Any) -> int:
        """
        Deliver an event to every current listener.

        Returns:
            Number of listeners that were invoked
        """
        with self._lock:
            snapshot = list(self._subscriptions)
            self._events_published += 1

        delivered = 0
        for subscription in snapshot:
            if not subscription.active:
                continue
            try:
                subscription.listener(*args)
                delivered += 1
            except Exception as e:
                self._listener_errors += 1
                logger.error(f"[{self.name}] listener {subscription.sub_id} failed: {e}")
        return delivered

    def clear(self) -> None:
        """Drop every subscription."""
        with self._lock:
            for subscription in self._subscriptions:
                subscription.active = False
            self._subscriptions.clear()

    def get_stats(self) -> Dict[str, Any]:
        """Get bus statistics."""
        return {
            "name": self.name,
            "listeners": self.listener_count,
            "events_published": self._events_published,
            "listener_errors": self._listener_errors,
        }
