"""
StoryGen Usage Meter

Aggregates token and cost counters for every backend call. Each call is
broadcast to observers (the debug console keeps a running total) and folded
into process-wide totals and a per-model breakdown.

Usage:
    meter = UsageMeter(pricing={"gemini-3-pro": (2.00, 12.00)})
    meter.track("gemini-3-pro-preview", input_tokens=1200, output_tokens=800)
    meter.track("gemini-3-pro-image-preview", 0, 0, special_cost=0.134)
    totals = meter.get_totals()
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from threading import Lock
from typing import Any, Callable, Dict, Optional, Tuple

from storygen.core.constants import DEFAULT_MODEL_PRICING
from storygen.core.logging_config import get_logger
from storygen.events.message_bus import MessageEventBus, Subscription

logger = get_logger("metrics.usage")


@dataclass
class UsageStats:
    """Token and cost counters for one call, or an aggregate."""
    input_tokens: float = 0
    output_tokens: float = 0
    cost: float = 0.0
    model: Optional[str] = None
    calls: int = 0
    timestamp: datetime = field(default_factory=datetime.now)

    def add(self, other: "UsageStats") -> None:
        self.input_tokens += other.input_tokens
        self.output_tokens += other.output_tokens
        self.cost += other.cost
        self.calls += other.calls
        self.timestamp = other.timestamp

    def to_dict(self) -> Dict[str, Any]:
        return {
            "input_tokens": self.input_tokens,
            "output_tokens": self.output_tokens,
            "cost": round(self.cost, 6),
            "model": self.model,
            "calls": self.calls,
            "timestamp": self.timestamp.isoformat(),
        }


UsageListener = Callable[[UsageStats], None]


class UsageMeter:
    """Per-call usage accounting with cumulative totals."""

    def __init__(self, pricing: Dict[str, Tuple[float, float]] = None):
        """
        Args:
            pricing: USD per 1M tokens (input, output) keyed by a substring
                of the model name
        """
        self.pricing = dict(pricing if pricing is not None else DEFAULT_MODEL_PRICING)
        self._totals = UsageStats()
        self._by_model: Dict[str, UsageStats] = {}
        self._bus: MessageEventBus[UsageListener] = MessageEventBus("usage")
        self._lock = Lock()

    def price_for(self, model: str) -> Tuple[float, float]:
        """Get (input, output) price per 1M tokens; (0, 0) if unpriced."""
        for pattern, prices in self.pricing.items():
            if pattern in model:
                return prices
        return (0.0, 0.0)

    def track(
        self,
        model: str,
        input_tokens: float,
        output_tokens: float,
        special_cost: float = None
    ) -> UsageStats:
        """Record one backend call and broadcast its stats."""
        input_price, output_price = self.price_for(model)
        cost = (input_tokens / 1_000_000) * input_price
        cost += (output_tokens / 1_000_000) * output_price
        if special_cost:
            cost += special_cost

        stats = UsageStats(
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            cost=cost,
            model=model,
            calls=1,
        )

        with self._lock:
            self._totals.add(stats)
            per_model = self._by_model.setdefault(model, UsageStats(model=model))
            per_model.add(stats)

        logger.debug(f"Usage {model}: in={input_tokens} out={output_tokens} cost=${cost:.4f}")
        self._bus.publish(stats)
        return stats

    def get_totals(self) -> UsageStats:
        with self._lock:
            totals = UsageStats()
            totals.add(self._totals)
            return totals

    def get_breakdown(self) -> Dict[str, Dict[str, Any]]:
        with self._lock:
            return {model: stats.to_dict() for model, stats in self._by_model.items()}

    def subscribe(self, listener: UsageListener) -> Subscription[UsageListener]:
        return self._bus.subscribe(listener)

    def reset(self) -> None:
        with self._lock:
            self._totals = UsageStats()
            self._by_model.clear()
        logger.info("Usage counters reset")
