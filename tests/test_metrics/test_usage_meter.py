"""
Tests for Usage Meter

Tests for storygen/metrics/usage_meter.py
"""

import pytest

from storygen.core.constants import IMAGE_GENERATION_COST, VIDEO_GENERATION_COST
from storygen.metrics.usage_meter import UsageMeter


@pytest.fixture
def meter():
    return UsageMeter(pricing={"gemini-3-pro": (2.00, 12.00)})


class TestPricing:
    """Tests for cost computation."""

    def test_substring_match(self, meter):
        assert meter.price_for("gemini-3-pro-preview") == (2.00, 12.00)

    def test_unpriced_model_is_free(self, meter):
        assert meter.price_for("some-local-model") == (0.0, 0.0)

    def test_cost_per_million(self, meter):
        stats = meter.track("gemini-3-pro-preview", 1_000_000, 500_000)
        assert stats.cost == pytest.approx(2.00 + 6.00)
        assert stats.calls == 1

    def test_special_cost(self, meter):
        stats = meter.track("gemini-3-pro-image-preview", 0, 0, special_cost=IMAGE_GENERATION_COST)
        assert stats.cost == pytest.approx(0.134)


class TestTotals:
    """Tests for aggregation and observers."""

    def test_totals_and_breakdown(self, meter):
        meter.track("gemini-3-pro-preview", 1000, 200)
        meter.track("gemini-3-pro-preview", 500, 100)
        meter.track("veo-3.1-generate-preview", 0, 0, special_cost=VIDEO_GENERATION_COST)

        totals = meter.get_totals()
        assert totals.input_tokens == 1500
        assert totals.output_tokens == 300
        assert totals.calls == 3

        breakdown = meter.get_breakdown()
        assert breakdown["gemini-3-pro-preview"]["calls"] == 2
        assert breakdown["veo-3.1-generate-preview"]["cost"] == pytest.approx(0.75)

    def test_totals_are_a_copy(self, meter):
        meter.track("gemini-3-pro-preview", 10, 10)
        totals = meter.get_totals()
        totals.input_tokens = 999

        assert meter.get_totals().input_tokens == 10

    def test_subscribers_get_per_call_stats(self, meter):
        received = []
        meter.subscribe(received.append)

        meter.track("gemini-3-pro-preview", 10, 20)

        assert len(received) == 1
        assert received[0].input_tokens == 10
        assert received[0].model == "gemini-3-pro-preview"

    def test_reset(self, meter):
        meter.track("gemini-3-pro-preview", 10, 20)
        meter.reset()

        assert meter.get_totals().calls == 0
        assert meter.get_breakdown() == {}
