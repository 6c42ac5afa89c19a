"""Tests for prompt_info/core/pricing.py (pure function tests)."""

from __future__ import annotations

import pytest

from prompt_info.core.pricing import (
    DerivedMetrics,
    compute_metrics,
    list_models,
    metadata_display_items,
    resolve_emission_factor,
    select_model,
)
from prompt_info.models.schemas import PricingEntry
from tests.conftest import make_entry


# ── compute_metrics: cost ────────────────────────────────────────────


class TestCost:
    def test_input_and_output(self):
        metrics = compute_metrics(make_entry(2, 4), 1000, 500)
        assert metrics.input_cost == pytest.approx(2.0)
        assert metrics.output_cost == pytest.approx(2.0)
        assert metrics.total_cost == pytest.approx(4.0)

    def test_avg_output_tokens_used_when_not_specified(self):
        metrics = compute_metrics(make_entry(2, 4, avg_output_tokens=250), 1000)
        assert metrics.output_cost == pytest.approx(1.0)
        assert metrics.total_cost == pytest.approx(3.0)

    def test_expected_output_overrides_average(self):
        metrics = compute_metrics(make_entry(2, 4, avg_output_tokens=250), 1000, 1000)
        assert metrics.output_cost == pytest.approx(4.0)

    def test_non_finite_expected_output_falls_back_to_average(self):
        metrics = compute_metrics(make_entry(2, 4, avg_output_tokens=250), 1000, float("nan"))
        assert metrics.output_cost == pytest.approx(1.0)

    def test_no_planned_output_means_no_output_cost(self):
        metrics = compute_metrics(make_entry(2, 4), 1000)
        assert metrics.output_cost is None
        assert metrics.total_cost == pytest.approx(2.0)

    def test_zero_expected_output(self):
        metrics = compute_metrics(make_entry(2, 4, avg_output_tokens=250), 1000, 0)
        assert metrics.output_cost is None
        assert metrics.total_cost == pytest.approx(2.0)

    def test_output_only_price_is_not_total(self):
        metrics = compute_metrics(make_entry(output_cost=4), 1000, 500)
        assert metrics.input_cost is None
        assert metrics.output_cost == pytest.approx(2.0)
        assert metrics.total_cost is None

    def test_no_pricing(self):
        metrics = compute_metrics(make_entry(co2e_factor=0.001), 100)
        assert metrics.input_cost is None
        assert metrics.output_cost is None
        assert metrics.total_cost is None
        assert metrics.co2e_grams == pytest.approx(0.1)


# ── compute_metrics: emissions ───────────────────────────────────────


class TestEmissions:
    def test_fallback_factor(self):
        metrics = compute_metrics(make_entry(1, 1), 100)
        assert metrics.co2e_grams == pytest.approx(0.02)
        assert metrics.used_fallback_emission_factor is True

    def test_model_factor(self):
        metrics = compute_metrics(make_entry(co2e_factor=0.005), 100)
        assert metrics.co2e_grams == pytest.approx(0.5)
        assert metrics.used_fallback_emission_factor is False

    def test_zero_factor_is_a_real_value(self):
        metrics = compute_metrics(make_entry(co2e_factor=0.0), 100)
        assert metrics.co2e_grams == 0.0
        assert metrics.used_fallback_emission_factor is False

    def test_unknown_model_still_estimates_emissions(self):
        metrics = compute_metrics(None, 100)
        assert metrics.total_cost is None
        assert metrics.co2e_grams == pytest.approx(0.02)
        assert metrics.used_fallback_emission_factor is True

    def test_custom_baseline(self):
        metrics = compute_metrics(None, 10, baseline_factor=0.1)
        assert metrics.co2e_grams == pytest.approx(1.0)

    def test_per_thousand_rate(self):
        metrics = compute_metrics(make_entry(co2e_factor=0.005), 200)
        assert metrics.co2e_per_thousand_tokens == pytest.approx(5.0)

    def test_resolve_emission_factor(self):
        assert resolve_emission_factor(None) == (0.0002, True)
        assert resolve_emission_factor(make_entry(co2e_factor=0.3)) == (0.3, False)


# ── compute_metrics: zero tokens ─────────────────────────────────────


class TestZeroTokens:
    def test_everything_absent(self):
        metrics = compute_metrics(make_entry(2, 4, co2e_factor=0.1, avg_output_tokens=10), 0, 500)
        assert metrics == DerivedMetrics(token_count=0)
        assert metrics.input_cost is None
        assert metrics.output_cost is None
        assert metrics.total_cost is None
        assert metrics.co2e_grams is None
        assert metrics.co2e_per_thousand_tokens is None

    def test_unknown_model(self):
        assert compute_metrics(None, 0).co2e_grams is None


# ── model selection & display ────────────────────────────────────────


class TestModelSelection:
    def test_list_models_sorted_case_insensitively(self):
        pricing = {"gpt-4": PricingEntry(), "Claude": PricingEntry(), "alpha": PricingEntry()}
        assert list_models(pricing) == ["alpha", "Claude", "gpt-4"]

    def test_select_requested(self):
        assert select_model({"a": PricingEntry()}, "unlisted") == "unlisted"

    def test_select_default_first(self):
        assert select_model({"b": PricingEntry(), "a": PricingEntry()}, None) == "a"

    def test_select_from_empty(self):
        assert select_model({}, None) is None


class TestMetadataDisplayItems:
    def test_renders_scalars(self):
        entry = PricingEntry(metadata={"open": True, "ctx": 8192, "family": "gpt", "closed": False})
        assert metadata_display_items(entry) == [
            ("open", "true"),
            ("ctx", "8192"),
            ("family", "gpt"),
            ("closed", "false"),
        ]

    def test_no_metadata(self):
        assert metadata_display_items(None) == []
        assert metadata_display_items(PricingEntry()) == []
