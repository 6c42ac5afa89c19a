"""Cost and emission estimates for a prompt against one model's pricing entry."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

from prompt_info.core.emissions import BASELINE_CO2E_FACTOR
from prompt_info.models.schemas import PricingEntry, PricingMap

TOKENS_PER_PRICE_UNIT = 1000  # Prices are quoted per 1K tokens


@dataclass(frozen=True)
class DerivedMetrics:
    token_count: int
    input_cost: float | None = None
    output_cost: float | None = None
    total_cost: float | None = None
    co2e_grams: float | None = None
    used_fallback_emission_factor: bool = False

    @property
    def co2e_per_thousand_tokens(self) -> float | None:
        if self.co2e_grams is None or self.token_count <= 0:
            return None
        return self.co2e_grams / self.token_count * TOKENS_PER_PRICE_UNIT


def _finite(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value) if math.isfinite(value) else None


def resolve_emission_factor(
    entry: PricingEntry | None, baseline: float = BASELINE_CO2E_FACTOR
) -> tuple[float, bool]:
    """Return ``(grams per token, used_fallback)`` for an entry."""
    factor = _finite(entry.co2e_factor) if entry is not None else None
    if factor is None:
        return baseline, True
    return factor, False


def compute_metrics(
    entry: PricingEntry | None,
    token_count: int,
    expected_output_tokens: float | None = None,
    *,
    baseline_factor: float = BASELINE_CO2E_FACTOR,
) -> DerivedMetrics:
    """Estimate cost and CO2e for ``token_count`` prompt tokens.

    Cost and emissions are independent: an unknown model (``entry is None``)
    or a model without prices still gets an emission estimate from the
    baseline factor, but never a cost guess.

    Total cost is the input cost, plus the output cost when both are known.
    An output-only cost is reported but deliberately not surfaced as the
    total; input cost is the primary signal.
    """
    if token_count <= 0:
        return DerivedMetrics(token_count=0)

    costs = entry.pricing if entry is not None else None
    input_rate = _finite(costs.input) if costs is not None else None
    output_rate = _finite(costs.output) if costs is not None else None

    input_cost = None
    if input_rate is not None:
        input_cost = (token_count / TOKENS_PER_PRICE_UNIT) * input_rate

    planned_output = _finite(expected_output_tokens)
    if planned_output is None and entry is not None:
        planned_output = _finite(entry.avg_output_tokens)
    if planned_output is None:
        planned_output = 0.0

    output_cost = None
    if output_rate is not None and planned_output > 0:
        output_cost = (planned_output / TOKENS_PER_PRICE_UNIT) * output_rate

    if input_cost is not None and output_cost is not None:
        total_cost = input_cost + output_cost
    else:
        total_cost = input_cost

    factor, used_fallback = resolve_emission_factor(entry, baseline_factor)

    return DerivedMetrics(
        token_count=token_count,
        input_cost=input_cost,
        output_cost=output_cost,
        total_cost=total_cost,
        co2e_grams=token_count * factor,
        used_fallback_emission_factor=used_fallback,
    )


def list_models(pricing_map: PricingMap) -> list[str]:
    """Model names sorted for display."""
    return sorted(pricing_map, key=lambda name: (name.casefold(), name))


def select_model(pricing_map: PricingMap, requested: str | None) -> str | None:
    """Use the requested model if given, else the first listed one."""
    if requested:
        return requested
    models = list_models(pricing_map)
    return models[0] if models else None


def metadata_display_items(entry: PricingEntry | None) -> list[tuple[str, str]]:
    """Render an entry's metadata as ``(key, text)`` pairs for display."""
    if entry is None or not entry.metadata:
        return []
    items: list[tuple[str, str]] = []
    for key, value in entry.metadata.items():
        if isinstance(value, bool):
            items.append((key, "true" if value else "false"))
        elif isinstance(value, str):
            if value.strip():
                items.append((key, value.strip()))
        elif isinstance(value, (int, float)):
            items.append((key, str(value)))
    return items
