"""Price-relative per-token emission factors.

There is no ground-truth emissions data per model, so price is used as a weak
proxy for compute intensity. Reference prices are log-compressed so a handful
of very expensive models do not dominate the scale: the cheapest model in the
population gets the baseline factor and the most expensive gets
``baseline * max_multiplier``.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from prompt_info.core.config import settings
from prompt_info.core.normalize import (
    RawPricingRow,
    build_pricing_map,
    normalize_fields,
    parse_number,
    parse_pricing_payload,
    resolve_model_name,
)
from prompt_info.models.schemas import PricingCosts, PricingEntry, PricingMap

logger = logging.getLogger(__name__)

BASELINE_CO2E_FACTOR = 0.0002  # g CO2e per token
MAX_CO2E_MULTIPLIER = 1.5
DEFAULT_OUTPUT_TOKENS = 4096
MILLION_TO_THOUSAND_RATIO = 1000

PER_MILLION_INPUT = "price_1m_input_tokens"
PER_MILLION_OUTPUT = "price_1m_output_tokens"
PER_MILLION_BLENDED = "price_1m_blended_3_to_1"
MAX_OUTPUT_FIELDS = (
    "max_output_tokens",
    "max_output_length",
    "context_window",
    "context_length",
    "output_tokens_max",
)


@dataclass(frozen=True)
class PerMillionPrices:
    """Prices as published per million tokens, plus the estimated completion cap."""

    input: float | None = None
    output: float | None = None
    blended: float | None = None
    max_output: int | None = None

    @property
    def reference(self) -> float | None:
        """Blended price when positive, else the input price."""
        if self.blended is not None and self.blended > 0:
            return self.blended
        return self.input


def _lookup(row: RawPricingRow, nested: Mapping[str, Any] | None, key: str) -> Any:
    if nested and key in nested:
        return nested[key]
    return row.get(key)


def per_million_prices(row: RawPricingRow) -> PerMillionPrices:
    """Read per-million prices from the row's ``pricing`` object (or its top level)."""
    nested = parse_pricing_payload(row.get("pricing"))
    # The first alias present decides, even when its value is unusable.
    raw_max = next(
        (v for v in (_lookup(row, nested, key) for key in MAX_OUTPUT_FIELDS) if v is not None),
        None,
    )
    value = parse_number(raw_max)
    max_output = math.floor(value) if value is not None and value > 0 else None
    return PerMillionPrices(
        input=parse_number(_lookup(row, nested, PER_MILLION_INPUT)),
        output=parse_number(_lookup(row, nested, PER_MILLION_OUTPUT)),
        blended=parse_number(_lookup(row, nested, PER_MILLION_BLENDED)),
        max_output=max_output,
    )


def reference_price(row: RawPricingRow) -> float | None:
    return per_million_prices(row).reference


@dataclass(frozen=True)
class EmissionScale:
    """Log-scale bounds of the positive reference prices in a population."""

    log_min: float = 0.0
    log_max: float = 0.0
    max_multiplier: float = MAX_CO2E_MULTIPLIER

    @classmethod
    def from_prices(
        cls, prices: Iterable[float | None], max_multiplier: float = MAX_CO2E_MULTIPLIER
    ) -> EmissionScale:
        positive = [p for p in prices if p is not None and math.isfinite(p) and p > 0]
        if not positive:
            return cls(max_multiplier=max_multiplier)
        return cls(
            log_min=math.log(min(positive)),
            log_max=math.log(max(positive)),
            max_multiplier=max_multiplier,
        )

    def multiplier(self, price: float | None) -> float:
        """Scale factor in ``[1, max_multiplier]`` for one reference price."""
        if price is None or not math.isfinite(price) or price <= 0:
            return 1.0
        if self.log_max <= self.log_min:
            return 1.0
        normalized = (math.log(price) - self.log_min) / (self.log_max - self.log_min)
        normalized = min(1.0, max(0.0, normalized))
        return 1.0 + (self.max_multiplier - 1.0) * normalized

    def factor(self, price: float | None, baseline: float = BASELINE_CO2E_FACTOR) -> float:
        return baseline * self.multiplier(price)


def build_remote_pricing_map(
    rows: list[RawPricingRow],
    *,
    baseline_factor: float | None = None,
    max_multiplier: float | None = None,
    default_output_tokens: int | None = None,
) -> PricingMap:
    """Build the pricing map for rows fetched from the remote table.

    Rows are normalized as usual; values the row does not state directly are
    then filled in from its per-million prices, and entries without a
    ``co2eFactor`` get one synthesized from the population's price scale.
    """
    baseline = settings.co2e_baseline_factor if baseline_factor is None else baseline_factor
    ceiling = settings.co2e_max_multiplier if max_multiplier is None else max_multiplier
    default_out = settings.default_output_tokens if default_output_tokens is None else default_output_tokens

    # Rows that cannot become entries do not stretch the scale.
    valid_rows = [row for row in rows if isinstance(row, Mapping) and resolve_model_name(row) is not None]
    scale = EmissionScale.from_prices((reference_price(r) for r in valid_rows), ceiling)
    logger.debug(
        "Emission scale over %d rows: log_min=%.4f log_max=%.4f",
        len(valid_rows),
        scale.log_min,
        scale.log_max,
    )

    def enrich(row: RawPricingRow) -> tuple[str, PricingEntry] | None:
        normalized = normalize_fields(row)
        if normalized is None:
            return None
        name, fields = normalized
        prices = per_million_prices(row)

        costs: PricingCosts | None = fields.get("pricing")
        input_cost = costs.input if costs else None
        output_cost = costs.output if costs else None
        if input_cost is None and prices.input is not None:
            input_cost = prices.input / MILLION_TO_THOUSAND_RATIO
        if output_cost is None and prices.output is not None:
            output_cost = prices.output / MILLION_TO_THOUSAND_RATIO
        if input_cost is not None or output_cost is not None:
            fields["pricing"] = PricingCosts(input=input_cost, output=output_cost)

        has_per_million = prices.input is not None or prices.output is not None
        if "avg_output_tokens" not in fields and has_per_million:
            fields["avg_output_tokens"] = prices.max_output or default_out

        if "co2e_factor" not in fields:
            fields["co2e_factor"] = scale.factor(prices.reference, baseline)

        return name, PricingEntry(**fields)

    return build_pricing_map(rows, normalizer=enrich)
