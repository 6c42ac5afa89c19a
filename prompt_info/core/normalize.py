"""Normalize loosely-shaped pricing rows into canonical ``PricingEntry`` records.

Rows come from a remote table whose column names are not fixed: the same value
may appear under several names, as a number or a numeric string, or nested in
a ``pricing`` object that may itself be JSON-encoded. Each canonical field is
described by an ordered alias list; the first usable value wins.
"""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass
from typing import Any, Callable, Mapping

from prompt_info.models.schemas import PricingCosts, PricingEntry, PricingMap, Scalar

logger = logging.getLogger(__name__)

RawPricingRow = Mapping[str, Any]


@dataclass(frozen=True)
class FieldAliases:
    """Ordered candidate names for one canonical field.

    ``columns`` are looked up on the row itself, ``nested`` on the parsed
    ``pricing`` sub-object, and only after every column has missed.
    """

    columns: tuple[str, ...]
    nested: tuple[str, ...] = ()


NAME = FieldAliases(("model", "name", "model_name", "slug", "id"))
INPUT_COST = FieldAliases(
    ("input_cost", "inputPrice", "input_price", "pricing_input"), ("input", "prompt")
)
OUTPUT_COST = FieldAliases(
    ("output_cost", "outputPrice", "output_price", "pricing_output"), ("output", "completion")
)
CO2E_FACTOR = FieldAliases(("co2e_factor", "co2eFactor", "emissions_factor"), ("co2eFactor", "emissions"))
AVG_OUTPUT_TOKENS = FieldAliases(
    ("avg_output_tokens", "avgOutputTokens", "output_token_average", "avg_output")
)
PROVIDER = FieldAliases(("provider", "vendor", "source"))
DESCRIPTION = FieldAliases(("description", "notes", "summary"))

# Never copied into metadata
TIMESTAMP_FIELDS = ("created_at", "updated_at")

KNOWN_FIELDS: frozenset[str] = frozenset(
    ("pricing",)
    + TIMESTAMP_FIELDS
    + NAME.columns
    + INPUT_COST.columns
    + OUTPUT_COST.columns
    + CO2E_FACTOR.columns
    + AVG_OUTPUT_TOKENS.columns
    + PROVIDER.columns
    + DESCRIPTION.columns
)


# ── Scalar parsing ───────────────────────────────────────────────────


def parse_number(value: Any) -> float | None:
    """Return a finite number, or None.

    Numeric strings are accepted after trimming; blank or non-numeric strings
    are "not present", never zero. Booleans are not numbers here.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else None
    if isinstance(value, str):
        trimmed = value.strip()
        if not trimmed:
            return None
        try:
            parsed = float(trimmed)
        except ValueError:
            return None
        return parsed if math.isfinite(parsed) else None
    return None


def parse_string(value: Any) -> str | None:
    """Return a non-empty trimmed string; finite numbers are coerced to text."""
    if isinstance(value, str):
        trimmed = value.strip()
        return trimmed or None
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float) and math.isfinite(value):
        return str(int(value)) if value.is_integer() else repr(value)
    return None


def parse_pricing_payload(value: Any) -> dict[str, Any] | None:
    """Return the nested ``pricing`` object, decoding it when it arrives as JSON text."""
    if isinstance(value, str):
        try:
            parsed = json.loads(value)
        except ValueError:
            return None
        return parsed if isinstance(parsed, dict) else None
    return value if isinstance(value, Mapping) else None


def _display_scalar(value: Any) -> Scalar | None:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip() or None
    if isinstance(value, (int, float)):
        return value if math.isfinite(value) else None
    return None


# ── Alias resolution ─────────────────────────────────────────────────


def resolve_number(
    row: RawPricingRow, aliases: FieldAliases, nested: Mapping[str, Any] | None = None
) -> float | None:
    for key in aliases.columns:
        value = parse_number(row.get(key))
        if value is not None:
            return value
    if nested:
        for key in aliases.nested:
            value = parse_number(nested.get(key))
            if value is not None:
                return value
    return None


def resolve_string(row: RawPricingRow, aliases: FieldAliases) -> str | None:
    for key in aliases.columns:
        value = parse_string(row.get(key))
        if value is not None:
            return value
    return None


def resolve_model_name(row: RawPricingRow) -> str | None:
    return resolve_string(row, NAME)


def extract_metadata(row: RawPricingRow) -> dict[str, Scalar]:
    """Collect unrecognised scalar fields; nested values and nulls are dropped."""
    metadata: dict[str, Scalar] = {}
    for key, value in row.items():
        if key in KNOWN_FIELDS:
            continue
        scalar = _display_scalar(value)
        if scalar is not None:
            metadata[str(key)] = scalar
    return metadata


def normalize_fields(row: RawPricingRow) -> tuple[str, dict[str, Any]] | None:
    """Resolve a row into ``(model name, PricingEntry field values)``.

    Only resolved fields are present in the returned dict, so callers can
    layer further values on top before building the entry.
    """
    name = resolve_model_name(row)
    if name is None:
        return None

    nested = parse_pricing_payload(row.get("pricing"))
    fields: dict[str, Any] = {}

    input_cost = resolve_number(row, INPUT_COST, nested)
    output_cost = resolve_number(row, OUTPUT_COST, nested)
    if input_cost is not None or output_cost is not None:
        fields["pricing"] = PricingCosts(input=input_cost, output=output_cost)

    co2e_factor = resolve_number(row, CO2E_FACTOR, nested)
    if co2e_factor is not None:
        fields["co2e_factor"] = co2e_factor

    avg_output_tokens = resolve_number(row, AVG_OUTPUT_TOKENS)
    if avg_output_tokens is not None:
        fields["avg_output_tokens"] = avg_output_tokens

    provider = resolve_string(row, PROVIDER)
    if provider:
        fields["provider"] = provider

    description = resolve_string(row, DESCRIPTION)
    if description:
        fields["description"] = description

    metadata = extract_metadata(row)
    if metadata:
        fields["metadata"] = metadata

    return name, fields


def normalize_row(row: RawPricingRow) -> tuple[str, PricingEntry] | None:
    """Normalize one raw row; returns None when no usable model name exists."""
    normalized = normalize_fields(row)
    if normalized is None:
        return None
    name, fields = normalized
    return name, PricingEntry(**fields)


# ── Map building ─────────────────────────────────────────────────────


def build_pricing_map(
    rows: list[RawPricingRow],
    normalizer: Callable[[RawPricingRow], tuple[str, PricingEntry] | None] = normalize_row,
) -> PricingMap:
    """Normalize rows in order into a map keyed by model name.

    A later row with the same name replaces the earlier entry. Rows that are
    not mappings, have no name, or fail to normalize are skipped.
    """
    result: PricingMap = {}
    for index, row in enumerate(rows):
        if not isinstance(row, Mapping):
            logger.debug("Skipping pricing row %d: not a mapping (%s)", index, type(row).__name__)
            continue
        try:
            normalized = normalizer(row)
        except Exception:
            logger.debug("Skipping pricing row %d: normalization failed", index, exc_info=True)
            continue
        if normalized is None:
            logger.debug("Skipping pricing row %d: no model name", index)
            continue
        name, entry = normalized
        result[name] = entry
    return result
