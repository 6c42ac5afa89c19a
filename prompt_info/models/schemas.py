from __future__ import annotations

from typing import Any, Union

from pydantic import BaseModel, Field

Scalar = Union[str, int, float, bool]


# -- Pricing data --

class PricingCosts(BaseModel):
    """Cost per 1,000 tokens for prompt (input) and completion (output) tokens."""

    input: float | None = None
    output: float | None = None


class PricingEntry(BaseModel):
    """Canonical pricing record for one model.

    Only fields that were actually resolved are set; serialize with
    ``dump_entry`` so absent fields stay absent on the wire.
    """

    model_config = {"populate_by_name": True, "extra": "allow"}

    pricing: PricingCosts | None = None
    co2e_factor: float | None = Field(default=None, alias="co2eFactor")
    avg_output_tokens: float | None = Field(default=None, alias="avgOutputTokens")
    provider: str | None = None
    description: str | None = None
    metadata: dict[str, Scalar] | None = None


PricingMap = dict[str, PricingEntry]


def dump_entry(entry: PricingEntry) -> dict[str, Any]:
    return entry.model_dump(by_alias=True, exclude_unset=True)


def dump_pricing_map(pricing_map: PricingMap) -> dict[str, dict[str, Any]]:
    return {name: dump_entry(entry) for name, entry in pricing_map.items()}


# -- Request schemas --

class EstimateRequest(BaseModel):
    prompt: str
    model: str | None = None  # Defaults to the first listed model
    expected_output_tokens: float | None = Field(default=None, ge=0)


class TokensRequest(BaseModel):
    prompt: str


class FormatsRequest(BaseModel):
    prompt: str = ""


# -- Response schemas --

class MetricsResponse(BaseModel):
    token_count: int
    input_cost: float | None
    output_cost: float | None
    total_cost: float | None
    co2e_grams: float | None
    co2e_per_thousand_tokens: float | None
    used_fallback_emission_factor: bool


class EstimateResponse(BaseModel):
    model: str | None
    known_model: bool
    source: str
    metrics: MetricsResponse
    provider: str | None = None
    description: str | None = None
    avg_output_tokens: float | None = None
    metadata: list[tuple[str, str]] = []
    notice: str | None = None


class TokenPieceResponse(BaseModel):
    id: int
    text: str


class TokensResponse(BaseModel):
    token_count: int
    tokens: list[TokenPieceResponse]
    slices: list[list[int]]


class FormatCardResponse(BaseModel):
    key: str
    label: str
    description: str
    content: str
