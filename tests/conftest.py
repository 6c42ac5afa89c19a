"""Shared fixtures for backend tests."""

from __future__ import annotations

import asyncio
from typing import Any

import pytest
from fastapi.testclient import TestClient

from prompt_info.core.config import BUNDLED_FALLBACK_PATH
from prompt_info.core.sources import RemotePricingSource, SourceUnavailable
from prompt_info.core.store import PricingStore
from prompt_info.core.tokenizer import default_tokenizer
from prompt_info.main import app
from prompt_info.models.schemas import PricingCosts, PricingEntry


def make_entry(
    input_cost: float | None = None,
    output_cost: float | None = None,
    co2e_factor: float | None = None,
    avg_output_tokens: float | None = None,
) -> PricingEntry:
    """Factory helper for PricingEntry instances with only the given fields set."""
    fields: dict[str, Any] = {}
    if input_cost is not None or output_cost is not None:
        fields["pricing"] = PricingCosts(input=input_cost, output=output_cost)
    if co2e_factor is not None:
        fields["co2e_factor"] = co2e_factor
    if avg_output_tokens is not None:
        fields["avg_output_tokens"] = avg_output_tokens
    return PricingEntry(**fields)


def make_remote_row(
    name: str = "model-a",
    per_million_in: float | None = 3.0,
    per_million_out: float | None = 15.0,
    blended: float | None = None,
    **extra: Any,
) -> dict[str, Any]:
    """Factory helper for rows shaped like the remote ``aa_models`` table."""
    pricing: dict[str, Any] = {}
    if per_million_in is not None:
        pricing["price_1m_input_tokens"] = per_million_in
    if per_million_out is not None:
        pricing["price_1m_output_tokens"] = per_million_out
    if blended is not None:
        pricing["price_1m_blended_3_to_1"] = blended
    pricing.update(extra.pop("pricing_extra", {}))
    return {"name": name, "pricing": pricing, **extra}


class StaticSource(RemotePricingSource):
    """Remote source returning fixed rows, or raising a fixed error."""

    name = "static"

    def __init__(self, rows: list[dict[str, Any]] | None = None, error: Exception | None = None) -> None:
        self.rows = rows or []
        self.error = error
        self.calls = 0

    async def fetch_rows(self) -> list[dict[str, Any]]:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.rows


class GatedSource(RemotePricingSource):
    """Returns one queued batch per call; a batch may wait on an event first."""

    name = "gated"

    def __init__(self, batches: list[tuple[asyncio.Event | None, list[dict[str, Any]]]]) -> None:
        self.batches = list(batches)

    async def fetch_rows(self) -> list[dict[str, Any]]:
        if not self.batches:
            raise SourceUnavailable("no more batches")
        gate, rows = self.batches.pop(0)
        if gate is not None:
            await gate.wait()
        return rows


class WordTokenizer:
    """One token per whitespace-separated word."""

    def __init__(self) -> None:
        self._ids: dict[str, int] = {}
        self._words: dict[int, str] = {}

    def encode(self, text: str) -> list[int]:
        ids = []
        for word in text.split():
            token = self._ids.setdefault(word, len(self._ids) + 1)
            self._words[token] = word
            ids.append(token)
        return ids

    def decode(self, tokens: list[int]) -> str:
        return " ".join(self._words.get(t, "") for t in tokens)


@pytest.fixture
def tokenizer() -> WordTokenizer:
    return WordTokenizer()


@pytest.fixture
def make_client():
    """Build a TestClient whose pricing store uses the given source and snapshot path."""
    clients: list[TestClient] = []
    word_tokenizer = WordTokenizer()

    def _make(source: RemotePricingSource | None = None, fallback_path=BUNDLED_FALLBACK_PATH) -> TestClient:
        app.state.pricing_store = PricingStore(source=source, fallback_path=fallback_path)
        app.dependency_overrides[default_tokenizer] = lambda: word_tokenizer
        client = TestClient(app)
        client.__enter__()
        clients.append(client)
        return client

    yield _make

    for client in clients:
        client.__exit__(None, None, None)
    app.state.pricing_store = None
    app.dependency_overrides.clear()
