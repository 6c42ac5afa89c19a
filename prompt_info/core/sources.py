"""Pricing data sources and the policy for choosing between them.

The remote Supabase table is tried first. If it errors, returns nothing, or
yields no usable rows, the bundled snapshot file is served instead. If that
cannot be read either, an empty map tagged ``unavailable`` is returned;
``resolve_pricing`` never raises.
"""

from __future__ import annotations

import enum
import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import httpx
from pydantic import ValidationError

from prompt_info.core.config import SourceConfig
from prompt_info.core.emissions import build_remote_pricing_map
from prompt_info.models.schemas import PricingEntry, PricingMap, dump_pricing_map

logger = logging.getLogger(__name__)

UNAVAILABLE_MESSAGE = "Pricing data is unavailable."


class Provenance(str, enum.Enum):
    REMOTE = "remote"
    FALLBACK = "fallback"
    UNAVAILABLE = "unavailable"

    @property
    def header_value(self) -> str:
        """Value sent in the ``x-data-source`` response header."""
        return "supabase" if self is Provenance.REMOTE else self.value


class SourceUnavailable(Exception):
    """The remote source errored or returned nothing usable."""


class FallbackUnavailable(Exception):
    """The bundled snapshot could not be read or parsed."""


@dataclass(frozen=True)
class PricingSnapshot:
    """A pricing map together with where it came from."""

    pricing: PricingMap = field(default_factory=dict)
    provenance: Provenance = Provenance.UNAVAILABLE
    error: str | None = None
    # Served instead of ``pricing`` when set; the bundled file goes out as read.
    payload: dict[str, Any] | None = None

    def as_json(self) -> dict[str, Any]:
        """The map returned by ``GET /api/pricing``."""
        if self.payload is not None:
            return self.payload
        return dump_pricing_map(self.pricing)

    @property
    def notice(self) -> str | None:
        """User-facing banner text, if any."""
        if self.error:
            return self.error
        if self.provenance is Provenance.FALLBACK:
            return "Using bundled pricing data. Add Supabase credentials for live updates."
        return None


# ── Remote source ────────────────────────────────────────────────────


class RemotePricingSource(ABC):
    """Something that can return every row of the remote pricing table."""

    name: str

    @abstractmethod
    async def fetch_rows(self) -> list[dict[str, Any]]:
        """Return raw pricing rows. Raises SourceUnavailable on failure."""
        ...


class SupabasePricingSource(RemotePricingSource):
    """Reads ``select *`` from a Supabase table or view through its REST API."""

    name = "supabase"

    def __init__(self, config: SourceConfig, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self.config = config
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        return {
            "apikey": self.config.api_key,
            "Authorization": f"Bearer {self.config.api_key}",
            "Accept": "application/json",
        }

    @property
    def url(self) -> str:
        return f"{self.config.endpoint}/rest/v1/{self.config.table}"

    async def fetch_rows(self) -> list[dict[str, Any]]:
        params = {"select": "*", "limit": str(self.config.limit)}
        try:
            async with httpx.AsyncClient(
                headers=self._headers(),
                timeout=self.config.timeout,
                transport=self._transport,
            ) as client:
                resp = await client.get(self.url, params=params)
                resp.raise_for_status()
                data = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise SourceUnavailable(f"query on {self.config.table!r} failed: {exc}") from exc

        if not isinstance(data, list):
            raise SourceUnavailable(f"unexpected payload type {type(data).__name__}")
        return data


# ── Bundled snapshot ─────────────────────────────────────────────────


def read_fallback_snapshot(path: Path) -> tuple[dict[str, Any], PricingMap]:
    """Load the bundled JSON file.

    Returns the parsed object untouched, for serving, together with the
    entries that validate as ``PricingEntry``. Entries of the wrong shape are
    left out of the second map only; they never make the file unreadable.
    """
    try:
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise FallbackUnavailable(f"cannot read {path}: {exc}") from exc

    if not isinstance(raw, dict):
        raise FallbackUnavailable(f"{path} does not contain a JSON object")

    pricing: PricingMap = {}
    for name, entry in raw.items():
        try:
            pricing[str(name)] = PricingEntry.model_validate(entry)
        except ValidationError as exc:
            logger.warning("Skipping bundled entry %r: %s", name, exc.errors()[0]["msg"])
    return raw, pricing


# ── Resolution policy ────────────────────────────────────────────────


async def _load_remote(source: RemotePricingSource) -> PricingMap:
    rows = await source.fetch_rows()
    if not rows:
        raise SourceUnavailable("no rows returned")
    pricing = build_remote_pricing_map(rows)
    if not pricing:
        raise SourceUnavailable(f"none of {len(rows)} rows could be normalized")
    return pricing


async def resolve_pricing(
    source: RemotePricingSource | None, fallback_path: Path
) -> PricingSnapshot:
    """Pick the pricing map to serve: remote, then bundled snapshot, then nothing."""
    if source is not None:
        try:
            pricing = await _load_remote(source)
        except SourceUnavailable as exc:
            logger.error("Failed to load pricing data from %s: %s", source.name, exc)
        except Exception:
            logger.exception("Unexpected error loading pricing data from %s", source.name)
        else:
            logger.info("Loaded %d pricing entries from %s", len(pricing), source.name)
            return PricingSnapshot(pricing=pricing, provenance=Provenance.REMOTE)

    try:
        payload, pricing = read_fallback_snapshot(fallback_path)
    except FallbackUnavailable:
        logger.exception("Failed to read fallback pricing data")
        return PricingSnapshot(provenance=Provenance.UNAVAILABLE, error=UNAVAILABLE_MESSAGE)
    except Exception:
        logger.exception("Unexpected error reading fallback pricing data")
        return PricingSnapshot(provenance=Provenance.UNAVAILABLE, error=UNAVAILABLE_MESSAGE)

    logger.warning("Serving %d pricing entries from the bundled snapshot", len(payload))
    return PricingSnapshot(pricing=pricing, provenance=Provenance.FALLBACK, payload=payload)
