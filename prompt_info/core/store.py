"""Holds the resident pricing snapshot for the running service."""

from __future__ import annotations

import itertools
import logging
from pathlib import Path

from fastapi import Request

from prompt_info.core.sources import PricingSnapshot, RemotePricingSource, resolve_pricing

logger = logging.getLogger(__name__)


class PricingStore:
    """Latest resolved snapshot, replaced wholesale on every reload.

    Reloads may overlap. Each one takes a sequence number when it starts, and
    its result is dropped if a reload that started later has already been
    applied, so a slow stale fetch never overwrites fresher data.
    """

    def __init__(self, source: RemotePricingSource | None, fallback_path: Path) -> None:
        self.source = source
        self.fallback_path = fallback_path
        self._counter = itertools.count(1)
        self._applied_seq = 0
        self._snapshot: PricingSnapshot | None = None

    @property
    def snapshot(self) -> PricingSnapshot | None:
        return self._snapshot

    async def reload(self) -> PricingSnapshot:
        """Resolve a fresh snapshot and make it resident unless a newer one won."""
        seq = next(self._counter)
        snapshot = await resolve_pricing(self.source, self.fallback_path)
        if seq > self._applied_seq:
            self._applied_seq = seq
            self._snapshot = snapshot
        else:
            logger.info("Discarding stale pricing reload #%d (current #%d)", seq, self._applied_seq)
        return snapshot

    async def current(self) -> PricingSnapshot:
        """Return the resident snapshot, loading it on first use."""
        if self._snapshot is None:
            return await self.reload()
        return self._snapshot


def get_pricing_store(request: Request) -> PricingStore:
    """FastAPI dependency: the store created in the app lifespan."""
    return request.app.state.pricing_store
