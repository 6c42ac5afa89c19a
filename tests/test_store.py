"""Tests for prompt_info/core/store.py."""

from __future__ import annotations

import asyncio

from prompt_info.core.config import BUNDLED_FALLBACK_PATH
from prompt_info.core.sources import Provenance
from prompt_info.core.store import PricingStore
from tests.conftest import GatedSource, StaticSource, make_remote_row


class TestPricingStore:
    def test_current_loads_once(self):
        source = StaticSource([make_remote_row("a")])
        store = PricingStore(source, BUNDLED_FALLBACK_PATH)

        async def scenario():
            first = await store.current()
            second = await store.current()
            return first, second

        first, second = asyncio.run(scenario())
        assert first is second
        assert source.calls == 1
        assert store.snapshot is first

    def test_reload_replaces_snapshot(self):
        source = StaticSource([make_remote_row("a")])
        store = PricingStore(source, BUNDLED_FALLBACK_PATH)

        async def scenario():
            first = await store.reload()
            source.rows = [make_remote_row("b")]
            second = await store.reload()
            return first, second

        first, second = asyncio.run(scenario())
        assert set(first.pricing) == {"a"}
        assert set(second.pricing) == {"b"}
        assert store.snapshot is second

    def test_stale_reload_discarded(self):
        async def scenario():
            gate = asyncio.Event()
            source = GatedSource([(gate, [make_remote_row("old")]), (None, [make_remote_row("new")])])
            store = PricingStore(source, BUNDLED_FALLBACK_PATH)

            slow = asyncio.create_task(store.reload())
            await asyncio.sleep(0)
            fresh = await store.reload()
            gate.set()
            stale = await slow
            return store, fresh, stale

        store, fresh, stale = asyncio.run(scenario())
        assert set(stale.pricing) == {"old"}
        assert set(fresh.pricing) == {"new"}
        assert store.snapshot is fresh

    def test_unavailable_is_resident_too(self, tmp_path):
        store = PricingStore(None, tmp_path / "missing.json")
        snapshot = asyncio.run(store.reload())
        assert snapshot.provenance is Provenance.UNAVAILABLE
        assert store.snapshot is snapshot
