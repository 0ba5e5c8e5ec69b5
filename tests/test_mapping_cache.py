"""Tests for the EAN/OEM/PCD mapping cache."""

from datetime import datetime, timedelta, timezone

import pytest

from conftest import hid
from catalog_sync.services.mapping_cache import MappingCacheService
from catalog_sync.services.mapping_table import MappingTable
from catalog_sync.stores.catalog import MappingCacheRow, MappingRow

A, B = hid(0xA), hid(0xB)
VERSION = hid(0xFFFF)


class TestMappingCacheService:
    @pytest.mark.asyncio
    async def test_empty_cache_is_invalid(self, store):
        assert not await MappingCacheService(store).has_valid_cache()

    @pytest.mark.asyncio
    async def test_expiry_window(self, store):
        cache = MappingCacheService(store, expiry_hours=24)
        await cache.save("EAN", [MappingRow(1, A, VERSION)])
        now = datetime.now(timezone.utc)

        assert await cache.has_valid_cache(now + timedelta(hours=23))
        assert not await cache.has_valid_cache(now + timedelta(hours=25))

    @pytest.mark.asyncio
    async def test_naive_timestamps_are_utc(self, store):
        store.cache_rows.append((MappingCacheRow("OEM", 1, A, VERSION), datetime.now(timezone.utc).replace(tzinfo=None)))

        assert await MappingCacheService(store).has_valid_cache()

    @pytest.mark.asyncio
    async def test_save_replaces_one_type(self, store):
        cache = MappingCacheService(store)
        await cache.save("EAN", [MappingRow(1, A, VERSION)])
        await cache.save("OEM", [MappingRow(2, B, VERSION)])

        await cache.save("EAN", [MappingRow(3, A, VERSION)])

        assert sorted((r.mapping_type, r.external_id) for r in await store.cache_fetch()) == [("EAN", 3), ("OEM", 2)]

    @pytest.mark.asyncio
    async def test_rejects_unknown_type(self, store):
        with pytest.raises(ValueError):
            await MappingCacheService(store).save("ISBN", [])

    @pytest.mark.asyncio
    async def test_load_into_mapping_table(self, store):
        store.add_product(A)
        cache = MappingCacheService(store)
        await cache.save("PCD", [MappingRow(7, A, VERSION)])

        loaded = await cache.load_into(MappingTable(store))

        assert loaded == 1
        assert store.mappings == [MappingRow(7, A, VERSION)]

    @pytest.mark.asyncio
    async def test_purge_and_stats(self, store):
        cache = MappingCacheService(store)
        await cache.save("EAN", [MappingRow(1, A, VERSION), MappingRow(2, B, VERSION)])
        await cache.save("OEM", [MappingRow(3, A, VERSION)])

        assert (await cache.stats())["by_type"] == {"EAN": 2, "OEM": 1}
        assert await cache.purge("EAN") == 2
        assert await cache.purge() == 1
        assert (await cache.stats())["total"] == 0
