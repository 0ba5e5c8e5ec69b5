"""Durable cache of resolved EAN/OEM/PCD matches.

A cache is valid while its newest entry is younger than the expiry window;
the EAN/OEM strategy then loads mappings from it instead of paging through
the webservice.
"""

import logging
from collections.abc import Sequence
from datetime import datetime, timedelta, timezone
from typing import Any

from catalog_sync.services.mapping_table import MappingTable
from catalog_sync.stores.catalog import CatalogStore, MappingCacheRow, MappingRow

logger = logging.getLogger("uvicorn.error")

CACHE_TYPES = ("EAN", "OEM", "PCD")


class MappingCacheService:
    def __init__(self, store: CatalogStore, expiry_hours: int = 24):
        self.store = store
        self.expiry = timedelta(hours=expiry_hours)

    async def has_valid_cache(self, now: datetime | None = None) -> bool:
        newest = await self.store.cache_newest_entry_at()
        if newest is None:
            return False
        if newest.tzinfo is None:
            newest = newest.replace(tzinfo=timezone.utc)
        now = now or datetime.now(timezone.utc)
        return newest > now - self.expiry

    async def save(self, mapping_type: str, rows: Sequence[MappingRow]) -> int:
        """Replace the cached rows of one mapping type.

        Returns:
            Number of rows written.
        """
        if mapping_type not in CACHE_TYPES:
            raise ValueError(f"Unknown mapping cache type: {mapping_type}")
        await self.store.cache_delete(mapping_type)
        written = await self.store.cache_insert(
            [MappingCacheRow(mapping_type, r.external_id, r.product_id, r.version_id) for r in rows]
        )
        logger.info(f"Saved {written} {mapping_type} mappings to cache")
        return written

    async def load_into(self, mapping_table: MappingTable) -> int:
        """Copy every cached row into the mapping table; returns rows inserted."""
        cached = await self.store.cache_fetch()
        rows = [MappingRow(r.external_id, r.product_id, r.version_id) for r in cached]
        inserted = await mapping_table.insert_many(rows)
        logger.info(f"Loaded {inserted} mappings from cache")
        return inserted

    async def purge(self, mapping_type: str | None = None) -> int:
        deleted = await self.store.cache_delete(mapping_type)
        logger.info(f"Purged {deleted} mapping cache entries" + (f" of type {mapping_type}" if mapping_type else ""))
        return deleted

    async def stats(self) -> dict[str, Any]:
        return await self.store.cache_stats()
