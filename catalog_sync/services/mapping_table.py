"""Mapping table: external catalog id -> local product revisions.

Rebuilt (truncate + insert) by the active mapping strategy each run and read
by the linking steps through a cached full read.
"""

import logging
from collections.abc import Iterable, Sequence

from catalog_sync.services.normalization import chunked
from catalog_sync.stores.catalog import CatalogStore, LocalRef, MappingRow

logger = logging.getLogger("uvicorn.error")

INSERT_BATCH_SIZE = 500


class MappingTable:
    """Mapping table access with a per-instance read cache."""

    def __init__(self, store: CatalogStore):
        self.store = store
        self._mappings: dict[int, list[LocalRef]] | None = None
        self._external_ids_by_product: dict[str, list[int]] = {}

    async def truncate(self) -> None:
        await self.store.truncate_mappings()
        self._mappings = None
        self._external_ids_by_product = {}

    async def insert_many(self, rows: Iterable[MappingRow], batch_size: int = INSERT_BATCH_SIZE) -> int:
        """Insert rows in batches; returns the number inserted."""
        inserted = 0
        for batch in chunked(rows, batch_size):
            inserted += await self.store.insert_mappings(batch)
        self._mappings = None
        return inserted

    async def get_mappings(self, force_reload: bool = False) -> dict[int, list[LocalRef]]:
        """Return {external_id: [LocalRef, ...]} ordered by external id.

        Args:
            force_reload: Ignore the cached read.
        """
        if self._mappings is None or force_reload:
            mappings: dict[int, list[LocalRef]] = {}
            by_product: dict[str, list[int]] = {}
            for external_id, ref in await self.store.fetch_mappings():
                mappings.setdefault(external_id, []).append(ref)
                ids = by_product.setdefault(ref.product_id, [])
                if external_id not in ids:
                    ids.append(external_id)
            if not mappings:
                logger.warning("Mapping table is empty; run the mapping step first")
            self._mappings = mappings
            self._external_ids_by_product = by_product
        return self._mappings

    async def local_product_ids(self) -> list[str]:
        """Unique local product ids with any mapping, in mapping order."""
        mappings = await self.get_mappings()
        return list(dict.fromkeys(ref.product_id for refs in mappings.values() for ref in refs))

    async def external_ids_for_products(self, product_ids: Sequence[str]) -> list[int]:
        """Reverse lookup: external ids whose refs include any of the given products."""
        await self.get_mappings()
        external_ids: dict[int, None] = {}
        for product_id in product_ids:
            for external_id in self._external_ids_by_product.get(product_id, []):
                external_ids[external_id] = None
        return list(external_ids)
