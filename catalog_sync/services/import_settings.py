"""Per-product relationship import settings.

Two tiers:
1. Override blocks stored on categories, loaded in bulk for a batch of
   products. The nearest category (leaf first) with an override block wins.
2. The global settings snapshot, used for products without any override.
"""

import logging
from collections.abc import Mapping, Sequence
from types import MappingProxyType
from typing import Any

from catalog_sync.stores.catalog import CatalogStore

logger = logging.getLogger("uvicorn.error")

OPTION_KEYS = (
    "importSimilar",
    "importAlternates",
    "importAccessories",
    "importBoundles",
    "importVariants",
    "importColorVariants",
    "importCapacityVariants",
    "crossSimilar",
    "crossAlternates",
    "crossAccessories",
    "crossBoundles",
    "crossVariants",
    "crossColorVariants",
    "crossCapacityVariants",
)


class ImportSettingsResolver:
    """Resolve relationship options per product."""

    def __init__(self, store: CatalogStore, global_options: Mapping[str, Any]):
        self.store = store
        self.global_options: Mapping[str, Any] = MappingProxyType(dict(global_options))
        self._overrides: dict[str, dict[str, Any]] = {}

    async def load_overrides_for_products(self, product_ids: Sequence[str]) -> int:
        """Replace the override map with the settings for this batch of products.

        Returns:
            Number of products that resolved to an override block.
        """
        self._overrides = {}
        paths = await self.store.fetch_category_paths(product_ids)
        category_ids = list(dict.fromkeys(cid for path in paths.values() for cid in path))
        blocks = await self.store.fetch_category_overrides(category_ids)

        for product_id, path in paths.items():
            for category_id in reversed(path):
                block = blocks.get(category_id)
                if block is not None:
                    self._overrides[product_id] = block
                    break
        if self._overrides:
            logger.info(f"{len(self._overrides)} of {len(product_ids)} products use category import settings")
        return len(self._overrides)

    def is_option_enabled(self, option: str, product_id: str) -> bool:
        override = self._overrides.get(product_id)
        if override is not None:
            return bool(override.get(option, False))
        return bool(self.global_options.get(option, False))

    def filter_product_ids(self, option: str, product_ids: Sequence[str]) -> list[str]:
        return [pid for pid in product_ids if self.is_option_enabled(option, pid)]
