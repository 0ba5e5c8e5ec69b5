"""Product <-> product relationships and cross-selling.

For every mapped product the remote product details list related external
ids per relationship category. Those ids are resolved through the mapping
table and written as typed `product_relationships` rows; categories flagged
for cross-selling are mirrored into one cross-selling group per
(product, category).
"""

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any

from catalog_sync.services.import_report import ImportReport
from catalog_sync.services.import_settings import ImportSettingsResolver
from catalog_sync.services.mapping_table import MappingTable
from catalog_sync.services.normalization import chunked
from catalog_sync.services.webservice_client import RemoteCatalogClient, available_pages
from catalog_sync.stores.catalog import CatalogStore, LocalRef, RelationshipRow

logger = logging.getLogger("uvicorn.error")

INSERT_CHUNK_SIZE = 30
PRODUCT_LIST_CHUNK_SIZE = 50


# ============================================================
# Extraction rules (remote product payload -> external ids)
# ============================================================


def _list_at(product: dict[str, Any], *path: str) -> list[Any]:
    node: Any = product
    for key in path:
        if not isinstance(node, dict):
            return []
        node = node.get(key)
    return node if isinstance(node, list) else []


def _ids(values: list[Any], key: str | None = None) -> list[int]:
    ids: list[int] = []
    for value in values:
        if key is not None:
            if not isinstance(value, dict):
                continue
            value = value.get(key)
        try:
            ids.append(int(value))
        except (TypeError, ValueError):
            continue
    return ids


def extract_similar(product: dict[str, Any]) -> list[int]:
    return (
        _ids(_list_at(product, "product_same_accessories", "products"))
        + _ids(_list_at(product, "product_same_application_in", "products"))
        + _ids(_list_at(product, "product_variants", "products"), "id")
    )


def extract_alternate(product: dict[str, Any]) -> list[int]:
    return _ids(_list_at(product, "product_alternates", "products"))


def extract_related(product: dict[str, Any]) -> list[int]:
    return _ids(_list_at(product, "product_accessories", "products"))


def extract_bundled(product: dict[str, Any]) -> list[int]:
    return _ids(_list_at(product, "bundle_content", "products"), "products_id")


def extract_color_variant(product: dict[str, Any]) -> list[int]:
    return _ids(_list_at(product, "product_special_variants", "color"))


def extract_capacity_variant(product: dict[str, Any]) -> list[int]:
    return _ids(_list_at(product, "product_special_variants", "capacity"))


def extract_variant(product: dict[str, Any]) -> list[int]:
    variants = [
        v for v in _list_at(product, "product_variants", "products") if isinstance(v, dict) and v.get("type") is None
    ]
    return _ids(variants, "id")


@dataclass(frozen=True)
class RelationshipCategory:
    name: str
    db_type: str
    import_option: str
    cross_option: str
    position: int
    names: dict[str, str]
    extract: Callable[[dict[str, Any]], list[int]]


CATEGORIES: tuple[RelationshipCategory, ...] = (
    RelationshipCategory(
        "similar", "similar", "importSimilar", "crossSimilar", 7,
        {"de-DE": "Ähnlich", "en-GB": "Similar", "nl-NL": "Vergelijkbaar"},
        extract_similar,
    ),
    RelationshipCategory(
        "alternate", "alternate", "importAlternates", "crossAlternates", 3,
        {"de-DE": "Alternative Produkte", "en-GB": "Alternate Products", "nl-NL": "alternatieve producten"},
        extract_alternate,
    ),
    RelationshipCategory(
        "related", "related", "importAccessories", "crossAccessories", 4,
        {"de-DE": "Zubehör", "en-GB": "Accessories", "nl-NL": "Accessoires"},
        extract_related,
    ),
    RelationshipCategory(
        "bundled", "bundled", "importBoundles", "crossBoundles", 6,
        {"de-DE": "Im Bundle", "en-GB": "In Bundle", "nl-NL": "In een bundel"},
        extract_bundled,
    ),
    RelationshipCategory(
        "colorVariant", "color_variant", "importColorVariants", "crossColorVariants", 2,
        {"de-DE": "Farbvarianten", "en-GB": "Color Variants", "nl-NL": "kleur varianten"},
        extract_color_variant,
    ),
    RelationshipCategory(
        "capacityVariant", "capacity_variant", "importCapacityVariants", "crossCapacityVariants", 1,
        {"de-DE": "Kapazitätsvarianten", "en-GB": "Capacity Variants", "nl-NL": "capaciteit varianten"},
        extract_capacity_variant,
    ),
    RelationshipCategory(
        "variant", "variant", "importVariants", "crossVariants", 5,
        {"de-DE": "Varianten", "en-GB": "Variants", "nl-NL": "varianten"},
        extract_variant,
    ),
)

CATEGORIES_BY_NAME = {c.name: c for c in CATEGORIES}


# ============================================================
# Synchronizer
# ============================================================


class ProductRelationshipSync:
    """Write relationship rows and cross-selling groups for mapped products."""

    def __init__(
        self,
        store: CatalogStore,
        mapping_table: MappingTable,
        resolver: ImportSettingsResolver,
        *,
        max_cross_selling_products: int = 24,
    ):
        self.store = store
        self.mapping_table = mapping_table
        self.resolver = resolver
        self.max_cross_selling_products = max_cross_selling_products

    async def resolve_refs(self, external_ids: Sequence[int]) -> list[LocalRef]:
        """First local ref per external id, deduplicated, unresolved ids dropped."""
        mappings = await self.mapping_table.get_mappings()
        refs: list[LocalRef] = []
        seen: set[int] = set()
        for external_id in external_ids:
            if external_id in seen:
                continue
            seen.add(external_id)
            mapped = mappings.get(external_id)
            if mapped:
                refs.append(mapped[0])
        return refs

    async def unlink_products(self, product_ids: Sequence[str], report: ImportReport) -> None:
        """Delete relationship rows of every enabled category for these products."""
        for category in CATEGORIES:
            ids = self.resolver.filter_product_ids(category.import_option, product_ids)
            if not ids:
                continue
            deleted = await self.store.delete_relationships(ids, category.db_type)
            report.inc(f"relationships.{category.name}.unlinked", deleted)

    async def link_product(self, product: LocalRef, remote: dict[str, Any], report: ImportReport) -> None:
        """Write every enabled category for one product."""
        for category in CATEGORIES:
            if not self.resolver.is_option_enabled(category.import_option, product.product_id):
                continue
            linked = await self.resolve_refs(category.extract(remote))
            if not linked:
                continue

            await self.store.delete_relationships([product.product_id], category.db_type)
            rows = [
                RelationshipRow(product.product_id, product.version_id, ref.product_id, ref.version_id, category.db_type)
                for ref in linked
            ]
            for batch in chunked(rows, INSERT_CHUNK_SIZE):
                await self.store.insert_relationships(batch)
            report.inc(f"relationships.{category.name}.linked", len(rows))

            if self.resolver.is_option_enabled(category.cross_option, product.product_id):
                await self.update_cross_selling(product, linked, category, report)

    async def update_cross_selling(
        self,
        product: LocalRef,
        linked: Sequence[LocalRef],
        category: RelationshipCategory,
        report: ImportReport,
    ) -> None:
        if product.parent_id:
            return

        group_id = await self.store.find_cross_selling_group(product, category.db_type)
        if group_id:
            await self.store.delete_cross_selling_assignments(group_id)
        else:
            group_id = await self.store.create_cross_selling_group(
                product,
                category.db_type,
                category.names,
                category.position,
                self.max_cross_selling_products,
            )
            report.inc("cross_selling.groups.created")

        assigned = await self.store.insert_cross_selling_assignments(group_id, list(linked))
        report.inc("cross_selling.assignments", assigned)

    async def sync(self, client: RemoteCatalogClient, report: ImportReport) -> None:
        """Fetch details for all mapped products in chunks and relink them."""
        mappings = await self.mapping_table.get_mappings()
        external_ids = list(mappings)
        chunks = list(chunked(external_ids, PRODUCT_LIST_CHUNK_SIZE))
        logger.info(f"Linking products: {len(external_ids)} mapped products in {len(chunks)} chunks")

        for index, chunk in enumerate(chunks, start=1):
            response = await client.fetch_product_list(chunk, "all")
            report.inc("product_information.webservice.calls")
            available_pages(response, "product_list webservice")

            # Only the first ref of an external id is relinked below, so only it is unlinked here.
            product_ids = list(dict.fromkeys(mappings[ext_id][0].product_id for ext_id in chunk if mappings.get(ext_id)))
            await self.resolver.load_overrides_for_products(product_ids)
            await self.unlink_products(product_ids, report)

            for remote in response.get("products") or []:
                try:
                    refs = mappings.get(int(remote.get("products_id")))
                except (TypeError, ValueError):
                    refs = None
                if not refs:
                    report.inc("product_information.unmapped")
                    continue
                try:
                    await self.link_product(refs[0], remote, report)
                except Exception:
                    logger.exception(f"Failed to link product {remote.get('products_id')}")
                    report.inc("product_information.errors")
                    continue
                report.inc("product_information.products")

            logger.info(f"Linked products chunk {index}/{len(chunks)}")
