"""Mapping strategies: populate the mapping table for one run.

Three algorithms, selected by the `mapping_type` setting:
- product number as external id (no remote calls)
- EAN / OEM / PCD matching against the webservice match pages
- distributor article numbers

Every strategy starts from a truncated mapping table; `map_products()`
performs the truncate and the dispatch.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from catalog_sync.services.import_report import ImportReport
from catalog_sync.services.mapping_cache import MappingCacheService
from catalog_sync.services.mapping_table import INSERT_BATCH_SIZE, MappingTable
from catalog_sync.services.normalization import (
    MAX_EXTERNAL_ID,
    is_numeric_product_number,
    normalize_ean,
    normalize_oem,
    normalize_order_number,
)
from catalog_sync.services.webservice_client import (
    RemoteCatalogClient,
    WebserviceResponseError,
    available_pages,
)
from catalog_sync.settings import Settings
from catalog_sync.stores.catalog import CatalogStore, LocalRef, MappingRow, ProductColumn, ProductValue

logger = logging.getLogger("uvicorn.error")

# normalized value -> {ref key -> LocalRef}
ValueMap = dict[str, dict[str, LocalRef]]


class MappingError(RuntimeError):
    """A mapping precondition failed; the mapping step cannot continue."""

    pass


class MappingType(str, Enum):
    PRODUCT_NUMBER_AS_WS_ID = "productNumberAsWsId"
    DISTRIBUTOR_DEFAULT = "distributorDefault"
    DISTRIBUTOR_CUSTOM = "distributorCustom"
    DISTRIBUTOR_CUSTOM_FIELD = "distributorCustomField"
    DEFAULT = "default"
    CUSTOM = "custom"
    CUSTOM_FIELD = "customField"


@dataclass(frozen=True)
class MappingConfig:
    """Mapping options for one run."""

    mapping_type: MappingType = MappingType.DEFAULT
    attribute_oem: str = ""
    attribute_ean: str = ""
    attribute_ordernumber: str = ""
    use_cache: bool = False

    @classmethod
    def from_settings(cls, settings: Settings) -> MappingConfig:
        return cls(
            mapping_type=MappingType(settings.mapping_type),
            attribute_oem=settings.attribute_oem.strip(),
            attribute_ean=settings.attribute_ean.strip(),
            attribute_ordernumber=settings.attribute_ordernumber.strip(),
            use_cache=settings.mapping_cache_enabled,
        )


async def load_product_values(
    store: CatalogStore,
    *,
    source: str,
    name: str,
) -> list[ProductValue]:
    """Read one attribute for all products.

    Args:
        source: "column" (a product column), "property" (property-group option)
            or "custom_field".
        name: Column name, property group name or custom field name.
    """
    if source == "column":
        column: ProductColumn = name  # type: ignore[assignment]
        return await store.fetch_product_column_values(column)
    if source == "property":
        return await store.fetch_property_values(name)
    if source == "custom_field":
        return await store.fetch_custom_field_values(name)
    raise ValueError(f"Unknown value source: {source}")


def build_value_map(values: list[ProductValue], normalize: Callable[[str | None], str]) -> ValueMap:
    """Group product refs by normalized value; empty normalized values are dropped."""
    value_map: ValueMap = {}
    for row in values:
        key = normalize(row.value)
        if not key:
            continue
        ref = LocalRef(row.product_id, row.version_id)
        value_map.setdefault(key, {})[ref.key] = ref
    return value_map


class MappingStrategy:
    """Base class: subclasses implement map()."""

    def __init__(
        self,
        store: CatalogStore,
        client: RemoteCatalogClient,
        mapping_table: MappingTable,
        cache: MappingCacheService | None = None,
    ):
        self.store = store
        self.client = client
        self.mapping_table = mapping_table
        self.cache = cache

    async def map(self, config: MappingConfig, report: ImportReport) -> None:
        raise NotImplementedError


# ============================================================
# Product number as external id
# ============================================================


class ProductNumberAsExternalIdStrategy(MappingStrategy):
    """Numeric product numbers are the external ids; nothing is fetched remotely."""

    async def map(self, config: MappingConfig, report: ImportReport) -> None:
        values = await self.store.fetch_product_column_values("product_number")
        rows: list[MappingRow] = []
        skipped = 0
        out_of_range = 0
        for row in values:
            number = row.value.strip()
            if not is_numeric_product_number(number):
                skipped += 1
                continue
            external_id = int(number)
            if external_id > MAX_EXTERNAL_ID:
                logger.warning(f"Product number {number} of product {row.product_id} exceeds the external id range")
                out_of_range += 1
                continue
            rows.append(MappingRow(external_id, row.product_id, row.version_id))

        inserted = await self.mapping_table.insert_many(rows)
        logger.info(
            f"Product number mapping: {inserted} mappings, {skipped} non-numeric and "
            f"{out_of_range} out-of-range product numbers skipped"
        )
        report.set("product_number.products", len(values))
        report.set("product_number.skipped", skipped)
        report.set("product_number.out_of_range", out_of_range)
        report.set("product_number.mappings", inserted)


# ============================================================
# EAN / OEM / PCD
# ============================================================


class EanOemStrategy(MappingStrategy):
    """Match local EANs and OEM numbers against the webservice match pages.

    EAN pages are processed first, then OEM, then PCD (against the OEM map).
    A local ref matched in an earlier phase is never re-mapped by a later one.
    """

    async def map(self, config: MappingConfig, report: ImportReport) -> None:
        if config.use_cache and self.cache is not None and await self.cache.has_valid_cache():
            loaded = await self.cache.load_into(self.mapping_table)
            report.set("mapping_cache.loaded", loaded)
            return

        oem_map, ean_map = await self._build_maps(config)
        logger.info(f"{len(oem_map)} OEMs found, {len(ean_map)} EANs found")
        report.set("oem.local_values", len(oem_map))
        report.set("ean.local_values", len(ean_map))

        setted: set[str] = set()
        matched = {
            "EAN": await self._process("ean", ean_map, normalize_ean, setted, report),
            "OEM": await self._process("oem", oem_map, normalize_oem, setted, report),
            "PCD": await self._process("pcd", oem_map, normalize_oem, setted, report),
        }

        if config.use_cache and self.cache is not None:
            for mapping_type, rows in matched.items():
                await self.cache.save(mapping_type, rows)
            report.set("mapping_cache.saved", sum(len(rows) for rows in matched.values()))

    async def _build_maps(self, config: MappingConfig) -> tuple[ValueMap, ValueMap]:
        if config.mapping_type == MappingType.CUSTOM:
            oem_source, oem_name = "property", config.attribute_oem
            ean_source, ean_name = "property", config.attribute_ean
        elif config.mapping_type == MappingType.CUSTOM_FIELD:
            oem_source, oem_name = "custom_field", config.attribute_oem
            ean_source, ean_name = "custom_field", config.attribute_ean
        else:
            oem_source, oem_name = "column", "manufacturer_number"
            ean_source, ean_name = "column", "ean"

        oems = await load_product_values(self.store, source=oem_source, name=oem_name) if oem_name else []
        eans = await load_product_values(self.store, source=ean_source, name=ean_name) if ean_name else []
        return build_value_map(oems, normalize_oem), build_value_map(eans, normalize_ean)

    async def _process(
        self,
        kind: str,
        value_map: ValueMap,
        normalize: Callable[[str | None], str],
        setted: set[str],
        report: ImportReport,
    ) -> list[MappingRow]:
        """Page through one match kind and insert the new mappings.

        Returns:
            Rows inserted by this phase.
        """
        if not value_map:
            logger.warning(f"No local {kind.upper()} values; skipping {kind} webservice")
            report.set(f"{kind}.fetched", 0)
            report.set(f"{kind}.mappings", 0)
            return []

        logger.info(f"Fetching {kind.upper()} matches from webservice...")
        collected: list[MappingRow] = []
        buffer: list[MappingRow] = []
        fetched = 0
        page = 1
        while True:
            response = await self.client.fetch_match_page(kind, page)  # type: ignore[arg-type]
            if not isinstance(response.get("match"), list) or not isinstance(response.get("page"), dict):
                raise WebserviceResponseError(f"{kind} webservice response structure invalid on page {page}")
            pages = available_pages(response, f"{kind} webservice")
            fetched += len(response["match"])

            for match in response["match"]:
                external_id = int(match["products_id"])
                for value in match.get("values") or []:
                    refs = value_map.get(normalize(str(value)))
                    if not refs:
                        continue
                    for key, ref in refs.items():
                        if key in setted:
                            continue
                        row = MappingRow(external_id, ref.product_id, ref.version_id)
                        buffer.append(row)
                        collected.append(row)
                        setted.add(key)
                if len(buffer) >= INSERT_BATCH_SIZE:
                    await self.mapping_table.insert_many(buffer)
                    buffer = []

            logger.info(f"Fetched {kind.upper()} page {page}/{pages}")
            if page >= pages:
                break
            page += 1

        await self.mapping_table.insert_many(buffer)
        logger.info(f"Fetched {fetched} {kind.upper()} matches, {len(collected)} mappings collected")
        report.set(f"{kind}.fetched", fetched)
        report.set(f"{kind}.mappings", len(collected))
        return collected


# ============================================================
# Distributor
# ============================================================


class DistributorStrategy(MappingStrategy):
    """Match local order numbers against distributor article numbers."""

    async def map(self, config: MappingConfig, report: ImportReport) -> None:
        order_number_map = await self._build_order_number_map(config)
        if not order_number_map:
            raise MappingError("distributor mapping 0 products found")
        logger.info(f"{len(order_number_map)} order numbers found")
        report.set("distributor.local_values", len(order_number_map))

        buffer: list[MappingRow] = []
        inserted = 0
        fetched = 0
        page = 1
        while True:
            response = await self.client.fetch_match_page("distributor", page)
            pages = available_pages(response, "distributor webservice")
            matches = response.get("match") or []
            fetched += len(matches)

            for product in matches:
                external_id = int(product["products_id"])
                for distributor in product.get("distributors") or []:
                    for artnr in distributor.get("artnrs") or []:
                        refs = order_number_map.get(normalize_order_number(str(artnr)))
                        if not refs:
                            continue
                        for ref in refs.values():
                            buffer.append(MappingRow(external_id, ref.product_id, ref.version_id))
                if len(buffer) > INSERT_BATCH_SIZE:
                    inserted += await self.mapping_table.insert_many(buffer)
                    buffer = []

            logger.info(f"Fetched distributor page {page}/{pages}")
            if page >= pages:
                break
            page += 1

        inserted += await self.mapping_table.insert_many(buffer)
        logger.info(f"Distributor mapping: {fetched} products fetched, {inserted} mappings")
        report.set("distributor.fetched", fetched)
        report.set("distributor.mappings", inserted)

    async def _build_order_number_map(self, config: MappingConfig) -> ValueMap:
        if config.mapping_type == MappingType.DISTRIBUTOR_CUSTOM and config.attribute_ordernumber:
            values = await load_product_values(self.store, source="property", name=config.attribute_ordernumber)
        elif config.mapping_type == MappingType.DISTRIBUTOR_CUSTOM_FIELD and config.attribute_ordernumber:
            values = await load_product_values(self.store, source="custom_field", name=config.attribute_ordernumber)
        else:
            values = await load_product_values(self.store, source="column", name="product_number")
        return build_value_map(values, normalize_order_number)


# ============================================================
# Dispatch
# ============================================================


STRATEGIES: dict[MappingType, type[MappingStrategy]] = {
    MappingType.PRODUCT_NUMBER_AS_WS_ID: ProductNumberAsExternalIdStrategy,
    MappingType.DISTRIBUTOR_DEFAULT: DistributorStrategy,
    MappingType.DISTRIBUTOR_CUSTOM: DistributorStrategy,
    MappingType.DISTRIBUTOR_CUSTOM_FIELD: DistributorStrategy,
    MappingType.DEFAULT: EanOemStrategy,
    MappingType.CUSTOM: EanOemStrategy,
    MappingType.CUSTOM_FIELD: EanOemStrategy,
}


def build_strategy(
    mapping_type: MappingType,
    store: CatalogStore,
    client: RemoteCatalogClient,
    mapping_table: MappingTable,
    cache: MappingCacheService | None = None,
) -> MappingStrategy:
    return STRATEGIES[mapping_type](store, client, mapping_table, cache)


async def map_products(
    config: MappingConfig,
    store: CatalogStore,
    client: RemoteCatalogClient,
    mapping_table: MappingTable,
    report: ImportReport,
    cache: MappingCacheService | None = None,
) -> None:
    """Rebuild the mapping table with the configured strategy."""
    strategy = build_strategy(config.mapping_type, store, client, mapping_table, cache)
    logger.info(f"Mapping products with {type(strategy).__name__} ({config.mapping_type.value})")
    await mapping_table.truncate()
    await strategy.map(config, report)
    report.set("mapping.strategy", config.mapping_type.value)
