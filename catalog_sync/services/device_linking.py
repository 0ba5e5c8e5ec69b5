"""Device <-> product linking and device availability.

After a successful run:
- a device is enabled iff at least one device_product_links row produced by
  the run references it;
- a brand / series / device type is enabled iff at least one enabled device
  references it.

Two algorithms:
- FullRebuildDeviceSync: disable everything, delete all links, then rebuild.
  A crash mid-run leaves entities disabled until the next successful run.
- DifferentialDeviceSync (default): scoped per-chunk deletes, idempotent link
  upserts, and one final reconcile pass that enables the discovered ids and
  disables everything else.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from catalog_sync.services.import_report import ImportReport
from catalog_sync.services.mapping_table import MappingTable
from catalog_sync.services.normalization import chunked, unique
from catalog_sync.services.webservice_client import RemoteCatalogClient, available_pages
from catalog_sync.stores.catalog import CatalogStore, DeviceEntity, DeviceLinkRow, DeviceRow, LocalRef

logger = logging.getLogger("uvicorn.error")

LOOKUP_CHUNK_SIZE = 100
LINK_INSERT_CHUNK_SIZE = 30
APPLICATION_IN_FILTER = "product_application_in"


def application_in_device_ids(product: dict[str, Any]) -> list[int]:
    """External device ids listed under product_application_in.products."""
    application_in = product.get("product_application_in")
    if not isinstance(application_in, dict):
        return []
    ids: list[int] = []
    for value in application_in.get("products") or []:
        try:
            ids.append(int(value))
        except (TypeError, ValueError):
            logger.warning(f"Ignoring invalid device id {value!r} for product {product.get('products_id')}")
    return ids


@dataclass
class ActiveEntities:
    """Ids discovered as linked during a run, one set per entity type."""

    devices: set[str] = field(default_factory=set)
    brands: set[str] = field(default_factory=set)
    series: set[str] = field(default_factory=set)
    types: set[str] = field(default_factory=set)

    def add_device(self, device: DeviceRow) -> None:
        self.devices.add(device.id)
        if device.brand_id:
            self.brands.add(device.brand_id)
        if device.series_id:
            self.series.add(device.series_id)
        if device.type_id:
            self.types.add(device.type_id)

    def ids(self, entity: DeviceEntity) -> set[str]:
        return {
            DeviceEntity.DEVICE: self.devices,
            DeviceEntity.BRAND: self.brands,
            DeviceEntity.SERIES: self.series,
            DeviceEntity.TYPE: self.types,
        }[entity]


def _collect_device_products(
    products: Sequence[dict[str, Any]],
    mappings: dict[int, list[LocalRef]],
    only_product_ids: set[str] | None = None,
) -> dict[int, list[LocalRef]]:
    """device ws_id -> local refs implied by the remote products that apply to it."""
    device_products: dict[int, list[LocalRef]] = {}
    for product in products:
        try:
            refs = mappings.get(int(product.get("products_id")))
        except (TypeError, ValueError):
            refs = None
        if not refs:
            continue
        if only_product_ids is not None:
            refs = [ref for ref in refs if ref.product_id in only_product_ids]
        for ws_id in application_in_device_ids(product):
            device_products.setdefault(ws_id, []).extend(refs)
    return {ws_id: refs for ws_id, refs in device_products.items() if refs}


def _build_link_rows(devices: Sequence[DeviceRow], device_products: dict[int, list[LocalRef]]) -> list[DeviceLinkRow]:
    rows = [
        DeviceLinkRow(device.id, ref.product_id, ref.version_id)
        for device in devices
        for ref in device_products.get(device.ws_id, [])
    ]
    return unique(rows)


class DeviceSync:
    """Shared wiring for both algorithms."""

    prefix = "linking"

    def __init__(
        self,
        store: CatalogStore,
        client: RemoteCatalogClient,
        mapping_table: MappingTable,
        *,
        enable_batch_size: int = 100,
    ):
        self.store = store
        self.client = client
        self.mapping_table = mapping_table
        self.enable_batch_size = enable_batch_size

    async def sync(self, report: ImportReport) -> ActiveEntities:
        raise NotImplementedError

    async def _fetch_application_in(self, external_ids: Sequence[int], report: ImportReport) -> list[dict[str, Any]]:
        response = await self.client.fetch_product_list(external_ids, APPLICATION_IN_FILTER)
        report.inc(f"{self.prefix}.webservice.calls")
        available_pages(response, "product_application_in webservice")
        return response.get("products") or []

    async def _enable(self, entity: DeviceEntity, ids: Sequence[str]) -> int:
        enabled = 0
        for batch in chunked(sorted(ids), self.enable_batch_size):
            enabled += await self.store.set_enabled(entity, batch)
        return enabled


# ============================================================
# Full rebuild
# ============================================================


class FullRebuildDeviceSync(DeviceSync):
    prefix = "linking_v1"

    async def sync(self, report: ImportReport) -> ActiveEntities:
        disabled = await self.store.disable_all_device_entities()
        for entity, count in disabled.items():
            report.set(f"{self.prefix}.disabled.{entity.value}", count)
        deleted = await self.store.delete_all_device_links()
        report.set(f"{self.prefix}.links.deleted", deleted)
        logger.info(
            "Disabled "
            + ", ".join(f"{count} {entity.value}" for entity, count in disabled.items())
            + f"; deleted {deleted} device links"
        )

        mappings = await self.mapping_table.get_mappings()
        active = ActiveEntities()
        external_ids = list(mappings)
        chunks = list(chunked(external_ids, LOOKUP_CHUNK_SIZE))
        report.set(f"{self.prefix}.chunks", len(chunks))

        for index, chunk in enumerate(chunks, start=1):
            logger.info(f"Device linking chunk {index}/{len(chunks)} ({len(chunk)} products)")
            products = await self._fetch_application_in(chunk, report)
            device_products = _collect_device_products(products, mappings)
            if not device_products:
                continue

            devices = await self.store.fetch_devices_by_ws_ids(list(device_products))
            if not devices:
                continue

            enabled = 0
            for ws_batch in chunked(sorted({d.ws_id for d in devices}), self.enable_batch_size):
                enabled += await self.store.enable_devices_by_ws_ids(ws_batch)
            report.inc(f"{self.prefix}.devices.enabled", enabled)

            for device in devices:
                active.add_device(device)

            for batch in chunked(_build_link_rows(devices, device_products), LINK_INSERT_CHUNK_SIZE):
                report.inc(f"{self.prefix}.links.inserted", await self.store.insert_device_links(batch))

        for entity in (DeviceEntity.BRAND, DeviceEntity.SERIES, DeviceEntity.TYPE):
            enabled = await self._enable(entity, list(active.ids(entity)))
            report.set(f"{self.prefix}.{entity.value}.enabled", enabled)

        logger.info(
            f"Device linking done: {len(active.devices)} devices, {len(active.brands)} brands, "
            f"{len(active.series)} series, {len(active.types)} types active"
        )
        return active


# ============================================================
# Differential
# ============================================================


class DifferentialDeviceSync(DeviceSync):
    prefix = "linking_v2"

    def __init__(
        self,
        store: CatalogStore,
        client: RemoteCatalogClient,
        mapping_table: MappingTable,
        *,
        enable_batch_size: int = 100,
        disable_unlinked: bool = True,
    ):
        super().__init__(store, client, mapping_table, enable_batch_size=enable_batch_size)
        self.disable_unlinked = disable_unlinked

    async def sync(self, report: ImportReport) -> ActiveEntities:
        mappings = await self.mapping_table.get_mappings()
        product_ids = await self.mapping_table.local_product_ids()
        active = ActiveEntities()
        if not product_ids:
            logger.warning("No mapped products; skipping device linking")
            return active

        chunks = list(chunked(product_ids, self.enable_batch_size))
        report.set(f"{self.prefix}.products.found", len(product_ids))
        report.set(f"{self.prefix}.products.chunks", len(chunks))

        for index, chunk in enumerate(chunks, start=1):
            logger.info(f"Device linking chunk {index}/{len(chunks)} ({len(chunk)} products)")
            report.inc(f"{self.prefix}.chunks.processed")

            external_ids = await self.mapping_table.external_ids_for_products(chunk)
            products = await self._fetch_application_in(external_ids, report)
            device_products = _collect_device_products(products, mappings, set(chunk))

            deleted = await self.store.delete_device_links_for_products(chunk)
            report.inc(f"{self.prefix}.links.deleted", deleted)

            if not device_products:
                logger.info("No device links found for this chunk")
                report.inc(f"{self.prefix}.chunks.empty")
                continue

            devices = await self.store.fetch_devices_by_ws_ids(list(device_products))
            if not devices:
                logger.info("No matching devices found in database for this chunk")
                report.inc(f"{self.prefix}.chunks.no_devices")
                continue

            for device in devices:
                active.add_device(device)

            for batch in chunked(_build_link_rows(devices, device_products), LINK_INSERT_CHUNK_SIZE):
                report.inc(f"{self.prefix}.links.inserted", await self.store.insert_device_links(batch, upsert=True))

        await self.reconcile(active, report)
        return active

    async def reconcile(self, active: ActiveEntities, report: ImportReport) -> None:
        """Enable exactly the discovered ids per entity type and disable the rest."""
        for entity in DeviceEntity:
            ids = active.ids(entity)
            report.set(f"{self.prefix}.active.{entity.value}", len(ids))
            enabled = await self._enable(entity, list(ids))
            report.set(f"{self.prefix}.status.{entity.value}.enabled", enabled)
            if not self.disable_unlinked:
                continue
            disabled = await self.store.disable_all_except(entity, sorted(ids))
            report.set(f"{self.prefix}.status.{entity.value}.disabled", disabled)
            logger.info(f"{entity.value}: {len(ids)} active, {enabled} enabled, {disabled} disabled")


def build_device_sync(
    algorithm: str,
    store: CatalogStore,
    client: RemoteCatalogClient,
    mapping_table: MappingTable,
    *,
    enable_batch_size: int = 100,
    availability_strategy: str = "disableUnlinked",
) -> DeviceSync:
    """Select the device linking algorithm ("differential" or "full_rebuild")."""
    if algorithm == "full_rebuild":
        return FullRebuildDeviceSync(store, client, mapping_table, enable_batch_size=enable_batch_size)
    if algorithm == "differential":
        return DifferentialDeviceSync(
            store,
            client,
            mapping_table,
            enable_batch_size=enable_batch_size,
            disable_unlinked=availability_strategy != "keepAllEnabled",
        )
    raise ValueError(f"Unknown device sync algorithm: {algorithm}")
