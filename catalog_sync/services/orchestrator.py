"""Import orchestrator.

Runs the selected phases in order:
1. devices (brands, device types, series and devices from the remote finder)
2. mapping (rebuild the mapping table with the configured strategy)
3. product-device links (device <-> product links and device availability)
4. product information (product <-> product relationships, cross-selling)

Each phase fills its own ImportReport; the merged counters are stored on the
run report. The caller is responsible for single-run exclusion.
"""

import logging
from dataclasses import dataclass

from catalog_sync.services.device_import import DeviceImport
from catalog_sync.services.device_linking import build_device_sync
from catalog_sync.services.import_report import ImportReport
from catalog_sync.services.import_settings import ImportSettingsResolver
from catalog_sync.services.job_reports import JobReportService
from catalog_sync.services.mapping_cache import MappingCacheService
from catalog_sync.services.mapping_strategies import MappingConfig, map_products
from catalog_sync.services.mapping_table import MappingTable
from catalog_sync.services.product_relationships import ProductRelationshipSync
from catalog_sync.services.webservice_client import RemoteCatalogClient
from catalog_sync.settings import Settings, get_settings
from catalog_sync.stores.catalog import CatalogStore, SqlCatalogStore

logger = logging.getLogger("uvicorn.error")

JOB_TYPE_IMPORT = "import"


@dataclass
class ImportOptions:
    devices: bool = False
    mapping: bool = False
    product_device_links: bool = False
    product_information: bool = False
    command_line: str = "import"

    @property
    def any_selected(self) -> bool:
        return self.devices or self.mapping or self.product_device_links or self.product_information


async def run_import(
    options: ImportOptions,
    store: CatalogStore,
    client: RemoteCatalogClient,
    settings: Settings | None = None,
) -> ImportReport:
    """Run one import and persist its report.

    Args:
        options: Phases to run.
        store: Local catalog store.
        client: Remote catalog client.
        settings: Settings (defaults to get_settings()).

    Returns:
        Merged counters of every phase that ran.

    Raises:
        Whatever the failing phase raised, after the report is marked FAILED.
    """
    settings = settings or get_settings()
    reports = JobReportService(store)
    await reports.mark_crashed()
    report_id = await reports.start(JOB_TYPE_IMPORT, options.command_line)

    merged = ImportReport()
    mapping_table = MappingTable(store)
    try:
        if options.devices:
            phase = ImportReport()
            try:
                await DeviceImport(store, client).run(phase)
            finally:
                merged.merge(phase)

        if options.mapping:
            phase = ImportReport()
            try:
                await map_products(
                    MappingConfig.from_settings(settings),
                    store,
                    client,
                    mapping_table,
                    phase,
                    cache=MappingCacheService(store, settings.mapping_cache_expiry_hours),
                )
            finally:
                merged.merge(phase)

        if options.product_device_links:
            phase = ImportReport()
            try:
                sync = build_device_sync(
                    settings.device_sync_algorithm,
                    store,
                    client,
                    mapping_table,
                    enable_batch_size=settings.enable_batch_size,
                    availability_strategy=settings.device_availability_strategy,
                )
                await sync.sync(phase)
            finally:
                merged.merge(phase)

        if options.product_information:
            phase = ImportReport()
            try:
                resolver = ImportSettingsResolver(store, settings.relationship_options())
                relationships = ProductRelationshipSync(
                    store,
                    mapping_table,
                    resolver,
                    max_cross_selling_products=settings.cross_selling_max_products,
                )
                await relationships.sync(client, phase)
            finally:
                merged.merge(phase)
    except Exception as e:
        logger.exception("Import failed")
        merged.set("error", str(e))
        await reports.fail(report_id, merged.as_dict())
        raise

    await reports.succeed(report_id, merged.as_dict())
    logger.info(f"Import finished: {merged.as_dict()}")
    return merged


def build_store() -> SqlCatalogStore:
    """SQL catalog store on the process-wide session factory (init_db() first)."""
    return SqlCatalogStore()


def build_client(settings: Settings | None = None) -> RemoteCatalogClient:
    return RemoteCatalogClient(settings or get_settings())
