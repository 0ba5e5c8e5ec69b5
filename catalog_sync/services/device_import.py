"""Device catalog import from the remote finder.

Runs brands, device types, series, then devices. Every entity is upserted:
- brands by code (form_code of the name); only main brands are imported
- device types and series by (ws_id, brand), one row per listed brand
- devices by code (brand code + model code), fetched in pages of
  DEVICE_PAGE_SIZE until a short or empty page

Rows created here start disabled. The device linking step decides which
ones are available.
"""

import logging
from collections.abc import Sequence
from dataclasses import replace
from typing import Any
from uuid import uuid4

from catalog_sync.services.import_report import ImportReport
from catalog_sync.services.normalization import chunked, first_letters, form_code, label_words, search_keywords
from catalog_sync.services.webservice_client import RemoteCatalogClient, WebserviceResponseError
from catalog_sync.stores.catalog import CatalogStore, DeviceEntity, FinderRecord

logger = logging.getLogger("uvicorn.error")

DEVICE_PAGE_SIZE = 5000
WRITE_CHUNK_SIZE = 100
DEVICE_WRITE_CHUNK_SIZE = 50

# Counter prefix per entity
_PREFIX = {
    DeviceEntity.BRAND: "brands",
    DeviceEntity.TYPE: "device_types",
    DeviceEntity.SERIES: "series",
    DeviceEntity.DEVICE: "devices",
}


def _int(value: Any, default: int | None = 0) -> int | None:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _data(payload: dict[str, Any], context: str) -> list[dict[str, Any]]:
    data = payload.get("data")
    if not isinstance(data, list):
        raise WebserviceResponseError(f"{context} webservice returned no data")
    return [item for item in data if isinstance(item, dict)]


def _new_id() -> str:
    return uuid4().hex


class DeviceImport:
    """Upsert brands, device types, series and devices from the finder endpoints."""

    def __init__(
        self,
        store: CatalogStore,
        client: RemoteCatalogClient,
        *,
        page_size: int = DEVICE_PAGE_SIZE,
    ):
        self.store = store
        self.client = client
        self.page_size = page_size

    async def run(self, report: ImportReport) -> None:
        await self.import_brands(report)
        await self.import_device_types(report)
        await self.import_series(report)
        await self.import_devices(report)

    async def _write(
        self,
        entity: DeviceEntity,
        creates: Sequence[FinderRecord],
        updates: Sequence[FinderRecord],
        report: ImportReport,
        chunk_size: int = WRITE_CHUNK_SIZE,
    ) -> None:
        prefix = _PREFIX[entity]
        for batch in chunked(creates, chunk_size):
            report.inc(f"{prefix}.created", await self.store.create_finder_records(entity, batch))
        for batch in chunked(updates, chunk_size):
            report.inc(f"{prefix}.updated", await self.store.update_finder_records(entity, batch))

    async def _brands_by_ws_id(self) -> dict[int, FinderRecord]:
        brands: dict[int, FinderRecord] = {}
        for record in await self.store.fetch_finder_records(DeviceEntity.BRAND):
            brands.setdefault(record.ws_id, record)
        return brands

    # ============================================================
    # Brands
    # ============================================================

    async def import_brands(self, report: ImportReport) -> None:
        items = _data(await self.client.fetch_finder_brands(), "brands")
        report.set("brands.fetched", len(items))

        existing = {r.code: r for r in await self.store.fetch_finder_records(DeviceEntity.BRAND)}
        seen: set[str] = set()
        creates: list[FinderRecord] = []
        updates: list[FinderRecord] = []
        for item in items:
            if not _int(item.get("main")):
                continue
            label = str(item.get("val") or "").strip()
            code = form_code(label)
            if not code or code in seen:
                continue
            seen.add(code)

            ws_id = _int(item.get("id"))
            current = existing.get(code)
            if current is None:
                creates.append(FinderRecord(_new_id(), ws_id, code, label, _int(item.get("top"))))
            elif current.label != label or current.ws_id != ws_id:
                updates.append(replace(current, label=label, ws_id=ws_id))
            else:
                report.inc("brands.unchanged")

        await self._write(DeviceEntity.BRAND, creates, updates, report)
        logger.info(f"Brands: {len(creates)} created, {len(updates)} updated")

    # ============================================================
    # Device types / series
    # ============================================================

    async def import_device_types(self, report: ImportReport) -> None:
        items = _data(await self.client.fetch_finder_device_types(), "device types")
        await self._import_brand_scoped(DeviceEntity.TYPE, items, report)

    async def import_series(self, report: ImportReport) -> None:
        items = _data(await self.client.fetch_finder_series(), "series")
        await self._import_brand_scoped(DeviceEntity.SERIES, items, report)

    async def _import_brand_scoped(
        self,
        entity: DeviceEntity,
        items: Sequence[dict[str, Any]],
        report: ImportReport,
    ) -> None:
        """Upsert one row per (item, listed brand); items of unknown brands are counted and skipped."""
        prefix = _PREFIX[entity]
        report.set(f"{prefix}.fetched", len(items))

        brands = await self._brands_by_ws_id()
        existing = {(r.ws_id, r.brand_id): r for r in await self.store.fetch_finder_records(entity)}
        creates: list[FinderRecord] = []
        updates: list[FinderRecord] = []
        for item in items:
            ws_id = _int(item.get("id"))
            label = str(item.get("val") or "").strip()
            sort = _int(item.get("top"))
            for brand_ws_id in item.get("brandIds") or []:
                brand = brands.get(_int(brand_ws_id, None))
                if brand is None:
                    report.inc(f"{prefix}.brand_not_found")
                    continue

                code = f"{brand.code}_{ws_id}_{form_code(label)}"
                current = existing.get((ws_id, brand.id))
                if current is None:
                    record = FinderRecord(_new_id(), ws_id, code, label, sort, brand_id=brand.id)
                    existing[(ws_id, brand.id)] = record
                    creates.append(record)
                elif (current.code, current.label, current.sort) != (code, label, sort):
                    updates.append(replace(current, code=code, label=label, sort=sort))
                else:
                    report.inc(f"{prefix}.unchanged")

        await self._write(entity, creates, updates, report)
        logger.info(f"{prefix}: {len(creates)} created, {len(updates)} updated")

    # ============================================================
    # Devices
    # ============================================================

    async def import_devices(self, report: ImportReport) -> None:
        """Page through the finder models and upsert every device by code.

        Duplicate codes within a run keep the first device.
        """
        brands = await self._brands_by_ws_id()
        series = {(r.ws_id, r.brand_id): r for r in await self.store.fetch_finder_records(DeviceEntity.SERIES)}
        types = {(r.ws_id, r.brand_id): r for r in await self.store.fetch_finder_records(DeviceEntity.TYPE)}
        existing: dict[str, FinderRecord] = {}
        for record in await self.store.fetch_finder_records(DeviceEntity.DEVICE):
            existing.setdefault(record.code, record)

        seen: set[str] = set()
        start = 0
        while True:
            payload = await self.client.fetch_finder_models(self.page_size, start)
            items = payload.get("data")
            if not isinstance(items, list) or not items:
                break
            report.inc("devices.pages")
            report.inc("devices.fetched", len(items))

            creates: list[FinderRecord] = []
            updates: list[FinderRecord] = []
            for item in items:
                if not isinstance(item, dict):
                    continue
                brand = brands.get(_int(item.get("bId"), None))
                if brand is None:
                    report.inc("devices.brand_not_found")
                    continue

                model = str(item.get("val") or "").strip()
                code = f"{brand.code}_{form_code(model)}"
                if code in seen:
                    report.inc("devices.duplicates")
                    continue
                seen.add(code)

                phrases = [f"{brand.label} {model} {brand.label}"]
                if len(label_words(brand.label)) > 1:
                    initials = first_letters(brand.label)
                    phrases.append(f"{initials} {model} {initials}")
                series_row = series.get((_int(item.get("mId")), brand.id)) if item.get("mId") else None
                if series_row:
                    phrases.append(series_row.label)
                type_row = types.get((_int(item.get("dId")), brand.id)) if item.get("dId") else None
                if type_row:
                    phrases.append(type_row.label)

                record = FinderRecord(
                    _new_id(),
                    _int(item.get("id")),
                    code,
                    model,
                    _int(item.get("top")),
                    brand_id=brand.id,
                    series_id=series_row.id if series_row else None,
                    type_id=type_row.id if type_row else None,
                    keywords=search_keywords(phrases),
                )
                current = existing.get(code)
                if current is None:
                    creates.append(record)
                elif _device_changed(current, record):
                    updates.append(replace(record, id=current.id, sort=current.sort))
                else:
                    report.inc("devices.unchanged")

            await self._write(DeviceEntity.DEVICE, creates, updates, report, DEVICE_WRITE_CHUNK_SIZE)
            logger.info(f"Devices page at {start}: {len(items)} fetched, {len(creates)} created, {len(updates)} updated")

            start += self.page_size
            if len(items) < self.page_size:
                break


def _device_changed(current: FinderRecord, fetched: FinderRecord) -> bool:
    return (current.brand_id, current.series_id, current.type_id, current.label, current.keywords, current.ws_id) != (
        fetched.brand_id,
        fetched.series_id,
        fetched.type_id,
        fetched.label,
        fetched.keywords,
        fetched.ws_id,
    )
