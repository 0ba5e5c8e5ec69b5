"""Local catalog store.

Batch read/write contract the sync services run against, plus its
PostgreSQL implementation. Services work with hex ids; the store converts
them to the 16-byte binary columns.

Every method opens its own session and commits on return, so batches that
completed before a failure stay committed.
"""

import json
import logging
from collections.abc import AsyncGenerator, Callable, Sequence
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal, Protocol

from sqlalchemy import cast, delete, func, insert, select, update
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_sync.models import (
    Brand,
    Category,
    CrossSellingAssignment,
    CrossSellingGroup,
    Device,
    DeviceProductLink,
    DeviceType,
    ExternalProductMapping,
    JobReport,
    MappingCacheEntry,
    Product,
    ProductPropertyValue,
    ProductRelationship,
    Series,
)
from catalog_sync.services.normalization import bytes_to_hex, hex_to_bytes, is_hex_id
from catalog_sync.stores.postgres import get_session

logger = logging.getLogger("uvicorn.error")


# ============================================================
# Row types
# ============================================================


@dataclass(frozen=True)
class LocalRef:
    """A local product revision; parent_id is set for variants."""

    product_id: str
    version_id: str
    parent_id: str | None = None

    @property
    def key(self) -> str:
        return f"{self.product_id}-{self.version_id}"


@dataclass(frozen=True)
class ProductValue:
    """One attribute value read for a product revision."""

    product_id: str
    version_id: str
    value: str


@dataclass(frozen=True)
class MappingRow:
    external_id: int
    product_id: str
    version_id: str


@dataclass(frozen=True)
class MappingCacheRow:
    mapping_type: str
    external_id: int
    product_id: str
    version_id: str


@dataclass(frozen=True)
class DeviceRow:
    id: str
    ws_id: int
    brand_id: str | None
    series_id: str | None
    type_id: str | None


@dataclass(frozen=True)
class DeviceLinkRow:
    device_id: str
    product_id: str
    product_version_id: str


@dataclass(frozen=True)
class RelationshipRow:
    product_id: str
    product_version_id: str
    linked_product_id: str
    linked_product_version_id: str
    relationship_type: str


@dataclass(frozen=True)
class FinderRecord:
    """Brand, series, device type or device as written by the device import.

    `label` is the model name for devices. `series_id`, `type_id` and
    `keywords` only apply to devices.
    """

    id: str
    ws_id: int
    code: str
    label: str
    sort: int = 0
    brand_id: str | None = None
    series_id: str | None = None
    type_id: str | None = None
    keywords: str | None = None


class DeviceEntity(str, Enum):
    DEVICE = "device"
    BRAND = "brand"
    SERIES = "series"
    TYPE = "type"


ProductColumn = Literal["product_number", "ean", "manufacturer_number"]


class CatalogStore(Protocol):
    """Batch contract consumed by the sync services."""

    # Products
    async def fetch_product_column_values(self, column: ProductColumn) -> list[ProductValue]: ...
    async def fetch_property_values(self, group_name: str) -> list[ProductValue]: ...
    async def fetch_custom_field_values(self, field_name: str) -> list[ProductValue]: ...
    async def fetch_category_paths(self, product_ids: Sequence[str]) -> dict[str, list[str]]: ...
    async def fetch_category_overrides(self, category_ids: Sequence[str]) -> dict[str, dict[str, Any] | None]: ...

    # Mapping table
    async def truncate_mappings(self) -> None: ...
    async def insert_mappings(self, rows: Sequence[MappingRow]) -> int: ...
    async def fetch_mappings(self) -> list[tuple[int, LocalRef]]: ...

    # Devices
    async def disable_all_device_entities(self) -> dict[DeviceEntity, int]: ...
    async def delete_all_device_links(self) -> int: ...
    async def delete_device_links_for_products(self, product_ids: Sequence[str]) -> int: ...
    async def fetch_devices_by_ws_ids(self, ws_ids: Sequence[int]) -> list[DeviceRow]: ...
    async def enable_devices_by_ws_ids(self, ws_ids: Sequence[int]) -> int: ...
    async def insert_device_links(self, rows: Sequence[DeviceLinkRow], *, upsert: bool = False) -> int: ...
    async def set_enabled(self, entity: DeviceEntity, ids: Sequence[str]) -> int: ...
    async def disable_all_except(self, entity: DeviceEntity, ids: Sequence[str]) -> int: ...

    # Device import
    async def fetch_finder_records(self, entity: DeviceEntity) -> list[FinderRecord]: ...
    async def create_finder_records(self, entity: DeviceEntity, records: Sequence[FinderRecord]) -> int: ...
    async def update_finder_records(self, entity: DeviceEntity, records: Sequence[FinderRecord]) -> int: ...

    # Relationships / cross-selling
    async def delete_relationships(self, product_ids: Sequence[str], relationship_type: str) -> int: ...
    async def insert_relationships(self, rows: Sequence[RelationshipRow]) -> int: ...
    async def find_cross_selling_group(self, product: LocalRef, relationship_type: str) -> str | None: ...
    async def create_cross_selling_group(
        self,
        product: LocalRef,
        relationship_type: str,
        names: dict[str, str],
        position: int,
        limit: int,
    ) -> str: ...
    async def delete_cross_selling_assignments(self, group_id: str) -> int: ...
    async def insert_cross_selling_assignments(self, group_id: str, refs: Sequence[LocalRef]) -> int: ...

    # Mapping cache
    async def cache_newest_entry_at(self) -> datetime | None: ...
    async def cache_insert(self, rows: Sequence[MappingCacheRow]) -> int: ...
    async def cache_fetch(self) -> list[MappingCacheRow]: ...
    async def cache_delete(self, mapping_type: str | None = None) -> int: ...
    async def cache_stats(self) -> dict[str, Any]: ...

    # Job reports
    async def create_job_report(self, job_type: str, command_line: str, pid: int) -> int: ...
    async def finish_job_report(self, report_id: int, status: str, data: dict[str, Any]) -> None: ...
    async def fetch_running_job_reports(self) -> list[tuple[int, int | None]]: ...
    async def set_job_status(self, report_ids: Sequence[int], status: str) -> int: ...
    async def fetch_latest_job_reports(self, limit: int) -> list[dict[str, Any]]: ...


_ENTITY_MODELS = {
    DeviceEntity.DEVICE: Device,
    DeviceEntity.BRAND: Brand,
    DeviceEntity.SERIES: Series,
    DeviceEntity.TYPE: DeviceType,
}


def _hex_or_none(value: bytes | None) -> str | None:
    return bytes_to_hex(value) if value is not None else None


def _to_bytes(ids: Sequence[str]) -> list[bytes]:
    return [hex_to_bytes(i) for i in ids]


def _finder_values(entity: DeviceEntity, record: FinderRecord) -> dict[str, Any]:
    """Column values of a finder record (id and enabled excluded)."""
    values: dict[str, Any] = {"ws_id": record.ws_id, "code": record.code, "sort": record.sort}
    if entity == DeviceEntity.DEVICE:
        values["model"] = record.label
        values["keywords"] = record.keywords
        values["series_id"] = hex_to_bytes(record.series_id) if record.series_id else None
        values["type_id"] = hex_to_bytes(record.type_id) if record.type_id else None
    else:
        values["label"] = record.label
    if entity != DeviceEntity.BRAND:
        values["brand_id"] = hex_to_bytes(record.brand_id) if record.brand_id else None
    return values


def _finder_record(entity: DeviceEntity, row: Any) -> FinderRecord:
    if entity == DeviceEntity.DEVICE:
        return FinderRecord(
            bytes_to_hex(row.id),
            int(row.ws_id),
            row.code,
            row.model or "",
            row.sort or 0,
            brand_id=_hex_or_none(row.brand_id),
            series_id=_hex_or_none(row.series_id),
            type_id=_hex_or_none(row.type_id),
            keywords=row.keywords,
        )
    brand_id = None if entity == DeviceEntity.BRAND else _hex_or_none(row.brand_id)
    return FinderRecord(bytes_to_hex(row.id), int(row.ws_id), row.code, row.label, row.sort or 0, brand_id=brand_id)


# ============================================================
# PostgreSQL implementation
# ============================================================


class SqlCatalogStore:
    """CatalogStore backed by async SQLAlchemy."""

    def __init__(
        self,
        session_scope: Callable[[], AbstractAsyncContextManager[AsyncSession]] | None = None,
    ):
        """
        Args:
            session_scope: Context manager factory yielding a committed-on-exit
                session. Defaults to stores.postgres.get_session.
        """
        self._session_scope = session_scope or get_session

    @asynccontextmanager
    async def _session(self) -> AsyncGenerator[AsyncSession, None]:
        async with self._session_scope() as session:
            yield session

    # ---- products ----

    async def fetch_product_column_values(self, column: ProductColumn) -> list[ProductValue]:
        col = getattr(Product, column)
        async with self._session() as session:
            res = await session.execute(
                select(Product.id, Product.version_id, col).where(col.is_not(None), col != "")
            )
            return [ProductValue(bytes_to_hex(pid), bytes_to_hex(vid), str(value)) for pid, vid, value in res.all()]

    async def fetch_property_values(self, group_name: str) -> list[ProductValue]:
        async with self._session() as session:
            res = await session.execute(
                select(
                    ProductPropertyValue.product_id,
                    ProductPropertyValue.product_version_id,
                    ProductPropertyValue.option_name,
                ).where(ProductPropertyValue.group_name == group_name)
            )
            return [ProductValue(bytes_to_hex(pid), bytes_to_hex(vid), value) for pid, vid, value in res.all()]

    async def fetch_custom_field_values(self, field_name: str) -> list[ProductValue]:
        value_col = cast(Product.custom_fields_json, JSONB)[field_name].astext
        async with self._session() as session:
            res = await session.execute(
                select(Product.id, Product.version_id, value_col)
                .where(Product.custom_fields_json.is_not(None), value_col.is_not(None), value_col != "")
                .distinct()
            )
            return [ProductValue(bytes_to_hex(pid), bytes_to_hex(vid), value) for pid, vid, value in res.all()]

    async def fetch_category_paths(self, product_ids: Sequence[str]) -> dict[str, list[str]]:
        if not product_ids:
            return {}
        async with self._session() as session:
            res = await session.execute(
                select(Product.id, Product.category_tree_json).where(Product.id.in_(_to_bytes(product_ids)))
            )
            paths: dict[str, list[str]] = {}
            for pid, tree_json in res.all():
                if not tree_json:
                    continue
                try:
                    tree = json.loads(tree_json)
                except json.JSONDecodeError:
                    logger.warning(f"Ignoring invalid category tree for product {bytes_to_hex(pid)}")
                    continue
                paths[bytes_to_hex(pid)] = [c.lower() for c in tree if is_hex_id(c)]
            return paths

    async def fetch_category_overrides(self, category_ids: Sequence[str]) -> dict[str, dict[str, Any] | None]:
        if not category_ids:
            return {}
        async with self._session() as session:
            res = await session.execute(
                select(Category.id, Category.use_global_settings, Category.import_settings_json).where(
                    Category.id.in_(_to_bytes(category_ids))
                )
            )
            overrides: dict[str, dict[str, Any] | None] = {}
            for cid, use_global, settings_json in res.all():
                block = None
                if not use_global and settings_json:
                    try:
                        parsed = json.loads(settings_json)
                    except json.JSONDecodeError:
                        logger.warning(f"Ignoring invalid import settings for category {bytes_to_hex(cid)}")
                        parsed = None
                    block = parsed if isinstance(parsed, dict) else None
                overrides[bytes_to_hex(cid)] = block
            return overrides

    # ---- mapping table ----

    async def truncate_mappings(self) -> None:
        async with self._session() as session:
            await session.execute(delete(ExternalProductMapping))

    async def insert_mappings(self, rows: Sequence[MappingRow]) -> int:
        if not rows:
            return 0
        async with self._session() as session:
            await session.execute(
                insert(ExternalProductMapping),
                [
                    {
                        "top_data_id": r.external_id,
                        "product_id": hex_to_bytes(r.product_id),
                        "product_version_id": hex_to_bytes(r.version_id),
                    }
                    for r in rows
                ],
            )
        return len(rows)

    async def fetch_mappings(self) -> list[tuple[int, LocalRef]]:
        async with self._session() as session:
            res = await session.execute(
                select(
                    ExternalProductMapping.top_data_id,
                    ExternalProductMapping.product_id,
                    ExternalProductMapping.product_version_id,
                    Product.parent_id,
                )
                .join(
                    Product,
                    (Product.id == ExternalProductMapping.product_id)
                    & (Product.version_id == ExternalProductMapping.product_version_id),
                )
                .order_by(ExternalProductMapping.top_data_id, ExternalProductMapping.id)
            )
            return [
                (int(ext_id), LocalRef(bytes_to_hex(pid), bytes_to_hex(vid), _hex_or_none(parent)))
                for ext_id, pid, vid, parent in res.all()
            ]

    # ---- devices ----

    async def disable_all_device_entities(self) -> dict[DeviceEntity, int]:
        counts: dict[DeviceEntity, int] = {}
        async with self._session() as session:
            for entity, model in _ENTITY_MODELS.items():
                res = await session.execute(update(model).where(model.enabled.is_(True)).values(enabled=False))
                counts[entity] = res.rowcount or 0
        return counts

    async def delete_all_device_links(self) -> int:
        async with self._session() as session:
            res = await session.execute(delete(DeviceProductLink))
            return res.rowcount or 0

    async def delete_device_links_for_products(self, product_ids: Sequence[str]) -> int:
        if not product_ids:
            return 0
        async with self._session() as session:
            res = await session.execute(
                delete(DeviceProductLink).where(DeviceProductLink.product_id.in_(_to_bytes(product_ids)))
            )
            return res.rowcount or 0

    async def fetch_devices_by_ws_ids(self, ws_ids: Sequence[int]) -> list[DeviceRow]:
        if not ws_ids:
            return []
        async with self._session() as session:
            res = await session.execute(
                select(Device.id, Device.ws_id, Device.brand_id, Device.series_id, Device.type_id).where(
                    Device.ws_id.in_(list(ws_ids))
                )
            )
            return [
                DeviceRow(bytes_to_hex(did), int(ws_id), _hex_or_none(bid), _hex_or_none(sid), _hex_or_none(tid))
                for did, ws_id, bid, sid, tid in res.all()
            ]

    async def enable_devices_by_ws_ids(self, ws_ids: Sequence[int]) -> int:
        if not ws_ids:
            return 0
        async with self._session() as session:
            res = await session.execute(
                update(Device).where(Device.enabled.is_(False), Device.ws_id.in_(list(ws_ids))).values(enabled=True)
            )
            return res.rowcount or 0

    async def insert_device_links(self, rows: Sequence[DeviceLinkRow], *, upsert: bool = False) -> int:
        if not rows:
            return 0
        values = [
            {
                "device_id": hex_to_bytes(r.device_id),
                "product_id": hex_to_bytes(r.product_id),
                "product_version_id": hex_to_bytes(r.product_version_id),
            }
            for r in rows
        ]
        async with self._session() as session:
            await session.execute(build_device_link_insert(values, upsert=upsert))
        return len(rows)

    async def set_enabled(self, entity: DeviceEntity, ids: Sequence[str]) -> int:
        if not ids:
            return 0
        model = _ENTITY_MODELS[entity]
        async with self._session() as session:
            res = await session.execute(update(model).where(model.id.in_(_to_bytes(ids))).values(enabled=True))
            return res.rowcount or 0

    async def disable_all_except(self, entity: DeviceEntity, ids: Sequence[str]) -> int:
        model = _ENTITY_MODELS[entity]
        stmt = update(model).where(model.enabled.is_(True))
        if ids:
            stmt = stmt.where(model.id.not_in(_to_bytes(ids)))
        async with self._session() as session:
            res = await session.execute(stmt.values(enabled=False))
            return res.rowcount or 0

    # ---- device import ----

    async def fetch_finder_records(self, entity: DeviceEntity) -> list[FinderRecord]:
        model = _ENTITY_MODELS[entity]
        async with self._session() as session:
            res = await session.execute(select(model))
            return [_finder_record(entity, row) for row in res.scalars().all()]

    async def create_finder_records(self, entity: DeviceEntity, records: Sequence[FinderRecord]) -> int:
        if not records:
            return 0
        model = _ENTITY_MODELS[entity]
        async with self._session() as session:
            await session.execute(
                insert(model),
                [{**_finder_values(entity, r), "id": hex_to_bytes(r.id), "enabled": False} for r in records],
            )
        return len(records)

    async def update_finder_records(self, entity: DeviceEntity, records: Sequence[FinderRecord]) -> int:
        if not records:
            return 0
        model = _ENTITY_MODELS[entity]
        updated = 0
        async with self._session() as session:
            for record in records:
                res = await session.execute(
                    update(model).where(model.id == hex_to_bytes(record.id)).values(**_finder_values(entity, record))
                )
                updated += res.rowcount or 0
        return updated

    # ---- relationships / cross-selling ----

    async def delete_relationships(self, product_ids: Sequence[str], relationship_type: str) -> int:
        if not product_ids:
            return 0
        async with self._session() as session:
            res = await session.execute(
                delete(ProductRelationship).where(
                    ProductRelationship.product_id.in_(_to_bytes(product_ids)),
                    ProductRelationship.relationship_type == relationship_type,
                )
            )
            return res.rowcount or 0

    async def insert_relationships(self, rows: Sequence[RelationshipRow]) -> int:
        if not rows:
            return 0
        values = [
            {
                "product_id": hex_to_bytes(r.product_id),
                "product_version_id": hex_to_bytes(r.product_version_id),
                "linked_product_id": hex_to_bytes(r.linked_product_id),
                "linked_product_version_id": hex_to_bytes(r.linked_product_version_id),
                "relationship_type": r.relationship_type,
            }
            for r in rows
        ]
        async with self._session() as session:
            await session.execute(pg_insert(ProductRelationship).values(values).on_conflict_do_nothing())
        return len(rows)

    async def find_cross_selling_group(self, product: LocalRef, relationship_type: str) -> str | None:
        async with self._session() as session:
            res = await session.execute(
                select(CrossSellingGroup.id).where(
                    CrossSellingGroup.product_id == hex_to_bytes(product.product_id),
                    CrossSellingGroup.product_version_id == hex_to_bytes(product.version_id),
                    CrossSellingGroup.relationship_type == relationship_type,
                )
            )
            group_id = res.scalar_one_or_none()
            return _hex_or_none(group_id)

    async def create_cross_selling_group(
        self,
        product: LocalRef,
        relationship_type: str,
        names: dict[str, str],
        position: int,
        limit: int,
    ) -> str:
        group = CrossSellingGroup(
            product_id=hex_to_bytes(product.product_id),
            product_version_id=hex_to_bytes(product.version_id),
            relationship_type=relationship_type,
            name_translations_json=json.dumps(names, ensure_ascii=False),
            position=position,
            type="productList",
            sort_by="name",
            sort_direction="ASC",
            active=True,
            limit=limit,
        )
        async with self._session() as session:
            session.add(group)
            await session.flush()
            return bytes_to_hex(group.id)

    async def delete_cross_selling_assignments(self, group_id: str) -> int:
        async with self._session() as session:
            res = await session.execute(
                delete(CrossSellingAssignment).where(CrossSellingAssignment.cross_selling_id == hex_to_bytes(group_id))
            )
            return res.rowcount or 0

    async def insert_cross_selling_assignments(self, group_id: str, refs: Sequence[LocalRef]) -> int:
        if not refs:
            return 0
        group = hex_to_bytes(group_id)
        async with self._session() as session:
            await session.execute(
                insert(CrossSellingAssignment),
                [
                    {
                        "cross_selling_id": group,
                        "product_id": hex_to_bytes(ref.product_id),
                        "product_version_id": hex_to_bytes(ref.version_id),
                        "position": position,
                    }
                    for position, ref in enumerate(refs, start=1)
                ],
            )
        return len(refs)

    # ---- mapping cache ----

    async def cache_newest_entry_at(self) -> datetime | None:
        async with self._session() as session:
            res = await session.execute(select(func.max(MappingCacheEntry.created_at)))
            return res.scalar_one_or_none()

    async def cache_insert(self, rows: Sequence[MappingCacheRow]) -> int:
        if not rows:
            return 0
        async with self._session() as session:
            await session.execute(
                insert(MappingCacheEntry),
                [
                    {
                        "mapping_type": r.mapping_type,
                        "external_id": r.external_id,
                        "product_id": hex_to_bytes(r.product_id),
                        "product_version_id": hex_to_bytes(r.version_id),
                    }
                    for r in rows
                ],
            )
        return len(rows)

    async def cache_fetch(self) -> list[MappingCacheRow]:
        async with self._session() as session:
            res = await session.execute(
                select(
                    MappingCacheEntry.mapping_type,
                    MappingCacheEntry.external_id,
                    MappingCacheEntry.product_id,
                    MappingCacheEntry.product_version_id,
                ).order_by(MappingCacheEntry.id)
            )
            return [
                MappingCacheRow(mapping_type, int(ext_id), bytes_to_hex(pid), bytes_to_hex(vid))
                for mapping_type, ext_id, pid, vid in res.all()
            ]

    async def cache_delete(self, mapping_type: str | None = None) -> int:
        stmt = delete(MappingCacheEntry)
        if mapping_type is not None:
            stmt = stmt.where(MappingCacheEntry.mapping_type == mapping_type)
        async with self._session() as session:
            res = await session.execute(stmt)
            return res.rowcount or 0

    async def cache_stats(self) -> dict[str, Any]:
        async with self._session() as session:
            res = await session.execute(
                select(MappingCacheEntry.mapping_type, func.count()).group_by(MappingCacheEntry.mapping_type)
            )
            by_type = {mapping_type: int(count) for mapping_type, count in res.all()}
            bounds = await session.execute(
                select(func.min(MappingCacheEntry.created_at), func.max(MappingCacheEntry.created_at))
            )
            oldest, newest = bounds.one()
        return {
            "total": sum(by_type.values()),
            "by_type": by_type,
            "oldest": oldest.isoformat() if oldest else None,
            "newest": newest.isoformat() if newest else None,
        }

    # ---- job reports ----

    async def create_job_report(self, job_type: str, command_line: str, pid: int) -> int:
        report = JobReport(
            job_type=job_type,
            job_status="RUNNING",
            command_line=command_line,
            pid=pid,
            started_at=datetime.now(timezone.utc),
        )
        async with self._session() as session:
            session.add(report)
            await session.flush()
            return report.id

    async def finish_job_report(self, report_id: int, status: str, data: dict[str, Any]) -> None:
        async with self._session() as session:
            await session.execute(
                update(JobReport)
                .where(JobReport.id == report_id)
                .values(
                    job_status=status,
                    finished_at=datetime.now(timezone.utc),
                    report_data_json=json.dumps(data, ensure_ascii=False, default=str),
                )
            )

    async def fetch_running_job_reports(self) -> list[tuple[int, int | None]]:
        async with self._session() as session:
            res = await session.execute(select(JobReport.id, JobReport.pid).where(JobReport.job_status == "RUNNING"))
            return [(int(rid), pid) for rid, pid in res.all()]

    async def set_job_status(self, report_ids: Sequence[int], status: str) -> int:
        if not report_ids:
            return 0
        async with self._session() as session:
            res = await session.execute(
                update(JobReport)
                .where(JobReport.id.in_(list(report_ids)))
                .values(job_status=status, finished_at=datetime.now(timezone.utc))
            )
            return res.rowcount or 0

    async def fetch_latest_job_reports(self, limit: int) -> list[dict[str, Any]]:
        async with self._session() as session:
            res = await session.execute(select(JobReport).order_by(JobReport.started_at.desc()).limit(limit))
            return [
                {
                    "id": r.id,
                    "job_type": r.job_type,
                    "job_status": r.job_status,
                    "command_line": r.command_line,
                    "pid": r.pid,
                    "started_at": r.started_at,
                    "finished_at": r.finished_at,
                    "report_data": json.loads(r.report_data_json) if r.report_data_json else None,
                }
                for r in res.scalars().all()
            ]


def build_device_link_insert(values: list[dict[str, Any]], *, upsert: bool):
    """INSERT for device_product_links.

    upsert=True refreshes updated_at on conflict (safe to re-run a chunk);
    upsert=False ignores duplicates.
    """
    stmt = pg_insert(DeviceProductLink).values(values)
    index_elements = [
        DeviceProductLink.device_id,
        DeviceProductLink.product_id,
        DeviceProductLink.product_version_id,
    ]
    if upsert:
        return stmt.on_conflict_do_update(index_elements=index_elements, set_={"updated_at": func.now()})
    return stmt.on_conflict_do_nothing(index_elements=index_elements)
