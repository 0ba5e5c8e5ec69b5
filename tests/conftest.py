"""In-memory fakes of the catalog store and the remote catalog client."""

from collections.abc import Sequence
from datetime import datetime, timezone
from typing import Any

import pytest

from catalog_sync.stores.catalog import (
    DeviceEntity,
    DeviceLinkRow,
    DeviceRow,
    FinderRecord,
    LocalRef,
    MappingCacheRow,
    MappingRow,
    ProductValue,
    RelationshipRow,
)


def hid(n: int) -> str:
    """Deterministic 32-char hex id."""
    return f"{n:032x}"


class FakeCatalogStore:
    def __init__(self) -> None:
        self.products: dict[str, dict[str, Any]] = {}
        self.property_values: list[tuple[str, str, str, str]] = []
        self.category_overrides: dict[str, dict[str, Any] | None] = {}
        self.mappings: list[MappingRow] = []
        self.devices: dict[str, dict[str, Any]] = {}
        self.entities: dict[DeviceEntity, dict[str, bool]] = {
            DeviceEntity.BRAND: {},
            DeviceEntity.SERIES: {},
            DeviceEntity.TYPE: {},
        }
        self.links: set[DeviceLinkRow] = set()
        self.relationships: list[RelationshipRow] = []
        self.groups: dict[str, dict[str, Any]] = {}
        self.assignments: dict[str, list[tuple[LocalRef, int]]] = {}
        self.cache_rows: list[tuple[MappingCacheRow, datetime]] = []
        self.reports: dict[int, dict[str, Any]] = {}
        self.mapping_insert_batches: list[int] = []
        self.link_insert_batches: list[tuple[int, bool]] = []
        self.finder_records: dict[DeviceEntity, dict[str, FinderRecord]] = {entity: {} for entity in DeviceEntity}
        self.finder_writes: list[tuple[str, DeviceEntity, int]] = []
        self.calls: list[str] = []

    # ---- seeding helpers ----

    def add_product(
        self,
        product_id: str,
        *,
        version_id: str | None = None,
        parent_id: str | None = None,
        number: str = "",
        ean: str | None = None,
        mpn: str | None = None,
        custom_fields: dict[str, Any] | None = None,
        category_path: list[str] | None = None,
    ) -> LocalRef:
        version_id = version_id or hid(0xFFFF)
        self.products[product_id] = {
            "id": product_id,
            "version_id": version_id,
            "parent_id": parent_id,
            "product_number": number,
            "ean": ean,
            "manufacturer_number": mpn,
            "custom_fields": custom_fields or {},
            "category_path": category_path or [],
        }
        return LocalRef(product_id, version_id, parent_id)

    def add_device(self, device_id: str, ws_id: int, *, brand: str | None, series: str | None, type_: str | None, enabled: bool = False) -> None:
        self.devices[device_id] = {
            "ws_id": ws_id,
            "brand_id": brand,
            "series_id": series,
            "type_id": type_,
            "enabled": enabled,
        }
        for entity, entity_id in ((DeviceEntity.BRAND, brand), (DeviceEntity.SERIES, series), (DeviceEntity.TYPE, type_)):
            if entity_id is not None:
                self.entities[entity].setdefault(entity_id, False)

    def enabled_ids(self, entity: DeviceEntity) -> set[str]:
        if entity == DeviceEntity.DEVICE:
            return {did for did, d in self.devices.items() if d["enabled"]}
        return {eid for eid, enabled in self.entities[entity].items() if enabled}

    # ---- products ----

    async def fetch_product_column_values(self, column: str) -> list[ProductValue]:
        return [
            ProductValue(p["id"], p["version_id"], str(p[column]))
            for p in self.products.values()
            if p[column] not in (None, "")
        ]

    async def fetch_property_values(self, group_name: str) -> list[ProductValue]:
        return [ProductValue(pid, vid, value) for pid, vid, group, value in self.property_values if group == group_name]

    async def fetch_custom_field_values(self, field_name: str) -> list[ProductValue]:
        return [
            ProductValue(p["id"], p["version_id"], str(p["custom_fields"][field_name]))
            for p in self.products.values()
            if p["custom_fields"].get(field_name) not in (None, "")
        ]

    async def fetch_category_paths(self, product_ids: Sequence[str]) -> dict[str, list[str]]:
        return {
            pid: list(self.products[pid]["category_path"])
            for pid in product_ids
            if pid in self.products and self.products[pid]["category_path"]
        }

    async def fetch_category_overrides(self, category_ids: Sequence[str]) -> dict[str, dict[str, Any] | None]:
        return {cid: self.category_overrides.get(cid) for cid in category_ids}

    # ---- mapping table ----

    async def truncate_mappings(self) -> None:
        self.calls.append("truncate_mappings")
        self.mappings = []

    async def insert_mappings(self, rows: Sequence[MappingRow]) -> int:
        self.mapping_insert_batches.append(len(rows))
        self.mappings.extend(rows)
        return len(rows)

    async def fetch_mappings(self) -> list[tuple[int, LocalRef]]:
        result = []
        for row in sorted(self.mappings, key=lambda r: r.external_id):
            product = self.products.get(row.product_id)
            if product is None:
                continue
            result.append((row.external_id, LocalRef(row.product_id, row.version_id, product["parent_id"])))
        return result

    # ---- devices ----

    async def disable_all_device_entities(self) -> dict[DeviceEntity, int]:
        self.calls.append("disable_all_device_entities")
        counts = {DeviceEntity.DEVICE: 0}
        for device in self.devices.values():
            if device["enabled"]:
                counts[DeviceEntity.DEVICE] += 1
                device["enabled"] = False
        for entity, rows in self.entities.items():
            counts[entity] = sum(1 for enabled in rows.values() if enabled)
            for key in rows:
                rows[key] = False
        return counts

    async def delete_all_device_links(self) -> int:
        count = len(self.links)
        self.links = set()
        return count

    async def delete_device_links_for_products(self, product_ids: Sequence[str]) -> int:
        self.calls.append("delete_device_links_for_products")
        wanted = set(product_ids)
        doomed = {link for link in self.links if link.product_id in wanted}
        self.links -= doomed
        return len(doomed)

    async def fetch_devices_by_ws_ids(self, ws_ids: Sequence[int]) -> list[DeviceRow]:
        wanted = set(ws_ids)
        return [
            DeviceRow(did, d["ws_id"], d["brand_id"], d["series_id"], d["type_id"])
            for did, d in self.devices.items()
            if d["ws_id"] in wanted
        ]

    async def enable_devices_by_ws_ids(self, ws_ids: Sequence[int]) -> int:
        wanted = set(ws_ids)
        count = 0
        for device in self.devices.values():
            if device["ws_id"] in wanted and not device["enabled"]:
                device["enabled"] = True
                count += 1
        return count

    async def insert_device_links(self, rows: Sequence[DeviceLinkRow], *, upsert: bool = False) -> int:
        self.link_insert_batches.append((len(rows), upsert))
        self.links.update(rows)
        return len(rows)

    async def set_enabled(self, entity: DeviceEntity, ids: Sequence[str]) -> int:
        count = 0
        for entity_id in ids:
            if entity == DeviceEntity.DEVICE:
                if entity_id in self.devices:
                    self.devices[entity_id]["enabled"] = True
                    count += 1
            elif entity_id in self.entities[entity]:
                self.entities[entity][entity_id] = True
                count += 1
        return count

    async def disable_all_except(self, entity: DeviceEntity, ids: Sequence[str]) -> int:
        keep = set(ids)
        count = 0
        if entity == DeviceEntity.DEVICE:
            for did, device in self.devices.items():
                if device["enabled"] and did not in keep:
                    device["enabled"] = False
                    count += 1
            return count
        for entity_id, enabled in self.entities[entity].items():
            if enabled and entity_id not in keep:
                self.entities[entity][entity_id] = False
                count += 1
        return count

    # ---- device import ----

    async def fetch_finder_records(self, entity: DeviceEntity) -> list[FinderRecord]:
        return list(self.finder_records[entity].values())

    async def create_finder_records(self, entity: DeviceEntity, records: Sequence[FinderRecord]) -> int:
        self.finder_writes.append(("create", entity, len(records)))
        for record in records:
            self.finder_records[entity][record.id] = record
            if entity == DeviceEntity.DEVICE:
                self.devices[record.id] = {
                    "ws_id": record.ws_id,
                    "brand_id": record.brand_id,
                    "series_id": record.series_id,
                    "type_id": record.type_id,
                    "enabled": False,
                }
            else:
                self.entities[entity][record.id] = False
        return len(records)

    async def update_finder_records(self, entity: DeviceEntity, records: Sequence[FinderRecord]) -> int:
        self.finder_writes.append(("update", entity, len(records)))
        updated = 0
        for record in records:
            if record.id in self.finder_records[entity]:
                self.finder_records[entity][record.id] = record
                updated += 1
        return updated

    # ---- relationships / cross-selling ----

    async def delete_relationships(self, product_ids: Sequence[str], relationship_type: str) -> int:
        wanted = set(product_ids)
        before = len(self.relationships)
        self.relationships = [
            r for r in self.relationships if not (r.product_id in wanted and r.relationship_type == relationship_type)
        ]
        return before - len(self.relationships)

    async def insert_relationships(self, rows: Sequence[RelationshipRow]) -> int:
        self.relationships.extend(rows)
        return len(rows)

    async def find_cross_selling_group(self, product: LocalRef, relationship_type: str) -> str | None:
        for group_id, group in self.groups.items():
            if group["product_id"] == product.product_id and group["relationship_type"] == relationship_type:
                return group_id
        return None

    async def create_cross_selling_group(
        self,
        product: LocalRef,
        relationship_type: str,
        names: dict[str, str],
        position: int,
        limit: int,
    ) -> str:
        group_id = hid(0xC000 + len(self.groups))
        self.groups[group_id] = {
            "product_id": product.product_id,
            "relationship_type": relationship_type,
            "names": names,
            "position": position,
            "limit": limit,
        }
        self.assignments[group_id] = []
        return group_id

    async def delete_cross_selling_assignments(self, group_id: str) -> int:
        count = len(self.assignments.get(group_id, []))
        self.assignments[group_id] = []
        return count

    async def insert_cross_selling_assignments(self, group_id: str, refs: Sequence[LocalRef]) -> int:
        self.assignments.setdefault(group_id, []).extend((ref, pos) for pos, ref in enumerate(refs, start=1))
        return len(refs)

    # ---- mapping cache ----

    async def cache_newest_entry_at(self) -> datetime | None:
        return max((created for _, created in self.cache_rows), default=None)

    async def cache_insert(self, rows: Sequence[MappingCacheRow]) -> int:
        now = datetime.now(timezone.utc)
        self.cache_rows.extend((row, now) for row in rows)
        return len(rows)

    async def cache_fetch(self) -> list[MappingCacheRow]:
        return [row for row, _ in self.cache_rows]

    async def cache_delete(self, mapping_type: str | None = None) -> int:
        before = len(self.cache_rows)
        self.cache_rows = [
            (row, created)
            for row, created in self.cache_rows
            if mapping_type is not None and row.mapping_type != mapping_type
        ]
        return before - len(self.cache_rows)

    async def cache_stats(self) -> dict[str, Any]:
        by_type: dict[str, int] = {}
        for row, _ in self.cache_rows:
            by_type[row.mapping_type] = by_type.get(row.mapping_type, 0) + 1
        created = [c for _, c in self.cache_rows]
        return {
            "total": len(self.cache_rows),
            "by_type": by_type,
            "oldest": min(created).isoformat() if created else None,
            "newest": max(created).isoformat() if created else None,
        }

    # ---- job reports ----

    async def create_job_report(self, job_type: str, command_line: str, pid: int) -> int:
        report_id = len(self.reports) + 1
        self.reports[report_id] = {
            "id": report_id,
            "job_type": job_type,
            "job_status": "RUNNING",
            "command_line": command_line,
            "pid": pid,
            "started_at": datetime.now(timezone.utc),
            "finished_at": None,
            "report_data": None,
        }
        return report_id

    async def finish_job_report(self, report_id: int, status: str, data: dict[str, Any]) -> None:
        self.reports[report_id].update(
            job_status=status,
            finished_at=datetime.now(timezone.utc),
            report_data=data,
        )

    async def fetch_running_job_reports(self) -> list[tuple[int, int | None]]:
        return [(rid, r["pid"]) for rid, r in self.reports.items() if r["job_status"] == "RUNNING"]

    async def set_job_status(self, report_ids: Sequence[int], status: str) -> int:
        for report_id in report_ids:
            self.reports[report_id]["job_status"] = status
        return len(report_ids)

    async def fetch_latest_job_reports(self, limit: int) -> list[dict[str, Any]]:
        return sorted(self.reports.values(), key=lambda r: r["id"], reverse=True)[:limit]


class FakeRemoteCatalogClient:
    """Serves canned match pages, product payloads and finder data."""

    def __init__(self) -> None:
        self.match_pages: dict[str, list[dict[str, Any]]] = {}
        self.products: dict[int, dict[str, Any]] = {}
        self.product_list_calls: list[tuple[list[int], str]] = []
        self.match_calls: list[tuple[str, int]] = []
        self.omit_pages_for_product_list = False
        self.finder: dict[str, list[dict[str, Any]]] = {"brands": [], "device_types": [], "series": [], "models": []}
        self.model_calls: list[tuple[int, int]] = []

    def set_match_pages(self, kind: str, *pages: list[dict[str, Any]]) -> None:
        total = len(pages)
        self.match_pages[kind] = [{"page": {"available_pages": total}, "match": matches} for matches in pages]

    async def fetch_match_page(self, kind: str, page: int) -> dict[str, Any]:
        self.match_calls.append((kind, page))
        pages = self.match_pages.get(kind) or [{"page": {"available_pages": 1}, "match": []}]
        return pages[page - 1]

    async def fetch_product_list(self, external_ids: Sequence[int], filter: str = "all") -> dict[str, Any]:
        self.product_list_calls.append((list(external_ids), filter))
        products = [self.products[i] for i in external_ids if i in self.products]
        if self.omit_pages_for_product_list:
            return {"products": products, "error": [{"error_message": "quota exceeded"}]}
        return {"page": {"available_pages": 1}, "products": products}

    async def fetch_finder_brands(self) -> dict[str, Any]:
        return {"data": self.finder["brands"]}

    async def fetch_finder_device_types(self, brand_id: int | None = None) -> dict[str, Any]:
        return {"data": self.finder["device_types"]}

    async def fetch_finder_series(self, brand_id: int | None = None) -> dict[str, Any]:
        return {"data": self.finder["series"]}

    async def fetch_finder_models(self, limit: int, start: int) -> dict[str, Any]:
        self.model_calls.append((limit, start))
        return {"data": self.finder["models"][start:start + limit]}

    async def get_user_info(self) -> dict[str, Any]:
        return {"user_id": 1}

    async def close(self) -> None:
        pass


@pytest.fixture
def store() -> FakeCatalogStore:
    return FakeCatalogStore()


@pytest.fixture
def remote() -> FakeRemoteCatalogClient:
    return FakeRemoteCatalogClient()
