"""Tests for device <-> product linking and device availability."""

import pytest

from conftest import hid
from catalog_sync.services.device_linking import (
    ActiveEntities,
    DifferentialDeviceSync,
    FullRebuildDeviceSync,
    application_in_device_ids,
    build_device_sync,
)
from catalog_sync.services.import_report import ImportReport
from catalog_sync.services.mapping_table import MappingTable
from catalog_sync.services.webservice_client import WebserviceResponseError
from catalog_sync.stores.catalog import DeviceEntity, DeviceLinkRow, DeviceRow, MappingRow

A, B = hid(0xA), hid(0xB)
VERSION = hid(0xFFFF)
D1, D2, D3 = hid(0xD1), hid(0xD2), hid(0xD3)


@pytest.fixture
def catalog(store, remote):
    """Two mapped products, three devices; D3 and brand b3 start out enabled."""
    store.add_product(A)
    store.add_product(B)
    store.mappings += [MappingRow(1, A, VERSION), MappingRow(2, B, VERSION)]
    store.add_device(D1, 100, brand="b1", series="s1", type_="t1")
    store.add_device(D2, 200, brand="b2", series=None, type_="t1")
    store.add_device(D3, 300, brand="b3", series="s3", type_="t3", enabled=True)
    store.entities[DeviceEntity.BRAND]["b3"] = True
    remote.products[1] = {"products_id": 1, "product_application_in": {"products": [100, 200]}}
    remote.products[2] = {"products_id": 2, "product_application_in": {"products": [200, 999]}}
    return store


EXPECTED_LINKS = {
    DeviceLinkRow(D1, A, VERSION),
    DeviceLinkRow(D2, A, VERSION),
    DeviceLinkRow(D2, B, VERSION),
}


def test_application_in_device_ids():
    assert application_in_device_ids({"product_application_in": {"products": [1, "2", "x"]}}) == [1, 2]
    assert application_in_device_ids({"product_application_in": []}) == []
    assert application_in_device_ids({}) == []


def test_active_entities_collects_parents():
    active = ActiveEntities()
    active.add_device(DeviceRow(D1, 100, "b1", None, "t1"))
    assert active.ids(DeviceEntity.DEVICE) == {D1}
    assert active.ids(DeviceEntity.BRAND) == {"b1"}
    assert active.ids(DeviceEntity.SERIES) == set()


class TestDifferentialDeviceSync:
    @pytest.mark.asyncio
    async def test_links_and_availability(self, catalog, remote):
        report = ImportReport()
        sync = DifferentialDeviceSync(catalog, remote, MappingTable(catalog))

        active = await sync.sync(report)

        assert catalog.links == EXPECTED_LINKS
        assert active.devices == {D1, D2}
        assert catalog.enabled_ids(DeviceEntity.DEVICE) == {D1, D2}
        assert catalog.enabled_ids(DeviceEntity.BRAND) == {"b1", "b2"}
        assert catalog.enabled_ids(DeviceEntity.SERIES) == {"s1"}
        assert catalog.enabled_ids(DeviceEntity.TYPE) == {"t1"}
        assert report.get("linking_v2.status.device.disabled") == 1
        assert all(upsert for _, upsert in catalog.link_insert_batches)
        assert remote.product_list_calls == [([1, 2], "product_application_in")]

    @pytest.mark.asyncio
    async def test_rerun_is_idempotent(self, catalog, remote):
        await DifferentialDeviceSync(catalog, remote, MappingTable(catalog)).sync(ImportReport())
        first = (set(catalog.links), catalog.enabled_ids(DeviceEntity.DEVICE), catalog.enabled_ids(DeviceEntity.BRAND))

        await DifferentialDeviceSync(catalog, remote, MappingTable(catalog)).sync(ImportReport())

        assert (set(catalog.links), catalog.enabled_ids(DeviceEntity.DEVICE), catalog.enabled_ids(DeviceEntity.BRAND)) == first

    @pytest.mark.asyncio
    async def test_empty_chunk_still_deletes_stale_links(self, catalog, remote):
        catalog.links.add(DeviceLinkRow(D3, A, VERSION))
        catalog.links.add(DeviceLinkRow(D3, B, VERSION))
        remote.products[1]["product_application_in"] = {"products": []}
        remote.products[2]["product_application_in"] = {"products": []}
        report = ImportReport()

        await DifferentialDeviceSync(catalog, remote, MappingTable(catalog)).sync(report)

        assert catalog.links == set()
        assert catalog.enabled_ids(DeviceEntity.DEVICE) == set()
        assert report.get("linking_v2.chunks.empty") == 1
        assert report.get("linking_v2.links.deleted") == 2

    @pytest.mark.asyncio
    async def test_unknown_devices_count_as_no_devices(self, catalog, remote):
        remote.products[1]["product_application_in"] = {"products": [999]}
        remote.products[2]["product_application_in"] = {"products": [998]}
        report = ImportReport()

        await DifferentialDeviceSync(catalog, remote, MappingTable(catalog)).sync(report)

        assert report.get("linking_v2.chunks.no_devices") == 1
        assert catalog.links == set()

    @pytest.mark.asyncio
    async def test_chunks_by_local_product(self, catalog, remote):
        sync = DifferentialDeviceSync(catalog, remote, MappingTable(catalog), enable_batch_size=1)
        report = ImportReport()

        await sync.sync(report)

        assert remote.product_list_calls == [([1], "product_application_in"), ([2], "product_application_in")]
        assert catalog.calls.count("delete_device_links_for_products") == 2
        assert report.get("linking_v2.products.chunks") == 2
        assert catalog.links == EXPECTED_LINKS

    @pytest.mark.asyncio
    async def test_keep_all_enabled_never_disables(self, catalog, remote):
        sync = build_device_sync(
            "differential", catalog, remote, MappingTable(catalog), availability_strategy="keepAllEnabled"
        )

        await sync.sync(ImportReport())

        assert catalog.enabled_ids(DeviceEntity.DEVICE) == {D1, D2, D3}
        assert "b3" in catalog.enabled_ids(DeviceEntity.BRAND)

    @pytest.mark.asyncio
    async def test_missing_pages_is_fatal(self, catalog, remote):
        remote.omit_pages_for_product_list = True

        with pytest.raises(WebserviceResponseError) as exc_info:
            await DifferentialDeviceSync(catalog, remote, MappingTable(catalog)).sync(ImportReport())

        assert str(exc_info.value) == "quota exceeded product_application_in webservice no pages"
        assert exc_info.value.remote_message == "quota exceeded"

    @pytest.mark.asyncio
    async def test_no_mappings_is_a_no_op(self, store, remote):
        store.add_device(D1, 100, brand="b1", series=None, type_=None, enabled=True)

        active = await DifferentialDeviceSync(store, remote, MappingTable(store)).sync(ImportReport())

        assert active.devices == set()
        assert remote.product_list_calls == []
        assert store.enabled_ids(DeviceEntity.DEVICE) == {D1}


class TestFullRebuildDeviceSync:
    @pytest.mark.asyncio
    async def test_rebuilds_from_scratch(self, catalog, remote):
        catalog.links.add(DeviceLinkRow(D3, A, VERSION))
        report = ImportReport()

        await FullRebuildDeviceSync(catalog, remote, MappingTable(catalog)).sync(report)

        assert catalog.calls[0] == "disable_all_device_entities"
        assert catalog.links == EXPECTED_LINKS
        assert catalog.enabled_ids(DeviceEntity.DEVICE) == {D1, D2}
        assert catalog.enabled_ids(DeviceEntity.BRAND) == {"b1", "b2"}
        assert catalog.enabled_ids(DeviceEntity.TYPE) == {"t1"}
        assert report.get("linking_v1.links.deleted") == 1
        assert not any(upsert for _, upsert in catalog.link_insert_batches)

    @pytest.mark.asyncio
    async def test_link_inserts_are_batched(self, store, remote):
        store.add_product(A)
        store.mappings.append(MappingRow(1, A, VERSION))
        device_ids = [hid(0x5000 + n) for n in range(65)]
        for n, device_id in enumerate(device_ids):
            store.add_device(device_id, 1000 + n, brand="b", series=None, type_=None)
        remote.products[1] = {"products_id": 1, "product_application_in": {"products": list(range(1000, 1065))}}

        await FullRebuildDeviceSync(store, remote, MappingTable(store)).sync(ImportReport())

        assert [size for size, _ in store.link_insert_batches] == [30, 30, 5]
        assert store.enabled_ids(DeviceEntity.DEVICE) == set(device_ids)


def test_build_device_sync_rejects_unknown_algorithm(store, remote):
    with pytest.raises(ValueError):
        build_device_sync("sideways", store, remote, MappingTable(store))
