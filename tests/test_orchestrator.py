"""Tests for the import orchestrator."""

import pytest

from conftest import hid
from catalog_sync.services.job_reports import STATUS_CRASHED, STATUS_FAILED, STATUS_SUCCEEDED
from catalog_sync.services.mapping_strategies import MappingError
from catalog_sync.services.orchestrator import ImportOptions, run_import
from catalog_sync.settings import Settings
from catalog_sync.stores.catalog import DeviceEntity, DeviceLinkRow

A, B = hid(0xA), hid(0xB)
VERSION = hid(0xFFFF)
D1 = hid(0xD1)


def _settings(**overrides) -> Settings:
    values = {"MAPPING_TYPE": "productNumberAsWsId", "import_accessories": True}
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def catalog(store, remote):
    store.add_product(A, number="1")
    store.add_product(B, number="2")
    store.add_device(D1, 100, brand="b1", series=None, type_=None)
    remote.products[1] = {
        "products_id": 1,
        "product_application_in": {"products": [100]},
        "product_accessories": {"products": [2]},
    }
    return store


def test_import_options_any_selected():
    assert not ImportOptions().any_selected
    assert ImportOptions(product_device_links=True).any_selected
    assert ImportOptions(devices=True).any_selected


class TestRunImport:
    @pytest.mark.asyncio
    async def test_all_phases(self, catalog, remote):
        options = ImportOptions(mapping=True, product_device_links=True, product_information=True, command_line="test")

        report = await run_import(options, catalog, remote, _settings())

        assert report.get("mapping.strategy") == "productNumberAsWsId"
        assert report.get("product_number.mappings") == 2
        assert catalog.links == {DeviceLinkRow(D1, A, VERSION)}
        assert catalog.enabled_ids(DeviceEntity.BRAND) == {"b1"}
        assert [(r.product_id, r.linked_product_id) for r in catalog.relationships] == [(A, B)]

        (saved,) = catalog.reports.values()
        assert saved["job_status"] == STATUS_SUCCEEDED
        assert saved["command_line"] == "test"
        assert saved["report_data"]["relationships.related.linked"] == 1

    @pytest.mark.asyncio
    async def test_phases_share_the_mapping_table(self, catalog, remote):
        await run_import(ImportOptions(mapping=True), catalog, remote, _settings())
        report = await run_import(ImportOptions(product_device_links=True), catalog, remote, _settings())

        assert report.get("mapping.strategy") is None
        assert report.get("linking_v2.products.found") == 2

    @pytest.mark.asyncio
    async def test_failure_marks_report_failed(self, store, remote):
        options = ImportOptions(mapping=True, product_device_links=True)

        with pytest.raises(MappingError):
            await run_import(options, store, remote, _settings(MAPPING_TYPE="distributorDefault"))

        (saved,) = store.reports.values()
        assert saved["job_status"] == STATUS_FAILED
        assert saved["report_data"]["error"] == "distributor mapping 0 products found"
        assert remote.product_list_calls == []

    @pytest.mark.asyncio
    async def test_stale_running_reports_are_marked_crashed(self, catalog, remote):
        stale = await catalog.create_job_report("import", "old run", 0)

        await run_import(ImportOptions(mapping=True), catalog, remote, _settings())

        assert catalog.reports[stale]["job_status"] == STATUS_CRASHED

    @pytest.mark.asyncio
    async def test_full_rebuild_algorithm(self, catalog, remote):
        options = ImportOptions(mapping=True, product_device_links=True)

        report = await run_import(options, catalog, remote, _settings(DEVICE_SYNC_ALGORITHM="full_rebuild"))

        assert report.get("linking_v1.chunks") == 1
        assert catalog.links == {DeviceLinkRow(D1, A, VERSION)}

    @pytest.mark.asyncio
    async def test_imported_devices_are_linked_in_the_same_run(self, store, remote):
        store.add_product(A, number="1")
        remote.finder["brands"] = [{"id": 1, "val": "Brother", "top": 0, "main": 1}]
        remote.finder["models"] = [{"id": 100, "val": "HL-1110", "bId": 1}]
        remote.products[1] = {"products_id": 1, "product_application_in": {"products": [100]}}
        options = ImportOptions(devices=True, mapping=True, product_device_links=True)

        report = await run_import(options, store, remote, _settings())

        assert report.get("devices.created") == 1
        (device,) = store.finder_records[DeviceEntity.DEVICE].values()
        assert device.code == "brother_hl-1110"
        assert store.links == {DeviceLinkRow(device.id, A, VERSION)}
        assert store.enabled_ids(DeviceEntity.DEVICE) == {device.id}
        assert store.enabled_ids(DeviceEntity.BRAND) == {device.brand_id}
