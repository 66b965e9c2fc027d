import json

import pytest

from app.services.storefront_sync import StorefrontSyncManager
from models import SyncLog
from models.storefront import StorefrontProduct
from conftest import make_brand, make_group, make_item, make_price


@pytest.fixture
def manager(session):
    manager = StorefrontSyncManager(session)
    manager.sync_brands([make_brand("Sol-Ark")])
    manager.sync_categories([make_group("Batteries"), make_group("Lithium", parent="Batteries")])
    return manager


def _catalog():
    return [
        make_item("BAT-1", item_group="Lithium", brand="Sol-Ark", weight_per_unit=10, weight_uom="Kg"),
        make_item("BAT-2", item_group="Batteries", custom_featured_in_category="Batteries"),
        make_item("INV-1", item_group="Unmapped", standard_rate=99.0, hazmat_flag=1),
    ]


def _prices():
    return {
        "BAT-1": [make_price("BAT-1", "Standard Selling", 1200.0), make_price("BAT-1", "Sale Price", 999.0)],
        "BAT-2": [make_price("BAT-2", "Standard Selling", 300.0)],
    }


def _product(name):
    return StorefrontProduct.query.filter_by(erpnext_name=name).one()


def test_products_are_created_with_resolved_references(manager):
    result = manager.sync_products(_catalog(), _prices())

    assert (result.created, result.updated, result.deleted, result.skipped) == (3, 0, 0, 0)
    category_map = manager.get_category_map()
    bat1 = _product("BAT-1")
    assert bat1.brand_id == manager.get_brand_map()["Sol-Ark"]
    assert json.loads(bat1.categories) == [category_map["Lithium"]]
    assert bat1.price == 1200.0
    assert bat1.sale_price == 999.0
    assert bat1.weight_lbs == pytest.approx(22.0462)
    assert bat1.synced_at is not None

    bat2 = _product("BAT-2")
    assert bat2.is_featured == 1
    assert bat2.featured_category_id == category_map["Batteries"]


def test_unmapped_item_group_persists_null_not_empty_list(manager):
    manager.sync_products(_catalog(), _prices())

    inv = _product("INV-1")
    assert inv.categories is None
    assert inv.price == 99.0
    assert inv.hazmat_flag == 1


def test_unchanged_catalog_is_all_skipped(manager):
    manager.sync_products(_catalog(), _prices())

    result = manager.sync_products(_catalog(), _prices())

    assert (result.created, result.updated, result.deleted, result.skipped) == (0, 0, 0, 3)


def test_price_change_updates_in_place(manager):
    manager.sync_products(_catalog(), _prices())
    original_id = _product("BAT-2").id

    prices = _prices()
    prices["BAT-2"] = [make_price("BAT-2", "Standard Selling", 275.0)]
    result = manager.sync_products(_catalog(), prices)

    assert (result.created, result.updated, result.skipped) == (0, 1, 2)
    bat2 = _product("BAT-2")
    assert bat2.id == original_id
    assert bat2.price == 275.0


def test_removed_items_are_deleted(manager):
    manager.sync_products(_catalog(), _prices())

    result = manager.sync_products(_catalog()[:1], _prices())

    assert result.deleted == 2
    assert [p.erpnext_name for p in StorefrontProduct.query.all()] == ["BAT-1"]


def test_failed_batch_is_isolated(manager, monkeypatch):
    original = StorefrontSyncManager._upsert

    def flaky_upsert(self, model, record, row):
        if record.erpnext_name == "BAD":
            raise RuntimeError("disk full")
        return original(self, model, record, row)

    monkeypatch.setattr(StorefrontSyncManager, "_upsert", flaky_upsert)
    items = [make_item("A"), make_item("BAD"), make_item("C"), make_item("D")]

    result = manager.sync_products(items, {}, batch_size=2)

    assert result.created == 4
    assert result.errors == [{"id": "product-batch-0", "error": "disk full"}]
    assert sorted(p.erpnext_name for p in StorefrontProduct.query.all()) == ["C", "D"]
    failed = SyncLog.query.filter_by(entity_type="product", status="error").all()
    assert len(failed) == 2
    assert all(entry.error_message == "disk full" for entry in failed)


def test_dry_run_writes_nothing(manager):
    result = manager.sync_products(_catalog(), _prices(), dry_run=True)

    assert result.created == 3
    assert StorefrontProduct.query.count() == 0
    assert SyncLog.query.filter_by(entity_type="product").count() == 0
    assert manager.get_sync_state("product") is None


def test_sync_stats_reports_counts_and_watermarks(manager):
    manager.sync_products(_catalog(), _prices())

    stats = manager.get_sync_stats()

    assert stats["products"] == 3
    assert stats["categories"] == 2
    assert stats["brands"] == 1
    assert set(stats["last_sync"]) == {"brand", "category", "product"}


def test_empty_item_code_is_stable_across_runs(manager):
    items = [make_item("X", item_code="")]
    manager.sync_products(items, {})

    result = manager.sync_products(items, {})

    assert (result.created, result.updated, result.skipped) == (0, 0, 1)
    assert _product("X").sku is None
