"""Tests for inventory operations dispatched through the store."""

import json
from datetime import date, timedelta

import pytest

from stockroom.shared.core.errors import NotFound, PermissionDenied, ValidationFailed
from stockroom.shared.domain.auth import AuthService
from stockroom.shared.domain.inventory import InventoryService, ItemFilters, stock_status
from stockroom.shared.infrastructure.persistence import DEFAULT_SLOT_KEY
from stockroom.state import ActivityKind, actions

from conftest import START, make_category, make_item


@pytest.fixture
def inventory(store, clock):
    AuthService(store, clock=clock).login_admin("admin123")
    return InventoryService(store, clock=clock)


@pytest.fixture
def stocked(inventory, store):
    store.dispatch(actions.add_category(make_category("tools")))
    store.dispatch(actions.set_items([
        make_item("i1", name="Hammer", quantity=5, category_id="tools", tags=("steel", "hand"), price=12.0),
        make_item("i2", name="anchor bolt", description="M8 anchors", quantity=200, waybill_number="WB-777",
                  tags=("steel",), created_at=START + timedelta(days=3), min_stock_level=250),
        make_item("i3", name="Cement", description="Portland cement", quantity=0, unit="bags", min_stock_level=5,
                  created_at=START - timedelta(days=3)),
    ]))
    return inventory


def test_add_item_dispatches_item_and_activity(inventory, store):
    item = inventory.add_item("  Drill  ", 3, description="Cordless", unit="pcs", tags=["power", "power"])
    state = store.get_state()

    assert state.items == (item,)
    assert item.name == "Drill"
    assert item.tags == ("power",)
    assert item.created_at == START
    entry = state.activity_log[0]
    assert entry.kind is ActivityKind.CREATE
    assert entry.item_id == item.id
    assert entry.user_id == "admin-001"


@pytest.mark.parametrize(
    "kwargs",
    [
        dict(name="", quantity=1),
        dict(name="Saw", quantity=-1),
        dict(name="Saw", quantity=1, price=-2.0),
        dict(name="Saw", quantity=1, min_stock_level=-1),
        dict(name="Saw", quantity=1, category_id="nope"),
        dict(name="Bolt", quantity=float("nan")),
        dict(name="Bolt", quantity=1, price=float("inf")),
        dict(name="Bolt", quantity=1, min_stock_level=float("-inf")),
    ],
)
def test_add_item_validation(inventory, store, kwargs):
    before = store.get_state()

    with pytest.raises(ValidationFailed):
        inventory.add_item(**kwargs)

    assert store.get_state() is before


def test_guest_cannot_modify_inventory(store, clock):
    AuthService(store, clock=clock).login_guest()
    inventory = InventoryService(store, clock=clock)

    with pytest.raises(PermissionDenied):
        inventory.add_item("Saw", 1)


def test_update_item_builds_full_record(stocked, store, clock):
    clock.advance(minutes=5)

    updated = stocked.update_item("i1", quantity=7, waybillNumber="WB-2")

    assert updated.quantity == 7
    assert updated.waybill_number == "WB-2"
    assert updated.name == "Hammer"
    assert updated.updated_at == START + timedelta(minutes=5)
    assert store.get_state().find_item("i1") == updated
    assert store.get_state().activity_log[0].kind is ActivityKind.UPDATE


def test_update_item_rejects_unknown_and_immutable_fields(stocked):
    with pytest.raises(ValidationFailed) as excinfo:
        stocked.update_item("i1", colour="red", id="i9")

    assert set(excinfo.value.errors) == {"colour", "id"}


def test_update_missing_item_raises(stocked):
    with pytest.raises(NotFound):
        stocked.update_item("missing", quantity=1)


def test_remove_item(stocked, store):
    removed = stocked.remove_item("i1")

    assert removed.name == "Hammer"
    assert store.get_state().find_item("i1") is None
    assert store.get_state().activity_log[0].description == 'Deleted item "Hammer"'
    with pytest.raises(NotFound):
        stocked.remove_item("i1")


def test_add_category_validation(inventory):
    with pytest.raises(ValidationFailed) as excinfo:
        inventory.add_category("G", "")
    assert set(excinfo.value.errors) == {"name", "description"}

    with pytest.raises(ValidationFailed):
        inventory.add_category("general", "Duplicate of the default category")


def test_add_and_update_category(inventory, store):
    category = inventory.add_category("Fasteners", "Bolts and screws", color="#10B981")
    assert store.get_state().find_category(category.id).color == "#10B981"
    assert store.get_state().activity_log[0].description == 'Added new category "Fasteners"'

    renamed = inventory.update_category(category.id, name="Fixings")
    assert renamed.description == "Bolts and screws"
    assert store.get_state().find_category(category.id).name == "Fixings"

    # keeping its own name is not a duplicate
    inventory.update_category(category.id, name="fixings")


def test_delete_category_reassigns_items_first(stocked, store):
    reassigned = stocked.delete_category("tools")
    state = store.get_state()

    assert reassigned == 1
    assert state.find_category("tools") is None
    assert state.find_item("i1").category_id == "default"
    assert state.activity_log[0].details == {"reassignedItems": 1}


def test_default_category_is_protected(stocked):
    with pytest.raises(ValidationFailed):
        stocked.delete_category("default")
    with pytest.raises(NotFound):
        stocked.delete_category("missing")


def test_scan_json_payload_resolves_by_id(stocked, store):
    code = json.dumps({"type": "inventory_item", "itemId": "i2"})

    found = stocked.record_scan(code)

    assert [item.id for item in found] == ["i2"]
    entry = store.get_state().activity_log[0]
    assert entry.kind is ActivityKind.SCAN
    assert entry.item_id == "i2"


def test_scan_unknown_json_item_returns_empty(stocked):
    assert stocked.record_scan(json.dumps({"type": "inventory_item", "itemId": "zzz"})) == []


def test_scan_text_matches_name_description_waybill_or_id(stocked):
    assert [item.id for item in stocked.record_scan("wb-777")] == ["i2"]
    assert [item.id for item in stocked.record_scan("HAMMER")] == ["i1"]
    assert [item.id for item in stocked.record_scan("i3")] == ["i3"]
    assert stocked.record_scan("nothing like this") == []


def test_scan_requires_staff_role(store, clock):
    AuthService(store, clock=clock).login_guest()

    with pytest.raises(PermissionDenied):
        InventoryService(store, clock=clock).record_scan("hammer")


def test_search_filters_and_sorting(stocked):
    assert [i.id for i in stocked.search_items({"search": "anchor"})] == ["i2"]
    assert [i.id for i in stocked.search_items({"category_id": "tools"})] == ["i1"]
    assert [i.id for i in stocked.search_items({"min_quantity": 1, "max_quantity": 100})] == ["i1"]
    assert [i.id for i in stocked.search_items({"tags": ["steel", "hand"]})] == ["i1"]
    assert [i.id for i in stocked.search_items(ItemFilters(date_from=date(2024, 3, 15)))] == ["i2", "i1"]
    assert [i.id for i in stocked.search_items({"date_to": date(2024, 3, 15)})] == ["i3", "i1"]

    by_name = stocked.search_items()
    assert [i.name for i in by_name] == ["anchor bolt", "Cement", "Hammer"]

    by_quantity = stocked.search_items(sort_by="quantity", descending=True)
    assert [i.id for i in by_quantity] == ["i2", "i1", "i3"]

    assert [i.id for i in stocked.search_items(sort_by="createdAt")] == ["i3", "i1", "i2"]


def test_search_records_activity_only_on_request(stocked, store):
    log_size = len(store.get_state().activity_log)
    stocked.search_items({"search": "steel"})
    assert len(store.get_state().activity_log) == log_size

    stocked.search_items({"search": "hammer"}, record=True)
    entry = store.get_state().activity_log[0]
    assert entry.kind is ActivityKind.SEARCH
    assert entry.details == {"search": "hammer"}


def test_search_rejects_bad_criteria(stocked):
    with pytest.raises(ValidationFailed):
        stocked.search_items(sort_by="colour")
    with pytest.raises(ValidationFailed):
        stocked.search_items({"unknown": 1})


def test_low_stock_and_stock_status(stocked):
    assert [item.id for item in stocked.low_stock_items()] == ["i2", "i3"]
    assert stock_status(0) == "Out of Stock"
    assert stock_status(9.5) == "Low Stock"
    assert stock_status(10) == "In Stock"


def test_import_backup(inventory, store):
    backup = {
        "items": [make_item("x1").to_json_dict()],
        "categories": [make_category("tools").to_json_dict()],
        "settings": {"theme": "dark", "colorScheme": "orange"},
    }

    summary = inventory.import_backup(backup)
    state = store.get_state()

    assert summary == {"items": 1, "categories": 2, "settings": 2}
    assert [item.id for item in state.items] == ["x1"]
    assert [cat.id for cat in state.categories] == ["default", "tools"]
    assert state.settings.theme == "dark"


def test_import_backup_is_all_or_nothing(inventory, store):
    before = store.get_state()

    with pytest.raises(ValidationFailed):
        inventory.import_backup({"items": [make_item("x1").to_json_dict()], "settings": {"theme": "neon"}})

    assert store.get_state() is before


def test_clear_all_data(stocked, store, storage):
    stocked.clear_all_data()
    state = store.get_state()

    assert state.items == ()
    assert [cat.id for cat in state.categories] == ["default"]
    assert storage.read(DEFAULT_SLOT_KEY) is None


def test_nan_quantity_never_reaches_the_store(inventory, store, storage):
    with pytest.raises(ValidationFailed) as excinfo:
        inventory.add_item("Bolt", float("nan"), price=float("inf"))

    assert set(excinfo.value.errors) == {"quantity", "price"}
    assert store.get_state().items == ()
    assert "NaN" not in storage.read(DEFAULT_SLOT_KEY)
