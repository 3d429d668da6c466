"""Tests for the pure state reducer."""

from datetime import timedelta

import pytest

from stockroom.state import (
    Action,
    ActionType,
    ActivityKind,
    ActivityRecord,
    ApplicationState,
    Role,
    actions,
    reduce,
)
from stockroom.state.reducer import SESSION_DURATION

from conftest import START, FakeClock, make_category, make_item, make_user


def record(record_id, kind=ActivityKind.CREATE):
    return ActivityRecord(id=record_id, kind=kind, description=f"record {record_id}", timestamp=START)


@pytest.fixture
def state():
    return ApplicationState()


def test_default_state_has_default_category(state):
    assert [cat.id for cat in state.categories] == ["default"]
    assert state.categories[0].name == "General"
    assert state.auth.is_authenticated is False
    assert state.auth.user is None


def test_add_item_appends(state):
    state = reduce(state, actions.add_item(make_item("i1")))
    state = reduce(state, actions.add_item(make_item("i2")))

    assert [item.id for item in state.items] == ["i1", "i2"]


def test_add_item_does_not_reject_duplicate_ids(state):
    state = reduce(state, actions.add_item(make_item("i1")))
    state = reduce(state, actions.add_item(make_item("i1", name="Other")))

    assert len(state.items) == 2


def test_add_item_accepts_camel_case_mapping(state):
    payload = {"id": "i9", "name": "Saw", "quantity": 2.5, "categoryId": "default", "waybillNumber": "WB-9"}
    state = reduce(state, Action(ActionType.ADD_ITEM, payload))

    assert state.items[0].waybill_number == "WB-9"
    assert state.items[0].quantity == 2.5


def test_update_item_replaces_whole_record(state):
    state = reduce(state, actions.add_item(make_item("i1", price=3.0, tags=("a", "b"))))
    replacement = make_item("i1", name="Mallet", tags=())

    state = reduce(state, actions.update_item(replacement))

    assert state.items == (replacement,)
    assert state.items[0].price is None


def test_update_item_absent_id_is_noop(state):
    state = reduce(state, actions.add_item(make_item("i1")))

    assert reduce(state, actions.update_item(make_item("missing"))) is state


def test_delete_item_twice_is_idempotent(state):
    state = reduce(state, actions.add_item(make_item("i1")))
    state = reduce(state, actions.add_item(make_item("i2")))

    once = reduce(state, actions.delete_item("i1"))
    twice = reduce(once, actions.delete_item("i1"))

    assert [item.id for item in once.items] == ["i2"]
    assert twice is once


def test_set_items_replaces_collection(state):
    state = reduce(state, actions.add_item(make_item("i1")))
    state = reduce(state, actions.set_items([make_item("i2"), make_item("i3")]))

    assert [item.id for item in state.items] == ["i2", "i3"]


def test_category_actions(state):
    state = reduce(state, actions.add_category(make_category("tools")))
    state = reduce(state, actions.update_category(make_category("tools", name="Power Tools")))

    assert state.find_category("tools").name == "Power Tools"

    state = reduce(state, actions.delete_category("tools"))
    assert state.find_category("tools") is None

    state = reduce(state, actions.set_categories([make_category("a"), make_category("b", name="B")]))
    assert [cat.id for cat in state.categories] == ["a", "b"]


def test_delete_category_does_not_cascade(state):
    state = reduce(state, actions.add_category(make_category("tools")))
    state = reduce(state, actions.add_item(make_item("i1", category_id="tools")))

    state = reduce(state, actions.delete_category("tools"))

    assert state.find_category("tools") is None
    assert state.find_item("i1").category_id == "tools"


def test_delete_default_category_is_not_blocked_by_reducer(state):
    state = reduce(state, actions.delete_category("default"))

    assert state.find_category("default") is None


def test_add_activity_prepends(state):
    r1, r2 = record("r1"), record("r2")

    state = reduce(state, actions.add_activity(r1))
    state = reduce(state, actions.add_activity(r2))

    assert state.activity_log == (r2, r1)


def test_set_activity_log_replaces(state):
    state = reduce(state, actions.add_activity(record("r1")))
    state = reduce(state, actions.set_activity_log([record("r5"), record("r4")]))

    assert [r.id for r in state.activity_log] == ["r5", "r4"]


def test_activity_kind_add_is_read_as_create():
    entry = ActivityRecord.model_validate(
        {"id": "x", "type": "add", "description": "Added new category", "timestamp": "2024-03-15T09:00:00Z"}
    )

    assert entry.kind is ActivityKind.CREATE


def test_update_settings_merges_fields(state):
    state = reduce(state, actions.update_settings({"colorScheme": "green"}))
    state = reduce(state, actions.update_settings(density="compact"))

    assert state.settings.color_scheme == "green"
    assert state.settings.density == "compact"
    assert state.settings.theme == "light"
    assert state.settings.admin_passcode == "admin123"


def test_update_settings_theme_twice_is_idempotent(state):
    once = reduce(state, actions.update_settings(theme="dark"))
    twice = reduce(once, actions.update_settings(theme="dark"))

    assert once.settings == twice.settings
    assert twice.settings.theme == "dark"


def test_update_settings_with_non_mapping_payload_is_noop(state):
    assert reduce(state, Action(ActionType.UPDATE_SETTINGS, "dark")) is state


def test_update_settings_creator_rejects_invalid_values():
    with pytest.raises(ValueError):
        actions.update_settings(theme="purple")


def test_login_sets_expiry_eight_hours_ahead(state):
    clock = FakeClock()
    user = make_user(Role.GUEST, "guest-1")

    state = reduce(state, actions.login(user), clock=clock)

    assert state.auth.is_authenticated is True
    assert state.auth.user == user
    assert state.auth.session_expiry == START + timedelta(hours=8)
    assert SESSION_DURATION == timedelta(hours=8)


def test_refresh_session_extends_expiry(state):
    clock = FakeClock()
    state = reduce(state, actions.login(make_user()), clock=clock)

    clock.advance(hours=3)
    state = reduce(state, actions.refresh_session(), clock=clock)

    assert state.auth.session_expiry == START + timedelta(hours=11)


def test_refresh_session_when_logged_out_is_noop(state):
    assert reduce(state, actions.refresh_session()) is state


def test_logout_clears_session(state):
    state = reduce(state, actions.login(make_user()))
    state = reduce(state, actions.logout())

    assert state.auth.is_authenticated is False
    assert state.auth.user is None
    assert state.auth.session_expiry is None
    assert reduce(state, actions.logout()) is state


def test_unknown_action_returns_same_state(state):
    assert reduce(state, Action("RESET_EVERYTHING", {"x": 1})) is state


def test_malformed_payload_returns_same_state(state):
    assert reduce(state, Action(ActionType.ADD_ITEM, {"name": "no id"})) is state
    assert reduce(state, Action(ActionType.SET_ITEMS, "not a list")) is state


def test_input_state_is_not_modified(state):
    before = state.model_copy()
    reduce(state, actions.add_item(make_item("i1")))
    reduce(state, actions.add_activity(record("r1")))

    assert state == before
    assert state.items == ()


def test_negative_quantity_is_rejected():
    with pytest.raises(ValueError):
        make_item("bad", quantity=-1)


def test_tags_are_deduplicated_in_order():
    assert make_item("i1", tags=["b", "a", "b"]).tags == ("b", "a")


@pytest.mark.parametrize("field", ["quantity", "price", "min_stock_level"])
@pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf")])
def test_non_finite_numbers_are_rejected(field, value):
    with pytest.raises(ValueError):
        make_item("bad", **{field: value})


def test_add_item_with_non_finite_quantity_is_noop(state):
    payload = make_item("i1").to_json_dict()
    payload["quantity"] = float("nan")

    assert reduce(state, Action(ActionType.ADD_ITEM, payload)) is state


def test_identical_settings_update_returns_same_state(state):
    once = reduce(state, actions.update_settings(density="compact"))

    assert once is not state
    assert reduce(once, actions.update_settings(density="compact")) is once
    assert reduce(once, actions.update_settings({"density": "compact", "theme": "light"})) is once
    assert once.settings.merge({"density": "compact"}) is once.settings
