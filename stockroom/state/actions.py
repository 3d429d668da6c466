"""Actions: the entire write surface of the store.

An action is an immutable value naming a transition plus its payload. Creators
below coerce mappings into models so payload errors surface at the call site;
the reducer also accepts raw mappings and re-validates them.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Mapping, Union

from .models import ActivityRecord, Category, Item, Settings, User


class ActionType(str, Enum):
    ADD_ITEM = "ADD_ITEM"
    UPDATE_ITEM = "UPDATE_ITEM"
    DELETE_ITEM = "DELETE_ITEM"
    SET_ITEMS = "SET_ITEMS"
    ADD_CATEGORY = "ADD_CATEGORY"
    UPDATE_CATEGORY = "UPDATE_CATEGORY"
    DELETE_CATEGORY = "DELETE_CATEGORY"
    SET_CATEGORIES = "SET_CATEGORIES"
    ADD_ACTIVITY = "ADD_ACTIVITY"
    SET_ACTIVITY_LOG = "SET_ACTIVITY_LOG"
    UPDATE_SETTINGS = "UPDATE_SETTINGS"
    LOGIN = "LOGIN"
    LOGOUT = "LOGOUT"
    REFRESH_SESSION = "REFRESH_SESSION"


@dataclass(frozen=True)
class Action:
    type: Union[ActionType, str]
    payload: Any = None

    @property
    def kind(self) -> ActionType | None:
        """The recognised action type, or None for unknown kinds."""
        try:
            return ActionType(self.type)
        except ValueError:
            return None


def _as(model, value):
    return value if isinstance(value, model) else model.model_validate(value)


def add_item(item: Item | Mapping[str, Any]) -> Action:
    return Action(ActionType.ADD_ITEM, _as(Item, item))


def update_item(item: Item | Mapping[str, Any]) -> Action:
    return Action(ActionType.UPDATE_ITEM, _as(Item, item))


def delete_item(item_id: str) -> Action:
    return Action(ActionType.DELETE_ITEM, item_id)


def set_items(items: Iterable[Item | Mapping[str, Any]]) -> Action:
    return Action(ActionType.SET_ITEMS, tuple(_as(Item, item) for item in items))


def add_category(category: Category | Mapping[str, Any]) -> Action:
    return Action(ActionType.ADD_CATEGORY, _as(Category, category))


def update_category(category: Category | Mapping[str, Any]) -> Action:
    return Action(ActionType.UPDATE_CATEGORY, _as(Category, category))


def delete_category(category_id: str) -> Action:
    return Action(ActionType.DELETE_CATEGORY, category_id)


def set_categories(categories: Iterable[Category | Mapping[str, Any]]) -> Action:
    return Action(ActionType.SET_CATEGORIES, tuple(_as(Category, cat) for cat in categories))


def add_activity(record: ActivityRecord | Mapping[str, Any]) -> Action:
    return Action(ActionType.ADD_ACTIVITY, _as(ActivityRecord, record))


def set_activity_log(records: Iterable[ActivityRecord | Mapping[str, Any]]) -> Action:
    return Action(ActionType.SET_ACTIVITY_LOG, tuple(_as(ActivityRecord, r) for r in records))


def update_settings(partial: Mapping[str, Any] | None = None, **fields: Any) -> Action:
    """Partial settings update; keys may be snake_case or camelCase."""
    patch = Settings.normalise_patch({**(partial or {}), **fields})
    # validate the values against the defaults so a bad theme fails here
    Settings().merge(patch)
    return Action(ActionType.UPDATE_SETTINGS, patch)


def login(user: User | Mapping[str, Any]) -> Action:
    return Action(ActionType.LOGIN, _as(User, user))


def logout() -> Action:
    return Action(ActionType.LOGOUT)


def refresh_session() -> Action:
    return Action(ActionType.REFRESH_SESSION)
