"""State reducer: ``reduce(state, action) -> state``.

Pure and total. Unknown action kinds and malformed payloads return the input
state object unchanged, so callers can detect a no-op with ``is``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Callable, Dict, Mapping, Tuple, TypeVar

from pydantic import BaseModel, ValidationError

from stockroom.shared.core.clock import Clock, utcnow

from .actions import Action, ActionType
from .models import (
    ActivityRecord,
    ApplicationState,
    AuthSession,
    Category,
    Item,
    User,
)

logger = logging.getLogger(__name__)

SESSION_DURATION = timedelta(hours=8)

M = TypeVar("M", bound=BaseModel)


@dataclass(frozen=True)
class ReducerContext:
    clock: Clock = utcnow
    session_duration: timedelta = SESSION_DURATION


Handler = Callable[[ApplicationState, Any, ReducerContext], ApplicationState]


def _coerce(model: type[M], value: Any) -> M:
    return value if isinstance(value, model) else model.model_validate(value)


def _coerce_all(model: type[M], values: Any) -> Tuple[M, ...]:
    if isinstance(values, (str, bytes, Mapping)):
        raise TypeError(f"expected a sequence of {model.__name__}, got {type(values).__name__}")
    return tuple(_coerce(model, value) for value in values)


def _replace_by_id(records: Tuple[M, ...], replacement: M) -> Tuple[M, ...] | None:
    """Swap the record sharing replacement's id; None when no record matches."""
    if not any(record.id == replacement.id for record in records):
        return None
    return tuple(replacement if record.id == replacement.id else record for record in records)


def _without_id(records: Tuple[M, ...], record_id: str) -> Tuple[M, ...] | None:
    remaining = tuple(record for record in records if record.id != record_id)
    return remaining if len(remaining) != len(records) else None


# --- Items ---

def _add_item(state: ApplicationState, payload: Any, ctx: ReducerContext) -> ApplicationState:
    # duplicate ids are the caller's responsibility
    return state.model_copy(update={"items": state.items + (_coerce(Item, payload),)})


def _update_item(state: ApplicationState, payload: Any, ctx: ReducerContext) -> ApplicationState:
    items = _replace_by_id(state.items, _coerce(Item, payload))
    return state if items is None else state.model_copy(update={"items": items})


def _delete_item(state: ApplicationState, payload: Any, ctx: ReducerContext) -> ApplicationState:
    items = _without_id(state.items, str(payload))
    return state if items is None else state.model_copy(update={"items": items})


def _set_items(state: ApplicationState, payload: Any, ctx: ReducerContext) -> ApplicationState:
    return state.model_copy(update={"items": _coerce_all(Item, payload)})


# --- Categories ---

def _add_category(state: ApplicationState, payload: Any, ctx: ReducerContext) -> ApplicationState:
    return state.model_copy(update={"categories": state.categories + (_coerce(Category, payload),)})


def _update_category(state: ApplicationState, payload: Any, ctx: ReducerContext) -> ApplicationState:
    categories = _replace_by_id(state.categories, _coerce(Category, payload))
    return state if categories is None else state.model_copy(update={"categories": categories})


def _delete_category(state: ApplicationState, payload: Any, ctx: ReducerContext) -> ApplicationState:
    # Items still pointing at the category are left alone; reassignment happens
    # before this action is dispatched.
    categories = _without_id(state.categories, str(payload))
    return state if categories is None else state.model_copy(update={"categories": categories})


def _set_categories(state: ApplicationState, payload: Any, ctx: ReducerContext) -> ApplicationState:
    return state.model_copy(update={"categories": _coerce_all(Category, payload)})


# --- Activity log (newest first) ---

def _add_activity(state: ApplicationState, payload: Any, ctx: ReducerContext) -> ApplicationState:
    record = _coerce(ActivityRecord, payload)
    return state.model_copy(update={"activity_log": (record,) + state.activity_log})


def _set_activity_log(state: ApplicationState, payload: Any, ctx: ReducerContext) -> ApplicationState:
    return state.model_copy(update={"activity_log": _coerce_all(ActivityRecord, payload)})


# --- Settings ---

def _update_settings(state: ApplicationState, payload: Any, ctx: ReducerContext) -> ApplicationState:
    if not isinstance(payload, Mapping):
        raise TypeError(f"settings patch must be a mapping, got {type(payload).__name__}")
    settings = state.settings.merge(payload)
    if settings is state.settings:
        return state
    return state.model_copy(update={"settings": settings})


# --- Authentication ---

def _login(state: ApplicationState, payload: Any, ctx: ReducerContext) -> ApplicationState:
    auth = AuthSession(
        is_authenticated=True,
        user=_coerce(User, payload),
        session_expiry=ctx.clock() + ctx.session_duration,
    )
    return state.model_copy(update={"auth": auth})


def _logout(state: ApplicationState, payload: Any, ctx: ReducerContext) -> ApplicationState:
    if not state.auth.is_authenticated and state.auth.user is None and state.auth.session_expiry is None:
        return state
    return state.model_copy(update={"auth": AuthSession()})


def _refresh_session(state: ApplicationState, payload: Any, ctx: ReducerContext) -> ApplicationState:
    if not state.auth.is_authenticated:
        return state
    auth = state.auth.model_copy(update={"session_expiry": ctx.clock() + ctx.session_duration})
    return state.model_copy(update={"auth": auth})


_HANDLERS: Dict[ActionType, Handler] = {
    ActionType.ADD_ITEM: _add_item,
    ActionType.UPDATE_ITEM: _update_item,
    ActionType.DELETE_ITEM: _delete_item,
    ActionType.SET_ITEMS: _set_items,
    ActionType.ADD_CATEGORY: _add_category,
    ActionType.UPDATE_CATEGORY: _update_category,
    ActionType.DELETE_CATEGORY: _delete_category,
    ActionType.SET_CATEGORIES: _set_categories,
    ActionType.ADD_ACTIVITY: _add_activity,
    ActionType.SET_ACTIVITY_LOG: _set_activity_log,
    ActionType.UPDATE_SETTINGS: _update_settings,
    ActionType.LOGIN: _login,
    ActionType.LOGOUT: _logout,
    ActionType.REFRESH_SESSION: _refresh_session,
}


def reduce(
    state: ApplicationState,
    action: Action,
    *,
    clock: Clock = utcnow,
    session_duration: timedelta = SESSION_DURATION,
) -> ApplicationState:
    """Compute the next state for ``action``.

    Args:
        state: Current application state (never mutated)
        action: Transition to apply
        clock: Source of "now" for session expiry
        session_duration: Lifetime granted by LOGIN and REFRESH_SESSION

    Returns:
        The next state, or ``state`` itself when the action is a no-op
    """
    kind = action.kind
    handler = _HANDLERS.get(kind) if kind is not None else None
    if handler is None:
        logger.debug(f"Ignoring unknown action type {action.type!r}")
        return state

    try:
        return handler(state, action.payload, ReducerContext(clock, session_duration))
    except (ValidationError, TypeError, ValueError) as exc:
        logger.warning(f"Rejected malformed {kind.value} payload: {exc}")
        return state
