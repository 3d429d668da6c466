"""State persistence: one JSON blob in one durable slot.

Saving never raises; a failed write is logged and the in-memory state stays
authoritative. Loading recovers each top-level field on its own, so one damaged
section does not cost the others.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, Dict, Optional, Tuple, Type, TypeVar

from pydantic import BaseModel, ValidationError

from stockroom.state.models import (
    DEFAULT_CATEGORY_ID,
    ActivityRecord,
    ApplicationState,
    AuthSession,
    Category,
    Item,
    Settings,
    default_category,
)

from .slot_storage import SlotStorage

logger = logging.getLogger(__name__)

DEFAULT_SLOT_KEY = "wh5-inventory-data"

M = TypeVar("M", bound=BaseModel)

FailureHook = Callable[[str, Exception], None]


def serialize_state(state: ApplicationState) -> Dict[str, Any]:
    """Persisted layout of the state.

    Unless the user opted into remembering the session, authentication is
    written as logged out whatever the in-memory session is.
    """
    data = state.to_json_dict()
    if not state.settings.remember_session:
        data["auth"] = AuthSession().to_json_dict()
    return data


def _restore_records(model: Type[M], raw: Any, field: str) -> Optional[Tuple[M, ...]]:
    if not isinstance(raw, list):
        logger.warning(f"Stored '{field}' is not a list; using defaults")
        return None

    records = []
    for index, entry in enumerate(raw):
        try:
            records.append(model.model_validate(entry))
        except ValidationError as e:
            logger.warning(f"Dropping malformed {field}[{index}]: {e.error_count()} error(s)")
    return tuple(records)


def _restore_settings(raw: Any) -> Optional[Settings]:
    if not isinstance(raw, dict):
        logger.warning("Stored 'settings' is not an object; using defaults")
        return None

    settings = Settings()
    for key, value in raw.items():
        try:
            settings = settings.merge({key: value})
        except ValidationError:
            logger.warning(f"Ignoring invalid stored setting '{key}'")
    return settings


def _restore_auth(raw: Any) -> Optional[AuthSession]:
    try:
        auth = AuthSession.model_validate(raw)
    except ValidationError as e:
        logger.warning(f"Stored 'auth' is malformed; starting logged out: {e.error_count()} error(s)")
        return None

    if not auth.is_consistent or (auth.is_authenticated and auth.session_expiry is None):
        logger.warning("Stored session is inconsistent; starting logged out")
        return None
    if not auth.is_authenticated:
        return AuthSession()
    return auth


def restore_state(data: Dict[str, Any]) -> ApplicationState:
    """Build a state from a decoded blob, field by field."""
    fields: Dict[str, Any] = {}

    if "items" in data:
        items = _restore_records(Item, data["items"], "items")
        if items is not None:
            fields["items"] = items

    if "categories" in data:
        categories = _restore_records(Category, data["categories"], "categories")
        if categories is not None:
            fields["categories"] = categories

    if "activityLog" in data:
        activity_log = _restore_records(ActivityRecord, data["activityLog"], "activityLog")
        if activity_log is not None:
            fields["activity_log"] = activity_log

    if "settings" in data:
        settings = _restore_settings(data["settings"])
        if settings is not None:
            fields["settings"] = settings

    if "auth" in data:
        auth = _restore_auth(data["auth"])
        if auth is not None:
            fields["auth"] = auth

    state = ApplicationState(**fields)
    if state.find_category(DEFAULT_CATEGORY_ID) is None:
        logger.warning("Stored categories lack the default category; restoring it")
        state = state.model_copy(update={"categories": (default_category(),) + state.categories})
    return state


class StatePersistence:
    """Loads and saves the application state in a single named slot."""

    def __init__(
        self,
        storage: SlotStorage,
        key: str = DEFAULT_SLOT_KEY,
        on_failure: Optional[FailureHook] = None,
    ):
        self.storage = storage
        self.key = key
        self.on_failure = on_failure

    def save(self, state: ApplicationState) -> bool:
        """Write the state; returns False (after logging) on failure."""
        try:
            blob = json.dumps(serialize_state(state), ensure_ascii=False, allow_nan=False)
            self.storage.write(self.key, blob)
        except Exception as e:
            logger.exception(f"Failed to persist state to slot '{self.key}'")
            if self.on_failure is not None:
                self.on_failure(self.key, e)
            return False

        logger.debug(f"Persisted state to slot '{self.key}' ({len(blob)} chars)")
        return True

    def load(self) -> Optional[ApplicationState]:
        """Best-effort restore; None when nothing usable is stored."""
        try:
            blob = self.storage.read(self.key)
        except Exception:
            logger.exception(f"Failed to read slot '{self.key}'")
            return None

        if blob is None:
            logger.info(f"No stored state in slot '{self.key}'")
            return None

        try:
            data = json.loads(blob)
        except ValueError as e:
            logger.error(f"Stored state in slot '{self.key}' is not valid JSON: {e}")
            return None

        if not isinstance(data, dict):
            logger.error(f"Stored state in slot '{self.key}' is not a JSON object")
            return None

        state = restore_state(data)
        logger.info(
            f"Restored state: {len(state.items)} items, {len(state.categories)} categories, "
            f"{len(state.activity_log)} activity records"
        )
        return state

    def clear(self) -> None:
        """Empty the slot."""
        try:
            self.storage.delete(self.key)
            logger.info(f"Cleared slot '{self.key}'")
        except Exception:
            logger.exception(f"Failed to clear slot '{self.key}'")

    def storage_size(self) -> int:
        """Size in bytes of the stored blob (0 when empty or unreadable)."""
        try:
            blob = self.storage.read(self.key)
        except Exception:
            logger.exception(f"Failed to read slot '{self.key}'")
            return 0
        return len(blob.encode("utf-8")) if blob else 0
