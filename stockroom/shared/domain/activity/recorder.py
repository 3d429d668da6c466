"""Builds activity records for the collaborators and dispatches them."""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING, Any, Dict, Optional

from stockroom.shared.core.clock import Clock, utcnow
from stockroom.state import actions
from stockroom.state.models import ActivityKind, ActivityRecord

if TYPE_CHECKING:
    from stockroom.state.store import Store


def new_id() -> str:
    return uuid.uuid4().hex


def make_activity(
    kind: ActivityKind,
    description: str,
    user_id: Optional[str] = None,
    item_id: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
    clock: Clock = utcnow,
) -> ActivityRecord:
    return ActivityRecord(
        id=new_id(),
        kind=kind,
        description=description,
        timestamp=clock(),
        user_id=user_id,
        item_id=item_id,
        details=details,
    )


def record_activity(
    store: "Store",
    kind: ActivityKind,
    description: str,
    *,
    item_id: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
    clock: Clock = utcnow,
) -> ActivityRecord:
    """Dispatch ADD_ACTIVITY attributed to the current user."""
    user = store.get_state().auth.user
    record = make_activity(
        kind,
        description,
        user_id=user.id if user is not None else None,
        item_id=item_id,
        details=details,
        clock=clock,
    )
    store.dispatch(actions.add_activity(record))
    return record
