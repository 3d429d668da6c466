"""Role-based view permissions."""

from __future__ import annotations

from enum import Enum
from typing import Dict, FrozenSet, List

from stockroom.shared.core.errors import PermissionDenied
from stockroom.state.models import ApplicationState, Role


class View(str, Enum):
    DASHBOARD = "dashboard"
    SEARCH = "search"
    ADD_ITEM = "add-item"
    CATEGORIES = "categories"
    ACTIVITY_LOG = "activity-log"
    QR_SCANNER = "qr-scanner"
    AI_ASSISTANT = "ai-assistant"
    SETTINGS = "settings"


_EVERYONE = frozenset({Role.GUEST, Role.TEAM, Role.ADMIN})
_STAFF = frozenset({Role.TEAM, Role.ADMIN})

VIEW_ROLES: Dict[View, FrozenSet[Role]] = {
    View.DASHBOARD: _EVERYONE,
    View.SEARCH: _EVERYONE,
    View.ADD_ITEM: _STAFF,
    View.CATEGORIES: _STAFF,
    View.ACTIVITY_LOG: _STAFF,
    View.QR_SCANNER: _STAFF,
    View.AI_ASSISTANT: _STAFF,
    View.SETTINGS: _STAFF,
}


def can_access(view: View | str, role: Role | str | None) -> bool:
    """Whether ``role`` may open ``view`` (no role counts as guest)."""
    return Role(role or Role.GUEST) in VIEW_ROLES[View(view)]


def allowed_views(role: Role | str | None) -> List[View]:
    """Views available to ``role``, in navigation order."""
    return [view for view in View if can_access(view, role)]


def require_view(state: ApplicationState, view: View | str) -> None:
    """Raise PermissionDenied unless the current user's role may open ``view``."""
    role = state.current_role
    if not can_access(view, role):
        raise PermissionDenied(f"Role '{role.value}' may not access '{View(view).value}'")


def require_staff(state: ApplicationState) -> None:
    """Mutating operations are for team members and administrators only."""
    role = state.current_role
    if role not in _STAFF:
        raise PermissionDenied(f"Role '{role.value}' may not modify inventory data")
