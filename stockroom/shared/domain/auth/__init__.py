"""Authentication and role-based permissions."""

from .permissions import View, VIEW_ROLES, allowed_views, can_access, require_staff, require_view
from .service import AuthService, display_name_from_email

__all__ = [
    "View",
    "VIEW_ROLES",
    "allowed_views",
    "can_access",
    "require_staff",
    "require_view",
    "AuthService",
    "display_name_from_email",
]
