"""Authentication Service: login flows, logout and the admin passcode."""

from __future__ import annotations

import logging
import re

from stockroom.shared.core.clock import Clock, epoch_millis, utcnow
from stockroom.shared.core.errors import AuthenticationFailed, PermissionDenied, ValidationFailed
from stockroom.shared.domain.activity.recorder import record_activity
from stockroom.state import actions
from stockroom.state.models import ActivityKind, Role, User
from stockroom.state.store import Store

logger = logging.getLogger(__name__)

ADMIN_USER_ID = "admin-001"
ADMIN_EMAIL = "admin@wh5construction.com"
MIN_PASSCODE_LENGTH = 4


def display_name_from_email(email: str) -> str:
    """'jane.doe-smith@x' -> 'Jane Doe Smith'."""
    local = email.split("@")[0]
    spaced = re.sub(r"[.-]", " ", local)
    return re.sub(r"\b\w", lambda match: match.group().upper(), spaced)


class AuthService:
    """Service for signing users in and out of the store."""

    def __init__(self, store: Store, clock: Clock = utcnow):
        """Initialize the authentication service.

        Args:
            store: Store the session lives in
            clock: Source of "now" for user ids and timestamps
        """
        self.store = store
        self.clock = clock
        self.service_name = "AuthService"

    def _login(self, user: User, description: str) -> User:
        self.store.dispatch(actions.login(user))
        record_activity(self.store, ActivityKind.SCAN, description, clock=self.clock)
        logger.info(f"User {user.id} logged in as {user.role.value}")
        return user

    def login_guest(self) -> User:
        now = self.clock()
        user = User(
            id=f"guest-{epoch_millis(self.clock)}",
            email="guest@local",
            name="Guest User",
            role=Role.GUEST,
            created_at=now,
            last_login=now,
        )
        return self._login(user, "Guest user logged in")

    def login_admin(self, passcode: str) -> User:
        """Log in as administrator.

        Raises:
            AuthenticationFailed: If the passcode does not match the configured one
        """
        if passcode != self.store.get_state().settings.admin_passcode:
            logger.warning("Rejected admin login: invalid access code")
            raise AuthenticationFailed("Invalid admin access code")

        now = self.clock()
        user = User(
            id=ADMIN_USER_ID,
            email=ADMIN_EMAIL,
            name="System Administrator",
            role=Role.ADMIN,
            created_at=now,
            last_login=now,
        )
        return self._login(user, "Admin user logged in")

    def login_team(self, email: str) -> User:
        """Log in a team member by company email address.

        Raises:
            AuthenticationFailed: If the address is not on the company domain
        """
        domain = self.store.get_state().settings.company_domain or "wh5construction.com"
        email = (email or "").strip()
        if "@" not in email or not email.lower().endswith(f"@{domain.lower()}"):
            logger.warning(f"Rejected team login for '{email}'")
            raise AuthenticationFailed(f"Please use a valid {domain} email address")

        now = self.clock()
        user = User(
            id=f"team-{epoch_millis(self.clock)}",
            email=email,
            name=display_name_from_email(email),
            role=Role.TEAM,
            created_at=now,
            last_login=now,
        )
        return self._login(user, f"Team member {user.name} logged in")

    def logout(self) -> None:
        user = self.store.get_state().auth.user
        self.store.dispatch(actions.logout())
        if user is not None:
            logger.info(f"User {user.id} logged out")

    def refresh_session(self) -> None:
        self.store.dispatch(actions.refresh_session())

    def change_passcode(self, new_passcode: str) -> None:
        """Replace the admin passcode (administrators only).

        Raises:
            PermissionDenied: If the current user is not an administrator
            ValidationFailed: If the passcode is shorter than 4 characters
        """
        if self.store.get_state().current_role is not Role.ADMIN:
            raise PermissionDenied("Only administrators may change the admin passcode")
        if not new_passcode or len(new_passcode) < MIN_PASSCODE_LENGTH:
            raise ValidationFailed(
                "Passcode must be at least 4 characters long",
                {"adminPasscode": f"minimum length is {MIN_PASSCODE_LENGTH}"},
            )

        self.store.dispatch(actions.update_settings(admin_passcode=new_passcode))
        record_activity(self.store, ActivityKind.UPDATE, "Admin passcode changed", clock=self.clock)
        logger.info("Admin passcode changed")
