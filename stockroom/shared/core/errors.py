"""Exceptions raised by store collaborators.

The reducer itself never raises for a dispatched action; these are for the
services that validate user intent before dispatching.
"""


class StockroomError(Exception):
    """Base class for Stockroom errors."""


class ValidationFailed(StockroomError):
    """Input rejected before any action was dispatched."""

    def __init__(self, message: str, errors: dict[str, str] | None = None):
        super().__init__(message)
        self.errors = errors or {}


class NotFound(StockroomError):
    """Referenced item or category does not exist."""


class AuthenticationFailed(StockroomError):
    """Login credentials were rejected."""


class PermissionDenied(StockroomError):
    """The current role may not perform the requested operation."""
