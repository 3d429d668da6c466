"""
Shared Core Module
==================

Event system, configuration, clock and error types.
"""

# Event System
from .event_bus import EventBus, EventPayload, EventHandler
from . import events

# Errors
from .errors import (
    StockroomError,
    ValidationFailed,
    NotFound,
    AuthenticationFailed,
    PermissionDenied,
)

# Clock
from .clock import Clock, utcnow, ensure_utc

# Service Registry
from .service_registry import register_cleanup_handler, run_cleanup

# Configuration
from .configuration import (
    ConfigManager,
    SystemConfig,
    get_config_manager,
    get_config,
    ValidationLevel,
)

__all__ = [
    # Event System
    "EventBus",
    "EventPayload",
    "EventHandler",
    "events",
    # Errors
    "StockroomError",
    "ValidationFailed",
    "NotFound",
    "AuthenticationFailed",
    "PermissionDenied",
    # Clock
    "Clock",
    "utcnow",
    "ensure_utc",
    # Service Registry
    "register_cleanup_handler",
    "run_cleanup",
    # Configuration
    "ConfigManager",
    "SystemConfig",
    "get_config_manager",
    "get_config",
    "ValidationLevel",
]
