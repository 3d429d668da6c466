"""
Stockroom Shared Kernel
=======================

Business logic and infrastructure shared by every Stockroom front end.

Architecture:
- core: EventBus, configuration, clock, errors
- infrastructure: Technical adapters (slot storage, remote model, export)
- domain: Store collaborators (auth, inventory, activity, assistant)
"""

__all__ = []
