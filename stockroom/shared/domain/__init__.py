"""
Shared Domain Module
====================

Store collaborators: authentication, inventory operations, activity queries
and the inventory assistant. Each reads the store and dispatches actions.
"""
