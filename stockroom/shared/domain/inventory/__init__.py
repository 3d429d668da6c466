"""Inventory operations (items, categories, scans, search, import)."""

from .service import InventoryService, ItemFilters, LOW_STOCK_THRESHOLD, stock_status

__all__ = ["InventoryService", "ItemFilters", "LOW_STOCK_THRESHOLD", "stock_status"]
