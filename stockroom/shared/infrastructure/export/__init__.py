"""Data export (backup JSON, activity CSV, daily HTML report)."""

from stockroom.shared.infrastructure.export.export_service import BACKUP_VERSION, ExportService

__all__ = ["BACKUP_VERSION", "ExportService"]
