"""Stockroom - application entry point.

Configures logging, builds the store from configuration and prints an inventory
summary. ``python -m stockroom.main --help`` lists the export options.
"""

from __future__ import annotations

import argparse
import logging
import logging.handlers
from datetime import timedelta
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.table import Table

from stockroom.shared.core import events
from stockroom.shared.core.configuration import LoggingConfig, SystemConfig, ValidationLevel, get_config_manager
from stockroom.shared.core.event_bus import EventBus
from stockroom.shared.core.service_registry import register_cleanup_handler
from stockroom.shared.domain.activity import daily_stats
from stockroom.shared.domain.auth import allowed_views
from stockroom.shared.domain.inventory import InventoryService
from stockroom.shared.infrastructure.export import ExportService
from stockroom.shared.infrastructure.persistence import (
    DuckDBSlotStorage,
    MemorySlotStorage,
    SlotStorage,
    StatePersistence,
)
from stockroom.state import ThemeMarker
from stockroom.state.store import Store

logger = logging.getLogger(__name__)

LOG_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def configure_logging(config: LoggingConfig, project_root: Path) -> Path:
    """Install the rotating file handler and the WARNING+ console handler.

    Returns:
        Path of the log file
    """
    logs_dir = Path(config.log_dir)
    if not logs_dir.is_absolute():
        logs_dir = project_root / logs_dir
    logs_dir.mkdir(parents=True, exist_ok=True)
    log_file_path = logs_dir / "stockroom.log"

    file_log_level = LOG_LEVELS.get(config.level.upper(), logging.DEBUG)

    root_logger = logging.getLogger()
    root_logger.setLevel(file_log_level)

    # Remove existing handlers to avoid duplicates
    root_logger.handlers.clear()

    file_handler = logging.handlers.RotatingFileHandler(
        log_file_path,
        maxBytes=10 * 1024 * 1024,  # 10MB
        backupCount=5,
        encoding='utf-8'
    )
    file_handler.setLevel(file_log_level)
    file_handler.setFormatter(logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    ))
    root_logger.addHandler(file_handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.WARNING)
    console_handler.setFormatter(logging.Formatter(
        "%(asctime)s - %(levelname)s - %(message)s",
        datefmt="%H:%M:%S"
    ))
    root_logger.addHandler(console_handler)

    # Suppress verbose third-party library logs
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    logger.info(f"Logging configured: file={log_file_path}, console=WARNING+")
    return log_file_path


def build_storage(config: SystemConfig, project_root: Path) -> SlotStorage:
    if config.storage.backend == "memory":
        logger.info("Using in-memory slot storage; nothing will survive a restart")
        return MemorySlotStorage()

    db_path = Path(config.storage.db_path)
    if not db_path.is_absolute():
        db_path = project_root / db_path
    return DuckDBSlotStorage(str(db_path))


def build_store(config: SystemConfig, project_root: Path, *, as_global: bool = False) -> Store:
    """Wire storage, persistence and the store from configuration.

    Args:
        config: Validated system configuration
        project_root: Base for relative paths in the configuration
        as_global: Register the store as the process-wide instance

    Returns:
        The restored store
    """
    storage = build_storage(config, project_root)
    bus = EventBus()

    def _on_persistence_failure(key: str, error: Exception) -> None:
        bus.publish(events.TOPIC_PERSISTENCE_FAILED, events.create_persistence_failed_event(key, error))

    persistence = StatePersistence(storage, key=config.storage.slot_key, on_failure=_on_persistence_failure)
    kwargs = dict(
        persistence=persistence,
        event_bus=bus,
        session_duration=timedelta(hours=config.session.duration_hours),
        poll_interval=config.session.poll_interval_seconds,
    )
    store = Store.initialize(**kwargs) if as_global else Store(**kwargs)

    # last registered runs first: stop the monitor, then release the database
    register_cleanup_handler(storage.close)
    register_cleanup_handler(store.close)
    return store


def render_summary(store: Store, console: Console, theme: Optional[ThemeMarker] = None) -> None:
    state = store.get_state()
    inventory = InventoryService(store)
    stats = daily_stats(state.activity_log)

    table = Table(title="Stockroom")
    table.add_column("Metric")
    table.add_column("Value", justify="right")
    table.add_row("Items", str(len(state.items)))
    table.add_row("Categories", str(len(state.categories)))
    table.add_row("Low stock items", str(len(inventory.low_stock_items())))
    table.add_row("Inventory value", f"${inventory.total_value():.2f}")
    table.add_row("Activity records", str(len(state.activity_log)))
    table.add_row("Activity today", str(stats.total))
    table.add_row("Stored state", f"{store.persistence.storage_size() / 1024:.2f} KB")

    user = state.auth.user
    if state.auth.is_authenticated and user is not None:
        table.add_row("Signed in", f"{user.name} ({user.role.value})")
        table.add_row("Session expires", state.auth.session_expiry.isoformat())
    else:
        table.add_row("Signed in", "no")
    table.add_row("Views", ", ".join(view.value for view in allowed_views(state.current_role)))
    if theme is not None:
        table.add_row("Theme", "dark" if theme.is_dark else "light")

    console.print(table)


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="stockroom", description="Inventory state store")
    parser.add_argument("--project-root", type=Path, default=Path.cwd(), help="Directory holding config/ and data/")
    parser.add_argument("--export-dir", type=Path, help="Write a backup JSON into this directory")
    parser.add_argument("--report", type=Path, help="Write today's HTML activity report to this file")
    parser.add_argument("--csv", type=Path, help="Write the activity log as CSV to this file")
    args = parser.parse_args(argv)

    project_root = args.project_root.resolve()
    config = get_config_manager(project_root).get_config(ValidationLevel.LENIENT)
    configure_logging(config.logging, project_root)

    store = build_store(config, project_root, as_global=True)
    theme = ThemeMarker()
    theme.attach(store.bus)
    store.apply_theme()

    console = Console()
    render_summary(store, console, theme)

    state = store.get_state()
    exporter = ExportService()
    if args.export_dir:
        path = exporter.write_backup(state, args.export_dir)
        console.print(f"Backup written to {path}")
    if args.report:
        args.report.parent.mkdir(parents=True, exist_ok=True)
        args.report.write_text(exporter.daily_report_html(state.activity_log, state.auth.user), encoding="utf-8")
        console.print(f"Daily report written to {args.report}")
    if args.csv:
        args.csv.parent.mkdir(parents=True, exist_ok=True)
        args.csv.write_text(exporter.activity_csv(state.activity_log), encoding="utf-8")
        console.print(f"Activity CSV written to {args.csv}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
