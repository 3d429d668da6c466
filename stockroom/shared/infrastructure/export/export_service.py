"""Export Service for Stockroom.

Provides the backup file, activity CSV and the printable daily activity report.
"""

from __future__ import annotations

import csv
import io
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

from jinja2 import Environment, select_autoescape

from stockroom.shared.core.clock import Clock, utcnow
from stockroom.shared.domain.activity.queries import daily_stats, todays_activities
from stockroom.state.models import ActivityRecord, ApplicationState, User

logger = logging.getLogger(__name__)

BACKUP_VERSION = "1.0.0"
BACKUP_PREFIX = "wh5-inventory-backup"
CSV_HEADER = ["Date", "Time", "Type", "Description", "User"]

DAILY_REPORT_TEMPLATE = """\
<!DOCTYPE html>
<html>
  <head>
    <title>WH5 Construction Store - Daily Activity Report</title>
    <style>
      @media print { body { margin: 0; } }
      body { font-family: Arial, sans-serif; margin: 20px; line-height: 1.6; }
      .header { text-align: center; border-bottom: 3px solid #059669; padding-bottom: 20px; margin-bottom: 30px; }
      .logo { font-size: 28px; font-weight: bold; color: #059669; margin-bottom: 10px; }
      .subtitle { color: #666; margin: 5px 0; font-size: 16px; }
      .stats { display: grid; grid-template-columns: repeat(auto-fit, minmax(150px, 1fr)); gap: 20px; margin: 20px 0; }
      .stat-item { text-align: center; padding: 15px; border: 2px solid #059669; border-radius: 8px; background: #f8f9fa; }
      .stat-value { font-size: 32px; font-weight: bold; color: #059669; }
      .stat-label { font-size: 14px; color: #666; margin-top: 5px; }
      table { width: 100%; border-collapse: collapse; margin-top: 30px; }
      th, td { border: 1px solid #ddd; padding: 12px; text-align: left; }
      th { background-color: #059669; color: white; font-weight: bold; }
      tr:nth-child(even) { background-color: #f2f2f2; }
      .activity-create { color: #059669; font-weight: bold; }
      .activity-update { color: #3B82F6; font-weight: bold; }
      .activity-delete { color: #EF4444; font-weight: bold; }
      .activity-scan { color: #8B5CF6; font-weight: bold; }
      .footer { text-align: center; margin-top: 40px; padding-top: 20px; border-top: 1px solid #ddd; font-size: 12px; color: #666; }
      .no-activity { text-align: center; padding: 40px; color: #666; font-style: italic; }
    </style>
  </head>
  <body>
    <div class="header">
      <div class="logo">WH5 CONSTRUCTION STORE</div>
      <div class="subtitle">INVENTORY MANAGEMENT SYSTEM</div>
      <div class="subtitle">Daily Activity Report</div>
      <div class="subtitle">Report Date: {{ now.strftime("%Y-%m-%d") }}</div>
      <div class="subtitle">Generated: {{ now.strftime("%Y-%m-%d") }} at {{ now.strftime("%H:%M:%S") }} UTC</div>
    </div>

    <h2>Daily Summary</h2>
    <div class="stats">
      <div class="stat-item"><div class="stat-value">{{ stats.total }}</div><div class="stat-label">Total Activities</div></div>
      <div class="stat-item"><div class="stat-value">{{ stats.create }}</div><div class="stat-label">Items Created</div></div>
      <div class="stat-item"><div class="stat-value">{{ stats.update }}</div><div class="stat-label">Items Updated</div></div>
      <div class="stat-item"><div class="stat-value">{{ stats.delete }}</div><div class="stat-label">Items Deleted</div></div>
      <div class="stat-item"><div class="stat-value">{{ stats.scan }}</div><div class="stat-label">Scans/Logins</div></div>
    </div>

    <h2>Activity Details</h2>
    {% if activities %}
    <table>
      <thead>
        <tr><th>Time</th><th>Type</th><th>Description</th><th>User</th></tr>
      </thead>
      <tbody>
        {% for activity in activities %}
        <tr>
          <td>{{ activity.timestamp.strftime("%H:%M:%S") }}</td>
          <td class="activity-{{ activity.kind.value }}">{{ activity.kind.value | capitalize }}</td>
          <td>{{ activity.description }}</td>
          <td>{{ user_name }}</td>
        </tr>
        {% endfor %}
      </tbody>
    </table>
    {% else %}
    <div class="no-activity">No activities recorded for today.</div>
    {% endif %}

    <div class="footer">
      <p><strong>WH5 Construction Store - Inventory Management System</strong></p>
      <p>Report generated on {{ now.strftime("%Y-%m-%d") }} | Page 1 of 1</p>
    </div>
  </body>
</html>
"""


class ExportService:
    """Service for exporting store data in various formats."""

    def __init__(self, clock: Clock = utcnow):
        """Initialize the export service.

        Args:
            clock: Source of "now" for export timestamps and the daily report
        """
        self.clock = clock
        self.service_name = "ExportService"
        self._env = Environment(autoescape=select_autoescape(default_for_string=True))
        self._daily_template = self._env.from_string(DAILY_REPORT_TEMPLATE)

    def build_backup(self, state: ApplicationState) -> Dict[str, Any]:
        """Backup document: items, categories, settings and activity log."""
        return {
            "items": [item.to_json_dict() for item in state.items],
            "categories": [category.to_json_dict() for category in state.categories],
            "settings": state.settings.to_json_dict(),
            "activityLog": [record.to_json_dict() for record in state.activity_log],
            "exportDate": self.clock().isoformat(),
            "version": BACKUP_VERSION,
        }

    def backup_filename(self) -> str:
        return f"{BACKUP_PREFIX}-{self.clock().strftime('%Y-%m-%d')}.json"

    def write_backup(self, state: ApplicationState, directory: Path) -> Path:
        """Write the backup document as ``wh5-inventory-backup-<date>.json``.

        Args:
            state: State to export
            directory: Target directory (created if missing)

        Returns:
            Path to exported file
        """
        directory = Path(directory)
        directory.mkdir(parents=True, exist_ok=True)
        output_path = directory / self.backup_filename()

        backup = self.build_backup(state)
        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(backup, f, indent=2, ensure_ascii=False)

        logger.info(
            f"Exported backup with {len(backup['items'])} items and "
            f"{len(backup['categories'])} categories to {output_path}"
        )
        return output_path

    def activity_csv(self, records: Iterable[ActivityRecord]) -> str:
        """Activity log as CSV text (Date, Time, Type, Description, User)."""
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow(CSV_HEADER)

        count = 0
        for record in records:
            writer.writerow([
                record.timestamp.strftime("%Y-%m-%d"),
                record.timestamp.strftime("%H:%M:%S"),
                record.kind.value,
                record.description,
                record.user_id or "System",
            ])
            count += 1

        logger.debug(f"Rendered {count} activity records as CSV")
        return buffer.getvalue()

    def daily_report_html(
        self,
        records: Iterable[ActivityRecord],
        user: Optional[User] = None,
        now: Optional[datetime] = None,
    ) -> str:
        """Printable HTML report of today's activity."""
        now = now or self.clock()
        records = list(records)
        activities = todays_activities(records, now)

        html = self._daily_template.render(
            now=now,
            stats=daily_stats(records, now),
            activities=activities,
            user_name=user.name if user is not None else "System",
        )
        logger.info(f"Generated daily report with {len(activities)} activities")
        return html
