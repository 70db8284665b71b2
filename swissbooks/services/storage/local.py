"""
Local Storage Implementations

Reports are written as buchfuehrung-<year>-<lang>.md into a reports
directory. Audit events can be kept in memory (tests, the UI session)
or appended to a JSON-lines file.
"""

import json
from pathlib import Path
from typing import Optional, Union
from uuid import UUID

from swissbooks.models.audit import AuditEvent
from swissbooks.services.storage.interface import (
    AuditStorageInterface,
    ReportStorageInterface,
    StorageError,
)


REPORT_FILENAME_TEMPLATE = "buchfuehrung-{year}-{language}.md"


class LocalReportStorage(ReportStorageInterface):
    """Writes reports into a directory, creating it if needed."""

    def __init__(self, reports_dir: Union[str, Path]):
        self._reports_dir = Path(reports_dir)

    @property
    def reports_dir(self) -> Path:
        return self._reports_dir

    def report_path(self, year: int, language: str) -> Path:
        return self._reports_dir / REPORT_FILENAME_TEMPLATE.format(
            year=year, language=language
        )

    async def save_report(self, year: int, language: str, content: str) -> str:
        path = self.report_path(year, language)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Failed to write report {path}: {e}") from e
        return str(path)

    async def load_report(self, year: int, language: str) -> Optional[str]:
        path = self.report_path(year, language)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    async def delete_report(self, year: int, language: str) -> bool:
        path = self.report_path(year, language)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageError(f"Failed to delete report {path}: {e}") from e
        return True


class InMemoryAuditStorage(AuditStorageInterface):
    """Keeps audit events in a list. Lost when the process ends."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    async def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        events = [e for e in self._events if e.correlation_id == correlation_id]
        return sorted(events, key=lambda e: e.timestamp)

    async def get_recent_events(self, limit: int = 50) -> list[AuditEvent]:
        return sorted(self._events, key=lambda e: e.timestamp, reverse=True)[:limit]


class JsonlAuditStorage(AuditStorageInterface):
    """Appends one JSON object per event to a file."""

    def __init__(self, path: Union[str, Path]):
        self._path = Path(path)

    async def append_event(self, event: AuditEvent) -> bool:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with self._path.open("a", encoding="utf-8") as fh:
                fh.write(event.to_json_line() + "\n")
        except OSError as e:
            raise StorageError(f"Failed to append audit event to {self._path}: {e}") from e
        return True

    def _read_all(self) -> list[AuditEvent]:
        if not self._path.exists():
            return []
        events = []
        with self._path.open(encoding="utf-8") as fh:
            for line in fh:
                line = line.strip()
                if line:
                    events.append(AuditEvent.model_validate(json.loads(line)))
        return events

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        events = [e for e in self._read_all() if e.correlation_id == correlation_id]
        return sorted(events, key=lambda e: e.timestamp)

    async def get_recent_events(self, limit: int = 50) -> list[AuditEvent]:
        return sorted(self._read_all(), key=lambda e: e.timestamp, reverse=True)[:limit]
