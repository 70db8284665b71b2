"""
Abstract Storage Interface

DESIGN DECISION: Report output and the audit trail go through abstract
interfaces. This allows us to:
1. Write reports to a local folder today and somewhere else later
2. Use in-memory storage for testing
3. Keep the bookkeeping flow decoupled from where files end up
"""

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from swissbooks.models.audit import AuditEvent


class StorageError(Exception):
    """Base exception for storage errors."""
    pass


class ReportStorageInterface(ABC):
    """
    Abstract interface for rendered report output.
    """

    @abstractmethod
    async def save_report(self, year: int, language: str, content: str) -> str:
        """
        Persist one rendered report.

        Args:
            year: Report year
            language: Report language code ("de", "en")
            content: Rendered Markdown

        Returns:
            Location of the stored report (path or URI)

        Raises:
            StorageError: If the report cannot be written
        """
        pass

    @abstractmethod
    async def load_report(self, year: int, language: str) -> Optional[str]:
        """
        Read back a stored report.

        Returns:
            The report content if it exists, None otherwise
        """
        pass

    @abstractmethod
    async def delete_report(self, year: int, language: str) -> bool:
        """
        Remove a stored report.

        Returns:
            True if a report was removed, False if there was none
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if appended successfully
        """
        pass

    @abstractmethod
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """
        Get all events of one run.

        Returns:
            Events in chronological order
        """
        pass

    @abstractmethod
    async def get_recent_events(self, limit: int = 50) -> list[AuditEvent]:
        """
        Get the most recent events, newest first.
        """
        pass
