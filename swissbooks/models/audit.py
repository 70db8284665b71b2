"""
Audit Models for Swissbooks

Every report run leaves a trail: which rate snapshot was used, which
invoices went in, where conversion fell back, what was written.
This lets a figure in a filed tax report be traced back to its inputs.

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Run lifecycle
    RUN_STARTED = "run_started"

    # Exchange rates
    RATES_FETCHED = "rates_fetched"
    RATES_FETCH_FAILED = "rates_fetch_failed"

    # Invoices
    INVOICES_LOADED = "invoices_loaded"
    INVOICE_REJECTED = "invoice_rejected"
    CREDITOR_MISMATCH = "creditor_mismatch"
    CONVERSION_FALLBACK = "conversion_fallback"

    # Output
    REPORT_BUILT = "report_built"
    REPORT_WRITTEN = "report_written"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    Every significant step of a report run creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'report', 'invoice', 'rates')"
    )
    entity_ref: Optional[str] = Field(
        default=None,
        description="Year, invoice number or file name the event relates to"
    )

    # Correlation - ties together all events of one run
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID shared by every event of one report run"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    error_code: Optional[str] = None
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_ref": self.entity_ref,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_code": self.error_code,
            "error_message": self.error_message,
        }

    def to_json_line(self) -> str:
        """One JSON line, for append-only audit files."""
        return json.dumps(self.to_log_dict(), ensure_ascii=False, default=str)


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.run_started(2025, "invoices/", correlation_id)
        event = AuditEventBuilder.report_written(2025, "de", path, correlation_id)
    """

    @staticmethod
    def run_started(
        year: int,
        invoices_dir: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RUN_STARTED,
            entity_type="report",
            entity_ref=str(year),
            correlation_id=correlation_id,
            description=f"Report run started for {year}",
            details={"invoices_dir": invoices_dir},
        )

    @staticmethod
    def rates_fetched(
        source: str,
        currency_count: int,
        snapshot_date: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RATES_FETCHED,
            entity_type="rates",
            entity_ref=snapshot_date,
            correlation_id=correlation_id,
            description=f"Exchange rates fetched from {source}",
            details={
                "source": source,
                "currency_count": currency_count,
                "snapshot_date": snapshot_date,
            },
        )

    @staticmethod
    def rates_fetch_failed(
        source: str,
        error_message: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RATES_FETCH_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="rates",
            correlation_id=correlation_id,
            description="Exchange rates could not be fetched; run aborted",
            details={"source": source},
            error_message=error_message,
        )

    @staticmethod
    def invoices_loaded(
        year: int,
        file_names: list[str],
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INVOICES_LOADED,
            entity_type="report",
            entity_ref=str(year),
            correlation_id=correlation_id,
            description=f"Loaded {len(file_names)} invoice(s) for {year}",
            details={"files": file_names},
        )

    @staticmethod
    def invoice_rejected(
        file_name: str,
        error_message: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INVOICE_REJECTED,
            severity=AuditSeverity.ERROR,
            entity_type="invoice",
            entity_ref=file_name,
            correlation_id=correlation_id,
            description=f"Invoice file rejected: {file_name}",
            error_message=error_message,
        )

    @staticmethod
    def creditor_mismatch(
        first_file: str,
        other_file: str,
        error_message: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CREDITOR_MISMATCH,
            severity=AuditSeverity.CRITICAL,
            entity_type="invoice",
            entity_ref=other_file,
            correlation_id=correlation_id,
            description="Creditor name/UID differs between invoices; run aborted",
            details={"first_file": first_file, "other_file": other_file},
            error_message=error_message,
        )

    @staticmethod
    def conversion_fallback(
        invoice_number: str,
        currency: str,
        message: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CONVERSION_FALLBACK,
            severity=AuditSeverity.WARNING,
            entity_type="invoice",
            entity_ref=invoice_number,
            correlation_id=correlation_id,
            description=f"Using 1:1 rate for {currency} to CHF as fallback",
            details={"currency": currency},
            error_message=message,
        )

    @staticmethod
    def report_built(
        year: int,
        invoice_count: int,
        total_revenue_chf: float,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.REPORT_BUILT,
            entity_type="report",
            entity_ref=str(year),
            correlation_id=correlation_id,
            description=f"Report for {year} aggregated from {invoice_count} invoice(s)",
            details={
                "invoice_count": invoice_count,
                "total_revenue_chf": round(total_revenue_chf, 2),
            },
        )

    @staticmethod
    def report_written(
        year: int,
        language: str,
        location: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.REPORT_WRITTEN,
            entity_type="report",
            entity_ref=str(year),
            correlation_id=correlation_id,
            description=f"{language.upper()} report written",
            details={"language": language, "location": location},
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            correlation_id=correlation_id,
            description=f"System error: {error_type}",
            details=details or {},
            error_code=error_type,
            error_message=error_message,
        )
