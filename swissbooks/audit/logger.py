"""
Audit Logger

DESIGN DECISION: Every report run is logged from start to finish.
This provides:
1. Traceability from a filed figure back to its inputs
2. Debugging capability
3. A record of every 1:1 conversion fallback

The audit logger:
- Is async so storage backends can do I/O
- Gracefully handles storage failures (a broken audit sink never
  changes the outcome of a run)
- Supports correlation IDs to trace all events of one run
"""

import logging
from typing import Optional
from uuid import UUID, uuid4

import structlog

from swissbooks.models.audit import AuditEvent, AuditEventBuilder
from swissbooks.services.storage import AuditStorageInterface, StorageError


def configure_logging(level: str = "INFO") -> None:
    """Route structlog through stdlib logging as JSON lines."""
    log_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(format="%(message)s", level=log_level)
    logging.getLogger().setLevel(log_level)
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer()
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


configure_logging()


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. An audit storage backend, if one is configured
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("swissbooks.audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity.value in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except StorageError as e:
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_run_started(
        self,
        year: int,
        invoices_dir: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.run_started(year, invoices_dir, correlation_id))

    async def log_rates_fetched(
        self,
        source: str,
        currency_count: int,
        snapshot_date: str,
        correlation_id: UUID,
    ) -> None:
        """Log a successful rate fetch."""
        event = AuditEventBuilder.rates_fetched(
            source=source,
            currency_count=currency_count,
            snapshot_date=snapshot_date,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_rates_fetch_failed(
        self,
        source: str,
        error_message: str,
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.rates_fetch_failed(
            source=source,
            error_message=error_message,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_invoices_loaded(
        self,
        year: int,
        file_names: list[str],
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.invoices_loaded(year, file_names, correlation_id))

    async def log_invoice_rejected(
        self,
        file_name: str,
        error_message: str,
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.invoice_rejected(
            file_name=file_name,
            error_message=error_message,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_creditor_mismatch(
        self,
        first_file: str,
        other_file: str,
        error_message: str,
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.creditor_mismatch(
            first_file=first_file,
            other_file=other_file,
            error_message=error_message,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_conversion_fallback(
        self,
        invoice_number: str,
        currency: str,
        message: str,
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.conversion_fallback(
            invoice_number=invoice_number,
            currency=currency,
            message=message,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_report_built(
        self,
        year: int,
        invoice_count: int,
        total_revenue_chf: float,
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.report_built(
            year=year,
            invoice_count=invoice_count,
            total_revenue_chf=total_revenue_chf,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_report_written(
        self,
        year: int,
        language: str,
        location: str,
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.report_written(
            year=year,
            language=language,
            location=location,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        event = AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        )
        await self.log(event)


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for one report run.

    Pass it through every audit call of that run.
    """
    return uuid4()
