"""
Main Orchestrator for Swissbooks

Defines the end-to-end yearly report flow:

    fetch rates -> load invoices -> number + total -> aggregate -> render -> write

DESIGN DECISION: The orchestrator enforces the failure boundaries:
- No rates, no report (the fetch happens before any invoice is touched)
- A bad invoice file or a creditor mismatch aborts the run
- Every language is rendered before the first file is written, so a
  failing run never leaves a partial report behind
- Every step is audited under one correlation id
"""

from pathlib import Path
from typing import Optional, Union
from uuid import UUID

import structlog

from swissbooks.aggregation import CreditorMismatchError, FinancialAggregator
from swissbooks.audit import AuditLogger, configure_logging, create_correlation_id
from swissbooks.config import AggregationConfig, get_settings
from swissbooks.currency import ExchangeRateTable
from swissbooks.invoices import InvoiceLoadError, load_invoices
from swissbooks.models.report import Report
from swissbooks.references import InvalidDateFormatError, InvalidReferenceInputError
from swissbooks.reports import MarkdownReportRenderer
from swissbooks.services.exchange_rates import (
    ExchangeRateError,
    ExchangeRateProvider,
    OpenERApiProvider,
)
from swissbooks.services.storage import (
    InMemoryAuditStorage,
    JsonlAuditStorage,
    LocalReportStorage,
    ReportStorageInterface,
    StorageError,
)


logger = structlog.get_logger(__name__)


class BookkeepingFlow:
    """
    Orchestrates one yearly report run.

    Flow:
    1. Rates     -> one snapshot for the whole run (fatal on failure)
    2. Load      -> YYYY-*.json files of the year (fatal on bad file)
    3. Aggregate -> numbering, totals, consistency check (fatal on mismatch)
    4. Render    -> one Markdown document per language
    5. Write     -> only after everything above succeeded
    """

    def __init__(
        self,
        rate_provider: Optional[ExchangeRateProvider] = None,
        report_storage: Optional[ReportStorageInterface] = None,
        audit_logger: Optional[AuditLogger] = None,
        config: Optional[AggregationConfig] = None,
    ):
        self._config = config or get_settings().report.to_aggregation_config()
        self._rate_provider = rate_provider or OpenERApiProvider()
        self._report_storage = report_storage
        self._audit_logger = audit_logger or AuditLogger()
        self._aggregator = FinancialAggregator(self._config)
        self._renderer = MarkdownReportRenderer(
            self._config,
            rate_source=self._rate_provider.source,
        )

    @property
    def aggregator(self) -> FinancialAggregator:
        return self._aggregator

    async def fetch_rates(self, correlation_id: UUID) -> ExchangeRateTable:
        """Fetch the run's rate snapshot. Failure is fatal."""
        try:
            rates = await self._rate_provider.fetch_rates()
        except ExchangeRateError as e:
            await self._audit_logger.log_rates_fetch_failed(
                source=self._rate_provider.source,
                error_message=str(e),
                correlation_id=correlation_id,
            )
            raise

        await self._audit_logger.log_rates_fetched(
            source=rates.source,
            currency_count=len(rates.rates),
            snapshot_date=rates.snapshot_date,
            correlation_id=correlation_id,
        )
        return rates

    async def generate_report(
        self,
        year: int,
        invoices_dir: Union[str, Path],
        languages: Optional[list[str]] = None,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[Report, dict[str, str], dict[str, str]]:
        """
        Run the full flow for one year.

        Args:
            year: Report year; selects the YYYY-*.json files
            invoices_dir: Directory with the invoice files
            languages: Report languages, defaults to the configured ones
            correlation_id: Audit correlation id, created if None

        Returns:
            (report, rendered_by_language, written_locations_by_language)
            Nothing is written when the year has no invoices.

        Raises:
            ExchangeRateError: Rates could not be fetched
            InvoiceLoadError / InvalidDateFormatError: An invoice file is bad
            CreditorMismatchError: Invoices from different creditors
            StorageError: A report could not be written; reports already
                          written by this run are removed again
        """
        correlation_id = correlation_id or create_correlation_id()
        languages = languages or get_settings().report.languages_list

        await self._audit_logger.log_run_started(year, str(invoices_dir), correlation_id)

        rates = await self.fetch_rates(correlation_id)

        try:
            records = load_invoices(
                invoices_dir,
                year,
                default_currency=self._config.default_currency,
            )
        except (InvoiceLoadError, InvalidDateFormatError) as e:
            await self._audit_logger.log_invoice_rejected(
                file_name=getattr(e, "file_name", str(invoices_dir)),
                error_message=str(e),
                correlation_id=correlation_id,
            )
            raise

        await self._audit_logger.log_invoices_loaded(
            year,
            [record.source_filename for record in records],
            correlation_id,
        )

        processed = []
        for record in records:
            try:
                processed.append(self._aggregator.process_invoice(record))
            except InvalidReferenceInputError as e:
                await self._audit_logger.log_invoice_rejected(
                    file_name=record.source_filename,
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
                raise

        try:
            report = self._aggregator.aggregate(year, processed, rates)
        except CreditorMismatchError as e:
            await self._audit_logger.log_creditor_mismatch(
                first_file=e.first_file,
                other_file=e.other_file,
                error_message=str(e),
                correlation_id=correlation_id,
            )
            raise

        for warning in report.conversion_warnings:
            await self._audit_logger.log_conversion_fallback(
                invoice_number=warning.invoice_number,
                currency=warning.currency,
                message=warning.message,
                correlation_id=correlation_id,
            )

        await self._audit_logger.log_report_built(
            year=year,
            invoice_count=report.invoice_count,
            total_revenue_chf=report.total_revenue_chf,
            correlation_id=correlation_id,
        )

        rendered = {language: self._renderer.render(report, language) for language in languages}

        written: dict[str, str] = {}
        if not records:
            logger.warning("no_invoices_found", year=year, invoices_dir=str(invoices_dir))
            return report, rendered, written

        if self._report_storage:
            written = await self._write_reports(year, rendered, correlation_id)

        return report, rendered, written

    async def _write_reports(
        self,
        year: int,
        rendered: dict[str, str],
        correlation_id: UUID,
    ) -> dict[str, str]:
        """
        Write every language or none.

        If one write fails, the reports already written in this run are
        deleted again before the StorageError propagates.
        """
        written: dict[str, str] = {}
        try:
            for language, content in rendered.items():
                written[language] = await self._report_storage.save_report(year, language, content)
        except StorageError as e:
            for language in written:
                await self._report_storage.delete_report(year, language)
            await self._audit_logger.log_error(
                error_type="StorageError",
                error_message=str(e),
                details={"year": year, "rolled_back": sorted(written)},
                correlation_id=correlation_id,
            )
            raise

        for language, location in written.items():
            await self._audit_logger.log_report_written(
                year=year,
                language=language,
                location=location,
                correlation_id=correlation_id,
            )
        return written


def create_app_components(
    reports_dir: Optional[Union[str, Path]] = None,
    audit_log_path: Optional[Union[str, Path]] = None,
    rate_provider: Optional[ExchangeRateProvider] = None,
) -> BookkeepingFlow:
    """
    Factory function to create the report flow.

    Args:
        reports_dir: Where reports are written. Defaults to REPORT_REPORTS_DIR.
        audit_log_path: JSON-lines audit file. If None, audit events are
                        kept in memory only.
        rate_provider: Rate source. Defaults to open.er-api.com.
    """
    settings = get_settings()
    configure_logging(settings.app.log_level)

    report_storage = LocalReportStorage(reports_dir or settings.report.reports_dir)
    if audit_log_path:
        audit_storage = JsonlAuditStorage(audit_log_path)
    else:
        audit_storage = InMemoryAuditStorage()

    return BookkeepingFlow(
        rate_provider=rate_provider,
        report_storage=report_storage,
        audit_logger=AuditLogger(audit_storage),
        config=settings.report.to_aggregation_config(),
    )
