"""
Financial Aggregation Engine

Folds a year's invoices into a Report in a single pass.

Flow:
1. Process  -> each InvoiceRecord gets a number, SCOR reference and totals
2. Check    -> all invoices must come from the same creditor (name + UID)
3. Fold     -> native totals per currency, CHF totals, month (from the file
               name) and client buckets
4. Sort     -> invoice lines by ISO date

FAILURE POLICY:
- Creditor mismatch is fatal. A tax report mixing two legal entities is
  corrupt data, not a per-invoice problem.
- A missing exchange rate for one invoice is NOT fatal. The amount is
  counted 1:1, a warning is logged and recorded on the report.

The aggregator keeps no state between runs; one instance can serve
several years.
"""

from datetime import date
from typing import Any, Iterable, Optional

import structlog

from swissbooks.config import AggregationConfig
from swissbooks.currency.converter import MissingRateError, RateSource, convert
from swissbooks.models.invoice import InvoiceRecord, ProcessedInvoice
from swissbooks.models.report import (
    ClientSummary,
    ConversionWarning,
    InvoiceSummary,
    MonthSummary,
    Report,
)
from swissbooks.references.codec import (
    derive_invoice_number,
    filename_period,
    generate_structured_reference,
)


logger = structlog.get_logger(__name__)


class AggregationError(Exception):
    """Base exception for aggregation errors."""
    pass


class CreditorMismatchError(AggregationError):
    """Invoices of one run were issued by different creditors."""

    def __init__(self, first: ProcessedInvoice, other: ProcessedInvoice):
        self.first_file = first.file_name
        self.other_file = other.file_name
        first_creditor = first.record.creditor
        other_creditor = other.record.creditor
        super().__init__(
            "Critical creditor information is inconsistent across invoices: "
            f"{first.file_name} has creditor {first_creditor.name} ({first_creditor.uid}), "
            f"{other.file_name} has creditor {other_creditor.name} ({other_creditor.uid})"
        )


class FinancialAggregator:
    """
    Builds yearly reports from invoice records.

    GUARANTEES:
    - Totals are sums of the invoices given, nothing is estimated
    - sum of client CHF totals == sum of month CHF totals == total CHF
    - Same invoices + same rate table -> same report figures
    """

    def __init__(self, config: Optional[AggregationConfig] = None):
        self._config = config or AggregationConfig()

    @property
    def config(self) -> AggregationConfig:
        return self._config

    def resolve_invoice_date(self, record: InvoiceRecord) -> date:
        """
        Display and sort date: explicit date, else the 1st of the file
        name's month, else today. Month buckets do not use it.
        """
        if record.invoice_date is not None:
            return record.invoice_date

        period = filename_period(record.source_filename)
        if period is not None:
            year, month = period
            try:
                return date(year, month, 1)
            except ValueError:
                pass

        return self._config.current_date()

    def _numbering_data(self, record: InvoiceRecord) -> Any:
        if record.source_data:
            return record.source_data
        return record.model_dump(
            mode="json",
            by_alias=True,
            exclude={"source_filename", "source_data"},
        )

    def process_invoice(self, record: InvoiceRecord) -> ProcessedInvoice:
        """
        Attach number, reference and totals to one record.

        Raises:
            InvalidReferenceInputError: If the invoice number has no
                letters or digits to build a reference from.
        """
        invoice_number = derive_invoice_number(
            record.number,
            record.source_filename,
            self._numbering_data(record),
            today=self._config.current_date(),
        )
        reference = generate_structured_reference(invoice_number)

        subtotal = record.subtotal
        vat_amount = subtotal * (record.vat_rate / 100) if record.vat_rate else 0.0

        return ProcessedInvoice(
            record=record,
            invoice_number=invoice_number,
            reference=reference,
            invoice_date=self.resolve_invoice_date(record),
            subtotal=subtotal,
            vat_amount=vat_amount,
            total=subtotal + vat_amount,
        )

    def process_invoices(self, records: Iterable[InvoiceRecord]) -> list[ProcessedInvoice]:
        return [self.process_invoice(record) for record in records]

    @staticmethod
    def check_creditor_consistency(invoices: list[ProcessedInvoice]) -> None:
        """
        Every invoice must share the first invoice's creditor name and UID.

        Raises:
            CreditorMismatchError: On the first invoice that differs.
        """
        if len(invoices) < 2:
            return

        first = invoices[0]
        for other in invoices[1:]:
            if (
                other.record.creditor.name != first.record.creditor.name
                or other.record.creditor.uid != first.record.creditor.uid
            ):
                raise CreditorMismatchError(first, other)

    def _to_reporting_currency(
        self,
        invoice: ProcessedInvoice,
        rates: RateSource,
        warnings: list[ConversionWarning],
    ) -> float:
        target = self._config.reporting_currency
        if invoice.currency == target:
            return invoice.total

        try:
            return convert(invoice.total, invoice.currency, target, rates)
        except MissingRateError as e:
            logger.warning(
                "currency_conversion_fallback",
                invoice_number=invoice.invoice_number,
                currency=invoice.currency,
                reporting_currency=target,
                error=str(e),
            )
            warnings.append(
                ConversionWarning(
                    invoice_number=invoice.invoice_number,
                    currency=invoice.currency,
                    message=str(e),
                )
            )
            return invoice.total

    def aggregate(
        self,
        year: int,
        invoices: list[ProcessedInvoice],
        rates: RateSource,
        exchange_rate_date: Optional[str] = None,
    ) -> Report:
        """
        Fold processed invoices into a Report.

        Args:
            year: Report year
            invoices: Processed invoices, in input order
            rates: Rate table shared by the whole run
            exchange_rate_date: ISO date printed as the rate snapshot date.
                                Defaults to the table's snapshot date, or today.

        Raises:
            CreditorMismatchError: If the invoices come from different creditors.
        """
        self.check_creditor_consistency(invoices)

        total_revenue: dict[str, float] = {}
        total_revenue_chf = 0.0
        months: dict[str, dict[str, Any]] = {}
        clients: dict[str, dict[str, Any]] = {}
        lines: list[InvoiceSummary] = []
        warnings: list[ConversionWarning] = []

        for invoice in invoices:
            currency = invoice.currency
            amount = invoice.total
            amount_chf = self._to_reporting_currency(invoice, rates, warnings)

            total_revenue[currency] = total_revenue.get(currency, 0.0) + amount
            total_revenue_chf += amount_chf

            month = months.setdefault(
                invoice.month,
                {"total": 0.0, "total_chf": 0.0, "by_currency": {}},
            )
            month["total"] += amount
            month["total_chf"] += amount_chf
            month["by_currency"][currency] = month["by_currency"].get(currency, 0.0) + amount

            client = clients.setdefault(
                invoice.client,
                {
                    "total_billed": 0.0,
                    "total_billed_chf": 0.0,
                    "invoice_count": 0,
                    "currency": currency,
                    "by_currency": {},
                },
            )
            client["total_billed"] += amount
            client["total_billed_chf"] += amount_chf
            client["invoice_count"] += 1
            # last write wins, see ClientSummary
            client["currency"] = currency
            client["by_currency"][currency] = client["by_currency"].get(currency, 0.0) + amount

            lines.append(
                InvoiceSummary(
                    date=invoice.invoice_date.isoformat(),
                    month=invoice.month,
                    invoice_number=invoice.invoice_number,
                    reference=invoice.reference,
                    client=invoice.client,
                    amount=amount,
                    currency=currency,
                    amount_chf=amount_chf,
                    items=invoice.item_count,
                    file_name=invoice.file_name,
                )
            )

        lines.sort(key=lambda line: line.date)

        if exchange_rate_date is None:
            snapshot = getattr(rates, "snapshot_date", None)
            exchange_rate_date = snapshot or self._config.current_date().isoformat()

        creditor = invoices[0].record.creditor if invoices else None

        report = Report(
            year=year,
            exchange_rate_date=exchange_rate_date,
            reporting_currency=self._config.reporting_currency,
            company_name=creditor.name if creditor else "",
            uid=creditor.uid if creditor else "",
            creditor_city=creditor.city if creditor else "",
            total_revenue=total_revenue,
            total_revenue_chf=total_revenue_chf,
            monthly_revenue={key: MonthSummary(**value) for key, value in months.items()},
            client_summary={key: ClientSummary(**value) for key, value in clients.items()},
            invoices=lines,
            conversion_warnings=warnings,
        )

        logger.info(
            "report_aggregated",
            year=year,
            invoice_count=len(lines),
            currencies=sorted(total_revenue),
            total_revenue_chf=round(total_revenue_chf, 2),
            fallback_count=len(warnings),
        )
        return report

    def build_report(
        self,
        year: int,
        records: Iterable[InvoiceRecord],
        rates: RateSource,
    ) -> Report:
        """Process records and aggregate them in one call."""
        return self.aggregate(year, self.process_invoices(records), rates)
