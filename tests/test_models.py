"""
Tests for Swissbooks models

Test strategy:
1. Unit tests for individual components (models, validators)
2. Integration tests for flows (with mocked external services)
3. No real API calls in tests (use mocks)
"""

import json
from datetime import date
from uuid import uuid4

import pytest

from swissbooks.models import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
    ClientSummary,
    Creditor,
    InvoiceLanguage,
    InvoiceRecord,
    LineItem,
    MonthSummary,
    ProcessedInvoice,
    Report,
)
from swissbooks.references import InvalidDateFormatError

from conftest import CREDITOR, make_document


class TestInvoiceModels:
    """Tests for invoice-related Pydantic models."""

    def test_creditor_aliases(self):
        """Test that camelCase file keys map to snake_case fields."""
        creditor = Creditor.model_validate(CREDITOR)
        assert creditor.building_number == "1"
        assert creditor.account_name == "Muster Consulting GmbH"

    def test_creditor_numeric_zip(self):
        """Test that numeric zip codes are accepted."""
        creditor = Creditor.model_validate({**CREDITOR, "zip": 8001, "buildingNumber": 12})
        assert creditor.zip == "8001"
        assert creditor.building_number == "12"

    def test_line_item_rejects_negative_amount(self):
        """Test that negative amounts are rejected."""
        with pytest.raises(ValueError):
            LineItem(description="Refund", amount=-10)

    def test_line_item_keeps_extra_columns(self):
        item = LineItem.model_validate({"description": "Dev", "amount": 300, "hours": 2})
        assert item.model_extra == {"hours": 2}

    def test_from_document(self):
        """Test building a record from a decoded file."""
        record = InvoiceRecord.from_document(
            make_document(amounts=(100, 50.5), currency="eur", invoice_date="2025-03-14", vat_rate=8.1),
            source_filename="2025-03-acme.json",
        )
        assert record.currency == "EUR"
        assert record.invoice_date == date(2025, 3, 14)
        assert record.vat_rate == 8.1
        assert record.subtotal == 150.5
        assert record.client == "Acme AG"
        assert record.language == InvoiceLanguage.DE
        assert record.source_filename == "2025-03-acme.json"

    def test_from_document_defaults(self):
        """Test currency default and optional date."""
        record = InvoiceRecord.from_document(make_document(), default_currency="CHF")
        assert record.currency == "CHF"
        assert record.invoice_date is None
        assert record.number is None
        assert record.vat_rate is None

    def test_empty_number_is_none(self):
        record = InvoiceRecord.from_document(make_document(number="  "))
        assert record.number is None

    def test_from_document_bad_date(self):
        with pytest.raises(InvalidDateFormatError):
            InvoiceRecord.from_document(make_document(invoice_date="14.03.2025"))

    def test_rejects_bad_currency(self):
        with pytest.raises(ValueError):
            InvoiceRecord.from_document(make_document(currency="EURO"))

    def test_source_data_is_raw_document(self):
        document = make_document()
        record = InvoiceRecord.from_document(document)
        assert record.source_data == document

    def test_record_is_frozen(self):
        record = InvoiceRecord.from_document(make_document())
        with pytest.raises(ValueError):
            record.currency = "EUR"

    def test_processed_invoice_properties(self):
        record = InvoiceRecord.from_document(
            make_document(currency="USD", amounts=(10, 20)),
            source_filename="2025-07-acme.json",
        )
        invoice = ProcessedInvoice(
            record=record,
            invoice_number="2507-001",
            reference="RF00",
            invoice_date=date(2025, 7, 15),
            subtotal=30,
            vat_amount=0,
            total=30,
        )
        assert invoice.month == "07"
        assert invoice.item_count == 2
        assert invoice.due_date == date(2025, 8, 14)
        assert invoice.file_name == "2025-07-acme.json"
        assert not invoice.qr_bill_eligible


class TestReportModel:
    """Tests for the Report model views."""

    def make_report(self, year: int = 2025) -> Report:
        return Report(
            year=year,
            exchange_rate_date="2025-12-31",
            total_revenue={"CHF": 300.0, "EUR": 100.0},
            total_revenue_chf=405.0,
            monthly_revenue={
                "05": MonthSummary(total=100.0, total_chf=105.0, by_currency={"EUR": 100.0}),
                "01": MonthSummary(total=200.0, total_chf=200.0, by_currency={"CHF": 200.0}),
                "02": MonthSummary(total=100.0, total_chf=100.0, by_currency={"CHF": 100.0}),
            },
            client_summary={
                "Small AG": ClientSummary(total_billed=100, total_billed_chf=105, invoice_count=1, currency="EUR"),
                "Big AG": ClientSummary(total_billed=300, total_billed_chf=300, invoice_count=2, currency="CHF"),
            },
        )

    def test_sorted_months(self):
        assert self.make_report().sorted_months() == ["01", "02", "05"]

    def test_sorted_clients(self):
        assert [name for name, _ in self.make_report().sorted_clients()] == ["Big AG", "Small AG"]

    def test_multiple_currencies(self):
        assert self.make_report().has_multiple_currencies

    def test_quarters_of_past_year(self):
        quarters = self.make_report(2024).quarterly_summary(today=date(2025, 3, 1))
        assert [q.label for q in quarters] == ["Q1", "Q2", "Q3", "Q4"]
        assert quarters[0].total_chf == 300.0
        assert quarters[0].by_currency == {"CHF": 300.0}
        assert quarters[1].by_currency == {"EUR": 100.0}
        assert quarters[3].total_chf == 0.0

    def test_future_quarters_hidden(self):
        quarters = self.make_report(2025).quarterly_summary(today=date(2025, 5, 10))
        assert [q.quarter for q in quarters] == [1, 2]


class TestAuditModels:
    """Tests for audit event models."""

    def test_audit_event_creation(self):
        """Test AuditEvent model creation."""
        event = AuditEvent(
            event_type=AuditEventType.RUN_STARTED,
            description="Report run started for 2025",
        )
        assert event.event_type == AuditEventType.RUN_STARTED
        assert event.severity == AuditSeverity.INFO
        assert event.event_id is not None

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        correlation_id = uuid4()
        event = AuditEventBuilder.report_written(2025, "de", "reports/buchfuehrung-2025-de.md", correlation_id)
        log_dict = event.to_log_dict()

        assert log_dict["event_type"] == "report_written"
        assert log_dict["correlation_id"] == str(correlation_id)
        assert log_dict["details"]["language"] == "de"

    def test_json_line_round_trip(self):
        event = AuditEventBuilder.run_started(2025, "invoices", uuid4())
        restored = AuditEvent.model_validate(json.loads(event.to_json_line()))
        assert restored.event_id == event.event_id
        assert restored.event_type == event.event_type

    def test_creditor_mismatch_is_critical(self):
        event = AuditEventBuilder.creditor_mismatch("a.json", "b.json", "mismatch", uuid4())
        assert event.severity == AuditSeverity.CRITICAL
        assert event.details == {"first_file": "a.json", "other_file": "b.json"}

    def test_conversion_fallback_is_warning(self):
        event = AuditEventBuilder.conversion_fallback("2503-001", "GBP", "No rate", uuid4())
        assert event.severity == AuditSeverity.WARNING
        assert event.entity_ref == "2503-001"
