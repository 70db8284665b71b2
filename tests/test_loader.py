"""
Tests for loading invoice files.
"""

import pytest

from swissbooks.invoices import (
    InvoiceLoadError,
    list_invoice_files,
    load_invoice_file,
    load_invoices,
)
from swissbooks.references import InvalidDateFormatError

from conftest import make_document


class TestListInvoiceFiles:
    """Tests for finding a year's invoice files."""

    def test_filters_by_year_and_sorts(self, write_invoice):
        write_invoice("2025-03-beta.json", make_document())
        write_invoice("2025-01-acme.json", make_document())
        write_invoice("2024-12-acme.json", make_document())
        write_invoice("2025-02-notes.txt", "not an invoice")

        files = list_invoice_files(write_invoice.directory, 2025)

        assert [path.name for path in files] == ["2025-01-acme.json", "2025-03-beta.json"]

    def test_missing_directory(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            list_invoice_files(tmp_path / "nowhere", 2025)

    def test_empty_year(self, write_invoice):
        write_invoice("2024-12-acme.json", make_document())
        assert list_invoice_files(write_invoice.directory, 2025) == []


class TestLoadInvoiceFile:
    """Tests for reading one invoice file."""

    def test_loads_record(self, write_invoice):
        path = write_invoice("2025-03-acme.json", make_document(amounts=(100, 20), currency="EUR"))

        record = load_invoice_file(path)

        assert record.source_filename == "2025-03-acme.json"
        assert record.currency == "EUR"
        assert record.subtotal == 120

    def test_default_currency(self, write_invoice):
        path = write_invoice("2025-03-acme.json", make_document())
        assert load_invoice_file(path, default_currency="EUR").currency == "EUR"

    def test_invalid_json(self, write_invoice):
        path = write_invoice("2025-03-acme.json", "{not json")
        with pytest.raises(InvoiceLoadError) as exc_info:
            load_invoice_file(path)
        assert exc_info.value.file_name == "2025-03-acme.json"
        assert "invalid JSON" in str(exc_info.value)

    def test_top_level_must_be_object(self, write_invoice):
        path = write_invoice("2025-03-acme.json", [make_document()])
        with pytest.raises(InvoiceLoadError):
            load_invoice_file(path)

    def test_schema_violation(self, write_invoice):
        path = write_invoice("2025-03-acme.json", make_document(amounts=(-5,)))
        with pytest.raises(InvoiceLoadError, match="invalid invoice data"):
            load_invoice_file(path)

    def test_missing_creditor(self, write_invoice):
        document = make_document()
        del document["creditor"]
        path = write_invoice("2025-03-acme.json", document)
        with pytest.raises(InvoiceLoadError):
            load_invoice_file(path)

    def test_invalid_date_names_file(self, write_invoice):
        path = write_invoice("2025-03-acme.json", make_document(invoice_date="03/14/2025"))
        with pytest.raises(InvalidDateFormatError) as exc_info:
            load_invoice_file(path)
        assert exc_info.value.file_name == "2025-03-acme.json"
        assert exc_info.value.value == "03/14/2025"


class TestLoadInvoices:
    """Tests for loading a whole year."""

    def test_loads_in_file_order(self, write_invoice):
        write_invoice("2025-02-beta.json", make_document(client="Beta"))
        write_invoice("2025-01-acme.json", make_document(client="Acme AG"))

        records = load_invoices(write_invoice.directory, 2025)

        assert [record.client for record in records] == ["Acme AG", "Beta"]

    def test_first_bad_file_aborts(self, write_invoice):
        write_invoice("2025-01-acme.json", make_document())
        write_invoice("2025-02-broken.json", "")
        with pytest.raises(InvoiceLoadError, match="2025-02-broken.json"):
            load_invoices(write_invoice.directory, 2025)
