"""
Shared fixtures.

Invoices are built as plain dicts, the way they sit in the JSON files,
and turned into records through the same path the loader uses.
"""

import json
from datetime import date

import pytest

from swissbooks.config import AggregationConfig
from swissbooks.models.invoice import InvoiceRecord


CREDITOR = {
    "name": "Muster Consulting GmbH",
    "uid": "CHE-123.456.789",
    "address": "Bahnhofstrasse",
    "buildingNumber": "1",
    "zip": "8001",
    "city": "Zürich",
    "country": "CH",
    "email": "info@muster.ch",
    "phone": "+41 44 000 00 00",
    "iban": "CH4431999123000889012",
    "swift": "POFICHBEXXX",
    "accountName": "Muster Consulting GmbH",
}


def make_document(
    client: str = "Acme AG",
    amounts: tuple = (100.0,),
    currency: str = None,
    invoice_date: str = None,
    number: str = None,
    vat_rate: float = None,
    creditor: dict = None,
) -> dict:
    document = {
        "creditor": dict(creditor or CREDITOR),
        "debtor": {
            "name": client,
            "address": "Hauptstrasse",
            "buildingNumber": "5",
            "zip": "3000",
            "city": "Bern",
            "country": "CH",
        },
        "columns": ["description", "amount"],
        "items": [
            {"description": f"Work package {i + 1}", "amount": amount}
            for i, amount in enumerate(amounts)
        ],
        "language": "DE",
        "vatRate": vat_rate,
    }
    if currency is not None:
        document["currency"] = currency
    if invoice_date is not None:
        document["date"] = invoice_date
    if number is not None:
        document["number"] = number
    return document


def make_record(source_filename: str = "2025-03-acme.json", **kwargs) -> InvoiceRecord:
    return InvoiceRecord.from_document(make_document(**kwargs), source_filename=source_filename)


@pytest.fixture
def config():
    """Aggregation config pinned to the end of 2025."""
    return AggregationConfig(today=date(2025, 12, 31))


@pytest.fixture
def rates():
    return {"CHF": 1.0, "EUR": 1.05}


@pytest.fixture
def write_invoice(tmp_path):
    """Write an invoice document into tmp_path/invoices and return its path."""
    invoices_dir = tmp_path / "invoices"
    invoices_dir.mkdir()

    def _write(file_name: str, document):
        path = invoices_dir / file_name
        if isinstance(document, str):
            path.write_text(document, encoding="utf-8")
        else:
            path.write_text(json.dumps(document), encoding="utf-8")
        return path

    _write.directory = invoices_dir
    return _write
