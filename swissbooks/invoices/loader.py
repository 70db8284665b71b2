"""
Invoice File Loader

Finds the invoice files of a year (YYYY-MM-<client>.json) and turns each
into an InvoiceRecord. A file that cannot be read or does not match the
invoice schema raises InvoiceLoadError naming the file; an unparseable
date raises InvalidDateFormatError so callers can tell the two apart.
"""

import json
from pathlib import Path
from typing import Union

from pydantic import ValidationError

from swissbooks.models.invoice import InvoiceRecord
from swissbooks.references.codec import InvalidDateFormatError


class InvoiceLoadError(Exception):
    """An invoice file could not be loaded."""

    def __init__(self, file_name: str, message: str):
        self.file_name = file_name
        super().__init__(f"{file_name}: {message}")


def list_invoice_files(directory: Union[str, Path], year: int) -> list[Path]:
    """
    Invoice files of one year, sorted by name.

    Raises:
        FileNotFoundError: If the directory does not exist.
    """
    directory = Path(directory)
    if not directory.is_dir():
        raise FileNotFoundError(f"Invoices directory not found: {directory}")

    return sorted(
        path for path in directory.glob(f"{year}-*.json")
        if path.is_file()
    )


def load_invoice_file(
    path: Union[str, Path],
    default_currency: str = "CHF",
) -> InvoiceRecord:
    """Read and validate one invoice file."""
    path = Path(path)

    try:
        document = json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise InvoiceLoadError(path.name, f"cannot read file: {e}") from e
    except json.JSONDecodeError as e:
        raise InvoiceLoadError(path.name, f"invalid JSON: {e}") from e

    if not isinstance(document, dict):
        raise InvoiceLoadError(path.name, "expected a JSON object at the top level")

    try:
        return InvoiceRecord.from_document(
            document,
            source_filename=path.name,
            default_currency=default_currency,
        )
    except InvalidDateFormatError as e:
        e.file_name = path.name
        raise
    except ValidationError as e:
        raise InvoiceLoadError(path.name, f"invalid invoice data: {e}") from e


def load_invoices(
    directory: Union[str, Path],
    year: int,
    default_currency: str = "CHF",
) -> list[InvoiceRecord]:
    """Load every invoice file of a year. The first bad file aborts."""
    return [
        load_invoice_file(path, default_currency=default_currency)
        for path in list_invoice_files(directory, year)
    ]
