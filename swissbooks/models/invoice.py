"""
Invoice Models

These models define the schema of one invoice file and of the invoice
after numbering and totalling.

Invoice file layout (one JSON document per invoice):

    {
      "number": "2503-001",            # optional
      "creditor": {...}, "debtor": {...},
      "columns": ["description", "amount"],
      "items": [{"description": "...", "amount": 100.0, ...}],
      "language": "DE",
      "date": "2025-03-14",            # optional
      "vatRate": 8.1,                  # or null
      "currency": "EUR"                # optional, defaults to CHF
    }

DESIGN DECISION: Records are frozen. A record is created by parsing one
file and never mutated; everything derived from it lives on
ProcessedInvoice.
"""

from datetime import date, timedelta
from enum import Enum
from typing import Any, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)

from swissbooks.references.codec import filename_period, parse_iso_date


PAYMENT_TERM_DAYS = 30
QR_BILL_CURRENCIES = frozenset({"CHF", "EUR"})


class InvoiceLanguage(str, Enum):
    """Languages an invoice (and its QR-bill) can be printed in."""
    DE = "DE"
    EN = "EN"
    FR = "FR"
    IT = "IT"


class Creditor(BaseModel):
    """
    The invoicing business.

    Name and UID identify the legal entity; a yearly report must not
    mix two of them.
    """
    model_config = ConfigDict(
        frozen=True, str_strip_whitespace=True, extra="allow", populate_by_name=True
    )

    name: str = Field(..., min_length=1, description="Legal name")
    uid: str = Field(..., description="Swiss business identification number")
    address: str = ""
    building_number: str = Field(default="", alias="buildingNumber")
    zip: str = ""
    city: str = ""
    country: str = ""
    email: str = ""
    phone: str = ""
    iban: str = ""
    swift: str = ""
    account_name: str = Field(default="", alias="accountName")

    @field_validator("zip", "building_number", mode="before")
    @classmethod
    def coerce_to_str(cls, v: Any) -> Any:
        return str(v) if isinstance(v, int) else v


class Debtor(BaseModel):
    """The client being invoiced."""
    model_config = ConfigDict(
        frozen=True, str_strip_whitespace=True, extra="allow", populate_by_name=True
    )

    name: str = Field(..., min_length=1, description="Client name")
    address: str = ""
    building_number: str = Field(default="", alias="buildingNumber")
    zip: str = ""
    city: str = ""
    country: str = ""

    @field_validator("zip", "building_number", mode="before")
    @classmethod
    def coerce_to_str(cls, v: Any) -> Any:
        return str(v) if isinstance(v, int) else v


class LineItem(BaseModel):
    """
    One row of the invoice table.

    Only description and amount are interpreted. Any further columns
    (hours, rate, date, ...) are kept as extra fields for rendering.
    """
    model_config = ConfigDict(frozen=True, extra="allow")

    description: str = Field(..., description="What was delivered")
    amount: float = Field(..., ge=0, description="Net amount in invoice currency")


class InvoiceRecord(BaseModel):
    """
    One parsed invoice file.

    `source_data` keeps the raw document; invoice numbers are derived
    from its hash.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    creditor: Creditor
    debtor: Debtor
    items: list[LineItem] = Field(default_factory=list)
    columns: list[str] = Field(default_factory=list)
    number: Optional[str] = Field(
        default=None,
        description="Explicit invoice number, used unchanged when present"
    )
    invoice_date: Optional[date] = Field(default=None, alias="date")
    vat_rate: Optional[float] = Field(default=None, ge=0, alias="vatRate")
    currency: str = Field(default="CHF", pattern=r"^[A-Z]{3}$")
    language: InvoiceLanguage = InvoiceLanguage.DE
    source_filename: str = Field(default="", description="File the invoice came from")
    source_data: dict[str, Any] = Field(default_factory=dict, repr=False)

    @field_validator("currency", mode="before")
    @classmethod
    def normalize_currency(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().upper()
        return v

    @field_validator("language", mode="before")
    @classmethod
    def normalize_language(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().upper()
        return v

    @field_validator("number", mode="before")
    @classmethod
    def empty_number_is_none(cls, v: Any) -> Any:
        if v is None:
            return None
        v = str(v).strip()
        return v or None

    @classmethod
    def from_document(
        cls,
        document: dict[str, Any],
        source_filename: str = "",
        default_currency: str = "CHF",
    ) -> "InvoiceRecord":
        """
        Build a record from a decoded invoice file.

        Raises:
            InvalidDateFormatError: If `date` is present but not YYYY-MM-DD.
            pydantic.ValidationError: For any other schema violation.
        """
        payload = dict(document)

        raw_date = payload.get("date")
        payload["date"] = parse_iso_date(raw_date) if raw_date else None

        if not payload.get("currency"):
            payload["currency"] = default_currency

        payload["source_filename"] = source_filename
        payload["source_data"] = document
        return cls.model_validate(payload)

    @property
    def client(self) -> str:
        return self.debtor.name

    @property
    def subtotal(self) -> float:
        """Sum of line-item amounts, before VAT."""
        return sum(item.amount for item in self.items)


class ProcessedInvoice(BaseModel):
    """
    An invoice with its number, payment reference and totals attached.

    Owned by the aggregation run that created it.
    """
    model_config = ConfigDict(frozen=True)

    record: InvoiceRecord
    invoice_number: str
    reference: str = Field(..., description="SCOR (ISO 11649) payment reference")
    invoice_date: date
    subtotal: float = Field(..., ge=0)
    vat_amount: float = Field(..., ge=0)
    total: float = Field(..., ge=0)

    @property
    def currency(self) -> str:
        return self.record.currency

    @property
    def client(self) -> str:
        return self.record.client

    @property
    def file_name(self) -> str:
        return self.record.source_filename

    @property
    def month(self) -> str:
        """
        Two-digit month key, e.g. "03".

        The YYYY-MM prefix of the file name decides the month; the invoice
        date is only used for files without one. A late-dated invoice filed
        as 2025-03-... therefore stays in March.
        """
        period = filename_period(self.file_name)
        if period is not None and 1 <= period[1] <= 12:
            return f"{period[1]:02d}"
        return f"{self.invoice_date.month:02d}"

    @property
    def item_count(self) -> int:
        return len(self.record.items)

    @property
    def due_date(self) -> date:
        return self.invoice_date + timedelta(days=PAYMENT_TERM_DAYS)

    @property
    def qr_bill_eligible(self) -> bool:
        """Swiss QR-bills only carry CHF or EUR amounts."""
        return self.currency in QR_BILL_CURRENCIES
