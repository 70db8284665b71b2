"""
Reference Codec

Derives invoice numbers and ISO 11649 structured creditor references
(SCOR, "RF" references) used on Swiss QR-bills.

Invoice numbers have the form YYMM-NNN. The YYMM prefix comes from the
invoice file name (YYYY-MM-<client>.json) when it has one, otherwise from
the current date. NNN is derived from a SHA-256 digest of the invoice data,
so re-running over the same file always yields the same number.

DESIGN DECISION: The invoice data is serialized with sorted keys before
hashing. Two logically identical invoices therefore get the same number
no matter in which order their fields were built.
"""

import hashlib
import json
import re
import string
from datetime import date
from pathlib import PurePath
from typing import Any, Optional


FILENAME_PERIOD_PATTERN = re.compile(r"^(\d{4})-(\d{2})")
ISO_DATE_PATTERN = re.compile(r"^(\d{4})-(\d{2})-(\d{2})(?:$|[T ])")
NON_ALPHANUMERIC = re.compile(r"[^A-Za-z0-9]")

SCOR_PREFIX = "RF"
SCOR_CHECK_TEMPLATE = "RF00"
SUFFIX_MODULUS = 1000


class ReferenceCodecError(ValueError):
    """Base exception for numbering and reference errors."""
    pass


class InvalidReferenceInputError(ReferenceCodecError):
    """Input has no letters or digits to build a reference from."""
    pass


class InvalidDateFormatError(ReferenceCodecError):
    """Date string is not a valid YYYY-MM-DD calendar date."""

    def __init__(self, value: Any, file_name: Optional[str] = None):
        self.value = value
        self.file_name = file_name
        super().__init__(
            f"Invalid date format: {value!r}. Please use yyyy-mm-dd format."
        )


def parse_iso_date(value: str) -> date:
    """
    Parse a YYYY-MM-DD date string.

    A trailing time part ("2025-03-14T10:00:00") is tolerated and ignored.
    Raises InvalidDateFormatError for anything else, including
    impossible dates such as 2025-02-30.
    """
    if not isinstance(value, str):
        raise InvalidDateFormatError(value)

    match = ISO_DATE_PATTERN.match(value.strip())
    if not match:
        raise InvalidDateFormatError(value)

    year, month, day = (int(part) for part in match.groups())
    try:
        return date(year, month, day)
    except ValueError as e:
        raise InvalidDateFormatError(value) from e


def filename_period(source_filename: Optional[str]) -> Optional[tuple[int, int]]:
    """Return (year, month) from a YYYY-MM-... file name, if it has that prefix."""
    if not source_filename:
        return None
    match = FILENAME_PERIOD_PATTERN.match(PurePath(source_filename).name)
    if not match:
        return None
    return int(match.group(1)), int(match.group(2))


def canonical_serialization(invoice_data: Any) -> str:
    """Compact JSON with sorted keys; the input to the numbering hash."""
    return json.dumps(
        invoice_data,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        default=str,
    )


def hash_suffix(invoice_data: Any) -> str:
    """
    Three-digit suffix for an invoice number.

    First 8 hex characters of the SHA-256 digest, read as an integer,
    modulo 1000, zero-padded.
    """
    digest = hashlib.sha256(
        canonical_serialization(invoice_data).encode("utf-8")
    ).hexdigest()
    return f"{int(digest[:8], 16) % SUFFIX_MODULUS:03d}"


def derive_invoice_number(
    explicit_number: Optional[str],
    source_filename: Optional[str],
    invoice_data: Any,
    today: Optional[date] = None,
) -> str:
    """
    Assign the invoice number.

    Args:
        explicit_number: Number given in the invoice file. Always wins,
                         returned unchanged.
        source_filename: File the invoice was loaded from.
        invoice_data: Raw invoice document, hashed for the suffix.
        today: Date used when the file name carries no period.

    Returns:
        "YYMM-NNN", or the explicit number.
    """
    if explicit_number:
        return explicit_number

    period = filename_period(source_filename)
    if period is None:
        current = today or date.today()
        period = (current.year, current.month)

    year, month = period
    prefix = f"{year % 100:02d}{month:02d}"
    return f"{prefix}-{hash_suffix(invoice_data)}"


def _letters_to_digits(text: str) -> str:
    """Replace each letter with its ISO 11649 value (A=10 ... Z=35)."""
    return "".join(
        char if char in string.digits else str(ord(char) - 55)
        for char in text.upper()
    )


def generate_structured_reference(invoice_number: str) -> str:
    """
    Build the SCOR reference for an invoice number.

    Non-alphanumeric characters are dropped, "RF00" is appended to the
    letter-mapped payload, and the check digits are 98 minus the value
    mod 97. Python ints are arbitrary precision, so long payloads are fine.

    Example:
        >>> generate_structured_reference("539007547034")
        'RF18539007547034'
    """
    clean = NON_ALPHANUMERIC.sub("", invoice_number or "")
    if not clean:
        raise InvalidReferenceInputError(
            f"Cannot build a structured reference from {invoice_number!r}: "
            "no letters or digits"
        )

    converted = _letters_to_digits(clean)
    numeric = _letters_to_digits(converted + SCOR_CHECK_TEMPLATE)
    remainder = int(numeric) % 97
    check_digits = f"{98 - remainder:02d}"

    return f"{SCOR_PREFIX}{check_digits}{clean}"


def is_valid_structured_reference(reference: str) -> bool:
    """
    Check an RF reference with the ISO 11649 rule.

    Spaces are ignored. The leading "RFnn" is moved to the end, letters
    are mapped to numbers, and the result must be 1 mod 97.
    """
    compact = (reference or "").replace(" ", "").upper()
    if len(compact) < 5 or len(compact) > 25:
        return False
    if not compact.startswith(SCOR_PREFIX) or not compact[2:4].isdigit():
        return False
    if NON_ALPHANUMERIC.search(compact):
        return False

    rearranged = compact[4:] + compact[:4]
    return int(_letters_to_digits(rearranged)) % 97 == 1
