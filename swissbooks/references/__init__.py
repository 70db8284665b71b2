"""Invoice numbering and structured payment references."""

from swissbooks.references.codec import (
    InvalidDateFormatError,
    InvalidReferenceInputError,
    ReferenceCodecError,
    canonical_serialization,
    derive_invoice_number,
    filename_period,
    generate_structured_reference,
    hash_suffix,
    is_valid_structured_reference,
    parse_iso_date,
)

__all__ = [
    "InvalidDateFormatError",
    "InvalidReferenceInputError",
    "ReferenceCodecError",
    "canonical_serialization",
    "derive_invoice_number",
    "filename_period",
    "generate_structured_reference",
    "hash_suffix",
    "is_valid_structured_reference",
    "parse_iso_date",
]
