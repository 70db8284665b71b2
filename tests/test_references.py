"""
Tests for invoice numbering and SCOR references.
"""

import re
from datetime import date

import pytest

from swissbooks.references import (
    InvalidDateFormatError,
    InvalidReferenceInputError,
    derive_invoice_number,
    filename_period,
    generate_structured_reference,
    hash_suffix,
    is_valid_structured_reference,
    parse_iso_date,
)


class TestStructuredReference:
    """Tests for ISO 11649 reference generation."""

    def test_known_reference(self):
        """Reference from the ISO 11649 standard."""
        assert generate_structured_reference("539007547034") == "RF18539007547034"

    def test_letters_are_mapped(self):
        """A=10, 1 stays 1: "A1" -> 101 followed by RF00 -> check 90."""
        assert generate_structured_reference("A1") == "RF90A1"

    def test_non_alphanumerics_are_dropped(self):
        assert generate_structured_reference("2503-123").endswith("2503123")
        assert generate_structured_reference("25 03/123") == generate_structured_reference("2503123")

    def test_check_digits_are_two_digits_in_range(self):
        for number in ["1", "2503-001", "INV-2025-XYZ", "999999999999999999"]:
            reference = generate_structured_reference(number)
            assert reference.startswith("RF")
            check = int(reference[2:4])
            assert 2 <= check <= 98

    def test_generated_references_validate(self):
        for number in ["2503-001", "A1", "539007547034", "abc-42"]:
            assert is_valid_structured_reference(generate_structured_reference(number))

    def test_rejects_input_without_alphanumerics(self):
        with pytest.raises(InvalidReferenceInputError):
            generate_structured_reference("---")
        with pytest.raises(InvalidReferenceInputError):
            generate_structured_reference("")

    def test_error_is_a_value_error(self):
        with pytest.raises(ValueError):
            generate_structured_reference(" / ")


class TestReferenceValidation:
    """Tests for is_valid_structured_reference."""

    def test_accepts_spaced_reference(self):
        assert is_valid_structured_reference("RF18 5390 0754 7034")

    def test_rejects_wrong_check_digits(self):
        assert not is_valid_structured_reference("RF19539007547034")

    def test_rejects_malformed(self):
        assert not is_valid_structured_reference("")
        assert not is_valid_structured_reference("RF1")
        assert not is_valid_structured_reference("XX18539007547034")
        assert not is_valid_structured_reference("RF18-539007547034")
        assert not is_valid_structured_reference("RF18" + "1" * 30)


class TestInvoiceNumber:
    """Tests for invoice number derivation."""

    DATA = {"items": [{"description": "Consulting", "amount": 100}], "debtor": {"name": "Acme"}}

    def test_explicit_number_wins(self):
        assert derive_invoice_number("INV-7", "2025-03-acme.json", self.DATA) == "INV-7"

    def test_prefix_from_filename(self):
        number = derive_invoice_number(None, "2025-03-acme.json", self.DATA)
        assert re.fullmatch(r"2503-\d{3}", number)

    def test_filename_with_directory(self):
        number = derive_invoice_number(None, "invoices/2024-11-client.json", self.DATA)
        assert number.startswith("2411-")

    def test_prefix_from_today_without_period(self):
        number = derive_invoice_number(None, "acme.json", self.DATA, today=date(2026, 1, 15))
        assert re.fullmatch(r"2601-\d{3}", number)

    def test_deterministic(self):
        first = derive_invoice_number(None, "2025-03-acme.json", self.DATA)
        second = derive_invoice_number(None, "2025-03-acme.json", dict(self.DATA))
        assert first == second

    def test_suffix_independent_of_key_order(self):
        reordered = {"debtor": {"name": "Acme"}, "items": [{"amount": 100, "description": "Consulting"}]}
        assert hash_suffix(self.DATA) == hash_suffix(reordered)

    def test_suffix_depends_on_content(self):
        suffixes = {
            hash_suffix({"items": [{"amount": amount}]})
            for amount in range(20)
        }
        assert len(suffixes) > 1

    def test_known_number_and_reference(self):
        """Pins the hash input: sorted keys, compact separators, raw UTF-8."""
        document = {
            "vatRate": None,
            "items": [{"description": "Beratung", "amount": 100.0}],
            "debtor": {"name": "Acme AG", "city": "Zürich"},
        }
        number = derive_invoice_number(None, "2025-03-acme.json", document)

        assert number == "2503-705"
        assert generate_structured_reference(number) == "RF452503705"

    def test_suffix_is_three_digits(self):
        assert re.fullmatch(r"\d{3}", hash_suffix({}))


class TestDates:
    """Tests for date parsing helpers."""

    def test_parse_iso_date(self):
        assert parse_iso_date("2025-03-14") == date(2025, 3, 14)

    def test_parse_iso_date_ignores_time(self):
        assert parse_iso_date("2025-03-14T10:30:00") == date(2025, 3, 14)

    @pytest.mark.parametrize("value", ["14.03.2025", "2025-3-14", "2025-02-30", "tomorrow", "", 20250314])
    def test_parse_iso_date_rejects(self, value):
        with pytest.raises(InvalidDateFormatError) as exc_info:
            parse_iso_date(value)
        assert "yyyy-mm-dd" in str(exc_info.value)

    def test_filename_period(self):
        assert filename_period("2025-03-acme.json") == (2025, 3)
        assert filename_period("acme.json") is None
        assert filename_period(None) is None
