"""
Tests for currency conversion and rate tables.
"""

from datetime import datetime

import pytest

from swissbooks.currency import (
    ExchangeRateTable,
    MissingRateError,
    convert,
)


class TestConvert:
    """Tests for convert()."""

    def test_same_currency_is_identity(self):
        assert convert(123.456, "USD", "USD", {}) == 123.456

    def test_to_base_currency(self, rates):
        assert convert(50, "EUR", "CHF", rates) == pytest.approx(52.5)

    def test_from_base_currency(self, rates):
        assert convert(105, "CHF", "EUR", rates) == pytest.approx(100)

    def test_cross_rate(self):
        rates = {"CHF": 1.0, "EUR": 0.95, "USD": 0.88}
        assert convert(100, "EUR", "USD", rates) == pytest.approx(100 * 0.95 / 0.88)

    def test_round_trip(self, rates):
        there = convert(77.7, "EUR", "CHF", rates)
        assert convert(there, "CHF", "EUR", rates) == pytest.approx(77.7)

    def test_no_rounding(self):
        rates = {"CHF": 1.0, "USD": 0.8765432}
        assert convert(1, "USD", "CHF", rates) == 0.8765432

    def test_missing_rate(self, rates):
        with pytest.raises(MissingRateError) as exc_info:
            convert(10, "GBP", "CHF", rates)
        assert str(exc_info.value) == "No conversion rate available for GBP to CHF"
        assert exc_info.value.from_currency == "GBP"

    def test_zero_rate_counts_as_missing(self):
        with pytest.raises(MissingRateError):
            convert(10, "EUR", "CHF", {"CHF": 1.0, "EUR": 0})

    def test_works_with_rate_table(self, rates):
        table = ExchangeRateTable(rates=rates)
        assert convert(50, "EUR", "CHF", table) == pytest.approx(52.5)


class TestExchangeRateTable:
    """Tests for the ExchangeRateTable model."""

    def test_codes_are_uppercased(self):
        table = ExchangeRateTable(rates={"eur": 1.05})
        assert "EUR" in table
        assert table["EUR"] == 1.05

    def test_base_currency_is_added(self):
        table = ExchangeRateTable(rates={"EUR": 1.05})
        assert table["CHF"] == 1.0
        assert table.currencies == ["CHF", "EUR"]

    def test_base_currency_must_be_one(self):
        with pytest.raises(ValueError):
            ExchangeRateTable(rates={"CHF": 2.0})

    @pytest.mark.parametrize("rate", [0, -1.2, "1.05", None, True])
    def test_rejects_invalid_rates(self, rate):
        with pytest.raises(ValueError):
            ExchangeRateTable(rates={"EUR": rate})

    def test_is_frozen(self):
        table = ExchangeRateTable(rates={"EUR": 1.05})
        with pytest.raises(ValueError):
            table.source = "other"

    def test_as_dict_is_a_copy(self):
        table = ExchangeRateTable(rates={"EUR": 1.05})
        copy = table.as_dict()
        copy["EUR"] = 2.0
        assert table["EUR"] == 1.05

    def test_snapshot_date(self):
        table = ExchangeRateTable(rates={}, fetched_at=datetime(2025, 3, 14, 9, 30))
        assert table.snapshot_date == "2025-03-14"
        assert table.get("USD") is None
