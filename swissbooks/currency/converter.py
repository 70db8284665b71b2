"""
Currency Conversion

An ExchangeRateTable maps currency codes to "CHF per one unit" multipliers.
It is fetched once per run and shared read-only, so every invoice in a
report is priced against the same snapshot.

Conversion is plain float arithmetic with no intermediate rounding.
Rounding is a display concern and happens in the report renderer.
"""

from collections.abc import Mapping
from datetime import datetime
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


BASE_CURRENCY = "CHF"


class CurrencyError(Exception):
    """Base exception for currency errors."""
    pass


class MissingRateError(CurrencyError):
    """The rate table has no usable entry for a currency."""

    def __init__(self, from_currency: str, to_currency: str):
        self.from_currency = from_currency
        self.to_currency = to_currency
        super().__init__(
            f"No conversion rate available for {from_currency} to {to_currency}"
        )


class ExchangeRateTable(BaseModel):
    """
    Snapshot of currency -> CHF multipliers.

    The model is frozen; treat `rates` as read-only too; use
    `as_dict()` when a mutable copy is needed.
    """
    model_config = ConfigDict(frozen=True)

    rates: dict[str, float] = Field(
        ...,
        description="CHF value of one unit of each currency"
    )
    fetched_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the snapshot was taken"
    )
    source: str = Field(
        default="static",
        description="Where the rates came from"
    )

    @field_validator("rates", mode="before")
    @classmethod
    def normalize_rates(cls, v: Any) -> dict[str, float]:
        """Uppercase codes, require positive rates, pin CHF to 1."""
        if not isinstance(v, Mapping):
            raise ValueError("rates must be a mapping of currency code to number")

        normalized: dict[str, float] = {}
        for code, rate in v.items():
            code = str(code).strip().upper()
            if isinstance(rate, bool) or not isinstance(rate, (int, float)):
                raise ValueError(f"Rate for {code} is not a number: {rate!r}")
            if rate <= 0:
                raise ValueError(f"Rate for {code} must be positive, got {rate}")
            normalized[code] = float(rate)

        if normalized.get(BASE_CURRENCY, 1.0) != 1.0:
            raise ValueError(f"{BASE_CURRENCY} rate must be 1")
        normalized[BASE_CURRENCY] = 1.0

        return normalized

    def __getitem__(self, currency: str) -> float:
        return self.rates[currency]

    def __contains__(self, currency: object) -> bool:
        return currency in self.rates

    def get(self, currency: str, default: Optional[float] = None) -> Optional[float]:
        return self.rates.get(currency, default)

    def as_dict(self) -> dict[str, float]:
        return dict(self.rates)

    @property
    def currencies(self) -> list[str]:
        return sorted(self.rates)

    @property
    def snapshot_date(self) -> str:
        """ISO date of the snapshot, as printed in reports."""
        return self.fetched_at.date().isoformat()


RateSource = Union[ExchangeRateTable, Mapping[str, float]]


def convert(
    amount: float,
    from_currency: str,
    to_currency: str,
    rates: RateSource,
) -> float:
    """
    Convert an amount between two currencies of a rate table.

    Same currency is the identity, even if the table lacks it.
    Otherwise: amount * rates[from] / rates[to].

    Raises:
        MissingRateError: If either currency has no positive rate.
    """
    if from_currency == to_currency:
        return amount

    from_rate = rates.get(from_currency)
    to_rate = rates.get(to_currency)
    if not from_rate or not to_rate:
        raise MissingRateError(from_currency, to_currency)

    amount_in_base = amount * from_rate
    return amount_in_base / to_rate
