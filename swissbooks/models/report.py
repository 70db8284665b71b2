"""
Report Models

The yearly report: revenue per currency, the CHF total for tax filing,
monthly and per-client breakdowns, and one summary line per invoice.

A Report is built once by the FinancialAggregator and is read-only
afterwards. Renderers only read from it.

INVARIANTS (checked by the tests, not at runtime):
- sum(client.total_billed_chf) == total_revenue_chf (within float tolerance)
- sum(month.total_chf) == total_revenue_chf
- invoices are sorted by date ascending
"""

import math
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class MonthSummary(BaseModel):
    """Revenue of one calendar month."""
    model_config = ConfigDict(frozen=True)

    total: float = Field(
        default=0.0,
        ge=0,
        description="Sum of native amounts (mixed currencies)"
    )
    total_chf: float = Field(default=0.0, ge=0)
    by_currency: dict[str, float] = Field(default_factory=dict)


class ClientSummary(BaseModel):
    """
    Revenue billed to one client.

    `currency` is the currency of the most recently processed invoice
    (last write wins). A client billed in several currencies shows only
    the latest one there; `by_currency` carries the full breakdown.
    """
    model_config = ConfigDict(frozen=True)

    total_billed: float = Field(default=0.0, ge=0)
    total_billed_chf: float = Field(default=0.0, ge=0)
    invoice_count: int = Field(default=0, ge=0)
    currency: str
    by_currency: dict[str, float] = Field(default_factory=dict)


class InvoiceSummary(BaseModel):
    """One line of the invoice details table."""
    model_config = ConfigDict(frozen=True)

    date: str = Field(..., description="ISO YYYY-MM-DD, sorts chronologically")
    month: str
    invoice_number: str
    reference: str
    client: str
    amount: float = Field(..., ge=0)
    currency: str
    amount_chf: float = Field(..., ge=0)
    items: int = Field(..., ge=0)
    file_name: str = ""


class QuarterSummary(BaseModel):
    """Revenue of one quarter, derived from the monthly figures."""
    model_config = ConfigDict(frozen=True)

    quarter: int = Field(..., ge=1, le=4)
    total_chf: float = Field(default=0.0, ge=0)
    by_currency: dict[str, float] = Field(default_factory=dict)

    @property
    def label(self) -> str:
        return f"Q{self.quarter}"


class ConversionWarning(BaseModel):
    """An invoice whose amount was counted 1:1 because no rate was available."""
    model_config = ConfigDict(frozen=True)

    invoice_number: str
    currency: str
    message: str


class Report(BaseModel):
    """
    Aggregated yearly report.

    Dictionaries keep first-seen insertion order; use the sorted_* views
    for presentation.
    """
    model_config = ConfigDict(frozen=True)

    year: int
    generated_at: datetime = Field(default_factory=datetime.utcnow)
    exchange_rate_date: str = Field(
        ...,
        description="ISO date of the rate snapshot used for CHF figures"
    )
    reporting_currency: str = "CHF"

    company_name: str = ""
    uid: str = ""
    creditor_city: str = ""

    total_revenue: dict[str, float] = Field(
        default_factory=dict,
        description="Native totals per currency, never converted"
    )
    total_revenue_chf: float = Field(default=0.0, ge=0)
    monthly_revenue: dict[str, MonthSummary] = Field(default_factory=dict)
    client_summary: dict[str, ClientSummary] = Field(default_factory=dict)
    invoices: list[InvoiceSummary] = Field(default_factory=list)
    conversion_warnings: list[ConversionWarning] = Field(default_factory=list)

    @property
    def has_multiple_currencies(self) -> bool:
        return len(self.total_revenue) > 1

    @property
    def invoice_count(self) -> int:
        return len(self.invoices)

    def sorted_months(self) -> list[str]:
        return sorted(self.monthly_revenue)

    def sorted_clients(self) -> list[tuple[str, ClientSummary]]:
        """Clients by CHF total, largest first."""
        return sorted(
            self.client_summary.items(),
            key=lambda entry: entry[1].total_billed_chf,
            reverse=True,
        )

    def quarterly_summary(self, today: Optional[date] = None) -> list[QuarterSummary]:
        """
        Group months into quarters.

        For the current year, quarters after the current one are left out.
        Past years always get all four quarters, empty ones included.
        """
        today = today or date.today()
        last_quarter = 4
        if self.year == today.year:
            last_quarter = math.ceil(today.month / 3)

        quarters = []
        for quarter in range(1, last_quarter + 1):
            total_chf = 0.0
            by_currency: dict[str, float] = {}
            for month in self.sorted_months():
                if math.ceil(int(month) / 3) != quarter:
                    continue
                summary = self.monthly_revenue[month]
                total_chf += summary.total_chf
                for currency, amount in summary.by_currency.items():
                    by_currency[currency] = by_currency.get(currency, 0.0) + amount
            quarters.append(
                QuarterSummary(
                    quarter=quarter,
                    total_chf=total_chf,
                    by_currency=by_currency,
                )
            )
        return quarters
