"""
Markdown Report Renderer

Renders a Report as the yearly "Buchfuehrung" document in German or
English: revenue summary, quarterly table, invoice details, notes and a
signature block.

Amounts are rounded to two decimals here and only here; the Report
itself carries unrounded floats.
"""

from datetime import date, datetime
from typing import Optional, Union

from swissbooks.config import AggregationConfig
from swissbooks.models.report import Report


MONTH_NAMES = {
    "en": [
        "January", "February", "March", "April", "May", "June",
        "July", "August", "September", "October", "November", "December",
    ],
    "de": [
        "Januar", "Februar", "März", "April", "Mai", "Juni",
        "Juli", "August", "September", "Oktober", "November", "Dezember",
    ],
}

REPORT_TEXTS = {
    "en": {
        "generated_label": "Generated",
        "revenue_title": "Revenue Summary",
        "total_revenue": "Total Revenue",
        "approximated_total": "Approximated Total (CHF)",
        "quarterly_title": "Quarterly Summary",
        "quarter": "Quarter",
        "original_currencies": "Amount",
        "chf_value": "CHF Value",
        "invoice_details_title": "Invoice Details",
        "date": "Date",
        "invoice_number": "Invoice #",
        "client": "Client",
        "amount": "Amount",
        "items": "Items",
        "notes_title": "Notes",
        "exchange_rates_note": "Exchange rates obtained from `{source}` on",
        "fallback_note": "No exchange rate was available for {currencies}; counted 1:1 in CHF",
        "rounding_note": "All amounts are rounded to the nearest cent",
        "none": "None",
        "signature_title": "Signature",
    },
    "de": {
        "generated_label": "Generiert am",
        "revenue_title": "Umsatzübersicht",
        "total_revenue": "Gesamtumsatz",
        "approximated_total": "Ungefährer Gesamtbetrag",
        "quarterly_title": "Quartalsübersicht",
        "quarter": "Quartal",
        "original_currencies": "Betrag",
        "chf_value": "CHF-Wert",
        "invoice_details_title": "Rechnungsdetails",
        "date": "Datum",
        "invoice_number": "Rechnung #",
        "client": "Kunde",
        "amount": "Betrag",
        "items": "Positionen",
        "notes_title": "Hinweise",
        "exchange_rates_note": "Wechselkurse bezogen von `{source}` am",
        "fallback_note": "Für {currencies} war kein Wechselkurs verfügbar; 1:1 in CHF gerechnet",
        "rounding_note": "Alle Beträge sind auf den nächsten Rappen gerundet",
        "none": "Keine",
        "signature_title": "Unterschrift",
    },
}


class UnsupportedLanguageError(ValueError):
    """No report texts exist for the requested language."""
    pass


def format_amount(amount: float, currency: str) -> str:
    return f"{amount:.2f} {currency}"


def format_date(value: Union[str, date, datetime]) -> str:
    """DD.MM.YYYY, the Swiss way."""
    if isinstance(value, datetime):
        value = value.date()
    elif isinstance(value, str):
        value = date.fromisoformat(value[:10])
    return value.strftime("%d.%m.%Y")


def format_month(iso_date: str, language: str) -> str:
    """'März 2025' / 'March 2025' for an ISO date."""
    parsed = date.fromisoformat(iso_date[:10])
    return f"{MONTH_NAMES[language][parsed.month - 1]} {parsed.year}"


class MarkdownReportRenderer:
    """
    Turns a Report into a localized Markdown document.

    The renderer takes the same AggregationConfig as the aggregator so
    the "today" used for future-quarter suppression and the signature
    date is the same one used when the report was built.
    """

    def __init__(
        self,
        config: Optional[AggregationConfig] = None,
        rate_source: str = "open.er-api.com",
    ):
        self._config = config or AggregationConfig()
        self._rate_source = rate_source

    def render(self, report: Report, language: str) -> str:
        language = language.lower()
        if language not in REPORT_TEXTS:
            raise UnsupportedLanguageError(
                f"Unsupported report language: {language}. "
                f"Supported: {sorted(REPORT_TEXTS)}"
            )
        t = REPORT_TEXTS[language]
        today = self._config.current_date()

        sections = [
            self._header(report, t, today),
            self._revenue_section(report, t),
            self._quarterly_section(report, t, today),
            self._invoice_section(report, t, language),
            self._notes_section(report, t),
            self._signature_section(report, t, today),
        ]
        return "\n\n".join(sections) + "\n"

    def _header(self, report: Report, t: dict, today: date) -> str:
        company = report.company_name or "Company"
        return "\n".join([
            f"# {company} - Buchführung {report.year}",
            "",
            f"*{t['generated_label']}: {format_date(today)}*  ",
            f"*UID: {report.uid}*  ",
        ])

    def _revenue_section(self, report: Report, t: dict) -> str:
        lines = [f"## {t['revenue_title']}", "", f"**{t['total_revenue']}:**"]
        if report.total_revenue:
            lines.extend(
                f"- {format_amount(amount, currency)}"
                for currency, amount in report.total_revenue.items()
            )
        else:
            lines.append(f"- {t['none']}")

        if report.has_multiple_currencies:
            lines.append("")
            lines.append(
                f"**{t['approximated_total']}**: "
                f"{format_amount(report.total_revenue_chf, report.reporting_currency)}"
            )
        return "\n".join(lines)

    def _quarterly_section(self, report: Report, t: dict, today: date) -> str:
        chf = report.reporting_currency
        multi = report.has_multiple_currencies

        if multi:
            header = f"| {t['quarter']} | {t['original_currencies']} | {t['chf_value']} |"
            divider = "|---------|---------------------|-----------|"
        else:
            header = f"| {t['quarter']} | {t['total_revenue']} |"
            divider = "|---------|-----------|"

        rows = []
        for quarter in report.quarterly_summary(today):
            currency_text = ", ".join(
                format_amount(amount, currency)
                for currency, amount in quarter.by_currency.items()
            )
            if multi:
                rows.append(
                    f"| {quarter.label} | {currency_text or t['none']} | "
                    f"{format_amount(quarter.total_chf, chf)} |"
                )
            else:
                rows.append(
                    f"| {quarter.label} | "
                    f"{currency_text or format_amount(quarter.total_chf, chf)} |"
                )

        return "\n".join([f"## {t['quarterly_title']}", "", header, divider, *rows])

    def _invoice_section(self, report: Report, t: dict, language: str) -> str:
        chf = report.reporting_currency
        multi = report.has_multiple_currencies

        columns = [t["date"], t["invoice_number"], t["client"], t["amount"]]
        if multi:
            columns.append(t["chf_value"])
        columns.append(t["items"])

        header = "| " + " | ".join(columns) + " |"
        divider = "|" + "|".join("------" for _ in columns) + "|"

        rows = []
        for line in report.invoices:
            cells = [
                format_month(line.date, language),
                line.invoice_number,
                line.client,
                format_amount(line.amount, line.currency),
            ]
            if multi:
                cells.append(format_amount(line.amount_chf, chf))
            cells.append(str(line.items))
            rows.append("| " + " | ".join(cells) + " |")

        return "\n".join([f"## {t['invoice_details_title']}", "", header, divider, *rows])

    def _notes_section(self, report: Report, t: dict) -> str:
        lines = [f"## {t['notes_title']}", ""]
        if report.has_multiple_currencies:
            note = t["exchange_rates_note"].format(source=self._rate_source)
            lines.append(f"- {note} {format_date(report.exchange_rate_date)}")
        if report.conversion_warnings:
            currencies = ", ".join(sorted({w.currency for w in report.conversion_warnings}))
            lines.append(f"- {t['fallback_note'].format(currencies=currencies)}")
        lines.append(f"- {t['rounding_note']}")
        return "\n".join(lines)

    def _signature_section(self, report: Report, t: dict, today: date) -> str:
        place = f"{report.creditor_city}, " if report.creditor_city else ""
        return "\n".join([
            f"## {t['signature_title']}",
            "",
            f"{place}{format_date(today)}",
            "",
            "&nbsp;  ",
            "&nbsp;  ",
            "",
            report.company_name,
        ])
