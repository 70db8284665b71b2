"""
Streamlit Frontend for Swissbooks

Two tasks:
1. Yearly report: pick a year and an invoice folder, get the Markdown
   Buchfuehrung report in German and/or English
2. Invoice reference: drop in one invoice file, see the invoice number,
   SCOR payment reference, totals and due date that go on its QR-bill

DESIGN PRINCIPLES:
1. Fatal problems are shown as errors and nothing is written
2. Conversion fallbacks are shown as warnings next to the figures
3. Nothing happens without an explicit button press
"""

import asyncio
import json
from datetime import date

import streamlit as st

from swissbooks.aggregation import CreditorMismatchError
from swissbooks.audit import create_correlation_id
from swissbooks.config import get_settings
from swissbooks.invoices import InvoiceLoadError
from swissbooks.models.invoice import InvoiceRecord
from swissbooks.orchestrator import BookkeepingFlow, create_app_components
from swissbooks.references import (
    InvalidDateFormatError,
    InvalidReferenceInputError,
)
from swissbooks.reports import format_amount, format_date
from swissbooks.services.exchange_rates import ExchangeRateError
from swissbooks.services.storage import StorageError


st.set_page_config(
    page_title="Swissbooks",
    page_icon="🧾",
    layout="wide",
    initial_sidebar_state="expanded",
)


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@st.cache_resource
def get_flow() -> BookkeepingFlow:
    """Get or create the report flow (cached)."""
    return create_app_components()


def main():
    """Main application entry point."""
    flow = get_flow()

    st.sidebar.title("🧾 Swissbooks")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigate to:",
        ["📊 Yearly Report", "🔢 Invoice Reference", "⚙️ Settings"],
        index=0,
    )

    st.sidebar.markdown("---")
    st.sidebar.markdown(
        """
        **Invoice files** are named `YYYY-MM-<client>.json`.

        All invoices of a year must be issued by the same
        company (name and UID).
        """
    )

    if page == "📊 Yearly Report":
        render_report_page(flow)
    elif page == "🔢 Invoice Reference":
        render_reference_page(flow)
    elif page == "⚙️ Settings":
        render_settings_page()


def render_report_page(flow: BookkeepingFlow):
    """Render the yearly report page."""
    st.title("📊 Yearly Report")

    settings = get_settings().report

    col1, col2 = st.columns([1, 3])
    with col1:
        year = st.number_input(
            "Year",
            min_value=2000,
            max_value=2100,
            value=date.today().year,
            step=1,
        )
    with col2:
        invoices_dir = st.text_input("Invoices folder", value=str(settings.invoices_dir))

    languages = st.multiselect(
        "Languages",
        options=["de", "en"],
        default=settings.languages_list,
    )

    if not st.button("Generate report", type="primary"):
        return

    if not languages:
        st.error("Select at least one language.")
        return

    try:
        with st.spinner("Fetching exchange rates and aggregating invoices..."):
            report, rendered, written = run_async(
                flow.generate_report(
                    int(year),
                    invoices_dir,
                    languages=languages,
                    correlation_id=create_correlation_id(),
                )
            )
    except ExchangeRateError as e:
        st.error(f"❌ {e}\n\nCannot proceed without exchange rates for tax reporting.")
        return
    except CreditorMismatchError as e:
        st.error(f"❌ {e}")
        return
    except (InvoiceLoadError, InvalidDateFormatError, InvalidReferenceInputError) as e:
        st.error(f"❌ Invoice file problem: {e}")
        return
    except FileNotFoundError as e:
        st.error(f"❌ {e}")
        return
    except StorageError as e:
        st.error(f"❌ Report could not be saved: {e}")
        return

    if report.invoice_count == 0:
        st.warning(f"No invoices found for year {int(year)}.")
        return

    for warning in report.conversion_warnings:
        st.warning(
            f"⚠️ {warning.invoice_number}: {warning.message}. "
            f"Counted 1:1 in {report.reporting_currency}."
        )

    chf = report.reporting_currency
    metric_cols = st.columns(3)
    metric_cols[0].metric("Invoices", report.invoice_count)
    metric_cols[1].metric(f"Total ({chf})", format_amount(report.total_revenue_chf, chf))
    metric_cols[2].metric("Currencies", ", ".join(report.total_revenue))

    st.markdown("### Quarters")
    st.table([
        {
            "Quarter": quarter.label,
            "Amount": ", ".join(
                format_amount(amount, currency)
                for currency, amount in quarter.by_currency.items()
            ) or "-",
            chf: f"{quarter.total_chf:.2f}",
        }
        for quarter in report.quarterly_summary(flow.aggregator.config.current_date())
    ])

    st.markdown("### Clients")
    st.table([
        {
            "Client": name,
            "Invoices": summary.invoice_count,
            "Billed": format_amount(summary.total_billed, summary.currency),
            chf: f"{summary.total_billed_chf:.2f}",
        }
        for name, summary in report.sorted_clients()
    ])

    st.markdown("### Invoices")
    st.dataframe([
        {
            "Date": format_date(line.date),
            "Invoice #": line.invoice_number,
            "Reference": line.reference,
            "Client": line.client,
            "Amount": format_amount(line.amount, line.currency),
            chf: f"{line.amount_chf:.2f}",
            "Items": line.items,
        }
        for line in report.invoices
    ])

    for language, location in written.items():
        st.success(f"✅ {language.upper()} report saved to `{location}`")

    for language, content in rendered.items():
        st.download_button(
            f"Download {language.upper()} report",
            data=content,
            file_name=f"buchfuehrung-{report.year}-{language}.md",
            mime="text/markdown",
            key=f"download-{language}",
        )


def render_reference_page(flow: BookkeepingFlow):
    """Show number, reference and totals for a single invoice file."""
    st.title("🔢 Invoice Reference")

    uploaded = st.file_uploader("Invoice file (.json)", type=["json"])
    if uploaded is None:
        return

    try:
        document = json.loads(uploaded.getvalue().decode("utf-8"))
        record = InvoiceRecord.from_document(document, source_filename=uploaded.name)
        invoice = flow.aggregator.process_invoice(record)
    except ValueError as e:
        st.error(f"❌ {e}")
        return

    st.markdown(f"**Invoice number:** `{invoice.invoice_number}`")
    st.markdown(f"**Payment reference:** `{invoice.reference}`")
    st.markdown(f"**Client:** {invoice.client}")
    st.markdown(f"**Date:** {format_date(invoice.invoice_date)}")
    st.markdown(f"**Due date:** {format_date(invoice.due_date)}")
    st.markdown(f"**Subtotal:** {format_amount(invoice.subtotal, invoice.currency)}")
    if record.vat_rate:
        st.markdown(
            f"**VAT ({record.vat_rate}%):** "
            f"{format_amount(invoice.vat_amount, invoice.currency)}"
        )
    st.markdown(f"**Total:** {format_amount(invoice.total, invoice.currency)}")

    if invoice.qr_bill_eligible:
        st.info("QR-bill can be attached (CHF/EUR).")
    else:
        st.info(
            f"QR-bills do not support {invoice.currency}; "
            "print IBAN, SWIFT and the reference as payment details instead."
        )


def render_settings_page():
    """Render the settings page."""
    st.title("⚙️ Settings")

    st.markdown("### Configuration Status")

    from swissbooks.config import validate_all_settings

    status = validate_all_settings()

    sections = [
        ("Exchange rates", "exchange_rates"),
        ("Reports", "report"),
        ("Application", "app"),
    ]

    for name, key in sections:
        if status.get(key, False):
            st.success(f"✅ {name} - OK")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.error(f"❌ {name} - {error}")

    st.markdown("---")
    st.markdown("### Configuration")
    st.markdown(
        "Configure the application through environment variables or a `.env` "
        "file: `REPORT_INVOICES_DIR`, `REPORT_REPORTS_DIR`, `REPORT_LANGUAGES`, "
        "`EXCHANGE_RATE_API_URL`, `EXCHANGE_RATE_TIMEOUT_SECONDS`."
    )


if __name__ == "__main__":
    main()
