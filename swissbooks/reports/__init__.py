"""Report rendering package."""

from swissbooks.reports.markdown import (
    MarkdownReportRenderer,
    UnsupportedLanguageError,
    format_amount,
    format_date,
    format_month,
)

__all__ = [
    "MarkdownReportRenderer",
    "UnsupportedLanguageError",
    "format_amount",
    "format_date",
    "format_month",
]
