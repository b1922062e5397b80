from .report import (
    ReportData,
    generate_markdown_report,
    label_text,
    report_to_dict,
    write_report,
)
from .formatters import (
    format_currency,
    format_large_number,
    format_percent_change,
    format_volume,
)

__all__ = [
    # Report generation
    "ReportData",
    "generate_markdown_report",
    "label_text",
    "report_to_dict",
    "write_report",
    # Formatting
    "format_currency",
    "format_large_number",
    "format_percent_change",
    "format_volume",
]
