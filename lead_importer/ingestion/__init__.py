"""Loading uploaded lead spreadsheets and writing import reports."""
from __future__ import annotations

from .exporters import validation_log_to_dataframe, write_reports
from .loaders import (
    HEADER_ALIASES,
    REQUIRED_HEADERS,
    HeaderValidationError,
    UnsupportedFileTypeError,
    check_headers,
    load_raw_leads,
    map_header,
    parse_csv_text,
    template_csv,
)

__all__ = [
    "HEADER_ALIASES",
    "HeaderValidationError",
    "REQUIRED_HEADERS",
    "UnsupportedFileTypeError",
    "check_headers",
    "load_raw_leads",
    "map_header",
    "parse_csv_text",
    "template_csv",
    "validation_log_to_dataframe",
    "write_reports",
]
