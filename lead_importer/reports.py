"""Render the per-row validation log into downloadable report text."""
from __future__ import annotations

import json
from typing import Iterable, List

from .models import ImportReports, RowAuditLog

VALIDATION_LOG_HEADERS = ("Row Number", "Status", "Fixes Applied", "Warnings", "Errors")


def _quote(cell: object) -> str:
    # Embedded quotes are not escaped.
    return f'"{cell}"'


def validation_log_csv(logs: Iterable[RowAuditLog]) -> str:
    """Return the validation log as CSV text with every cell quoted."""

    lines: List[str] = [",".join(_quote(header) for header in VALIDATION_LOG_HEADERS)]
    for entry in logs:
        cells = (
            entry.row_number,
            entry.status.value,
            "; ".join(entry.fixes_applied),
            "; ".join(entry.warnings),
            "; ".join(entry.errors),
        )
        lines.append(",".join(_quote(cell) for cell in cells))
    return "\n".join(lines)


def normalized_payload_jsonl(logs: Iterable[RowAuditLog]) -> str:
    """Return one JSON object per line for every entry carrying normalized data."""

    return "\n".join(
        json.dumps(
            {
                "rowNumber": entry.row_number,
                "status": entry.status.value,
                "normalizedData": entry.normalized_data,
            },
            ensure_ascii=False,
            default=str,
        )
        for entry in logs
        if entry.normalized_data is not None
    )


def build_reports(logs: Iterable[RowAuditLog]) -> ImportReports:
    logs = list(logs)
    return ImportReports(
        validation_log=validation_log_csv(logs),
        normalized_payload=normalized_payload_jsonl(logs),
    )


__all__ = [
    "VALIDATION_LOG_HEADERS",
    "build_reports",
    "normalized_payload_jsonl",
    "validation_log_csv",
]
