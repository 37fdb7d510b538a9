"""Write import reports to disk."""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, Sequence, Union

import pandas as pd

from ..models import ImportResult, RowAuditLog
from ..reports import VALIDATION_LOG_HEADERS

LOGGER = logging.getLogger(__name__)

PathLike = Union[str, Path]

VALIDATION_LOG_FILENAME = "validation_log.csv"
NORMALIZED_PAYLOAD_FILENAME = "normalized_payload.jsonl"
SUMMARY_FILENAME = "batch_summary.json"
EXCEL_FILENAME = "validation_log.xlsx"


def validation_log_to_dataframe(logs: Sequence[RowAuditLog]) -> pd.DataFrame:
    """Convert the validation log into a :class:`pandas.DataFrame`."""

    records = [
        {
            "Row Number": entry.row_number,
            "Status": entry.status.value,
            "Fixes Applied": "; ".join(entry.fixes_applied),
            "Warnings": "; ".join(entry.warnings),
            "Errors": "; ".join(entry.errors),
        }
        for entry in logs
    ]
    return pd.DataFrame(records, columns=list(VALIDATION_LOG_HEADERS))


def write_reports(result: ImportResult, directory: PathLike, *, excel: bool = False) -> Dict[str, Path]:
    """Persist the downloadable reports and the batch summary under ``directory``."""

    output_dir = Path(directory)
    output_dir.mkdir(parents=True, exist_ok=True)
    reports = result.downloadable_reports

    written = {
        "validation_log": output_dir / VALIDATION_LOG_FILENAME,
        "normalized_payload": output_dir / NORMALIZED_PAYLOAD_FILENAME,
        "batch_summary": output_dir / SUMMARY_FILENAME,
    }
    written["validation_log"].write_text(reports.validation_log + "\n", encoding="utf-8")
    payload = reports.normalized_payload
    written["normalized_payload"].write_text(payload + "\n" if payload else "", encoding="utf-8")
    written["batch_summary"].write_text(
        json.dumps(result.batch_summary.as_dict(), indent=2, ensure_ascii=False),
        encoding="utf-8",
    )

    if excel:
        written["excel"] = output_dir / EXCEL_FILENAME
        validation_log_to_dataframe(result.validation_log).to_excel(
            written["excel"], index=False, sheet_name="Validation Log", engine="openpyxl"
        )

    LOGGER.debug("Wrote %d report files to %s", len(written), output_dir)
    return written


__all__ = ["validation_log_to_dataframe", "write_reports"]
