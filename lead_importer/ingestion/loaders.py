"""Utilities for loading raw lead rows from uploaded spreadsheets."""
from __future__ import annotations

import io
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, MutableMapping, Optional, Sequence, Tuple, Union

import pandas as pd

PathLike = Union[str, Path]

REQUIRED_HEADERS: Tuple[str, ...] = (
    "UID",
    "Lead Created Date",
    "Student Name",
    "Intake",
    "Country",
    "Source",
    "MobileNumber",
    "Current Stage",
    "Remarks",
    "Counsellors",
    "Passport Status",
)

HEADER_ALIASES: Mapping[str, str] = {
    "Student Name": "studentName",
    "Lead Created Date": "leadCreatedDate",
    "MobileNumber": "mobileNumber",
    "Current Stage": "currentStage",
    "Passport Status": "passportStatus",
}

_TEMPLATE_EXAMPLE_ROW = (
    "LD001",
    "2024-01-15T10:30:00Z",
    "John Doe",
    "2024-Spring",
    "United States",
    "Website",
    "+1234567890",
    "Yet to Contact",
    "First contact made",
    "Sarah Johnson",
    "Valid",
)


class UnsupportedFileTypeError(ValueError):
    """Raised when an unsupported file format is passed to the loader."""


class HeaderValidationError(ValueError):
    """Raised when strict header checking finds missing or unexpected columns."""

    def __init__(self, missing: Sequence[str], unexpected: Sequence[str]) -> None:
        self.missing = list(missing)
        self.unexpected = list(unexpected)
        parts = []
        if self.missing:
            parts.append(f"missing: {', '.join(self.missing)}")
        if self.unexpected:
            parts.append(f"unexpected: {', '.join(self.unexpected)}")
        super().__init__(f"Header validation failed ({'; '.join(parts)})")


def map_header(header: str) -> str:
    """Translate an upload column header into the raw record key."""

    header = header.strip().replace('"', "")
    return HEADER_ALIASES.get(header, header.lower())


def check_headers(headers: Iterable[str]) -> Tuple[List[str], List[str]]:
    """Return ``(missing, unexpected)`` headers compared with the upload template."""

    present = [str(header).strip() for header in headers]
    missing = [header for header in REQUIRED_HEADERS if header not in present]
    unexpected = [header for header in present if header not in REQUIRED_HEADERS]
    return missing, unexpected


def load_raw_leads(
    path: PathLike,
    *,
    strict_headers: bool = False,
    sheet_name: Union[str, int] = 0,
    loader_kwargs: Optional[MutableMapping[str, Any]] = None,
) -> List[Dict[str, str]]:
    """Load raw lead records from a CSV/TSV/XLSX upload.

    Parameters
    ----------
    path:
        Path to the uploaded file.
    strict_headers:
        When true, raise :class:`HeaderValidationError` unless the columns
        match :data:`REQUIRED_HEADERS` exactly.
    sheet_name:
        Sheet selector passed to :func:`pandas.read_excel`. Ignored for CSV.
    loader_kwargs:
        Extra keyword arguments forwarded to the pandas reader.
    """

    dataframe = _read_dataframe(path, sheet_name=sheet_name, loader_kwargs=loader_kwargs)
    return _dataframe_to_records(dataframe, strict_headers=strict_headers)


def parse_csv_text(text: str, *, strict_headers: bool = False) -> List[Dict[str, str]]:
    """Parse CSV text already held in memory (e.g. a request body)."""

    if not text.strip():
        return []
    dataframe = pd.read_csv(io.StringIO(text), dtype=str, keep_default_na=False, skipinitialspace=True)
    return _dataframe_to_records(dataframe, strict_headers=strict_headers)


def template_csv() -> str:
    """Return the upload template: the header row and one example row."""

    return ",".join(REQUIRED_HEADERS) + "\n" + ",".join(_TEMPLATE_EXAMPLE_ROW) + "\n"


def _read_dataframe(
    path: PathLike,
    *,
    sheet_name: Union[str, int] = 0,
    loader_kwargs: Optional[MutableMapping[str, Any]] = None,
) -> pd.DataFrame:
    loader_kwargs = dict(loader_kwargs or {})
    loader_kwargs.setdefault("dtype", str)
    loader_kwargs.setdefault("keep_default_na", False)
    path_obj = Path(path)
    suffix = path_obj.suffix.lower()

    if suffix in {".csv", ".tsv"}:
        if suffix == ".tsv":
            loader_kwargs.setdefault("sep", "\t")
        loader_kwargs.setdefault("encoding", "utf-8-sig")
        return pd.read_csv(path_obj, **loader_kwargs)

    if suffix in {".xlsx", ".xlsm"}:
        engine = loader_kwargs.pop("engine", None) or "openpyxl"
        return pd.read_excel(path_obj, sheet_name=sheet_name, engine=engine, **loader_kwargs)

    raise UnsupportedFileTypeError(f"Unsupported file extension: {path_obj.suffix}")


def _dataframe_to_records(dataframe: pd.DataFrame, *, strict_headers: bool) -> List[Dict[str, str]]:
    headers = [str(column) for column in dataframe.columns]
    if strict_headers:
        missing, unexpected = check_headers(headers)
        if missing or unexpected:
            raise HeaderValidationError(missing, unexpected)

    keys = [map_header(header) for header in headers]
    records: List[Dict[str, str]] = []
    for values in dataframe.itertuples(index=False, name=None):
        cells = [_clean_text(value) for value in values]
        if not any(cells):
            continue
        records.append(dict(zip(keys, cells)))
    return records


def _clean_text(value: Any) -> str:
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return ""
    return str(value).strip()


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
]
