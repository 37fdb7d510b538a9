"""Chunked orchestration of bulk lead imports."""

from .service import (
    BulkImportOrchestrator,
    ImportInputError,
    LeadStore,
    chunk_rows,
    process_bulk_lead_import,
)

__all__ = [
    "BulkImportOrchestrator",
    "ImportInputError",
    "LeadStore",
    "chunk_rows",
    "process_bulk_lead_import",
]
