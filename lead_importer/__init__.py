"""Bulk lead-import pipeline for the student-recruitment CRM."""

from . import models  # noqa: F401
from .models import (
    Assignment,
    BatchSummary,
    CounselorContext,
    FieldIssueTally,
    ImportReports,
    ImportResult,
    NormalizedLead,
    RowAuditLog,
    RowStatus,
    User,
)
from .orchestrator import BulkImportOrchestrator, ImportInputError, process_bulk_lead_import
from .store import InMemoryLeadStore

__all__ = [
    "Assignment",
    "BatchSummary",
    "BulkImportOrchestrator",
    "CounselorContext",
    "FieldIssueTally",
    "ImportInputError",
    "ImportReports",
    "ImportResult",
    "InMemoryLeadStore",
    "NormalizedLead",
    "RowAuditLog",
    "RowStatus",
    "User",
    "process_bulk_lead_import",
    "ingestion",
    "orchestrator",
]
