"""Data models shared by the normalizers, rule engine, orchestrator, and reports."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

RawLeadRecord = Mapping[str, Any]

MAX_ISSUE_SAMPLES = 5


class RowStatus(str, Enum):
    """Outcome of a single input row."""

    IMPORTED = "Imported"
    IMPORTED_WITH_ISSUES = "ImportedWithIssues"
    FAILED = "Failed"


# --- Roster Models ---

@dataclass(frozen=True)
class User:
    """A CRM user as returned by the store's roster lookup."""

    id: int
    name: str
    role: str = "counselor"


@dataclass(frozen=True)
class CounselorContext:
    """Roster snapshot taken once at the start of a run."""

    manager_id: Optional[int] = None
    counselors: Tuple[User, ...] = ()
    default_counselor: Optional[User] = None


# --- Per-Row Models ---

@dataclass(slots=True)
class NormalizedLead:
    """Canonical representation of one raw lead row."""

    uid: str
    name: str
    current_stage: str
    lead_created_date: datetime
    current_stage_requested: Optional[str] = None
    intake: Optional[str] = None
    country: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    source: Optional[str] = None
    passport_status: Optional[str] = None
    remarks: Optional[str] = None
    counsellor_name_hint: Optional[str] = None

    def as_dict(self) -> Dict[str, Any]:
        """Return a JSON-ready representation using the wire field names."""

        return {
            "uid": self.uid,
            "name": self.name,
            "currentStage": self.current_stage,
            "currentStageRequested": self.current_stage_requested,
            "leadCreatedDate": self.lead_created_date.isoformat(),
            "intake": self.intake,
            "country": self.country,
            "phone": self.phone,
            "email": self.email,
            "source": self.source,
            "passportStatus": self.passport_status,
            "remarksText": self.remarks,
            "counsellorNameHint": self.counsellor_name_hint,
        }


@dataclass(slots=True)
class Assignment:
    """Counselor and stage derived by the business rules."""

    counselor_id: Optional[int]
    current_stage: str

    def as_dict(self) -> Dict[str, Any]:
        return {"counselorId": self.counselor_id, "currentStage": self.current_stage}


@dataclass
class RowAuditLog:
    """Validation trail for one input row."""

    row_number: int
    status: RowStatus = RowStatus.IMPORTED
    fixes_applied: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    original_data: Any = field(default_factory=dict)
    normalized_data: Optional[Dict[str, Any]] = field(default_factory=dict)

    def classify(self) -> RowStatus:
        """Set the status of a row that completed without an exception."""

        if self.warnings or self.fixes_applied:
            self.status = RowStatus.IMPORTED_WITH_ISSUES
        else:
            self.status = RowStatus.IMPORTED
        return self.status

    def fail(self, message: str) -> None:
        self.status = RowStatus.FAILED
        self.errors.append(message)

    def as_dict(self) -> Dict[str, Any]:
        row: Dict[str, Any] = {
            "rowNumber": self.row_number,
            "status": self.status.value,
            "fixesApplied": list(self.fixes_applied),
            "warnings": list(self.warnings),
            "errors": list(self.errors),
            "originalData": self.original_data,
        }
        if self.normalized_data is not None:
            row["normalizedData"] = self.normalized_data
        return row


# --- Batch Aggregates ---

@dataclass
class FieldIssue:
    count: int = 0
    samples: List[str] = field(default_factory=list)


class FieldIssueTally:
    """Per-field problem counts with the first few sample messages."""

    def __init__(self) -> None:
        self._issues: Dict[str, FieldIssue] = {}

    def record(self, field_name: str, message: str) -> None:
        issue = self._issues.setdefault(field_name, FieldIssue())
        issue.count += 1
        if len(issue.samples) < MAX_ISSUE_SAMPLES:
            issue.samples.append(message)

    def merge(self, other: "FieldIssueTally") -> None:
        """Fold another tally into this one, keeping sample order."""

        for field_name, incoming in other.items():
            issue = self._issues.setdefault(field_name, FieldIssue())
            issue.count += incoming.count
            room = MAX_ISSUE_SAMPLES - len(issue.samples)
            if room > 0:
                issue.samples.extend(incoming.samples[:room])

    def items(self) -> Iterator[Tuple[str, FieldIssue]]:
        return iter(self._issues.items())

    def __getitem__(self, field_name: str) -> FieldIssue:
        return self._issues[field_name]

    def __contains__(self, field_name: object) -> bool:
        return field_name in self._issues

    def __len__(self) -> int:
        return len(self._issues)

    def as_dict(self) -> Dict[str, Dict[str, Any]]:
        return {
            name: {"count": issue.count, "samples": list(issue.samples)}
            for name, issue in self._issues.items()
        }


@dataclass
class ChunkStats:
    total_chunks: int = 0
    successful_chunks: int = 0
    failed_chunks: int = 0


@dataclass
class BatchSummary:
    """Aggregate counters for one import run."""

    total_rows: int = 0
    imported: int = 0
    imported_with_issues: int = 0
    failed: int = 0
    processing_time_ms: int = 0
    chunk_stats: ChunkStats = field(default_factory=ChunkStats)
    field_issues: FieldIssueTally = field(default_factory=FieldIssueTally)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "totalRows": self.total_rows,
            "imported": self.imported,
            "importedWithIssues": self.imported_with_issues,
            "failed": self.failed,
            "processingTimeMs": self.processing_time_ms,
            "chunkStats": {
                "totalChunks": self.chunk_stats.total_chunks,
                "successfulChunks": self.chunk_stats.successful_chunks,
                "failedChunks": self.chunk_stats.failed_chunks,
            },
            "fieldIssues": self.field_issues.as_dict(),
        }


@dataclass(frozen=True)
class ImportReports:
    """Downloadable report artifacts for a run."""

    validation_log: str
    normalized_payload: str


@dataclass
class ImportResult:
    """Complete outcome of an import run, as handed back to the caller."""

    batch_summary: BatchSummary
    validation_log: List[RowAuditLog]
    downloadable_reports: ImportReports
    success: bool = True

    def as_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "batchSummary": self.batch_summary.as_dict(),
            "validationLog": [entry.as_dict() for entry in self.validation_log],
            "downloadableReports": {
                "validationLog": self.downloadable_reports.validation_log,
                "normalizedPayload": self.downloadable_reports.normalized_payload,
            },
        }


__all__ = [
    "Assignment",
    "BatchSummary",
    "ChunkStats",
    "CounselorContext",
    "FieldIssue",
    "FieldIssueTally",
    "ImportReports",
    "ImportResult",
    "NormalizedLead",
    "RawLeadRecord",
    "RowAuditLog",
    "RowStatus",
    "User",
]
