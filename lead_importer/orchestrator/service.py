"""Chunked bulk-import orchestrator for lead rows."""
from __future__ import annotations

import logging
import time
from collections.abc import Iterable, Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol

from ..config import DEFAULT_CHUNK_SIZE, DEFAULT_COUNSELOR_MARKER, DEFAULT_MANAGER_MARKER
from ..models import (
    Assignment,
    BatchSummary,
    ChunkStats,
    CounselorContext,
    FieldIssueTally,
    ImportResult,
    NormalizedLead,
    RawLeadRecord,
    RowAuditLog,
    RowStatus,
    User,
)
from ..reports import build_reports
from ..rules import UNASSIGNED_STAGE, apply_business_rules, build_counselor_context
from ..validation import normalize_lead_record

LOGGER = logging.getLogger(__name__)

FALLBACK_USER_ID = 1


class ImportInputError(ValueError):
    """Raised when the batch itself is unusable (not row-shaped, bad chunk size)."""


class LeadStore(Protocol):
    """Persistence operations the importer needs from the CRM store."""

    def list_users(self) -> Iterable[User]:  # pragma: no cover - runtime protocol
        """Return every CRM user."""

    def create_lead(self, fields: Mapping[str, Any]) -> Any:  # pragma: no cover - runtime protocol
        """Insert a lead and return the stored record (exposing ``id``)."""

    def create_remark(self, fields: Mapping[str, Any]) -> None:  # pragma: no cover - runtime protocol
        """Insert a remark attached to a lead."""

    def create_stage_history(self, fields: Mapping[str, Any]) -> None:  # pragma: no cover - runtime protocol
        """Insert a stage transition for a lead."""


def chunk_rows(rows: Sequence[Any], size: int) -> List[Sequence[Any]]:
    """Split ``rows`` into contiguous slices of at most ``size`` items."""

    if size < 1:
        raise ImportInputError("Chunk size must be at least 1")
    return [rows[start:start + size] for start in range(0, len(rows), size)]


@dataclass
class _ChunkOutcome:
    index: int
    logs: List[RowAuditLog] = field(default_factory=list)
    field_issues: FieldIssueTally = field(default_factory=FieldIssueTally)
    failed: bool = False


class BulkImportOrchestrator:
    """Normalizes, assigns, and persists a batch of raw lead rows chunk by chunk."""

    def __init__(
        self,
        store: LeadStore,
        *,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        concurrent: bool = False,
        max_workers: Optional[int] = None,
        manager_marker: Optional[str] = DEFAULT_MANAGER_MARKER,
        default_counselor_marker: Optional[str] = DEFAULT_COUNSELOR_MARKER,
    ) -> None:
        if isinstance(chunk_size, bool) or not isinstance(chunk_size, int) or chunk_size < 1:
            raise ImportInputError(f"Chunk size must be a positive integer, got {chunk_size!r}")
        self._store = store
        self._chunk_size = chunk_size
        self._concurrent = concurrent
        self._max_workers = max_workers
        self._manager_marker = manager_marker
        self._default_counselor_marker = default_counselor_marker

    @property
    def chunk_size(self) -> int:
        return self._chunk_size

    def run(self, raw_leads: Iterable[RawLeadRecord], *, dry_run: bool = False) -> ImportResult:
        """Import every row of ``raw_leads``.

        Row and chunk failures are reported in the result, never raised.
        Only an unusable ``raw_leads`` argument raises :class:`ImportInputError`.
        """

        rows = _as_rows(raw_leads)
        started = time.perf_counter()

        context = self._snapshot_roster()
        chunks = chunk_rows(rows, self._chunk_size)
        outcomes = self._process_chunks(chunks, context, dry_run)

        logs = [entry for outcome in outcomes for entry in outcome.logs]
        summary = _summarise(len(rows), outcomes, logs)
        summary.processing_time_ms = int((time.perf_counter() - started) * 1000)

        LOGGER.info(
            "%s import of %d rows: %d imported, %d with issues, %d failed (%d/%d chunks ok)",
            "Dry-run" if dry_run else "Bulk",
            summary.total_rows,
            summary.imported,
            summary.imported_with_issues,
            summary.failed,
            summary.chunk_stats.successful_chunks,
            summary.chunk_stats.total_chunks,
        )
        return ImportResult(
            batch_summary=summary,
            validation_log=logs,
            downloadable_reports=build_reports(logs),
        )

    def _snapshot_roster(self) -> CounselorContext:
        try:
            users = list(self._store.list_users())
            return build_counselor_context(
                users,
                manager_marker=self._manager_marker,
                default_counselor_marker=self._default_counselor_marker,
            )
        except Exception:
            LOGGER.warning("Could not fetch users, proceeding without counselor roster", exc_info=True)
            return CounselorContext()

    def _process_chunks(
        self,
        chunks: List[Sequence[Any]],
        context: CounselorContext,
        dry_run: bool,
    ) -> List[_ChunkOutcome]:
        if not self._concurrent or len(chunks) <= 1:
            return [self._process_chunk(index, chunk, context, dry_run) for index, chunk in enumerate(chunks)]

        with ThreadPoolExecutor(max_workers=self._max_workers) as executor:
            futures = [
                executor.submit(self._process_chunk, index, chunk, context, dry_run)
                for index, chunk in enumerate(chunks)
            ]
            outcomes = [future.result() for future in as_completed(futures)]
        outcomes.sort(key=lambda outcome: outcome.index)
        return outcomes

    def _process_chunk(
        self,
        index: int,
        chunk: Sequence[Any],
        context: CounselorContext,
        dry_run: bool,
    ) -> _ChunkOutcome:
        start = index * self._chunk_size
        LOGGER.debug("Processing chunk %d (rows %d-%d)", index, start + 1, start + len(chunk))
        outcome = _ChunkOutcome(index=index)
        try:
            for offset, raw in enumerate(chunk):
                log = RowAuditLog(row_number=start + offset + 1, original_data=raw)
                self._process_row(raw, log, outcome.field_issues, context, dry_run)
                outcome.logs.append(log)
        except Exception as exc:
            LOGGER.exception("Chunk %d failed", index)
            return _failed_chunk(index, chunk, start, exc)
        return outcome

    def _process_row(
        self,
        raw: RawLeadRecord,
        log: RowAuditLog,
        issues: FieldIssueTally,
        context: CounselorContext,
        dry_run: bool,
    ) -> None:
        try:
            # Rows that are not mappings fail here, alone.
            log.original_data = dict(raw)
            lead = normalize_lead_record(raw, log, issues)
            assignment = apply_business_rules(lead, context)
            log.normalized_data = {**lead.as_dict(), **assignment.as_dict()}
            if not dry_run:
                self._persist(lead, assignment, context)
            log.classify()
        except Exception as exc:
            LOGGER.warning("Row %d failed: %s", log.row_number, exc)
            log.fail(str(exc) or "Unknown error during processing")

    def _persist(self, lead: NormalizedLead, assignment: Assignment, context: CounselorContext) -> None:
        stored = self._store.create_lead(_lead_fields(lead, assignment, context))
        author_id = assignment.counselor_id or context.manager_id or FALLBACK_USER_ID

        if lead.remarks:
            self._store.create_remark(
                {
                    "lead_id": stored.id,
                    "user_id": author_id,
                    "content": f"Bulk Import: {lead.remarks}",
                    "is_visible": True,
                }
            )

        if assignment.current_stage and assignment.current_stage != UNASSIGNED_STAGE:
            outcome = "Assigned to counselor" if assignment.counselor_id else "Unassigned"
            self._store.create_stage_history(
                {
                    "lead_id": stored.id,
                    "from_stage": None,
                    "to_stage": assignment.current_stage,
                    "user_id": author_id,
                    "reason": f"Bulk import - {outcome}",
                    "created_at": lead.lead_created_date,
                }
            )


def _as_rows(raw_leads: Any) -> List[RawLeadRecord]:
    if raw_leads is None or isinstance(raw_leads, (str, bytes, Mapping)) or not isinstance(raw_leads, Iterable):
        raise ImportInputError("Invalid leads data: expected a sequence of lead records")
    return list(raw_leads)


def _lead_fields(lead: NormalizedLead, assignment: Assignment, context: CounselorContext) -> Dict[str, Any]:
    return {
        "uid": lead.uid,
        "name": lead.name,
        "email": lead.email,
        "phone": lead.phone,
        "country": lead.country,
        "course": None,
        "intake": lead.intake,
        "source": lead.source,
        "current_stage": assignment.current_stage,
        "counselor_id": assignment.counselor_id,
        "manager_id": context.manager_id,
        "prev_consultancy": None,
        "passport_status": lead.passport_status,
        "remarks": None,
        "counsellors": lead.counsellor_name_hint,
    }


def _failed_chunk(index: int, chunk: Sequence[Any], start: int, exc: Exception) -> _ChunkOutcome:
    outcome = _ChunkOutcome(index=index, failed=True)
    for offset, raw in enumerate(chunk):
        outcome.logs.append(
            RowAuditLog(
                row_number=start + offset + 1,
                status=RowStatus.FAILED,
                errors=[f"Chunk processing failed: {exc}"],
                original_data=raw,
                normalized_data=None,
            )
        )
    return outcome


def _summarise(total_rows: int, outcomes: List[_ChunkOutcome], logs: List[RowAuditLog]) -> BatchSummary:
    summary = BatchSummary(total_rows=total_rows)
    for entry in logs:
        if entry.status is RowStatus.FAILED:
            summary.failed += 1
        elif entry.status is RowStatus.IMPORTED_WITH_ISSUES:
            summary.imported_with_issues += 1
        else:
            summary.imported += 1

    failed_chunks = sum(1 for outcome in outcomes if outcome.failed)
    summary.chunk_stats = ChunkStats(
        total_chunks=len(outcomes),
        successful_chunks=len(outcomes) - failed_chunks,
        failed_chunks=failed_chunks,
    )
    for outcome in outcomes:
        summary.field_issues.merge(outcome.field_issues)
    return summary


def process_bulk_lead_import(
    raw_leads: Iterable[RawLeadRecord],
    dry_run: bool = False,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    store: Optional[LeadStore] = None,
    **options: Any,
) -> ImportResult:
    """Run one bulk import; the entry point used by the request layer and CLI."""

    if store is None:
        raise ImportInputError("A lead store is required")
    orchestrator = BulkImportOrchestrator(store, chunk_size=chunk_size, **options)
    return orchestrator.run(raw_leads, dry_run=dry_run)


__all__ = [
    "BulkImportOrchestrator",
    "ImportInputError",
    "LeadStore",
    "chunk_rows",
    "process_bulk_lead_import",
]
