"""Turn an untyped raw lead row into a :class:`NormalizedLead`."""
from __future__ import annotations

from typing import Any, Optional

from .models import FieldIssueTally, NormalizedLead, RawLeadRecord, RowAuditLog
from .normalizers import (
    generate_uid,
    normalize_country,
    normalize_date,
    normalize_email,
    normalize_intake,
    normalize_phone,
)
from .rules import UNASSIGNED_STAGE

DEFAULT_STUDENT_NAME = "Unknown Student"


def _clean_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = value.strip() if isinstance(value, str) else str(value).strip()
    return text or None


def _first_present(raw: RawLeadRecord, *keys: str) -> Optional[str]:
    for key in keys:
        text = _clean_text(raw.get(key))
        if text is not None:
            return text
    return None


def normalize_lead_record(
    raw: RawLeadRecord,
    log: RowAuditLog,
    issues: FieldIssueTally,
) -> NormalizedLead:
    """Apply every field normalizer to ``raw``.

    Missing or malformed input never raises; each substitution is written to
    ``log``. A missing name or stage is logged as an error but the row still
    completes with the default value.
    """

    uid = _clean_text(raw.get("uid"))
    if uid is None:
        uid = generate_uid()
        log.fixes_applied.append("Generated missing UID")
        issues.record("uid", "Missing UID - generated automatically")

    name = _first_present(raw, "studentName", "name")
    if name is None:
        log.errors.append("Missing required student name")
        name = DEFAULT_STUDENT_NAME
        log.fixes_applied.append("Set default name for missing student name")

    requested_stage = _clean_text(raw.get("currentStage"))
    if requested_stage is None:
        log.errors.append("Missing required current stage")
        log.fixes_applied.append("Set default stage for missing current stage")

    lead_created_date = normalize_date(_clean_text(raw.get("leadCreatedDate")), log, issues)

    intake_raw = _clean_text(raw.get("intake"))
    if intake_raw is not None:
        intake = normalize_intake(intake_raw, log, issues)
    else:
        intake = None
        log.warnings.append("Missing intake information")

    country_raw = _clean_text(raw.get("country"))
    if country_raw is not None:
        country = normalize_country(country_raw, log, issues)
    else:
        country = None
        log.warnings.append("Missing country information")

    phone_raw = _first_present(raw, "mobileNumber", "phone")
    if phone_raw is not None:
        phone = normalize_phone(phone_raw, log, issues)
    else:
        phone = None
        log.warnings.append("Missing phone number")

    email_raw = _clean_text(raw.get("email"))
    email = normalize_email(email_raw, log, issues) if email_raw is not None else None

    return NormalizedLead(
        uid=uid,
        name=name,
        current_stage=requested_stage or UNASSIGNED_STAGE,
        current_stage_requested=requested_stage,
        lead_created_date=lead_created_date,
        intake=intake,
        country=country,
        phone=phone,
        email=email,
        source=_clean_text(raw.get("source")),
        passport_status=_clean_text(raw.get("passportStatus")),
        remarks=_clean_text(raw.get("remarks")),
        counsellor_name_hint=_clean_text(raw.get("counsellors")),
    )


__all__ = ["DEFAULT_STUDENT_NAME", "normalize_lead_record"]
