"""Tests for turning raw lead rows into normalized leads."""
from __future__ import annotations

from datetime import datetime, timezone

from lead_importer.models import FieldIssueTally, RowAuditLog
from lead_importer.rules import UNASSIGNED_STAGE
from lead_importer.validation import DEFAULT_STUDENT_NAME, normalize_lead_record


def _normalize(raw):
    log = RowAuditLog(row_number=1, original_data=dict(raw))
    issues = FieldIssueTally()
    return normalize_lead_record(raw, log, issues), log, issues


def _complete_row(**overrides):
    row = {
        "uid": "LD001",
        "studentName": "Priya Raman",
        "leadCreatedDate": "2024-01-15",
        "intake": "2025-Fall",
        "country": "US",
        "mobileNumber": "+919876543210",
        "email": "priya@example.com",
        "currentStage": "Yet to Contact",
        "source": "Website",
        "passportStatus": "Valid",
        "remarks": "Asked about scholarships",
        "counsellors": "Likitha",
    }
    row.update(overrides)
    return row


def test_clean_row_passes_without_notes() -> None:
    lead, log, issues = _normalize(_complete_row(country="usa"))

    assert lead.uid == "LD001"
    assert lead.name == "Priya Raman"
    assert lead.current_stage == "Yet to Contact"
    assert lead.current_stage_requested == "Yet to Contact"
    assert lead.lead_created_date == datetime(2024, 1, 15, tzinfo=timezone.utc)
    assert lead.intake == "2025-Fall"
    assert lead.country == "US"
    assert lead.phone == "+919876543210"
    assert lead.email == "priya@example.com"
    assert lead.source == "Website"
    assert lead.passport_status == "Valid"
    assert lead.remarks == "Asked about scholarships"
    assert lead.counsellor_name_hint == "Likitha"
    assert log.warnings == []
    assert log.errors == []
    assert log.fixes_applied == ['Normalized country from "usa" to "US"']


def test_student_name_alias_wins_over_generic_name() -> None:
    lead, _, _ = _normalize(_complete_row(studentName="  Arjun ", name="Ignored"))
    assert lead.name == "Arjun"

    lead, _, _ = _normalize(_complete_row(studentName="", name="Fallback Name"))
    assert lead.name == "Fallback Name"


def test_missing_required_fields_are_recoverable_errors() -> None:
    lead, log, _ = _normalize(_complete_row(studentName=None, currentStage="  "))

    assert lead.name == DEFAULT_STUDENT_NAME
    assert lead.current_stage == UNASSIGNED_STAGE
    assert lead.current_stage_requested is None
    assert log.errors == ["Missing required student name", "Missing required current stage"]
    assert "Set default name for missing student name" in log.fixes_applied
    assert "Set default stage for missing current stage" in log.fixes_applied


def test_empty_row_never_raises_and_logs_every_substitution() -> None:
    lead, log, issues = _normalize({})

    assert lead.uid.startswith("UID-")
    assert lead.intake is None
    assert lead.country is None
    assert lead.phone is None
    assert lead.email is None
    assert lead.source is None
    assert "Generated missing UID" in log.fixes_applied
    assert "Missing date - defaulted to current date" in log.fixes_applied
    assert log.warnings == [
        "Missing intake information",
        "Missing country information",
        "Missing phone number",
    ]
    assert issues["uid"].samples == ["Missing UID - generated automatically"]


def test_phone_falls_back_to_generic_column() -> None:
    lead, log, _ = _normalize(_complete_row(mobileNumber="", phone="(555) 123-4567"))

    assert lead.phone == "5551234567"
    assert 'Cleaned phone number from "(555) 123-4567" to "5551234567"' in log.fixes_applied


def test_non_string_cells_are_stringified() -> None:
    lead, _, _ = _normalize(_complete_row(uid=1042, mobileNumber=9876543210))

    assert lead.uid == "1042"
    assert lead.phone == "9876543210"


def test_invalid_email_becomes_absent_without_error() -> None:
    lead, log, _ = _normalize(_complete_row(email="not-an-email"))

    assert lead.email is None
    assert log.errors == []
    assert log.warnings == ['Email "not-an-email" appears to be invalid format']


def test_as_dict_uses_wire_names() -> None:
    lead, _, _ = _normalize(_complete_row())
    data = lead.as_dict()

    assert data["leadCreatedDate"] == "2024-01-15T00:00:00+00:00"
    assert data["counsellorNameHint"] == "Likitha"
    assert data["remarksText"] == "Asked about scholarships"
    assert data["passportStatus"] == "Valid"
