"""Unit tests for :mod:`lead_importer.normalizers`."""
from __future__ import annotations

from datetime import datetime, timezone

import pytest

from lead_importer import normalizers
from lead_importer.models import FieldIssueTally, RowAuditLog
from lead_importer.normalizers import (
    generate_uid,
    normalize_country,
    normalize_date,
    normalize_email,
    normalize_intake,
    normalize_phone,
)

FROZEN_NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture()
def log() -> RowAuditLog:
    return RowAuditLog(row_number=1)


@pytest.fixture()
def issues() -> FieldIssueTally:
    return FieldIssueTally()


@pytest.fixture()
def frozen_clock(monkeypatch):
    monkeypatch.setattr(normalizers, "utcnow", lambda: FROZEN_NOW)
    return FROZEN_NOW


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("2024-01-15", datetime(2024, 1, 15, tzinfo=timezone.utc)),
        ("2024-01-15T10:30:00Z", datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc)),
        ("15/01/2024", datetime(2024, 1, 15, tzinfo=timezone.utc)),
        ("15-01-2024", datetime(2024, 1, 15, tzinfo=timezone.utc)),
        ("20240115", datetime(2024, 1, 15, tzinfo=timezone.utc)),
        ("01/02/2024", datetime(2024, 1, 2, tzinfo=timezone.utc)),
    ],
)
def test_normalize_date_accepts_common_formats(raw, expected, log, issues) -> None:
    assert normalize_date(raw, log, issues) == expected
    assert log.fixes_applied == []
    assert log.warnings == []
    assert len(issues) == 0


def test_normalize_date_defaults_unparseable_values(log, issues, frozen_clock) -> None:
    result = normalize_date("next tuesday", log, issues)

    assert result == frozen_clock
    assert log.fixes_applied == ["Invalid date format - defaulted to current date"]
    assert log.warnings == ['Original date "next tuesday" could not be parsed']
    assert issues["leadCreatedDate"].count == 1
    assert issues["leadCreatedDate"].samples == ["Invalid format: next tuesday"]


def test_normalize_date_missing_value_is_a_fix_not_a_warning(log, issues, frozen_clock) -> None:
    assert normalize_date(None, log, issues) == frozen_clock
    assert log.fixes_applied == ["Missing date - defaulted to current date"]
    assert log.warnings == []
    assert len(issues) == 0


def test_canonical_intake_is_left_alone(log, issues) -> None:
    assert normalize_intake("2025-Fall", log, issues) == "2025-Fall"
    assert log.fixes_applied == []
    assert "intake" not in issues


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("Fall 2024", "2024-Fall"),
        ("september 2025", "2025-Fall"),
        ("Autumn 2025", "2025-Fall"),
        ("Jan 2026", "2026-Spring"),
        ("2025 summer", "2025-Summer"),
        ("December 2024", "2024-Winter"),
    ],
)
def test_normalize_intake_rewrites_season_and_year(raw, expected, log, issues) -> None:
    assert normalize_intake(raw, log, issues) == expected
    assert log.fixes_applied == [f'Normalized intake from "{raw}" to "{expected}"']
    assert issues["intake"].count == 1


def test_normalize_intake_fills_missing_year_and_season(log, issues, frozen_clock) -> None:
    result = normalize_intake("soon", log, issues)

    assert result == "2027-Fall"
    assert log.fixes_applied == [
        "Added missing year 2027 to intake",
        "Added default season Fall to intake",
        'Normalized intake from "soon" to "2027-Fall"',
    ]


def test_normalize_intake_is_idempotent(log, issues) -> None:
    first = normalize_intake("Spring 2026", log, issues)
    second_log = RowAuditLog(row_number=2)

    assert normalize_intake(first, second_log, issues) == first
    assert second_log.fixes_applied == []


def test_normalize_country_maps_aliases(log, issues) -> None:
    assert normalize_country("usa", log, issues) == "US"
    assert log.fixes_applied == ['Normalized country from "usa" to "US"']
    assert log.warnings == []


def test_normalize_country_is_case_insensitive(log, issues) -> None:
    assert normalize_country("United Kingdom", log, issues) == "GB"
    assert log.fixes_applied == ['Normalized country from "United Kingdom" to "GB"']


def test_normalize_country_accepts_iso_codes_without_fix(log, issues) -> None:
    assert normalize_country("IN", log, issues) == "IN"
    assert normalize_country("gb", log, issues) == "GB"
    assert log.fixes_applied == ['Normalized country from "gb" to "GB"']
    assert log.warnings == []


def test_normalize_country_preserves_unknown_values(log, issues) -> None:
    assert normalize_country("Wakanda", log, issues) == "Wakanda"
    assert log.warnings == ['Country "Wakanda" could not be normalized to ISO code']
    assert log.errors == []
    assert issues["country"].samples == ["Unknown country: Wakanda"]


def test_normalize_phone_strips_formatting(log, issues) -> None:
    assert normalize_phone("+1 (555) 123-4567", log, issues) == "+15551234567"
    assert log.fixes_applied == ['Cleaned phone number from "+1 (555) 123-4567" to "+15551234567"']
    assert log.warnings == []


def test_normalize_phone_warns_on_short_numbers(log, issues) -> None:
    assert normalize_phone("123", log, issues) == "123"
    assert log.warnings == ['Phone number "123" appears to be too short']
    assert log.fixes_applied == []
    assert issues["phone"].count == 1


def test_normalize_phone_keeps_only_leading_plus(log, issues) -> None:
    assert normalize_phone("+91 98+765 43210", log, issues) == "+919876543210"


def test_normalize_email_lowercases_and_trims(log, issues) -> None:
    assert normalize_email("Foo@BAR.com ", log, issues) == "foo@bar.com"
    assert log.fixes_applied == ['Normalized email from "Foo@BAR.com " to "foo@bar.com"']


def test_normalize_email_drops_invalid_addresses(log, issues) -> None:
    assert normalize_email("not-an-email", log, issues) is None
    assert log.warnings == ['Email "not-an-email" appears to be invalid format']
    assert log.errors == []
    assert issues["email"].count == 1


def test_field_issue_samples_are_capped_but_counts_keep_growing(log, issues) -> None:
    for index in range(8):
        normalize_phone(str(index), log, issues)

    assert issues["phone"].count == 8
    assert issues["phone"].samples == [f"Too short: {index}" for index in range(5)]


def test_generate_uid_uses_last_six_clock_digits() -> None:
    assert generate_uid(clock=lambda: 1_700_000_123.5) == "UID-123500"
    assert generate_uid(clock=lambda: 0.5) == "UID-000500"
