"""Field-level normalizers used while importing lead rows.

Every normalizer takes the raw (already trimmed) value, the row's
:class:`~lead_importer.models.RowAuditLog`, and the batch-wide
:class:`~lead_importer.models.FieldIssueTally`. It returns the canonical
value and records every correction or doubt on the log, so nothing is
dropped silently.
"""
from __future__ import annotations

import re
import time
from datetime import datetime, timezone
from typing import Callable, Optional, Tuple

from .models import FieldIssueTally, RowAuditLog

_DIRECT_DATE_FORMATS = ("%m/%d/%Y", "%b %d %Y", "%B %d %Y", "%B %d, %Y", "%d %B %Y")

# Tried in order when the value does not parse as-is.
_DATE_REWRITES: Tuple[Tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"(\d{2})/(\d{2})/(\d{4})"), r"\3-\2-\1"),
    (re.compile(r"(\d{2})-(\d{2})-(\d{4})"), r"\3-\2-\1"),
    (re.compile(r"(\d{4})(\d{2})(\d{2})"), r"\1-\2-\3"),
)

_YEAR_PATTERN = re.compile(r"\d{4}")

# Order matters: the first keyword found anywhere in the value wins.
SEASON_KEYWORDS: Tuple[Tuple[str, str], ...] = (
    ("fall", "Fall"),
    ("autumn", "Fall"),
    ("sep", "Fall"),
    ("september", "Fall"),
    ("spring", "Spring"),
    ("jan", "Spring"),
    ("january", "Spring"),
    ("summer", "Summer"),
    ("may", "Summer"),
    ("jun", "Summer"),
    ("winter", "Winter"),
    ("dec", "Winter"),
    ("december", "Winter"),
)
DEFAULT_SEASON = "Fall"

COUNTRY_ALIASES = {
    "united states": "US",
    "usa": "US",
    "america": "US",
    "united states of america": "US",
    "united kingdom": "GB",
    "uk": "GB",
    "england": "GB",
    "britain": "GB",
    "germany": "DE",
    "deutschland": "DE",
    "france": "FR",
    "francia": "FR",
    "india": "IN",
    "bharat": "IN",
    "china": "CN",
    "prc": "CN",
    "canada": "CA",
    "australia": "AU",
    "aus": "AU",
    "japan": "JP",
    "nippon": "JP",
    "south korea": "KR",
    "korea": "KR",
    "brazil": "BR",
    "brasil": "BR",
    "mexico": "MX",
    "méxico": "MX",
    "russia": "RU",
    "russian federation": "RU",
}
# ISO codes resolve to themselves.
COUNTRY_ALIASES.update({code.lower(): code for code in set(COUNTRY_ALIASES.values())})

MIN_PHONE_DIGITS = 10
_PHONE_STRIP = re.compile(r"[^\d+]")
_EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def generate_uid(clock: Callable[[], float] = time.time) -> str:
    """Build a UID from the last six digits of the millisecond clock."""

    millis = str(int(clock() * 1000))
    return f"UID-{millis[-6:].zfill(6)}"


def _parse_direct(value: str) -> Optional[datetime]:
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        pass
    for fmt in _DIRECT_DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt)
        except ValueError:
            continue
    return None


def parse_date(value: str) -> Optional[datetime]:
    """Parse ``value`` directly, then via the common rewrites. Naive results are UTC."""

    parsed = _parse_direct(value)
    if parsed is None:
        for pattern, replacement in _DATE_REWRITES:
            parsed = _parse_direct(pattern.sub(replacement, value, count=1))
            if parsed is not None:
                break
    if parsed is None:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def normalize_date(value: Optional[str], log: RowAuditLog, issues: FieldIssueTally) -> datetime:
    if not value:
        log.fixes_applied.append("Missing date - defaulted to current date")
        return utcnow()

    parsed = parse_date(value)
    if parsed is not None:
        return parsed

    log.fixes_applied.append("Invalid date format - defaulted to current date")
    log.warnings.append(f'Original date "{value}" could not be parsed')
    issues.record("leadCreatedDate", f"Invalid format: {value}")
    return utcnow()


def normalize_intake(value: str, log: RowAuditLog, issues: FieldIssueTally) -> str:
    """Rewrite an intake such as ``"Fall 2024"`` into ``"2024-Fall"``."""

    lowered = value.lower()

    match = _YEAR_PATTERN.search(lowered)
    if match:
        year = match.group(0)
    else:
        year = str(utcnow().year + 1)
        log.fixes_applied.append(f"Added missing year {year} to intake")

    season = next((name for keyword, name in SEASON_KEYWORDS if keyword in lowered), None)
    if season is None:
        season = DEFAULT_SEASON
        log.fixes_applied.append(f"Added default season {DEFAULT_SEASON} to intake")

    result = f"{year}-{season}"
    if result != value:
        log.fixes_applied.append(f'Normalized intake from "{value}" to "{result}"')
        issues.record("intake", f"Normalized: {value} → {result}")
    return result


def normalize_country(value: str, log: RowAuditLog, issues: FieldIssueTally) -> str:
    code = COUNTRY_ALIASES.get(value.lower().strip())
    if code is None:
        log.warnings.append(f'Country "{value}" could not be normalized to ISO code')
        issues.record("country", f"Unknown country: {value}")
        return value

    if code != value:
        log.fixes_applied.append(f'Normalized country from "{value}" to "{code}"')
        issues.record("country", f"Normalized: {value} → {code}")
    return code


def normalize_phone(value: str, log: RowAuditLog, issues: FieldIssueTally) -> str:
    cleaned = _PHONE_STRIP.sub("", value)
    # Only a leading plus survives.
    cleaned = cleaned[:1] + cleaned[1:].replace("+", "")

    if sum(char.isdigit() for char in cleaned) < MIN_PHONE_DIGITS:
        log.warnings.append(f'Phone number "{value}" appears to be too short')
        issues.record("phone", f"Too short: {value}")

    if cleaned != value:
        log.fixes_applied.append(f'Cleaned phone number from "{value}" to "{cleaned}"')
    return cleaned


def normalize_email(value: str, log: RowAuditLog, issues: FieldIssueTally) -> Optional[str]:
    normalized = value.lower().strip()

    if not _EMAIL_PATTERN.match(normalized):
        log.warnings.append(f'Email "{value}" appears to be invalid format')
        issues.record("email", f"Invalid format: {value}")
        return None

    if normalized != value:
        log.fixes_applied.append(f'Normalized email from "{value}" to "{normalized}"')
    return normalized


__all__ = [
    "COUNTRY_ALIASES",
    "SEASON_KEYWORDS",
    "generate_uid",
    "normalize_country",
    "normalize_date",
    "normalize_email",
    "normalize_intake",
    "normalize_phone",
    "parse_date",
]
