"""Counselor assignment and initial stage rules for imported leads."""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterable, Optional, Sequence

from .models import Assignment, CounselorContext, User

if TYPE_CHECKING:  # pragma: no cover - typing only
    from .models import NormalizedLead

LOGGER = logging.getLogger(__name__)

LEAD_STAGES = (
    "Yet to Assign",
    "Yet to Contact",
    "Contact Again",
    "Not Interested",
    "Planning Later",
    "Yet to Decide",
    "Irrelevant Lead",
    "Registered for Session",
    "Session Completed",
    "Docs Submitted",
    "Shortlisted Univ.",
    "Application in Progress",
    "Offer Letter Received",
    "Deposit Paid",
    "Visa Received",
    "Flight and Accommodation Booked",
    "Tuition Fee Paid",
    "Commission Received",
)
UNASSIGNED_STAGE = LEAD_STAGES[0]
READY_TO_CONTACT_STAGE = LEAD_STAGES[1]

ADMIN_ROLE = "admin"
COUNSELOR_ROLE = "counselor"


def build_counselor_context(
    users: Iterable[User],
    *,
    manager_marker: Optional[str] = None,
    default_counselor_marker: Optional[str] = None,
) -> CounselorContext:
    """Pick the manager, counselors, and fallback counselor out of ``users``."""

    users = list(users)
    manager_token = (manager_marker or "").lower()
    default_token = (default_counselor_marker or "").lower()

    manager = next(
        (
            user
            for user in users
            if (manager_token and manager_token in user.name.lower()) or user.role == ADMIN_ROLE
        ),
        None,
    )
    counselors = tuple(user for user in users if user.role == COUNSELOR_ROLE)
    default_counselor = None
    if default_token:
        default_counselor = next((c for c in counselors if default_token in c.name.lower()), None)

    LOGGER.debug(
        "Roster snapshot: manager=%s counselors=%d default=%s",
        manager.id if manager else None,
        len(counselors),
        default_counselor.id if default_counselor else None,
    )
    return CounselorContext(
        manager_id=manager.id if manager else None,
        counselors=counselors,
        default_counselor=default_counselor,
    )


def match_counselor(hint: str, counselors: Sequence[User]) -> Optional[User]:
    """Return the first counselor whose name contains, or is contained in, ``hint``."""

    wanted = hint.strip().lower()
    for counselor in counselors:
        name = counselor.name.lower()
        if name in wanted or wanted in name:
            return counselor
    return None


def derive_stage(counselor_id: Optional[int], requested_stage: Optional[str] = None) -> str:
    if requested_stage and requested_stage.strip():
        return requested_stage.strip()

    # TODO: confirm with sales ops whether assigned leads should start at a later stage;
    # both branches currently land on the same stage.
    if counselor_id is None:
        return READY_TO_CONTACT_STAGE
    return READY_TO_CONTACT_STAGE


def apply_business_rules(lead: "NormalizedLead", context: CounselorContext) -> Assignment:
    counselor_id: Optional[int] = None

    if lead.counsellor_name_hint:
        matched = match_counselor(lead.counsellor_name_hint, context.counselors)
        if matched is not None:
            counselor_id = matched.id
        elif context.default_counselor is not None:
            counselor_id = context.default_counselor.id

    return Assignment(
        counselor_id=counselor_id,
        current_stage=derive_stage(counselor_id, lead.current_stage_requested),
    )


__all__ = [
    "LEAD_STAGES",
    "READY_TO_CONTACT_STAGE",
    "UNASSIGNED_STAGE",
    "apply_business_rules",
    "build_counselor_context",
    "derive_stage",
    "match_counselor",
]
