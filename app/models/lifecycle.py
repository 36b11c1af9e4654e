# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Member status state machine.

    INVITED ─► PENDING_PROFILE ─► PENDING_PAYMENT ─► ACTIVE
    any non-inactive state ─► INACTIVE   (administrative deactivation)
    INACTIVE ─► PENDING_PAYMENT | ACTIVE (reactivation)
"""

from typing import Any, Mapping, Optional

from app.models.domain import Member, MemberStatus

# Allowed transitions: {current_status: set_of_next_statuses}
MEMBER_TRANSITIONS: dict[MemberStatus, set[MemberStatus]] = {
    MemberStatus.INVITED:         {MemberStatus.PENDING_PROFILE, MemberStatus.INACTIVE},
    MemberStatus.PENDING_PROFILE: {MemberStatus.PENDING_PAYMENT, MemberStatus.INACTIVE},
    MemberStatus.PENDING_PAYMENT: {MemberStatus.ACTIVE, MemberStatus.INACTIVE},
    MemberStatus.ACTIVE:          {MemberStatus.INACTIVE},
    MemberStatus.INACTIVE:        {MemberStatus.PENDING_PAYMENT, MemberStatus.ACTIVE},
}

STATUS_MESSAGES: dict[MemberStatus, str] = {
    MemberStatus.INVITED: "Please complete your profile to access the portal",
    MemberStatus.PENDING_PROFILE: "Please complete your profile to access the portal",
    MemberStatus.PENDING_PAYMENT: "Please pay your membership dues to access the portal",
    MemberStatus.INACTIVE: "Your membership is inactive. Please contact an administrator",
    MemberStatus.ACTIVE: "Your membership is active",
}

STATUS_REDIRECTS: dict[MemberStatus, str] = {
    MemberStatus.INVITED: "/portal/onboarding",
    MemberStatus.PENDING_PROFILE: "/portal/onboarding",
    MemberStatus.PENDING_PAYMENT: "/portal/onboarding",
    MemberStatus.INACTIVE: "/portal/inactive",
    MemberStatus.ACTIVE: "/portal",
}

PROFILE_COMPLETING_FIELDS: tuple[str, ...] = ("full_name", "bio")


def can_transition(current: MemberStatus, target: MemberStatus) -> bool:
    return target in MEMBER_TRANSITIONS.get(current, set())


def advance_on_profile_complete(
    member: Member, changes: Mapping[str, Any]
) -> Optional[MemberStatus]:
    """Status a profile write moves the member to, or None when it stays put.

    Only a PENDING_PROFILE member supplying a name or bio advances.
    """
    if member.status != MemberStatus.PENDING_PROFILE:
        return None
    if any(changes.get(field) for field in PROFILE_COMPLETING_FIELDS):
        return MemberStatus.PENDING_PAYMENT
    return None


def is_profile_complete(member: Member) -> bool:
    if member.profile_completed_at:
        return True
    return member.status in (MemberStatus.PENDING_PAYMENT, MemberStatus.ACTIVE)
