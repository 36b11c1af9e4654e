# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Domain models — pure data structures, NO FastAPI dependency.
Uses (str, Enum) so status values serialise as plain strings.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class MemberStatus(str, Enum):
    INVITED = "INVITED"
    PENDING_PROFILE = "PENDING_PROFILE"
    PENDING_PAYMENT = "PENDING_PAYMENT"
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class InvitationStatus(str, Enum):
    SENT = "SENT"
    USED = "USED"
    EXPIRED = "EXPIRED"


class DuesStatus(str, Enum):
    UNPAID = "UNPAID"
    PAID = "PAID"
    PAID_OFFLINE = "PAID_OFFLINE"
    WAIVED = "WAIVED"


class PaymentStatus(str, Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"


class DuesSummary(BaseModel):
    """Denormalised cache of the latest dues fact; never used for access."""
    amount: int
    currency: str
    paid: bool = False
    paid_at: Optional[str] = None
    payment_ref: Optional[str] = None


class Member(BaseModel):
    id: str
    email: str
    first_name: str
    last_name: str
    full_name: Optional[str] = None
    bio: Optional[str] = None
    photo_url: Optional[str] = None
    role: Optional[str] = None
    company: Optional[str] = None
    status: MemberStatus
    is_admin: bool = False
    dues_summary: DuesSummary
    created_at: str
    updated_at: str
    invited_at: Optional[str] = None
    profile_completed_at: Optional[str] = None


class Invitation(BaseModel):
    id: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    token_hash: str
    status: InvitationStatus
    member_id: Optional[str] = None
    created_by: str
    created_at: str
    expires_at: str
    used_at: Optional[str] = None


class Cycle(BaseModel):
    id: str
    label: str
    start_date: str
    end_date: str
    amount: int
    currency: str
    is_active: bool = False
    grace_days: int
    created_at: str
    updated_at: str
    created_by: str


class MemberDues(BaseModel):
    """Status of one member within one cycle; absence of a record is UNPAID."""
    member_id: str
    cycle_id: str
    status: DuesStatus = DuesStatus.UNPAID
    paid_at: Optional[str] = None
    paid_offline_at: Optional[str] = None
    waived_at: Optional[str] = None
    payment_ref: Optional[str] = None
    note: Optional[str] = None
    updated_by: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def unpaid(cls, member_id: str, cycle_id: str) -> "MemberDues":
        return cls(member_id=member_id, cycle_id=cycle_id)

    @property
    def is_settled(self) -> bool:
        return self.status in (DuesStatus.PAID, DuesStatus.PAID_OFFLINE, DuesStatus.WAIVED)


class Payment(BaseModel):
    id: str
    member_id: str
    cycle_id: Optional[str] = None
    email: str
    gateway_session_id: str
    gateway_payment_intent_id: Optional[str] = None
    amount: int
    currency: str
    status: PaymentStatus
    description: Optional[str] = None
    created_at: str
    updated_at: str
    paid_at: Optional[str] = None


class TokenValidation(BaseModel):
    valid: bool
    invitation: Optional[Invitation] = None
    error: Optional[str] = None
    message: Optional[str] = None


class ReconcileResult(BaseModel):
    payment: Payment
    member_id: str
    cycle_id: Optional[str] = None
    outcome: str


class AccessDecision(BaseModel):
    has_access: bool
    member: Optional[Member] = None
    reason: Optional[str] = None
    redirect: str = "/portal/login"


class GraceEnforcement(BaseModel):
    cycle_id: Optional[str] = None
    inactivated: int = 0
    member_ids: list[str] = Field(default_factory=list)
    message: str
