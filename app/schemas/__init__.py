# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Pydantic request/response schemas."""
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from app.models.domain import (
    Cycle,
    Invitation,
    InvitationStatus,
    Member,
    MemberDues,
    MemberStatus,
    Payment,
)

VALID_MEMBER_STATUSES = tuple(s.value for s in MemberStatus)


def _normalise_email(v: str) -> str:
    v = v.strip().lower()
    if "@" not in v:
        raise ValueError("email must contain '@'")
    return v


# ── Invitations ────────────────────────────────────────────────────────

class InvitationCreate(BaseModel):
    email: str = Field(..., min_length=3, max_length=320)
    first_name: Optional[str] = Field(None, max_length=200)
    last_name: Optional[str] = Field(None, max_length=200)
    member_id: Optional[str] = None

    @field_validator("email")
    @classmethod
    def normalise_email(cls, v: str) -> str:
        return _normalise_email(v)


class InviteMemberRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=320)
    first_name: str = Field(..., min_length=1, max_length=200)
    last_name: str = Field(..., min_length=1, max_length=200)

    @field_validator("email")
    @classmethod
    def normalise_email(cls, v: str) -> str:
        return _normalise_email(v)


class InvitationOut(BaseModel):
    """Public view of an invitation; the token hash never leaves the service."""
    id: str
    email: str
    first_name: Optional[str]
    last_name: Optional[str]
    status: InvitationStatus
    member_id: Optional[str]
    created_by: str
    created_at: str
    expires_at: str
    used_at: Optional[str]

    @classmethod
    def from_domain(cls, invitation: Invitation) -> "InvitationOut":
        return cls(**invitation.model_dump(exclude={"token_hash"}))


class InvitationIssued(BaseModel):
    invitation: InvitationOut
    token: str
    member: Optional[Member] = None


class TokenRequest(BaseModel):
    token: str = Field(..., min_length=1, max_length=512)


class TokenValidationOut(BaseModel):
    valid: bool
    invitation: Optional[InvitationOut] = None
    error: Optional[str] = None
    message: Optional[str] = None


class RedemptionOut(BaseModel):
    member: Member
    invitation: InvitationOut


class SweepOut(BaseModel):
    expired: int


# ── Members ────────────────────────────────────────────────────────────

class MemberCreate(BaseModel):
    email: str = Field(..., min_length=3, max_length=320)
    first_name: str = Field(..., min_length=1, max_length=200)
    last_name: str = Field(..., min_length=1, max_length=200)
    status: Optional[MemberStatus] = None
    is_admin: bool = False

    @field_validator("email")
    @classmethod
    def normalise_email(cls, v: str) -> str:
        return _normalise_email(v)


class ProfileUpdate(BaseModel):
    full_name: Optional[str] = Field(None, max_length=400)
    bio: Optional[str] = Field(None, max_length=5000)
    photo_url: Optional[str] = Field(None, max_length=2000)
    role: Optional[str] = Field(None, max_length=200)
    company: Optional[str] = Field(None, max_length=200)


class StatusUpdate(BaseModel):
    status: MemberStatus

    @field_validator("status", mode="before")
    @classmethod
    def normalise_status(cls, v):
        if isinstance(v, str):
            v = v.strip().upper()
            if v not in VALID_MEMBER_STATUSES:
                raise ValueError(f"status must be one of {VALID_MEMBER_STATUSES}")
        return v


# ── Cycles & dues ──────────────────────────────────────────────────────

class CycleCreate(BaseModel):
    ending_year: int = Field(..., ge=2000, le=2200)
    amount: Optional[int] = Field(None, gt=0)
    grace_days: Optional[int] = Field(None, ge=0, le=365)
    currency: Optional[str] = Field(None, min_length=3, max_length=3)


class OfflinePaymentRequest(BaseModel):
    note: Optional[str] = Field(None, max_length=2000)


class WaiveRequest(BaseModel):
    reason: str = Field(..., min_length=1, max_length=2000)


class CycleDuesOut(BaseModel):
    cycle_id: str
    dues: Dict[str, MemberDues]


class DuesStatusOut(BaseModel):
    member_id: str
    member_status: MemberStatus
    cycle: Optional[Cycle] = None
    dues: Optional[MemberDues] = None


class UnpaidMembersOut(BaseModel):
    cycle_id: str
    members: List[Member]


# ── Payments ───────────────────────────────────────────────────────────

class PaymentCreate(BaseModel):
    member_id: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3, max_length=320)
    gateway_session_id: str = Field(..., min_length=1, max_length=255)
    amount: int = Field(..., gt=0)
    currency: str = Field("USD", min_length=3, max_length=3)
    cycle_id: Optional[str] = None
    description: Optional[str] = Field(None, max_length=500)

    @field_validator("email")
    @classmethod
    def normalise_email(cls, v: str) -> str:
        return _normalise_email(v)

    @field_validator("currency")
    @classmethod
    def normalise_currency(cls, v: str) -> str:
        return v.strip().upper()


class ReconcileRequest(BaseModel):
    gateway_session_id: str = Field(..., min_length=1, max_length=255)
    gateway_payment_intent_id: Optional[str] = None


class ReconcileOut(BaseModel):
    outcome: str
    payment: Optional[Payment] = None
    member_id: Optional[str] = None
    cycle_id: Optional[str] = None


# ── Access ─────────────────────────────────────────────────────────────

class AdminCheckOut(BaseModel):
    email: str
    is_admin: bool
