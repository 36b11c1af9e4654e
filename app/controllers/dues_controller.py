# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Controller: per-member dues status, offline payments, waivers, grace enforcement."""
from fastapi import APIRouter, Depends

from app.core.dependencies import get_admin_uid, get_dues_ledger
from app.models.domain import GraceEnforcement, MemberDues
from app.schemas import (
    CycleDuesOut,
    DuesStatusOut,
    OfflinePaymentRequest,
    UnpaidMembersOut,
    WaiveRequest,
)
from app.services.dues_ledger import DuesLedger

router = APIRouter(prefix="/api/v1", tags=["Dues"])


@router.post("/dues/enforce-grace", response_model=GraceEnforcement)
def enforce_grace_period(admin_uid: str = Depends(get_admin_uid),
                         ledger: DuesLedger = Depends(get_dues_ledger)):
    return ledger.enforce_grace_period()


@router.get("/dues/{cycle_id}", response_model=CycleDuesOut)
def list_cycle_dues(cycle_id: str, ledger: DuesLedger = Depends(get_dues_ledger)):
    return CycleDuesOut(cycle_id=cycle_id, dues=ledger.list_member_dues_for_cycle(cycle_id))


@router.get("/dues/{cycle_id}/unpaid", response_model=UnpaidMembersOut)
def list_unpaid_active(cycle_id: str, ledger: DuesLedger = Depends(get_dues_ledger)):
    return UnpaidMembersOut(cycle_id=cycle_id, members=ledger.list_unpaid_active_members(cycle_id))


@router.get("/dues/{cycle_id}/members/{member_id}", response_model=MemberDues)
def get_member_dues(cycle_id: str, member_id: str,
                    ledger: DuesLedger = Depends(get_dues_ledger)):
    return ledger.get_member_dues(member_id, cycle_id)


@router.post("/dues/{cycle_id}/members/{member_id}/paid-offline", response_model=MemberDues)
def mark_paid_offline(cycle_id: str, member_id: str, body: OfflinePaymentRequest,
                      admin_uid: str = Depends(get_admin_uid),
                      ledger: DuesLedger = Depends(get_dues_ledger)):
    return ledger.mark_paid_offline(member_id, cycle_id, admin_uid, body.note)


@router.post("/dues/{cycle_id}/members/{member_id}/waive", response_model=MemberDues)
def waive_dues(cycle_id: str, member_id: str, body: WaiveRequest,
               admin_uid: str = Depends(get_admin_uid),
               ledger: DuesLedger = Depends(get_dues_ledger)):
    return ledger.waive(member_id, cycle_id, admin_uid, body.reason)


@router.get("/members/{member_id}/dues-status", response_model=DuesStatusOut)
def member_dues_status(member_id: str, ledger: DuesLedger = Depends(get_dues_ledger)):
    member, cycle, dues = ledger.dues_status(member_id)
    return DuesStatusOut(member_id=member.id, member_status=member.status, cycle=cycle, dues=dues)
