# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Controller: member records, profile completion and status changes."""
from typing import List, Optional

from fastapi import APIRouter, Depends

from app.core.dependencies import get_admin_uid, get_dues_ledger, get_member_registry
from app.models.domain import Member, MemberStatus
from app.schemas import MemberCreate, ProfileUpdate, StatusUpdate
from app.services.dues_ledger import DuesLedger
from app.services.member_registry import MemberRegistry

router = APIRouter(prefix="/api/v1", tags=["Members"])


@router.post("/members", status_code=201, response_model=Member)
def create_member(body: MemberCreate,
                  admin_uid: str = Depends(get_admin_uid),
                  registry: MemberRegistry = Depends(get_member_registry)):
    return registry.create_member(
        body.email, body.first_name, body.last_name,
        status=body.status, is_admin=body.is_admin,
    )


@router.get("/members", response_model=List[Member])
def list_members(status: Optional[MemberStatus] = None,
                 registry: MemberRegistry = Depends(get_member_registry)):
    if status is not None:
        return registry.list_by_status(status)
    return registry.list_all()


@router.get("/members/by-email/{email}", response_model=Member)
def get_member_by_email(email: str, registry: MemberRegistry = Depends(get_member_registry)):
    return registry.get_by_email(email)


@router.get("/members/{member_id}", response_model=Member)
def get_member(member_id: str, registry: MemberRegistry = Depends(get_member_registry)):
    return registry.get_by_id(member_id)


@router.patch("/members/{member_id}/profile", response_model=Member)
def update_profile(member_id: str, body: ProfileUpdate,
                   registry: MemberRegistry = Depends(get_member_registry),
                   ledger: DuesLedger = Depends(get_dues_ledger)):
    registry.update_profile(member_id, body.model_dump(exclude_none=True))
    # Dues settled before the profile was finished promote the member now.
    return ledger.sync_member_status(member_id)


@router.patch("/members/{member_id}/status", response_model=Member)
def update_status(member_id: str, body: StatusUpdate,
                  admin_uid: str = Depends(get_admin_uid),
                  ledger: DuesLedger = Depends(get_dues_ledger)):
    return ledger.change_member_status(member_id, body.status, admin_uid)
