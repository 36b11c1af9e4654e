# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Controller: invitation issue, validation, redemption and expiry sweep."""
from typing import List, Optional

from fastapi import APIRouter, Depends

from app.core.dependencies import (
    get_admin_uid,
    get_invitation_service,
    get_onboarding_service,
)
from app.models.domain import InvitationStatus
from app.schemas import (
    InvitationCreate,
    InvitationIssued,
    InvitationOut,
    InviteMemberRequest,
    RedemptionOut,
    SweepOut,
    TokenRequest,
    TokenValidationOut,
)
from app.services.invitation_service import InvitationService
from app.services.onboarding_service import OnboardingService

router = APIRouter(prefix="/api/v1", tags=["Invitations"])


@router.post("/invitations", status_code=201, response_model=InvitationIssued)
def create_invitation(body: InvitationCreate,
                      admin_uid: str = Depends(get_admin_uid),
                      service: InvitationService = Depends(get_invitation_service)):
    invitation, token = service.create_invitation(
        body.email, admin_uid,
        first_name=body.first_name, last_name=body.last_name, member_id=body.member_id,
    )
    return InvitationIssued(invitation=InvitationOut.from_domain(invitation), token=token)


@router.post("/invitations/invite-member", status_code=201, response_model=InvitationIssued)
def invite_member(body: InviteMemberRequest,
                  admin_uid: str = Depends(get_admin_uid),
                  onboarding: OnboardingService = Depends(get_onboarding_service)):
    member, invitation, token = onboarding.invite_member(
        body.email, admin_uid, first_name=body.first_name, last_name=body.last_name,
    )
    return InvitationIssued(
        invitation=InvitationOut.from_domain(invitation), token=token, member=member,
    )


@router.get("/invitations", response_model=List[InvitationOut])
def list_invitations(status: Optional[InvitationStatus] = None,
                     service: InvitationService = Depends(get_invitation_service)):
    return [InvitationOut.from_domain(i) for i in service.list_invitations(status)]


@router.get("/invitations/latest", response_model=Optional[InvitationOut])
def latest_invitation(email: str,
                      service: InvitationService = Depends(get_invitation_service)):
    invitation = service.latest_for_email(email)
    return InvitationOut.from_domain(invitation) if invitation else None


@router.post("/invitations/validate", response_model=TokenValidationOut)
def validate_invitation(body: TokenRequest,
                        service: InvitationService = Depends(get_invitation_service)):
    result = service.validate_token(body.token)
    return TokenValidationOut(
        valid=result.valid,
        invitation=InvitationOut.from_domain(result.invitation) if result.invitation else None,
        error=result.error,
        message=result.message,
    )


@router.post("/invitations/redeem", response_model=RedemptionOut)
def redeem_invitation(body: TokenRequest,
                      onboarding: OnboardingService = Depends(get_onboarding_service)):
    member, invitation = onboarding.redeem(body.token)
    return RedemptionOut(member=member, invitation=InvitationOut.from_domain(invitation))


@router.post("/invitations/expire", response_model=SweepOut)
def expire_invitations(admin_uid: str = Depends(get_admin_uid),
                       service: InvitationService = Depends(get_invitation_service)):
    return SweepOut(expired=service.expire_old_invitations())
