# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Onboarding flows that span invitations and members.

Redemption creates or locates the member and flips the invitation to USED in
one transaction: a crash in between leaves the token redeemable and no
member half-attached to it.
"""

from typing import Optional, Tuple

from app.core.errors import (
    AlreadyUsedError,
    ConflictError,
    ExpiredError,
    NotFoundError,
    UnauthorizedError,
)
from app.core.logging import get_logger
from app.metrics import INVITATIONS_REDEEMED
from app.models.domain import Invitation, InvitationStatus, Member, MemberStatus
from app.services.invitation_service import InvitationService
from app.services.member_registry import MemberRegistry

logger = get_logger(__name__)

_VALIDATION_ERRORS = {
    NotFoundError.code: NotFoundError,
    AlreadyUsedError.code: AlreadyUsedError,
    ExpiredError.code: ExpiredError,
}


class OnboardingService:
    def __init__(self, invitations: InvitationService, registry: MemberRegistry):
        self._invitations = invitations
        self._registry = registry

    def invite_member(self, email: str, created_by: str,
                      first_name: Optional[str] = None,
                      last_name: Optional[str] = None) -> Tuple[Member, Invitation, str]:
        """Create an INVITED member and an invitation pointing at it."""
        if not created_by:
            raise UnauthorizedError("Inviting a member requires an admin identity")
        with self._registry.repo.transaction() as conn:
            member = self._registry.create_member(
                email, first_name or "", last_name or "",
                status=MemberStatus.INVITED, conn=conn,
            )
            invitation, raw_token = self._invitations.create_invitation(
                member.email, created_by,
                first_name=first_name, last_name=last_name,
                member_id=member.id, conn=conn,
            )
        logger.info("Member invited member=%s invitation=%s by=%s",
                    member.id, invitation.id, created_by)
        return member, invitation, raw_token

    def redeem(self, raw_token: str) -> Tuple[Member, Invitation]:
        validation = self._invitations.validate_token(raw_token)
        if not validation.valid:
            raise _VALIDATION_ERRORS.get(validation.error, NotFoundError)(validation.message)
        invitation = validation.invitation

        try:
            with self._registry.repo.transaction() as conn:
                member = self._attach_member(invitation, conn)
                used = self._invitations.mark_used(invitation.id, member.id, conn=conn)
        except ConflictError as exc:
            # A concurrent redeemer created the member first.
            current = self._invitations.repo.get(invitation.id)
            if current is not None and current.status == InvitationStatus.USED:
                raise AlreadyUsedError("This invitation has already been used") from exc
            raise

        INVITATIONS_REDEEMED.inc()
        logger.info("Invitation redeemed id=%s member=%s status=%s",
                    invitation.id, member.id, member.status.value)
        return member, used

    def _attach_member(self, invitation: Invitation, conn) -> Member:
        if invitation.member_id:
            member = self._registry.get_by_id(invitation.member_id, conn=conn)
        else:
            member = self._registry.find_by_email(invitation.email, conn=conn)

        if member is None:
            return self._registry.create_member(
                invitation.email, invitation.first_name or "", invitation.last_name or "",
                status=MemberStatus.PENDING_PROFILE, conn=conn,
            )
        if member.status == MemberStatus.INVITED:
            return self._registry.update_status(member.id, MemberStatus.PENDING_PROFILE, conn=conn)
        return member
