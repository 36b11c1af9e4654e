# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Business logic for single-use onboarding invitations.

Only the SHA-256 digest of a token is persisted; the raw token is handed to
the caller once, at creation, and can never be recovered afterwards.
"""

import hashlib
import hmac
import secrets
import uuid
from datetime import timedelta
from typing import List, Optional, Tuple

from sqlalchemy.engine import Connection

from app.core.clock import Clock, parse_iso, to_iso, utcnow
from app.core.config import settings
from app.core.errors import (
    AlreadyUsedError,
    ExpiredError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from app.core.logging import get_logger
from app.metrics import INVITATIONS_CREATED, INVITATIONS_EXPIRED
from app.models.domain import Invitation, InvitationStatus, TokenValidation
from app.repositories.invitation_repository import InvitationRepository

logger = get_logger(__name__)

TOKEN_BYTES = 32  # 256 bits of entropy

INVALID_TOKEN_MESSAGE = "Invalid invitation token"
USED_TOKEN_MESSAGE = "This invitation has already been used"
EXPIRED_TOKEN_MESSAGE = "This invitation has expired"


def generate_token() -> str:
    return secrets.token_urlsafe(TOKEN_BYTES)


def hash_token(raw_token: str) -> str:
    return hashlib.sha256(raw_token.encode("utf-8")).hexdigest()


def normalize_email(email: str) -> str:
    normalized = (email or "").strip().lower()
    if "@" not in normalized or normalized.startswith("@") or normalized.endswith("@"):
        raise ValidationError(f"Invalid email address: {email!r}")
    return normalized


class InvitationService:
    def __init__(self, repo: InvitationRepository, clock: Clock = utcnow,
                 ttl_days: Optional[int] = None):
        self._repo = repo
        self._clock = clock
        self._ttl = timedelta(days=ttl_days if ttl_days is not None else settings.INVITATION_TTL_DAYS)

    @property
    def repo(self) -> InvitationRepository:
        return self._repo

    # ── Issue ──────────────────────────────────────────────────────────

    def create_invitation(self, email: str, created_by: str,
                          first_name: Optional[str] = None,
                          last_name: Optional[str] = None,
                          member_id: Optional[str] = None,
                          conn: Optional[Connection] = None) -> Tuple[Invitation, str]:
        if not created_by:
            raise UnauthorizedError("Creating an invitation requires an admin identity")
        raw_token = generate_token()
        now = self._clock()
        invitation = Invitation(
            id=str(uuid.uuid4()),
            email=normalize_email(email),
            first_name=first_name or None,
            last_name=last_name or None,
            token_hash=hash_token(raw_token),
            status=InvitationStatus.SENT,
            member_id=member_id,
            created_by=created_by,
            created_at=to_iso(now),
            expires_at=to_iso(now + self._ttl),
        )
        self._repo.insert(invitation, conn=conn)
        INVITATIONS_CREATED.inc()
        logger.info("Invitation created id=%s email=%s member=%s expires=%s",
                    invitation.id, invitation.email, member_id, invitation.expires_at)
        return invitation, raw_token

    # ── Validate / redeem ──────────────────────────────────────────────

    def is_expired(self, invitation: Invitation) -> bool:
        # Inclusive boundary: a token presented exactly at expires_at is expired.
        return self._clock() >= parse_iso(invitation.expires_at)

    def _lookup(self, raw_token: str, conn: Optional[Connection] = None) -> Optional[Invitation]:
        if not raw_token:
            return None
        presented = hash_token(raw_token)
        invitation = self._repo.get_by_hash(presented, conn=conn)
        if invitation is None or not hmac.compare_digest(invitation.token_hash, presented):
            return None
        return invitation

    def validate_token(self, raw_token: str, conn: Optional[Connection] = None) -> TokenValidation:
        invitation = self._lookup(raw_token, conn=conn)
        if invitation is None:
            return TokenValidation(valid=False, error=NotFoundError.code,
                                   message=INVALID_TOKEN_MESSAGE)
        if invitation.status == InvitationStatus.USED:
            return TokenValidation(valid=False, invitation=invitation,
                                   error=AlreadyUsedError.code, message=USED_TOKEN_MESSAGE)
        if invitation.status == InvitationStatus.EXPIRED:
            return TokenValidation(valid=False, invitation=invitation,
                                   error=ExpiredError.code, message=EXPIRED_TOKEN_MESSAGE)
        if self.is_expired(invitation):
            if self._repo.mark_expired(invitation.id, conn=conn):
                INVITATIONS_EXPIRED.labels(trigger="validation").inc()
                logger.info("Invitation lazily expired id=%s", invitation.id)
            invitation = invitation.model_copy(update={"status": InvitationStatus.EXPIRED})
            return TokenValidation(valid=False, invitation=invitation,
                                   error=ExpiredError.code, message=EXPIRED_TOKEN_MESSAGE)
        return TokenValidation(valid=True, invitation=invitation)

    def mark_used(self, invitation_id: str, member_id: str,
                  conn: Optional[Connection] = None) -> Invitation:
        """Flip SENT → USED. Must run in the transaction that created or located the member."""
        invitation = self._repo.get(invitation_id, conn=conn)
        if invitation is None:
            raise NotFoundError(f"Invitation {invitation_id} not found")
        if invitation.status == InvitationStatus.USED:
            raise AlreadyUsedError(USED_TOKEN_MESSAGE)
        if invitation.status == InvitationStatus.EXPIRED or self.is_expired(invitation):
            raise ExpiredError(EXPIRED_TOKEN_MESSAGE)

        used_at = to_iso(self._clock())
        if not self._repo.mark_used(invitation_id, member_id, used_at, conn=conn):
            # Lost the race against a concurrent redemption or sweep.
            current = self._repo.get(invitation_id, conn=conn)
            if current is not None and current.status == InvitationStatus.EXPIRED:
                raise ExpiredError(EXPIRED_TOKEN_MESSAGE)
            raise AlreadyUsedError(USED_TOKEN_MESSAGE)
        return invitation.model_copy(update={
            "status": InvitationStatus.USED, "member_id": member_id, "used_at": used_at,
        })

    # ── Maintenance ────────────────────────────────────────────────────

    def expire_old_invitations(self) -> int:
        count = self._repo.expire_before(to_iso(self._clock()))
        if count:
            INVITATIONS_EXPIRED.labels(trigger="sweep").inc(count)
        logger.info("Invitation sweep expired=%d", count)
        return count

    # ── Read ───────────────────────────────────────────────────────────

    def get_by_id(self, invitation_id: str) -> Invitation:
        invitation = self._repo.get(invitation_id)
        if invitation is None:
            raise NotFoundError(f"Invitation {invitation_id} not found")
        return invitation

    def list_invitations(self, status: Optional[InvitationStatus] = None) -> List[Invitation]:
        return self._repo.list(status)

    def latest_for_email(self, email: str) -> Optional[Invitation]:
        return self._repo.latest_by_email(normalize_email(email))
