# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Business logic for the Member entity and its status state machine.

Every status write goes through the transition table in
``app.models.lifecycle`` and is applied as a compare-and-swap on the stored
status, so two writers can never both move a member out of the same state.
"""

import uuid
from typing import Any, Dict, List, Optional

from sqlalchemy.engine import Connection

from app.core.clock import Clock, to_iso, utcnow
from app.core.config import settings
from app.core.errors import (
    ConflictError,
    IllegalTransitionError,
    NotFoundError,
    ValidationError,
)
from app.core.logging import get_logger
from app.metrics import MEMBER_STATUS_TRANSITIONS, MEMBERS_CREATED
from app.models.domain import DuesSummary, Member, MemberStatus
from app.models.lifecycle import (
    advance_on_profile_complete,
    can_transition,
    is_profile_complete,
)
from app.repositories.member_repository import MemberRepository
from app.services.invitation_service import normalize_email

logger = get_logger(__name__)

PROFILE_FIELDS = frozenset({"full_name", "bio", "photo_url", "role", "company"})


class MemberRegistry:
    def __init__(self, repo: MemberRepository, clock: Clock = utcnow):
        self._repo = repo
        self._clock = clock

    @property
    def repo(self) -> MemberRepository:
        return self._repo

    # ── Create ─────────────────────────────────────────────────────────

    def create_member(self, email: str, first_name: str = "", last_name: str = "",
                      status: Optional[MemberStatus] = None, is_admin: bool = False,
                      conn: Optional[Connection] = None) -> Member:
        email = normalize_email(email)
        first_name = (first_name or "").strip()
        last_name = (last_name or "").strip()
        status = MemberStatus(status) if status else MemberStatus.PENDING_PROFILE
        now = to_iso(self._clock())

        with self._repo.transaction(conn) as c:
            if self._repo.get_by_email(email, conn=c) is not None:
                raise ConflictError(f"A member with email {email} already exists")
            member = Member(
                id=str(uuid.uuid4()),
                email=email,
                first_name=first_name,
                last_name=last_name,
                full_name=f"{first_name} {last_name}".strip() or None,
                status=status,
                is_admin=bool(is_admin),
                dues_summary=DuesSummary(
                    amount=settings.DEFAULT_DUES_AMOUNT,
                    currency=settings.DEFAULT_DUES_CURRENCY,
                ),
                created_at=now,
                updated_at=now,
                invited_at=now if status == MemberStatus.INVITED else None,
            )
            self._repo.insert(member, conn=c)

        MEMBERS_CREATED.labels(status=status.value).inc()
        logger.info("Member created id=%s email=%s status=%s admin=%s",
                    member.id, email, status.value, member.is_admin)
        return member

    # ── Update ─────────────────────────────────────────────────────────

    def update_profile(self, member_id: str, changes: Dict[str, Any],
                       conn: Optional[Connection] = None) -> Member:
        """Write profile fields; a PENDING_PROFILE member supplying a name or bio
        advances to PENDING_PAYMENT in the same transaction."""
        unknown = set(changes) - PROFILE_FIELDS
        if unknown:
            raise ValidationError(f"Unknown profile fields: {sorted(unknown)}")
        fields = {k: v for k, v in changes.items() if v is not None}

        with self._repo.transaction(conn) as c:
            member = self._require(member_id, conn=c)
            target = advance_on_profile_complete(member, fields)
            now = to_iso(self._clock())
            if target is not None and not member.profile_completed_at:
                fields["profile_completed_at"] = now
            if fields:
                self._repo.update_fields(member_id, fields, now, conn=c)
            if target is not None:
                self._apply_transition(member, target, conn=c)
            updated = self._require(member_id, conn=c)

        logger.info("Member profile updated id=%s fields=%s status=%s",
                    member_id, sorted(fields), updated.status.value)
        return updated

    def update_status(self, member_id: str, status: MemberStatus,
                      conn: Optional[Connection] = None) -> Member:
        status = MemberStatus(status)
        with self._repo.transaction(conn) as c:
            member = self._require(member_id, conn=c)
            if member.status == status:
                return member
            if not can_transition(member.status, status):
                raise IllegalTransitionError(
                    f"Cannot transition member {member_id} from "
                    f"{member.status.value} to {status.value}"
                )
            self._apply_transition(member, status, conn=c)
            return self._require(member_id, conn=c)

    def promote_to_active(self, member_id: str, conn: Optional[Connection] = None) -> bool:
        """Move a member with a complete profile to ACTIVE; True when a write happened."""
        with self._repo.transaction(conn) as c:
            member = self._require(member_id, conn=c)
            if member.status == MemberStatus.ACTIVE:
                return False
            if not is_profile_complete(member):
                logger.info("Promotion skipped id=%s status=%s (profile incomplete)",
                            member_id, member.status.value)
                return False
            if not can_transition(member.status, MemberStatus.ACTIVE):
                return False
            self._apply_transition(member, MemberStatus.ACTIVE, conn=c)
            return True

    def record_dues_summary(self, member_id: str, summary: DuesSummary,
                            conn: Optional[Connection] = None) -> None:
        self._repo.record_dues_summary(member_id, summary, to_iso(self._clock()), conn=conn)

    def _apply_transition(self, member: Member, target: MemberStatus,
                          conn: Connection) -> None:
        swapped = self._repo.update_status(
            member.id, member.status, target, to_iso(self._clock()), conn=conn
        )
        if not swapped:
            raise ConflictError(f"Member {member.id} status changed concurrently")
        MEMBER_STATUS_TRANSITIONS.labels(
            from_status=member.status.value, to_status=target.value
        ).inc()
        logger.info("Member status id=%s %s -> %s",
                    member.id, member.status.value, target.value)

    # ── Read ───────────────────────────────────────────────────────────

    def _require(self, member_id: str, conn: Optional[Connection] = None) -> Member:
        member = self._repo.get(member_id, conn=conn)
        if member is None:
            raise NotFoundError(f"Member {member_id} not found")
        return member

    def get_by_id(self, member_id: str, conn: Optional[Connection] = None) -> Member:
        return self._require(member_id, conn=conn)

    def find_by_email(self, email: str, conn: Optional[Connection] = None) -> Optional[Member]:
        normalized = (email or "").strip().lower()
        if not normalized:
            return None
        return self._repo.get_by_email(normalized, conn=conn)

    def get_by_email(self, email: str) -> Member:
        member = self.find_by_email(email)
        if member is None:
            raise NotFoundError(f"No member with email {email}")
        return member

    def list_by_status(self, status: MemberStatus) -> List[Member]:
        return self._repo.list(MemberStatus(status))

    def list_all(self) -> List[Member]:
        return self._repo.list()
