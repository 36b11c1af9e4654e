# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Data-access layer for invitations. Only the token hash is ever stored."""

from typing import List, Optional

from sqlalchemy import text
from sqlalchemy.engine import Connection

from app.models.domain import Invitation, InvitationStatus
from app.repositories.base import BaseRepository

INVITATION_COLS = (
    "id, email, first_name, last_name, token_hash, status, member_id, "
    "created_by, created_at, expires_at, used_at"
)


def _row_to_invitation(row) -> Invitation:
    return Invitation(
        id=row["id"],
        email=row["email"],
        first_name=row["first_name"],
        last_name=row["last_name"],
        token_hash=row["token_hash"],
        status=InvitationStatus(row["status"]),
        member_id=row["member_id"],
        created_by=row["created_by"],
        created_at=row["created_at"],
        expires_at=row["expires_at"],
        used_at=row["used_at"],
    )


class InvitationRepository(BaseRepository):

    # ── Write ──────────────────────────────────────────────────────────

    def insert(self, invitation: Invitation, conn: Optional[Connection] = None) -> Invitation:
        with self.transaction(conn) as c:
            c.execute(
                text(f"""
                    INSERT INTO invitations ({INVITATION_COLS})
                    VALUES (:id, :email, :first_name, :last_name, :token_hash, :status,
                            :member_id, :created_by, :created_at, :expires_at, :used_at)
                """),
                invitation.model_dump(mode="json"),
            )
        return invitation

    def mark_used(self, invitation_id: str, member_id: str, used_at: str,
                  conn: Optional[Connection] = None) -> bool:
        """SENT → USED; False when the invitation is no longer SENT."""
        with self.transaction(conn) as c:
            result = c.execute(
                text("""
                    UPDATE invitations SET status = 'USED', member_id = :member_id, used_at = :ts
                    WHERE id = :id AND status = 'SENT'
                """),
                {"id": invitation_id, "member_id": member_id, "ts": used_at},
            )
        return result.rowcount == 1

    def mark_expired(self, invitation_id: str, conn: Optional[Connection] = None) -> bool:
        with self.transaction(conn) as c:
            result = c.execute(
                text("UPDATE invitations SET status = 'EXPIRED' WHERE id = :id AND status = 'SENT'"),
                {"id": invitation_id},
            )
        return result.rowcount == 1

    def expire_before(self, now: str, conn: Optional[Connection] = None) -> int:
        with self.transaction(conn) as c:
            result = c.execute(
                text("""
                    UPDATE invitations SET status = 'EXPIRED'
                    WHERE status = 'SENT' AND expires_at <= :now
                """),
                {"now": now},
            )
        return result.rowcount

    # ── Read ───────────────────────────────────────────────────────────

    def get(self, invitation_id: str, conn: Optional[Connection] = None) -> Optional[Invitation]:
        with self.transaction(conn) as c:
            row = c.execute(
                text(f"SELECT {INVITATION_COLS} FROM invitations WHERE id = :id"),
                {"id": invitation_id},
            ).mappings().fetchone()
        return _row_to_invitation(row) if row else None

    def get_by_hash(self, token_hash: str, conn: Optional[Connection] = None) -> Optional[Invitation]:
        with self.transaction(conn) as c:
            row = c.execute(
                text(f"SELECT {INVITATION_COLS} FROM invitations WHERE token_hash = :h"),
                {"h": token_hash},
            ).mappings().fetchone()
        return _row_to_invitation(row) if row else None

    def latest_by_email(self, email: str, conn: Optional[Connection] = None) -> Optional[Invitation]:
        with self.transaction(conn) as c:
            row = c.execute(
                text(f"""
                    SELECT {INVITATION_COLS} FROM invitations WHERE email = :email
                    ORDER BY created_at DESC LIMIT 1
                """),
                {"email": email},
            ).mappings().fetchone()
        return _row_to_invitation(row) if row else None

    def list(self, status: Optional[InvitationStatus] = None,
             conn: Optional[Connection] = None) -> List[Invitation]:
        query = f"SELECT {INVITATION_COLS} FROM invitations"
        params = {}
        if status is not None:
            query += " WHERE status = :status"
            params["status"] = status.value
        query += " ORDER BY created_at DESC, id"
        with self.transaction(conn) as c:
            rows = c.execute(text(query), params).mappings().fetchall()
        return [_row_to_invitation(r) for r in rows]
