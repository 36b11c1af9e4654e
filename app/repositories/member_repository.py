# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Data-access layer for member records. NO business rules — pure CRUD."""

from typing import Any, Dict, List, Optional

from sqlalchemy import text
from sqlalchemy.engine import Connection

from app.models.domain import DuesSummary, Member, MemberStatus
from app.repositories.base import BaseRepository

MEMBER_COLS = (
    "id, email, first_name, last_name, full_name, bio, photo_url, role, company, "
    "status, is_admin, dues_amount, dues_currency, dues_paid, dues_paid_at, "
    "dues_payment_ref, created_at, updated_at, invited_at, profile_completed_at"
)

# Columns a profile or administrative update may touch.
UPDATABLE_COLUMNS = frozenset({
    "first_name", "last_name", "full_name", "bio", "photo_url", "role",
    "company", "is_admin", "profile_completed_at",
})


def _row_to_member(row) -> Member:
    return Member(
        id=row["id"],
        email=row["email"],
        first_name=row["first_name"],
        last_name=row["last_name"],
        full_name=row["full_name"],
        bio=row["bio"],
        photo_url=row["photo_url"],
        role=row["role"],
        company=row["company"],
        status=MemberStatus(row["status"]),
        is_admin=bool(row["is_admin"]),
        dues_summary=DuesSummary(
            amount=row["dues_amount"],
            currency=row["dues_currency"],
            paid=bool(row["dues_paid"]),
            paid_at=row["dues_paid_at"],
            payment_ref=row["dues_payment_ref"],
        ),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
        invited_at=row["invited_at"],
        profile_completed_at=row["profile_completed_at"],
    )


class MemberRepository(BaseRepository):

    # ── Write ──────────────────────────────────────────────────────────

    def insert(self, member: Member, conn: Optional[Connection] = None) -> Member:
        with self.transaction(conn) as c:
            c.execute(
                text(f"""
                    INSERT INTO members ({MEMBER_COLS})
                    VALUES (:id, :email, :first_name, :last_name, :full_name, :bio,
                            :photo_url, :role, :company, :status, :is_admin,
                            :dues_amount, :dues_currency, :dues_paid, :dues_paid_at,
                            :dues_payment_ref, :created_at, :updated_at, :invited_at,
                            :profile_completed_at)
                """),
                {
                    "id": member.id, "email": member.email,
                    "first_name": member.first_name, "last_name": member.last_name,
                    "full_name": member.full_name, "bio": member.bio,
                    "photo_url": member.photo_url, "role": member.role,
                    "company": member.company, "status": member.status.value,
                    "is_admin": member.is_admin,
                    "dues_amount": member.dues_summary.amount,
                    "dues_currency": member.dues_summary.currency,
                    "dues_paid": member.dues_summary.paid,
                    "dues_paid_at": member.dues_summary.paid_at,
                    "dues_payment_ref": member.dues_summary.payment_ref,
                    "created_at": member.created_at, "updated_at": member.updated_at,
                    "invited_at": member.invited_at,
                    "profile_completed_at": member.profile_completed_at,
                },
            )
        return member

    def update_fields(self, member_id: str, fields: Dict[str, Any], updated_at: str,
                      conn: Optional[Connection] = None) -> int:
        unknown = set(fields) - UPDATABLE_COLUMNS
        if unknown:
            raise ValueError(f"Columns not updatable: {sorted(unknown)}")
        assignments = [f"{col} = :{col}" for col in fields] + ["updated_at = :updated_at"]
        params = dict(fields, id=member_id, updated_at=updated_at)
        with self.transaction(conn) as c:
            result = c.execute(
                text(f"UPDATE members SET {', '.join(assignments)} WHERE id = :id"),
                params,
            )
        return result.rowcount

    def update_status(self, member_id: str, expected: MemberStatus, new: MemberStatus,
                      updated_at: str, conn: Optional[Connection] = None) -> bool:
        """Compare-and-swap on status; False when another writer got there first."""
        with self.transaction(conn) as c:
            result = c.execute(
                text("""
                    UPDATE members SET status = :new, updated_at = :ts
                    WHERE id = :id AND status = :expected
                """),
                {"id": member_id, "expected": expected.value, "new": new.value, "ts": updated_at},
            )
        return result.rowcount == 1

    def record_dues_summary(self, member_id: str, summary: DuesSummary, updated_at: str,
                            conn: Optional[Connection] = None) -> int:
        with self.transaction(conn) as c:
            result = c.execute(
                text("""
                    UPDATE members SET dues_amount = :amount, dues_currency = :currency,
                        dues_paid = :paid, dues_paid_at = :paid_at,
                        dues_payment_ref = :payment_ref, updated_at = :ts
                    WHERE id = :id
                """),
                {"id": member_id, "amount": summary.amount, "currency": summary.currency,
                 "paid": summary.paid, "paid_at": summary.paid_at,
                 "payment_ref": summary.payment_ref, "ts": updated_at},
            )
        return result.rowcount

    # ── Read ───────────────────────────────────────────────────────────

    def get(self, member_id: str, conn: Optional[Connection] = None) -> Optional[Member]:
        with self.transaction(conn) as c:
            row = c.execute(
                text(f"SELECT {MEMBER_COLS} FROM members WHERE id = :id"),
                {"id": member_id},
            ).mappings().fetchone()
        return _row_to_member(row) if row else None

    def get_by_email(self, email: str, conn: Optional[Connection] = None) -> Optional[Member]:
        with self.transaction(conn) as c:
            row = c.execute(
                text(f"SELECT {MEMBER_COLS} FROM members WHERE email = :email"),
                {"email": email},
            ).mappings().fetchone()
        return _row_to_member(row) if row else None

    def list(self, status: Optional[MemberStatus] = None,
             conn: Optional[Connection] = None) -> List[Member]:
        query = f"SELECT {MEMBER_COLS} FROM members"
        params: Dict[str, Any] = {}
        if status is not None:
            query += " WHERE status = :status"
            params["status"] = status.value
        query += " ORDER BY created_at DESC, id"
        with self.transaction(conn) as c:
            rows = c.execute(text(query), params).mappings().fetchall()
        return [_row_to_member(r) for r in rows]
