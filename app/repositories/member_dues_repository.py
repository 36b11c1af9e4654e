# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Data-access layer for per-cycle member dues records."""

from typing import List, Optional

from sqlalchemy import text
from sqlalchemy.engine import Connection

from app.models.domain import DuesStatus, MemberDues
from app.repositories.base import BaseRepository

DUES_COLS = (
    "member_id, cycle_id, status, paid_at, paid_offline_at, waived_at, "
    "payment_ref, note, updated_by, updated_at"
)


def _row_to_dues(row) -> MemberDues:
    return MemberDues(
        member_id=row["member_id"],
        cycle_id=row["cycle_id"],
        status=DuesStatus(row["status"]),
        paid_at=row["paid_at"],
        paid_offline_at=row["paid_offline_at"],
        waived_at=row["waived_at"],
        payment_ref=row["payment_ref"],
        note=row["note"],
        updated_by=row["updated_by"],
        updated_at=row["updated_at"],
    )


class MemberDuesRepository(BaseRepository):

    def upsert(self, dues: MemberDues, conn: Optional[Connection] = None) -> MemberDues:
        """Insert or fully replace the record for (member_id, cycle_id)."""
        with self.transaction(conn) as c:
            c.execute(
                text(f"""
                    INSERT INTO member_dues ({DUES_COLS})
                    VALUES (:member_id, :cycle_id, :status, :paid_at, :paid_offline_at,
                            :waived_at, :payment_ref, :note, :updated_by, :updated_at)
                    ON CONFLICT (member_id, cycle_id) DO UPDATE SET
                        status = excluded.status,
                        paid_at = excluded.paid_at,
                        paid_offline_at = excluded.paid_offline_at,
                        waived_at = excluded.waived_at,
                        payment_ref = excluded.payment_ref,
                        note = excluded.note,
                        updated_by = excluded.updated_by,
                        updated_at = excluded.updated_at
                """),
                dues.model_dump(mode="json"),
            )
        return dues

    def get(self, member_id: str, cycle_id: str,
            conn: Optional[Connection] = None) -> Optional[MemberDues]:
        with self.transaction(conn) as c:
            row = c.execute(
                text(f"SELECT {DUES_COLS} FROM member_dues WHERE member_id = :m AND cycle_id = :c"),
                {"m": member_id, "c": cycle_id},
            ).mappings().fetchone()
        return _row_to_dues(row) if row else None

    def list_for_cycle(self, cycle_id: str, conn: Optional[Connection] = None) -> List[MemberDues]:
        with self.transaction(conn) as c:
            rows = c.execute(
                text(f"SELECT {DUES_COLS} FROM member_dues WHERE cycle_id = :c ORDER BY member_id"),
                {"c": cycle_id},
            ).mappings().fetchall()
        return [_row_to_dues(r) for r in rows]
