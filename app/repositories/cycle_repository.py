# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Data-access layer for dues cycles."""

from typing import List, Optional

from sqlalchemy import text
from sqlalchemy.engine import Connection

from app.models.domain import Cycle
from app.repositories.base import BaseRepository

CYCLE_COLS = (
    "id, label, start_date, end_date, amount, currency, is_active, grace_days, "
    "created_at, updated_at, created_by"
)


def _row_to_cycle(row) -> Cycle:
    return Cycle(
        id=row["id"],
        label=row["label"],
        start_date=row["start_date"],
        end_date=row["end_date"],
        amount=row["amount"],
        currency=row["currency"],
        is_active=bool(row["is_active"]),
        grace_days=row["grace_days"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
        created_by=row["created_by"],
    )


class CycleRepository(BaseRepository):

    # ── Write ──────────────────────────────────────────────────────────

    def insert(self, cycle: Cycle, conn: Optional[Connection] = None) -> Cycle:
        with self.transaction(conn) as c:
            c.execute(
                text(f"""
                    INSERT INTO dues_cycles ({CYCLE_COLS})
                    VALUES (:id, :label, :start_date, :end_date, :amount, :currency,
                            :is_active, :grace_days, :created_at, :updated_at, :created_by)
                """),
                cycle.model_dump(),
            )
        return cycle

    def deactivate_all_except(self, cycle_id: str, updated_at: str,
                              conn: Optional[Connection] = None) -> int:
        with self.transaction(conn) as c:
            result = c.execute(
                text("""
                    UPDATE dues_cycles SET is_active = :off, updated_at = :ts
                    WHERE is_active = :on AND id <> :id
                """),
                {"id": cycle_id, "ts": updated_at, "on": True, "off": False},
            )
        return result.rowcount

    def set_active(self, cycle_id: str, updated_at: str,
                   conn: Optional[Connection] = None) -> int:
        with self.transaction(conn) as c:
            result = c.execute(
                text("UPDATE dues_cycles SET is_active = :on, updated_at = :ts WHERE id = :id"),
                {"id": cycle_id, "ts": updated_at, "on": True},
            )
        return result.rowcount

    # ── Read ───────────────────────────────────────────────────────────

    def get(self, cycle_id: str, conn: Optional[Connection] = None) -> Optional[Cycle]:
        with self.transaction(conn) as c:
            row = c.execute(
                text(f"SELECT {CYCLE_COLS} FROM dues_cycles WHERE id = :id"),
                {"id": cycle_id},
            ).mappings().fetchone()
        return _row_to_cycle(row) if row else None

    def get_active(self, conn: Optional[Connection] = None) -> Optional[Cycle]:
        with self.transaction(conn) as c:
            row = c.execute(
                text(f"SELECT {CYCLE_COLS} FROM dues_cycles WHERE is_active = :on"),
                {"on": True},
            ).mappings().fetchone()
        return _row_to_cycle(row) if row else None

    def list(self, conn: Optional[Connection] = None) -> List[Cycle]:
        with self.transaction(conn) as c:
            rows = c.execute(
                text(f"SELECT {CYCLE_COLS} FROM dues_cycles ORDER BY start_date DESC, id DESC"),
            ).mappings().fetchall()
        return [_row_to_cycle(r) for r in rows]
