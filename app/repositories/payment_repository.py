# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Data-access layer for gateway payments."""

from typing import List, Optional

from sqlalchemy import text
from sqlalchemy.engine import Connection

from app.models.domain import Payment, PaymentStatus
from app.repositories.base import BaseRepository

PAYMENT_COLS = (
    "id, member_id, cycle_id, email, gateway_session_id, gateway_payment_intent_id, "
    "amount, currency, status, description, created_at, updated_at, paid_at"
)


def _row_to_payment(row) -> Payment:
    return Payment(
        id=row["id"],
        member_id=row["member_id"],
        cycle_id=row["cycle_id"],
        email=row["email"],
        gateway_session_id=row["gateway_session_id"],
        gateway_payment_intent_id=row["gateway_payment_intent_id"],
        amount=row["amount"],
        currency=row["currency"],
        status=PaymentStatus(row["status"]),
        description=row["description"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
        paid_at=row["paid_at"],
    )


class PaymentRepository(BaseRepository):

    # ── Write ──────────────────────────────────────────────────────────

    def insert(self, payment: Payment, conn: Optional[Connection] = None) -> Payment:
        with self.transaction(conn) as c:
            c.execute(
                text(f"""
                    INSERT INTO payments ({PAYMENT_COLS})
                    VALUES (:id, :member_id, :cycle_id, :email, :gateway_session_id,
                            :gateway_payment_intent_id, :amount, :currency, :status,
                            :description, :created_at, :updated_at, :paid_at)
                """),
                payment.model_dump(mode="json"),
            )
        return payment

    def mark_paid(self, payment_id: str, paid_at: str, payment_intent_id: Optional[str],
                  conn: Optional[Connection] = None) -> bool:
        """PENDING → PAID; False when the payment already left PENDING."""
        with self.transaction(conn) as c:
            result = c.execute(
                text("""
                    UPDATE payments SET status = 'PAID', paid_at = :ts, updated_at = :ts,
                        gateway_payment_intent_id = COALESCE(:intent, gateway_payment_intent_id)
                    WHERE id = :id AND status = 'PENDING'
                """),
                {"id": payment_id, "ts": paid_at, "intent": payment_intent_id},
            )
        return result.rowcount == 1

    def mark_failed(self, payment_id: str, updated_at: str,
                    conn: Optional[Connection] = None) -> bool:
        with self.transaction(conn) as c:
            result = c.execute(
                text("""
                    UPDATE payments SET status = 'FAILED', updated_at = :ts
                    WHERE id = :id AND status = 'PENDING'
                """),
                {"id": payment_id, "ts": updated_at},
            )
        return result.rowcount == 1

    # ── Read ───────────────────────────────────────────────────────────

    def get(self, payment_id: str, conn: Optional[Connection] = None) -> Optional[Payment]:
        with self.transaction(conn) as c:
            row = c.execute(
                text(f"SELECT {PAYMENT_COLS} FROM payments WHERE id = :id"),
                {"id": payment_id},
            ).mappings().fetchone()
        return _row_to_payment(row) if row else None

    def get_by_session(self, session_id: str,
                       conn: Optional[Connection] = None) -> Optional[Payment]:
        with self.transaction(conn) as c:
            row = c.execute(
                text(f"SELECT {PAYMENT_COLS} FROM payments WHERE gateway_session_id = :s"),
                {"s": session_id},
            ).mappings().fetchone()
        return _row_to_payment(row) if row else None

    def list_for_member(self, member_id: str,
                        conn: Optional[Connection] = None) -> List[Payment]:
        with self.transaction(conn) as c:
            rows = c.execute(
                text(f"""
                    SELECT {PAYMENT_COLS} FROM payments WHERE member_id = :m
                    ORDER BY created_at DESC, id
                """),
                {"m": member_id},
            ).mappings().fetchall()
        return [_row_to_payment(r) for r in rows]
