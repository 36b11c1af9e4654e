# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Dues ledger — per-member-per-cycle billing status plus the payment stream.

Reconciliation is guard-then-commit: the conditional PENDING → PAID update
on the payment row is the serialisation point. The winner writes the dues
record and promotes the member in the same transaction; every later
delivery for the same session sees PAID and only repairs whatever is still
missing, so replays never repeat side effects.
"""

import uuid
from datetime import date, datetime
from typing import Dict, List, Optional, Tuple

from sqlalchemy.engine import Connection

from app.core.clock import Clock, to_iso, utcnow
from app.core.errors import (
    ConflictError,
    IllegalTransitionError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from app.core.logging import get_logger
from app.metrics import (
    DUES_ADMIN_ACTIONS,
    GRACE_INACTIVATIONS,
    PAYMENTS_CREATED,
    RECONCILIATIONS,
)
from app.models.domain import (
    Cycle,
    DuesStatus,
    DuesSummary,
    GraceEnforcement,
    Member,
    MemberDues,
    MemberStatus,
    Payment,
    PaymentStatus,
    ReconcileResult,
)
from app.repositories.member_dues_repository import MemberDuesRepository
from app.repositories.payment_repository import PaymentRepository
from app.services import fiscal_year
from app.services.cycle_manager import DuesCycleManager
from app.services.member_registry import MemberRegistry

logger = get_logger(__name__)


class DuesLedger:
    def __init__(self, dues_repo: MemberDuesRepository, payment_repo: PaymentRepository,
                 registry: MemberRegistry, cycles: DuesCycleManager,
                 clock: Clock = utcnow):
        self._dues = dues_repo
        self._payments = payment_repo
        self._registry = registry
        self._cycles = cycles
        self._clock = clock

    # ── Member dues ────────────────────────────────────────────────────

    def get_member_dues(self, member_id: str, cycle_id: str,
                        conn: Optional[Connection] = None) -> MemberDues:
        """Stored record, or the UNPAID default when none was ever written."""
        return self._dues.get(member_id, cycle_id, conn=conn) or MemberDues.unpaid(member_id, cycle_id)

    def list_member_dues_for_cycle(self, cycle_id: str) -> Dict[str, MemberDues]:
        self._cycles.get_by_id(cycle_id)
        written = {d.member_id: d for d in self._dues.list_for_cycle(cycle_id)}
        return {
            m.id: written.get(m.id) or MemberDues.unpaid(m.id, cycle_id)
            for m in self._registry.list_all()
        }

    def dues_status(self, member_id: str) -> Tuple[Member, Optional[Cycle], Optional[MemberDues]]:
        member = self._registry.get_by_id(member_id)
        cycle = self._cycles.get_active_cycle()
        if cycle is None:
            return member, None, None
        return member, cycle, self.get_member_dues(member_id, cycle.id)

    def mark_paid_offline(self, member_id: str, cycle_id: str, admin_uid: str,
                          note: Optional[str] = None) -> MemberDues:
        if not admin_uid:
            raise UnauthorizedError("Marking dues paid offline requires an admin identity")
        now = to_iso(self._clock())
        dues = self._write_admin_dues(
            member_id, cycle_id, admin_uid,
            status=DuesStatus.PAID_OFFLINE, note=note or None,
            stamps={"paid_offline_at": now}, summary_ref=f"offline:{admin_uid}",
        )
        DUES_ADMIN_ACTIONS.labels(action="paid_offline").inc()
        logger.info("Dues marked paid offline member=%s cycle=%s by=%s",
                    member_id, cycle_id, admin_uid)
        return dues

    def waive(self, member_id: str, cycle_id: str, admin_uid: str, reason: str) -> MemberDues:
        if not admin_uid:
            raise UnauthorizedError("Waiving dues requires an admin identity")
        if not reason or not reason.strip():
            raise ValidationError("A reason is required to waive dues")
        now = to_iso(self._clock())
        dues = self._write_admin_dues(
            member_id, cycle_id, admin_uid,
            status=DuesStatus.WAIVED, note=reason.strip(),
            stamps={"waived_at": now}, summary_ref=None,
        )
        DUES_ADMIN_ACTIONS.labels(action="waive").inc()
        logger.info("Dues waived member=%s cycle=%s by=%s", member_id, cycle_id, admin_uid)
        return dues

    def _write_admin_dues(self, member_id: str, cycle_id: str, admin_uid: str,
                          status: DuesStatus, note: Optional[str], stamps: Dict[str, str],
                          summary_ref: Optional[str]) -> MemberDues:
        with self._dues.transaction() as conn:
            self._registry.get_by_id(member_id, conn=conn)
            cycle = self._cycles.repo.get(cycle_id, conn=conn)
            if cycle is None:
                raise NotFoundError(f"Cycle {cycle_id} not found")
            now = to_iso(self._clock())
            current = self.get_member_dues(member_id, cycle_id, conn=conn)
            # Last writer wins; earlier stamps of other kinds are kept.
            dues = current.model_copy(update=dict(
                stamps, status=status, note=note, updated_by=admin_uid, updated_at=now,
            ))
            self._dues.upsert(dues, conn=conn)
            if summary_ref is not None:
                self._registry.record_dues_summary(member_id, DuesSummary(
                    amount=cycle.amount, currency=cycle.currency, paid=True,
                    paid_at=now, payment_ref=summary_ref,
                ), conn=conn)
            self._promote_after_settlement(member_id, cycle_id, conn)
        return dues

    # ── Payments ───────────────────────────────────────────────────────

    def create_payment(self, member_id: str, email: str, gateway_session_id: str,
                       amount: int, currency: str, cycle_id: Optional[str] = None,
                       description: Optional[str] = None) -> Payment:
        if not gateway_session_id:
            raise ValidationError("A gateway session id is required")
        if amount <= 0:
            raise ValidationError("Payment amount must be positive")
        self._registry.get_by_id(member_id)
        if cycle_id:
            self._cycles.get_by_id(cycle_id)

        existing = self._payments.get_by_session(gateway_session_id)
        if existing is not None:
            return self._same_checkout(existing, member_id, amount)

        now = to_iso(self._clock())
        payment = Payment(
            id=str(uuid.uuid4()),
            member_id=member_id,
            cycle_id=cycle_id or None,
            email=email.strip().lower(),
            gateway_session_id=gateway_session_id,
            amount=amount,
            currency=currency.upper(),
            status=PaymentStatus.PENDING,
            description=description,
            created_at=now,
            updated_at=now,
        )
        try:
            self._payments.insert(payment)
        except ConflictError:
            existing = self._payments.get_by_session(gateway_session_id)
            if existing is None:
                raise
            return self._same_checkout(existing, member_id, amount)

        PAYMENTS_CREATED.labels(currency=payment.currency).inc()
        logger.info("Payment recorded id=%s member=%s cycle=%s session=%s amount=%d %s",
                    payment.id, member_id, cycle_id, gateway_session_id, amount, payment.currency)
        return payment

    @staticmethod
    def _same_checkout(existing: Payment, member_id: str, amount: int) -> Payment:
        if existing.member_id == member_id and existing.amount == amount:
            logger.info("Payment already recorded session=%s id=%s",
                        existing.gateway_session_id, existing.id)
            return existing
        raise ConflictError(
            f"Gateway session {existing.gateway_session_id} is already recorded for another checkout"
        )

    def get_payment(self, payment_id: str) -> Payment:
        payment = self._payments.get(payment_id)
        if payment is None:
            raise NotFoundError(f"Payment {payment_id} not found")
        return payment

    def list_member_payments(self, member_id: str) -> List[Payment]:
        self._registry.get_by_id(member_id)
        return self._payments.list_for_member(member_id)

    def mark_payment_failed(self, gateway_session_id: str) -> Optional[ReconcileResult]:
        """Flip a PENDING payment to FAILED; settled payments are left alone."""
        payment = self._payments.get_by_session(gateway_session_id)
        if payment is None:
            RECONCILIATIONS.labels(outcome="unknown").inc()
            logger.warning("Payment failure for unknown session=%s", gateway_session_id)
            return None
        if self._payments.mark_failed(payment.id, to_iso(self._clock())):
            logger.info("Payment failed id=%s session=%s", payment.id, gateway_session_id)
            return self._result(self._payments.get(payment.id), "failed")
        payment = self._payments.get(payment.id)
        logger.warning("Payment failure ignored id=%s status=%s", payment.id, payment.status.value)
        return self._result(payment, "not_failable")

    # ── Reconciliation ─────────────────────────────────────────────────

    def reconcile(self, gateway_session_id: str,
                  gateway_payment_intent_id: Optional[str] = None) -> Optional[ReconcileResult]:
        payment = self._payments.get_by_session(gateway_session_id)
        if payment is None:
            RECONCILIATIONS.labels(outcome="unknown").inc()
            logger.warning("Reconcile ignored unknown session=%s", gateway_session_id)
            return None

        if payment.status == PaymentStatus.PENDING:
            with self._payments.transaction() as conn:
                won = self._payments.mark_paid(
                    payment.id, to_iso(self._clock()), gateway_payment_intent_id, conn=conn
                )
                if won:
                    payment = self._payments.get(payment.id, conn=conn)
                    self._settle_online(payment, conn)
            if won:
                return self._result(payment, "processed")
            # Lost the compare-and-swap to a concurrent delivery.
            payment = self._payments.get(payment.id)

        if payment.status != PaymentStatus.PAID:
            logger.info("Reconcile skipped id=%s status=%s", payment.id, payment.status.value)
            return self._result(payment, "not_payable")

        with self._payments.transaction() as conn:
            repaired = self._resume(payment, conn)
        return self._result(payment, "resumed" if repaired else "duplicate")

    def _settle_online(self, payment: Payment, conn: Connection) -> None:
        if payment.cycle_id:
            self._write_online_dues(payment, conn)
        self._registry.record_dues_summary(payment.member_id, DuesSummary(
            amount=payment.amount, currency=payment.currency, paid=True,
            paid_at=payment.paid_at, payment_ref=payment.id,
        ), conn=conn)
        self._promote_after_settlement(payment.member_id, payment.cycle_id, conn)

    def _write_online_dues(self, payment: Payment, conn: Connection) -> None:
        current = self.get_member_dues(payment.member_id, payment.cycle_id, conn=conn)
        self._dues.upsert(current.model_copy(update={
            "status": DuesStatus.PAID,
            "paid_at": payment.paid_at,
            "payment_ref": payment.id,
            "updated_at": to_iso(self._clock()),
        }), conn=conn)

    def _resume(self, payment: Payment, conn: Connection) -> bool:
        """Re-attempt the steps after PENDING → PAID; True when anything was written."""
        repaired = False
        if payment.cycle_id:
            dues = self.get_member_dues(payment.member_id, payment.cycle_id, conn=conn)
            if dues.status == DuesStatus.UNPAID:
                self._write_online_dues(payment, conn)
                repaired = True
        member = self._registry.get_by_id(payment.member_id, conn=conn)
        # Only a pending payer is promoted on replay; an INACTIVE member was
        # deactivated after this payment and stays that way.
        if member.status == MemberStatus.PENDING_PAYMENT:
            repaired = self._registry.promote_to_active(member.id, conn=conn) or repaired
        if repaired:
            logger.info("Reconcile resumed id=%s member=%s", payment.id, payment.member_id)
        else:
            logger.info("Reconcile duplicate id=%s session=%s", payment.id, payment.gateway_session_id)
        return repaired

    def _result(self, payment: Payment, outcome: str) -> ReconcileResult:
        RECONCILIATIONS.labels(outcome=outcome).inc()
        if outcome == "processed":
            logger.info("Payment reconciled id=%s member=%s cycle=%s",
                        payment.id, payment.member_id, payment.cycle_id)
        return ReconcileResult(payment=payment, member_id=payment.member_id,
                               cycle_id=payment.cycle_id, outcome=outcome)

    # ── Status coupling ────────────────────────────────────────────────

    def _promote_after_settlement(self, member_id: str, cycle_id: Optional[str],
                                  conn: Connection) -> None:
        member = self._registry.get_by_id(member_id, conn=conn)
        if member.status == MemberStatus.INACTIVE:
            active = self._cycles.repo.get_active(conn=conn)
            if cycle_id is None or active is None or active.id != cycle_id:
                return
        self._registry.promote_to_active(member_id, conn=conn)

    def sync_member_status(self, member_id: str) -> Member:
        """Promote a PENDING_PAYMENT member whose active-cycle dues are already settled."""
        with self._dues.transaction() as conn:
            member = self._registry.get_by_id(member_id, conn=conn)
            if member.status != MemberStatus.PENDING_PAYMENT:
                return member
            active = self._cycles.repo.get_active(conn=conn)
            if active is None:
                return member
            if self.get_member_dues(member_id, active.id, conn=conn).is_settled:
                self._registry.promote_to_active(member_id, conn=conn)
            return self._registry.get_by_id(member_id, conn=conn)

    def change_member_status(self, member_id: str, status: MemberStatus,
                             admin_uid: str) -> Member:
        """Administrative status change; reactivation to ACTIVE needs settled dues."""
        if not admin_uid:
            raise UnauthorizedError("Changing member status requires an admin identity")
        status = MemberStatus(status)
        with self._dues.transaction() as conn:
            member = self._registry.get_by_id(member_id, conn=conn)
            if member.status == MemberStatus.INACTIVE and status == MemberStatus.ACTIVE:
                active = self._cycles.repo.get_active(conn=conn)
                if active is not None:
                    dues = self.get_member_dues(member_id, active.id, conn=conn)
                    if not dues.is_settled:
                        raise IllegalTransitionError(
                            f"Member {member_id} cannot be reactivated: dues for "
                            f"{active.id} are {dues.status.value}"
                        )
            updated = self._registry.update_status(member_id, status, conn=conn)
        logger.info("Member status changed by admin id=%s status=%s by=%s",
                    member_id, updated.status.value, admin_uid)
        return updated

    # ── Grace period ───────────────────────────────────────────────────

    def list_unpaid_active_members(self, cycle_id: str) -> List[Member]:
        dues = self.list_member_dues_for_cycle(cycle_id)
        return [
            m for m in self._registry.list_by_status(MemberStatus.ACTIVE)
            if not dues.get(m.id, MemberDues.unpaid(m.id, cycle_id)).is_settled
        ]

    def enforce_grace_period(self, now: Optional[datetime] = None) -> GraceEnforcement:
        now = now or self._clock()
        cycle = self._cycles.get_active_cycle()
        if cycle is None:
            return GraceEnforcement(message="No active dues cycle")
        end = date.fromisoformat(cycle.end_date)
        if not fiscal_year.is_grace_period_expired(end, cycle.grace_days, now):
            deadline = fiscal_year.grace_deadline(end, cycle.grace_days)
            return GraceEnforcement(
                cycle_id=cycle.id,
                message=f"Grace period for {cycle.id} runs until {to_iso(deadline)}",
            )

        inactivated: List[str] = []
        for member in self.list_unpaid_active_members(cycle.id):
            try:
                self._registry.update_status(member.id, MemberStatus.INACTIVE)
            except (ConflictError, IllegalTransitionError) as exc:
                logger.warning("Grace enforcement skipped member=%s: %s", member.id, exc)
                continue
            inactivated.append(member.id)

        GRACE_INACTIVATIONS.inc(len(inactivated))
        logger.info("Grace enforcement cycle=%s inactivated=%d", cycle.id, len(inactivated))
        return GraceEnforcement(
            cycle_id=cycle.id,
            inactivated=len(inactivated),
            member_ids=inactivated,
            message=f"Inactivated {len(inactivated)} member(s) with unpaid dues for {cycle.id}",
        )
