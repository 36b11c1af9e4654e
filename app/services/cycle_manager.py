# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Business logic for dues cycles.

Activation deactivates every sibling and activates the target inside one
transaction; the partial unique index on ``is_active`` rejects any
interleaving that would leave two cycles active.
"""

from typing import List, Optional

from app.core.clock import Clock, to_iso, utcnow
from app.core.config import settings
from app.core.errors import ConflictError, NotFoundError, UnauthorizedError, ValidationError
from app.core.logging import get_logger
from app.metrics import ACTIVE_CYCLE_INFO, CYCLE_ACTIVATIONS
from app.models.domain import Cycle
from app.repositories.cycle_repository import CycleRepository
from app.services import fiscal_year

logger = get_logger(__name__)


class DuesCycleManager:
    def __init__(self, repo: CycleRepository, clock: Clock = utcnow):
        self._repo = repo
        self._clock = clock

    @property
    def repo(self) -> CycleRepository:
        return self._repo

    def create_cycle(self, ending_year: int, created_by: str,
                     amount: Optional[int] = None,
                     grace_days: Optional[int] = None,
                     currency: Optional[str] = None) -> Cycle:
        if not created_by:
            raise UnauthorizedError("Creating a cycle requires an admin identity")
        if not fiscal_year.MIN_ENDING_YEAR <= ending_year <= fiscal_year.MAX_ENDING_YEAR:
            raise ValidationError(
                f"Ending year must be between {fiscal_year.MIN_ENDING_YEAR} "
                f"and {fiscal_year.MAX_ENDING_YEAR}"
            )
        amount = settings.DEFAULT_DUES_AMOUNT if amount is None else amount
        if amount <= 0:
            raise ValidationError("Dues amount must be positive")
        grace_days = settings.DEFAULT_GRACE_DAYS if grace_days is None else grace_days
        if grace_days < 0:
            raise ValidationError("Grace days cannot be negative")

        cycle_id = fiscal_year.cycle_id_for(ending_year)
        if self._repo.get(cycle_id) is not None:
            raise ConflictError(f"Cycle {cycle_id} already exists")

        start, end = fiscal_year.cycle_dates(ending_year)
        now = to_iso(self._clock())
        cycle = Cycle(
            id=cycle_id,
            label=fiscal_year.cycle_label(ending_year),
            start_date=start.isoformat(),
            end_date=end.isoformat(),
            amount=amount,
            currency=(currency or settings.DEFAULT_DUES_CURRENCY).upper(),
            is_active=False,
            grace_days=grace_days,
            created_at=now,
            updated_at=now,
            created_by=created_by,
        )
        self._repo.insert(cycle)
        logger.info("Cycle created id=%s amount=%d %s grace=%d by=%s",
                    cycle.id, cycle.amount, cycle.currency, cycle.grace_days, created_by)
        return cycle

    def activate_cycle(self, cycle_id: str) -> Cycle:
        with self._repo.transaction() as conn:
            target = self._repo.get(cycle_id, conn=conn)
            if target is None:
                raise NotFoundError(f"Cycle {cycle_id} not found")
            now = to_iso(self._clock())
            deactivated = self._repo.deactivate_all_except(cycle_id, now, conn=conn)
            if not target.is_active:
                self._repo.set_active(cycle_id, now, conn=conn)
            activated = self._repo.get(cycle_id, conn=conn)

        CYCLE_ACTIVATIONS.inc()
        ACTIVE_CYCLE_INFO.clear()
        ACTIVE_CYCLE_INFO.labels(cycle_id=cycle_id).set(1)
        logger.info("Cycle activated id=%s deactivated=%d", cycle_id, deactivated)
        return activated

    def get_active_cycle(self) -> Optional[Cycle]:
        return self._repo.get_active()

    def get_by_id(self, cycle_id: str) -> Cycle:
        cycle = self._repo.get(cycle_id)
        if cycle is None:
            raise NotFoundError(f"Cycle {cycle_id} not found")
        return cycle

    def list_all(self) -> List[Cycle]:
        return self._repo.list()
