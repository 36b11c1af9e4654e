# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Fiscal-year arithmetic for dues cycles.

A cycle is named after the year it ends in: with the default July start,
July 1 2025 → June 30 2026 is ``RY-2026`` ("Rotary Year 2026").
"""

from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Tuple

from app.core.config import settings

MIN_ENDING_YEAR = 2000
MAX_ENDING_YEAR = 2200


def cycle_id_for(ending_year: int) -> str:
    return f"{settings.CYCLE_ID_PREFIX}-{ending_year}"


def cycle_label(ending_year: int) -> str:
    return f"{settings.CYCLE_LABEL_PREFIX} {ending_year}"


def ending_year_from_id(cycle_id: str) -> int:
    prefix = f"{settings.CYCLE_ID_PREFIX}-"
    if not cycle_id.startswith(prefix):
        raise ValueError(f"Not a cycle id: {cycle_id!r}")
    return int(cycle_id[len(prefix):])


def cycle_dates(ending_year: int, start_month: Optional[int] = None) -> Tuple[date, date]:
    """First and last day (inclusive) of the cycle ending in ``ending_year``."""
    month = start_month or settings.FISCAL_YEAR_START_MONTH
    if month == 1:
        return date(ending_year, 1, 1), date(ending_year, 12, 31)
    start = date(ending_year - 1, month, 1)
    end = date(ending_year, month, 1) - timedelta(days=1)
    return start, end


def current_cycle_id(on: Optional[date] = None, start_month: Optional[int] = None) -> str:
    on = on or datetime.now(timezone.utc).date()
    month = start_month or settings.FISCAL_YEAR_START_MONTH
    ending = on.year + 1 if month > 1 and on.month >= month else on.year
    return cycle_id_for(ending)


def next_cycle_id(cycle_id: Optional[str] = None) -> str:
    return cycle_id_for(ending_year_from_id(cycle_id or current_cycle_id()) + 1)


def previous_cycle_id(cycle_id: Optional[str] = None) -> str:
    return cycle_id_for(ending_year_from_id(cycle_id or current_cycle_id()) - 1)


def is_date_in_cycle(on: date, cycle_id: str) -> bool:
    start, end = cycle_dates(ending_year_from_id(cycle_id))
    return start <= on <= end


def cycle_close(end_date: date) -> datetime:
    """Instant the final billing day of a cycle is over (midnight UTC after ``end_date``)."""
    return datetime.combine(end_date + timedelta(days=1), time.min, tzinfo=timezone.utc)


def grace_deadline(end_date: date, grace_days: int) -> datetime:
    """Instant after which the grace period of a cycle has run out."""
    return cycle_close(end_date) + timedelta(days=grace_days)


def is_in_grace_period(end_date: date, grace_days: int, now: datetime) -> bool:
    return cycle_close(end_date) <= now <= grace_deadline(end_date, grace_days)


def is_grace_period_expired(end_date: date, grace_days: int, now: datetime) -> bool:
    return now > grace_deadline(end_date, grace_days)
