# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""UTC clock and fixed-width ISO-8601 helpers.

Timestamps are persisted as ``YYYY-MM-DDTHH:MM:SS.ffffff+00:00`` so string
comparison in SQL orders them chronologically.
"""

from datetime import datetime, timezone
from typing import Callable, Optional

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_iso(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def parse_iso(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
