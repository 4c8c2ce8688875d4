"""Injectable wall-clock sources"""

from datetime import datetime, timedelta, timezone
from typing import Optional, Protocol


class Clock(Protocol):
    """Anything that can tell the current UTC time"""

    def now(self) -> datetime: ...


class SystemClock:
    """Real wall clock"""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class ManualClock:
    """Clock that only moves when told to; used for replays and tests"""

    def __init__(self, start: Optional[datetime] = None):
        self._now = ensure_utc(start) if start else datetime(2024, 1, 1, tzinfo=timezone.utc)

    def now(self) -> datetime:
        return self._now

    def advance(self, milliseconds: float = 0, **kwargs: float) -> datetime:
        """Move forward by milliseconds and/or any timedelta keyword (seconds=, minutes=)"""
        self._now = self._now + timedelta(milliseconds=milliseconds, **kwargs)
        return self._now

    def set(self, moment: datetime) -> None:
        self._now = ensure_utc(moment)


def ensure_utc(moment: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive timestamps (SQLite drops tzinfo on round-trip)"""
    if moment is None:
        return None
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)
