"""Wall-clock abstraction so scheduling and expiry can be driven by tests."""

from __future__ import annotations

from datetime import datetime, tzinfo
from typing import Protocol
from zoneinfo import ZoneInfo


class Clock(Protocol):
    def now(self) -> datetime: ...


class SystemClock:
    """Timezone-aware local time; the schedule windows are read in this zone."""

    def __init__(self, tz: str | tzinfo = "Asia/Kolkata"):
        self.tz = ZoneInfo(tz) if isinstance(tz, str) else tz

    def now(self) -> datetime:
        return datetime.now(self.tz)


def epoch_millis(moment: datetime) -> int:
    return int(moment.timestamp() * 1000)
