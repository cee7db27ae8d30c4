from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional, Tuple

from metalrates.models.rates import GateDecision, UsageRecord

"""Live-call schedule gate.

Live sources are only contacted inside two daily windows (default 8-9 AM and
3-4 PM local time), at most once per window and at most ``max_daily_requests``
times per day. The gate is a pure function of (now, usage); only the caller's
subsequent increment_usage() advances state.
"""


@dataclass(frozen=True)
class ScheduleConfig:
    morning_hour: int = 8
    evening_hour: int = 15
    window_hours: int = 1
    max_daily_requests: int = 2


def format_hour(hour: int) -> str:
    suffix = "AM" if hour < 12 else "PM"
    display = hour % 12 or 12
    return f"{display}:00 {suffix}"


class ScheduleGate:
    def __init__(self, config: ScheduleConfig | None = None):
        self.config = config or ScheduleConfig()

    def window_for(self, hour: int) -> Optional[str]:
        cfg = self.config
        if cfg.morning_hour <= hour < cfg.morning_hour + cfg.window_hours:
            return "morning"
        if cfg.evening_hour <= hour < cfg.evening_hour + cfg.window_hours:
            return "evening"
        return None

    def next_update_time(self, now: datetime) -> Tuple[datetime, str]:
        cfg = self.config
        midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
        if now.hour < cfg.morning_hour:
            return midnight.replace(hour=cfg.morning_hour), f"{format_hour(cfg.morning_hour)} today"
        if now.hour < cfg.evening_hour:
            return midnight.replace(hour=cfg.evening_hour), f"{format_hour(cfg.evening_hour)} today"
        tomorrow = midnight + timedelta(days=1)
        return (
            tomorrow.replace(hour=cfg.morning_hour),
            f"{format_hour(cfg.morning_hour)} tomorrow",
        )

    def _last_call_window(self, usage: UsageRecord, now: datetime) -> Optional[str]:
        if not usage.last_call:
            return None
        try:
            last = datetime.fromisoformat(usage.last_call)
        except ValueError:
            return None
        if last.tzinfo is not None and now.tzinfo is not None:
            last = last.astimezone(now.tzinfo)
        if last.date() != now.date():
            return None
        return self.window_for(last.hour)

    def evaluate(self, now: datetime, usage: UsageRecord) -> GateDecision:
        cfg = self.config
        if usage.count >= cfg.max_daily_requests:
            return GateDecision(
                allowed=False,
                reason="Daily API limit reached. Using cached data.",
                next_update=self.next_update_time(now)[0],
            )

        window = self.window_for(now.hour)
        if window is None:
            next_at, label = self.next_update_time(now)
            return GateDecision(
                allowed=False,
                reason=f"Not scheduled time. Next update: {label}",
                next_update=next_at,
            )

        if self._last_call_window(usage, now) == window:
            return GateDecision(
                allowed=False,
                reason="Already updated in this time window.",
                window=window,
                next_update=self.next_update_time(now)[0],
            )

        start = cfg.morning_hour if window == "morning" else cfg.evening_hour
        return GateDecision(
            allowed=True,
            reason=f"Scheduled {window} update window ({format_hour(start)})",
            window=window,
        )
