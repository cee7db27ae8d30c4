from __future__ import annotations

from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

from metalrates.db.store import StoreResult
from metalrates.services.rates.base import MetalRateProvider, ProviderError

IST = ZoneInfo("Asia/Kolkata")


def at(hour: int, minute: int = 0, day: int = 19) -> datetime:
    return datetime(2026, 10, day, hour, minute, tzinfo=IST)


class FrozenClock:
    def __init__(self, current: datetime):
        self.current = current

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current = self.current + timedelta(**kwargs)


class FailingProvider(MetalRateProvider):
    def __init__(self, name: str = "failing", exc: Exception | None = None):
        self.name = name
        self.exc = exc or ProviderError(f"{name}: unreachable")
        self.calls = 0

    def fetch(self):
        self.calls += 1
        raise self.exc


class FailingStore:
    """Every operation reports a storage error."""

    def read(self, key):
        return StoreResult.failure(OSError("storage unavailable"))

    def write(self, key, value):
        return StoreResult.failure(OSError("storage unavailable"))

    def delete(self, key):
        return StoreResult.failure(OSError("storage unavailable"))


class RaisingStore:
    """A store that violates the never-raise contract."""

    def read(self, key):
        raise RuntimeError("boom")

    write = read
    delete = read


