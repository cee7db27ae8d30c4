"""Smoke script for the scheduled rate fetcher.

Demonstrates:
 1. A call outside the 8 AM / 3 PM windows serves simulated fallback data.
 2. A call inside the morning window goes live, is cached and counted.
 3. A later call is answered from the cache without touching usage.

NOTE: This is a lightweight diagnostic and not a formal test.
"""

from datetime import datetime, timedelta
from pprint import pprint

from metalrates.core.config import Settings
from metalrates.db.store import InMemoryKeyValueStore
from metalrates.services.rates.fetcher import build_rate_service


class _StepClock:
    def __init__(self, current: datetime):
        self.current = current

    def now(self) -> datetime:
        return self.current


def run():
    settings = Settings(storage_backend="memory")
    settings.init_post_load()
    clock = _StepClock(datetime.now().astimezone().replace(hour=7, minute=30))
    svc = build_rate_service(settings, clock=clock, store=InMemoryKeyValueStore())
    out = {}

    out["before_window"] = svc.fetch_live_metal_rates().model_dump(by_alias=True)

    clock.current += timedelta(hours=1)
    out["morning_window"] = svc.fetch_live_metal_rates().model_dump(by_alias=True)
    out["usage_after_live"] = svc.usage_today().model_dump(by_alias=True)

    clock.current += timedelta(hours=4)
    out["from_cache"] = svc.fetch_live_metal_rates().model_dump(by_alias=True)
    out["usage_after_cache"] = svc.usage_today().model_dump(by_alias=True)

    pprint(out)


if __name__ == "__main__":
    run()
