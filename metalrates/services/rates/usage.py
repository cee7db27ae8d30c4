from __future__ import annotations

import json
import logging

from pydantic import ValidationError

from metalrates.db.store import USAGE_SLOT, KeyValueStore
from metalrates.models.rates import UsageRecord
from metalrates.services.clock import Clock

"""Per-day live-call counter kept in the ``apiUsageToday`` slot.

One record per calendar day (clock's local date); a stale, missing, corrupt or
unreadable record is replaced with a fresh zero record. Read-modify-write is
not atomic: concurrent processes sharing a store may under/over count.
"""

logger = logging.getLogger("metalrates.usage")


class UsageTracker:
    def __init__(self, store: KeyValueStore, clock: Clock):
        self._store = store
        self._clock = clock

    def _today(self) -> str:
        return self._clock.now().date().isoformat()

    def _load(self) -> UsageRecord | None:
        result = self._store.read(USAGE_SLOT)
        if not result.ok or result.value is None:
            return None
        try:
            return UsageRecord.model_validate(json.loads(result.value))
        except (ValueError, ValidationError):
            logger.warning("discarding unreadable usage record")
            return None

    def _save(self, record: UsageRecord) -> None:
        self._store.write(USAGE_SLOT, record.model_dump_json(by_alias=True))

    def get_usage_today(self) -> UsageRecord:
        today = self._today()
        record = self._load()
        if record is None or record.date != today:
            record = UsageRecord(date=today, count=0, last_call=None)
            self._save(record)
        return record

    def increment_usage(self) -> UsageRecord:
        current = self.get_usage_today()
        updated = current.model_copy(
            update={
                "count": current.count + 1,
                "last_call": self._clock.now().isoformat(),
            }
        )
        self._save(updated)
        logger.info("live call recorded", extra={"count": updated.count})
        return updated
