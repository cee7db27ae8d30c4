from __future__ import annotations

import json
import logging
from datetime import timedelta
from typing import Iterable, Optional

from pydantic import ValidationError

from metalrates.db.store import CACHE_SLOT, KeyValueStore, StoreResult
from metalrates.models.rates import CacheEntry, RateQuote
from metalrates.services.clock import Clock, epoch_millis

"""Single-slot rate cache (``metalRatesCache``).

Design:
    - One entry at a time; every write overwrites the slot.
    - Entries expire ``ttl`` after being written (default 12 hours).
    - Entries that look like international spot data are dropped on read:
      an explicit ``origin == "international"`` tag, a source label carrying a
      known international marker, or a gold price under the domestic floor.
      The label/floor sniffing is kept for entries written without an origin.
    - Storage failures surface as ``StoreResult`` errors from read_entry() and
      as a plain cache miss from get_cached_rates().
"""

logger = logging.getLogger("metalrates.cache")

INTERNATIONAL_SOURCE_MARKERS: Iterable[str] = ("Exchange Rate", "MetalsAPI")
DEFAULT_CACHE_TTL = timedelta(hours=12)
DOMESTIC_GOLD_FLOOR = 10000.0


class RateCache:
    def __init__(
        self,
        store: KeyValueStore,
        clock: Clock,
        ttl: timedelta = DEFAULT_CACHE_TTL,
        gold_floor: float = DOMESTIC_GOLD_FLOOR,
    ):
        self._store = store
        self._clock = clock
        self._ttl = ttl
        self._gold_floor = gold_floor

    # Internal --------------------------------------------------
    def looks_international(self, quote: RateQuote) -> bool:
        if quote.origin == "international":
            return True
        if any(marker in quote.source for marker in INTERNATIONAL_SOURCE_MARKERS):
            return True
        return bool(quote.gold_rate) and quote.gold_rate < self._gold_floor

    def read_entry(self) -> StoreResult[Optional[CacheEntry]]:
        raw = self._store.read(CACHE_SLOT)
        if not raw.ok:
            return StoreResult.failure(raw.error)  # type: ignore[arg-type]
        if raw.value is None:
            return StoreResult.success(None)
        try:
            return StoreResult.success(CacheEntry.model_validate(json.loads(raw.value)))
        except (ValueError, ValidationError) as e:
            return StoreResult.failure(e)

    # Public API -----------------------------------------------
    def get_cached_rates(self) -> Optional[RateQuote]:
        result = self.read_entry()
        if not result.ok:
            logger.warning("cache unreadable, clearing", extra={"error": str(result.error)})
            self._store.delete(CACHE_SLOT)
            return None
        entry = result.value
        if entry is None:
            return None
        if self.looks_international(entry.rates):
            logger.info(
                "clearing cached international rates",
                extra={"source": entry.rates.source, "gold_rate": entry.rates.gold_rate},
            )
            self._store.delete(CACHE_SLOT)
            return None
        if epoch_millis(self._clock.now()) > entry.expiry:
            logger.debug("cached rates expired")
            self._store.delete(CACHE_SLOT)
            return None
        return entry.rates

    def cache_rates(self, quote: RateQuote) -> None:
        now_ms = epoch_millis(self._clock.now())
        entry = {
            "rates": quote.to_slot(),
            "timestamp": now_ms,
            "expiry": now_ms + int(self._ttl.total_seconds() * 1000),
        }
        result = self._store.write(CACHE_SLOT, json.dumps(entry))
        if result.ok:
            logger.info("rates cached", extra={"ttl_seconds": self._ttl.total_seconds()})

    def clear_cached_rates(self) -> bool:
        result = self._store.delete(CACHE_SLOT)
        if not result.ok:
            logger.warning("failed to clear cache", extra={"error": str(result.error)})
            return False
        return True
