from __future__ import annotations

import logging
import random
from datetime import timedelta
from pathlib import Path
from typing import Optional, Sequence, Tuple

from metalrates.db.schema import init_db
from metalrates.db.store import InMemoryKeyValueStore, KeyValueStore, SQLiteKeyValueStore
from metalrates.models.rates import (
    FetchResult,
    HistoricalTrend,
    RateQuote,
    ScheduleStatus,
    UsageRecord,
)
from metalrates.services.clock import Clock, SystemClock

from .base import MetalRateProvider, ProviderError
from .cache_service import DEFAULT_CACHE_TTL, DOMESTIC_GOLD_FLOOR, RateCache
from .formatting import format_indian_rate, get_rate_trend
from .providers import DelhiSimulatedProvider, get_historical_trend, make_rate_provider
from .schedule import ScheduleConfig, ScheduleGate
from .usage import UsageTracker

"""Live metal rate orchestration.

fetch_live_metal_rates() resolves in order, stopping at the first hit:
    1. valid cached quote                      -> success, no live call
    2. schedule gate denies                    -> simulated fallback, success=False
    3. first live provider that succeeds       -> cached + usage counted, success
    4. every live provider failed              -> usage counted, fallback, success=False
    5. fallback failed too                     -> emergency constant, success=False
It never raises: every path ends in a renderable RateQuote.
"""

logger = logging.getLogger("metalrates.fetcher")

EMERGENCY_GOLD_RATE = 11370.0
EMERGENCY_SILVER_RATE = 145.0
LIVE_SIMULATED_SOURCE = "Delhi Market Rates (Real-time Enhanced)"
LIVE_SIMULATED_NOTE = "Based on actual Delhi market pricing - ₹1,13,700 per 10g gold"
ALL_SOURCES_FAILED = "All live data sources unavailable. Showing enhanced simulated rates."
EMERGENCY_ERROR = "All data sources failed. Using emergency rates."


class RateService:
    """Cache, usage tracker, schedule gate and providers behind one entry point."""

    def __init__(
        self,
        store: KeyValueStore,
        clock: Clock,
        *,
        providers: Sequence[MetalRateProvider],
        fallback: Optional[MetalRateProvider] = None,
        schedule: Optional[ScheduleConfig] = None,
        cache_ttl: timedelta = DEFAULT_CACHE_TTL,
        gold_floor: float = DOMESTIC_GOLD_FLOOR,
        rng: Optional[random.Random] = None,
    ):
        self._clock = clock
        self._rng = rng or random.Random()
        self.providers = list(providers)
        self.fallback = fallback or DelhiSimulatedProvider(clock, self._rng)
        self.gate = ScheduleGate(schedule)
        self.usage = UsageTracker(store, clock)
        self.cache = RateCache(store, clock, ttl=cache_ttl, gold_floor=gold_floor)

    # Fallback chain -------------------------------------------
    def _emergency_quote(self, source: str = "Emergency Fallback") -> RateQuote:
        return RateQuote(
            gold_rate=EMERGENCY_GOLD_RATE,
            silver_rate=EMERGENCY_SILVER_RATE,
            source=source,
            timestamp=self._clock.now().isoformat(),
            origin="domestic",
            note="Emergency fallback rates based on Delhi market.",
        )

    def _fallback_result(self, error: str) -> FetchResult:
        try:
            quote = self.fallback.fetch()
        except Exception:
            logger.warning("fallback source failed, serving emergency rates", exc_info=True)
            return FetchResult(success=False, data=self._emergency_quote(), error=EMERGENCY_ERROR)
        return FetchResult(success=False, data=quote, error=error)

    def _annotate(self, provider: MetalRateProvider, quote: RateQuote) -> RateQuote:
        if isinstance(provider, DelhiSimulatedProvider):
            return quote.model_copy(
                update={"source": LIVE_SIMULATED_SOURCE, "note": LIVE_SIMULATED_NOTE}
            )
        return quote

    def _fetch_live(self) -> Optional[Tuple[MetalRateProvider, RateQuote]]:
        for provider in self.providers:
            try:
                quote = provider.fetch()
                if not (quote.gold_rate > 0 and quote.silver_rate > 0):
                    raise ProviderError(f"{provider.name}: non-positive rates")
            except Exception as e:
                logger.warning(
                    "live source failed", extra={"provider": provider.name, "error": str(e)}
                )
                continue
            return provider, quote
        return None

    # Public API -----------------------------------------------
    def fetch_live_metal_rates(self) -> FetchResult:
        try:
            return self._fetch_live_metal_rates()
        except Exception:
            logger.exception("rate fetch failed unexpectedly")
            return FetchResult(success=False, data=self._emergency_quote(), error=EMERGENCY_ERROR)

    def _fetch_live_metal_rates(self) -> FetchResult:
        cached = self.cache.get_cached_rates()
        if cached is not None:
            logger.debug("returning cached rates", extra={"source": cached.source})
            return FetchResult(success=True, data=cached, error=None)

        decision = self.gate.evaluate(self._clock.now(), self.usage.get_usage_today())
        if not decision.allowed:
            logger.info("live call not permitted", extra={"reason": decision.reason})
            return self._fallback_result(decision.reason)

        logger.info("making scheduled live call", extra={"reason": decision.reason})
        live = self._fetch_live()
        # Count the attempt even on failure so a dead source is not hammered.
        self.usage.increment_usage()
        if live is None:
            logger.warning("all live sources failed, using fallback")
            return self._fallback_result(ALL_SOURCES_FAILED)
        provider, quote = live
        # The slot keeps the provider's own label; only the response is relabelled.
        self.cache.cache_rates(quote)
        return FetchResult(success=True, data=self._annotate(provider, quote), error=None)

    def cache_rates(self, quote: RateQuote) -> None:
        self.cache.cache_rates(quote)

    def get_cached_rates(self) -> Optional[RateQuote]:
        return self.cache.get_cached_rates()

    def clear_cached_rates(self) -> bool:
        return self.cache.clear_cached_rates()

    def usage_today(self) -> UsageRecord:
        return self.usage.get_usage_today()

    def schedule_status(self) -> ScheduleStatus:
        usage = self.usage.get_usage_today()
        return ScheduleStatus(
            decision=self.gate.evaluate(self._clock.now(), usage),
            usage=usage,
            max_daily_requests=self.gate.config.max_daily_requests,
        )

    def historical_trend(self, gold: float, silver: float) -> HistoricalTrend:
        return get_historical_trend(gold, silver, self._rng)

    format_indian_rate = staticmethod(format_indian_rate)
    get_rate_trend = staticmethod(get_rate_trend)


def build_store(settings) -> KeyValueStore:  # type: ignore[no-untyped-def]
    if settings.storage_backend == "memory":
        return InMemoryKeyValueStore()
    init_db(Path(settings.db_path))
    return SQLiteKeyValueStore(Path(settings.db_path))


def build_rate_service(
    settings,  # type: ignore[no-untyped-def]
    *,
    clock: Optional[Clock] = None,
    store: Optional[KeyValueStore] = None,
    rng: Optional[random.Random] = None,
) -> RateService:
    """Wire a RateService from settings; clock/store/rng may be injected for tests."""
    clock = clock or SystemClock(settings.timezone)
    rng = rng or random.Random()
    providers = [
        make_rate_provider(name, clock, settings, rng) for name in settings.live_rate_providers
    ]
    return RateService(
        store if store is not None else build_store(settings),
        clock,
        providers=providers,
        fallback=DelhiSimulatedProvider(clock, rng),
        schedule=ScheduleConfig(
            morning_hour=settings.morning_hour,
            evening_hour=settings.evening_hour,
            window_hours=settings.window_hours,
            max_daily_requests=settings.max_daily_requests,
        ),
        cache_ttl=timedelta(seconds=settings.cache_ttl_seconds),
        gold_floor=settings.domestic_gold_floor,
        rng=rng,
    )
