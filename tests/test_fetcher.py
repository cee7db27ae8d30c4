import random

from metalrates.db.store import CACHE_SLOT, InMemoryKeyValueStore
from metalrates.models.rates import RateQuote
from metalrates.services.rates.fetcher import (
    ALL_SOURCES_FAILED,
    EMERGENCY_ERROR,
    LIVE_SIMULATED_SOURCE,
    RateService,
)
from metalrates.services.rates.providers import DelhiSimulatedProvider

from .fakes import FailingProvider, FailingStore, FrozenClock, RaisingStore, at


def _fixed_quote(gold=11500.0, source="GoldAPI India"):
    return RateQuote(
        gold_rate=gold, silver_rate=150.0, source=source, timestamp=at(8).isoformat(), origin="domestic"
    )


class StaticProvider:
    name = "static"

    def __init__(self, quote):
        self.quote = quote
        self.calls = 0

    def fetch(self):
        self.calls += 1
        return self.quote


def test_outside_window_serves_simulated_fallback(make_service, clock):
    clock.current = at(9)
    result = make_service().fetch_live_metal_rates()
    assert result.success is False
    assert "not scheduled" in result.error.lower()
    assert result.data.source == "Delhi Market Rates (Enhanced)"
    assert result.data.gold_rate > 0


def test_scheduled_call_caches_and_counts_usage(make_service, clock, store):
    clock.current = at(8, 10)
    svc = make_service()
    result = svc.fetch_live_metal_rates()
    assert result.success is True
    assert result.error is None
    assert result.data.source == LIVE_SIMULATED_SOURCE
    assert "1,13,700" in result.data.note
    assert svc.usage_today().count == 1
    cached = svc.get_cached_rates()
    assert (cached.gold_rate, cached.silver_rate) == (result.data.gold_rate, result.data.silver_rate)
    assert cached.source == "Delhi Market Rates (Enhanced)"


def test_cache_hit_keeps_provider_label(make_service, clock):
    clock.current = at(8, 10)
    svc = make_service()
    live = svc.fetch_live_metal_rates()
    assert live.data.source == LIVE_SIMULATED_SOURCE
    clock.current = at(10)
    cached = svc.fetch_live_metal_rates()
    assert cached.success is True
    assert cached.data.source == "Delhi Market Rates (Enhanced)"
    assert cached.data.note != live.data.note
    assert cached.data.gold_rate == live.data.gold_rate
    assert svc.usage_today().count == 1


def test_cache_hit_short_circuits_live_call(make_service, clock):
    clock.current = at(8, 10)
    provider = StaticProvider(_fixed_quote())
    svc = make_service(providers=[provider])
    first = svc.fetch_live_metal_rates()
    clock.advance(hours=3)
    second = svc.fetch_live_metal_rates()
    assert second.success is True
    assert second.data == first.data
    assert provider.calls == 1
    assert svc.usage_today().count == 1


def test_both_windows_used_then_daily_limit(make_service, clock):
    clock.current = at(8, 5)
    svc = make_service(providers=[StaticProvider(_fixed_quote())])
    assert svc.fetch_live_metal_rates().success is True
    svc.clear_cached_rates()
    clock.current = at(15, 5)
    assert svc.fetch_live_metal_rates().success is True
    svc.clear_cached_rates()
    clock.current = at(15, 30)
    result = svc.fetch_live_metal_rates()
    assert result.success is False
    assert "daily api limit" in result.error.lower()
    assert svc.usage_today().count == 2


def test_failed_live_sources_count_usage_and_fall_back(make_service, clock):
    clock.current = at(8, 0)
    first, second = FailingProvider("a"), FailingProvider("b", exc=ValueError("bad json"))
    svc = make_service(providers=[first, second])
    result = svc.fetch_live_metal_rates()
    assert result.success is False
    assert result.error == ALL_SOURCES_FAILED
    assert result.data.source == "Delhi Market Rates (Enhanced)"
    assert (first.calls, second.calls) == (1, 1)
    assert svc.usage_today().count == 1
    assert svc.get_cached_rates() is None

    clock.advance(minutes=30)
    retry = svc.fetch_live_metal_rates()
    assert retry.error == "Already updated in this time window."
    assert first.calls == 1


def test_provider_chain_uses_first_success(make_service, clock):
    clock.current = at(15, 0)
    backup = StaticProvider(_fixed_quote(gold=11600.0))
    svc = make_service(providers=[FailingProvider(), backup])
    result = svc.fetch_live_metal_rates()
    assert result.success is True
    assert result.data.gold_rate == 11600.0
    assert result.data.source == "GoldAPI India"


def test_non_positive_quote_counts_as_failure(make_service, clock):
    clock.current = at(8, 0)
    svc = make_service(providers=[StaticProvider(_fixed_quote(gold=0.0))])
    result = svc.fetch_live_metal_rates()
    assert result.success is False
    assert result.error == ALL_SOURCES_FAILED


def test_fallback_failure_yields_emergency_quote(make_service, clock):
    clock.current = at(9)
    svc = make_service(providers=[FailingProvider()], fallback=FailingProvider("fallback"))
    result = svc.fetch_live_metal_rates()
    assert result.success is False
    assert result.error == EMERGENCY_ERROR
    assert (result.data.gold_rate, result.data.silver_rate) == (11370.0, 145.0)


def test_never_raises_when_everything_fails(clock):
    clock.current = at(8)
    for store in (FailingStore(), RaisingStore()):
        svc = RateService(
            store, clock, providers=[FailingProvider()], fallback=FailingProvider("fb")
        )
        result = svc.fetch_live_metal_rates()
        assert result.success is False
        assert result.data.gold_rate > 0


def test_foreign_cache_entry_is_skipped(make_service, clock, store):
    clock.current = at(9)
    svc = make_service()
    svc.cache_rates(_fixed_quote(gold=5000.0))
    result = svc.fetch_live_metal_rates()
    assert result.success is False
    assert store.read(CACHE_SLOT).value is None


def test_simulated_source_is_deterministic_with_injected_rng():
    clock = FrozenClock(at(8, 15))
    results = []
    for _ in range(2):
        rng = random.Random(42)
        svc = RateService(
            InMemoryKeyValueStore(), clock, providers=[DelhiSimulatedProvider(clock, rng)], rng=rng
        )
        results.append(svc.fetch_live_metal_rates().data)
    assert results[0] == results[1]
