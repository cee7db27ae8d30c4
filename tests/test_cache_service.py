import json

import pytest

from metalrates.db.store import CACHE_SLOT
from metalrates.models.rates import RateQuote
from metalrates.services.rates.cache_service import RateCache

from .fakes import FailingStore, at


def _quote(**overrides):
    data = dict(
        gold_rate=11412.5,
        silver_rate=146.1,
        source="Delhi Market Rates (Enhanced)",
        timestamp=at(8).isoformat(),
        origin="domestic",
    )
    data.update(overrides)
    return RateQuote(**data)


@pytest.fixture
def cache(store, clock):
    return RateCache(store, clock)


def test_round_trip(cache):
    quote = _quote(note="n", market_trend="bullish")
    cache.cache_rates(quote)
    assert cache.get_cached_rates() == quote


def test_empty_slot_returns_none(cache):
    assert cache.get_cached_rates() is None


def test_clear_then_get_returns_none(cache):
    cache.cache_rates(_quote())
    assert cache.clear_cached_rates() is True
    assert cache.get_cached_rates() is None


def test_slot_layout_uses_epoch_millis_and_camel_case(cache, store, clock):
    cache.cache_rates(_quote())
    raw = json.loads(store.read(CACHE_SLOT).value)
    now_ms = int(clock.now().timestamp() * 1000)
    assert raw["timestamp"] == now_ms
    assert raw["expiry"] == now_ms + 12 * 60 * 60 * 1000
    assert raw["rates"]["goldRate"] == 11412.5


def test_entry_expires_after_twelve_hours(cache, clock, store):
    cache.cache_rates(_quote())
    clock.advance(hours=12)
    assert cache.get_cached_rates() is not None
    clock.advance(seconds=1)
    assert cache.get_cached_rates() is None
    assert store.read(CACHE_SLOT).value is None


def test_gold_below_floor_is_rejected_even_if_fresh(cache, store):
    cache.cache_rates(_quote(gold_rate=5000))
    assert cache.get_cached_rates() is None
    assert store.read(CACHE_SLOT).value is None


@pytest.mark.parametrize(
    "source", ["MetalsAPI", "Exchange Rate API + Estimated Metal Prices"]
)
def test_international_source_labels_are_rejected(cache, source):
    cache.cache_rates(_quote(source=source, origin=None))
    assert cache.get_cached_rates() is None


def test_international_origin_tag_is_rejected(cache):
    cache.cache_rates(_quote(source="Some Feed", origin="international"))
    assert cache.get_cached_rates() is None


def test_legacy_entry_without_origin_is_served(cache, store, clock):
    now_ms = int(clock.now().timestamp() * 1000)
    legacy = {
        "rates": {"goldRate": 11370, "silverRate": 145, "source": "Basic Fallback", "timestamp": "t"},
        "timestamp": now_ms,
        "expiry": now_ms + 1000,
    }
    store.write(CACHE_SLOT, json.dumps(legacy))
    quote = cache.get_cached_rates()
    assert quote is not None and quote.origin is None


def test_corrupt_entry_is_cleared(cache, store):
    store.write(CACHE_SLOT, "[]")
    assert cache.get_cached_rates() is None
    assert store.read(CACHE_SLOT).value is None


def test_read_entry_distinguishes_failure_from_empty(cache, clock):
    empty = cache.read_entry()
    assert empty.ok and empty.value is None
    failed = RateCache(FailingStore(), clock).read_entry()
    assert not failed.ok
    assert isinstance(failed.error, OSError)


def test_storage_failure_is_a_miss_and_clear_reports_false(clock):
    cache = RateCache(FailingStore(), clock)
    cache.cache_rates(_quote())
    assert cache.get_cached_rates() is None
    assert cache.clear_cached_rates() is False
