from __future__ import annotations

import random

import pytest

from metalrates.db.store import InMemoryKeyValueStore
from metalrates.services.rates.fetcher import RateService
from metalrates.services.rates.providers import DelhiSimulatedProvider

from .fakes import FrozenClock, at


@pytest.fixture
def store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(at(9))


@pytest.fixture
def make_service(store, clock):
    def _make(providers=None, fallback=None, target_store=None) -> RateService:
        if providers is None:
            providers = [DelhiSimulatedProvider(clock, random.Random(7))]
        return RateService(
            target_store if target_store is not None else store,
            clock,
            providers=providers,
            fallback=fallback,
            rng=random.Random(11),
        )

    return _make
