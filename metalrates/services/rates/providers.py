from __future__ import annotations

"""Concrete metal rate providers and factory.

'delhi-simulated' is the default live source: fixed Delhi market base prices
with a time-of-day trend and small random variance. The HTTP providers need
API keys and raise ProviderError when unconfigured.
"""
import logging
import random
from typing import Any, Callable, Dict, Mapping, Optional

from .base import MetalRateProvider, ProviderError
from .conversion import (
    DEFAULT_USD_TO_INR,
    TROY_OUNCE_GRAMS,
    convert_to_indian_rates,
    fetch_usd_to_inr,
)
from metalrates.models.rates import HistoricalTrend, MetalTrend, RateQuote
from metalrates.services.clock import Clock
from metalrates.services.http_client import HttpError, get_json
from metalrates.services.money import round2

logger = logging.getLogger("metalrates.providers")

# Delhi market, INR per gram (Rs 1,13,700 per 10g gold)
GOLD_BASE_INR = 11370.0
SILVER_BASE_INR = 145.0
GOLD_VOLATILITY_PCT = 1.5
SILVER_VOLATILITY_PCT = 2.5
SIMULATED_SOURCE = "Delhi Market Rates (Enhanced)"

# Approximate spot prices used by the exchange-estimate source
GOLD_SPOT_USD_PER_OUNCE = 2050.0
SILVER_SPOT_USD_PER_OUNCE = 25.0


def market_trend(hour: int) -> float:
    """Slight lift around the market open, slight dip in the afternoon."""
    if 9 <= hour <= 11:
        return 1.002
    if 14 <= hour <= 16:
        return 0.998
    return 1.0


def generate_variation(base: float, volatility_pct: float, rng: random.Random) -> float:
    variation = (rng.random() - 0.5) * 2 * (volatility_pct / 100)
    return base * (1 + variation)


def _trend_label(trend: float) -> str:
    if trend > 1:
        return "bullish"
    if trend < 1:
        return "bearish"
    return "neutral"


class DelhiSimulatedProvider(MetalRateProvider):
    name = "delhi-simulated"

    def __init__(self, clock: Clock, rng: Optional[random.Random] = None):
        self._clock = clock
        self._rng = rng or random.Random()

    def fetch(self) -> RateQuote:  # type: ignore[override]
        now = self._clock.now()
        trend = market_trend(now.hour)
        gold = generate_variation(GOLD_BASE_INR * trend, GOLD_VOLATILITY_PCT, self._rng)
        silver = generate_variation(SILVER_BASE_INR * trend, SILVER_VOLATILITY_PCT, self._rng)
        return RateQuote(
            gold_rate=round2(gold),
            silver_rate=round2(silver),
            source=SIMULATED_SOURCE,
            timestamp=now.isoformat(),
            market_trend=_trend_label(trend),
            origin="domestic",
            note="Based on actual Delhi market rates with realistic variations.",
        )


class _HTTPProvider(MetalRateProvider):
    def __init__(self, clock: Clock, settings: Any):
        self._clock = clock
        self._settings = settings

    def _get(self, url: str, **kwargs: Any) -> Dict[str, Any]:
        try:
            return get_json(
                url,
                timeout=self._settings.http_timeout_seconds,
                retries=self._settings.http_retries,
                **kwargs,
            )
        except HttpError as e:
            raise ProviderError(f"{self.name}: {e}") from e

    def _usd_to_inr(self) -> float:
        return fetch_usd_to_inr(
            self._settings.exchange_api_url,
            timeout=self._settings.http_timeout_seconds,
            retries=self._settings.http_retries,
        )


class MetalsAPIProvider(_HTTPProvider):
    """metals-api.com: rates are ounces of metal per USD (base=USD)."""

    name = "metals-api"

    def fetch(self) -> RateQuote:  # type: ignore[override]
        key = self._settings.metals_api_key
        if not key:
            raise ProviderError("metals-api: API key not configured")
        data = self._get(
            self._settings.metals_api_url,
            params={"access_key": key, "base": "USD", "symbols": "XAU,XAG"},
        )
        rates = data.get("rates") or {}
        xau, xag = rates.get("XAU"), rates.get("XAG")
        if not xau or not xag:
            raise ProviderError("metals-api: invalid response (missing XAU/XAG)")
        usd_to_inr = self._usd_to_inr()
        return RateQuote(
            gold_rate=convert_to_indian_rates(1 / xau, usd_to_inr),
            silver_rate=convert_to_indian_rates(1 / xag, usd_to_inr),
            source="MetalsAPI",
            timestamp=self._clock.now().isoformat(),
            usd_to_inr=usd_to_inr,
            origin="international",
        )


class GoldAPIProvider(_HTTPProvider):
    """goldapi.io: INR-denominated per-gram prices for XAU and XAG."""

    name = "goldapi"

    def _metal(self, symbol: str, field: str) -> float:
        data = self._get(
            f"{self._settings.gold_api_url.rstrip('/')}/{symbol}/INR",
            headers={"x-access-token": self._settings.gold_api_key},
        )
        value = data.get(field)
        if not isinstance(value, (int, float)) or value <= 0:
            raise ProviderError(f"goldapi: invalid {symbol} response (missing {field})")
        return float(value)

    def fetch(self) -> RateQuote:  # type: ignore[override]
        if not self._settings.gold_api_key:
            raise ProviderError("goldapi: API key not configured")
        return RateQuote(
            gold_rate=round2(self._metal("XAU", "price_gram_24k")),
            silver_rate=round2(self._metal("XAG", "price_gram")),
            source="GoldAPI India",
            timestamp=self._clock.now().isoformat(),
            origin="domestic",
        )


class ExchangeEstimateProvider(_HTTPProvider):
    """USD/INR from the exchange-rate endpoint applied to fixed spot prices (no markup)."""

    name = "exchange-estimate"

    def fetch(self) -> RateQuote:  # type: ignore[override]
        data = self._get(self._settings.exchange_api_url)
        usd_to_inr = (data.get("rates") or {}).get("INR") or DEFAULT_USD_TO_INR
        return RateQuote(
            gold_rate=round2(GOLD_SPOT_USD_PER_OUNCE / TROY_OUNCE_GRAMS * usd_to_inr),
            silver_rate=round2(SILVER_SPOT_USD_PER_OUNCE / TROY_OUNCE_GRAMS * usd_to_inr),
            source="Exchange Rate API + Estimated Metal Prices",
            timestamp=self._clock.now().isoformat(),
            usd_to_inr=float(usd_to_inr),
            origin="international",
            note="Estimated rates based on USD/INR. For accurate rates, use dedicated metal APIs.",
        )


_PROVIDER_REGISTRY: Mapping[str, Callable[..., MetalRateProvider]] = {
    "delhi-simulated": lambda clock, settings, rng: DelhiSimulatedProvider(clock, rng),
    "metals-api": lambda clock, settings, rng: MetalsAPIProvider(clock, settings),
    "goldapi": lambda clock, settings, rng: GoldAPIProvider(clock, settings),
    "exchange-estimate": lambda clock, settings, rng: ExchangeEstimateProvider(clock, settings),
}
PROVIDER_NAMES = frozenset(_PROVIDER_REGISTRY)


def make_rate_provider(
    kind: str, clock: Clock, settings: Any, rng: Optional[random.Random] = None
) -> MetalRateProvider:
    factory = _PROVIDER_REGISTRY.get(kind)
    if not factory:
        raise ValueError(f"Unknown rate provider kind '{kind}'")
    return factory(clock, settings, rng)


def get_historical_trend(
    current_gold: float, current_silver: float, rng: Optional[random.Random] = None
) -> HistoricalTrend:
    """Compare against a simulated previous-day price within +/-0.5%."""
    rng = rng or random.Random()

    def _metal(current: float) -> MetalTrend:
        previous = current * (0.995 + rng.random() * 0.01)
        change = current - previous
        return MetalTrend(
            change=round2(change),
            percentage=round2(change / previous * 100),
            trend="up" if change >= 0 else "down",
        )

    return HistoricalTrend(gold=_metal(current_gold), silver=_metal(current_silver))
