import math

import pytest

from metalrates.services.http_client import HttpError
from metalrates.services.rates import conversion
from metalrates.services.rates.conversion import (
    DEFAULT_USD_TO_INR,
    convert_to_indian_rates,
    fetch_usd_to_inr,
)


def test_one_ounce_per_gram_equivalent_applies_market_multiplier():
    assert convert_to_indian_rates(31.1035, 83.25) == 108.23


def test_gold_spot_conversion_rounds_to_two_decimals():
    result = convert_to_indian_rates(2050, 83.25)
    assert result == pytest.approx(2050 / 31.1035 * 83.25 * 1.30, abs=0.005)
    assert round(result, 2) == result


def test_nan_input_propagates():
    assert math.isnan(convert_to_indian_rates(float("nan"), 83.25))
    assert math.isnan(convert_to_indian_rates(31.1035, float("nan")))


def test_fetch_usd_to_inr_reads_rates_inr(monkeypatch):
    monkeypatch.setattr(conversion, "get_json", lambda url, **kw: {"rates": {"INR": 84.1}})
    assert fetch_usd_to_inr("https://example.test/USD") == 84.1


@pytest.mark.parametrize("payload", [{}, {"rates": {}}, {"rates": {"INR": 0}}, {"rates": {"INR": "x"}}])
def test_fetch_usd_to_inr_falls_back_on_unusable_payload(monkeypatch, payload):
    monkeypatch.setattr(conversion, "get_json", lambda url, **kw: payload)
    assert fetch_usd_to_inr("https://example.test/USD") == DEFAULT_USD_TO_INR


def test_fetch_usd_to_inr_falls_back_on_http_error(monkeypatch):
    def boom(url, **kw):
        raise HttpError("down")

    monkeypatch.setattr(conversion, "get_json", boom)
    assert fetch_usd_to_inr("https://example.test/USD") == DEFAULT_USD_TO_INR
