from __future__ import annotations

import logging

from metalrates.services.http_client import HttpError, get_json
from metalrates.services.money import round2

"""International spot price -> Indian retail price per gram.

Spot prices are quoted in USD per troy ounce. The Indian retail figure adds
import duty (~12%), GST (3%), dealer margin (~8-10%) and a market premium
(~5%), folded into a single multiplier.
"""

logger = logging.getLogger("metalrates.conversion")

TROY_OUNCE_GRAMS = 31.1035
INDIAN_MARKET_MULTIPLIER = 1.30
DEFAULT_USD_TO_INR = 83.25


def convert_to_indian_rates(price_per_troy_ounce_usd: float, usd_to_inr: float) -> float:
    """Return INR per gram, rounded to 2 decimals. NaN inputs yield NaN."""
    price_per_gram_usd = price_per_troy_ounce_usd / TROY_OUNCE_GRAMS
    base_inr = price_per_gram_usd * usd_to_inr
    return round2(base_inr * INDIAN_MARKET_MULTIPLIER)


def fetch_usd_to_inr(
    url: str, *, timeout: float = 5.0, retries: int = 2
) -> float:
    """Current USD->INR rate from an exchange-rate endpoint, or the fixed fallback."""
    try:
        data = get_json(url, timeout=timeout, retries=retries)
    except HttpError as e:
        logger.warning(
            "USD->INR fetch failed, using fallback",
            extra={"fallback": DEFAULT_USD_TO_INR, "error": str(e)},
        )
        return DEFAULT_USD_TO_INR
    rate = (data.get("rates") or {}).get("INR")
    if not isinstance(rate, (int, float)) or rate <= 0:
        return DEFAULT_USD_TO_INR
    return float(rate)
