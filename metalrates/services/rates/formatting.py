"""Display helpers for rates: Indian-grouped rupee strings and trend deltas."""

from __future__ import annotations

import math
from typing import Optional

from metalrates.models.rates import RateTrend
from metalrates.services.money import round2


def _group_indian(digits: str) -> str:
    # 1234567 -> 12,34,567 (thousands, then lakhs/crores in pairs)
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return ",".join(groups + [tail])


def format_indian_rate(rate: float) -> str:
    if math.isnan(rate):
        return "₹NaN/gram"
    if math.isinf(rate):
        return f"{'-' if rate < 0 else ''}₹∞/gram"
    value = round2(rate)
    sign = "-" if value < 0 else ""
    whole, frac = f"{abs(value):.2f}".split(".")
    return f"{sign}₹{_group_indian(whole)}.{frac}/gram"


def get_rate_trend(current: float, previous: Optional[float]) -> RateTrend:
    if not previous:
        return RateTrend(trend="neutral", change=0.0, percentage=0.0, is_positive=True)
    change = current - previous
    if change > 0:
        trend = "up"
    elif change < 0:
        trend = "down"
    else:
        trend = "neutral"
    return RateTrend(
        trend=trend,
        change=round2(abs(change)),
        percentage=abs(round2(change / previous * 100)),
        is_positive=change >= 0,
    )
