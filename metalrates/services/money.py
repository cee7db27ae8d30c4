"""Money / rounding helpers.

Centralized so conversion, simulated quotes and trend math use identical
rounding semantics (half-up at two decimals). NaN passes through unchanged.
"""

from __future__ import annotations
from decimal import Decimal, ROUND_HALF_UP


def round2(value: float) -> float:
    if value != value:  # NaN
        return value
    return float(Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))
