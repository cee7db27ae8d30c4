from __future__ import annotations

"""Metal rate provider abstraction.

Every source (simulated Delhi market, metals-api, goldapi, ...) returns one
normalized RateQuote or raises ProviderError.
"""
from abc import ABC, abstractmethod

from metalrates.models.rates import RateQuote


class ProviderError(Exception):
    """A rate source was unreachable, unconfigured or returned unusable data."""


class MetalRateProvider(ABC):
    name: str = ""

    @abstractmethod
    def fetch(self) -> RateQuote:
        """Return gold/silver INR per gram."""
        raise NotImplementedError
