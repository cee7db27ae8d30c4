"""Pydantic domain models for the metal rates service."""

from .rates import (
    CacheEntry,
    FetchResult,
    GateDecision,
    HistoricalTrend,
    MetalTrend,
    RateQuote,
    RateTrend,
    ScheduleStatus,
    StoreRateIn,
    StoreRateOut,
    UsageRecord,
)

__all__ = [
    "CacheEntry",
    "FetchResult",
    "GateDecision",
    "HistoricalTrend",
    "MetalTrend",
    "RateQuote",
    "RateTrend",
    "ScheduleStatus",
    "StoreRateIn",
    "StoreRateOut",
    "UsageRecord",
]
