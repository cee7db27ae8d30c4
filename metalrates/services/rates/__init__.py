"""Live metal rates: conversion, usage tracking, scheduling, caching, providers."""

from .base import MetalRateProvider, ProviderError
from .cache_service import RateCache
from .conversion import convert_to_indian_rates
from .fetcher import RateService, build_rate_service
from .formatting import format_indian_rate, get_rate_trend
from .schedule import ScheduleConfig, ScheduleGate
from .usage import UsageTracker

__all__ = [
    "MetalRateProvider",
    "ProviderError",
    "RateCache",
    "RateService",
    "ScheduleConfig",
    "ScheduleGate",
    "UsageTracker",
    "build_rate_service",
    "convert_to_indian_rates",
    "format_indian_rate",
    "get_rate_trend",
]
