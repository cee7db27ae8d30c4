from __future__ import annotations

import math

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import BaseModel
from typing import Optional

from metalrates.models.rates import (
    FetchResult,
    HistoricalTrend,
    RateQuote,
    RateTrend,
    ScheduleStatus,
    UsageRecord,
)
from metalrates.services.rates.fetcher import RateService

"""Rates router.

Endpoints:
    - GET /rates/live               -> scheduled/cached live quote (never errors)
    - GET /rates/cache              -> cached quote or null
    - DELETE /rates/cache           -> clear cache slot
    - GET /rates/usage              -> today's live-call usage
    - GET /rates/schedule           -> gate decision for "now"
    - GET /rates/trend              -> delta between two prices
    - GET /rates/format             -> Indian-formatted rupee string
    - GET /rates/historical-trend   -> simulated day-over-day comparison
"""

router = APIRouter(prefix="/rates", tags=["rates"])


def get_rate_service(request: Request) -> RateService:
    return request.app.state.rate_service


class CacheClearOut(BaseModel):
    cleared: bool


class FormattedRateOut(BaseModel):
    rate: float
    formatted: str


@router.get("/live", response_model=FetchResult, summary="Current gold/silver rates")
def live_rates(svc: RateService = Depends(get_rate_service)):
    return svc.fetch_live_metal_rates()


@router.get(
    "/cache", response_model=Optional[RateQuote], summary="Cached quote, if still valid"
)
def cached_rates(svc: RateService = Depends(get_rate_service)):
    return svc.get_cached_rates()


@router.delete("/cache", response_model=CacheClearOut, summary="Clear cached rates")
def clear_cache(svc: RateService = Depends(get_rate_service)):
    cleared = svc.clear_cached_rates()
    if not cleared:
        raise HTTPException(status_code=503, detail="rate cache storage unavailable")
    return CacheClearOut(cleared=cleared)


@router.get("/usage", response_model=UsageRecord, summary="Today's live-call usage")
def usage(svc: RateService = Depends(get_rate_service)):
    return svc.usage_today()


@router.get(
    "/schedule", response_model=ScheduleStatus, summary="Whether a live call is due now"
)
def schedule(svc: RateService = Depends(get_rate_service)):
    return svc.schedule_status()


@router.get("/trend", response_model=RateTrend, summary="Change between two prices")
async def trend(
    current: float = Query(..., ge=0),
    previous: Optional[float] = Query(None, ge=0),
    svc: RateService = Depends(get_rate_service),
):
    return svc.get_rate_trend(current, previous)


@router.get("/format", response_model=FormattedRateOut, summary="Format a per-gram rate")
async def format_rate(
    rate: float = Query(...), svc: RateService = Depends(get_rate_service)
):
    if not math.isfinite(rate):
        raise HTTPException(status_code=400, detail="rate must be a finite number")
    return FormattedRateOut(rate=rate, formatted=svc.format_indian_rate(rate))


@router.get(
    "/historical-trend",
    response_model=HistoricalTrend,
    summary="Simulated change against the previous day",
)
async def historical_trend(
    gold: float = Query(..., gt=0),
    silver: float = Query(..., gt=0),
    svc: RateService = Depends(get_rate_service),
):
    return svc.historical_trend(gold, silver)
