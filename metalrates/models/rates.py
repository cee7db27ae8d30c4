from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

Origin = Literal["domestic", "international"]
TrendDirection = Literal["up", "down", "neutral"]


class RateQuote(BaseModel):
    """Gold/silver price in INR per gram from a single source.

    Stored slot JSON uses the camelCase aliases (goldRate, silverRate, ...).
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    gold_rate: float = Field(..., alias="goldRate")
    silver_rate: float = Field(..., alias="silverRate")
    source: str
    timestamp: str
    note: Optional[str] = None
    market_trend: Optional[Literal["bullish", "bearish", "neutral"]] = Field(
        None, alias="marketTrend"
    )
    usd_to_inr: Optional[float] = Field(None, alias="usdToInr")
    origin: Optional[Origin] = None

    def to_slot(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class UsageRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    date: str
    count: int = Field(0, ge=0)
    last_call: Optional[str] = Field(None, alias="lastCall")


class CacheEntry(BaseModel):
    rates: RateQuote
    timestamp: int  # epoch millis
    expiry: int  # epoch millis


class FetchResult(BaseModel):
    success: bool
    data: RateQuote
    error: Optional[str] = None


class GateDecision(BaseModel):
    allowed: bool
    reason: str
    window: Optional[Literal["morning", "evening"]] = None
    next_update: Optional[datetime] = Field(None, alias="nextUpdate")

    model_config = ConfigDict(populate_by_name=True)


class ScheduleStatus(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    decision: GateDecision
    usage: UsageRecord
    max_daily_requests: int = Field(..., alias="maxDailyRequests")


class RateTrend(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    trend: TrendDirection
    change: float
    percentage: float
    is_positive: bool = Field(True, alias="isPositive")


class MetalTrend(BaseModel):
    change: float
    percentage: float
    trend: Literal["up", "down"]


class HistoricalTrend(BaseModel):
    gold: MetalTrend
    silver: MetalTrend


class StoreRateIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    gold_rate: float = Field(..., gt=0, alias="goldRate", description="INR per gram")
    silver_rate: float = Field(..., gt=0, alias="silverRate", description="INR per gram")


class StoreRateOut(StoreRateIn):
    updated_at: str = Field(..., alias="updatedAt")
