from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request

from metalrates.models.rates import StoreRateIn, StoreRateOut
from metalrates.routers.rates import get_rate_service
from metalrates.services.rates.fetcher import RateService

"""Shop rate router: the gold/silver price the store itself posts.

Endpoints (writes guarded by settings.enable_store_rate_admin):
    - GET /rates/store              -> current shop rate
    - PUT /rates/store              -> set shop rate {goldRate, silverRate}
    - POST /rates/store/apply-live  -> copy the current live quote into the shop rate
                                       (409 when only fallback rates are available)
"""

router = APIRouter(prefix="/rates/store", tags=["store-rates"])


def get_store_rates(request: Request):  # type: ignore[no-untyped-def]
    return request.app.state.store_rates


def require_admin_enabled(request: Request) -> bool:
    if not request.app.state.settings.enable_store_rate_admin:
        raise HTTPException(status_code=403, detail="store rate admin feature disabled")
    return True


def _out(row: dict) -> StoreRateOut:
    return StoreRateOut(
        gold_rate=row["gold_rate"], silver_rate=row["silver_rate"], updated_at=row["updated_at"]
    )


@router.get("", response_model=StoreRateOut, summary="Get the posted shop rate")
def get_store_rate(repo=Depends(get_store_rates)):  # type: ignore[no-untyped-def]
    row = repo.get()
    if not row:
        raise HTTPException(status_code=404, detail="store rate not set")
    return _out(row)


@router.put("", response_model=StoreRateOut, summary="Set the posted shop rate")
def set_store_rate(
    payload: StoreRateIn,
    _: bool = Depends(require_admin_enabled),
    repo=Depends(get_store_rates),  # type: ignore[no-untyped-def]
):
    try:
        row = repo.set(payload.gold_rate, payload.silver_rate)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    return _out(row)


@router.post(
    "/apply-live", response_model=StoreRateOut, summary="Post the current live quote"
)
def apply_live_rates(
    _: bool = Depends(require_admin_enabled),
    repo=Depends(get_store_rates),  # type: ignore[no-untyped-def]
    svc: RateService = Depends(get_rate_service),
):
    result = svc.fetch_live_metal_rates()
    if not result.success:
        raise HTTPException(status_code=409, detail=f"live rates unavailable: {result.error}")
    row = repo.set(result.data.gold_rate, result.data.silver_rate)
    return _out(row)
