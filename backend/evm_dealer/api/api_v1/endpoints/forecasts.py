"""Demand forecast API"""

from datetime import date
from typing import Any, List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from evm_dealer.core.deps import get_db, require_roles
from evm_dealer.core.permissions import FORECAST_ROLES
from evm_dealer.models.forecast import DemandForecast
from evm_dealer.models.user import User
from evm_dealer.schemas.common import MessageResponse
from evm_dealer.schemas.forecast import (
    ForecastCreate, BatchForecastCreate, ForecastUpdate, ActualDemandUpdate,
    ForecastResponse, ForecastListResponse, ForecastInsights, ForecastAccuracy
)
from evm_dealer.services import forecast_service
from evm_dealer.services.common import get_or_404, total_pages

router = APIRouter()

forecast_access = require_roles(*FORECAST_ROLES)
admin_only = require_roles()


def build_forecast_response(forecast: DemandForecast) -> ForecastResponse:
    product = forecast.product
    return ForecastResponse(
        id=forecast.id,
        product_id=forecast.product_id,
        product_name=product.product_name if product else None,
        product_version=product.version if product else None,
        brand_name=product.brand.brand_name if product and product.brand else None,
        forecast_period=forecast.forecast_period,
        forecast_date=forecast.forecast_date,
        predicted_demand=forecast.predicted_demand,
        confidence_score=forecast.confidence_score,
        actual_demand=forecast.actual_demand,
        accuracy=forecast_service.accuracy(forecast.predicted_demand, forecast.actual_demand),
        forecast_method=forecast.forecast_method,
        historical_data_points=forecast.historical_data_points,
        seasonality_factor=forecast.seasonality_factor,
        trend_factor=forecast.trend_factor,
        market_growth_rate=forecast.market_growth_rate,
        status=forecast.status,
        notes=forecast.notes,
        created_by_name=forecast.created_by.full_name if forecast.created_by else None,
        created_at=forecast.created_at,
        updated_at=forecast.updated_at,
        insights=ForecastInsights(**forecast_service.insights(forecast))
    )


@router.get("/", response_model=ForecastListResponse, dependencies=[Depends(forecast_access)])
async def list_forecasts(
    *,
    db: AsyncSession = Depends(get_db),
    page: int = Query(0, ge=0),
    size: int = Query(20, ge=1, le=100),
    product_id: Optional[int] = Query(None),
    brand_id: Optional[int] = Query(None),
    forecast_period: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    method: Optional[str] = Query(None),
    from_date: Optional[date] = Query(None),
    to_date: Optional[date] = Query(None),
    sort_by: Optional[str] = Query(None, description="forecast_date_asc, forecast_date_desc, confidence_desc, predicted_desc, created_desc")
) -> Any:
    forecasts, total = await forecast_service.search_forecasts(
        db, page, size, product_id=product_id, brand_id=brand_id, forecast_period=forecast_period,
        status=status, method=method, from_date=from_date, to_date=to_date, sort_by=sort_by
    )
    return ForecastListResponse(
        data=[build_forecast_response(f) for f in forecasts],
        total=total,
        page=page,
        size=size,
        total_pages=total_pages(total, size)
    )


@router.get("/accuracy/{product_id}", response_model=ForecastAccuracy, dependencies=[Depends(forecast_access)])
async def forecast_accuracy(
    product_id: int,
    from_date: Optional[date] = Query(None),
    db: AsyncSession = Depends(get_db)
) -> Any:
    return ForecastAccuracy(**await forecast_service.product_accuracy(db, product_id, from_date))


@router.get("/{forecast_id}", response_model=ForecastResponse, dependencies=[Depends(forecast_access)])
async def get_forecast(forecast_id: int, db: AsyncSession = Depends(get_db)) -> Any:
    return build_forecast_response(await get_or_404(db, DemandForecast, forecast_id, "Forecast"))


@router.post("/", response_model=ForecastResponse, status_code=201)
async def create_forecast(
    *,
    db: AsyncSession = Depends(get_db),
    forecast_in: ForecastCreate,
    current_user: User = Depends(forecast_access)
) -> Any:
    return build_forecast_response(await forecast_service.create_forecast(db, forecast_in, current_user))


@router.post("/batch", response_model=List[ForecastResponse], status_code=201)
async def create_batch_forecast(
    *,
    db: AsyncSession = Depends(get_db),
    batch_in: BatchForecastCreate,
    current_user: User = Depends(forecast_access)
) -> Any:
    """Products without enough history are skipped"""
    return [build_forecast_response(f) for f in await forecast_service.create_batch(db, batch_in, current_user)]


@router.put("/{forecast_id}", response_model=ForecastResponse, dependencies=[Depends(forecast_access)])
async def update_forecast(*, db: AsyncSession = Depends(get_db), forecast_id: int, forecast_in: ForecastUpdate) -> Any:
    return build_forecast_response(await forecast_service.update_forecast(db, forecast_id, forecast_in))


@router.patch("/{forecast_id}/actual", response_model=ForecastResponse, dependencies=[Depends(forecast_access)])
async def update_actual_demand(*, db: AsyncSession = Depends(get_db), forecast_id: int, actual_in: ActualDemandUpdate) -> Any:
    return build_forecast_response(
        await forecast_service.update_actual_demand(db, forecast_id, actual_in.actual_demand)
    )


@router.delete("/{forecast_id}", response_model=MessageResponse, dependencies=[Depends(admin_only)])
async def delete_forecast(forecast_id: int, db: AsyncSession = Depends(get_db)) -> Any:
    await forecast_service.delete_forecast(db, forecast_id)
    return MessageResponse(message="Forecast deleted")
