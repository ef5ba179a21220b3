"""
Demand forecasting from monthly order history

History is the count of non-cancelled orders per calendar month for a product,
from the month of its first order (at most 12 months back) up to last month.

Methods:
    LINEAR_REGRESSION      least squares over month index, confidence = R^2 * 100
    MOVING_AVERAGE         mean of the last 3 months, confidence 70
    EXPONENTIAL_SMOOTHING  alpha 0.3, confidence 75
"""

import math
from dataclasses import dataclass
from datetime import date, datetime
from typing import Dict, List, Optional, Tuple

from fastapi import HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from evm_dealer.core.logging_config import get_logger
from evm_dealer.models import DemandForecast, ForecastMethod, OrderStatus, Product, SalesOrder, User
from evm_dealer.schemas.forecast import BatchForecastCreate, ForecastCreate, ForecastUpdate
from evm_dealer.services.common import get_or_404, list_where, paginate

logger = get_logger(__name__)

MIN_HISTORY_MONTHS = 3
MAX_HISTORY_MONTHS = 12
SMOOTHING_ALPHA = 0.3
TREND_THRESHOLD = 5

SORT_OPTIONS = {
    "forecast_date_asc": DemandForecast.forecast_date.asc(),
    "forecast_date_desc": DemandForecast.forecast_date.desc(),
    "confidence_desc": DemandForecast.confidence_score.desc(),
    "predicted_desc": DemandForecast.predicted_demand.desc(),
    "created_desc": DemandForecast.created_at.desc(),
}


@dataclass
class ForecastResult:
    predicted_demand: int
    confidence_score: float
    method: str
    trend_factor: float = 0.0
    seasonality_factor: float = 1.0
    market_growth_rate: float = 0.0


def _add_months(month: date, count: int) -> date:
    index = month.year * 12 + month.month - 1 + count
    return date(index // 12, index % 12 + 1, 1)


async def monthly_history(db: AsyncSession, product_id: int, today: Optional[date] = None) -> List[int]:
    """Order counts per month, oldest first, excluding the current month"""
    today = today or date.today()
    this_month = today.replace(day=1)
    window_start = _add_months(this_month, -MAX_HISTORY_MONTHS)

    result = await db.execute(
        select(SalesOrder.order_date).where(
            SalesOrder.product_id == product_id,
            SalesOrder.status != OrderStatus.CANCELLED,
            SalesOrder.order_date >= datetime.combine(window_start, datetime.min.time()),
            SalesOrder.order_date < datetime.combine(this_month, datetime.min.time())
        )
    )
    counts: Dict[date, int] = {}
    for (order_date,) in result.all():
        month = order_date.date().replace(day=1)
        counts[month] = counts.get(month, 0) + 1
    if not counts:
        return []

    history = []
    month = min(counts)
    while month < this_month:
        history.append(counts.get(month, 0))
        month = _add_months(month, 1)
    return history


def round_half_up(value: float) -> int:
    """Nearest integer, .5 goes up: 2.5 -> 3, -2.5 -> -2"""
    return int(math.floor(value + 0.5))


def linear_regression(data: List[int]) -> ForecastResult:
    n = len(data)
    xs = range(1, n + 1)
    sum_x = sum(xs)
    sum_y = sum(data)
    sum_xy = sum(x * y for x, y in zip(xs, data))
    sum_x2 = sum(x * x for x in xs)

    slope = (n * sum_xy - sum_x * sum_y) / (n * sum_x2 - sum_x * sum_x)
    intercept = (sum_y - slope * sum_x) / n
    predicted = round_half_up(slope * (n + 1) + intercept)

    mean_y = sum_y / n
    ss_total = sum((y - mean_y) ** 2 for y in data)
    ss_res = sum((y - (slope * x + intercept)) ** 2 for x, y in zip(xs, data))
    if ss_total == 0:
        r_squared = 1.0 if ss_res == 0 else 0.0
    else:
        r_squared = 1 - ss_res / ss_total

    return ForecastResult(
        predicted_demand=max(0, predicted),
        confidence_score=round(r_squared * 100, 2),
        method=ForecastMethod.LINEAR_REGRESSION,
        trend_factor=round(slope, 2)
    )


def moving_average(data: List[int], window: int = 3) -> ForecastResult:
    window = min(window, len(data))
    recent = data[-window:]
    return ForecastResult(
        predicted_demand=round_half_up(sum(recent) / window),
        confidence_score=70.0,
        method=ForecastMethod.MOVING_AVERAGE
    )


def exponential_smoothing(data: List[int], alpha: float = SMOOTHING_ALPHA) -> ForecastResult:
    forecast = float(data[0])
    for value in data[1:]:
        forecast = alpha * value + (1 - alpha) * forecast
    return ForecastResult(
        predicted_demand=round_half_up(forecast),
        confidence_score=75.0,
        method=ForecastMethod.EXPONENTIAL_SMOOTHING
    )


METHODS = {
    ForecastMethod.LINEAR_REGRESSION: linear_regression,
    ForecastMethod.MOVING_AVERAGE: moving_average,
    ForecastMethod.EXPONENTIAL_SMOOTHING: exponential_smoothing,
}


def calculate(data: List[int], method: str) -> ForecastResult:
    if method not in METHODS:
        raise HTTPException(status_code=400, detail=f"Invalid forecast method: {method}")
    return METHODS[method](data)


def accuracy(predicted: Optional[int], actual: Optional[int]) -> Optional[int]:
    """(1 - |actual - predicted| / actual) * 100 rounded half up; 0 when actual is 0, None when unknown"""
    if actual is None:
        return None
    if actual == 0:
        return 0
    return round_half_up((1 - abs(actual - (predicted or 0)) / actual) * 100)


def insights(forecast: DemandForecast) -> Dict:
    trend = "STABLE"
    trend_percentage = 0.0
    trend_factor = forecast.trend_factor
    if trend_factor is not None:
        if trend_factor > TREND_THRESHOLD:
            trend, trend_percentage = "INCREASING", trend_factor
        elif trend_factor < -TREND_THRESHOLD:
            trend, trend_percentage = "DECREASING", abs(trend_factor)

    factors = [f"Market trend: {trend}"]
    if forecast.seasonality_factor is not None and forecast.seasonality_factor != 1:
        factors.append("Seasonal effect present")
    if forecast.historical_data_points is not None:
        factors.append(f"Based on {forecast.historical_data_points} data points")

    if trend == "INCREASING":
        recommendation = "Increase production and stock to meet rising demand"
    elif trend == "DECREASING":
        recommendation = "Consider reducing production and running promotions"
    else:
        recommendation = "Keep the current production level"

    return {
        "trend": trend,
        "trend_percentage": trend_percentage,
        "seasonal_pattern": "NORMAL",
        "influencing_factors": factors,
        "recommendation": recommendation,
    }


async def create_forecast(db: AsyncSession, data: ForecastCreate, current_user: User) -> DemandForecast:
    product = await get_or_404(db, Product, data.product_id)
    method = data.forecast_method or ForecastMethod.LINEAR_REGRESSION
    if method not in METHODS:
        raise HTTPException(status_code=400, detail=f"Invalid forecast method: {method}")

    history = await monthly_history(db, product.id)
    if len(history) < MIN_HISTORY_MONTHS:
        raise HTTPException(
            status_code=400,
            detail=f"Not enough sales history for {product.display_name} (at least {MIN_HISTORY_MONTHS} months required)"
        )

    result = calculate(history, method)
    forecast = DemandForecast(
        product_id=product.id,
        forecast_period=data.forecast_period,
        forecast_date=data.forecast_date,
        predicted_demand=result.predicted_demand,
        confidence_score=result.confidence_score,
        forecast_method=result.method,
        historical_data_points=len(history),
        seasonality_factor=result.seasonality_factor,
        trend_factor=result.trend_factor,
        market_growth_rate=result.market_growth_rate,
        status="PUBLISHED",
        notes=data.notes,
        created_by_id=current_user.id
    )
    db.add(forecast)
    await db.commit()
    logger.info(f"Forecast {forecast.id} for {product.display_name}: {result.predicted_demand} ({result.method})")
    return await get_or_404(db, DemandForecast, forecast.id, "Forecast")


async def create_batch(db: AsyncSession, data: BatchForecastCreate, current_user: User) -> List[DemandForecast]:
    """Forecast each product; products that fail are logged and skipped"""
    forecasts = []
    for product_id in data.product_ids:
        request = ForecastCreate(
            product_id=product_id,
            forecast_period=data.forecast_period,
            forecast_date=data.forecast_date,
            forecast_method=data.forecast_method
        )
        try:
            forecasts.append(await create_forecast(db, request, current_user))
        except HTTPException as e:
            logger.warning(f"Skipped forecast for product {product_id}: {e.detail}")
    return forecasts


async def update_forecast(db: AsyncSession, forecast_id: int, data: ForecastUpdate) -> DemandForecast:
    forecast = await get_or_404(db, DemandForecast, forecast_id, "Forecast")
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(forecast, field, value)
    await db.commit()
    return await get_or_404(db, DemandForecast, forecast_id, "Forecast")


async def update_actual_demand(db: AsyncSession, forecast_id: int, actual_demand: int) -> DemandForecast:
    forecast = await get_or_404(db, DemandForecast, forecast_id, "Forecast")
    forecast.actual_demand = actual_demand
    await db.commit()
    logger.info(f"Forecast {forecast_id} actual demand = {actual_demand}")
    return await get_or_404(db, DemandForecast, forecast_id, "Forecast")


async def delete_forecast(db: AsyncSession, forecast_id: int) -> None:
    forecast = await get_or_404(db, DemandForecast, forecast_id, "Forecast")
    await db.delete(forecast)
    await db.commit()
    logger.info(f"Forecast {forecast_id} deleted")


async def product_accuracy(db: AsyncSession, product_id: int, from_date: Optional[date] = None) -> Dict:
    await get_or_404(db, Product, product_id)
    conditions = [DemandForecast.product_id == product_id, DemandForecast.actual_demand.isnot(None)]
    if from_date:
        conditions.append(DemandForecast.forecast_date >= from_date)
    forecasts = await list_where(db, DemandForecast, *conditions, order_by=[DemandForecast.forecast_date.desc()])

    details = [
        {
            "forecast_date": f.forecast_date,
            "predicted": f.predicted_demand,
            "actual": f.actual_demand,
            "accuracy": accuracy(f.predicted_demand, f.actual_demand),
        }
        for f in forecasts[:100]
    ]
    average = round(sum(d["accuracy"] for d in details) / len(details), 2) if details else 0.0
    return {
        "product_id": product_id,
        "total_forecasts": len(details),
        "average_accuracy": average,
        "details": details,
    }


async def search_forecasts(db: AsyncSession, page: int, size: int, product_id: Optional[int] = None,
                           brand_id: Optional[int] = None, forecast_period: Optional[str] = None,
                           status: Optional[str] = None, method: Optional[str] = None,
                           from_date: Optional[date] = None, to_date: Optional[date] = None,
                           sort_by: Optional[str] = None) -> Tuple[List[DemandForecast], int]:
    conditions = []
    joins = []
    if product_id:
        conditions.append(DemandForecast.product_id == product_id)
    if brand_id:
        joins.append(DemandForecast.product)
        conditions.append(Product.brand_id == brand_id)
    if forecast_period:
        conditions.append(DemandForecast.forecast_period == forecast_period.upper())
    if status:
        conditions.append(DemandForecast.status == status.upper())
    if method:
        conditions.append(DemandForecast.forecast_method == method.upper())
    if from_date:
        conditions.append(DemandForecast.forecast_date >= from_date)
    if to_date:
        conditions.append(DemandForecast.forecast_date <= to_date)
    order = SORT_OPTIONS.get(sort_by or "", DemandForecast.forecast_date.desc())
    return await paginate(db, DemandForecast, conditions, [order, DemandForecast.id.desc()], page, size, joins=joins)
