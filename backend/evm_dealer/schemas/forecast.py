"""Demand forecast schemas"""
from datetime import date, datetime
from typing import Optional, List
from pydantic import BaseModel, Field

from evm_dealer.schemas.common import PageMeta


class ForecastCreate(BaseModel):
    product_id: int
    forecast_period: str = Field("MONTHLY", pattern="^(MONTHLY|QUARTERLY|YEARLY)$")
    forecast_date: date = Field(..., description="Period the forecast is for")
    forecast_method: str = Field("LINEAR_REGRESSION", description="LINEAR_REGRESSION, MOVING_AVERAGE, EXPONENTIAL_SMOOTHING")
    notes: Optional[str] = None


class BatchForecastCreate(BaseModel):
    product_ids: List[int] = Field(..., min_length=1)
    forecast_period: str = Field("MONTHLY", pattern="^(MONTHLY|QUARTERLY|YEARLY)$")
    forecast_date: date
    forecast_method: str = "LINEAR_REGRESSION"


class ForecastUpdate(BaseModel):
    forecast_date: Optional[date] = None
    predicted_demand: Optional[int] = Field(None, ge=0)
    status: Optional[str] = Field(None, pattern="^(DRAFT|PUBLISHED|ARCHIVED)$")
    notes: Optional[str] = None


class ActualDemandUpdate(BaseModel):
    actual_demand: int = Field(..., ge=0)


class ForecastInsights(BaseModel):
    trend: str = Field(..., description="INCREASING, DECREASING or STABLE")
    trend_percentage: float
    seasonal_pattern: str
    influencing_factors: List[str]
    recommendation: str


class ForecastResponse(BaseModel):
    id: int
    product_id: int
    product_name: Optional[str] = None
    product_version: Optional[str] = None
    brand_name: Optional[str] = None
    forecast_period: str
    forecast_date: date
    predicted_demand: int
    confidence_score: Optional[float] = None
    actual_demand: Optional[int] = None
    accuracy: Optional[int] = None
    forecast_method: str
    historical_data_points: Optional[int] = None
    seasonality_factor: Optional[float] = None
    trend_factor: Optional[float] = None
    market_growth_rate: Optional[float] = None
    status: str
    notes: Optional[str] = None
    created_by_name: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    insights: ForecastInsights


class ForecastListResponse(PageMeta):
    data: List[ForecastResponse]


class AccuracyPoint(BaseModel):
    forecast_date: date
    predicted: int
    actual: int
    accuracy: int


class ForecastAccuracy(BaseModel):
    product_id: int
    total_forecasts: int
    average_accuracy: float
    details: List[AccuracyPoint]
