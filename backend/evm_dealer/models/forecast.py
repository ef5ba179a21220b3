from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, Date, DateTime, Float, ForeignKey
from sqlalchemy.orm import relationship
from evm_dealer.db.base import Base


class ForecastMethod:
    LINEAR_REGRESSION = "LINEAR_REGRESSION"
    MOVING_AVERAGE = "MOVING_AVERAGE"
    EXPONENTIAL_SMOOTHING = "EXPONENTIAL_SMOOTHING"

    ALL = (LINEAR_REGRESSION, MOVING_AVERAGE, EXPONENTIAL_SMOOTHING)


class DemandForecast(Base):
    __tablename__ = "demand_forecasts"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    forecast_period = Column(String(20), nullable=False, default="MONTHLY", comment="MONTHLY, QUARTERLY or YEARLY")
    forecast_date = Column(Date, nullable=False, index=True, comment="Period the forecast is for")
    predicted_demand = Column(Integer, nullable=False, default=0)
    confidence_score = Column(Float, comment="0-100")
    actual_demand = Column(Integer)
    forecast_method = Column(String(30), nullable=False)
    historical_data_points = Column(Integer)
    seasonality_factor = Column(Float)
    trend_factor = Column(Float)
    market_growth_rate = Column(Float)
    status = Column(String(20), nullable=False, default="DRAFT", comment="DRAFT, PUBLISHED or ARCHIVED")
    notes = Column(Text)

    created_by_id = Column(Integer, ForeignKey("users.id"))
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    product = relationship("Product", lazy="joined")
    created_by = relationship("User", lazy="joined")
