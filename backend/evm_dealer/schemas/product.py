"""Product catalog schemas"""
from datetime import datetime
from typing import Optional, List, Any
from pydantic import BaseModel, Field

from evm_dealer.schemas.common import PageMeta


class TechnicalSpecs(BaseModel):
    battery_capacity: Optional[str] = None
    product_range: Optional[str] = None
    power: Optional[str] = None
    max_speed: Optional[str] = None
    charging_time: Optional[str] = None
    dimensions: Optional[str] = None
    weight: Optional[str] = None
    seating_capacity: Optional[str] = None

    class Config:
        from_attributes = True


class FeatureCreate(BaseModel):
    feature_name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    icon_url: Optional[str] = None


class FeatureResponse(FeatureCreate):
    id: int

    class Config:
        from_attributes = True


class VariantCreate(BaseModel):
    color: str = Field(..., min_length=1, max_length=50)
    color_code: Optional[str] = Field(None, max_length=20)
    available_quantity: int = Field(0, ge=0)


class VariantUpdate(BaseModel):
    color: Optional[str] = Field(None, min_length=1, max_length=50)
    color_code: Optional[str] = Field(None, max_length=20)
    available_quantity: Optional[int] = Field(None, ge=0)


class VariantResponse(VariantCreate):
    id: int

    class Config:
        from_attributes = True


class ProductBase(BaseModel):
    product_name: str = Field(..., min_length=1, max_length=150)
    version: Optional[str] = Field(None, max_length=50)
    msrp: float = Field(..., ge=0, description="List price")
    specifications: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    video_url: Optional[str] = None
    is_active: bool = True
    brand_id: Optional[int] = None


class ProductCreate(ProductBase):
    technical_specs: Optional[TechnicalSpecs] = None
    features: List[FeatureCreate] = []
    variants: List[VariantCreate] = []


class ProductUpdate(BaseModel):
    product_name: Optional[str] = Field(None, min_length=1, max_length=150)
    version: Optional[str] = Field(None, max_length=50)
    msrp: Optional[float] = Field(None, ge=0)
    specifications: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    video_url: Optional[str] = None
    is_active: Optional[bool] = None
    brand_id: Optional[int] = None
    technical_specs: Optional[TechnicalSpecs] = None
    features: Optional[List[FeatureCreate]] = Field(None, description="Replaces all features when given")


class ProductResponse(BaseModel):
    id: int
    product_name: str
    version: Optional[str] = None
    msrp: float
    specifications: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    video_url: Optional[str] = None
    is_active: bool
    brand_id: Optional[int] = None
    brand_name: Optional[str] = None
    technical_specs: TechnicalSpecs
    features: List[FeatureResponse] = []
    variants: List[VariantResponse] = []
    total_variant_quantity: int = 0
    created_at: Optional[datetime] = None


class ProductListResponse(PageMeta):
    data: List[ProductResponse]


# Comparison

class ComparedProduct(BaseModel):
    id: int
    product_name: str
    version: Optional[str] = None
    brand_name: Optional[str] = None
    image_url: Optional[str] = None
    msrp: float
    range_km: Optional[float] = None
    power: Optional[float] = None
    battery_capacity: Optional[float] = None
    top_speed: Optional[float] = None
    charging_time: Optional[float] = None
    weight: Optional[float] = None
    features: List[str] = []
    colors: List[str] = []
    advantages: List[str] = []
    disadvantages: List[str] = []
    recommendation: Optional[str] = None


class BestPick(BaseModel):
    product_id: int
    product_name: str
    value: Any


class ComparisonSummary(BaseModel):
    best_range: Optional[BestPick] = None
    best_power: Optional[BestPick] = None
    best_battery: Optional[BestPick] = None
    fastest_charging: Optional[BestPick] = None
    cheapest: Optional[BestPick] = None
    most_expensive: Optional[BestPick] = None


class ComparisonResponse(BaseModel):
    products: List[ComparedProduct]
    summary: ComparisonSummary
