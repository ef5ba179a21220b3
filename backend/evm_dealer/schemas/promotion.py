from datetime import date, datetime
from typing import Optional, List
from pydantic import BaseModel, Field

from evm_dealer.schemas.common import PageMeta


class PromotionBase(BaseModel):
    promotion_code: str = Field(..., min_length=1, max_length=50)
    promotion_name: str = Field(..., min_length=1, max_length=150)
    description: Optional[str] = None
    discount_type: str = Field(..., pattern="^(PERCENTAGE|FIXED)$")
    discount_value: float = Field(..., gt=0)
    start_date: date
    end_date: date
    conditions: Optional[str] = None


class PromotionCreate(PromotionBase):
    pass


class PromotionUpdate(PromotionBase):
    pass


class PromotionResponse(PromotionBase):
    id: int
    status: str = Field(..., description="UPCOMING, ACTIVE or EXPIRED")
    days_remaining: int
    progress_percentage: int
    total_usages: int
    discount_display: str
    created_at: Optional[datetime] = None


class PromotionListResponse(PageMeta):
    data: List[PromotionResponse]


class AppliedPromotion(BaseModel):
    """Promotion as applied to a quotation or order"""
    promotion_id: int
    promotion_code: str
    promotion_name: str
    discount_type: str
    discount_value: float
    applied_amount: float
