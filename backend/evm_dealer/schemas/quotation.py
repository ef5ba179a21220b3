"""Quotation schemas"""
from datetime import date, datetime
from typing import Optional, List
from pydantic import BaseModel, Field

from evm_dealer.schemas.common import PageMeta
from evm_dealer.schemas.promotion import AppliedPromotion


class QuotationCreate(BaseModel):
    product_id: int
    customer_id: int
    sales_person_id: Optional[int] = Field(None, description="Defaults to the current user")
    dealer_id: Optional[int] = Field(None, description="Defaults to the sales person's dealer")
    quotation_date: Optional[date] = None
    valid_until: Optional[date] = None
    base_price: Optional[float] = Field(None, gt=0, description="Defaults to the product MSRP")
    registration_fee: Optional[float] = Field(0, ge=0)
    promotion_ids: List[int] = []
    notes: Optional[str] = None
    terms_and_conditions: Optional[str] = None


class QuotationUpdate(BaseModel):
    product_id: Optional[int] = None
    customer_id: Optional[int] = None
    valid_until: Optional[date] = None
    base_price: Optional[float] = Field(None, gt=0)
    registration_fee: Optional[float] = Field(None, ge=0)
    promotion_ids: Optional[List[int]] = None
    notes: Optional[str] = None
    terms_and_conditions: Optional[str] = None


class QuotationResponse(BaseModel):
    id: int
    quotation_number: str
    quotation_date: date
    valid_until: date
    status: str
    base_price: float
    vat: float
    registration_fee: float
    discount_amount: float
    total_price: float
    notes: Optional[str] = None
    terms_and_conditions: Optional[str] = None

    product_id: int
    product_name: Optional[str] = None
    customer_id: int
    customer_name: Optional[str] = None
    sales_person_id: int
    sales_person_name: Optional[str] = None
    dealer_id: int
    dealer_name: Optional[str] = None
    sales_order_id: Optional[int] = None

    promotions: List[AppliedPromotion] = []
    is_expired: bool
    days_until_expiry: int
    can_convert_to_order: bool
    created_at: Optional[datetime] = None


class QuotationListResponse(PageMeta):
    data: List[QuotationResponse]
