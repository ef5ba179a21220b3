"""Sell-in request schemas"""
from datetime import date, datetime
from typing import Optional, List
from pydantic import BaseModel, Field

from evm_dealer.schemas.common import PageMeta


class SellInItem(BaseModel):
    product_id: int
    color: Optional[str] = Field(None, max_length=50)
    quantity: int = Field(..., gt=0)
    notes: Optional[str] = None


class SellInRequestCreate(BaseModel):
    dealer_id: int
    request_date: Optional[date] = None
    expected_delivery_date: Optional[date] = None
    delivery_address: Optional[str] = Field(None, max_length=255, description="Defaults to the dealer address")
    notes: Optional[str] = None
    items: List[SellInItem] = Field(..., min_length=1)


class SellInRequestUpdate(BaseModel):
    expected_delivery_date: Optional[date] = None
    delivery_address: Optional[str] = Field(None, max_length=255)
    notes: Optional[str] = None
    items: Optional[List[SellInItem]] = Field(None, min_length=1)


class SellInDecision(BaseModel):
    notes: Optional[str] = None


class SellInShipment(BaseModel):
    tracking_number: Optional[str] = Field(None, max_length=100)


class SellInDetailResponse(BaseModel):
    id: int
    product_id: int
    product_name: Optional[str] = None
    color: Optional[str] = None
    requested_quantity: int
    approved_quantity: Optional[int] = None
    delivered_quantity: Optional[int] = None
    unit_price: float
    notes: Optional[str] = None


class SellInRequestResponse(BaseModel):
    id: int
    request_number: str
    request_date: date
    expected_delivery_date: Optional[date] = None
    actual_delivery_date: Optional[date] = None
    status: str
    notes: Optional[str] = None
    approval_notes: Optional[str] = None
    delivery_address: Optional[str] = None
    dealer_id: int
    dealer_name: Optional[str] = None
    requested_by_id: Optional[int] = None
    requested_by_name: Optional[str] = None
    approved_by_id: Optional[int] = None
    approved_by_name: Optional[str] = None
    approved_at: Optional[datetime] = None
    details: List[SellInDetailResponse] = []

    can_approve: bool
    can_reject: bool
    can_cancel: bool
    days_until_expected_delivery: Optional[int] = None
    total_quantity: int
    total_amount: float
    created_at: Optional[datetime] = None


class SellInRequestListResponse(PageMeta):
    data: List[SellInRequestResponse]
