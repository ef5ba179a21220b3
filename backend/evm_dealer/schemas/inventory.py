"""Inventory schemas"""
from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, Field

from evm_dealer.schemas.common import PageMeta


class InventoryBase(BaseModel):
    total_quantity: int = Field(0, ge=0)
    reserved_quantity: int = Field(0, ge=0)
    available_quantity: int = Field(0, ge=0)
    in_transit_quantity: int = Field(0, ge=0)
    location: Optional[str] = Field(None, max_length=255)


class InventoryCreate(InventoryBase):
    product_id: int
    dealer_id: Optional[int] = Field(None, description="Empty for the brand warehouse")


class InventoryUpdate(InventoryBase):
    pass


class StockAdjust(BaseModel):
    quantity: int = Field(..., description="Positive to add stock, negative to remove")
    reason: Optional[str] = Field(None, max_length=255)


class StockQuantity(BaseModel):
    quantity: int = Field(..., gt=0)


class StockTransfer(BaseModel):
    from_inventory_id: int
    to_dealer_id: int
    quantity: int = Field(..., gt=0)


class InventoryResponse(BaseModel):
    id: int
    product_id: int
    product_name: Optional[str] = None
    brand_name: Optional[str] = None
    dealer_id: Optional[int] = None
    dealer_name: Optional[str] = None
    is_brand_warehouse: bool
    total_quantity: int
    reserved_quantity: int
    available_quantity: int
    in_transit_quantity: int
    location: Optional[str] = None
    stock_percentage: float
    is_low_stock: bool
    updated_at: Optional[datetime] = None


class InventoryListResponse(PageMeta):
    data: List[InventoryResponse]


class InventoryStatistics(BaseModel):
    total_records: int
    total_available: int
    total_reserved: int
    total_in_transit: int
    low_stock_count: int
    brand_warehouse_count: int
