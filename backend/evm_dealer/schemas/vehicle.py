"""Vehicle schemas"""
from datetime import date, datetime
from typing import Optional, List
from pydantic import BaseModel, Field

from evm_dealer.schemas.common import PageMeta


class VehicleBase(BaseModel):
    vin: str = Field(..., min_length=11, max_length=17, description="VIN")
    battery_serial: Optional[str] = Field(None, max_length=100)
    color: Optional[str] = Field(None, max_length=50)
    manufacture_date: Optional[date] = None
    status: Optional[str] = Field(None, description="AVAILABLE, RESERVED, SOLD, IN_TRANSIT, MAINTENANCE")
    product_id: int
    dealer_id: Optional[int] = None


class VehicleCreate(VehicleBase):
    id: str = Field(..., min_length=1, max_length=50, description="Vehicle code")


class VehicleUpdate(BaseModel):
    vin: Optional[str] = Field(None, min_length=11, max_length=17)
    battery_serial: Optional[str] = Field(None, max_length=100)
    color: Optional[str] = Field(None, max_length=50)
    manufacture_date: Optional[date] = None
    status: Optional[str] = None
    product_id: Optional[int] = None
    dealer_id: Optional[int] = None


class VehicleResponse(BaseModel):
    id: str
    vin: str
    battery_serial: Optional[str] = None
    color: Optional[str] = None
    manufacture_date: Optional[date] = None
    status: str
    product_id: int
    product_name: Optional[str] = None
    msrp: float = 0
    dealer_id: Optional[int] = None
    dealer_name: Optional[str] = None
    brand_name: Optional[str] = None
    created_at: Optional[datetime] = None


class VehicleListResponse(PageMeta):
    data: List[VehicleResponse]
