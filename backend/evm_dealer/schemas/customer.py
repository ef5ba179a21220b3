from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, EmailStr, Field

from evm_dealer.schemas.common import PageMeta


class CustomerBase(BaseModel):
    full_name: str = Field(..., min_length=1, max_length=100)
    phone_number: str = Field(..., min_length=6, max_length=20)
    email: Optional[EmailStr] = None
    address: Optional[str] = Field(None, max_length=255)
    customer_type: Optional[str] = Field("INDIVIDUAL", description="INDIVIDUAL or BUSINESS")
    history: Optional[str] = None


class CustomerCreate(CustomerBase):
    pass


class CustomerUpdate(BaseModel):
    full_name: Optional[str] = Field(None, min_length=1, max_length=100)
    phone_number: Optional[str] = Field(None, min_length=6, max_length=20)
    email: Optional[EmailStr] = None
    address: Optional[str] = Field(None, max_length=255)
    customer_type: Optional[str] = None
    history: Optional[str] = None


class CustomerResponse(BaseModel):
    id: int
    full_name: str
    phone_number: str
    email: Optional[str] = None
    address: Optional[str] = None
    customer_type: Optional[str] = None
    history: Optional[str] = None
    created_at: Optional[datetime] = None
    order_count: int = 0
    ticket_count: int = 0

    class Config:
        from_attributes = True


class CustomerListResponse(PageMeta):
    data: List[CustomerResponse]
