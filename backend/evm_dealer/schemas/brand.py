"""Brand, dealer and dealer contract schemas"""
from datetime import date, datetime
from typing import Optional, List
from pydantic import BaseModel, EmailStr, Field

from evm_dealer.schemas.common import PageMeta


class BrandBase(BaseModel):
    brand_name: str = Field(..., min_length=1, max_length=100, description="Brand name")
    headquarters_address: Optional[str] = Field(None, max_length=255)
    tax_code: Optional[str] = Field(None, max_length=50)
    contact_info: Optional[str] = None


class BrandCreate(BrandBase):
    pass


class BrandUpdate(BaseModel):
    brand_name: Optional[str] = Field(None, min_length=1, max_length=100)
    headquarters_address: Optional[str] = Field(None, max_length=255)
    tax_code: Optional[str] = Field(None, max_length=50)
    contact_info: Optional[str] = None


class BrandResponse(BrandBase):
    id: int
    dealer_count: int = 0
    product_count: int = 0
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class BrandListResponse(PageMeta):
    data: List[BrandResponse]


class DealerBase(BaseModel):
    dealer_name: str = Field(..., min_length=1, max_length=150)
    address: Optional[str] = Field(None, max_length=255)
    phone_number: Optional[str] = Field(None, max_length=20)
    email: Optional[EmailStr] = None
    dealer_level: Optional[str] = Field(None, max_length=50)
    brand_id: Optional[int] = None


class DealerCreate(DealerBase):
    pass


class DealerUpdate(BaseModel):
    dealer_name: Optional[str] = Field(None, min_length=1, max_length=150)
    address: Optional[str] = Field(None, max_length=255)
    phone_number: Optional[str] = Field(None, max_length=20)
    email: Optional[EmailStr] = None
    dealer_level: Optional[str] = Field(None, max_length=50)
    brand_id: Optional[int] = None


class DealerResponse(BaseModel):
    id: int
    dealer_name: str
    address: Optional[str] = None
    phone_number: Optional[str] = None
    email: Optional[str] = None
    dealer_level: Optional[str] = None
    brand_id: Optional[int] = None
    brand_name: Optional[str] = None
    created_at: Optional[datetime] = None


class DealerListResponse(PageMeta):
    data: List[DealerResponse]


class ContractBase(BaseModel):
    start_date: date
    end_date: date
    contract_terms: Optional[str] = None
    commission_rate: float = Field(0, ge=0, le=100, description="Commission percent")
    sales_target: float = Field(0, ge=0, description="Revenue target for the period")
    brand_id: int
    dealer_id: int


class ContractCreate(ContractBase):
    pass


class ContractUpdate(BaseModel):
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    contract_terms: Optional[str] = None
    commission_rate: Optional[float] = Field(None, ge=0, le=100)
    sales_target: Optional[float] = Field(None, ge=0)


class ContractResponse(BaseModel):
    id: int
    start_date: date
    end_date: date
    contract_terms: Optional[str] = None
    commission_rate: float
    sales_target: float
    brand_id: int
    brand_name: Optional[str] = None
    dealer_id: int
    dealer_name: Optional[str] = None
    status: str
    days_remaining: int


class ContractListResponse(PageMeta):
    data: List[ContractResponse]
