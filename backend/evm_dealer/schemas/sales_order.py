"""Sales order and payment schemas"""
from datetime import date, datetime
from typing import Optional, List
from pydantic import BaseModel, Field

from evm_dealer.schemas.common import PageMeta
from evm_dealer.schemas.promotion import AppliedPromotion


class SalesOrderCreate(BaseModel):
    customer_id: int
    sales_person_id: Optional[int] = Field(None, description="Defaults to the current user")
    vehicle_id: Optional[str] = None
    product_id: Optional[int] = Field(None, description="Required when no vehicle is given")
    dealer_id: Optional[int] = None
    order_date: Optional[datetime] = None
    base_price: Optional[float] = Field(None, gt=0, description="Defaults to the product MSRP")
    registration_fee: Optional[float] = Field(0, ge=0)
    promotion_ids: List[int] = []
    notes: Optional[str] = None


class SalesOrderUpdate(BaseModel):
    customer_id: Optional[int] = None
    sales_person_id: Optional[int] = None
    order_date: Optional[datetime] = None
    base_price: Optional[float] = Field(None, gt=0)
    registration_fee: Optional[float] = Field(None, ge=0)
    promotion_ids: Optional[List[int]] = None
    notes: Optional[str] = None


class OrderStatusUpdate(BaseModel):
    status: str


class AssignVehicle(BaseModel):
    vehicle_id: str


class SalesOrderResponse(BaseModel):
    id: int
    order_date: datetime
    status: str
    base_price: float
    vat: float
    registration_fee: float
    discount_amount: float
    total_price: float
    notes: Optional[str] = None

    vehicle_id: Optional[str] = None
    vehicle_vin: Optional[str] = None
    product_id: Optional[int] = None
    product_name: Optional[str] = None
    dealer_id: Optional[int] = None
    dealer_name: Optional[str] = None
    customer_id: int
    customer_name: Optional[str] = None
    sales_person_id: int
    sales_person_name: Optional[str] = None

    promotions: List[AppliedPromotion] = []
    paid_amount: float
    remaining_amount: float
    is_paid: bool
    can_cancel: bool
    days_from_order: int


class SalesOrderListResponse(PageMeta):
    data: List[SalesOrderResponse]


class PaymentCreate(BaseModel):
    order_id: int
    amount: float = Field(..., gt=0)
    payment_method: str = Field("CASH", description="CASH, BANK_TRANSFER, CREDIT_CARD, INSTALLMENT")
    payment_type: str = Field("ORDER_PAYMENT", description="ORDER_PAYMENT, DEPOSIT, INSTALLMENT, FINAL_PAYMENT")
    payment_date: Optional[datetime] = None
    payer_id: Optional[int] = Field(None, description="Defaults to the order's customer")
    reference_number: Optional[str] = Field(None, max_length=100)
    status: Optional[str] = Field(None, description="Defaults to PENDING")
    notes: Optional[str] = None


class PaymentUpdate(BaseModel):
    payment_method: Optional[str] = None
    payment_type: Optional[str] = None
    payment_date: Optional[datetime] = None
    reference_number: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = None


class PaymentResponse(BaseModel):
    id: int
    order_id: int
    payment_date: datetime
    amount: float
    payment_method: str
    payment_type: str
    reference_number: Optional[str] = None
    status: str
    notes: Optional[str] = None
    payer_id: Optional[int] = None
    payer_name: Optional[str] = None
    created_at: Optional[datetime] = None


class PaymentListResponse(PageMeta):
    data: List[PaymentResponse]


class PaymentTotal(BaseModel):
    order_id: int
    total_price: float
    total_paid: float
    remaining_amount: float


class PaymentStatistics(BaseModel):
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    total_payments: int
    completed_payments: int
    pending_payments: int
    refunded_payments: int
    total_amount: float
    completed_amount: float
    pending_amount: float
    refunded_amount: float
    by_method: dict = {}
