"""Support ticket and appointment schemas"""
from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, Field

from evm_dealer.schemas.common import PageMeta


class TicketCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    customer_id: int
    assigned_user_id: Optional[int] = None
    sales_order_id: Optional[int] = None
    vehicle_id: Optional[str] = None


class TicketUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    status: Optional[str] = None
    assigned_user_id: Optional[int] = None
    sales_order_id: Optional[int] = None
    vehicle_id: Optional[str] = None


class TicketAssign(BaseModel):
    user_id: int


class TicketStatusUpdate(BaseModel):
    status: str


class TicketResponse(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    status: str
    created_at: datetime
    closed_at: Optional[datetime] = None
    customer_id: int
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    assigned_user_id: Optional[int] = None
    assigned_user_name: Optional[str] = None
    sales_order_id: Optional[int] = None
    vehicle_id: Optional[str] = None
    vehicle_vin: Optional[str] = None


class TicketListResponse(PageMeta):
    data: List[TicketResponse]


class TicketStatistics(BaseModel):
    total: int
    open: int
    pending: int
    in_progress: int
    resolved: int
    closed: int
    cancelled: int


class AppointmentCreate(BaseModel):
    appointment_time: datetime
    customer_id: int
    product_id: int
    dealer_id: int
    staff_user_id: Optional[int] = None
    notes: Optional[str] = None


class AppointmentUpdate(BaseModel):
    appointment_time: Optional[datetime] = None
    product_id: Optional[int] = None
    staff_user_id: Optional[int] = None
    status: Optional[str] = None
    notes: Optional[str] = None


class AppointmentStatusUpdate(BaseModel):
    status: str


class AppointmentResponse(BaseModel):
    id: int
    appointment_time: datetime
    status: str
    notes: Optional[str] = None
    customer_id: int
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    staff_user_id: Optional[int] = None
    staff_name: Optional[str] = None
    product_id: int
    product_name: Optional[str] = None
    dealer_id: int
    dealer_name: Optional[str] = None
    created_at: Optional[datetime] = None


class AppointmentListResponse(PageMeta):
    data: List[AppointmentResponse]
