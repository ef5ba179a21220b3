"""Appointment API"""

from datetime import datetime
from typing import Any, List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from evm_dealer.core.deps import get_db, require_roles
from evm_dealer.core.permissions import SALES_ROLES
from evm_dealer.models.support import Appointment
from evm_dealer.schemas.common import MessageResponse
from evm_dealer.schemas.support import (
    AppointmentCreate, AppointmentUpdate, AppointmentStatusUpdate,
    AppointmentResponse, AppointmentListResponse
)
from evm_dealer.services import support_service
from evm_dealer.services.common import get_or_404, total_pages

router = APIRouter(dependencies=[Depends(require_roles(*SALES_ROLES))])


def build_appointment_response(appointment: Appointment) -> AppointmentResponse:
    customer = appointment.customer
    return AppointmentResponse(
        id=appointment.id,
        appointment_time=appointment.appointment_time,
        status=appointment.status,
        notes=appointment.notes,
        customer_id=appointment.customer_id,
        customer_name=customer.full_name if customer else None,
        customer_phone=customer.phone_number if customer else None,
        staff_user_id=appointment.staff_user_id,
        staff_name=appointment.staff_user.full_name if appointment.staff_user else None,
        product_id=appointment.product_id,
        product_name=appointment.product.display_name if appointment.product else None,
        dealer_id=appointment.dealer_id,
        dealer_name=appointment.dealer.dealer_name if appointment.dealer else None,
        created_at=appointment.created_at
    )


@router.get("/", response_model=AppointmentListResponse)
async def list_appointments(
    *,
    db: AsyncSession = Depends(get_db),
    page: int = Query(0, ge=0),
    size: int = Query(20, ge=1, le=100),
    status: Optional[str] = Query(None),
    customer_id: Optional[int] = Query(None),
    staff_user_id: Optional[int] = Query(None),
    dealer_id: Optional[int] = Query(None),
    product_id: Optional[int] = Query(None),
    from_time: Optional[datetime] = Query(None),
    to_time: Optional[datetime] = Query(None),
    sort_by: Optional[str] = Query(None, description="time_asc, time_desc")
) -> Any:
    appointments, total = await support_service.search_appointments(
        db, page, size, status=status, customer_id=customer_id, staff_user_id=staff_user_id,
        dealer_id=dealer_id, product_id=product_id, from_time=from_time, to_time=to_time, sort_by=sort_by
    )
    return AppointmentListResponse(
        data=[build_appointment_response(a) for a in appointments],
        total=total,
        page=page,
        size=size,
        total_pages=total_pages(total, size)
    )


@router.get("/upcoming", response_model=List[AppointmentResponse])
async def list_upcoming_appointments(db: AsyncSession = Depends(get_db)) -> Any:
    return [build_appointment_response(a) for a in await support_service.list_upcoming_appointments(db)]


@router.get("/today", response_model=List[AppointmentResponse])
async def list_today_appointments(db: AsyncSession = Depends(get_db)) -> Any:
    return [build_appointment_response(a) for a in await support_service.list_today_appointments(db)]


@router.get("/customer/{customer_id}", response_model=List[AppointmentResponse])
async def list_customer_appointments(customer_id: int, db: AsyncSession = Depends(get_db)) -> Any:
    return [build_appointment_response(a) for a in await support_service.list_appointments_by_customer(db, customer_id)]


@router.get("/staff/{user_id}", response_model=List[AppointmentResponse])
async def list_staff_appointments(user_id: int, db: AsyncSession = Depends(get_db)) -> Any:
    return [build_appointment_response(a) for a in await support_service.list_appointments_by_staff(db, user_id)]


@router.get("/dealer/{dealer_id}", response_model=List[AppointmentResponse])
async def list_dealer_appointments(dealer_id: int, db: AsyncSession = Depends(get_db)) -> Any:
    return [build_appointment_response(a) for a in await support_service.list_appointments_by_dealer(db, dealer_id)]


@router.get("/{appointment_id}", response_model=AppointmentResponse)
async def get_appointment(appointment_id: int, db: AsyncSession = Depends(get_db)) -> Any:
    return build_appointment_response(await get_or_404(db, Appointment, appointment_id))


@router.post("/", response_model=AppointmentResponse, status_code=201)
async def create_appointment(*, db: AsyncSession = Depends(get_db), appointment_in: AppointmentCreate) -> Any:
    return build_appointment_response(await support_service.create_appointment(db, appointment_in))


@router.put("/{appointment_id}", response_model=AppointmentResponse)
async def update_appointment(*, db: AsyncSession = Depends(get_db), appointment_id: int, appointment_in: AppointmentUpdate) -> Any:
    return build_appointment_response(await support_service.update_appointment(db, appointment_id, appointment_in))


@router.patch("/{appointment_id}/status", response_model=AppointmentResponse)
async def update_appointment_status(*, db: AsyncSession = Depends(get_db), appointment_id: int, status_in: AppointmentStatusUpdate) -> Any:
    return build_appointment_response(await support_service.update_appointment_status(db, appointment_id, status_in.status))


@router.post("/{appointment_id}/cancel", response_model=AppointmentResponse)
async def cancel_appointment(appointment_id: int, db: AsyncSession = Depends(get_db)) -> Any:
    return build_appointment_response(await support_service.cancel_appointment(db, appointment_id))


@router.delete("/{appointment_id}", response_model=MessageResponse)
async def delete_appointment(appointment_id: int, db: AsyncSession = Depends(get_db)) -> Any:
    await support_service.delete_appointment(db, appointment_id)
    return MessageResponse(message="Appointment deleted")
