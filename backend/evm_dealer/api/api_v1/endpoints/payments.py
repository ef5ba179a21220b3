"""Payment API"""

from datetime import date
from typing import Any, List, Optional
from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from evm_dealer.core.deps import get_db, require_roles
from evm_dealer.core.permissions import SALES_ROLES
from evm_dealer.models.sales_order import Payment, SalesOrder
from evm_dealer.schemas.common import MessageResponse
from evm_dealer.schemas.sales_order import (
    PaymentCreate, PaymentUpdate, PaymentResponse, PaymentListResponse,
    PaymentTotal, PaymentStatistics
)
from evm_dealer.services import payment_service
from evm_dealer.services.common import get_or_404, money, total_pages

router = APIRouter(dependencies=[Depends(require_roles(*SALES_ROLES))])


def build_payment_response(payment: Payment) -> PaymentResponse:
    return PaymentResponse(
        id=payment.id,
        order_id=payment.order_id,
        payment_date=payment.payment_date,
        amount=float(payment.amount or 0),
        payment_method=payment.payment_method,
        payment_type=payment.payment_type,
        reference_number=payment.reference_number,
        status=payment.status,
        notes=payment.notes,
        payer_id=payment.payer_id,
        payer_name=payment.payer.full_name if payment.payer else None,
        created_at=payment.created_at
    )


@router.get("/", response_model=PaymentListResponse)
async def list_payments(
    *,
    db: AsyncSession = Depends(get_db),
    page: int = Query(0, ge=0),
    size: int = Query(20, ge=1, le=100),
    order_id: Optional[int] = Query(None),
    payer_id: Optional[int] = Query(None),
    payment_method: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    payment_type: Optional[str] = Query(None),
    from_date: Optional[date] = Query(None),
    to_date: Optional[date] = Query(None),
    reference: Optional[str] = Query(None, description="Reference number substring"),
    sort_by: Optional[str] = Query(None, description="date_asc, date_desc, amount_asc, amount_desc")
) -> Any:
    payments, total = await payment_service.search_payments(
        db, page, size, order_id=order_id, payer_id=payer_id, payment_method=payment_method,
        status=status, payment_type=payment_type, from_date=from_date, to_date=to_date,
        reference=reference, sort_by=sort_by
    )
    return PaymentListResponse(
        data=[build_payment_response(p) for p in payments],
        total=total,
        page=page,
        size=size,
        total_pages=total_pages(total, size)
    )


@router.get("/pending", response_model=List[PaymentResponse])
async def list_pending_payments(db: AsyncSession = Depends(get_db)) -> Any:
    return [build_payment_response(p) for p in await payment_service.list_pending(db)]


@router.get("/statistics", response_model=PaymentStatistics)
async def payment_statistics(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    db: AsyncSession = Depends(get_db)
) -> Any:
    return PaymentStatistics(**await payment_service.statistics(db, start_date, end_date))


@router.get("/order/{order_id}", response_model=List[PaymentResponse])
async def list_order_payments(order_id: int, db: AsyncSession = Depends(get_db)) -> Any:
    return [build_payment_response(p) for p in await payment_service.list_by_order(db, order_id)]


@router.get("/order/{order_id}/total", response_model=PaymentTotal)
async def order_total_paid(order_id: int, db: AsyncSession = Depends(get_db)) -> Any:
    order = await get_or_404(db, SalesOrder, order_id, "Sales order")
    paid = await payment_service.total_paid(db, order_id)
    return PaymentTotal(
        order_id=order_id,
        total_price=float(order.total_price or 0),
        total_paid=float(paid),
        remaining_amount=float(money(order.total_price) - paid)
    )


@router.get("/customer/{customer_id}", response_model=List[PaymentResponse])
async def list_customer_payments(customer_id: int, db: AsyncSession = Depends(get_db)) -> Any:
    return [build_payment_response(p) for p in await payment_service.list_by_customer(db, customer_id)]


@router.get("/reference/{reference_number}", response_model=PaymentResponse)
async def get_payment_by_reference(reference_number: str, db: AsyncSession = Depends(get_db)) -> Any:
    return build_payment_response(await payment_service.get_by_reference(db, reference_number))


@router.get("/{payment_id}", response_model=PaymentResponse)
async def get_payment(payment_id: int, db: AsyncSession = Depends(get_db)) -> Any:
    return build_payment_response(await get_or_404(db, Payment, payment_id))


@router.post("/", response_model=PaymentResponse, status_code=201)
async def create_payment(*, db: AsyncSession = Depends(get_db), payment_in: PaymentCreate) -> Any:
    return build_payment_response(await payment_service.create_payment(db, payment_in))


@router.put("/{payment_id}", response_model=PaymentResponse)
async def update_payment(*, db: AsyncSession = Depends(get_db), payment_id: int, payment_in: PaymentUpdate) -> Any:
    return build_payment_response(await payment_service.update_payment(db, payment_id, payment_in))


@router.post("/{payment_id}/confirm", response_model=PaymentResponse)
async def confirm_payment(payment_id: int, db: AsyncSession = Depends(get_db)) -> Any:
    return build_payment_response(await payment_service.confirm_payment(db, payment_id))


@router.post("/{payment_id}/refund", response_model=PaymentResponse)
async def refund_payment(
    payment_id: int,
    reason: Optional[str] = Body(None, embed=True),
    db: AsyncSession = Depends(get_db)
) -> Any:
    return build_payment_response(await payment_service.refund_payment(db, payment_id, reason))


@router.delete("/{payment_id}", response_model=MessageResponse)
async def delete_payment(payment_id: int, db: AsyncSession = Depends(get_db)) -> Any:
    await payment_service.delete_payment(db, payment_id)
    return MessageResponse(message="Payment deleted")
