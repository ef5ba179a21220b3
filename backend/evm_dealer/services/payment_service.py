"""
Payments against sales orders
Only COMPLETED payments count toward the paid amount.
"""

from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from fastapi import HTTPException
from sqlalchemy import select, func, case
from sqlalchemy.ext.asyncio import AsyncSession

from evm_dealer.core.logging_config import get_logger
from evm_dealer.models import Customer, OrderStatus, Payment, PaymentStatus, SalesOrder
from evm_dealer.models.sales_order import PAYMENT_METHODS, PAYMENT_TYPES
from evm_dealer.schemas.sales_order import PaymentCreate, PaymentUpdate
from evm_dealer.services.common import get_or_404, like, list_where, money, paginate

logger = get_logger(__name__)

SORT_OPTIONS = {
    "date_asc": Payment.payment_date.asc(),
    "date_desc": Payment.payment_date.desc(),
    "amount_asc": Payment.amount.asc(),
    "amount_desc": Payment.amount.desc(),
}


def _check_choice(value: Optional[str], choices, label: str) -> None:
    if value is not None and value not in choices:
        raise HTTPException(status_code=400, detail=f"Invalid {label}: {value}")


async def total_paid(db: AsyncSession, order_id: int) -> Decimal:
    result = await db.execute(
        select(func.coalesce(func.sum(Payment.amount), 0)).where(
            Payment.order_id == order_id,
            Payment.status == PaymentStatus.COMPLETED
        )
    )
    return money(result.scalar())


async def _mark_paid_if_settled(db: AsyncSession, order: SalesOrder) -> None:
    remaining = money(order.total_price) - await total_paid(db, order.id)
    if remaining <= 0 and order.status in (OrderStatus.PENDING, OrderStatus.CONFIRMED):
        order.status = OrderStatus.PAID
        logger.info(f"Order {order.id} fully paid")


async def _revert_after_refund(db: AsyncSession, order: SalesOrder) -> None:
    if order.status not in (OrderStatus.PENDING, OrderStatus.CONFIRMED, OrderStatus.PAID):
        return
    paid = await total_paid(db, order.id)
    if paid == 0:
        order.status = OrderStatus.PENDING
    elif paid < money(order.total_price):
        order.status = OrderStatus.CONFIRMED


async def create_payment(db: AsyncSession, data: PaymentCreate) -> Payment:
    order = await get_or_404(db, SalesOrder, data.order_id, "Sales order")
    if order.status == OrderStatus.CANCELLED:
        raise HTTPException(status_code=400, detail="Cannot pay a cancelled order")
    _check_choice(data.payment_method, PAYMENT_METHODS, "payment method")
    _check_choice(data.payment_type, PAYMENT_TYPES, "payment type")
    _check_choice(data.status, PaymentStatus.ALL, "payment status")

    amount = money(data.amount)
    if amount <= 0:
        raise HTTPException(status_code=400, detail="Payment amount must be greater than 0")
    remaining = money(order.total_price) - await total_paid(db, order.id)
    if amount > remaining:
        raise HTTPException(
            status_code=400,
            detail=f"Payment amount {amount:.2f} exceeds remaining amount {remaining:.2f}"
        )

    payer_id = order.customer_id
    if data.payer_id:
        payer_id = (await get_or_404(db, Customer, data.payer_id, "Payer")).id

    payment = Payment(
        order_id=order.id,
        payer_id=payer_id,
        amount=amount,
        payment_date=data.payment_date or datetime.utcnow(),
        payment_method=data.payment_method,
        payment_type=data.payment_type,
        reference_number=data.reference_number,
        status=data.status or PaymentStatus.PENDING,
        notes=data.notes
    )
    db.add(payment)
    await db.flush()
    await _mark_paid_if_settled(db, order)
    await db.commit()
    logger.info(f"Payment {payment.id} of {amount} recorded for order {order.id}")
    return await get_or_404(db, Payment, payment.id)


async def update_payment(db: AsyncSession, payment_id: int, data: PaymentUpdate) -> Payment:
    payment = await get_or_404(db, Payment, payment_id)
    update_data = data.model_dump(exclude_unset=True)
    _check_choice(update_data.get("payment_method"), PAYMENT_METHODS, "payment method")
    _check_choice(update_data.get("payment_type"), PAYMENT_TYPES, "payment type")
    for field, value in update_data.items():
        setattr(payment, field, value)
    await db.commit()
    return await get_or_404(db, Payment, payment_id)


async def confirm_payment(db: AsyncSession, payment_id: int) -> Payment:
    payment = await get_or_404(db, Payment, payment_id)
    if payment.status == PaymentStatus.COMPLETED:
        raise HTTPException(status_code=400, detail="Payment is already confirmed")
    if payment.status == PaymentStatus.REFUNDED:
        raise HTTPException(status_code=400, detail="Cannot confirm a refunded payment")

    order = await get_or_404(db, SalesOrder, payment.order_id, "Sales order")
    remaining = money(order.total_price) - await total_paid(db, order.id)
    if money(payment.amount) > remaining:
        raise HTTPException(
            status_code=400,
            detail=f"Payment amount {payment.amount:.2f} exceeds remaining amount {remaining:.2f}"
        )
    payment.status = PaymentStatus.COMPLETED
    await db.flush()
    await _mark_paid_if_settled(db, order)
    await db.commit()
    logger.info(f"Payment {payment_id} confirmed")
    return await get_or_404(db, Payment, payment_id)


async def refund_payment(db: AsyncSession, payment_id: int, reason: Optional[str] = None) -> Payment:
    payment = await get_or_404(db, Payment, payment_id)
    if payment.status == PaymentStatus.REFUNDED:
        raise HTTPException(status_code=400, detail="Payment is already refunded")
    if payment.status != PaymentStatus.COMPLETED:
        raise HTTPException(status_code=400, detail="Only completed payments can be refunded")

    payment.status = PaymentStatus.REFUNDED
    if reason:
        payment.notes = f"{payment.notes}\nRefund: {reason}" if payment.notes else f"Refund: {reason}"
    await db.flush()
    order = await get_or_404(db, SalesOrder, payment.order_id, "Sales order")
    await _revert_after_refund(db, order)
    await db.commit()
    logger.info(f"Payment {payment_id} refunded")
    return await get_or_404(db, Payment, payment_id)


async def delete_payment(db: AsyncSession, payment_id: int) -> None:
    payment = await get_or_404(db, Payment, payment_id)
    if payment.status == PaymentStatus.COMPLETED:
        raise HTTPException(status_code=400, detail="Cannot delete a completed payment, refund it first")
    order_id = payment.order_id
    await db.delete(payment)
    await db.flush()
    order = await get_or_404(db, SalesOrder, order_id, "Sales order")
    await _revert_after_refund(db, order)
    await db.commit()
    logger.info(f"Payment {payment_id} deleted")


async def search_payments(db: AsyncSession, page: int, size: int, order_id: Optional[int] = None,
                          payer_id: Optional[int] = None, payment_method: Optional[str] = None,
                          status: Optional[str] = None, payment_type: Optional[str] = None,
                          from_date: Optional[date] = None, to_date: Optional[date] = None,
                          reference: Optional[str] = None,
                          sort_by: Optional[str] = None) -> Tuple[List[Payment], int]:
    conditions = []
    if order_id:
        conditions.append(Payment.order_id == order_id)
    if payer_id:
        conditions.append(Payment.payer_id == payer_id)
    if payment_method:
        conditions.append(Payment.payment_method == payment_method)
    if status:
        conditions.append(Payment.status == status.upper())
    if payment_type:
        conditions.append(Payment.payment_type == payment_type)
    if from_date:
        conditions.append(Payment.payment_date >= datetime.combine(from_date, datetime.min.time()))
    if to_date:
        conditions.append(Payment.payment_date < datetime.combine(to_date + timedelta(days=1), datetime.min.time()))
    if reference:
        conditions.append(Payment.reference_number.ilike(like(reference)))
    order = SORT_OPTIONS.get(sort_by or "", Payment.payment_date.desc())
    return await paginate(db, Payment, conditions, [order, Payment.id.desc()], page, size)


async def list_by_order(db: AsyncSession, order_id: int) -> List[Payment]:
    await get_or_404(db, SalesOrder, order_id, "Sales order")
    return await list_where(db, Payment, Payment.order_id == order_id, order_by=[Payment.payment_date.asc()])


async def list_by_customer(db: AsyncSession, customer_id: int) -> List[Payment]:
    await get_or_404(db, Customer, customer_id)
    return await list_where(db, Payment, Payment.payer_id == customer_id, order_by=[Payment.payment_date.desc()])


async def list_pending(db: AsyncSession) -> List[Payment]:
    return await list_where(db, Payment, Payment.status == PaymentStatus.PENDING,
                            order_by=[Payment.payment_date.asc()])


async def get_by_reference(db: AsyncSession, reference: str) -> Payment:
    result = await db.execute(select(Payment).where(Payment.reference_number == reference))
    payment = result.scalars().unique().first()
    if payment is None:
        raise HTTPException(status_code=404, detail=f"Payment not found with reference: {reference}")
    return payment


async def statistics(db: AsyncSession, start_date: Optional[date] = None,
                     end_date: Optional[date] = None) -> Dict[str, Any]:
    conditions = []
    if start_date:
        conditions.append(Payment.payment_date >= datetime.combine(start_date, datetime.min.time()))
    if end_date:
        conditions.append(Payment.payment_date < datetime.combine(end_date + timedelta(days=1), datetime.min.time()))

    def status_sum(status: str):
        return func.coalesce(func.sum(case((Payment.status == status, Payment.amount), else_=0)), 0)

    def status_count(status: str):
        return func.coalesce(func.sum(case((Payment.status == status, 1), else_=0)), 0)

    query = select(
        func.count(Payment.id),
        status_count(PaymentStatus.COMPLETED),
        status_count(PaymentStatus.PENDING),
        status_count(PaymentStatus.REFUNDED),
        func.coalesce(func.sum(Payment.amount), 0),
        status_sum(PaymentStatus.COMPLETED),
        status_sum(PaymentStatus.PENDING),
        status_sum(PaymentStatus.REFUNDED),
    )
    if conditions:
        query = query.where(*conditions)
    row = (await db.execute(query)).one()

    method_query = select(Payment.payment_method, func.sum(Payment.amount)).where(
        Payment.status == PaymentStatus.COMPLETED, *conditions
    ).group_by(Payment.payment_method)
    by_method = {method: float(money(amount)) for method, amount in (await db.execute(method_query)).all()}

    return {
        "start_date": start_date,
        "end_date": end_date,
        "total_payments": row[0] or 0,
        "completed_payments": int(row[1]),
        "pending_payments": int(row[2]),
        "refunded_payments": int(row[3]),
        "total_amount": float(money(row[4])),
        "completed_amount": float(money(row[5])),
        "pending_amount": float(money(row[6])),
        "refunded_amount": float(money(row[7])),
        "by_method": by_method,
    }
