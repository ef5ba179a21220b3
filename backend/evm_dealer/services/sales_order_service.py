"""
Sales orders
- create with optional vehicle, priced like quotations
- vehicle assignment: PENDING order + AVAILABLE vehicle -> CONFIRMED / RESERVED
- status changes and cancellation keep the vehicle status in step
"""

from datetime import date, datetime, timedelta
from typing import List, Optional, Tuple

from fastapi import HTTPException
from sqlalchemy import select, extract
from sqlalchemy.ext.asyncio import AsyncSession

from evm_dealer.core.logging_config import get_logger
from evm_dealer.models import (
    Customer, Dealer, OrderPromotion, OrderStatus, Product, Quotation,
    SalesOrder, SupportTicket, User, Vehicle, VehicleStatus
)
from evm_dealer.schemas.sales_order import SalesOrderCreate, SalesOrderUpdate
from evm_dealer.services import pricing, promotion_service, vehicle_service
from evm_dealer.services.common import count_where, get_or_404, list_where, paginate

logger = get_logger(__name__)

SORT_OPTIONS = {
    "date_asc": SalesOrder.order_date.asc(),
    "date_desc": SalesOrder.order_date.desc(),
    "price_asc": SalesOrder.total_price.asc(),
    "price_desc": SalesOrder.total_price.desc(),
    "status_asc": SalesOrder.status.asc(),
    "status_desc": SalesOrder.status.desc(),
}


def days_from_order(order: SalesOrder) -> int:
    if not order.order_date:
        return 0
    return (date.today() - order.order_date.date()).days


def _apply_pricing(order: SalesOrder, promotions) -> None:
    breakdown = pricing.calculate(order.base_price, order.registration_fee, promotions)
    order.base_price = breakdown.base_price
    order.vat = breakdown.vat
    order.registration_fee = breakdown.registration_fee
    order.discount_amount = breakdown.discount_amount
    order.total_price = breakdown.total_price
    order.order_promotions = [OrderPromotion(promotion_id=p.id) for p, _ in breakdown.applied]


async def _load_available_vehicle(db: AsyncSession, vehicle_id: str, order_id: Optional[int] = None) -> Vehicle:
    vehicle = await get_or_404(db, Vehicle, vehicle_id)
    if await vehicle_service.is_sold(db, vehicle.id, exclude_order_id=order_id):
        raise HTTPException(status_code=400, detail=f"Vehicle {vehicle.vin} is already sold in another order")
    return vehicle


async def create_order(db: AsyncSession, data: SalesOrderCreate, current_user: User) -> SalesOrder:
    await get_or_404(db, Customer, data.customer_id)
    sales_person = current_user
    if data.sales_person_id and data.sales_person_id != current_user.id:
        sales_person = await get_or_404(db, User, data.sales_person_id, "Sales person")

    vehicle = None
    if data.vehicle_id:
        vehicle = await _load_available_vehicle(db, data.vehicle_id)
        if vehicle.status not in (VehicleStatus.AVAILABLE, VehicleStatus.RESERVED):
            raise HTTPException(status_code=400, detail=f"Vehicle is not available, current status: {vehicle.status}")
        product = vehicle.product
    elif data.product_id:
        product = await get_or_404(db, Product, data.product_id)
    else:
        raise HTTPException(status_code=400, detail="Either a vehicle or a product is required")

    dealer_id = data.dealer_id or (vehicle.dealer_id if vehicle else None) or sales_person.dealer_id
    if dealer_id:
        await get_or_404(db, Dealer, dealer_id)

    promotions = await promotion_service.load_promotions(db, data.promotion_ids)
    order = SalesOrder(
        order_date=data.order_date or datetime.utcnow(),
        base_price=data.base_price if data.base_price is not None else product.msrp,
        registration_fee=data.registration_fee,
        status=OrderStatus.PENDING,
        notes=data.notes,
        vehicle_id=vehicle.id if vehicle else None,
        product_id=product.id,
        dealer_id=dealer_id,
        customer_id=data.customer_id,
        sales_person_id=sales_person.id
    )
    _apply_pricing(order, promotions)
    if vehicle:
        vehicle.status = VehicleStatus.RESERVED
    db.add(order)
    await db.commit()
    logger.info(f"Created order {order.id} for customer {order.customer_id} total={order.total_price}")
    return await get_or_404(db, SalesOrder, order.id, "Sales order")


async def update_order(db: AsyncSession, order_id: int, data: SalesOrderUpdate) -> SalesOrder:
    order = await get_or_404(db, SalesOrder, order_id, "Sales order")
    if order.status in (OrderStatus.COMPLETED, OrderStatus.CANCELLED):
        raise HTTPException(status_code=400, detail=f"Cannot update order in status {order.status}")

    update_data = data.model_dump(exclude_unset=True)
    promotion_ids = update_data.pop("promotion_ids", None)
    if "customer_id" in update_data:
        await get_or_404(db, Customer, update_data["customer_id"])
    if "sales_person_id" in update_data:
        await get_or_404(db, User, update_data["sales_person_id"], "Sales person")
    reprice = promotion_ids is not None or "base_price" in update_data or "registration_fee" in update_data
    if reprice and order.payments:
        raise HTTPException(status_code=400, detail="Cannot change prices of an order that has payments")

    for field, value in update_data.items():
        setattr(order, field, value)
    if reprice:
        if promotion_ids is None:
            promotions = [op.promotion for op in order.order_promotions]
        else:
            promotions = await promotion_service.load_promotions(db, promotion_ids)
        _apply_pricing(order, promotions)

    await db.commit()
    return await get_or_404(db, SalesOrder, order_id, "Sales order")


async def delete_order(db: AsyncSession, order_id: int) -> None:
    order = await get_or_404(db, SalesOrder, order_id, "Sales order")
    if order.payments:
        raise HTTPException(status_code=400, detail="Order has payments and cannot be deleted")
    tickets = await count_where(db, SupportTicket.id, SupportTicket.sales_order_id == order_id)
    if tickets:
        raise HTTPException(status_code=400, detail=f"Order has {tickets} support tickets and cannot be deleted")

    if order.vehicle and order.vehicle.status == VehicleStatus.RESERVED:
        order.vehicle.status = VehicleStatus.AVAILABLE
    result = await db.execute(select(Quotation).where(Quotation.sales_order_id == order_id))
    for quotation in result.scalars().unique():
        quotation.sales_order_id = None
    await db.delete(order)
    await db.commit()
    logger.info(f"Deleted order {order_id}")


async def cancel_order(db: AsyncSession, order_id: int) -> SalesOrder:
    order = await get_or_404(db, SalesOrder, order_id, "Sales order")
    if not order.can_cancel:
        raise HTTPException(status_code=400, detail=f"Cannot cancel order with status: {order.status}")
    order.status = OrderStatus.CANCELLED
    if order.vehicle and order.vehicle.status == VehicleStatus.RESERVED:
        order.vehicle.status = VehicleStatus.AVAILABLE
    await db.commit()
    logger.info(f"Order {order_id} cancelled")
    return await get_or_404(db, SalesOrder, order_id, "Sales order")


async def update_status(db: AsyncSession, order_id: int, status: str) -> SalesOrder:
    status = status.upper()
    if status not in OrderStatus.ALL:
        raise HTTPException(status_code=400, detail=f"Invalid order status: {status}")
    if status == OrderStatus.CANCELLED:
        return await cancel_order(db, order_id)

    order = await get_or_404(db, SalesOrder, order_id, "Sales order")
    if order.status == OrderStatus.CANCELLED:
        raise HTTPException(status_code=400, detail="Cancelled orders cannot change status")
    if status in (OrderStatus.DELIVERED, OrderStatus.COMPLETED) and order.vehicle is None:
        raise HTTPException(status_code=400, detail=f"Order needs a vehicle before it can be {status}")

    order.status = status
    if status == OrderStatus.COMPLETED:
        order.vehicle.status = VehicleStatus.SOLD
    await db.commit()
    logger.info(f"Order {order_id} status -> {status}")
    return await get_or_404(db, SalesOrder, order_id, "Sales order")


async def assign_vehicle(db: AsyncSession, order_id: int, vehicle_id: str) -> SalesOrder:
    order = await get_or_404(db, SalesOrder, order_id, "Sales order")
    if order.status != OrderStatus.PENDING:
        raise HTTPException(
            status_code=400,
            detail=f"Vehicles can only be assigned to PENDING orders, current status: {order.status}"
        )
    if order.vehicle_id:
        raise HTTPException(
            status_code=400,
            detail=f"Order already has vehicle {order.vehicle.vin}, unassign it first"
        )

    vehicle = await get_or_404(db, Vehicle, vehicle_id)
    if vehicle.status != VehicleStatus.AVAILABLE:
        raise HTTPException(status_code=400, detail=f"Vehicle is not AVAILABLE, current status: {vehicle.status}")
    if await vehicle_service.is_sold(db, vehicle.id, exclude_order_id=order_id):
        raise HTTPException(status_code=400, detail="Vehicle is already sold in another order")

    result = await db.execute(select(Quotation).where(Quotation.sales_order_id == order_id))
    quotation = result.scalars().unique().first()
    if quotation and quotation.product_id != vehicle.product_id:
        raise HTTPException(
            status_code=400,
            detail=(
                f"Vehicle model does not match the order: expected {quotation.product.display_name}, "
                f"got {vehicle.product.display_name}"
            )
        )

    order.vehicle_id = vehicle.id
    order.product_id = vehicle.product_id
    if order.dealer_id is None:
        order.dealer_id = vehicle.dealer_id
    order.status = OrderStatus.CONFIRMED
    vehicle.status = VehicleStatus.RESERVED
    await db.commit()
    logger.info(f"Vehicle {vehicle.vin} assigned to order {order_id}")
    return await get_or_404(db, SalesOrder, order_id, "Sales order")


async def unassign_vehicle(db: AsyncSession, order_id: int) -> SalesOrder:
    order = await get_or_404(db, SalesOrder, order_id, "Sales order")
    if order.vehicle is None:
        raise HTTPException(status_code=400, detail="Order has no vehicle to unassign")
    if order.status in (OrderStatus.PAID, OrderStatus.COMPLETED):
        raise HTTPException(status_code=400, detail="Cannot unassign the vehicle of a paid or completed order")

    vehicle = order.vehicle
    order.vehicle_id = None
    order.status = OrderStatus.PENDING
    vehicle.status = VehicleStatus.AVAILABLE
    await db.commit()
    logger.info(f"Vehicle {vehicle.vin} unassigned from order {order_id}")
    return await get_or_404(db, SalesOrder, order_id, "Sales order")


async def search_orders(db: AsyncSession, page: int, size: int, customer_id: Optional[int] = None,
                        sales_person_id: Optional[int] = None, vehicle_id: Optional[str] = None,
                        dealer_id: Optional[int] = None, status: Optional[str] = None,
                        from_date: Optional[date] = None, to_date: Optional[date] = None,
                        sort_by: Optional[str] = None) -> Tuple[List[SalesOrder], int]:
    conditions = []
    if customer_id:
        conditions.append(SalesOrder.customer_id == customer_id)
    if sales_person_id:
        conditions.append(SalesOrder.sales_person_id == sales_person_id)
    if vehicle_id:
        conditions.append(SalesOrder.vehicle_id == vehicle_id)
    if dealer_id:
        conditions.append(SalesOrder.dealer_id == dealer_id)
    if status:
        conditions.append(SalesOrder.status == status.upper())
    if from_date:
        conditions.append(SalesOrder.order_date >= datetime.combine(from_date, datetime.min.time()))
    if to_date:
        conditions.append(SalesOrder.order_date < datetime.combine(to_date + timedelta(days=1), datetime.min.time()))
    order = SORT_OPTIONS.get(sort_by or "", SalesOrder.order_date.desc())
    return await paginate(db, SalesOrder, conditions, [order, SalesOrder.id.desc()], page, size)


async def list_by_customer(db: AsyncSession, customer_id: int) -> List[SalesOrder]:
    await get_or_404(db, Customer, customer_id)
    return await list_where(db, SalesOrder, SalesOrder.customer_id == customer_id,
                            order_by=[SalesOrder.order_date.desc()])


async def list_by_sales_person(db: AsyncSession, user_id: int) -> List[SalesOrder]:
    return await list_where(db, SalesOrder, SalesOrder.sales_person_id == user_id,
                            order_by=[SalesOrder.order_date.desc()])


async def list_recent(db: AsyncSession, days: int = 7) -> List[SalesOrder]:
    since = datetime.utcnow() - timedelta(days=days)
    return await list_where(db, SalesOrder, SalesOrder.order_date >= since,
                            order_by=[SalesOrder.order_date.desc()])


async def list_pending(db: AsyncSession) -> List[SalesOrder]:
    return await list_where(db, SalesOrder, SalesOrder.status == OrderStatus.PENDING,
                            order_by=[SalesOrder.order_date.asc()])


async def list_monthly_sales(db: AsyncSession, year: int, month: int) -> List[SalesOrder]:
    if not 1 <= month <= 12:
        raise HTTPException(status_code=400, detail=f"Invalid month: {month}")
    return await list_where(
        db, SalesOrder,
        extract("year", SalesOrder.order_date) == year,
        extract("month", SalesOrder.order_date) == month,
        SalesOrder.status != OrderStatus.CANCELLED,
        order_by=[SalesOrder.order_date.asc()]
    )
