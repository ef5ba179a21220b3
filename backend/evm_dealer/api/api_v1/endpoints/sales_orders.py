"""Sales order API"""

from datetime import date
from typing import Any, List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from evm_dealer.api.api_v1.endpoints.promotions import build_applied_promotion
from evm_dealer.core.deps import get_db, get_current_user, require_roles
from evm_dealer.core.permissions import SALES_ROLES
from evm_dealer.models.sales_order import SalesOrder
from evm_dealer.models.user import User
from evm_dealer.schemas.common import MessageResponse
from evm_dealer.schemas.sales_order import (
    SalesOrderCreate, SalesOrderUpdate, SalesOrderResponse, SalesOrderListResponse,
    OrderStatusUpdate, AssignVehicle
)
from evm_dealer.services import pricing, sales_order_service
from evm_dealer.services.common import get_or_404, total_pages

router = APIRouter(dependencies=[Depends(require_roles(*SALES_ROLES))])


def build_order_response(order: SalesOrder) -> SalesOrderResponse:
    return SalesOrderResponse(
        id=order.id,
        order_date=order.order_date,
        status=order.status,
        base_price=float(order.base_price or 0),
        vat=float(order.vat or 0),
        registration_fee=float(order.registration_fee or 0),
        discount_amount=float(order.discount_amount or 0),
        total_price=float(order.total_price or 0),
        notes=order.notes,
        vehicle_id=order.vehicle_id,
        vehicle_vin=order.vehicle.vin if order.vehicle else None,
        product_id=order.product_id,
        product_name=order.product.display_name if order.product else None,
        dealer_id=order.dealer_id,
        dealer_name=order.dealer.dealer_name if order.dealer else None,
        customer_id=order.customer_id,
        customer_name=order.customer.full_name if order.customer else None,
        sales_person_id=order.sales_person_id,
        sales_person_name=order.sales_person.full_name if order.sales_person else None,
        promotions=[
            build_applied_promotion(op.promotion, pricing.promotion_discount(op.promotion, order.base_price))
            for op in order.order_promotions
        ],
        paid_amount=float(order.paid_amount),
        remaining_amount=float(order.remaining_amount),
        is_paid=order.is_paid,
        can_cancel=order.can_cancel,
        days_from_order=sales_order_service.days_from_order(order)
    )


@router.get("/", response_model=SalesOrderListResponse)
async def list_orders(
    *,
    db: AsyncSession = Depends(get_db),
    page: int = Query(0, ge=0),
    size: int = Query(20, ge=1, le=100),
    customer_id: Optional[int] = Query(None),
    sales_person_id: Optional[int] = Query(None),
    vehicle_id: Optional[str] = Query(None),
    dealer_id: Optional[int] = Query(None),
    status: Optional[str] = Query(None),
    from_date: Optional[date] = Query(None),
    to_date: Optional[date] = Query(None),
    sort_by: Optional[str] = Query(None, description="date_asc, date_desc, price_asc, price_desc, status_asc, status_desc")
) -> Any:
    orders, total = await sales_order_service.search_orders(
        db, page, size, customer_id=customer_id, sales_person_id=sales_person_id,
        vehicle_id=vehicle_id, dealer_id=dealer_id, status=status,
        from_date=from_date, to_date=to_date, sort_by=sort_by
    )
    return SalesOrderListResponse(
        data=[build_order_response(o) for o in orders],
        total=total,
        page=page,
        size=size,
        total_pages=total_pages(total, size)
    )


@router.get("/recent", response_model=List[SalesOrderResponse])
async def list_recent_orders(db: AsyncSession = Depends(get_db)) -> Any:
    """Orders from the last 7 days"""
    return [build_order_response(o) for o in await sales_order_service.list_recent(db)]


@router.get("/pending", response_model=List[SalesOrderResponse])
async def list_pending_orders(db: AsyncSession = Depends(get_db)) -> Any:
    return [build_order_response(o) for o in await sales_order_service.list_pending(db)]


@router.get("/monthly", response_model=List[SalesOrderResponse])
async def list_monthly_sales(
    year: int = Query(..., ge=2000),
    month: int = Query(..., ge=1, le=12),
    db: AsyncSession = Depends(get_db)
) -> Any:
    return [build_order_response(o) for o in await sales_order_service.list_monthly_sales(db, year, month)]


@router.get("/customer/{customer_id}", response_model=List[SalesOrderResponse])
async def list_customer_orders(customer_id: int, db: AsyncSession = Depends(get_db)) -> Any:
    return [build_order_response(o) for o in await sales_order_service.list_by_customer(db, customer_id)]


@router.get("/sales-person/{user_id}", response_model=List[SalesOrderResponse])
async def list_sales_person_orders(user_id: int, db: AsyncSession = Depends(get_db)) -> Any:
    return [build_order_response(o) for o in await sales_order_service.list_by_sales_person(db, user_id)]


@router.get("/{order_id}", response_model=SalesOrderResponse)
async def get_order(order_id: int, db: AsyncSession = Depends(get_db)) -> Any:
    return build_order_response(await get_or_404(db, SalesOrder, order_id, "Sales order"))


@router.post("/", response_model=SalesOrderResponse, status_code=201)
async def create_order(
    *,
    db: AsyncSession = Depends(get_db),
    order_in: SalesOrderCreate,
    current_user: User = Depends(get_current_user)
) -> Any:
    return build_order_response(await sales_order_service.create_order(db, order_in, current_user))


@router.put("/{order_id}", response_model=SalesOrderResponse)
async def update_order(*, db: AsyncSession = Depends(get_db), order_id: int, order_in: SalesOrderUpdate) -> Any:
    return build_order_response(await sales_order_service.update_order(db, order_id, order_in))


@router.delete("/{order_id}", response_model=MessageResponse)
async def delete_order(order_id: int, db: AsyncSession = Depends(get_db)) -> Any:
    await sales_order_service.delete_order(db, order_id)
    return MessageResponse(message="Order deleted")


@router.patch("/{order_id}/status", response_model=SalesOrderResponse)
async def update_order_status(*, db: AsyncSession = Depends(get_db), order_id: int, status_in: OrderStatusUpdate) -> Any:
    return build_order_response(await sales_order_service.update_status(db, order_id, status_in.status))


@router.post("/{order_id}/cancel", response_model=SalesOrderResponse)
async def cancel_order(order_id: int, db: AsyncSession = Depends(get_db)) -> Any:
    return build_order_response(await sales_order_service.cancel_order(db, order_id))


@router.post("/{order_id}/assign-vehicle", response_model=SalesOrderResponse)
async def assign_vehicle(*, db: AsyncSession = Depends(get_db), order_id: int, assign_in: AssignVehicle) -> Any:
    return build_order_response(await sales_order_service.assign_vehicle(db, order_id, assign_in.vehicle_id))


@router.post("/{order_id}/unassign-vehicle", response_model=SalesOrderResponse)
async def unassign_vehicle(order_id: int, db: AsyncSession = Depends(get_db)) -> Any:
    return build_order_response(await sales_order_service.unassign_vehicle(db, order_id))
