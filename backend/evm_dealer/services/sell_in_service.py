"""
Sell-in requests: dealers ordering stock from the brand
PENDING -> APPROVED -> IN_TRANSIT -> DELIVERED, or PENDING -> REJECTED.
Delivery books the delivered units into the dealer's inventory.
"""

from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import List, Optional, Tuple

from fastapi import HTTPException
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from evm_dealer.core.logging_config import get_logger
from evm_dealer.models import (
    Dealer, DistributionOrder, Product, SellInRequest, SellInRequestDetail, SellInStatus, User
)
from evm_dealer.schemas.sell_in import SellInItem, SellInRequestCreate, SellInRequestUpdate
from evm_dealer.services import inventory_service
from evm_dealer.services.common import get_or_404, like, list_where, money, paginate

logger = get_logger(__name__)

SORT_OPTIONS = {
    "date_asc": SellInRequest.request_date.asc(),
    "date_desc": SellInRequest.request_date.desc(),
    "delivery_asc": SellInRequest.expected_delivery_date.asc(),
    "delivery_desc": SellInRequest.expected_delivery_date.desc(),
    "status_asc": SellInRequest.status.asc(),
    "status_desc": SellInRequest.status.desc(),
}


def total_amount(request: SellInRequest) -> Decimal:
    """Sum of MSRP x requested quantity"""
    return money(sum(
        ((d.product.msrp or Decimal("0")) * (d.requested_quantity or 0) for d in request.details if d.product),
        Decimal("0")
    ))


async def generate_request_number(db: AsyncSession, year: Optional[int] = None) -> str:
    prefix = f"SIR-{year or date.today().year}-"
    result = await db.execute(select(func.count(SellInRequest.id)))
    seq = (result.scalar() or 0) + 1
    while True:
        number = f"{prefix}{seq:05d}"
        taken = await db.execute(select(SellInRequest.id).where(SellInRequest.request_number == number))
        if not taken.first():
            return number
        seq += 1


async def _build_details(db: AsyncSession, items: List[SellInItem]) -> List[SellInRequestDetail]:
    details = []
    for item in items:
        await get_or_404(db, Product, item.product_id)
        details.append(SellInRequestDetail(
            product_id=item.product_id,
            color=item.color,
            requested_quantity=item.quantity,
            approved_quantity=0,
            notes=item.notes
        ))
    return details


def _require_status(request: SellInRequest, status: str, action: str) -> None:
    if request.status != status:
        raise HTTPException(
            status_code=400,
            detail=f"Only {status} requests can be {action}, current status: {request.status}"
        )


async def create_request(db: AsyncSession, data: SellInRequestCreate, current_user: User) -> SellInRequest:
    dealer = await get_or_404(db, Dealer, data.dealer_id)
    request_date = data.request_date or date.today()
    if data.expected_delivery_date and data.expected_delivery_date < request_date:
        raise HTTPException(status_code=400, detail="Expected delivery date must be on or after the request date")

    request = SellInRequest(
        request_number=await generate_request_number(db, request_date.year),
        request_date=request_date,
        expected_delivery_date=data.expected_delivery_date,
        status=SellInStatus.PENDING,
        notes=data.notes,
        delivery_address=data.delivery_address or dealer.address,
        dealer_id=dealer.id,
        requested_by_id=current_user.id,
        details=await _build_details(db, data.items)
    )
    db.add(request)
    await db.commit()
    logger.info(f"Sell-in request {request.request_number} created for dealer {dealer.dealer_name}")
    return await get_or_404(db, SellInRequest, request.id, "Sell-in request")


async def update_request(db: AsyncSession, request_id: int, data: SellInRequestUpdate) -> SellInRequest:
    request = await get_or_404(db, SellInRequest, request_id, "Sell-in request")
    _require_status(request, SellInStatus.PENDING, "updated")
    update_data = data.model_dump(exclude_unset=True, exclude={"items"})
    for field, value in update_data.items():
        setattr(request, field, value)
    if data.items is not None:
        request.details = await _build_details(db, data.items)
    await db.commit()
    return await get_or_404(db, SellInRequest, request_id, "Sell-in request")


async def delete_request(db: AsyncSession, request_id: int) -> None:
    request = await get_or_404(db, SellInRequest, request_id, "Sell-in request")
    _require_status(request, SellInStatus.PENDING, "deleted")
    await db.delete(request)
    await db.commit()
    logger.info(f"Sell-in request {request.request_number} deleted")


async def approve_request(db: AsyncSession, request_id: int, notes: Optional[str], approver: User) -> SellInRequest:
    request = await get_or_404(db, SellInRequest, request_id, "Sell-in request")
    _require_status(request, SellInStatus.PENDING, "approved")
    request.status = SellInStatus.APPROVED
    request.approval_notes = notes
    request.approved_by_id = approver.id
    request.approved_at = datetime.utcnow()
    for detail in request.details:
        detail.approved_quantity = detail.requested_quantity
    await db.commit()
    logger.info(f"Sell-in request {request.request_number} approved by {approver.username}")
    return await get_or_404(db, SellInRequest, request_id, "Sell-in request")


async def reject_request(db: AsyncSession, request_id: int, notes: Optional[str], approver: User) -> SellInRequest:
    request = await get_or_404(db, SellInRequest, request_id, "Sell-in request")
    _require_status(request, SellInStatus.PENDING, "rejected")
    request.status = SellInStatus.REJECTED
    request.approval_notes = notes
    request.approved_by_id = approver.id
    request.approved_at = datetime.utcnow()
    await db.commit()
    logger.info(f"Sell-in request {request.request_number} rejected by {approver.username}")
    return await get_or_404(db, SellInRequest, request_id, "Sell-in request")


async def mark_in_transit(db: AsyncSession, request_id: int, tracking_number: Optional[str] = None) -> SellInRequest:
    request = await get_or_404(db, SellInRequest, request_id, "Sell-in request")
    _require_status(request, SellInStatus.APPROVED, "shipped")
    request.status = SellInStatus.IN_TRANSIT
    db.add(DistributionOrder(
        request_id=request.id,
        dealer_id=request.dealer_id,
        brand_id=request.dealer.brand_id if request.dealer else None,
        approver_id=request.approved_by_id,
        shipment_date=datetime.utcnow(),
        status=SellInStatus.IN_TRANSIT,
        total_quantity=sum(d.approved_quantity or 0 for d in request.details),
        tracking_number=tracking_number
    ))
    await db.commit()
    logger.info(f"Sell-in request {request.request_number} in transit")
    return await get_or_404(db, SellInRequest, request_id, "Sell-in request")


async def mark_delivered(db: AsyncSession, request_id: int) -> SellInRequest:
    request = await get_or_404(db, SellInRequest, request_id, "Sell-in request")
    _require_status(request, SellInStatus.IN_TRANSIT, "delivered")
    request.status = SellInStatus.DELIVERED
    request.actual_delivery_date = date.today()
    for detail in request.details:
        detail.delivered_quantity = detail.approved_quantity or 0
        if detail.delivered_quantity > 0:
            await inventory_service.receive_stock(
                db, detail.product_id, request.dealer_id, detail.delivered_quantity
            )

    result = await db.execute(
        select(DistributionOrder).where(
            DistributionOrder.request_id == request.id,
            DistributionOrder.status == SellInStatus.IN_TRANSIT
        )
    )
    for shipment in result.scalars():
        shipment.status = SellInStatus.DELIVERED
        shipment.delivery_date = datetime.utcnow()

    await db.commit()
    logger.info(f"Sell-in request {request.request_number} delivered to dealer {request.dealer_id}")
    return await get_or_404(db, SellInRequest, request_id, "Sell-in request")


async def get_by_number(db: AsyncSession, number: str) -> SellInRequest:
    result = await db.execute(select(SellInRequest).where(SellInRequest.request_number == number))
    request = result.scalars().unique().first()
    if request is None:
        raise HTTPException(status_code=404, detail=f"Sell-in request not found with number: {number}")
    return request


async def search_requests(db: AsyncSession, page: int, size: int, dealer_id: Optional[int] = None,
                          status: Optional[str] = None, keyword: Optional[str] = None,
                          from_date: Optional[date] = None, to_date: Optional[date] = None,
                          sort_by: Optional[str] = None) -> Tuple[List[SellInRequest], int]:
    conditions = []
    if dealer_id:
        conditions.append(SellInRequest.dealer_id == dealer_id)
    if status:
        conditions.append(SellInRequest.status == status.upper())
    if keyword:
        conditions.append(SellInRequest.request_number.ilike(like(keyword)))
    if from_date:
        conditions.append(SellInRequest.request_date >= from_date)
    if to_date:
        conditions.append(SellInRequest.request_date <= to_date)
    order = SORT_OPTIONS.get(sort_by or "", SellInRequest.request_date.desc())
    return await paginate(db, SellInRequest, conditions, [order, SellInRequest.id.desc()], page, size)


async def list_pending(db: AsyncSession) -> List[SellInRequest]:
    return await list_where(db, SellInRequest, SellInRequest.status == SellInStatus.PENDING,
                            order_by=[SellInRequest.request_date.asc()])


async def list_by_dealer(db: AsyncSession, dealer_id: int) -> List[SellInRequest]:
    await get_or_404(db, Dealer, dealer_id)
    return await list_where(db, SellInRequest, SellInRequest.dealer_id == dealer_id,
                            order_by=[SellInRequest.request_date.desc()])


async def list_upcoming_deliveries(db: AsyncSession, days: int = 7) -> List[SellInRequest]:
    """Approved or shipped requests expected within the next `days` days"""
    today = date.today()
    return await list_where(
        db, SellInRequest,
        SellInRequest.status.in_((SellInStatus.APPROVED, SellInStatus.IN_TRANSIT)),
        SellInRequest.expected_delivery_date >= today,
        SellInRequest.expected_delivery_date <= today + timedelta(days=days),
        order_by=[SellInRequest.expected_delivery_date.asc()]
    )
