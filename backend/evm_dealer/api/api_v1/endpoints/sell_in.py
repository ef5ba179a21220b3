"""Sell-in request API"""

from datetime import date
from typing import Any, List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from evm_dealer.core.deps import get_db, require_roles
from evm_dealer.core.permissions import SELL_IN_READ, SELL_IN_REQUEST, SELL_IN_APPROVE, SELL_IN_SHIP, SELL_IN_RECEIVE
from evm_dealer.models.sell_in import SellInRequest
from evm_dealer.models.user import User
from evm_dealer.schemas.common import MessageResponse
from evm_dealer.schemas.sell_in import (
    SellInRequestCreate, SellInRequestUpdate, SellInRequestResponse, SellInRequestListResponse,
    SellInDetailResponse, SellInDecision, SellInShipment
)
from evm_dealer.services import sell_in_service
from evm_dealer.services.common import get_or_404, total_pages

router = APIRouter()

sell_in_read = require_roles(*SELL_IN_READ)
sell_in_request = require_roles(*SELL_IN_REQUEST)
sell_in_approve = require_roles(*SELL_IN_APPROVE)
sell_in_ship = require_roles(*SELL_IN_SHIP)
sell_in_receive = require_roles(*SELL_IN_RECEIVE)


def build_sell_in_response(request: SellInRequest) -> SellInRequestResponse:
    return SellInRequestResponse(
        id=request.id,
        request_number=request.request_number,
        request_date=request.request_date,
        expected_delivery_date=request.expected_delivery_date,
        actual_delivery_date=request.actual_delivery_date,
        status=request.status,
        notes=request.notes,
        approval_notes=request.approval_notes,
        delivery_address=request.delivery_address,
        dealer_id=request.dealer_id,
        dealer_name=request.dealer.dealer_name if request.dealer else None,
        requested_by_id=request.requested_by_id,
        requested_by_name=request.requested_by.full_name if request.requested_by else None,
        approved_by_id=request.approved_by_id,
        approved_by_name=request.approved_by.full_name if request.approved_by else None,
        approved_at=request.approved_at,
        details=[
            SellInDetailResponse(
                id=d.id,
                product_id=d.product_id,
                product_name=d.product.display_name if d.product else None,
                color=d.color,
                requested_quantity=d.requested_quantity,
                approved_quantity=d.approved_quantity,
                delivered_quantity=d.delivered_quantity,
                unit_price=float(d.product.msrp or 0) if d.product else 0.0,
                notes=d.notes
            )
            for d in request.details
        ],
        can_approve=request.can_approve,
        can_reject=request.can_reject,
        can_cancel=request.can_cancel,
        days_until_expected_delivery=request.days_until_expected_delivery,
        total_quantity=request.total_quantity,
        total_amount=float(sell_in_service.total_amount(request)),
        created_at=request.created_at
    )


@router.get("/", response_model=SellInRequestListResponse, dependencies=[Depends(sell_in_read)])
async def list_sell_in_requests(
    *,
    db: AsyncSession = Depends(get_db),
    page: int = Query(0, ge=0),
    size: int = Query(20, ge=1, le=100),
    dealer_id: Optional[int] = Query(None),
    status: Optional[str] = Query(None),
    keyword: Optional[str] = Query(None, description="Request number"),
    from_date: Optional[date] = Query(None),
    to_date: Optional[date] = Query(None),
    sort_by: Optional[str] = Query(None, description="date_asc, date_desc, delivery_asc, delivery_desc, status_asc, status_desc")
) -> Any:
    requests, total = await sell_in_service.search_requests(
        db, page, size, dealer_id=dealer_id, status=status, keyword=keyword,
        from_date=from_date, to_date=to_date, sort_by=sort_by
    )
    return SellInRequestListResponse(
        data=[build_sell_in_response(r) for r in requests],
        total=total,
        page=page,
        size=size,
        total_pages=total_pages(total, size)
    )


@router.get("/pending", response_model=List[SellInRequestResponse], dependencies=[Depends(sell_in_read)])
async def list_pending_requests(db: AsyncSession = Depends(get_db)) -> Any:
    return [build_sell_in_response(r) for r in await sell_in_service.list_pending(db)]


@router.get("/upcoming-deliveries", response_model=List[SellInRequestResponse], dependencies=[Depends(sell_in_read)])
async def list_upcoming_deliveries(db: AsyncSession = Depends(get_db)) -> Any:
    """Deliveries expected within 7 days"""
    return [build_sell_in_response(r) for r in await sell_in_service.list_upcoming_deliveries(db)]


@router.get("/dealer/{dealer_id}", response_model=List[SellInRequestResponse], dependencies=[Depends(sell_in_read)])
async def list_dealer_requests(dealer_id: int, db: AsyncSession = Depends(get_db)) -> Any:
    return [build_sell_in_response(r) for r in await sell_in_service.list_by_dealer(db, dealer_id)]


@router.get("/number/{request_number}", response_model=SellInRequestResponse, dependencies=[Depends(sell_in_read)])
async def get_request_by_number(request_number: str, db: AsyncSession = Depends(get_db)) -> Any:
    return build_sell_in_response(await sell_in_service.get_by_number(db, request_number))


@router.get("/{request_id}", response_model=SellInRequestResponse, dependencies=[Depends(sell_in_read)])
async def get_sell_in_request(request_id: int, db: AsyncSession = Depends(get_db)) -> Any:
    return build_sell_in_response(await get_or_404(db, SellInRequest, request_id, "Sell-in request"))


@router.post("/", response_model=SellInRequestResponse, status_code=201)
async def create_sell_in_request(
    *,
    db: AsyncSession = Depends(get_db),
    request_in: SellInRequestCreate,
    current_user: User = Depends(sell_in_request)
) -> Any:
    return build_sell_in_response(await sell_in_service.create_request(db, request_in, current_user))


@router.put("/{request_id}", response_model=SellInRequestResponse, dependencies=[Depends(sell_in_request)])
async def update_sell_in_request(*, db: AsyncSession = Depends(get_db), request_id: int, request_in: SellInRequestUpdate) -> Any:
    return build_sell_in_response(await sell_in_service.update_request(db, request_id, request_in))


@router.delete("/{request_id}", response_model=MessageResponse, dependencies=[Depends(sell_in_request)])
async def delete_sell_in_request(request_id: int, db: AsyncSession = Depends(get_db)) -> Any:
    await sell_in_service.delete_request(db, request_id)
    return MessageResponse(message="Sell-in request deleted")


@router.post("/{request_id}/approve", response_model=SellInRequestResponse)
async def approve_sell_in_request(
    *,
    db: AsyncSession = Depends(get_db),
    request_id: int,
    decision: Optional[SellInDecision] = None,
    current_user: User = Depends(sell_in_approve)
) -> Any:
    return build_sell_in_response(await sell_in_service.approve_request(db, request_id, decision.notes if decision else None, current_user))


@router.post("/{request_id}/reject", response_model=SellInRequestResponse)
async def reject_sell_in_request(
    *,
    db: AsyncSession = Depends(get_db),
    request_id: int,
    decision: Optional[SellInDecision] = None,
    current_user: User = Depends(sell_in_approve)
) -> Any:
    return build_sell_in_response(await sell_in_service.reject_request(db, request_id, decision.notes if decision else None, current_user))


@router.post("/{request_id}/in-transit", response_model=SellInRequestResponse, dependencies=[Depends(sell_in_ship)])
async def mark_in_transit(*, db: AsyncSession = Depends(get_db), request_id: int, shipment: Optional[SellInShipment] = None) -> Any:
    return build_sell_in_response(await sell_in_service.mark_in_transit(db, request_id, shipment.tracking_number if shipment else None))


@router.post("/{request_id}/delivered", response_model=SellInRequestResponse, dependencies=[Depends(sell_in_receive)])
async def mark_delivered(request_id: int, db: AsyncSession = Depends(get_db)) -> Any:
    return build_sell_in_response(await sell_in_service.mark_delivered(db, request_id))
