"""Quotation API"""

from datetime import date
from typing import Any, List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from evm_dealer.api.api_v1.endpoints.promotions import build_applied_promotion
from evm_dealer.api.api_v1.endpoints.sales_orders import build_order_response
from evm_dealer.core.deps import get_db, get_current_user, require_roles
from evm_dealer.core.permissions import SALES_ROLES
from evm_dealer.models.quotation import Quotation
from evm_dealer.models.user import User
from evm_dealer.schemas.common import MessageResponse
from evm_dealer.schemas.quotation import (
    QuotationCreate, QuotationUpdate, QuotationResponse, QuotationListResponse
)
from evm_dealer.schemas.sales_order import SalesOrderResponse
from evm_dealer.services import quotation_service
from evm_dealer.services.common import get_or_404, total_pages

router = APIRouter(dependencies=[Depends(require_roles(*SALES_ROLES))])


def build_quotation_response(quotation: Quotation) -> QuotationResponse:
    return QuotationResponse(
        id=quotation.id,
        quotation_number=quotation.quotation_number,
        quotation_date=quotation.quotation_date,
        valid_until=quotation.valid_until,
        status=quotation.status,
        base_price=float(quotation.base_price or 0),
        vat=float(quotation.vat or 0),
        registration_fee=float(quotation.registration_fee or 0),
        discount_amount=float(quotation.discount_amount or 0),
        total_price=float(quotation.total_price or 0),
        notes=quotation.notes,
        terms_and_conditions=quotation.terms_and_conditions,
        product_id=quotation.product_id,
        product_name=quotation.product.display_name if quotation.product else None,
        customer_id=quotation.customer_id,
        customer_name=quotation.customer.full_name if quotation.customer else None,
        sales_person_id=quotation.sales_person_id,
        sales_person_name=quotation.sales_person.full_name if quotation.sales_person else None,
        dealer_id=quotation.dealer_id,
        dealer_name=quotation.dealer.dealer_name if quotation.dealer else None,
        sales_order_id=quotation.sales_order_id,
        promotions=[
            build_applied_promotion(qp.promotion, qp.applied_amount)
            for qp in quotation.quotation_promotions
        ],
        is_expired=quotation.is_expired,
        days_until_expiry=quotation.days_until_expiry,
        can_convert_to_order=quotation.can_convert_to_order,
        created_at=quotation.created_at
    )


@router.get("/", response_model=QuotationListResponse)
async def list_quotations(
    *,
    db: AsyncSession = Depends(get_db),
    page: int = Query(0, ge=0),
    size: int = Query(20, ge=1, le=100),
    keyword: Optional[str] = Query(None, description="Quotation number or customer name"),
    status: Optional[str] = Query(None),
    customer_id: Optional[int] = Query(None),
    sales_person_id: Optional[int] = Query(None),
    dealer_id: Optional[int] = Query(None),
    product_id: Optional[int] = Query(None),
    from_date: Optional[date] = Query(None),
    to_date: Optional[date] = Query(None),
    sort_by: Optional[str] = Query(None, description="date_asc, date_desc, price_asc, price_desc, valid_until_asc, valid_until_desc")
) -> Any:
    quotations, total = await quotation_service.search_quotations(
        db, page, size, keyword=keyword, status=status, customer_id=customer_id,
        sales_person_id=sales_person_id, dealer_id=dealer_id, product_id=product_id,
        from_date=from_date, to_date=to_date, sort_by=sort_by
    )
    return QuotationListResponse(
        data=[build_quotation_response(q) for q in quotations],
        total=total,
        page=page,
        size=size,
        total_pages=total_pages(total, size)
    )


@router.get("/expired", response_model=List[QuotationResponse])
async def list_expired_quotations(db: AsyncSession = Depends(get_db)) -> Any:
    return [build_quotation_response(q) for q in await quotation_service.list_expired(db)]


@router.get("/customer/{customer_id}", response_model=List[QuotationResponse])
async def list_customer_quotations(customer_id: int, db: AsyncSession = Depends(get_db)) -> Any:
    return [build_quotation_response(q) for q in await quotation_service.list_by_customer(db, customer_id)]


@router.get("/sales-person/{user_id}", response_model=List[QuotationResponse])
async def list_sales_person_quotations(user_id: int, db: AsyncSession = Depends(get_db)) -> Any:
    return [build_quotation_response(q) for q in await quotation_service.list_by_sales_person(db, user_id)]


@router.get("/number/{quotation_number}", response_model=QuotationResponse)
async def get_quotation_by_number(quotation_number: str, db: AsyncSession = Depends(get_db)) -> Any:
    return build_quotation_response(await quotation_service.get_by_number(db, quotation_number))


@router.get("/{quotation_id}", response_model=QuotationResponse)
async def get_quotation(quotation_id: int, db: AsyncSession = Depends(get_db)) -> Any:
    return build_quotation_response(await get_or_404(db, Quotation, quotation_id))


@router.post("/", response_model=QuotationResponse, status_code=201)
async def create_quotation(
    *,
    db: AsyncSession = Depends(get_db),
    quotation_in: QuotationCreate,
    current_user: User = Depends(get_current_user)
) -> Any:
    return build_quotation_response(await quotation_service.create_quotation(db, quotation_in, current_user))


@router.put("/{quotation_id}", response_model=QuotationResponse)
async def update_quotation(*, db: AsyncSession = Depends(get_db), quotation_id: int, quotation_in: QuotationUpdate) -> Any:
    return build_quotation_response(await quotation_service.update_quotation(db, quotation_id, quotation_in))


@router.delete("/{quotation_id}", response_model=MessageResponse)
async def delete_quotation(quotation_id: int, db: AsyncSession = Depends(get_db)) -> Any:
    await quotation_service.delete_quotation(db, quotation_id)
    return MessageResponse(message="Quotation deleted")


@router.post("/{quotation_id}/recalculate", response_model=QuotationResponse)
async def recalculate_quotation(quotation_id: int, db: AsyncSession = Depends(get_db)) -> Any:
    return build_quotation_response(await quotation_service.recalculate(db, quotation_id))


@router.post("/{quotation_id}/send", response_model=QuotationResponse)
async def send_quotation(quotation_id: int, db: AsyncSession = Depends(get_db)) -> Any:
    return build_quotation_response(await quotation_service.send_quotation(db, quotation_id))


@router.post("/{quotation_id}/accept", response_model=QuotationResponse)
async def accept_quotation(quotation_id: int, db: AsyncSession = Depends(get_db)) -> Any:
    return build_quotation_response(await quotation_service.accept_quotation(db, quotation_id))


@router.post("/{quotation_id}/reject", response_model=QuotationResponse)
async def reject_quotation(quotation_id: int, db: AsyncSession = Depends(get_db)) -> Any:
    return build_quotation_response(await quotation_service.reject_quotation(db, quotation_id))


@router.post("/{quotation_id}/convert", response_model=SalesOrderResponse, status_code=201)
async def convert_quotation(quotation_id: int, db: AsyncSession = Depends(get_db)) -> Any:
    """Create a PENDING sales order from an accepted quotation"""
    return build_order_response(await quotation_service.convert_to_order(db, quotation_id))


@router.post("/expire", response_model=MessageResponse)
async def expire_quotations(db: AsyncSession = Depends(get_db)) -> Any:
    count = await quotation_service.auto_expire(db)
    return MessageResponse(message=f"{count} quotations expired")
