"""Promotion API"""

from datetime import date
from typing import Any, List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from evm_dealer.core.deps import get_db, get_current_user, require_roles
from evm_dealer.core.permissions import PROMOTION_WRITE
from evm_dealer.models.promotion import Promotion
from evm_dealer.schemas.common import MessageResponse
from evm_dealer.schemas.promotion import (
    AppliedPromotion, PromotionCreate, PromotionUpdate, PromotionResponse, PromotionListResponse
)
from evm_dealer.services import promotion_service
from evm_dealer.services.common import get_or_404, total_pages

router = APIRouter()

promotion_write = require_roles(*PROMOTION_WRITE)


async def build_promotion_response(db: AsyncSession, promotion: Promotion) -> PromotionResponse:
    return PromotionResponse(
        id=promotion.id,
        promotion_code=promotion.promotion_code,
        promotion_name=promotion.promotion_name,
        description=promotion.description,
        discount_type=promotion.discount_type,
        discount_value=float(promotion.discount_value or 0),
        start_date=promotion.start_date,
        end_date=promotion.end_date,
        conditions=promotion.conditions,
        status=promotion_service.promotion_status(promotion),
        days_remaining=promotion_service.days_remaining(promotion),
        progress_percentage=promotion_service.progress_percentage(promotion),
        total_usages=await promotion_service.total_usages(db, promotion.id),
        discount_display=promotion_service.discount_display(promotion),
        created_at=promotion.created_at
    )


@router.get("/", response_model=PromotionListResponse, dependencies=[Depends(get_current_user)])
async def list_promotions(
    *,
    db: AsyncSession = Depends(get_db),
    page: int = Query(0, ge=0),
    size: int = Query(20, ge=1, le=100),
    status: Optional[str] = Query(None, description="ACTIVE, UPCOMING or EXPIRED"),
    keyword: Optional[str] = Query(None),
    discount_type: Optional[str] = Query(None),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    sort_by: Optional[str] = Query(None, description="code_asc, code_desc, start_date_asc, start_date_desc")
) -> Any:
    promotions, total = await promotion_service.search_promotions(
        db, page, size, status=status, keyword=keyword, discount_type=discount_type,
        start_date=start_date, end_date=end_date, sort_by=sort_by
    )
    return PromotionListResponse(
        data=[await build_promotion_response(db, p) for p in promotions],
        total=total,
        page=page,
        size=size,
        total_pages=total_pages(total, size)
    )


@router.get("/active", response_model=List[PromotionResponse], dependencies=[Depends(get_current_user)])
async def list_active_promotions(db: AsyncSession = Depends(get_db)) -> Any:
    return [await build_promotion_response(db, p) for p in await promotion_service.list_active(db)]


@router.get("/{promotion_id}", response_model=PromotionResponse, dependencies=[Depends(get_current_user)])
async def get_promotion(promotion_id: int, db: AsyncSession = Depends(get_db)) -> Any:
    return await build_promotion_response(db, await get_or_404(db, Promotion, promotion_id))


@router.post("/", response_model=PromotionResponse, status_code=201, dependencies=[Depends(promotion_write)])
async def create_promotion(*, db: AsyncSession = Depends(get_db), promotion_in: PromotionCreate) -> Any:
    return await build_promotion_response(db, await promotion_service.create_promotion(db, promotion_in))


@router.put("/{promotion_id}", response_model=PromotionResponse, dependencies=[Depends(promotion_write)])
async def update_promotion(*, db: AsyncSession = Depends(get_db), promotion_id: int, promotion_in: PromotionUpdate) -> Any:
    return await build_promotion_response(db, await promotion_service.update_promotion(db, promotion_id, promotion_in))


@router.delete("/{promotion_id}", response_model=MessageResponse, dependencies=[Depends(promotion_write)])
async def delete_promotion(promotion_id: int, db: AsyncSession = Depends(get_db)) -> Any:
    await promotion_service.delete_promotion(db, promotion_id)
    return MessageResponse(message="Promotion deleted")


def build_applied_promotion(promotion: Promotion, applied_amount) -> AppliedPromotion:
    return AppliedPromotion(
        promotion_id=promotion.id,
        promotion_code=promotion.promotion_code,
        promotion_name=promotion.promotion_name,
        discount_type=promotion.discount_type,
        discount_value=float(promotion.discount_value or 0),
        applied_amount=float(applied_amount or 0)
    )
