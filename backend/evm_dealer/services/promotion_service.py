"""Promotions"""

from datetime import date
from typing import List, Optional, Tuple

from fastapi import HTTPException
from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession

from evm_dealer.core.logging_config import get_logger
from evm_dealer.models import OrderPromotion, Promotion, QuotationPromotion, DiscountType
from evm_dealer.schemas.promotion import PromotionCreate, PromotionUpdate
from evm_dealer.services.common import count_where, get_or_404, like, list_where, money, paginate

logger = get_logger(__name__)

SORT_OPTIONS = {
    "code_asc": Promotion.promotion_code.asc(),
    "code_desc": Promotion.promotion_code.desc(),
    "start_date_asc": Promotion.start_date.asc(),
    "start_date_desc": Promotion.start_date.desc(),
}


def promotion_status(promotion: Promotion, today: Optional[date] = None) -> str:
    today = today or date.today()
    if today < promotion.start_date:
        return "UPCOMING"
    if today > promotion.end_date:
        return "EXPIRED"
    return "ACTIVE"


def days_remaining(promotion: Promotion, today: Optional[date] = None) -> int:
    today = today or date.today()
    return 0 if today > promotion.end_date else (promotion.end_date - today).days


def progress_percentage(promotion: Promotion, today: Optional[date] = None) -> int:
    today = today or date.today()
    if today < promotion.start_date:
        return 0
    if today > promotion.end_date:
        return 100
    total_days = (promotion.end_date - promotion.start_date).days
    if total_days == 0:
        return 100
    elapsed = (today - promotion.start_date).days
    return elapsed * 100 // total_days


def discount_display(promotion: Promotion) -> str:
    value = money(promotion.discount_value)
    if promotion.discount_type == DiscountType.PERCENTAGE:
        return f"{value.normalize():f}%"
    return f"{value:,.2f}"


async def total_usages(db: AsyncSession, promotion_id: int) -> int:
    return await count_where(db, OrderPromotion.id, OrderPromotion.promotion_id == promotion_id)


def _validate(data: PromotionCreate) -> None:
    if data.end_date < data.start_date:
        raise HTTPException(status_code=400, detail="End date must be on or after start date")
    if data.discount_type == DiscountType.PERCENTAGE and data.discount_value > 100:
        raise HTTPException(status_code=400, detail="Percentage discount cannot exceed 100")


async def _check_code(db: AsyncSession, code: str, exclude_id: Optional[int] = None) -> None:
    query = select(Promotion.id).where(Promotion.promotion_code == code)
    if exclude_id:
        query = query.where(Promotion.id != exclude_id)
    if (await db.execute(query)).first():
        raise HTTPException(status_code=400, detail=f"Promotion code already exists: {code}")


async def create_promotion(db: AsyncSession, data: PromotionCreate) -> Promotion:
    _validate(data)
    await _check_code(db, data.promotion_code)
    promotion = Promotion(**data.model_dump(exclude={"discount_value"}), discount_value=money(data.discount_value))
    db.add(promotion)
    await db.commit()
    await db.refresh(promotion)
    logger.info(f"Created promotion {promotion.promotion_code}")
    return promotion


async def update_promotion(db: AsyncSession, promotion_id: int, data: PromotionUpdate) -> Promotion:
    promotion = await get_or_404(db, Promotion, promotion_id)
    _validate(data)
    await _check_code(db, data.promotion_code, exclude_id=promotion_id)
    for field, value in data.model_dump().items():
        setattr(promotion, field, money(value) if field == "discount_value" else value)
    await db.commit()
    await db.refresh(promotion)
    return promotion


async def delete_promotion(db: AsyncSession, promotion_id: int) -> None:
    promotion = await get_or_404(db, Promotion, promotion_id)
    usages = await total_usages(db, promotion_id)
    if usages > 0:
        raise HTTPException(status_code=400, detail=f"Promotion is used by {usages} orders and cannot be deleted")
    quoted = await count_where(db, QuotationPromotion.id, QuotationPromotion.promotion_id == promotion_id)
    if quoted > 0:
        raise HTTPException(status_code=400, detail=f"Promotion is used by {quoted} quotations and cannot be deleted")
    await db.delete(promotion)
    await db.commit()
    logger.info(f"Deleted promotion {promotion.promotion_code}")


async def load_promotions(db: AsyncSession, promotion_ids: Optional[List[int]]) -> List[Promotion]:
    """Resolve ids in order; 404 for an unknown id, duplicates ignored"""
    promotions = []
    seen = set()
    for promotion_id in promotion_ids or []:
        if promotion_id in seen:
            continue
        seen.add(promotion_id)
        promotions.append(await get_or_404(db, Promotion, promotion_id))
    return promotions


async def search_promotions(db: AsyncSession, page: int, size: int, status: Optional[str] = None,
                            keyword: Optional[str] = None, discount_type: Optional[str] = None,
                            start_date: Optional[date] = None, end_date: Optional[date] = None,
                            sort_by: Optional[str] = None) -> Tuple[List[Promotion], int]:
    today = date.today()
    conditions = []
    if status:
        status = status.upper()
        if status == "ACTIVE":
            conditions += [Promotion.start_date <= today, Promotion.end_date >= today]
        elif status == "UPCOMING":
            conditions.append(Promotion.start_date > today)
        elif status == "EXPIRED":
            conditions.append(Promotion.end_date < today)
        else:
            raise HTTPException(status_code=400, detail=f"Invalid promotion status: {status}")
    if keyword:
        conditions.append(or_(
            Promotion.promotion_code.ilike(like(keyword)),
            Promotion.promotion_name.ilike(like(keyword)),
        ))
    if discount_type:
        conditions.append(Promotion.discount_type == discount_type)
    if start_date:
        conditions.append(Promotion.end_date >= start_date)
    if end_date:
        conditions.append(Promotion.start_date <= end_date)
    order = SORT_OPTIONS.get(sort_by or "", Promotion.start_date.desc())
    return await paginate(db, Promotion, conditions, [order], page, size)


async def list_active(db: AsyncSession) -> List[Promotion]:
    today = date.today()
    return await list_where(
        db, Promotion, Promotion.start_date <= today, Promotion.end_date >= today,
        order_by=[Promotion.end_date.asc()]
    )
