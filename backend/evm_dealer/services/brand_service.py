"""Brands and dealers"""

from typing import List, Optional, Tuple

from fastapi import HTTPException
from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession

from evm_dealer.core.logging_config import get_logger
from evm_dealer.models import Appointment, Brand, Dealer, Product, User, Vehicle
from evm_dealer.schemas.brand import BrandCreate, BrandUpdate, DealerCreate, DealerUpdate
from evm_dealer.services.common import count_where, get_or_404, like, list_where, paginate

logger = get_logger(__name__)

BRAND_SORT = {
    "name_asc": Brand.brand_name.asc(),
    "name_desc": Brand.brand_name.desc(),
    "date_asc": Brand.created_at.asc(),
    "date_desc": Brand.created_at.desc(),
}

DEALER_SORT = {
    "name_asc": Dealer.dealer_name.asc(),
    "name_desc": Dealer.dealer_name.desc(),
    "level_asc": Dealer.dealer_level.asc(),
    "level_desc": Dealer.dealer_level.desc(),
    "date_asc": Dealer.created_at.asc(),
    "date_desc": Dealer.created_at.desc(),
}


# ===== Brand =====

async def _check_brand_unique(db: AsyncSession, name: Optional[str], tax_code: Optional[str],
                              exclude_id: Optional[int] = None) -> None:
    if name:
        query = select(Brand.id).where(Brand.brand_name == name)
        if exclude_id:
            query = query.where(Brand.id != exclude_id)
        if (await db.execute(query)).first():
            raise HTTPException(status_code=400, detail=f"Brand name already exists: {name}")
    if tax_code:
        query = select(Brand.id).where(Brand.tax_code == tax_code)
        if exclude_id:
            query = query.where(Brand.id != exclude_id)
        if (await db.execute(query)).first():
            raise HTTPException(status_code=400, detail=f"Tax code already exists: {tax_code}")


async def create_brand(db: AsyncSession, data: BrandCreate) -> Brand:
    await _check_brand_unique(db, data.brand_name, data.tax_code)
    brand = Brand(**data.model_dump())
    db.add(brand)
    await db.commit()
    await db.refresh(brand)
    logger.info(f"Created brand {brand.brand_name}")
    return brand


async def update_brand(db: AsyncSession, brand_id: int, data: BrandUpdate) -> Brand:
    brand = await get_or_404(db, Brand, brand_id)
    update_data = data.model_dump(exclude_unset=True)
    await _check_brand_unique(db, update_data.get("brand_name"), update_data.get("tax_code"), exclude_id=brand_id)
    for field, value in update_data.items():
        setattr(brand, field, value)
    await db.commit()
    await db.refresh(brand)
    return brand


async def delete_brand(db: AsyncSession, brand_id: int) -> None:
    brand = await get_or_404(db, Brand, brand_id)

    dealer_count = await count_where(db, Dealer.id, Dealer.brand_id == brand_id)
    if dealer_count > 0:
        raise HTTPException(status_code=400, detail=f"Brand is referenced by {dealer_count} dealers and cannot be deleted")
    product_count = await count_where(db, Product.id, Product.brand_id == brand_id)
    if product_count > 0:
        raise HTTPException(status_code=400, detail=f"Brand is referenced by {product_count} products and cannot be deleted")
    user_count = await count_where(db, User.id, User.brand_id == brand_id)
    if user_count > 0:
        raise HTTPException(status_code=400, detail=f"Brand is referenced by {user_count} users and cannot be deleted")

    await db.delete(brand)
    await db.commit()
    logger.info(f"Deleted brand {brand_id}")


async def brand_counts(db: AsyncSession, brand_id: int) -> Tuple[int, int]:
    """(dealer_count, product_count)"""
    dealers = await count_where(db, Dealer.id, Dealer.brand_id == brand_id)
    products = await count_where(db, Product.id, Product.brand_id == brand_id)
    return dealers, products


async def search_brands(db: AsyncSession, page: int, size: int, keyword: Optional[str] = None,
                        sort_by: Optional[str] = None) -> Tuple[List[Brand], int]:
    conditions = []
    if keyword:
        conditions.append(or_(
            Brand.brand_name.ilike(like(keyword)),
            Brand.headquarters_address.ilike(like(keyword)),
            Brand.tax_code.ilike(like(keyword)),
        ))
    order = BRAND_SORT.get(sort_by or "", Brand.id.asc())
    return await paginate(db, Brand, conditions, [order], page, size)


# ===== Dealer =====

async def _check_dealer_email(db: AsyncSession, email: Optional[str], exclude_id: Optional[int] = None) -> None:
    if not email:
        return
    query = select(Dealer.id).where(Dealer.email == email)
    if exclude_id:
        query = query.where(Dealer.id != exclude_id)
    if (await db.execute(query)).first():
        raise HTTPException(status_code=400, detail=f"Dealer email already exists: {email}")


async def create_dealer(db: AsyncSession, data: DealerCreate) -> Dealer:
    await _check_dealer_email(db, data.email)
    if data.brand_id is not None:
        await get_or_404(db, Brand, data.brand_id)
    dealer = Dealer(**data.model_dump())
    db.add(dealer)
    await db.commit()
    logger.info(f"Created dealer {dealer.dealer_name}")
    return await get_or_404(db, Dealer, dealer.id)


async def update_dealer(db: AsyncSession, dealer_id: int, data: DealerUpdate) -> Dealer:
    dealer = await get_or_404(db, Dealer, dealer_id)
    update_data = data.model_dump(exclude_unset=True)
    await _check_dealer_email(db, update_data.get("email"), exclude_id=dealer_id)
    if update_data.get("brand_id") is not None:
        await get_or_404(db, Brand, update_data["brand_id"])
    for field, value in update_data.items():
        setattr(dealer, field, value)
    await db.commit()
    return await get_or_404(db, Dealer, dealer_id)


async def delete_dealer(db: AsyncSession, dealer_id: int) -> None:
    dealer = await get_or_404(db, Dealer, dealer_id)

    checks = (
        ("users", User.id, User.dealer_id == dealer_id),
        ("vehicles", Vehicle.id, Vehicle.dealer_id == dealer_id),
        ("appointments", Appointment.id, Appointment.dealer_id == dealer_id),
    )
    for label, column, condition in checks:
        count = await count_where(db, column, condition)
        if count > 0:
            raise HTTPException(
                status_code=400,
                detail=f"Dealer is referenced by {count} {label} and cannot be deleted"
            )

    await db.delete(dealer)
    await db.commit()
    logger.info(f"Deleted dealer {dealer_id}")


async def search_dealers(db: AsyncSession, page: int, size: int, keyword: Optional[str] = None,
                         brand_id: Optional[int] = None, dealer_level: Optional[str] = None,
                         sort_by: Optional[str] = None) -> Tuple[List[Dealer], int]:
    size = min(size, 100)
    conditions = []
    if keyword:
        conditions.append(or_(
            Dealer.dealer_name.ilike(like(keyword)),
            Dealer.address.ilike(like(keyword)),
            Dealer.email.ilike(like(keyword)),
            Dealer.phone_number.ilike(like(keyword)),
        ))
    if brand_id is not None:
        conditions.append(Dealer.brand_id == brand_id)
    if dealer_level:
        conditions.append(Dealer.dealer_level == dealer_level)
    order = DEALER_SORT.get(sort_by or "", Dealer.id.asc())
    return await paginate(db, Dealer, conditions, [order], page, size)


async def list_dealers_by_brand(db: AsyncSession, brand_id: int) -> List[Dealer]:
    await get_or_404(db, Brand, brand_id)
    return await list_where(db, Dealer, Dealer.brand_id == brand_id, order_by=[Dealer.dealer_name])
