"""
Helpers shared by the service modules
- lookups that raise 404
- money rounding
- paged queries
"""

import math
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Iterable, List, Optional, Sequence, Tuple, Type

from fastapi import HTTPException
from sqlalchemy import select, func, and_
from sqlalchemy.ext.asyncio import AsyncSession

CENT = Decimal("0.01")


def to_decimal(value: Any) -> Decimal:
    """Convert API numbers (float/int/str) to Decimal without float artefacts"""
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def money(value: Any) -> Decimal:
    """Round HALF_UP to 2 places"""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def percent(part: Any, whole: Any, places: str = "0.01") -> Decimal:
    """part / whole * 100, 0 when whole is 0"""
    whole = to_decimal(whole)
    if whole == 0:
        return Decimal("0").quantize(Decimal(places))
    return (to_decimal(part) * 100 / whole).quantize(Decimal(places), rounding=ROUND_HALF_UP)


def growth_rate(current: Any, previous: Any) -> Decimal:
    """(current - previous) / previous * 100, 0 when there is no previous value"""
    previous = to_decimal(previous)
    if previous == 0:
        return Decimal("0.00")
    return ((to_decimal(current) - previous) * 100 / previous).quantize(CENT, rounding=ROUND_HALF_UP)


async def get_or_404(db: AsyncSession, model: Type, obj_id: Any, name: Optional[str] = None):
    """
    Load a row by primary key, refreshing it from the database.
    populate_existing makes eager relationships reflect foreign keys changed earlier in the session.
    """
    result = await db.execute(
        select(model).where(model.id == obj_id).execution_options(populate_existing=True)
    )
    obj = result.scalars().unique().first()
    if obj is None:
        raise HTTPException(
            status_code=404,
            detail=f"{name or model.__name__} not found with id: {obj_id}"
        )
    return obj


async def count_where(db: AsyncSession, column, *conditions) -> int:
    """SELECT count(column) WHERE conditions"""
    query = select(func.count(column))
    if conditions:
        query = query.where(and_(*conditions))
    result = await db.execute(query)
    return result.scalar() or 0


async def paginate(
    db: AsyncSession,
    model: Type,
    conditions: Sequence,
    order_by: Sequence,
    page: int,
    size: int,
    joins: Iterable = ()
) -> Tuple[List[Any], int]:
    """
    Run a filtered, ordered, paged query (page is 0-based)
    Returns (rows, total)
    """
    query = select(model)
    count_query = select(func.count(model.id)).select_from(model)
    for target in joins:
        query = query.join(target)
        count_query = count_query.join(target)
    if conditions:
        query = query.where(and_(*conditions))
        count_query = count_query.where(and_(*conditions))

    total_result = await db.execute(count_query)
    total = total_result.scalar() or 0

    query = query.order_by(*order_by).offset(page * size).limit(size)
    result = await db.execute(query)
    return list(result.scalars().unique().all()), total


async def list_where(db: AsyncSession, model: Type, *conditions, order_by: Sequence = ()) -> List[Any]:
    """Unpaged filtered list"""
    query = select(model)
    if conditions:
        query = query.where(and_(*conditions))
    if order_by:
        query = query.order_by(*order_by)
    result = await db.execute(query)
    return list(result.scalars().unique().all())


def total_pages(total: int, size: int) -> int:
    return math.ceil(total / size) if size else 0


def like(value: str) -> str:
    return f"%{value.strip()}%"
