"""
Inventory operations
- create/update with the quantity invariant
- adjust, reserve, release, transfer between locations
- low-stock queries and statistics
Callers commit; the helpers below only mutate rows in the session.
"""

from typing import Dict, List, Optional, Tuple

from fastapi import HTTPException
from sqlalchemy import select, func, or_, case
from sqlalchemy.ext.asyncio import AsyncSession

from evm_dealer.core.config import settings
from evm_dealer.core.logging_config import get_logger
from evm_dealer.models import Dealer, Inventory, Product
from evm_dealer.schemas.inventory import InventoryCreate, InventoryUpdate
from evm_dealer.services.common import get_or_404, like, list_where, paginate

logger = get_logger(__name__)

SORT_OPTIONS = {
    "product_asc": Product.product_name.asc(),
    "product_desc": Product.product_name.desc(),
    "available_asc": Inventory.available_quantity.asc(),
    "available_desc": Inventory.available_quantity.desc(),
    "updated_asc": Inventory.updated_at.asc(),
    "updated_desc": Inventory.updated_at.desc(),
}


def low_stock_threshold() -> int:
    return settings.LOW_STOCK_THRESHOLD


def is_low_stock(inventory: Inventory, threshold: Optional[int] = None) -> bool:
    threshold = low_stock_threshold() if threshold is None else threshold
    return (inventory.available_quantity or 0) < threshold


def _check_balance(total: int, reserved: int, available: int, in_transit: int) -> None:
    if total != reserved + available + in_transit:
        raise HTTPException(
            status_code=400,
            detail=(
                f"Total quantity ({total}) must equal reserved ({reserved}) + "
                f"available ({available}) + in transit ({in_transit})"
            )
        )


async def find_inventory(db: AsyncSession, product_id: int, dealer_id: Optional[int]) -> Optional[Inventory]:
    dealer_condition = Inventory.dealer_id.is_(None) if dealer_id is None else Inventory.dealer_id == dealer_id
    result = await db.execute(
        select(Inventory).where(Inventory.product_id == product_id, dealer_condition)
    )
    return result.scalars().first()


async def get_or_create_inventory(db: AsyncSession, product_id: int, dealer_id: Optional[int]) -> Inventory:
    """Fetch the row for product/location, creating an empty one when missing"""
    inventory = await find_inventory(db, product_id, dealer_id)
    if inventory is None:
        inventory = Inventory(
            product_id=product_id,
            dealer_id=dealer_id,
            total_quantity=0,
            reserved_quantity=0,
            available_quantity=0,
            in_transit_quantity=0
        )
        db.add(inventory)
        await db.flush()
    return inventory


async def create_inventory(db: AsyncSession, data: InventoryCreate) -> Inventory:
    await get_or_404(db, Product, data.product_id)
    if data.dealer_id is not None:
        await get_or_404(db, Dealer, data.dealer_id)
    if await find_inventory(db, data.product_id, data.dealer_id):
        raise HTTPException(
            status_code=400,
            detail="Inventory already exists for this product at this location"
        )
    _check_balance(data.total_quantity, data.reserved_quantity, data.available_quantity, data.in_transit_quantity)

    inventory = Inventory(**data.model_dump())
    db.add(inventory)
    await db.commit()
    logger.info(f"Created inventory for product {data.product_id} at dealer {data.dealer_id or 'warehouse'}")
    return await get_or_404(db, Inventory, inventory.id)


async def update_inventory(db: AsyncSession, inventory_id: int, data: InventoryUpdate) -> Inventory:
    inventory = await get_or_404(db, Inventory, inventory_id)
    _check_balance(data.total_quantity, data.reserved_quantity, data.available_quantity, data.in_transit_quantity)
    for field, value in data.model_dump().items():
        setattr(inventory, field, value)
    await db.commit()
    return await get_or_404(db, Inventory, inventory_id)


async def delete_inventory(db: AsyncSession, inventory_id: int) -> None:
    inventory = await get_or_404(db, Inventory, inventory_id)
    if (inventory.total_quantity or 0) > 0:
        raise HTTPException(status_code=400, detail="Cannot delete inventory that still holds stock")
    await db.delete(inventory)
    await db.commit()


def apply_adjustment(inventory: Inventory, quantity: int) -> None:
    new_total = (inventory.total_quantity or 0) + quantity
    new_available = (inventory.available_quantity or 0) + quantity
    if new_total < 0 or new_available < 0:
        raise HTTPException(
            status_code=400,
            detail=f"Adjustment of {quantity} would make stock negative (available {inventory.available_quantity})"
        )
    inventory.total_quantity = new_total
    inventory.available_quantity = new_available


def apply_reserve(inventory: Inventory, quantity: int) -> None:
    if (inventory.available_quantity or 0) < quantity:
        raise HTTPException(
            status_code=400,
            detail=f"Insufficient available stock: available {inventory.available_quantity}, requested {quantity}"
        )
    inventory.available_quantity -= quantity
    inventory.reserved_quantity = (inventory.reserved_quantity or 0) + quantity


def apply_release(inventory: Inventory, quantity: int) -> None:
    if (inventory.reserved_quantity or 0) < quantity:
        raise HTTPException(
            status_code=400,
            detail=f"Insufficient reserved stock: reserved {inventory.reserved_quantity}, requested {quantity}"
        )
    inventory.reserved_quantity -= quantity
    inventory.available_quantity = (inventory.available_quantity or 0) + quantity


async def adjust_inventory(db: AsyncSession, inventory_id: int, quantity: int, reason: Optional[str]) -> Inventory:
    inventory = await get_or_404(db, Inventory, inventory_id)
    apply_adjustment(inventory, quantity)
    await db.commit()
    logger.info(f"Adjusted inventory {inventory_id} by {quantity}: {reason or 'no reason given'}")
    return await get_or_404(db, Inventory, inventory_id)


async def reserve_inventory(db: AsyncSession, inventory_id: int, quantity: int) -> Inventory:
    inventory = await get_or_404(db, Inventory, inventory_id)
    apply_reserve(inventory, quantity)
    await db.commit()
    return await get_or_404(db, Inventory, inventory_id)


async def release_inventory(db: AsyncSession, inventory_id: int, quantity: int) -> Inventory:
    inventory = await get_or_404(db, Inventory, inventory_id)
    apply_release(inventory, quantity)
    await db.commit()
    return await get_or_404(db, Inventory, inventory_id)


async def transfer_inventory(db: AsyncSession, from_inventory_id: int, to_dealer_id: int, quantity: int) -> Inventory:
    """
    Ship stock from one location to a dealer.
    The source drops total/available and tracks the units as in transit;
    the destination shows them as in transit until received.
    Returns the source row.
    """
    source = await get_or_404(db, Inventory, from_inventory_id)
    await get_or_404(db, Dealer, to_dealer_id)
    if source.dealer_id == to_dealer_id:
        raise HTTPException(status_code=400, detail="Source and destination are the same location")
    if (source.available_quantity or 0) < quantity:
        raise HTTPException(
            status_code=400,
            detail=f"Insufficient available stock: available {source.available_quantity}, requested {quantity}"
        )

    source.available_quantity -= quantity
    source.total_quantity -= quantity
    source.in_transit_quantity = (source.in_transit_quantity or 0) + quantity

    destination = await get_or_create_inventory(db, source.product_id, to_dealer_id)
    destination.in_transit_quantity = (destination.in_transit_quantity or 0) + quantity

    await db.commit()
    logger.info(f"Transferred {quantity} of product {source.product_id} from inventory {source.id} to dealer {to_dealer_id}")
    return await get_or_404(db, Inventory, from_inventory_id)


async def receive_stock(db: AsyncSession, product_id: int, dealer_id: int, quantity: int) -> Inventory:
    """Book delivered units into a dealer's stock (total and available)"""
    inventory = await get_or_create_inventory(db, product_id, dealer_id)
    inventory.total_quantity = (inventory.total_quantity or 0) + quantity
    inventory.available_quantity = (inventory.available_quantity or 0) + quantity
    return inventory


async def search_inventory(
    db: AsyncSession,
    page: int,
    size: int,
    keyword: Optional[str] = None,
    product_id: Optional[int] = None,
    dealer_id: Optional[int] = None,
    brand_id: Optional[int] = None,
    is_brand_warehouse: Optional[bool] = None,
    min_available: Optional[int] = None,
    max_available: Optional[int] = None,
    sort_by: Optional[str] = None
) -> Tuple[List[Inventory], int]:
    conditions = []
    if keyword:
        conditions.append(or_(
            Product.product_name.ilike(like(keyword)),
            Inventory.location.ilike(like(keyword)),
        ))
    if product_id is not None:
        conditions.append(Inventory.product_id == product_id)
    if dealer_id is not None:
        conditions.append(Inventory.dealer_id == dealer_id)
    if brand_id is not None:
        conditions.append(Product.brand_id == brand_id)
    if is_brand_warehouse is not None:
        conditions.append(Inventory.dealer_id.is_(None) if is_brand_warehouse else Inventory.dealer_id.isnot(None))
    if min_available is not None:
        conditions.append(Inventory.available_quantity >= min_available)
    if max_available is not None:
        conditions.append(Inventory.available_quantity <= max_available)

    order = SORT_OPTIONS.get(sort_by or "", Inventory.updated_at.desc())
    return await paginate(db, Inventory, conditions, [order], page, size, joins=[Inventory.product])


async def list_by_product(db: AsyncSession, product_id: int) -> List[Inventory]:
    return await list_where(db, Inventory, Inventory.product_id == product_id, order_by=[Inventory.id])


async def list_by_dealer(db: AsyncSession, dealer_id: int) -> List[Inventory]:
    return await list_where(db, Inventory, Inventory.dealer_id == dealer_id, order_by=[Inventory.id])


async def list_brand_warehouse(db: AsyncSession) -> List[Inventory]:
    return await list_where(db, Inventory, Inventory.dealer_id.is_(None), order_by=[Inventory.id])


async def list_low_stock(db: AsyncSession, threshold: Optional[int] = None) -> List[Inventory]:
    threshold = low_stock_threshold() if threshold is None else threshold
    return await list_where(
        db, Inventory, Inventory.available_quantity < threshold,
        order_by=[Inventory.available_quantity.asc()]
    )


async def statistics(db: AsyncSession) -> Dict[str, int]:
    threshold = low_stock_threshold()
    result = await db.execute(
        select(
            func.count(Inventory.id),
            func.coalesce(func.sum(Inventory.available_quantity), 0),
            func.coalesce(func.sum(Inventory.reserved_quantity), 0),
            func.coalesce(func.sum(Inventory.in_transit_quantity), 0),
            func.coalesce(func.sum(case((Inventory.available_quantity < threshold, 1), else_=0)), 0),
            func.coalesce(func.sum(case((Inventory.dealer_id.is_(None), 1), else_=0)), 0),
        )
    )
    row = result.one()
    return {
        "total_records": row[0] or 0,
        "total_available": int(row[1]),
        "total_reserved": int(row[2]),
        "total_in_transit": int(row[3]),
        "low_stock_count": int(row[4]),
        "brand_warehouse_count": int(row[5]),
    }
