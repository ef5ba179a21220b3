"""Inventory API"""

from typing import Any, List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from evm_dealer.core.deps import get_db, require_roles
from evm_dealer.core.permissions import INVENTORY_READ, INVENTORY_WRITE
from evm_dealer.models.inventory import Inventory
from evm_dealer.schemas.common import MessageResponse
from evm_dealer.schemas.inventory import (
    InventoryCreate, InventoryUpdate, InventoryResponse, InventoryListResponse,
    InventoryStatistics, StockAdjust, StockQuantity, StockTransfer
)
from evm_dealer.services import inventory_service
from evm_dealer.services.common import get_or_404, total_pages

router = APIRouter()

inventory_read = require_roles(*INVENTORY_READ)
inventory_write = require_roles(*INVENTORY_WRITE)


def build_inventory_response(inventory: Inventory) -> InventoryResponse:
    product = inventory.product
    return InventoryResponse(
        id=inventory.id,
        product_id=inventory.product_id,
        product_name=product.display_name if product else None,
        brand_name=product.brand.brand_name if product and product.brand else None,
        dealer_id=inventory.dealer_id,
        dealer_name=inventory.dealer.dealer_name if inventory.dealer else None,
        is_brand_warehouse=inventory.is_brand_warehouse,
        total_quantity=inventory.total_quantity or 0,
        reserved_quantity=inventory.reserved_quantity or 0,
        available_quantity=inventory.available_quantity or 0,
        in_transit_quantity=inventory.in_transit_quantity or 0,
        location=inventory.location,
        stock_percentage=inventory.stock_percentage,
        is_low_stock=inventory_service.is_low_stock(inventory),
        updated_at=inventory.updated_at
    )


@router.get("/", response_model=InventoryListResponse, dependencies=[Depends(inventory_read)])
async def list_inventory(
    *,
    db: AsyncSession = Depends(get_db),
    page: int = Query(0, ge=0),
    size: int = Query(20, ge=1, le=100),
    keyword: Optional[str] = Query(None, description="Product name or location"),
    product_id: Optional[int] = Query(None),
    dealer_id: Optional[int] = Query(None),
    brand_id: Optional[int] = Query(None),
    is_brand_warehouse: Optional[bool] = Query(None),
    min_available: Optional[int] = Query(None, ge=0),
    max_available: Optional[int] = Query(None, ge=0),
    sort_by: Optional[str] = Query(None, description="product_asc, product_desc, available_asc, available_desc, updated_asc, updated_desc")
) -> Any:
    rows, total = await inventory_service.search_inventory(
        db, page, size, keyword=keyword, product_id=product_id, dealer_id=dealer_id,
        brand_id=brand_id, is_brand_warehouse=is_brand_warehouse,
        min_available=min_available, max_available=max_available, sort_by=sort_by
    )
    return InventoryListResponse(
        data=[build_inventory_response(i) for i in rows],
        total=total,
        page=page,
        size=size,
        total_pages=total_pages(total, size)
    )


@router.get("/statistics", response_model=InventoryStatistics, dependencies=[Depends(inventory_read)])
async def inventory_statistics(db: AsyncSession = Depends(get_db)) -> Any:
    return InventoryStatistics(**await inventory_service.statistics(db))


@router.get("/low-stock", response_model=List[InventoryResponse], dependencies=[Depends(inventory_read)])
async def list_low_stock(
    db: AsyncSession = Depends(get_db),
    threshold: Optional[int] = Query(None, ge=0, description="Defaults to the configured threshold")
) -> Any:
    return [build_inventory_response(i) for i in await inventory_service.list_low_stock(db, threshold)]


@router.get("/brand-warehouse", response_model=List[InventoryResponse], dependencies=[Depends(inventory_read)])
async def list_brand_warehouse(db: AsyncSession = Depends(get_db)) -> Any:
    return [build_inventory_response(i) for i in await inventory_service.list_brand_warehouse(db)]


@router.get("/product/{product_id}", response_model=List[InventoryResponse], dependencies=[Depends(inventory_read)])
async def list_by_product(product_id: int, db: AsyncSession = Depends(get_db)) -> Any:
    return [build_inventory_response(i) for i in await inventory_service.list_by_product(db, product_id)]


@router.get("/dealer/{dealer_id}", response_model=List[InventoryResponse], dependencies=[Depends(inventory_read)])
async def list_by_dealer(dealer_id: int, db: AsyncSession = Depends(get_db)) -> Any:
    return [build_inventory_response(i) for i in await inventory_service.list_by_dealer(db, dealer_id)]


@router.post("/transfer", response_model=InventoryResponse, dependencies=[Depends(inventory_write)])
async def transfer_inventory(*, db: AsyncSession = Depends(get_db), transfer_in: StockTransfer) -> Any:
    """Move available units to another dealer; returns the source row"""
    inventory = await inventory_service.transfer_inventory(
        db, transfer_in.from_inventory_id, transfer_in.to_dealer_id, transfer_in.quantity
    )
    return build_inventory_response(inventory)


@router.get("/{inventory_id}", response_model=InventoryResponse, dependencies=[Depends(inventory_read)])
async def get_inventory(inventory_id: int, db: AsyncSession = Depends(get_db)) -> Any:
    return build_inventory_response(await get_or_404(db, Inventory, inventory_id))


@router.post("/", response_model=InventoryResponse, status_code=201, dependencies=[Depends(inventory_write)])
async def create_inventory(*, db: AsyncSession = Depends(get_db), inventory_in: InventoryCreate) -> Any:
    return build_inventory_response(await inventory_service.create_inventory(db, inventory_in))


@router.put("/{inventory_id}", response_model=InventoryResponse, dependencies=[Depends(inventory_write)])
async def update_inventory(*, db: AsyncSession = Depends(get_db), inventory_id: int, inventory_in: InventoryUpdate) -> Any:
    return build_inventory_response(await inventory_service.update_inventory(db, inventory_id, inventory_in))


@router.delete("/{inventory_id}", response_model=MessageResponse, dependencies=[Depends(inventory_write)])
async def delete_inventory(inventory_id: int, db: AsyncSession = Depends(get_db)) -> Any:
    await inventory_service.delete_inventory(db, inventory_id)
    return MessageResponse(message="Inventory deleted")


@router.patch("/{inventory_id}/adjust", response_model=InventoryResponse, dependencies=[Depends(inventory_write)])
async def adjust_inventory(*, db: AsyncSession = Depends(get_db), inventory_id: int, adjust_in: StockAdjust) -> Any:
    inventory = await inventory_service.adjust_inventory(db, inventory_id, adjust_in.quantity, adjust_in.reason)
    return build_inventory_response(inventory)


@router.patch("/{inventory_id}/reserve", response_model=InventoryResponse, dependencies=[Depends(inventory_write)])
async def reserve_inventory(*, db: AsyncSession = Depends(get_db), inventory_id: int, body: StockQuantity) -> Any:
    return build_inventory_response(await inventory_service.reserve_inventory(db, inventory_id, body.quantity))


@router.patch("/{inventory_id}/release", response_model=InventoryResponse, dependencies=[Depends(inventory_write)])
async def release_inventory(*, db: AsyncSession = Depends(get_db), inventory_id: int, body: StockQuantity) -> Any:
    return build_inventory_response(await inventory_service.release_inventory(db, inventory_id, body.quantity))
