"""Vehicles (one row per VIN)"""

from typing import List, Optional, Tuple

from fastapi import HTTPException
from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession

from evm_dealer.core.logging_config import get_logger
from evm_dealer.models import Dealer, Product, SalesOrder, Vehicle, VehicleStatus, OrderStatus
from evm_dealer.schemas.vehicle import VehicleCreate, VehicleUpdate
from evm_dealer.services.common import count_where, get_or_404, like, list_where, paginate

logger = get_logger(__name__)

SORT_OPTIONS = {
    "id_asc": Vehicle.id.asc(),
    "id_desc": Vehicle.id.desc(),
    "date_asc": Vehicle.manufacture_date.asc(),
    "date_desc": Vehicle.manufacture_date.desc(),
    "status_asc": Vehicle.status.asc(),
    "status_desc": Vehicle.status.desc(),
}


def _check_status(status: Optional[str]) -> None:
    if status and status not in VehicleStatus.ALL:
        raise HTTPException(status_code=400, detail=f"Invalid vehicle status: {status}")


async def _check_vin(db: AsyncSession, vin: str, exclude_id: Optional[str] = None) -> None:
    query = select(Vehicle.id).where(Vehicle.vin == vin)
    if exclude_id:
        query = query.where(Vehicle.id != exclude_id)
    if (await db.execute(query)).first():
        raise HTTPException(status_code=400, detail=f"VIN already exists: {vin}")


async def is_sold(db: AsyncSession, vehicle_id: str, exclude_order_id: Optional[int] = None) -> bool:
    """A vehicle is sold once any non-cancelled order holds it"""
    conditions = [SalesOrder.vehicle_id == vehicle_id, SalesOrder.status != OrderStatus.CANCELLED]
    if exclude_order_id:
        conditions.append(SalesOrder.id != exclude_order_id)
    return await count_where(db, SalesOrder.id, *conditions) > 0


async def create_vehicle(db: AsyncSession, data: VehicleCreate) -> Vehicle:
    if await db.get(Vehicle, data.id):
        raise HTTPException(status_code=400, detail=f"Vehicle id already exists: {data.id}")
    await _check_vin(db, data.vin)
    _check_status(data.status)
    await get_or_404(db, Product, data.product_id)
    if data.dealer_id is not None:
        await get_or_404(db, Dealer, data.dealer_id)

    vehicle = Vehicle(**data.model_dump(exclude={"status"}), status=data.status or VehicleStatus.AVAILABLE)
    db.add(vehicle)
    await db.commit()
    logger.info(f"Registered vehicle {vehicle.id} VIN={vehicle.vin}")
    return await get_or_404(db, Vehicle, vehicle.id)


async def update_vehicle(db: AsyncSession, vehicle_id: str, data: VehicleUpdate) -> Vehicle:
    vehicle = await get_or_404(db, Vehicle, vehicle_id)
    update_data = data.model_dump(exclude_unset=True)
    if update_data.get("vin"):
        await _check_vin(db, update_data["vin"], exclude_id=vehicle_id)
    _check_status(update_data.get("status"))
    if update_data.get("product_id") is not None:
        await get_or_404(db, Product, update_data["product_id"])
    if update_data.get("dealer_id") is not None:
        await get_or_404(db, Dealer, update_data["dealer_id"])
    for field, value in update_data.items():
        if field == "status" and value is None:
            continue
        setattr(vehicle, field, value)
    await db.commit()
    return await get_or_404(db, Vehicle, vehicle_id)


async def delete_vehicle(db: AsyncSession, vehicle_id: str) -> None:
    vehicle = await get_or_404(db, Vehicle, vehicle_id)
    order_count = await count_where(db, SalesOrder.id, SalesOrder.vehicle_id == vehicle_id)
    if order_count > 0:
        raise HTTPException(status_code=400, detail="Vehicle is referenced by a sales order and cannot be deleted")
    await db.delete(vehicle)
    await db.commit()
    logger.info(f"Deleted vehicle {vehicle_id}")


async def get_by_vin(db: AsyncSession, vin: str) -> Vehicle:
    result = await db.execute(select(Vehicle).where(Vehicle.vin == vin))
    vehicle = result.scalars().first()
    if not vehicle:
        raise HTTPException(status_code=404, detail=f"Vehicle not found with VIN: {vin}")
    return vehicle


async def search_vehicles(db: AsyncSession, page: int, size: int, keyword: Optional[str] = None,
                          product_id: Optional[int] = None, dealer_id: Optional[int] = None,
                          status: Optional[str] = None, color: Optional[str] = None,
                          sort_by: Optional[str] = None) -> Tuple[List[Vehicle], int]:
    conditions = []
    if keyword:
        conditions.append(or_(
            Vehicle.id.ilike(like(keyword)),
            Vehicle.vin.ilike(like(keyword)),
            Vehicle.battery_serial.ilike(like(keyword)),
        ))
    if product_id is not None:
        conditions.append(Vehicle.product_id == product_id)
    if dealer_id is not None:
        conditions.append(Vehicle.dealer_id == dealer_id)
    if status:
        conditions.append(Vehicle.status == status)
    if color:
        conditions.append(Vehicle.color.ilike(color))
    order = SORT_OPTIONS.get(sort_by or "", Vehicle.created_at.desc())
    return await paginate(db, Vehicle, conditions, [order], page, size)


async def list_by_product(db: AsyncSession, product_id: int) -> List[Vehicle]:
    return await list_where(db, Vehicle, Vehicle.product_id == product_id, order_by=[Vehicle.id])


async def list_by_dealer(db: AsyncSession, dealer_id: int) -> List[Vehicle]:
    return await list_where(db, Vehicle, Vehicle.dealer_id == dealer_id, order_by=[Vehicle.id])


async def list_available_by_dealer(db: AsyncSession, dealer_id: int) -> List[Vehicle]:
    return await list_where(
        db, Vehicle,
        Vehicle.dealer_id == dealer_id,
        Vehicle.status == VehicleStatus.AVAILABLE,
        order_by=[Vehicle.id]
    )
