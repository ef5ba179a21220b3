"""Vehicle API"""

from typing import Any, List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from evm_dealer.core.deps import get_db, require_roles
from evm_dealer.core.permissions import INVENTORY_READ, INVENTORY_WRITE
from evm_dealer.models.vehicle import Vehicle
from evm_dealer.schemas.common import MessageResponse
from evm_dealer.schemas.vehicle import VehicleCreate, VehicleUpdate, VehicleResponse, VehicleListResponse
from evm_dealer.services import vehicle_service
from evm_dealer.services.common import get_or_404, total_pages

router = APIRouter()

vehicle_read = require_roles(*INVENTORY_READ)
vehicle_write = require_roles(*INVENTORY_WRITE)


def build_vehicle_response(vehicle: Vehicle) -> VehicleResponse:
    product = vehicle.product
    return VehicleResponse(
        id=vehicle.id,
        vin=vehicle.vin,
        battery_serial=vehicle.battery_serial,
        color=vehicle.color,
        manufacture_date=vehicle.manufacture_date,
        status=vehicle.status,
        product_id=vehicle.product_id,
        product_name=product.display_name if product else None,
        msrp=float(product.msrp or 0) if product else 0,
        dealer_id=vehicle.dealer_id,
        dealer_name=vehicle.dealer.dealer_name if vehicle.dealer else None,
        brand_name=product.brand.brand_name if product and product.brand else None,
        created_at=vehicle.created_at
    )


@router.get("/", response_model=VehicleListResponse, dependencies=[Depends(vehicle_read)])
async def list_vehicles(
    *,
    db: AsyncSession = Depends(get_db),
    page: int = Query(0, ge=0),
    size: int = Query(20, ge=1, le=100),
    keyword: Optional[str] = Query(None, description="Id, VIN or battery serial"),
    product_id: Optional[int] = Query(None),
    dealer_id: Optional[int] = Query(None),
    status: Optional[str] = Query(None),
    color: Optional[str] = Query(None),
    sort_by: Optional[str] = Query(None)
) -> Any:
    vehicles, total = await vehicle_service.search_vehicles(
        db, page, size, keyword=keyword, product_id=product_id, dealer_id=dealer_id,
        status=status, color=color, sort_by=sort_by
    )
    return VehicleListResponse(
        data=[build_vehicle_response(v) for v in vehicles],
        total=total,
        page=page,
        size=size,
        total_pages=total_pages(total, size)
    )


@router.get("/vin/{vin}", response_model=VehicleResponse, dependencies=[Depends(vehicle_read)])
async def get_vehicle_by_vin(vin: str, db: AsyncSession = Depends(get_db)) -> Any:
    return build_vehicle_response(await vehicle_service.get_by_vin(db, vin))


@router.get("/product/{product_id}", response_model=List[VehicleResponse], dependencies=[Depends(vehicle_read)])
async def list_by_product(product_id: int, db: AsyncSession = Depends(get_db)) -> Any:
    return [build_vehicle_response(v) for v in await vehicle_service.list_by_product(db, product_id)]


@router.get("/dealer/{dealer_id}", response_model=List[VehicleResponse], dependencies=[Depends(vehicle_read)])
async def list_by_dealer(dealer_id: int, db: AsyncSession = Depends(get_db)) -> Any:
    return [build_vehicle_response(v) for v in await vehicle_service.list_by_dealer(db, dealer_id)]


@router.get("/dealer/{dealer_id}/available", response_model=List[VehicleResponse], dependencies=[Depends(vehicle_read)])
async def list_available_by_dealer(dealer_id: int, db: AsyncSession = Depends(get_db)) -> Any:
    return [build_vehicle_response(v) for v in await vehicle_service.list_available_by_dealer(db, dealer_id)]


@router.get("/{vehicle_id}", response_model=VehicleResponse, dependencies=[Depends(vehicle_read)])
async def get_vehicle(vehicle_id: str, db: AsyncSession = Depends(get_db)) -> Any:
    return build_vehicle_response(await get_or_404(db, Vehicle, vehicle_id))


@router.post("/", response_model=VehicleResponse, status_code=201, dependencies=[Depends(vehicle_write)])
async def create_vehicle(*, db: AsyncSession = Depends(get_db), vehicle_in: VehicleCreate) -> Any:
    return build_vehicle_response(await vehicle_service.create_vehicle(db, vehicle_in))


@router.put("/{vehicle_id}", response_model=VehicleResponse, dependencies=[Depends(vehicle_write)])
async def update_vehicle(*, db: AsyncSession = Depends(get_db), vehicle_id: str, vehicle_in: VehicleUpdate) -> Any:
    return build_vehicle_response(await vehicle_service.update_vehicle(db, vehicle_id, vehicle_in))


@router.delete("/{vehicle_id}", response_model=MessageResponse, dependencies=[Depends(vehicle_write)])
async def delete_vehicle(vehicle_id: str, db: AsyncSession = Depends(get_db)) -> Any:
    await vehicle_service.delete_vehicle(db, vehicle_id)
    return MessageResponse(message="Vehicle deleted")
