"""Dealer API"""

from typing import Any, List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from evm_dealer.core.deps import get_db, get_current_user, require_roles
from evm_dealer.core.permissions import CATALOG_WRITE
from evm_dealer.models.brand import Dealer
from evm_dealer.schemas.brand import DealerCreate, DealerUpdate, DealerResponse, DealerListResponse
from evm_dealer.schemas.common import MessageResponse
from evm_dealer.services import brand_service
from evm_dealer.services.common import get_or_404, total_pages

router = APIRouter()


def build_dealer_response(dealer: Dealer) -> DealerResponse:
    return DealerResponse(
        id=dealer.id,
        dealer_name=dealer.dealer_name,
        address=dealer.address,
        phone_number=dealer.phone_number,
        email=dealer.email,
        dealer_level=dealer.dealer_level,
        brand_id=dealer.brand_id,
        brand_name=dealer.brand.brand_name if dealer.brand else None,
        created_at=dealer.created_at
    )


@router.get("/", response_model=DealerListResponse, dependencies=[Depends(get_current_user)])
async def list_dealers(
    *,
    db: AsyncSession = Depends(get_db),
    page: int = Query(0, ge=0),
    size: int = Query(20, ge=1),
    keyword: Optional[str] = Query(None),
    brand_id: Optional[int] = Query(None),
    dealer_level: Optional[str] = Query(None),
    sort_by: Optional[str] = Query(None, description="name_asc, name_desc, level_asc, level_desc, date_asc, date_desc")
) -> Any:
    """Page size above 100 is capped at 100"""
    size = min(size, 100)
    dealers, total = await brand_service.search_dealers(
        db, page, size, keyword=keyword, brand_id=brand_id, dealer_level=dealer_level, sort_by=sort_by
    )
    return DealerListResponse(
        data=[build_dealer_response(d) for d in dealers],
        total=total,
        page=page,
        size=size,
        total_pages=total_pages(total, size)
    )


@router.get("/brand/{brand_id}", response_model=List[DealerResponse], dependencies=[Depends(get_current_user)])
async def list_dealers_by_brand(brand_id: int, db: AsyncSession = Depends(get_db)) -> Any:
    dealers = await brand_service.list_dealers_by_brand(db, brand_id)
    return [build_dealer_response(d) for d in dealers]


@router.get("/{dealer_id}", response_model=DealerResponse, dependencies=[Depends(get_current_user)])
async def get_dealer(dealer_id: int, db: AsyncSession = Depends(get_db)) -> Any:
    return build_dealer_response(await get_or_404(db, Dealer, dealer_id))


@router.post("/", response_model=DealerResponse, status_code=201, dependencies=[Depends(require_roles(*CATALOG_WRITE))])
async def create_dealer(*, db: AsyncSession = Depends(get_db), dealer_in: DealerCreate) -> Any:
    return build_dealer_response(await brand_service.create_dealer(db, dealer_in))


@router.put("/{dealer_id}", response_model=DealerResponse, dependencies=[Depends(require_roles(*CATALOG_WRITE))])
async def update_dealer(*, db: AsyncSession = Depends(get_db), dealer_id: int, dealer_in: DealerUpdate) -> Any:
    return build_dealer_response(await brand_service.update_dealer(db, dealer_id, dealer_in))


@router.delete("/{dealer_id}", response_model=MessageResponse, dependencies=[Depends(require_roles(*CATALOG_WRITE))])
async def delete_dealer(dealer_id: int, db: AsyncSession = Depends(get_db)) -> Any:
    await brand_service.delete_dealer(db, dealer_id)
    return MessageResponse(message="Dealer deleted")
