"""Brand API"""

from typing import Any, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from evm_dealer.core.deps import get_db, get_current_user, require_roles
from evm_dealer.core.permissions import CATALOG_WRITE
from evm_dealer.models.brand import Brand
from evm_dealer.schemas.brand import BrandCreate, BrandUpdate, BrandResponse, BrandListResponse
from evm_dealer.schemas.common import MessageResponse
from evm_dealer.services import brand_service
from evm_dealer.services.common import get_or_404, total_pages

router = APIRouter()


async def build_brand_response(db: AsyncSession, brand: Brand) -> BrandResponse:
    dealer_count, product_count = await brand_service.brand_counts(db, brand.id)
    return BrandResponse(
        id=brand.id,
        brand_name=brand.brand_name,
        headquarters_address=brand.headquarters_address,
        tax_code=brand.tax_code,
        contact_info=brand.contact_info,
        dealer_count=dealer_count,
        product_count=product_count,
        created_at=brand.created_at
    )


@router.get("/", response_model=BrandListResponse, dependencies=[Depends(get_current_user)])
async def list_brands(
    *,
    db: AsyncSession = Depends(get_db),
    page: int = Query(0, ge=0),
    size: int = Query(20, ge=1, le=100),
    keyword: Optional[str] = Query(None, description="Name, address or tax code"),
    sort_by: Optional[str] = Query(None, description="name_asc, name_desc, date_asc, date_desc")
) -> Any:
    brands, total = await brand_service.search_brands(db, page, size, keyword=keyword, sort_by=sort_by)
    return BrandListResponse(
        data=[await build_brand_response(db, b) for b in brands],
        total=total,
        page=page,
        size=size,
        total_pages=total_pages(total, size)
    )


@router.get("/{brand_id}", response_model=BrandResponse, dependencies=[Depends(get_current_user)])
async def get_brand(brand_id: int, db: AsyncSession = Depends(get_db)) -> Any:
    brand = await get_or_404(db, Brand, brand_id)
    return await build_brand_response(db, brand)


@router.post("/", response_model=BrandResponse, status_code=201, dependencies=[Depends(require_roles(*CATALOG_WRITE))])
async def create_brand(*, db: AsyncSession = Depends(get_db), brand_in: BrandCreate) -> Any:
    brand = await brand_service.create_brand(db, brand_in)
    return await build_brand_response(db, brand)


@router.put("/{brand_id}", response_model=BrandResponse, dependencies=[Depends(require_roles(*CATALOG_WRITE))])
async def update_brand(*, db: AsyncSession = Depends(get_db), brand_id: int, brand_in: BrandUpdate) -> Any:
    brand = await brand_service.update_brand(db, brand_id, brand_in)
    return await build_brand_response(db, brand)


@router.delete("/{brand_id}", response_model=MessageResponse, dependencies=[Depends(require_roles(*CATALOG_WRITE))])
async def delete_brand(brand_id: int, db: AsyncSession = Depends(get_db)) -> Any:
    """Fails while dealers, products or users still reference the brand"""
    await brand_service.delete_brand(db, brand_id)
    return MessageResponse(message="Brand deleted")
