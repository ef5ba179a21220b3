"""Product catalog API"""

from typing import Any, List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from evm_dealer.core.deps import get_db, get_current_user, require_roles
from evm_dealer.core.permissions import CATALOG_WRITE
from evm_dealer.models.product import Product
from evm_dealer.schemas.common import MessageResponse
from evm_dealer.schemas.product import (
    ProductCreate, ProductUpdate, ProductResponse, ProductListResponse, TechnicalSpecs,
    FeatureCreate, FeatureResponse, VariantCreate, VariantUpdate, VariantResponse,
    ComparedProduct, ComparisonSummary, ComparisonResponse, BestPick
)
from evm_dealer.services import product_service
from evm_dealer.services.common import get_or_404, total_pages

router = APIRouter()

catalog_write = require_roles(*CATALOG_WRITE)


def build_product_response(product: Product) -> ProductResponse:
    return ProductResponse(
        id=product.id,
        product_name=product.product_name,
        version=product.version,
        msrp=float(product.msrp or 0),
        specifications=product.specifications,
        description=product.description,
        image_url=product.image_url,
        video_url=product.video_url,
        is_active=product.is_active,
        brand_id=product.brand_id,
        brand_name=product.brand.brand_name if product.brand else None,
        technical_specs=TechnicalSpecs.model_validate(product),
        features=[FeatureResponse.model_validate(f) for f in product.features],
        variants=[VariantResponse.model_validate(v) for v in product.variants],
        total_variant_quantity=sum(v.available_quantity or 0 for v in product.variants),
        created_at=product.created_at
    )


def build_comparison(products: List[Product], needs: Optional[str] = None) -> ComparisonResponse:
    analysis, winners = product_service.compare(products)
    by_id = {p.id: p for p in products}

    def pick(metric: str, value_key: Optional[str] = None, unit: str = "") -> Optional[BestPick]:
        product_id = winners.get(metric)
        if product_id is None:
            return None
        value = analysis[product_id]["values"][value_key or metric]
        return BestPick(
            product_id=product_id,
            product_name=by_id[product_id].display_name,
            value=f"{value:g} {unit}".rstrip() if unit else value
        )

    compared = []
    for p in products:
        values = analysis[p.id]["values"]
        compared.append(ComparedProduct(
            id=p.id,
            product_name=p.product_name,
            version=p.version,
            brand_name=p.brand.brand_name if p.brand else None,
            image_url=p.image_url,
            msrp=values["msrp"],
            range_km=values["range_km"],
            power=values["power"],
            battery_capacity=values["battery_capacity"],
            top_speed=values["top_speed"],
            charging_time=values["charging_time"],
            weight=values["weight"],
            features=[f.feature_name for f in p.features],
            colors=[v.color for v in p.variants],
            advantages=analysis[p.id]["advantages"],
            disadvantages=analysis[p.id]["disadvantages"],
            recommendation=product_service.recommend(p, needs, winners) if needs else None
        ))

    return ComparisonResponse(
        products=compared,
        summary=ComparisonSummary(
            best_range=pick("range_km", unit="km"),
            best_power=pick("power", unit="HP"),
            best_battery=pick("battery_capacity", unit="kWh"),
            fastest_charging=pick("charging_time", unit="min"),
            cheapest=pick("msrp"),
            most_expensive=pick("most_expensive", value_key="msrp")
        )
    )


@router.get("/", response_model=ProductListResponse, dependencies=[Depends(get_current_user)])
async def list_products(
    *,
    db: AsyncSession = Depends(get_db),
    page: int = Query(0, ge=0),
    size: int = Query(20, ge=1, le=100),
    keyword: Optional[str] = Query(None),
    brand_id: Optional[int] = Query(None),
    is_active: Optional[bool] = Query(None),
    min_price: Optional[float] = Query(None, ge=0),
    max_price: Optional[float] = Query(None, ge=0),
    sort_by: Optional[str] = Query(None, description="name_asc, name_desc, price_asc, price_desc, date_asc, date_desc")
) -> Any:
    products, total = await product_service.search_products(
        db, page, size, keyword=keyword, brand_id=brand_id, is_active=is_active,
        min_price=min_price, max_price=max_price, sort_by=sort_by
    )
    return ProductListResponse(
        data=[build_product_response(p) for p in products],
        total=total,
        page=page,
        size=size,
        total_pages=total_pages(total, size)
    )


@router.get("/catalog", response_model=List[ProductResponse], dependencies=[Depends(get_current_user)])
async def product_catalog(
    db: AsyncSession = Depends(get_db),
    brand_id: Optional[int] = Query(None)
) -> Any:
    """Active products only"""
    return [build_product_response(p) for p in await product_service.list_catalog(db, brand_id)]


@router.get("/compare", response_model=ComparisonResponse, dependencies=[Depends(get_current_user)])
async def compare_products(
    db: AsyncSession = Depends(get_db),
    ids: List[int] = Query(..., description="2 to 3 product ids"),
    criteria: Optional[str] = Query(None, description="RANGE, POWER, BATTERY, PRICE, CHARGING_TIME"),
    needs: Optional[str] = Query(None, description="LONG_RANGE, PERFORMANCE, BUDGET, FAMILY")
) -> Any:
    products = await product_service.load_for_comparison(db, ids)
    if criteria:
        products = product_service.sort_by_criteria(products, criteria)
    return build_comparison(products, needs)


@router.get("/{product_id}", response_model=ProductResponse, dependencies=[Depends(get_current_user)])
async def get_product(product_id: int, db: AsyncSession = Depends(get_db)) -> Any:
    return build_product_response(await get_or_404(db, Product, product_id))


@router.post("/", response_model=ProductResponse, status_code=201, dependencies=[Depends(catalog_write)])
async def create_product(*, db: AsyncSession = Depends(get_db), product_in: ProductCreate) -> Any:
    return build_product_response(await product_service.create_product(db, product_in))


@router.put("/{product_id}", response_model=ProductResponse, dependencies=[Depends(catalog_write)])
async def update_product(*, db: AsyncSession = Depends(get_db), product_id: int, product_in: ProductUpdate) -> Any:
    return build_product_response(await product_service.update_product(db, product_id, product_in))


@router.patch("/{product_id}/deactivate", response_model=ProductResponse, dependencies=[Depends(catalog_write)])
async def deactivate_product(product_id: int, db: AsyncSession = Depends(get_db)) -> Any:
    """Soft delete"""
    return build_product_response(await product_service.deactivate_product(db, product_id))


@router.delete("/{product_id}", response_model=MessageResponse, dependencies=[Depends(catalog_write)])
async def delete_product(product_id: int, db: AsyncSession = Depends(get_db)) -> Any:
    await product_service.delete_product(db, product_id)
    return MessageResponse(message="Product deleted")


@router.post("/{product_id}/variants", response_model=ProductResponse, status_code=201, dependencies=[Depends(catalog_write)])
async def add_variant(*, db: AsyncSession = Depends(get_db), product_id: int, variant_in: VariantCreate) -> Any:
    return build_product_response(await product_service.add_variant(db, product_id, variant_in))


@router.put("/{product_id}/variants/{variant_id}", response_model=ProductResponse, dependencies=[Depends(catalog_write)])
async def update_variant(*, db: AsyncSession = Depends(get_db), product_id: int, variant_id: int,
                         variant_in: VariantUpdate) -> Any:
    return build_product_response(await product_service.update_variant(db, product_id, variant_id, variant_in))


@router.delete("/{product_id}/variants/{variant_id}", response_model=ProductResponse, dependencies=[Depends(catalog_write)])
async def delete_variant(product_id: int, variant_id: int, db: AsyncSession = Depends(get_db)) -> Any:
    return build_product_response(await product_service.delete_variant(db, product_id, variant_id))


@router.post("/{product_id}/features", response_model=ProductResponse, status_code=201, dependencies=[Depends(catalog_write)])
async def add_feature(*, db: AsyncSession = Depends(get_db), product_id: int, feature_in: FeatureCreate) -> Any:
    return build_product_response(await product_service.add_feature(db, product_id, feature_in))


@router.delete("/{product_id}/features/{feature_id}", response_model=ProductResponse, dependencies=[Depends(catalog_write)])
async def delete_feature(product_id: int, feature_id: int, db: AsyncSession = Depends(get_db)) -> Any:
    return build_product_response(await product_service.delete_feature(db, product_id, feature_id))
