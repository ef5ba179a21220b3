"""
Product catalog
- products with embedded technical specs
- features and colour variants
- side-by-side comparison
"""

import re
from typing import Callable, Dict, List, Optional, Tuple

from fastapi import HTTPException
from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession

from evm_dealer.core.logging_config import get_logger
from evm_dealer.models import (
    Brand, Inventory, Product, ProductFeature, ProductVariant, SalesOrder, Vehicle
)
from evm_dealer.schemas.product import (
    ProductCreate, ProductUpdate, VariantCreate, VariantUpdate, FeatureCreate, TechnicalSpecs
)
from evm_dealer.services.common import count_where, get_or_404, like, list_where, money, paginate

logger = get_logger(__name__)

SPEC_FIELDS = tuple(TechnicalSpecs.model_fields.keys())

SORT_OPTIONS = {
    "name_asc": Product.product_name.asc(),
    "name_desc": Product.product_name.desc(),
    "price_asc": Product.msrp.asc(),
    "price_desc": Product.msrp.desc(),
    "date_asc": Product.created_at.asc(),
    "date_desc": Product.created_at.desc(),
}


def _apply_specs(product: Product, specs: Optional[TechnicalSpecs]) -> None:
    if specs is None:
        return
    for field, value in specs.model_dump(exclude_unset=True).items():
        setattr(product, field, value)


async def create_product(db: AsyncSession, data: ProductCreate) -> Product:
    if data.brand_id is not None:
        await get_or_404(db, Brand, data.brand_id)

    colors = [v.color.lower() for v in data.variants]
    if len(colors) != len(set(colors)):
        raise HTTPException(status_code=400, detail="Duplicate variant colours")

    product = Product(
        product_name=data.product_name,
        version=data.version,
        msrp=money(data.msrp),
        specifications=data.specifications,
        description=data.description,
        image_url=data.image_url,
        video_url=data.video_url,
        is_active=data.is_active,
        brand_id=data.brand_id,
    )
    _apply_specs(product, data.technical_specs)
    product.features = [ProductFeature(**f.model_dump()) for f in data.features]
    product.variants = [ProductVariant(**v.model_dump()) for v in data.variants]

    db.add(product)
    await db.commit()
    logger.info(f"Created product {product.id}: {product.display_name}")
    return await get_or_404(db, Product, product.id)


async def update_product(db: AsyncSession, product_id: int, data: ProductUpdate) -> Product:
    product = await get_or_404(db, Product, product_id)
    update_data = data.model_dump(exclude_unset=True, exclude={"technical_specs", "features"})

    if update_data.get("brand_id") is not None:
        await get_or_404(db, Brand, update_data["brand_id"])
    if update_data.get("msrp") is not None:
        update_data["msrp"] = money(update_data["msrp"])
    for field, value in update_data.items():
        setattr(product, field, value)

    _apply_specs(product, data.technical_specs)
    if data.features is not None:
        product.features = [ProductFeature(**f.model_dump()) for f in data.features]

    await db.commit()
    return await get_or_404(db, Product, product_id)


async def deactivate_product(db: AsyncSession, product_id: int) -> Product:
    """Soft delete: hide from the catalog"""
    product = await get_or_404(db, Product, product_id)
    product.is_active = False
    await db.commit()
    logger.info(f"Deactivated product {product_id}")
    return product


async def delete_product(db: AsyncSession, product_id: int) -> None:
    product = await get_or_404(db, Product, product_id)
    checks = (
        ("vehicles", Vehicle.id, Vehicle.product_id == product_id),
        ("inventory records", Inventory.id, Inventory.product_id == product_id),
        ("sales orders", SalesOrder.id, SalesOrder.product_id == product_id),
    )
    for label, column, condition in checks:
        count = await count_where(db, column, condition)
        if count > 0:
            raise HTTPException(
                status_code=400,
                detail=f"Product is referenced by {count} {label}; deactivate it instead"
            )
    await db.delete(product)
    await db.commit()
    logger.info(f"Deleted product {product_id}")


async def search_products(db: AsyncSession, page: int, size: int, keyword: Optional[str] = None,
                          brand_id: Optional[int] = None, is_active: Optional[bool] = None,
                          min_price: Optional[float] = None, max_price: Optional[float] = None,
                          sort_by: Optional[str] = None) -> Tuple[List[Product], int]:
    conditions = []
    if keyword:
        conditions.append(or_(
            Product.product_name.ilike(like(keyword)),
            Product.version.ilike(like(keyword)),
            Product.description.ilike(like(keyword)),
        ))
    if brand_id is not None:
        conditions.append(Product.brand_id == brand_id)
    if is_active is not None:
        conditions.append(Product.is_active == is_active)
    if min_price is not None:
        conditions.append(Product.msrp >= money(min_price))
    if max_price is not None:
        conditions.append(Product.msrp <= money(max_price))
    order = SORT_OPTIONS.get(sort_by or "", Product.id.asc())
    return await paginate(db, Product, conditions, [order], page, size)


async def list_catalog(db: AsyncSession, brand_id: Optional[int] = None) -> List[Product]:
    conditions = [Product.is_active.is_(True)]
    if brand_id is not None:
        conditions.append(Product.brand_id == brand_id)
    return await list_where(db, Product, *conditions, order_by=[Product.product_name])


# ===== Variants / features =====

async def add_variant(db: AsyncSession, product_id: int, data: VariantCreate) -> Product:
    product = await get_or_404(db, Product, product_id)
    if any(v.color.lower() == data.color.lower() for v in product.variants):
        raise HTTPException(status_code=400, detail=f"Variant colour already exists: {data.color}")
    product.variants.append(ProductVariant(**data.model_dump()))
    await db.commit()
    return await get_or_404(db, Product, product_id)


async def update_variant(db: AsyncSession, product_id: int, variant_id: int, data: VariantUpdate) -> Product:
    product = await get_or_404(db, Product, product_id)
    variant = next((v for v in product.variants if v.id == variant_id), None)
    if variant is None:
        raise HTTPException(status_code=404, detail=f"Variant not found with id: {variant_id}")
    update_data = data.model_dump(exclude_unset=True)
    new_color = update_data.get("color")
    if new_color and any(v.id != variant_id and v.color.lower() == new_color.lower() for v in product.variants):
        raise HTTPException(status_code=400, detail=f"Variant colour already exists: {new_color}")
    for field, value in update_data.items():
        setattr(variant, field, value)
    await db.commit()
    return await get_or_404(db, Product, product_id)


async def delete_variant(db: AsyncSession, product_id: int, variant_id: int) -> Product:
    product = await get_or_404(db, Product, product_id)
    variant = next((v for v in product.variants if v.id == variant_id), None)
    if variant is None:
        raise HTTPException(status_code=404, detail=f"Variant not found with id: {variant_id}")
    product.variants.remove(variant)
    await db.commit()
    return await get_or_404(db, Product, product_id)


async def add_feature(db: AsyncSession, product_id: int, data: FeatureCreate) -> Product:
    product = await get_or_404(db, Product, product_id)
    product.features.append(ProductFeature(**data.model_dump()))
    await db.commit()
    return await get_or_404(db, Product, product_id)


async def delete_feature(db: AsyncSession, product_id: int, feature_id: int) -> Product:
    product = await get_or_404(db, Product, product_id)
    feature = next((f for f in product.features if f.id == feature_id), None)
    if feature is None:
        raise HTTPException(status_code=404, detail=f"Feature not found with id: {feature_id}")
    product.features.remove(feature)
    await db.commit()
    return await get_or_404(db, Product, product_id)


# ===== Comparison =====

_NUMBER = re.compile(r"-?\d+(?:[.,]\d+)?")


def parse_number(value: Optional[str]) -> Optional[float]:
    """First number in a spec string: '450 km' -> 450.0"""
    if not value:
        return None
    match = _NUMBER.search(str(value))
    if not match:
        return None
    return float(match.group().replace(",", "."))


def spec_values(product: Product) -> Dict[str, Optional[float]]:
    return {
        "range_km": parse_number(product.product_range),
        "power": parse_number(product.power),
        "battery_capacity": parse_number(product.battery_capacity),
        "top_speed": parse_number(product.max_speed),
        "charging_time": parse_number(product.charging_time),
        "weight": parse_number(product.weight),
        "msrp": float(product.msrp or 0),
    }


# metric -> (higher is better, label, unit)
COMPARE_METRICS = {
    "range_km": (True, "range", "km"),
    "power": (True, "power", "HP"),
    "battery_capacity": (True, "battery", "kWh"),
    "top_speed": (True, "top speed", "km/h"),
    "charging_time": (False, "charging time", "min"),
    "msrp": (False, "price", ""),
}

SORT_CRITERIA: Dict[str, Tuple[str, bool]] = {
    "RANGE": ("range_km", True),
    "POWER": ("power", True),
    "BATTERY": ("battery_capacity", True),
    "PRICE": ("msrp", False),
    "CHARGING_TIME": ("charging_time", False),
}


def _best(values: Dict[int, Dict[str, Optional[float]]], metric: str, highest: bool) -> Optional[int]:
    present = {pid: v[metric] for pid, v in values.items() if v[metric] is not None}
    if not present:
        return None
    pick: Callable = max if highest else min
    return pick(present, key=present.get)


async def load_for_comparison(db: AsyncSession, product_ids: List[int]) -> List[Product]:
    if not product_ids or len(product_ids) < 2 or len(product_ids) > 3:
        raise HTTPException(status_code=400, detail="Select 2 to 3 products to compare")
    if len(set(product_ids)) != len(product_ids):
        raise HTTPException(status_code=400, detail="Duplicate products in comparison")

    result = await db.execute(select(Product).where(Product.id.in_(product_ids)))
    products = {p.id: p for p in result.scalars().unique().all()}
    missing = [pid for pid in product_ids if pid not in products]
    if missing:
        raise HTTPException(status_code=400, detail=f"Product not found with id: {missing[0]}")
    return [products[pid] for pid in product_ids]


def compare(products: List[Product]) -> Tuple[Dict[int, Dict], Dict[str, Optional[int]]]:
    """
    Returns (per-product analysis, winners)
    analysis[id] = {"values": {...}, "advantages": [...], "disadvantages": [...]}
    winners[metric] = product id holding the best value
    """
    values = {p.id: spec_values(p) for p in products}
    analysis = {p.id: {"values": values[p.id], "advantages": [], "disadvantages": []} for p in products}
    winners: Dict[str, Optional[int]] = {}

    for metric, (higher_better, label, unit) in COMPARE_METRICS.items():
        best = _best(values, metric, higher_better)
        worst = _best(values, metric, not higher_better)
        winners[metric] = best
        if best is None or best == worst:
            continue
        best_value = values[best][metric]
        worst_value = values[worst][metric]
        analysis[best]["advantages"].append(f"Best {label}: {best_value:g} {unit}".rstrip())
        analysis[worst]["disadvantages"].append(f"Weakest {label}: {worst_value:g} {unit}".rstrip())

    winners["most_expensive"] = _best(values, "msrp", True)
    return analysis, winners


def sort_by_criteria(products: List[Product], criteria: str) -> List[Product]:
    if criteria.upper() not in SORT_CRITERIA:
        raise HTTPException(status_code=400, detail=f"Invalid comparison criteria: {criteria}")
    metric, descending = SORT_CRITERIA[criteria.upper()]
    with_value = [p for p in products if spec_values(p)[metric] is not None]
    without = [p for p in products if spec_values(p)[metric] is None]
    with_value.sort(key=lambda p: spec_values(p)[metric], reverse=descending)
    return with_value + without


def recommend(product: Product, needs: Optional[str], winners: Dict[str, Optional[int]]) -> str:
    """Short recommendation text for a customer's stated need"""
    needs = (needs or "").upper()
    if needs == "LONG_RANGE":
        if winners.get("range_km") == product.id:
            return "Longest range in this comparison, well suited for long trips"
        return "Better for city driving than long trips"
    if needs == "PERFORMANCE":
        if winners.get("power") == product.id:
            return "Most powerful option, for driving enthusiasts"
        return "Comfort-oriented rather than performance-oriented"
    if needs == "BUDGET":
        if winners.get("msrp") == product.id:
            return "Lowest price in this comparison"
        return "Costs more than the cheapest option"
    if needs == "FAMILY":
        seats = parse_number(product.seating_capacity)
        if seats and seats >= 7:
            return "Roomy enough for large families"
        return "Fits small families"
    return "Balanced choice for everyday use"
