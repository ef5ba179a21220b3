"""
Quotations
DRAFT -> SENT -> ACCEPTED -> CONVERTED, with REJECTED and EXPIRED as dead ends.
"""

from datetime import date, datetime, timedelta
from typing import List, Optional, Tuple

from fastapi import HTTPException
from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from evm_dealer.core.config import settings
from evm_dealer.core.logging_config import get_logger
from evm_dealer.models import (
    Customer, Dealer, OrderPromotion, OrderStatus, Product, Quotation,
    QuotationPromotion, QuotationStatus, SalesOrder, User
)
from evm_dealer.schemas.quotation import QuotationCreate, QuotationUpdate
from evm_dealer.services import pricing, promotion_service
from evm_dealer.services.common import get_or_404, like, list_where, paginate

logger = get_logger(__name__)

SORT_OPTIONS = {
    "date_asc": Quotation.quotation_date.asc(),
    "date_desc": Quotation.quotation_date.desc(),
    "price_asc": Quotation.total_price.asc(),
    "price_desc": Quotation.total_price.desc(),
    "valid_until_asc": Quotation.valid_until.asc(),
    "valid_until_desc": Quotation.valid_until.desc(),
}


async def generate_quotation_number(db: AsyncSession, year: Optional[int] = None) -> str:
    """QT-{year}-{seq:05d}, seq continuing from the existing count"""
    prefix = f"QT-{year or date.today().year}-"
    result = await db.execute(select(func.count(Quotation.id)))
    seq = (result.scalar() or 0) + 1
    while True:
        number = f"{prefix}{seq:05d}"
        taken = await db.execute(select(Quotation.id).where(Quotation.quotation_number == number))
        if not taken.first():
            return number
        seq += 1


def _apply_pricing(quotation: Quotation, promotions) -> None:
    breakdown = pricing.calculate(quotation.base_price, quotation.registration_fee, promotions)
    quotation.base_price = breakdown.base_price
    quotation.vat = breakdown.vat
    quotation.registration_fee = breakdown.registration_fee
    quotation.discount_amount = breakdown.discount_amount
    quotation.total_price = breakdown.total_price
    quotation.quotation_promotions = [
        QuotationPromotion(promotion_id=promotion.id, applied_amount=amount)
        for promotion, amount in breakdown.applied
    ]


def _require_status(quotation: Quotation, *statuses: str, action: str) -> None:
    if quotation.status not in statuses:
        raise HTTPException(
            status_code=400,
            detail=f"Cannot {action} quotation in status {quotation.status}"
        )


async def create_quotation(db: AsyncSession, data: QuotationCreate, current_user: User) -> Quotation:
    product = await get_or_404(db, Product, data.product_id)
    await get_or_404(db, Customer, data.customer_id)
    sales_person = current_user
    if data.sales_person_id and data.sales_person_id != current_user.id:
        sales_person = await get_or_404(db, User, data.sales_person_id, "Sales person")

    dealer_id = data.dealer_id or sales_person.dealer_id
    if dealer_id is None:
        raise HTTPException(status_code=400, detail="Dealer is required for a quotation")
    await get_or_404(db, Dealer, dealer_id)

    quotation_date = data.quotation_date or date.today()
    valid_until = data.valid_until or quotation_date + timedelta(days=settings.QUOTATION_VALIDITY_DAYS)
    if valid_until < quotation_date:
        raise HTTPException(status_code=400, detail="Valid until must be on or after the quotation date")

    promotions = await promotion_service.load_promotions(db, data.promotion_ids)
    quotation = Quotation(
        quotation_number=await generate_quotation_number(db, quotation_date.year),
        quotation_date=quotation_date,
        valid_until=valid_until,
        base_price=data.base_price if data.base_price is not None else product.msrp,
        registration_fee=data.registration_fee,
        status=QuotationStatus.DRAFT,
        notes=data.notes,
        terms_and_conditions=data.terms_and_conditions,
        product_id=product.id,
        customer_id=data.customer_id,
        sales_person_id=sales_person.id,
        dealer_id=dealer_id
    )
    _apply_pricing(quotation, promotions)
    db.add(quotation)
    await db.commit()
    logger.info(f"Created quotation {quotation.quotation_number} total={quotation.total_price}")
    return await get_or_404(db, Quotation, quotation.id)


async def update_quotation(db: AsyncSession, quotation_id: int, data: QuotationUpdate) -> Quotation:
    quotation = await get_or_404(db, Quotation, quotation_id)
    _require_status(quotation, QuotationStatus.DRAFT, action="update")

    update_data = data.model_dump(exclude_unset=True)
    promotion_ids = update_data.pop("promotion_ids", None)
    if "product_id" in update_data:
        await get_or_404(db, Product, update_data["product_id"])
    if "customer_id" in update_data:
        await get_or_404(db, Customer, update_data["customer_id"])
    for field, value in update_data.items():
        setattr(quotation, field, value)

    if promotion_ids is None:
        promotions = [qp.promotion for qp in quotation.quotation_promotions]
    else:
        promotions = await promotion_service.load_promotions(db, promotion_ids)
    _apply_pricing(quotation, promotions)
    await db.commit()
    return await get_or_404(db, Quotation, quotation_id)


async def delete_quotation(db: AsyncSession, quotation_id: int) -> None:
    quotation = await get_or_404(db, Quotation, quotation_id)
    _require_status(quotation, QuotationStatus.DRAFT, action="delete")
    if quotation.sales_order_id:
        raise HTTPException(
            status_code=400,
            detail=f"Quotation was converted to order {quotation.sales_order_id} and cannot be deleted"
        )
    await db.delete(quotation)
    await db.commit()
    logger.info(f"Deleted quotation {quotation.quotation_number}")


async def recalculate(db: AsyncSession, quotation_id: int) -> Quotation:
    """Recompute prices from the stored base price, fee and promotions"""
    quotation = await get_or_404(db, Quotation, quotation_id)
    _require_status(quotation, QuotationStatus.DRAFT, QuotationStatus.SENT, action="recalculate")
    _apply_pricing(quotation, [qp.promotion for qp in quotation.quotation_promotions])
    await db.commit()
    return await get_or_404(db, Quotation, quotation_id)


async def send_quotation(db: AsyncSession, quotation_id: int) -> Quotation:
    quotation = await get_or_404(db, Quotation, quotation_id)
    _require_status(quotation, QuotationStatus.DRAFT, action="send")
    quotation.status = QuotationStatus.SENT
    await db.commit()
    logger.info(f"Quotation {quotation.quotation_number} sent")
    return await get_or_404(db, Quotation, quotation_id)


async def accept_quotation(db: AsyncSession, quotation_id: int) -> Quotation:
    quotation = await get_or_404(db, Quotation, quotation_id)
    _require_status(quotation, QuotationStatus.SENT, action="accept")
    if quotation.is_expired:
        raise HTTPException(status_code=400, detail="Quotation has expired")
    quotation.status = QuotationStatus.ACCEPTED
    await db.commit()
    logger.info(f"Quotation {quotation.quotation_number} accepted")
    return await get_or_404(db, Quotation, quotation_id)


async def reject_quotation(db: AsyncSession, quotation_id: int) -> Quotation:
    quotation = await get_or_404(db, Quotation, quotation_id)
    _require_status(quotation, QuotationStatus.DRAFT, QuotationStatus.SENT, action="reject")
    quotation.status = QuotationStatus.REJECTED
    await db.commit()
    logger.info(f"Quotation {quotation.quotation_number} rejected")
    return await get_or_404(db, Quotation, quotation_id)


async def convert_to_order(db: AsyncSession, quotation_id: int) -> SalesOrder:
    """Create a PENDING order without a vehicle carrying the quotation's prices and promotions"""
    quotation = await get_or_404(db, Quotation, quotation_id)
    if quotation.status != QuotationStatus.ACCEPTED:
        raise HTTPException(status_code=400, detail="Only accepted quotations can be converted to orders")
    if quotation.sales_order_id:
        raise HTTPException(status_code=400, detail="Quotation has already been converted to an order")
    if quotation.is_expired:
        raise HTTPException(status_code=400, detail="Quotation has expired")

    order = SalesOrder(
        order_date=datetime.utcnow(),
        base_price=quotation.base_price,
        vat=quotation.vat,
        registration_fee=quotation.registration_fee,
        discount_amount=quotation.discount_amount,
        total_price=quotation.total_price,
        status=OrderStatus.PENDING,
        notes=quotation.notes,
        product_id=quotation.product_id,
        dealer_id=quotation.dealer_id,
        customer_id=quotation.customer_id,
        sales_person_id=quotation.sales_person_id,
        order_promotions=[
            OrderPromotion(promotion_id=qp.promotion_id) for qp in quotation.quotation_promotions
        ]
    )
    db.add(order)
    await db.flush()

    quotation.status = QuotationStatus.CONVERTED
    quotation.sales_order_id = order.id
    await db.commit()
    logger.info(f"Quotation {quotation.quotation_number} converted to order {order.id}")
    return await get_or_404(db, SalesOrder, order.id, "Sales order")


async def auto_expire(db: AsyncSession, today: Optional[date] = None) -> int:
    """Mark SENT quotations past their validity date EXPIRED; returns how many changed"""
    today = today or date.today()
    quotations = await list_where(
        db, Quotation,
        Quotation.status == QuotationStatus.SENT,
        Quotation.valid_until < today
    )
    for quotation in quotations:
        quotation.status = QuotationStatus.EXPIRED
    await db.commit()
    if quotations:
        logger.info(f"Expired {len(quotations)} quotations")
    return len(quotations)


async def list_expired(db: AsyncSession) -> List[Quotation]:
    """Quotations already EXPIRED or still SENT past their validity date"""
    return await list_where(
        db, Quotation,
        or_(
            Quotation.status == QuotationStatus.EXPIRED,
            (Quotation.status == QuotationStatus.SENT) & (Quotation.valid_until < date.today())
        ),
        order_by=[Quotation.valid_until.desc()]
    )


async def list_by_customer(db: AsyncSession, customer_id: int) -> List[Quotation]:
    await get_or_404(db, Customer, customer_id)
    return await list_where(db, Quotation, Quotation.customer_id == customer_id,
                            order_by=[Quotation.quotation_date.desc(), Quotation.id.desc()])


async def list_by_sales_person(db: AsyncSession, user_id: int) -> List[Quotation]:
    return await list_where(db, Quotation, Quotation.sales_person_id == user_id,
                            order_by=[Quotation.quotation_date.desc(), Quotation.id.desc()])


async def get_by_number(db: AsyncSession, number: str) -> Quotation:
    result = await db.execute(select(Quotation).where(Quotation.quotation_number == number))
    quotation = result.scalars().unique().first()
    if quotation is None:
        raise HTTPException(status_code=404, detail=f"Quotation not found with number: {number}")
    return quotation


async def search_quotations(db: AsyncSession, page: int, size: int, keyword: Optional[str] = None,
                            status: Optional[str] = None, customer_id: Optional[int] = None,
                            sales_person_id: Optional[int] = None, dealer_id: Optional[int] = None,
                            product_id: Optional[int] = None, from_date: Optional[date] = None,
                            to_date: Optional[date] = None,
                            sort_by: Optional[str] = None) -> Tuple[List[Quotation], int]:
    conditions = []
    joins = []
    if keyword:
        joins.append(Quotation.customer)
        conditions.append(or_(
            Quotation.quotation_number.ilike(like(keyword)),
            Customer.full_name.ilike(like(keyword)),
        ))
    if status:
        conditions.append(Quotation.status == status.upper())
    if customer_id:
        conditions.append(Quotation.customer_id == customer_id)
    if sales_person_id:
        conditions.append(Quotation.sales_person_id == sales_person_id)
    if dealer_id:
        conditions.append(Quotation.dealer_id == dealer_id)
    if product_id:
        conditions.append(Quotation.product_id == product_id)
    if from_date:
        conditions.append(Quotation.quotation_date >= from_date)
    if to_date:
        conditions.append(Quotation.quotation_date <= to_date)
    order = SORT_OPTIONS.get(sort_by or "", Quotation.quotation_date.desc())
    return await paginate(db, Quotation, conditions, [order, Quotation.id.desc()], page, size, joins=joins)
