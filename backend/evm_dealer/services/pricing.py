"""
Vehicle price calculation shared by quotations and sales orders

    vat      = base * VAT_RATE
    discount = sum of promotion discounts (percentage of base, or fixed amount)
    total    = base + vat + registration_fee - discount

Every amount is rounded HALF_UP to 2 places.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, List, Optional, Sequence, Tuple

from evm_dealer.core.config import settings
from evm_dealer.models.promotion import DiscountType, Promotion
from evm_dealer.services.common import money, to_decimal


def vat_rate() -> Decimal:
    return to_decimal(settings.VAT_RATE)


def promotion_discount(promotion: Promotion, base_price: Any) -> Decimal:
    base_price = to_decimal(base_price)
    value = to_decimal(promotion.discount_value)
    if promotion.discount_type == DiscountType.PERCENTAGE:
        return money(base_price * value / 100)
    return money(value)


@dataclass
class PriceBreakdown:
    base_price: Decimal
    vat: Decimal
    registration_fee: Decimal
    discount_amount: Decimal
    total_price: Decimal
    applied: List[Tuple[Promotion, Decimal]] = field(default_factory=list)


def calculate(base_price: Any, registration_fee: Optional[Any] = None,
              promotions: Sequence[Promotion] = ()) -> PriceBreakdown:
    base = money(base_price)
    fee = money(registration_fee or 0)
    vat = money(base * vat_rate())

    applied = [(p, promotion_discount(p, base)) for p in promotions]
    discount = money(sum((amount for _, amount in applied), Decimal("0")))
    total = money(base + vat + fee - discount)

    return PriceBreakdown(
        base_price=base,
        vat=vat,
        registration_fee=fee,
        discount_amount=discount,
        total_price=total,
        applied=applied
    )
