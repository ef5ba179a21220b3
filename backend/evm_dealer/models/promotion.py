from datetime import datetime
from decimal import Decimal
from sqlalchemy import Column, Integer, String, Text, Date, DateTime, DECIMAL
from evm_dealer.db.base import Base


class DiscountType:
    PERCENTAGE = "PERCENTAGE"
    FIXED = "FIXED"

    ALL = (PERCENTAGE, FIXED)


class Promotion(Base):
    """Discount campaign applicable to quotations and sales orders"""
    __tablename__ = "promotions"

    id = Column(Integer, primary_key=True, index=True)
    promotion_code = Column(String(50), nullable=False, unique=True, index=True, comment="Promotion code")
    promotion_name = Column(String(150), nullable=False, comment="Promotion name")
    description = Column(Text)
    discount_type = Column(String(20), nullable=False, default=DiscountType.PERCENTAGE)
    discount_value = Column(DECIMAL(15, 2), nullable=False, default=Decimal("0.00"),
                            comment="Percent (0-100) or fixed amount")
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    conditions = Column(Text, comment="Eligibility conditions")

    created_at = Column(DateTime, default=datetime.utcnow)

    def __repr__(self):
        return f"<Promotion {self.promotion_code}>"
