"""
Quotation models
A priced offer to a customer for one product, convertible into a sales order
"""

from datetime import datetime, date
from decimal import Decimal
from sqlalchemy import Column, Integer, String, Text, Date, DateTime, ForeignKey, DECIMAL
from sqlalchemy.orm import relationship
from evm_dealer.db.base import Base


class QuotationStatus:
    DRAFT = "DRAFT"
    SENT = "SENT"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"
    EXPIRED = "EXPIRED"
    CONVERTED = "CONVERTED"

    ALL = (DRAFT, SENT, ACCEPTED, REJECTED, EXPIRED, CONVERTED)


class Quotation(Base):
    __tablename__ = "quotations"

    id = Column(Integer, primary_key=True, index=True)
    quotation_number = Column(String(30), nullable=False, unique=True, index=True, comment="QT-YYYY-NNNNN")
    quotation_date = Column(Date, nullable=False, default=date.today)
    valid_until = Column(Date, nullable=False)

    base_price = Column(DECIMAL(15, 2), nullable=False, default=Decimal("0.00"))
    vat = Column(DECIMAL(15, 2), nullable=False, default=Decimal("0.00"))
    registration_fee = Column(DECIMAL(15, 2), nullable=False, default=Decimal("0.00"))
    discount_amount = Column(DECIMAL(15, 2), nullable=False, default=Decimal("0.00"))
    total_price = Column(DECIMAL(15, 2), nullable=False, default=Decimal("0.00"))

    status = Column(String(20), nullable=False, default=QuotationStatus.DRAFT, index=True)
    notes = Column(Text)
    terms_and_conditions = Column(Text)

    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)
    sales_person_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    dealer_id = Column(Integer, ForeignKey("dealers.id"), nullable=False, index=True)
    sales_order_id = Column(Integer, ForeignKey("sales_orders.id"), index=True, comment="Set on conversion")

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    product = relationship("Product", lazy="joined")
    customer = relationship("Customer", lazy="joined")
    sales_person = relationship("User", lazy="joined")
    dealer = relationship("Dealer", lazy="joined")
    quotation_promotions = relationship(
        "QuotationPromotion", lazy="selectin", cascade="all, delete-orphan"
    )

    def __repr__(self):
        return f"<Quotation {self.quotation_number} {self.status}>"

    @property
    def is_expired(self) -> bool:
        return self.valid_until is not None and self.valid_until < date.today()

    @property
    def days_until_expiry(self) -> int:
        if self.valid_until is None:
            return 0
        return (self.valid_until - date.today()).days

    @property
    def can_convert_to_order(self) -> bool:
        return (
            self.status == QuotationStatus.ACCEPTED
            and self.sales_order_id is None
            and not self.is_expired
        )


class QuotationPromotion(Base):
    __tablename__ = "quotation_promotions"

    id = Column(Integer, primary_key=True, index=True)
    quotation_id = Column(Integer, ForeignKey("quotations.id", ondelete="CASCADE"), nullable=False, index=True)
    promotion_id = Column(Integer, ForeignKey("promotions.id"), nullable=False, index=True)
    applied_amount = Column(DECIMAL(15, 2), nullable=False, default=Decimal("0.00"))

    promotion = relationship("Promotion", lazy="joined")
