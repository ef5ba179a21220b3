"""
Sales order and payment models
"""

from datetime import datetime
from decimal import Decimal
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, DECIMAL
from sqlalchemy.orm import relationship
from evm_dealer.db.base import Base


class OrderStatus:
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    PAID = "PAID"
    DELIVERED = "DELIVERED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"

    ALL = (PENDING, CONFIRMED, PAID, DELIVERED, COMPLETED, CANCELLED)


class PaymentStatus:
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"

    ALL = (PENDING, COMPLETED, FAILED, REFUNDED)


PAYMENT_METHODS = ("CASH", "BANK_TRANSFER", "CREDIT_CARD", "INSTALLMENT")
PAYMENT_TYPES = ("ORDER_PAYMENT", "DEPOSIT", "INSTALLMENT", "FINAL_PAYMENT")


class SalesOrder(Base):
    __tablename__ = "sales_orders"

    id = Column(Integer, primary_key=True, index=True)
    order_date = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)

    # Pricing, all rounded to 2 places
    base_price = Column(DECIMAL(15, 2), nullable=False, default=Decimal("0.00"))
    vat = Column(DECIMAL(15, 2), nullable=False, default=Decimal("0.00"))
    registration_fee = Column(DECIMAL(15, 2), nullable=False, default=Decimal("0.00"))
    discount_amount = Column(DECIMAL(15, 2), nullable=False, default=Decimal("0.00"))
    total_price = Column(DECIMAL(15, 2), nullable=False, default=Decimal("0.00"))

    status = Column(String(20), nullable=False, default=OrderStatus.PENDING, index=True)
    notes = Column(Text)

    # Vehicle may be assigned later for orders converted from quotations
    vehicle_id = Column(String(50), ForeignKey("vehicles.id"), index=True)
    product_id = Column(Integer, ForeignKey("products.id"), index=True, comment="Ordered model")
    dealer_id = Column(Integer, ForeignKey("dealers.id"), index=True, comment="Selling dealer")
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)
    sales_person_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    vehicle = relationship("Vehicle", lazy="joined")
    product = relationship("Product", lazy="joined")
    dealer = relationship("Dealer", lazy="joined")
    customer = relationship("Customer", lazy="joined")
    sales_person = relationship("User", lazy="joined")
    payments = relationship("Payment", lazy="selectin", order_by="Payment.payment_date")
    order_promotions = relationship(
        "OrderPromotion", lazy="selectin", cascade="all, delete-orphan"
    )

    def __repr__(self):
        return f"<SalesOrder {self.id} {self.status}>"

    @property
    def paid_amount(self) -> Decimal:
        """Sum of completed payments"""
        return sum(
            (p.amount or Decimal("0") for p in self.payments if p.status == PaymentStatus.COMPLETED),
            Decimal("0")
        )

    @property
    def remaining_amount(self) -> Decimal:
        return (self.total_price or Decimal("0")) - self.paid_amount

    @property
    def is_paid(self) -> bool:
        return self.remaining_amount <= 0

    @property
    def can_cancel(self) -> bool:
        return self.status not in (OrderStatus.COMPLETED, OrderStatus.CANCELLED)


class OrderPromotion(Base):
    __tablename__ = "order_promotions"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("sales_orders.id", ondelete="CASCADE"), nullable=False, index=True)
    promotion_id = Column(Integer, ForeignKey("promotions.id"), nullable=False, index=True)

    promotion = relationship("Promotion", lazy="joined")


class Payment(Base):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True)
    payment_date = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
    amount = Column(DECIMAL(15, 2), nullable=False)
    payment_method = Column(String(30), nullable=False, default="CASH")
    payment_type = Column(String(30), nullable=False, default="ORDER_PAYMENT")
    reference_number = Column(String(100), index=True, comment="Bank/transaction reference")
    status = Column(String(20), nullable=False, default=PaymentStatus.PENDING, index=True)
    notes = Column(Text)

    order_id = Column(Integer, ForeignKey("sales_orders.id"), nullable=False, index=True)
    payer_id = Column(Integer, ForeignKey("customers.id"), index=True)

    created_at = Column(DateTime, default=datetime.utcnow)

    payer = relationship("Customer", lazy="joined")

    def __repr__(self):
        return f"<Payment {self.id} {self.amount} {self.status}>"
