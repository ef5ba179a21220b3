"""
Sell-in models
A dealer's request for new stock from the brand warehouse, and its shipment
"""

from datetime import datetime, date
from sqlalchemy import Column, Integer, String, Text, Date, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from evm_dealer.db.base import Base


class SellInStatus:
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    IN_TRANSIT = "IN_TRANSIT"
    DELIVERED = "DELIVERED"

    ALL = (PENDING, APPROVED, REJECTED, IN_TRANSIT, DELIVERED)


class SellInRequest(Base):
    __tablename__ = "sell_in_requests"

    id = Column(Integer, primary_key=True, index=True)
    request_number = Column(String(30), nullable=False, unique=True, index=True, comment="SIR-YYYY-NNNNN")
    request_date = Column(Date, nullable=False, default=date.today)
    expected_delivery_date = Column(Date)
    actual_delivery_date = Column(Date)
    status = Column(String(20), nullable=False, default=SellInStatus.PENDING, index=True)
    notes = Column(Text)
    approval_notes = Column(Text)
    delivery_address = Column(String(255))

    dealer_id = Column(Integer, ForeignKey("dealers.id"), nullable=False, index=True)
    requested_by_id = Column(Integer, ForeignKey("users.id"))
    approved_by_id = Column(Integer, ForeignKey("users.id"))
    approved_at = Column(DateTime)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    dealer = relationship("Dealer", lazy="joined")
    requested_by = relationship("User", foreign_keys=[requested_by_id], lazy="joined")
    approved_by = relationship("User", foreign_keys=[approved_by_id], lazy="joined")
    details = relationship(
        "SellInRequestDetail", lazy="selectin", cascade="all, delete-orphan",
        order_by="SellInRequestDetail.id"
    )

    def __repr__(self):
        return f"<SellInRequest {self.request_number} {self.status}>"

    @property
    def can_approve(self) -> bool:
        return self.status == SellInStatus.PENDING

    @property
    def can_reject(self) -> bool:
        return self.status == SellInStatus.PENDING

    @property
    def can_cancel(self) -> bool:
        return self.status in (SellInStatus.PENDING, SellInStatus.APPROVED)

    @property
    def days_until_expected_delivery(self):
        if not self.expected_delivery_date or self.expected_delivery_date <= date.today():
            return None
        return (self.expected_delivery_date - date.today()).days

    @property
    def total_quantity(self) -> int:
        return sum(d.requested_quantity or 0 for d in self.details)


class SellInRequestDetail(Base):
    __tablename__ = "sell_in_request_details"

    id = Column(Integer, primary_key=True, index=True)
    request_id = Column(Integer, ForeignKey("sell_in_requests.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    color = Column(String(50))
    requested_quantity = Column(Integer, nullable=False)
    approved_quantity = Column(Integer)
    delivered_quantity = Column(Integer)
    notes = Column(Text)

    product = relationship("Product", lazy="joined")


class DistributionOrder(Base):
    """Shipment from the brand warehouse opened when a sell-in request ships"""
    __tablename__ = "distribution_orders"

    id = Column(Integer, primary_key=True, index=True)
    request_id = Column(Integer, ForeignKey("sell_in_requests.id"), nullable=False, index=True)
    dealer_id = Column(Integer, ForeignKey("dealers.id"), nullable=False, index=True)
    brand_id = Column(Integer, ForeignKey("brands.id"), index=True)
    approver_id = Column(Integer, ForeignKey("users.id"))
    order_date = Column(DateTime, default=datetime.utcnow)
    shipment_date = Column(DateTime)
    delivery_date = Column(DateTime)
    status = Column(String(20), nullable=False, default=SellInStatus.IN_TRANSIT)
    total_quantity = Column(Integer, nullable=False, default=0)
    tracking_number = Column(String(100))
