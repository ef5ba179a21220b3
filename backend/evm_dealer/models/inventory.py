"""
Inventory model
Stock of one product at one dealer; dealer_id NULL is the brand warehouse
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from evm_dealer.db.base import Base


class Inventory(Base):
    """
    Quantities always satisfy
    total_quantity = reserved_quantity + available_quantity + in_transit_quantity
    at create/update time; adjust/reserve/transfer keep their own bookkeeping.
    """
    __tablename__ = "inventories"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    dealer_id = Column(Integer, ForeignKey("dealers.id"), index=True, comment="NULL = brand warehouse")

    total_quantity = Column(Integer, nullable=False, default=0)
    reserved_quantity = Column(Integer, nullable=False, default=0)
    available_quantity = Column(Integer, nullable=False, default=0)
    in_transit_quantity = Column(Integer, nullable=False, default=0)
    location = Column(String(255), comment="Storage location")

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    product = relationship("Product", lazy="joined")
    dealer = relationship("Dealer", lazy="joined")

    def __repr__(self):
        return f"<Inventory product={self.product_id} dealer={self.dealer_id} available={self.available_quantity}>"

    @property
    def is_brand_warehouse(self) -> bool:
        return self.dealer_id is None

    @property
    def stock_percentage(self) -> float:
        if not self.total_quantity:
            return 0.0
        return round((self.available_quantity or 0) * 100.0 / self.total_quantity, 2)
