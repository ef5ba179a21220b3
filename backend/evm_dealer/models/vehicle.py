"""
Physical vehicle model
One row per VIN; the id is the business identifier assigned at import
"""

from datetime import datetime
from sqlalchemy import Column, String, Date, DateTime, Integer, ForeignKey
from sqlalchemy.orm import relationship
from evm_dealer.db.base import Base


class VehicleStatus:
    AVAILABLE = "AVAILABLE"
    RESERVED = "RESERVED"
    SOLD = "SOLD"
    IN_TRANSIT = "IN_TRANSIT"
    MAINTENANCE = "MAINTENANCE"

    ALL = (AVAILABLE, RESERVED, SOLD, IN_TRANSIT, MAINTENANCE)


class Vehicle(Base):
    __tablename__ = "vehicles"

    id = Column(String(50), primary_key=True, comment="Vehicle code")
    vin = Column(String(17), nullable=False, unique=True, index=True, comment="VIN")
    battery_serial = Column(String(100), comment="Battery pack serial")
    color = Column(String(50))
    manufacture_date = Column(Date)
    status = Column(String(20), nullable=False, default=VehicleStatus.AVAILABLE, index=True)

    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    dealer_id = Column(Integer, ForeignKey("dealers.id"), index=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    product = relationship("Product", lazy="joined")
    dealer = relationship("Dealer", lazy="joined")

    def __repr__(self):
        return f"<Vehicle {self.id} VIN={self.vin}>"
