"""Brand (manufacturer) and dealer models"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from evm_dealer.db.base import Base


class Brand(Base):
    """EV manufacturer owning products, dealers and warehouse stock"""
    __tablename__ = "brands"

    id = Column(Integer, primary_key=True, index=True)
    brand_name = Column(String(100), nullable=False, unique=True, comment="Brand name")
    headquarters_address = Column(String(255), comment="Headquarters address")
    tax_code = Column(String(50), unique=True, comment="Tax registration code")
    contact_info = Column(Text, comment="Contact details")

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<Brand {self.id}: {self.brand_name}>"


class Dealer(Base):
    """Dealership selling a brand's vehicles"""
    __tablename__ = "dealers"

    id = Column(Integer, primary_key=True, index=True)
    dealer_name = Column(String(150), nullable=False, index=True, comment="Dealer name")
    address = Column(String(255), comment="Address")
    phone_number = Column(String(20), comment="Phone number")
    email = Column(String(100), unique=True, comment="Email")
    dealer_level = Column(String(50), comment="Dealer tier, e.g. LEVEL_1")

    brand_id = Column(Integer, ForeignKey("brands.id"), index=True, comment="Brand")

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    brand = relationship("Brand", lazy="joined")

    def __repr__(self):
        return f"<Dealer {self.id}: {self.dealer_name}>"
