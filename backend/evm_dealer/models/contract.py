from datetime import datetime
from decimal import Decimal
from sqlalchemy import Column, Integer, Text, Date, DateTime, ForeignKey, DECIMAL
from sqlalchemy.orm import relationship
from evm_dealer.db.base import Base


class DealerContract(Base):
    """Distribution agreement between a brand and a dealer"""
    __tablename__ = "dealer_contracts"

    id = Column(Integer, primary_key=True, index=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    contract_terms = Column(Text)
    commission_rate = Column(DECIMAL(5, 2), default=Decimal("0.00"), comment="Percent")
    sales_target = Column(DECIMAL(15, 2), default=Decimal("0.00"), comment="Revenue target for the contract period")

    brand_id = Column(Integer, ForeignKey("brands.id"), nullable=False, index=True)
    dealer_id = Column(Integer, ForeignKey("dealers.id"), nullable=False, index=True)

    created_at = Column(DateTime, default=datetime.utcnow)

    brand = relationship("Brand", lazy="joined")
    dealer = relationship("Dealer", lazy="joined")
