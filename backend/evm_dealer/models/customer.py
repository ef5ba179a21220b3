from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, DateTime
from evm_dealer.db.base import Base


class Customer(Base):
    """End customer of a dealership"""
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, index=True)
    full_name = Column(String(100), nullable=False, index=True, comment="Full name")
    phone_number = Column(String(20), nullable=False, unique=True, comment="Phone number")
    email = Column(String(100), unique=True, comment="Email")
    address = Column(String(255), comment="Address")
    customer_type = Column(String(50), default="INDIVIDUAL", comment="INDIVIDUAL or BUSINESS")
    history = Column(Text, comment="Free-form interaction history")

    created_at = Column(DateTime, default=datetime.utcnow)

    def __repr__(self):
        return f"<Customer {self.id}: {self.full_name}>"
