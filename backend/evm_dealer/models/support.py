"""Customer care models: support tickets and showroom appointments"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from evm_dealer.db.base import Base


class TicketStatus:
    OPEN = "OPEN"
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    RESOLVED = "RESOLVED"
    CLOSED = "CLOSED"
    CANCELLED = "CANCELLED"

    ALL = (OPEN, PENDING, IN_PROGRESS, RESOLVED, CLOSED, CANCELLED)


class AppointmentStatus:
    SCHEDULED = "SCHEDULED"
    CONFIRMED = "CONFIRMED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    NO_SHOW = "NO_SHOW"

    ALL = (SCHEDULED, CONFIRMED, COMPLETED, CANCELLED, NO_SHOW)


class SupportTicket(Base):
    __tablename__ = "support_tickets"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text)
    status = Column(String(20), nullable=False, default=TicketStatus.OPEN, index=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    closed_at = Column(DateTime)

    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)
    assigned_user_id = Column(Integer, ForeignKey("users.id"), index=True)
    sales_order_id = Column(Integer, ForeignKey("sales_orders.id"), index=True)
    vehicle_id = Column(String(50), ForeignKey("vehicles.id"), index=True)

    customer = relationship("Customer", lazy="joined")
    assigned_user = relationship("User", lazy="joined")
    vehicle = relationship("Vehicle", lazy="joined")

    def __repr__(self):
        return f"<SupportTicket {self.id} {self.status}>"


class Appointment(Base):
    """Test drive or consultation slot"""
    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True, index=True)
    appointment_time = Column(DateTime, nullable=False, index=True)
    status = Column(String(20), nullable=False, default=AppointmentStatus.SCHEDULED, index=True)
    notes = Column(Text)

    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)
    staff_user_id = Column(Integer, ForeignKey("users.id"), index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    dealer_id = Column(Integer, ForeignKey("dealers.id"), nullable=False, index=True)

    created_at = Column(DateTime, default=datetime.utcnow)

    customer = relationship("Customer", lazy="joined")
    staff_user = relationship("User", lazy="joined")
    product = relationship("Product", lazy="joined")
    dealer = relationship("Dealer", lazy="joined")
