from datetime import datetime
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from evm_dealer.db.base import Base


class RoleType:
    """Role names used in access checks"""
    ADMIN = "ADMIN"
    BRAND_MANAGER = "BRAND_MANAGER"
    DEALER_MANAGER = "DEALER_MANAGER"
    DEALER_STAFF = "DEALER_STAFF"
    SALES_MANAGER = "SALES_MANAGER"
    SALES_PERSON = "SALES_PERSON"
    SUPPORT_STAFF = "SUPPORT_STAFF"
    WAREHOUSE_STAFF = "WAREHOUSE_STAFF"
    CUSTOMER = "CUSTOMER"

    ALL = (
        ADMIN, BRAND_MANAGER, DEALER_MANAGER, DEALER_STAFF, SALES_MANAGER,
        SALES_PERSON, SUPPORT_STAFF, WAREHOUSE_STAFF, CUSTOMER,
    )


class Role(Base):
    __tablename__ = "roles"

    id = Column(Integer, primary_key=True, index=True)
    role_name = Column(String(50), nullable=False, unique=True, comment="Role code, see RoleType")
    display_name = Column(String(100), comment="Human readable name")
    role_type = Column(String(50), comment="BRAND, DEALER, SYSTEM or CUSTOMER")
    description = Column(String(255), comment="Description")

    def __repr__(self):
        return f"<Role {self.role_name}>"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(50), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    full_name = Column(String(100))
    email = Column(String(100), unique=True)
    phone_number = Column(String(20))
    date_joined = Column(DateTime, nullable=False, default=datetime.utcnow)
    is_active = Column(Boolean, nullable=False, default=True)

    role_id = Column(Integer, ForeignKey("roles.id"), index=True)
    brand_id = Column(Integer, ForeignKey("brands.id"), index=True)
    dealer_id = Column(Integer, ForeignKey("dealers.id"), index=True)

    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    role = relationship("Role", lazy="joined")
    brand = relationship("Brand", lazy="joined")
    dealer = relationship("Dealer", lazy="joined")

    @property
    def role_name(self):
        return self.role.role_name if self.role else None

    @property
    def is_admin(self):
        return self.role_name == RoleType.ADMIN

    def has_any_role(self, *roles: str) -> bool:
        """ADMIN passes every check"""
        return self.is_admin or self.role_name in roles
