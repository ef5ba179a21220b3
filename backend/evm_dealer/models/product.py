"""
Product catalog models
A product is a vehicle model/version; variants are its colours
"""

from datetime import datetime
from decimal import Decimal
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, DECIMAL, UniqueConstraint
from sqlalchemy.orm import relationship
from evm_dealer.db.base import Base


class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    product_name = Column(String(150), nullable=False, index=True, comment="Model name")
    version = Column(String(50), comment="Trim/version")
    msrp = Column(DECIMAL(15, 2), nullable=False, default=Decimal("0.00"), comment="List price")
    specifications = Column(Text, comment="Free-form specification text")
    description = Column(Text, comment="Description")
    image_url = Column(String(500))
    video_url = Column(String(500))
    is_active = Column(Boolean, nullable=False, default=True, comment="Listed in the catalog")

    # Technical specs, stored as entered ("75 kWh", "450 km")
    battery_capacity = Column(String(50))
    product_range = Column(String(50))
    power = Column(String(50))
    max_speed = Column(String(50))
    charging_time = Column(String(50))
    dimensions = Column(String(100))
    weight = Column(String(50))
    seating_capacity = Column(String(20))

    brand_id = Column(Integer, ForeignKey("brands.id"), index=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    brand = relationship("Brand", lazy="joined")
    features = relationship(
        "ProductFeature", lazy="selectin", cascade="all, delete-orphan",
        order_by="ProductFeature.id"
    )
    variants = relationship(
        "ProductVariant", lazy="selectin", cascade="all, delete-orphan",
        order_by="ProductVariant.id"
    )

    def __repr__(self):
        return f"<Product {self.id}: {self.product_name} {self.version or ''}>"

    @property
    def display_name(self) -> str:
        return f"{self.product_name} {self.version}" if self.version else self.product_name


class ProductFeature(Base):
    __tablename__ = "product_features"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    feature_name = Column(String(100), nullable=False)
    description = Column(Text)
    icon_url = Column(String(500))


class ProductVariant(Base):
    __tablename__ = "product_variants"
    __table_args__ = (
        UniqueConstraint('product_id', 'color', name='uq_product_variant_color'),
    )

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    color = Column(String(50), nullable=False)
    color_code = Column(String(20), comment="Hex colour code")
    available_quantity = Column(Integer, nullable=False, default=0)
