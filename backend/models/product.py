# backend/models/product.py
import enum
from datetime import datetime
from sqlalchemy import (
    Column, Integer, String, Float, Boolean, Text, DateTime, ForeignKey, CheckConstraint, func
)
from sqlalchemy.orm import relationship
from database import Base

# Retail products are public, wholesale products need wholesale access
class ProductType(str, enum.Enum):
    RETAIL = "retail"
    WHOLESALE = "wholesale"

# Product grouping shown in the storefront navigation
class Category(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False, index=True)
    description = Column(Text, nullable=True)
    image_url = Column(String, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    products = relationship("Product", back_populates="category")


# A single sellable item. Prices and stock are guarded by check constraints,
# the pharmacy specific columns are optional metadata.
class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, index=True)
    sku = Column(String, unique=True, nullable=False, index=True)
    description = Column(Text, nullable=True)
    brand = Column(String, nullable=True)

    category_id = Column(Integer, ForeignKey("categories.id"), nullable=True, index=True)
    type = Column(String(20), nullable=False, default=ProductType.RETAIL.value, index=True)

    price = Column(Float, CheckConstraint("price >= 0"), nullable=False)
    discount_price = Column(Float, CheckConstraint("discount_price IS NULL OR discount_price >= 0"), nullable=True)

    stock_quantity = Column(Integer, CheckConstraint("stock_quantity >= 0"), nullable=False, default=0)
    min_stock_level = Column(Integer, nullable=False, default=5)

    image_url = Column(String, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    is_featured = Column(Boolean, nullable=False, default=False)

    # Pharmacy metadata
    manufacturer = Column(String, nullable=True)
    active_ingredient = Column(String, nullable=True)
    dosage_form = Column(String, nullable=True)
    strength = Column(String, nullable=True)
    requires_prescription = Column(Boolean, nullable=False, default=False)
    expiry_date = Column(DateTime, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    category = relationship("Category", back_populates="products")

    # Price the customer pays right now
    @property
    def effective_price(self) -> float:
        if self.discount_price is not None and self.discount_price > 0:
            return self.discount_price
        return self.price

    @property
    def is_low_stock(self) -> bool:
        return (self.stock_quantity or 0) <= (self.min_stock_level or 0)

    @property
    def is_expired(self) -> bool:
        return self.expiry_date is not None and self.expiry_date < datetime.utcnow()

    @property
    def category_name(self):
        return self.category.name if self.category else None
