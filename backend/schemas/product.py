# backend/schemas/product.py
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List
from datetime import datetime


# Base configuration for ORM compatibility
class ORMBase(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class CategoryCreate(BaseModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    image_url: Optional[str] = None
    is_active: bool = True


class CategoryOut(ORMBase):
    id: int
    name: str
    description: Optional[str] = None
    image_url: Optional[str] = None
    is_active: bool


# Shared base attributes for product entities
class ProductBase(ORMBase):
    name: str
    sku: str
    description: Optional[str] = None
    brand: Optional[str] = None
    category_id: Optional[int] = None
    type: str = "retail"
    price: float = Field(ge=0)
    discount_price: Optional[float] = Field(default=None, ge=0)
    stock_quantity: int = Field(default=0, ge=0)
    min_stock_level: int = Field(default=5, ge=0)
    image_url: Optional[str] = None
    is_active: bool = True
    is_featured: bool = False
    manufacturer: Optional[str] = None
    active_ingredient: Optional[str] = None
    dosage_form: Optional[str] = None
    strength: Optional[str] = None
    requires_prescription: bool = False
    expiry_date: Optional[datetime] = None


# Full product representation including computed fields
class ProductOut(ProductBase):
    id: int
    category_name: Optional[str] = None
    effective_price: float
    is_low_stock: bool
    created_at: Optional[datetime] = None


# Paginated response for product listings
class ProductListPage(ORMBase):
    items: List[ProductOut]
    total: int
    page: int
    page_size: int
