from pydantic import BaseModel, Field
from typing import List, Optional, Literal
from datetime import datetime


# Address copied onto an order at checkout; required fields are checked by the order service
class AddressIn(BaseModel):
    first_name: str = ""
    last_name: str = ""
    phone: Optional[str] = None
    address_line1: str = ""
    address_line2: Optional[str] = None
    city: str = ""
    state: str = ""
    postal_code: str = ""
    country: str = "Saudi Arabia"


# Input schema for placing an order from the current cart
class OrderCreate(BaseModel):
    payment_method: Literal["cash_on_delivery", "card", "bank_transfer"] = "cash_on_delivery"
    shipping_address: AddressIn
    billing_address: Optional[AddressIn] = None
    notes: Optional[str] = None
    coupon_code: Optional[str] = None


class QuoteRequest(BaseModel):
    coupon_code: Optional[str] = None


class QuoteLine(BaseModel):
    product_id: int
    product_name: str
    quantity: int
    unit_price: float
    total_price: float


# Price preview of the current cart
class QuoteOut(BaseModel):
    subtotal: float
    shipping_cost: float
    tax_amount: float
    discount_amount: float
    total_amount: float
    coupon_code: Optional[str] = None
    coupon_applied: bool
    items_count: int
    lines: List[QuoteLine]


# Returned right after checkout
class OrderSummary(BaseModel):
    id: int
    order_number: str
    status: str
    total_amount: float
    created_at: Optional[datetime] = None
    items_count: int


# Output schema for an individual order line item
class OrderItemOut(BaseModel):
    id: int
    product_id: Optional[int] = None
    product_name: str
    product_image: Optional[str] = None
    quantity: int
    unit_price: float
    total_price: float

    class Config:
        from_attributes = True


class TrackingOut(BaseModel):
    id: int
    status: str
    description: Optional[str] = None
    location: Optional[str] = None
    timestamp: datetime

    class Config:
        from_attributes = True


# Output schema representing the full order details
class OrderResponse(BaseModel):
    id: int
    order_number: str
    user_id: int
    status: str
    subtotal: float
    shipping_cost: float
    tax_amount: float
    discount_amount: float
    total_amount: float
    coupon_code: Optional[str] = None
    payment_method: str
    payment_status: str
    shipping_address: dict
    billing_address: Optional[dict] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    can_be_cancelled: bool
    items: List[OrderItemOut]
    tracking: List[TrackingOut] = []

    class Config:
        from_attributes = True


# Schema for paginated order lists
class OrdersPage(BaseModel):
    items: List[OrderResponse]
    total: int
    page: int
    page_size: int


class OrderCancel(BaseModel):
    reason: Optional[str] = None


# Schema for updating order status
class OrderStatusPatch(BaseModel):
    status: Literal["pending", "confirmed", "processing", "shipped", "delivered", "cancelled"]
    description: Optional[str] = None
    location: Optional[str] = None


class TrackingCreate(BaseModel):
    status: str = Field(min_length=1, max_length=50)
    description: Optional[str] = None
    location: Optional[str] = None
