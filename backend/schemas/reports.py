# schemas/reports.py
from datetime import datetime, date
from typing import List, Optional
from pydantic import BaseModel

# Schemas for low stock alerting
class LowStockItem(BaseModel):
    product_id: int
    name: str
    sku: str
    stock_quantity: int
    min_stock_level: int

class LowStockPage(BaseModel):
    items: List[LowStockItem]
    total: int
    page: int
    page_size: int

# Schemas for sales performance summaries
class SalesSummaryItem(BaseModel):
    date: date
    orders: int
    total_amount: float

class SalesSummaryResponse(BaseModel):
    items: List[SalesSummaryItem]
    total_orders: int
    total_amount: float
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None

# Units and revenue per product over a period
class ProductPerformanceItem(BaseModel):
    product_id: Optional[int] = None
    product_name: str
    units_sold: int
    revenue: float
    orders: int

class ProductPerformanceResponse(BaseModel):
    items: List[ProductPerformanceItem]
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None

# Dashboard headline numbers
class DashboardSummary(BaseModel):
    total_orders: int
    total_customers: int
    total_products: int
    total_sales: float
    pending_orders: int
    low_stock_products: int
    pending_wholesale_requests: int

class ActivityItem(BaseModel):
    id: int
    ts: Optional[datetime] = None
    user_id: Optional[int] = None
    action: str
    resource: str
    status: str
    meta: Optional[dict] = None

    class Config:
        from_attributes = True
