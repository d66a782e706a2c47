# backend/routes/stats.py

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from sqlalchemy import func
from datetime import datetime, timedelta
from pydantic import BaseModel
from typing import List

from database import get_db
from utils.tokenJWT import get_current_admin
from models.users import User, UserRole
from models.product import Product
from models.order import Order, OrderItem, OrderStatus
from models.log import Log, LogStatus
from models.wholesale import WholesaleUpgradeRequest, WholesaleRequestStatus
from schemas.reports import DashboardSummary, ActivityItem

router = APIRouter(
    prefix="/admin/dashboard",
    tags=["Stats"]
)

# === Pydantic Response Schemas ===

class DailyRevenue(BaseModel):
    date: str
    revenue: float
    orders: int

class DailyRevenueResponse(BaseModel):
    data: List[DailyRevenue]

# Schema for top selling products
class TopProduct(BaseModel):
    product_id: int
    product_name: str
    total_quantity_sold: int

    class Config:
        from_attributes = True

class TopProductsResponse(BaseModel):
    data: List[TopProduct]


def _not_cancelled():
    return Order.status != OrderStatus.CANCELLED.value


# === Endpoint 1: Dashboard Summary ===

@router.get("/summary", response_model=DashboardSummary)
def get_dashboard_summary(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin)
):
    total_sales = db.query(func.coalesce(func.sum(Order.total_amount), 0.0)).filter(_not_cancelled()).scalar()

    return DashboardSummary(
        total_orders=db.query(Order).count(),
        total_customers=db.query(User).filter(User.role == UserRole.CUSTOMER.value).count(),
        total_products=db.query(Product).filter(Product.is_active.is_(True)).count(),
        total_sales=round(float(total_sales or 0.0), 2),
        pending_orders=db.query(Order).filter(Order.status == OrderStatus.PENDING.value).count(),
        low_stock_products=db.query(Product).filter(
            Product.is_active.is_(True),
            Product.stock_quantity <= Product.min_stock_level,
        ).count(),
        pending_wholesale_requests=db.query(WholesaleUpgradeRequest).filter(
            WholesaleUpgradeRequest.status == WholesaleRequestStatus.PENDING.value
        ).count(),
    )

# === Endpoint 2: Recent activity from the audit log ===

@router.get("/recent-activity", response_model=List[ActivityItem])
def get_recent_activity(
    limit: int = Query(10, ge=1, le=50),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin)
):
    return (
        db.query(Log)
        .filter(Log.status == LogStatus.SUCCESS.value)
        .order_by(Log.ts.desc(), Log.id.desc())
        .limit(limit)
        .all()
    )

# === Endpoint 3: Chart Data ===

@router.get("/daily-revenue", response_model=DailyRevenueResponse)
def get_daily_revenue_stats(
    days: int = Query(7, ge=1, le=90),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin)
):
    today = datetime.utcnow().date()
    first_day = today - timedelta(days=days - 1)

    # Aggregate revenue by date for the period
    sales_data = (
        db.query(
            func.date(Order.created_at).label("date"),
            func.sum(Order.total_amount).label("revenue"),
            func.count(Order.id).label("orders"),
        )
        .filter(Order.created_at >= datetime.combine(first_day, datetime.min.time()), _not_cancelled())
        .group_by(func.date(Order.created_at))
        .all()
    )

    sales_by_date = {str(row.date): row for row in sales_data}
    result_data = []

    # Fill missing dates with zero revenue
    for i in range(days):
        current_date = first_day + timedelta(days=i)
        row = sales_by_date.get(current_date.strftime("%Y-%m-%d"))
        result_data.append(DailyRevenue(
            date=current_date.strftime("%Y-%m-%d"),
            revenue=round(float(row.revenue), 2) if row else 0.0,
            orders=row.orders if row else 0,
        ))

    return DailyRevenueResponse(data=result_data)

# === Endpoint 4: Top 5 Products ===

@router.get("/top-products", response_model=TopProductsResponse)
def get_top_products_stats(
    limit: int = Query(5, ge=1, le=50),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin)
):
    # Aggregate sold quantity by product, sort descending
    top_products_query = (
        db.query(
            OrderItem.product_id.label("product_id"),
            OrderItem.product_name.label("product_name"),
            func.sum(OrderItem.quantity).label("total_quantity_sold")
        )
        .join(Order, Order.id == OrderItem.order_id)
        .filter(_not_cancelled(), OrderItem.product_id.isnot(None))
        .group_by(OrderItem.product_id, OrderItem.product_name)
        .order_by(func.sum(OrderItem.quantity).desc())
        .limit(limit)
        .all()
    )

    return TopProductsResponse(data=top_products_query)
