# routes/reports.py
from datetime import datetime
from typing import Optional, List

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import func
from sqlalchemy.orm import Session

from database import get_db
from utils.tokenJWT import get_current_admin
from models.users import User
from models.product import Product
from models.order import Order, OrderItem, OrderStatus
from schemas.reports import (
    LowStockPage, LowStockItem,
    SalesSummaryResponse, SalesSummaryItem,
    ProductPerformanceResponse, ProductPerformanceItem,
)

router = APIRouter(prefix="/admin/reports", tags=["Reports"])

def _parse_iso(s: Optional[str]) -> Optional[datetime]:
    if not s:
        return None
    try:
        return datetime.fromisoformat(s)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Bad datetime format: {s}")

def _in_range(query, fdt: Optional[datetime], tdt: Optional[datetime]):
    if fdt:
        query = query.filter(Order.created_at >= fdt)
    if tdt:
        query = query.filter(Order.created_at <= tdt)
    return query

# -----------------------------
# 1) Low stock
# -----------------------------
@router.get("/low-stock", response_model=LowStockPage)
def report_low_stock(
    threshold: Optional[int] = Query(None, ge=0, description="Fixed threshold (<=); defaults to each product's minimum level"),
    q: Optional[str] = Query(None, description="Search by name or SKU"),
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin),
):
    query = db.query(Product).filter(Product.is_active.is_(True))
    if threshold is not None:
        query = query.filter(Product.stock_quantity <= threshold)
    else:
        query = query.filter(Product.stock_quantity <= Product.min_stock_level)
    if q:
        like = f"%{q}%"
        query = query.filter((Product.name.ilike(like)) | (Product.sku.ilike(like)))

    total = query.count()
    rows = (query
            .order_by(Product.stock_quantity.asc(), Product.name.asc())
            .offset((page - 1) * page_size)
            .limit(page_size)
            .all())

    items: List[LowStockItem] = [
        LowStockItem(
            product_id=p.id,
            name=p.name,
            sku=p.sku,
            stock_quantity=p.stock_quantity or 0,
            min_stock_level=p.min_stock_level or 0,
        )
        for p in rows
    ]
    return {"items": items, "total": total, "page": page, "page_size": page_size}

# -----------------------------
# 2) Sales summary per day
# -----------------------------
@router.get("/sales-summary", response_model=SalesSummaryResponse)
def report_sales_summary(
    date_from: Optional[str] = Query(None, description="ISO datetime from"),
    date_to: Optional[str] = Query(None, description="ISO datetime to"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin),
):
    fdt = _parse_iso(date_from)
    tdt = _parse_iso(date_to)

    day = func.date(Order.created_at)
    q = db.query(
        day.label("d"),
        func.count(Order.id).label("orders"),
        func.coalesce(func.sum(Order.total_amount), 0.0).label("total_amount"),
    ).filter(Order.status != OrderStatus.CANCELLED.value)

    q = _in_range(q, fdt, tdt)
    rows = q.group_by(day).order_by(day.asc()).all()

    items: List[SalesSummaryItem] = [
        SalesSummaryItem(date=r.d, orders=r.orders, total_amount=round(float(r.total_amount), 2))
        for r in rows
    ]
    total_orders = sum(i.orders for i in items)
    total_amount = round(sum(i.total_amount for i in items), 2)

    return SalesSummaryResponse(
        items=items,
        total_orders=total_orders,
        total_amount=total_amount,
        date_from=fdt,
        date_to=tdt,
    )

# -----------------------------
# 3) Product performance
# -----------------------------
@router.get("/product-performance", response_model=ProductPerformanceResponse)
def report_product_performance(
    date_from: Optional[str] = Query(None, description="ISO datetime from"),
    date_to: Optional[str] = Query(None, description="ISO datetime to"),
    limit: int = Query(20, ge=1, le=200),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin),
):
    fdt = _parse_iso(date_from)
    tdt = _parse_iso(date_to)

    revenue = func.sum(OrderItem.total_price)
    q = (
        db.query(
            OrderItem.product_id.label("product_id"),
            OrderItem.product_name.label("product_name"),
            func.sum(OrderItem.quantity).label("units_sold"),
            revenue.label("revenue"),
            func.count(func.distinct(OrderItem.order_id)).label("orders"),
        )
        .join(Order, Order.id == OrderItem.order_id)
        .filter(Order.status != OrderStatus.CANCELLED.value)
    )
    q = _in_range(q, fdt, tdt)
    rows = (q.group_by(OrderItem.product_id, OrderItem.product_name)
             .order_by(revenue.desc())
             .limit(limit)
             .all())

    items = [
        ProductPerformanceItem(
            product_id=r.product_id,
            product_name=r.product_name,
            units_sold=int(r.units_sold or 0),
            revenue=round(float(r.revenue or 0.0), 2),
            orders=r.orders,
        )
        for r in rows
    ]
    return ProductPerformanceResponse(items=items, date_from=fdt, date_to=tdt)
