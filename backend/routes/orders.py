# backend/routes/orders.py
import logging
from typing import List, Optional
from fastapi import APIRouter, BackgroundTasks, Depends, Request, Query, status
from sqlalchemy.orm import Session, joinedload

from database import get_db
from utils.tokenJWT import get_current_user, get_current_admin
from utils.audit import write_log, client_ip
from models.users import User
from models.order import Order, OrderStatus
from models.notification import NotificationType
from services import orders as order_service
from services.errors import StoreError
from services.hub import NotificationHub, get_hub
from schemas.order import (
    OrderCreate, OrderSummary, OrderResponse, OrdersPage, OrderCancel,
    OrderStatusPatch, QuoteRequest, QuoteOut, TrackingCreate, TrackingOut,
)

router = APIRouter(prefix="/orders", tags=["Orders"])
admin_router = APIRouter(prefix="/admin/orders", tags=["Admin Orders"])
logger = logging.getLogger(__name__)


def _page(query, page: int, page_size: int) -> dict:
    total = query.count()
    rows = query.offset((page - 1) * page_size).limit(page_size).all()
    return {"items": rows, "total": total, "page": page, "page_size": page_size}


# Price the current cart without placing an order
@router.post("/quote", response_model=QuoteOut)
def quote_order(
    payload: QuoteRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return order_service.quote_cart(db, current_user.id, payload.coupon_code).__dict__


# Place an order from the current cart
@router.post("", response_model=OrderSummary, status_code=status.HTTP_201_CREATED)
def create_order(
    payload: OrderCreate,
    request: Request,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    hub: NotificationHub = Depends(get_hub),
):
    try:
        order = order_service.place_order(
            db,
            current_user.id,
            payment_method=payload.payment_method,
            shipping_address=payload.shipping_address.model_dump(),
            billing_address=payload.billing_address.model_dump() if payload.billing_address else None,
            notes=payload.notes,
            coupon_code=payload.coupon_code,
        )
    except StoreError as e:
        write_log(db, user_id=current_user.id, action="ORDER_CREATE", resource="orders", status="FAIL",
                  ip=client_ip(request), meta={"reason": e.code, "detail": e.message})
        raise

    write_log(db, user_id=current_user.id, action="ORDER_CREATE", resource="orders", status="SUCCESS",
              ip=client_ip(request),
              meta={"order_id": order.id, "order_number": order.order_number, "total": order.total_amount})

    event = order_service.order_event_payload(order)
    background_tasks.add_task(hub.broadcast, current_user.id, NotificationType.ORDER_CREATED.value, event, order.id)
    background_tasks.add_task(
        hub.notify_admins, NotificationType.ADMIN_ORDER_CREATED.value,
        {**event, "customer_name": current_user.full_name}, order.id,
    )

    return OrderSummary(
        id=order.id,
        order_number=order.order_number,
        status=order.status,
        total_amount=order.total_amount,
        created_at=order.created_at,
        items_count=len(order.items),
    )


# List the current user's orders
@router.get("", response_model=OrdersPage)
def list_my_orders(
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    q = db.query(Order).options(
        joinedload(Order.items), joinedload(Order.tracking)
    ).filter(Order.user_id == current_user.id).order_by(Order.created_at.desc(), Order.id.desc())
    return _page(q, page, page_size)


@router.get("/{order_id}", response_model=OrderResponse)
def get_order_detail(
    order_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return order_service.get_user_order(db, order_id, current_user.id)


@router.get("/{order_id}/tracking", response_model=List[TrackingOut])
def get_order_tracking(
    order_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return order_service.get_user_order(db, order_id, current_user.id).tracking


# Cancel an own order while it is still pending or confirmed
@router.post("/{order_id}/cancel", response_model=OrderResponse)
def cancel_my_order(
    order_id: int,
    request: Request,
    background_tasks: BackgroundTasks,
    payload: Optional[OrderCancel] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    hub: NotificationHub = Depends(get_hub),
):
    order = order_service.get_user_order(db, order_id, current_user.id)
    old_status = order.status
    try:
        order = order_service.cancel_order(db, order, reason=payload.reason if payload else None)
    except StoreError as e:
        write_log(db, user_id=current_user.id, action="ORDER_CANCEL", resource="orders", status="FAIL",
                  ip=client_ip(request), meta={"order_id": order_id, "reason": e.code, "status": old_status})
        raise

    write_log(db, user_id=current_user.id, action="ORDER_CANCEL", resource="orders", status="SUCCESS",
              ip=client_ip(request), meta={"order_id": order.id, "old": old_status})

    event = order_service.order_event_payload(order)
    background_tasks.add_task(hub.broadcast, current_user.id, NotificationType.ORDER_STATUS_UPDATED.value, event, order.id)
    background_tasks.add_task(hub.notify_admins, NotificationType.ADMIN_ORDER_UPDATED.value, event, order.id)
    return order


# =========================
# ADMIN
# =========================
@admin_router.get("", response_model=OrdersPage)
def admin_list_orders(
    status_filter: Optional[OrderStatus] = Query(None, alias="status"),
    user_id: Optional[int] = Query(None),
    q: Optional[str] = Query(None, description="Order number contains"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin)
):
    query = db.query(Order).options(joinedload(Order.items), joinedload(Order.tracking))
    if status_filter:
        query = query.filter(Order.status == status_filter.value)
    if user_id is not None:
        query = query.filter(Order.user_id == user_id)
    if q:
        query = query.filter(Order.order_number.ilike(f"%{q}%"))
    query = query.order_by(Order.created_at.desc(), Order.id.desc())
    return _page(query, page, page_size)


@admin_router.get("/{order_id}", response_model=OrderResponse)
def admin_get_order(
    order_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin)
):
    return order_service.get_user_order(db, order_id)


# Move an order along its lifecycle
@admin_router.put("/{order_id}/status", response_model=OrderResponse)
def update_order_status(
    order_id: int,
    payload: OrderStatusPatch,
    request: Request,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin),
    hub: NotificationHub = Depends(get_hub),
):
    order = order_service.get_user_order(db, order_id)
    old_status = order.status
    try:
        order = order_service.change_status(db, order, payload.status, payload.description, payload.location)
    except StoreError as e:
        write_log(db, user_id=current_user.id, action="ORDER_STATUS_CHANGE", resource="orders", status="FAIL",
                  ip=client_ip(request), meta={"order_id": order_id, "old": old_status, "new": payload.status, "reason": e.code})
        raise

    write_log(db, user_id=current_user.id, action="ORDER_STATUS_CHANGE", resource="orders", status="SUCCESS",
              ip=client_ip(request), meta={"order_id": order.id, "old": old_status, "new": order.status})

    event = order_service.order_event_payload(order)
    background_tasks.add_task(hub.broadcast, order.user_id, NotificationType.ORDER_STATUS_UPDATED.value, event, order.id)
    background_tasks.add_task(hub.notify_admins, NotificationType.ADMIN_ORDER_UPDATED.value, event, order.id)
    return order


# Append a free-form tracking event (e.g. courier scan) without changing status
@admin_router.post("/{order_id}/tracking", response_model=TrackingOut, status_code=status.HTTP_201_CREATED)
def add_order_tracking(
    order_id: int,
    payload: TrackingCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin),
):
    order = order_service.get_user_order(db, order_id)
    event = order_service.add_tracking_event(db, order, payload.status, payload.description, payload.location)
    write_log(db, user_id=current_user.id, action="ORDER_TRACKING_ADD", resource="orders", status="SUCCESS",
              ip=client_ip(request), meta={"order_id": order.id, "tracking_id": event.id, "status": payload.status})
    return event
