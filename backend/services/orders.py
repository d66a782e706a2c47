# backend/services/orders.py
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from config import settings
from models.cart import CartItem
from models.coupon import Coupon
from models.order import (
    Order, OrderItem, OrderTracking, OrderStatus, PaymentStatus,
    ORDER_TRANSITIONS, generate_order_number,
)
from models.product import Product
from services.errors import (
    EmptyCart, ProductUnavailable, InsufficientStock, InvalidAddress,
    CannotCancel, InvalidTransition, OrderNotFound, PersistenceFailure,
)

logger = logging.getLogger(__name__)

REQUIRED_ADDRESS_FIELDS = ("first_name", "last_name", "address_line1", "city", "state", "postal_code")

# Tracking descriptions written for each status change
STATUS_DESCRIPTIONS = {
    OrderStatus.PENDING.value: "Order placed",
    OrderStatus.CONFIRMED.value: "Order confirmed",
    OrderStatus.PROCESSING.value: "Order is being prepared",
    OrderStatus.SHIPPED.value: "Order shipped",
    OrderStatus.DELIVERED.value: "Order delivered",
    OrderStatus.CANCELLED.value: "Order cancelled",
}


@dataclass
class PriceBreakdown:
    subtotal: float
    shipping_cost: float
    tax_amount: float
    discount_amount: float
    total_amount: float
    coupon_code: Optional[str] = None
    coupon_applied: bool = False


@dataclass
class OrderQuote(PriceBreakdown):
    items_count: int = 0
    lines: List[dict] = field(default_factory=list)


def compute_totals(
    lines: Iterable[Tuple[float, int]],
    tax_rate: float,
    shipping_fee: float,
    free_shipping_threshold: float,
    coupon: Optional[Coupon] = None,
    now: Optional[datetime] = None,
) -> PriceBreakdown:
    """Price a list of (unit_price, quantity) pairs.

    Shipping is waived once the subtotal reaches the threshold. A coupon that
    is not usable for this subtotal contributes no discount.
    """
    subtotal = round(sum(price * qty for price, qty in lines), 2)
    shipping_cost = 0.0 if subtotal >= free_shipping_threshold else round(shipping_fee, 2)
    tax_amount = round(subtotal * tax_rate, 2)

    discount_amount = 0.0
    coupon_applied = False
    if coupon is not None and coupon.can_be_used_for(subtotal, now):
        discount_amount = coupon.calculate_discount(subtotal, now)
        coupon_applied = True

    total_amount = round(max(0.0, subtotal + shipping_cost + tax_amount - discount_amount), 2)
    return PriceBreakdown(
        subtotal=subtotal,
        shipping_cost=shipping_cost,
        tax_amount=tax_amount,
        discount_amount=discount_amount,
        total_amount=total_amount,
        coupon_code=coupon.code if coupon_applied else None,
        coupon_applied=coupon_applied,
    )


def default_pricing() -> dict:
    return {
        "tax_rate": settings.TAX_RATE,
        "shipping_fee": settings.SHIPPING_FLAT_FEE,
        "free_shipping_threshold": settings.FREE_SHIPPING_THRESHOLD,
    }


def validate_address(address: Optional[dict]):
    address = address or {}
    missing = [f for f in REQUIRED_ADDRESS_FIELDS if not str(address.get(f) or "").strip()]
    if missing:
        raise InvalidAddress(missing)


def find_coupon(db: Session, code: Optional[str]) -> Optional[Coupon]:
    if not code or not code.strip():
        return None
    return db.query(Coupon).filter(func.upper(Coupon.code) == code.strip().upper()).first()


def _load_cart(db: Session, user_id: int, lock: bool = False) -> List[CartItem]:
    items = (
        db.query(CartItem)
        .filter(CartItem.user_id == user_id)
        .order_by(CartItem.id)
        .all()
    )
    if not items:
        raise EmptyCart()

    # Lock product rows so concurrent checkouts re-read stock after each other
    product_ids = [it.product_id for it in items]
    q = db.query(Product).filter(Product.id.in_(product_ids))
    if lock:
        q = q.with_for_update()
    products = {p.id: p for p in q.all()}

    for it in items:
        product = products.get(it.product_id)
        if product is None or not product.is_active:
            name = product.name if product else f"#{it.product_id}"
            raise ProductUnavailable(name)
        if it.quantity > (product.stock_quantity or 0):
            raise InsufficientStock(product.name, product.stock_quantity or 0, it.quantity)
    return items


def quote_cart(db: Session, user_id: int, coupon_code: Optional[str] = None, pricing: Optional[dict] = None) -> OrderQuote:
    """Price the current cart without writing anything."""
    pricing = pricing or default_pricing()
    items = _load_cart(db, user_id)
    coupon = find_coupon(db, coupon_code)
    totals = compute_totals(
        [(it.product.effective_price, it.quantity) for it in items], coupon=coupon, **pricing
    )
    lines = [{
        "product_id": it.product_id,
        "product_name": it.product.name,
        "quantity": it.quantity,
        "unit_price": it.product.effective_price,
        "total_price": round(it.product.effective_price * it.quantity, 2),
    } for it in items]
    return OrderQuote(**totals.__dict__, items_count=len(items), lines=lines)


def place_order(
    db: Session,
    user_id: int,
    payment_method: str,
    shipping_address: dict,
    billing_address: Optional[dict] = None,
    notes: Optional[str] = None,
    coupon_code: Optional[str] = None,
    pricing: Optional[dict] = None,
) -> Order:
    """Turn the user's cart into an order in a single transaction."""
    pricing = pricing or default_pricing()
    validate_address(shipping_address)

    try:
        items = _load_cart(db, user_id, lock=True)

        coupon = find_coupon(db, coupon_code)
        totals = compute_totals(
            [(it.product.effective_price, it.quantity) for it in items], coupon=coupon, **pricing
        )
        if coupon_code and not totals.coupon_applied:
            logger.info(f"Coupon '{coupon_code}' ignored for user {user_id}: not valid for subtotal {totals.subtotal}")

        order = Order(
            order_number=generate_order_number(),
            user_id=user_id,
            status=OrderStatus.PENDING.value,
            subtotal=totals.subtotal,
            shipping_cost=totals.shipping_cost,
            tax_amount=totals.tax_amount,
            discount_amount=totals.discount_amount,
            total_amount=totals.total_amount,
            coupon_code=totals.coupon_code,
            payment_method=payment_method,
            payment_status=PaymentStatus.PENDING.value,
            shipping_address=dict(shipping_address),
            billing_address=dict(billing_address) if billing_address else None,
            notes=notes,
        )
        db.add(order)

        for it in items:
            product = it.product
            unit_price = product.effective_price
            order.items.append(OrderItem(
                product_id=product.id,
                product_name=product.name,
                product_image=product.image_url,
                quantity=it.quantity,
                unit_price=unit_price,
                total_price=round(unit_price * it.quantity, 2),
            ))
        order.tracking.append(OrderTracking(
            status=OrderStatus.PENDING.value,
            description=STATUS_DESCRIPTIONS[OrderStatus.PENDING.value],
        ))
        db.flush()

        for it in items:
            _decrement_stock(db, it.product, it.quantity, order.order_number)

        if totals.coupon_applied:
            coupon.used_count = (coupon.used_count or 0) + 1

        for it in items:
            db.delete(it)

        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Order placement for user {user_id} rolled back: {e}")
        raise PersistenceFailure()
    except Exception:
        db.rollback()
        raise

    db.refresh(order)
    logger.info(f"Order {order.order_number} placed by user {user_id}, total {order.total_amount:.2f}")
    return order


def _decrement_stock(db: Session, product: Product, quantity: int, order_number: str):
    # Subtract in SQL so a concurrent checkout never overwrites our decrement.
    # A database error rolls back only this savepoint and the order goes on.
    try:
        with db.begin_nested():
            updated = (
                db.query(Product)
                .filter(Product.id == product.id, Product.stock_quantity >= quantity)
                .update({Product.stock_quantity: Product.stock_quantity - quantity}, synchronize_session=False)
            )
    except SQLAlchemyError as e:
        logger.warning(f"Stock decrement failed for product {product.id} on order {order_number}: {e}")
        return

    if not updated:
        # Another checkout took the units after our stock check
        db.refresh(product)
        raise InsufficientStock(product.name, product.stock_quantity or 0, quantity)


def get_user_order(db: Session, order_id: int, user_id: Optional[int] = None) -> Order:
    q = db.query(Order).options(joinedload(Order.items), joinedload(Order.tracking)).filter(Order.id == order_id)
    if user_id is not None:
        q = q.filter(Order.user_id == user_id)
    order = q.first()
    if not order:
        raise OrderNotFound()
    return order


def _append_tracking(order: Order, status: str, description: Optional[str] = None, location: Optional[str] = None):
    order.tracking.append(OrderTracking(
        status=status,
        description=description or STATUS_DESCRIPTIONS.get(status, status),
        location=location,
        timestamp=datetime.utcnow(),
    ))


def cancel_order(db: Session, order: Order, reason: Optional[str] = None) -> Order:
    if not order.can_be_cancelled:
        raise CannotCancel(order.status)

    try:
        order.status = OrderStatus.CANCELLED.value
        _append_tracking(order, OrderStatus.CANCELLED.value, reason or "Order cancelled by customer")

        # Return the reserved units to stock
        for item in order.items:
            if item.product_id is not None:
                db.query(Product).filter(Product.id == item.product_id).update(
                    {Product.stock_quantity: Product.stock_quantity + item.quantity},
                    synchronize_session=False,
                )
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Cancelling order {order.id} failed: {e}")
        raise PersistenceFailure()

    db.refresh(order)
    logger.info(f"Order {order.order_number} cancelled")
    return order


def can_transition(current: str, target: str) -> bool:
    try:
        return OrderStatus(target) in ORDER_TRANSITIONS[OrderStatus(current)]
    except ValueError:
        return False


def change_status(db: Session, order: Order, new_status: str, description: Optional[str] = None,
                  location: Optional[str] = None) -> Order:
    if not can_transition(order.status, new_status):
        raise InvalidTransition(order.status, new_status)

    if new_status == OrderStatus.CANCELLED.value:
        return cancel_order(db, order, reason=description or "Order cancelled by the store")

    try:
        order.status = new_status
        if new_status == OrderStatus.DELIVERED.value and order.payment_method == "cash_on_delivery":
            order.payment_status = PaymentStatus.PAID.value
        _append_tracking(order, new_status, description, location)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Status change of order {order.id} to {new_status} failed: {e}")
        raise PersistenceFailure()

    db.refresh(order)
    logger.info(f"Order {order.order_number} moved to {new_status}")
    return order


def add_tracking_event(db: Session, order: Order, status: str, description: Optional[str] = None,
                       location: Optional[str] = None) -> OrderTracking:
    try:
        _append_tracking(order, status, description, location)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Adding tracking to order {order.id} failed: {e}")
        raise PersistenceFailure()
    db.refresh(order)
    return order.tracking[-1]


def order_event_payload(order: Order) -> dict:
    return {
        "order_id": order.id,
        "order_number": order.order_number,
        "status": order.status,
        "total_amount": order.total_amount,
        "created_at": order.created_at,
    }
