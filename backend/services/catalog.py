# backend/services/catalog.py
from typing import Any, Dict, Tuple

from models.notification import NotificationType

DEFAULT_TITLE = "New notification"
DEFAULT_MESSAGE = "You have a new notification"

# Human readable labels for order statuses used in status-change messages
STATUS_LABELS = {
    "pending": "pending",
    "confirmed": "confirmed",
    "processing": "being prepared",
    "shipped": "shipped",
    "delivered": "delivered",
    "cancelled": "cancelled",
}


def _order_ref(payload: Dict[str, Any]) -> str:
    return str(payload.get("order_number") or payload.get("order_id") or "")


def describe_event(event_type: str, payload: Dict[str, Any] = None) -> Tuple[str, str]:
    """Map an event to the (title, message) pair shown to the recipient.

    Unknown event types fall through to a generic notification.
    """
    payload = payload or {}
    try:
        kind = NotificationType(event_type)
    except ValueError:
        kind = None

    if kind == NotificationType.ORDER_CREATED:
        return "Order received", f"Your order {_order_ref(payload)} was placed successfully"
    elif kind == NotificationType.ORDER_STATUS_UPDATED:
        status = payload.get("status", "")
        label = STATUS_LABELS.get(status, status)
        return "Order status updated", f"Your order {_order_ref(payload)} is now {label}"
    elif kind == NotificationType.WHOLESALE_SUBMITTED:
        return "Wholesale request received", "Your wholesale upgrade request is under review"
    elif kind == NotificationType.WHOLESALE_APPROVED:
        return "Wholesale account approved", "Your account now has access to wholesale prices and products"
    elif kind == NotificationType.WHOLESALE_REJECTED:
        reason = payload.get("reason") or "no reason given"
        return "Wholesale request rejected", f"Your wholesale upgrade request was rejected: {reason}"
    elif kind == NotificationType.ADMIN_ORDER_CREATED:
        customer = payload.get("customer_name") or "a customer"
        return "New order", f"Order {_order_ref(payload)} was placed by {customer}"
    elif kind == NotificationType.ADMIN_ORDER_UPDATED:
        status = payload.get("status", "")
        return "Order updated", f"Order {_order_ref(payload)} moved to {STATUS_LABELS.get(status, status)}"
    elif kind == NotificationType.ADMIN_WHOLESALE_SUBMITTED:
        company = payload.get("company_name") or "a customer"
        return "New wholesale request", f"Wholesale upgrade requested by {company}"
    elif kind == NotificationType.GENERAL:
        return payload.get("title") or DEFAULT_TITLE, payload.get("message") or DEFAULT_MESSAGE
    return DEFAULT_TITLE, DEFAULT_MESSAGE
