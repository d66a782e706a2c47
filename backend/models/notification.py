# backend/models/notification.py
import enum
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, UniqueConstraint, func
from sqlalchemy.orm import relationship
from database import Base

# Closed set of events the notification hub knows how to describe
class NotificationType(str, enum.Enum):
    ORDER_CREATED = "order_created"
    ORDER_STATUS_UPDATED = "order_status_updated"
    WHOLESALE_SUBMITTED = "wholesale_submitted"
    WHOLESALE_APPROVED = "wholesale_approved"
    WHOLESALE_REJECTED = "wholesale_rejected"
    ADMIN_ORDER_CREATED = "admin_order_created"
    ADMIN_ORDER_UPDATED = "admin_order_updated"
    ADMIN_WHOLESALE_SUBMITTED = "admin_wholesale_submitted"
    GENERAL = "general"

ADMIN_NOTIFICATION_TYPES = [
    NotificationType.ADMIN_ORDER_CREATED.value,
    NotificationType.ADMIN_ORDER_UPDATED.value,
    NotificationType.ADMIN_WHOLESALE_SUBMITTED.value,
]

# Durable record of every broadcast; only is_read/read_at change afterwards
class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=True, index=True)
    type = Column(String(50), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    data = Column(Text, nullable=True) # Event payload serialized as JSON
    is_read = Column(Boolean, nullable=False, default=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    read_at = Column(DateTime(timezone=True), nullable=True)

    user = relationship("User")

# Push gateway registration of one user device
class DeviceToken(Base):
    __tablename__ = "device_tokens"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    token = Column(Text, nullable=False)
    device_id = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    __table_args__ = (
        UniqueConstraint("user_id", "token", name="uq_devicetoken_user_token"),
    )
