# backend/models/coupon.py
import enum
from datetime import datetime, timezone
from typing import Optional
from sqlalchemy import Column, Integer, String, Float, Boolean, DateTime, CheckConstraint, func
from database import Base

class CouponType(str, enum.Enum):
    PERCENTAGE = "percentage"
    FIXED_AMOUNT = "fixed_amount"


def naive_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes, so comparisons are done in naive UTC
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


# Reusable discount code with validity window and usage limits
class Coupon(Base):
    __tablename__ = "coupons"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String, unique=True, nullable=False, index=True)
    type = Column(String(20), nullable=False)
    value = Column(Float, CheckConstraint("value > 0"), nullable=False)
    min_order_amount = Column(Float, nullable=False, default=0.0)
    max_discount_amount = Column(Float, nullable=True)
    usage_limit = Column(Integer, nullable=True)
    used_count = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    valid_from = Column(DateTime, nullable=False)
    valid_until = Column(DateTime, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def is_valid(self, now: Optional[datetime] = None) -> bool:
        """Active, inside [valid_from, valid_until) and not used up."""
        now = naive_utc(now or datetime.utcnow())
        if not self.is_active:
            return False
        if not (naive_utc(self.valid_from) <= now < naive_utc(self.valid_until)):
            return False
        return self.usage_limit is None or (self.used_count or 0) < self.usage_limit

    def can_be_used_for(self, order_amount: float, now: Optional[datetime] = None) -> bool:
        return self.is_valid(now) and order_amount >= (self.min_order_amount or 0.0)

    def calculate_discount(self, order_amount: float, now: Optional[datetime] = None) -> float:
        """Discount for a subtotal; never above the cap and never above the subtotal."""
        if not self.can_be_used_for(order_amount, now):
            return 0.0

        if self.type == CouponType.PERCENTAGE.value:
            discount = order_amount * (self.value / 100.0)
        else:
            discount = self.value

        if self.max_discount_amount is not None and discount > self.max_discount_amount:
            discount = self.max_discount_amount

        if discount > order_amount:
            discount = order_amount

        return round(discount, 2)
