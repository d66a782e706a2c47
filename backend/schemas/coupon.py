from pydantic import BaseModel, Field, model_validator
from typing import List, Optional, Literal
from datetime import datetime


# Shared coupon attributes with cross-field checks
class CouponBase(BaseModel):
    code: str = Field(min_length=3, max_length=50)
    type: Literal["percentage", "fixed_amount"]
    value: float = Field(gt=0)
    min_order_amount: float = Field(default=0.0, ge=0)
    max_discount_amount: Optional[float] = Field(default=None, gt=0)
    usage_limit: Optional[int] = Field(default=None, ge=1)
    is_active: bool = True
    valid_from: datetime
    valid_until: datetime

    @model_validator(mode="after")
    def check_ranges(self):
        if self.type == "percentage" and self.value > 100:
            raise ValueError("Percentage discount cannot exceed 100")
        if self.valid_until <= self.valid_from:
            raise ValueError("valid_until must be after valid_from")
        return self


class CouponCreate(CouponBase):
    pass


# Partial update; omitted fields keep their current values
class CouponUpdate(BaseModel):
    type: Optional[Literal["percentage", "fixed_amount"]] = None
    value: Optional[float] = Field(default=None, gt=0)
    min_order_amount: Optional[float] = Field(default=None, ge=0)
    max_discount_amount: Optional[float] = Field(default=None, gt=0)
    usage_limit: Optional[int] = Field(default=None, ge=1)
    is_active: Optional[bool] = None
    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None


class CouponOut(BaseModel):
    id: int
    code: str
    type: str
    value: float
    min_order_amount: float
    max_discount_amount: Optional[float] = None
    usage_limit: Optional[int] = None
    used_count: int
    is_active: bool
    valid_from: datetime
    valid_until: datetime
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class CouponPage(BaseModel):
    items: List[CouponOut]
    total: int
    page: int
    page_size: int


class CouponValidateRequest(BaseModel):
    code: str = Field(min_length=1)
    subtotal: float = Field(ge=0)


class CouponValidateResponse(BaseModel):
    valid: bool
    code: str
    discount_amount: float = 0.0
    reason: Optional[str] = None
