# backend/routes/coupons.py
from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from database import get_db
from utils.tokenJWT import get_current_user, get_current_admin
from utils.audit import write_log, client_ip
from models.users import User
from models.coupon import Coupon, CouponType, naive_utc
from services.orders import find_coupon
from schemas.coupon import (
    CouponCreate, CouponUpdate, CouponOut, CouponPage,
    CouponValidateRequest, CouponValidateResponse,
)

router = APIRouter(prefix="/coupons", tags=["Coupons"])
admin_router = APIRouter(prefix="/admin/coupons", tags=["Admin Coupons"])


def _norm_code(code: str) -> str:
    return code.strip().upper()


def _get_coupon(db: Session, coupon_id: int) -> Coupon:
    coupon = db.query(Coupon).filter(Coupon.id == coupon_id).first()
    if not coupon:
        raise HTTPException(status_code=404, detail="Coupon not found")
    return coupon


def _why_unusable(coupon: Optional[Coupon], subtotal: float, now: datetime) -> Optional[str]:
    if coupon is None:
        return "Coupon not found"
    if not coupon.is_active:
        return "Coupon is inactive"
    if not coupon.is_valid(now):
        if coupon.usage_limit is not None and (coupon.used_count or 0) >= coupon.usage_limit:
            return "Coupon usage limit reached"
        return "Coupon is expired or not yet valid"
    if subtotal < (coupon.min_order_amount or 0.0):
        return f"Minimum order amount is {coupon.min_order_amount:.2f}"
    return None


# Checkout preview; does not count as a use
@router.post("/validate", response_model=CouponValidateResponse)
def validate_coupon(
    payload: CouponValidateRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    now = datetime.utcnow()
    coupon = find_coupon(db, payload.code)
    reason = _why_unusable(coupon, payload.subtotal, now)
    if reason:
        return CouponValidateResponse(valid=False, code=_norm_code(payload.code), reason=reason)
    return CouponValidateResponse(
        valid=True,
        code=coupon.code,
        discount_amount=coupon.calculate_discount(payload.subtotal, now),
    )


@admin_router.get("", response_model=CouponPage)
def list_coupons(
    active: Optional[bool] = Query(None),
    q: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin),
):
    query = db.query(Coupon)
    if active is not None:
        query = query.filter(Coupon.is_active.is_(active))
    if q:
        query = query.filter(Coupon.code.ilike(f"%{q}%"))
    query = query.order_by(Coupon.created_at.desc(), Coupon.id.desc())

    total = query.count()
    items = query.offset((page - 1) * page_size).limit(page_size).all()
    return {"items": items, "total": total, "page": page, "page_size": page_size}


@admin_router.post("", response_model=CouponOut, status_code=status.HTTP_201_CREATED)
def create_coupon(
    payload: CouponCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin),
):
    code = _norm_code(payload.code)
    if db.query(Coupon).filter(func.upper(Coupon.code) == code).first():
        raise HTTPException(status_code=409, detail="Coupon code already exists")

    data = payload.model_dump()
    data.update(code=code, valid_from=naive_utc(payload.valid_from), valid_until=naive_utc(payload.valid_until))
    coupon = Coupon(**data, used_count=0)
    db.add(coupon)
    db.commit()
    db.refresh(coupon)

    write_log(db, user_id=current_user.id, action="COUPON_CREATE", resource="coupons", status="SUCCESS",
              ip=client_ip(request), meta={"id": coupon.id, "code": coupon.code})
    return coupon


@admin_router.get("/{coupon_id}", response_model=CouponOut)
def get_coupon(
    coupon_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin),
):
    return _get_coupon(db, coupon_id)


@admin_router.patch("/{coupon_id}", response_model=CouponOut)
def update_coupon(
    coupon_id: int,
    payload: CouponUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin),
):
    coupon = _get_coupon(db, coupon_id)
    changes = payload.model_dump(exclude_unset=True)
    for key in ("valid_from", "valid_until"):
        if changes.get(key) is not None:
            changes[key] = naive_utc(changes[key])

    # Re-check the cross-field rules against the merged values
    new_type = changes.get("type", coupon.type)
    new_value = changes.get("value", coupon.value)
    if new_type == CouponType.PERCENTAGE.value and new_value > 100:
        raise HTTPException(status_code=422, detail="Percentage discount cannot exceed 100")
    if changes.get("valid_until", coupon.valid_until) <= changes.get("valid_from", coupon.valid_from):
        raise HTTPException(status_code=422, detail="valid_until must be after valid_from")

    for key, value in changes.items():
        setattr(coupon, key, value)
    db.commit()
    db.refresh(coupon)

    write_log(db, user_id=current_user.id, action="COUPON_UPDATE", resource="coupons", status="SUCCESS",
              ip=client_ip(request), meta={"id": coupon.id, "fields": sorted(changes)})
    return coupon


@admin_router.delete("/{coupon_id}")
def delete_coupon(
    coupon_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin),
):
    coupon = _get_coupon(db, coupon_id)
    code = coupon.code
    db.delete(coupon)
    db.commit()

    write_log(db, user_id=current_user.id, action="COUPON_DELETE", resource="coupons", status="SUCCESS",
              ip=client_ip(request), meta={"id": coupon_id, "code": code})
    return {"detail": f"Coupon '{code}' deleted"}
