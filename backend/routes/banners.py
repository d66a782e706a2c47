# backend/routes/banners.py
from datetime import datetime
from typing import List, Optional, Literal
from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy import or_
from sqlalchemy.orm import Session

from database import get_db
from utils.tokenJWT import get_current_admin
from utils.audit import write_log, client_ip
from models.users import User
from models.banner import Banner, BannerAudience
from models.coupon import naive_utc
from schemas.banner import BannerCreate, BannerUpdate, BannerOut, BannerReorder

router = APIRouter(prefix="/banners", tags=["Banners"])
admin_router = APIRouter(prefix="/admin/banners", tags=["Admin Banners"])

# Clearing these with "" stores NULL
NULLABLE_TEXT = ("subtitle", "link_url")


def _get_banner(db: Session, banner_id: int) -> Banner:
    banner = db.query(Banner).filter(Banner.id == banner_id).first()
    if not banner:
        raise HTTPException(status_code=404, detail="Banner not found")
    return banner


def _optional_utc(value: Optional[datetime]) -> Optional[datetime]:
    return naive_utc(value) if value is not None else None


@router.get("", response_model=List[BannerOut])
def list_live_banners(
    audience: Optional[Literal["retail", "wholesale"]] = Query(None),
    db: Session = Depends(get_db),
):
    now = datetime.utcnow()
    query = db.query(Banner).filter(
        Banner.is_active.is_(True),
        or_(Banner.starts_at.is_(None), Banner.starts_at <= now),
        or_(Banner.ends_at.is_(None), Banner.ends_at >= now),
    )
    # A specific audience also sees banners meant for everyone
    if audience:
        query = query.filter(Banner.audience.in_([audience, BannerAudience.ALL.value]))
    return query.order_by(Banner.sort_order.asc(), Banner.updated_at.desc()).all()


@admin_router.get("", response_model=List[BannerOut])
def list_banners(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin),
):
    return db.query(Banner).order_by(Banner.sort_order.asc(), Banner.created_at.desc(), Banner.id.desc()).all()


@admin_router.post("", response_model=BannerOut, status_code=status.HTTP_201_CREATED)
def create_banner(
    payload: BannerCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin),
):
    data = payload.model_dump()
    data.update(starts_at=_optional_utc(payload.starts_at), ends_at=_optional_utc(payload.ends_at))
    for key in NULLABLE_TEXT:
        data[key] = data[key] or None
    banner = Banner(**data)
    db.add(banner)
    db.commit()
    db.refresh(banner)

    write_log(db, user_id=current_user.id, action="BANNER_CREATE", resource="banners", status="SUCCESS",
              ip=client_ip(request), meta={"id": banner.id, "title": banner.title})
    return banner


@admin_router.post("/reorder")
def reorder_banners(
    payload: BannerReorder,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin),
):
    ids = [b.id for b in payload.banners]
    found = {b.id: b for b in db.query(Banner).filter(Banner.id.in_(ids)).all()}
    missing = [i for i in ids if i not in found]
    if missing:
        raise HTTPException(status_code=404, detail=f"Banners not found: {missing}")

    # All positions change together or not at all
    for position in payload.banners:
        found[position.id].sort_order = position.sort_order
    db.commit()

    write_log(db, user_id=current_user.id, action="BANNER_REORDER", resource="banners", status="SUCCESS",
              ip=client_ip(request), meta={"ids": ids})
    return {"detail": "Banners reordered", "updated": len(ids)}


@admin_router.put("/{banner_id}", response_model=BannerOut)
def update_banner(
    banner_id: int,
    payload: BannerUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin),
):
    banner = _get_banner(db, banner_id)
    changes = payload.model_dump(exclude_unset=True)
    for key in ("starts_at", "ends_at"):
        if key in changes:
            changes[key] = _optional_utc(changes[key])
    for key in NULLABLE_TEXT:
        if key in changes:
            changes[key] = changes[key] or None

    starts_at = changes.get("starts_at", banner.starts_at)
    ends_at = changes.get("ends_at", banner.ends_at)
    if starts_at and ends_at and ends_at <= starts_at:
        raise HTTPException(status_code=400, detail="ends_at must be after starts_at")

    for key, value in changes.items():
        setattr(banner, key, value)
    db.commit()
    db.refresh(banner)

    write_log(db, user_id=current_user.id, action="BANNER_UPDATE", resource="banners", status="SUCCESS",
              ip=client_ip(request), meta={"id": banner.id, "fields": sorted(changes)})
    return banner


@admin_router.delete("/{banner_id}")
def delete_banner(
    banner_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin),
):
    banner = _get_banner(db, banner_id)
    db.delete(banner)
    db.commit()

    write_log(db, user_id=current_user.id, action="BANNER_DELETE", resource="banners", status="SUCCESS",
              ip=client_ip(request), meta={"id": banner_id})
    return {"detail": "Banner deleted"}
