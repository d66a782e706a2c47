# backend/routes/notifications.py
from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import StreamingResponse
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from database import get_db
from utils.tokenJWT import get_current_user, get_current_admin, optional_bearer_scheme, user_from_token
from models.users import User
from models.notification import Notification, DeviceToken, ADMIN_NOTIFICATION_TYPES
from services.hub import NotificationHub, get_hub
from schemas.notification import (
    NotificationOut, NotificationList, NotificationPage, UnreadCount,
    DeviceTokenIn, DeviceTokenDelete,
)

router = APIRouter(prefix="/notifications", tags=["Notifications"])
admin_router = APIRouter(prefix="/admin/notifications", tags=["Admin Notifications"])


def _user_notifications(db: Session, user_id: int):
    return db.query(Notification).filter(
        Notification.user_id == user_id,
        Notification.type.notin_(ADMIN_NOTIFICATION_TYPES),
    )


# Live event stream. Browsers' EventSource cannot send headers, so the
# token may also arrive as a query parameter.
@router.get("/stream")
def stream_notifications(
    request: Request,
    token: Optional[str] = Query(None),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(optional_bearer_scheme),
    db: Session = Depends(get_db),
    hub: NotificationHub = Depends(get_hub),
):
    raw_token = credentials.credentials if credentials else token
    if not raw_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    user_id = user_from_token(raw_token, db).id
    # Release the pooled connection before the long-lived stream starts
    db.close()

    return StreamingResponse(
        hub.stream(request, user_id),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )


@router.get("", response_model=NotificationList)
def list_notifications(
    limit: int = Query(50, ge=1, le=200),
    unread_only: bool = Query(False),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    query = _user_notifications(db, current_user.id)
    unread_count = query.filter(Notification.is_read.is_(False)).count()
    if unread_only:
        query = query.filter(Notification.is_read.is_(False))
    items = query.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(limit).all()
    return {"items": items, "unread_count": unread_count}


@router.get("/unread-count", response_model=UnreadCount)
def unread_count(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    count = _user_notifications(db, current_user.id).filter(Notification.is_read.is_(False)).count()
    return {"unread_count": count}


@router.put("/read-all", response_model=UnreadCount)
def mark_all_read(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    # Admin feed rows keep their own read state
    _user_notifications(db, current_user.id).filter(
        Notification.is_read.is_(False),
    ).update({"is_read": True, "read_at": datetime.utcnow()}, synchronize_session=False)
    db.commit()
    return {"unread_count": 0}


@router.put("/{notification_id}/read", response_model=NotificationOut)
def mark_read(
    notification_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    notification = db.query(Notification).filter(
        Notification.id == notification_id,
        Notification.user_id == current_user.id,
    ).first()
    if not notification:
        raise HTTPException(status_code=404, detail="Notification not found")

    if not notification.is_read:
        notification.is_read = True
        notification.read_at = datetime.utcnow()
        db.commit()
        db.refresh(notification)
    return notification


# Register (or refresh) a push token for the current user
@router.post("/devices", status_code=status.HTTP_201_CREATED)
def register_device(
    payload: DeviceTokenIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    device = db.query(DeviceToken).filter(
        DeviceToken.user_id == current_user.id,
        DeviceToken.token == payload.token,
    ).first()
    if device:
        device.updated_at = datetime.utcnow()
        if payload.device_id:
            device.device_id = payload.device_id
    else:
        device = DeviceToken(
            user_id=current_user.id,
            token=payload.token,
            device_id=payload.device_id,
            updated_at=datetime.utcnow(),
        )
        db.add(device)
    db.commit()
    return {"detail": "Device registered", "id": device.id}


@router.delete("/devices")
def unregister_device(
    payload: DeviceTokenDelete,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    removed = db.query(DeviceToken).filter(
        DeviceToken.user_id == current_user.id,
        DeviceToken.token == payload.token,
    ).delete(synchronize_session=False)
    db.commit()
    return {"detail": "Device removed" if removed else "Device not registered", "removed": removed}


# Back-office feed of the admin_* events addressed to this admin
@admin_router.get("", response_model=NotificationPage)
def admin_notifications(
    type: Optional[str] = Query(None),
    unread_only: bool = Query(False),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin),
):
    query = db.query(Notification).filter(
        Notification.user_id == current_user.id,
        Notification.type.in_(ADMIN_NOTIFICATION_TYPES),
    )
    if type:
        query = query.filter(Notification.type == type)
    if unread_only:
        query = query.filter(Notification.is_read.is_(False))
    query = query.order_by(Notification.created_at.desc(), Notification.id.desc())

    total = query.count()
    items = query.offset((page - 1) * page_size).limit(page_size).all()
    return {"items": items, "total": total, "page": page, "page_size": page_size}
