# backend/routes/wholesale.py
from datetime import datetime
from typing import Optional
from fastapi import (
    APIRouter, BackgroundTasks, Depends, HTTPException, Query, Request,
    UploadFile, File, Form, status
)
from sqlalchemy.orm import Session, joinedload

from database import get_db
from utils.tokenJWT import get_current_user, get_current_admin
from utils.audit import write_log, client_ip
from utils.uploads import save_upload, DOCUMENT_TYPES
from models.users import User, AccountType
from models.wholesale import WholesaleUpgradeRequest, WholesaleRequestStatus
from models.notification import NotificationType
from services.hub import NotificationHub, get_hub
from schemas.wholesale import (
    WholesaleRequestOut, WholesaleRequestAdminOut, WholesaleRequestPage, WholesaleDecision,
)

router = APIRouter(prefix="/wholesale", tags=["Wholesale"])
admin_router = APIRouter(prefix="/admin/wholesale-requests", tags=["Admin Wholesale"])


def _admin_out(req: WholesaleUpgradeRequest) -> WholesaleRequestAdminOut:
    out = WholesaleRequestAdminOut.model_validate(req, from_attributes=True)
    if req.user is not None:
        out.user_email = req.user.email
        out.user_full_name = req.user.full_name
    return out


# Submit a request to unlock wholesale pricing
@router.post("/upgrade-requests", response_model=WholesaleRequestOut, status_code=status.HTTP_201_CREATED)
def submit_upgrade_request(
    request: Request,
    background_tasks: BackgroundTasks,
    company_name: str = Form(..., min_length=2),
    commercial_register: str = Form(..., min_length=2),
    tax_number: Optional[str] = Form(None),
    id_document: UploadFile = File(...),
    commercial_document: UploadFile = File(...),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    hub: NotificationHub = Depends(get_hub),
):
    if current_user.wholesale_access:
        raise HTTPException(status_code=400, detail="Account already has wholesale access")

    pending = db.query(WholesaleUpgradeRequest).filter(
        WholesaleUpgradeRequest.user_id == current_user.id,
        WholesaleUpgradeRequest.status == WholesaleRequestStatus.PENDING.value,
    ).first()
    if pending:
        raise HTTPException(status_code=409, detail="A pending request already exists")

    id_url = save_upload(id_document, DOCUMENT_TYPES, subdir="wholesale")
    commercial_url = save_upload(commercial_document, DOCUMENT_TYPES, subdir="wholesale")

    req = WholesaleUpgradeRequest(
        user_id=current_user.id,
        company_name=company_name.strip(),
        commercial_register=commercial_register.strip(),
        tax_number=tax_number,
        id_document_url=id_url,
        commercial_document_url=commercial_url,
        status=WholesaleRequestStatus.PENDING.value,
    )
    db.add(req)
    db.commit()
    db.refresh(req)

    write_log(db, user_id=current_user.id, action="WHOLESALE_SUBMIT", resource="wholesale", status="SUCCESS",
              ip=client_ip(request), meta={"request_id": req.id, "company": req.company_name})

    event = {"request_id": req.id, "company_name": req.company_name, "user_id": current_user.id}
    background_tasks.add_task(hub.broadcast, current_user.id, NotificationType.WHOLESALE_SUBMITTED.value, event)
    background_tasks.add_task(hub.notify_admins, NotificationType.ADMIN_WHOLESALE_SUBMITTED.value, event)
    return req


# Latest request of the current user
@router.get("/upgrade-requests/me", response_model=WholesaleRequestOut)
def my_upgrade_request(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    req = (
        db.query(WholesaleUpgradeRequest)
        .filter(WholesaleUpgradeRequest.user_id == current_user.id)
        .order_by(WholesaleUpgradeRequest.created_at.desc(), WholesaleUpgradeRequest.id.desc())
        .first()
    )
    if not req:
        raise HTTPException(status_code=404, detail="No wholesale request found")
    return req


@admin_router.get("", response_model=WholesaleRequestPage)
def list_upgrade_requests(
    status_filter: Optional[WholesaleRequestStatus] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin),
):
    query = db.query(WholesaleUpgradeRequest).options(joinedload(WholesaleUpgradeRequest.user))
    if status_filter:
        query = query.filter(WholesaleUpgradeRequest.status == status_filter.value)
    query = query.order_by(WholesaleUpgradeRequest.created_at.desc(), WholesaleUpgradeRequest.id.desc())

    total = query.count()
    rows = query.offset((page - 1) * page_size).limit(page_size).all()
    return {"items": [_admin_out(r) for r in rows], "total": total, "page": page, "page_size": page_size}


def _pending_request(db: Session, request_id: int) -> WholesaleUpgradeRequest:
    req = db.query(WholesaleUpgradeRequest).filter(WholesaleUpgradeRequest.id == request_id).first()
    if not req:
        raise HTTPException(status_code=404, detail="Wholesale request not found")
    if req.status != WholesaleRequestStatus.PENDING.value:
        raise HTTPException(status_code=400, detail=f"Request already {req.status}")
    return req


@admin_router.post("/{request_id}/approve", response_model=WholesaleRequestAdminOut)
def approve_upgrade_request(
    request_id: int,
    request: Request,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin),
    hub: NotificationHub = Depends(get_hub),
):
    req = _pending_request(db, request_id)

    req.status = WholesaleRequestStatus.APPROVED.value
    req.processed_by = current_user.id
    req.processed_at = datetime.utcnow()

    # Grant access and copy the company data onto the account
    user = req.user
    user.wholesale_access = True
    user.account_type = AccountType.WHOLESALE.value
    user.company_name = req.company_name
    user.commercial_register = req.commercial_register
    user.is_active = True
    db.commit()
    db.refresh(req)

    write_log(db, user_id=current_user.id, action="WHOLESALE_APPROVE", resource="wholesale", status="SUCCESS",
              ip=client_ip(request), meta={"request_id": req.id, "target": req.user_id})

    background_tasks.add_task(
        hub.broadcast, req.user_id, NotificationType.WHOLESALE_APPROVED.value,
        {"request_id": req.id, "company_name": req.company_name},
    )
    return _admin_out(req)


@admin_router.post("/{request_id}/reject", response_model=WholesaleRequestAdminOut)
def reject_upgrade_request(
    request_id: int,
    request: Request,
    background_tasks: BackgroundTasks,
    payload: Optional[WholesaleDecision] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin),
    hub: NotificationHub = Depends(get_hub),
):
    req = _pending_request(db, request_id)
    reason = payload.reason if payload else None

    req.status = WholesaleRequestStatus.REJECTED.value
    req.rejection_reason = reason
    req.processed_by = current_user.id
    req.processed_at = datetime.utcnow()
    db.commit()
    db.refresh(req)

    write_log(db, user_id=current_user.id, action="WHOLESALE_REJECT", resource="wholesale", status="SUCCESS",
              ip=client_ip(request), meta={"request_id": req.id, "target": req.user_id, "reason": reason})

    background_tasks.add_task(
        hub.broadcast, req.user_id, NotificationType.WHOLESALE_REJECTED.value,
        {"request_id": req.id, "reason": reason},
    )
    return _admin_out(req)
