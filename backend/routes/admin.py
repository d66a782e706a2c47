# backend/routes/admin.py
from fastapi import APIRouter, Depends, HTTPException, status, Query, Request
from sqlalchemy.orm import Session
from typing import Optional, Literal
from database import get_db
from models.users import User, UserRole
from models.order import Order
from models.notification import Notification, DeviceToken
from models.wholesale import WholesaleUpgradeRequest
from utils.tokenJWT import get_current_admin
from utils.audit import write_log, client_ip
from schemas.user import RoleUpdate, ActiveUpdate, UserResponse, PaginatedUsersResponse

router = APIRouter(prefix="/admin", tags=["Admin"])


# Retrieve a list of users with filtering, sorting, and pagination
@router.get("/users", response_model=PaginatedUsersResponse)
def get_all_users(
    q: Optional[str] = Query(None, description="Search by e-mail or name"),
    role: Optional[str] = Query(None, description="Filter by role"),
    account_type: Optional[str] = Query(None, description="retail or wholesale"),
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    sort_by: Literal["id", "email", "role", "full_name", "created_at"] = "id",
    order: Literal["asc", "desc"] = "asc",
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin)
):
    query = db.query(User)

    # Filter by email or name
    if q:
        like = f"%{q.lower()}%"
        query = query.filter(User.email.ilike(like) | User.full_name.ilike(like))

    if role:
        query = query.filter(User.role.ilike(role))

    if account_type:
        query = query.filter(User.account_type == account_type)

    # Apply sorting based on selected field and order
    sort_map = {
        "id": User.id,
        "email": User.email,
        "role": User.role,
        "full_name": User.full_name,
        "created_at": User.created_at,
    }
    col = sort_map.get(sort_by, User.id)
    query = query.order_by(col.asc() if order == "asc" else col.desc())

    # Apply pagination
    total = query.count()
    users = query.offset((page - 1) * page_size).limit(page_size).all()

    return {
        "items": users,
        "total": total,
        "page": page,
        "page_size": page_size,
    }


def _get_user(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


# Update user role; only super admins may hand out admin roles
@router.put("/users/{user_id}/role", response_model=UserResponse)
def update_user_role(
    user_id: int,
    new_role: RoleUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin)
):
    user = _get_user(db, user_id)

    if new_role.role != UserRole.CUSTOMER.value and current_user.role != UserRole.SUPER_ADMIN.value:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only a super admin can grant admin roles")
    if user.id == current_user.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot change your own role")

    old_role = user.role
    user.role = new_role.role
    db.commit()
    db.refresh(user)

    write_log(db, user_id=current_user.id, action="USER_ROLE_CHANGE", resource="users", status="SUCCESS",
              ip=client_ip(request), meta={"target": user.id, "old": old_role, "new": user.role})
    return user


# Activate or deactivate an account
@router.put("/users/{user_id}/active", response_model=UserResponse)
def update_user_active(
    user_id: int,
    payload: ActiveUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin)
):
    user = _get_user(db, user_id)
    if user.id == current_user.id and not payload.is_active:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot deactivate your own account")

    user.is_active = payload.is_active
    db.commit()
    db.refresh(user)

    write_log(db, user_id=current_user.id, action="USER_ACTIVE_CHANGE", resource="users", status="SUCCESS",
              ip=client_ip(request), meta={"target": user.id, "is_active": user.is_active})
    return user


# Delete a user account
@router.delete("/users/{user_id}")
def delete_user(
    user_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin)
):
    user = _get_user(db, user_id)

    # Prevent self-deletion
    if user.id == current_user.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot delete your own account")

    # Customers with order history keep their row; deactivate them instead
    if db.query(Order.id).filter(Order.user_id == user.id).first():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="User has orders, deactivate the account instead")

    email = user.email
    db.query(Notification).filter(Notification.user_id == user.id).delete(synchronize_session=False)
    db.query(DeviceToken).filter(DeviceToken.user_id == user.id).delete(synchronize_session=False)
    db.query(WholesaleUpgradeRequest).filter(WholesaleUpgradeRequest.user_id == user.id).delete(synchronize_session=False)
    db.delete(user)
    db.commit()

    write_log(db, user_id=current_user.id, action="USER_DELETE", resource="users", status="SUCCESS",
              ip=client_ip(request), meta={"target": user_id, "email": email})
    return {"message": f"User {email} has been deleted"}
