# backend/routes/addresses.py
from typing import List
from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from database import get_db
from utils.tokenJWT import get_current_user
from utils.audit import write_log, client_ip
from models.users import User
from models.address import Address
from schemas.address import AddressCreate, AddressOut

router = APIRouter(prefix="/addresses", tags=["Addresses"])


def _get_address(db: Session, address_id: int, user_id: int) -> Address:
    address = db.query(Address).filter(Address.id == address_id, Address.user_id == user_id).first()
    if not address:
        raise HTTPException(status_code=404, detail="Address not found")
    return address


# Only one default address per type
def _clear_defaults(db: Session, user_id: int, address_type: str, keep_id: int = None):
    query = db.query(Address).filter(
        Address.user_id == user_id, Address.type == address_type, Address.is_default.is_(True)
    )
    if keep_id is not None:
        query = query.filter(Address.id != keep_id)
    query.update({"is_default": False}, synchronize_session=False)


@router.get("", response_model=List[AddressOut])
def list_addresses(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return (
        db.query(Address)
        .filter(Address.user_id == current_user.id)
        .order_by(Address.is_default.desc(), Address.id.asc())
        .all()
    )


@router.post("", response_model=AddressOut, status_code=status.HTTP_201_CREATED)
def create_address(
    payload: AddressCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    # The first address of a type becomes the default
    has_any = db.query(Address.id).filter(Address.user_id == current_user.id, Address.type == payload.type).first()
    is_default = payload.is_default or not has_any
    if is_default:
        _clear_defaults(db, current_user.id, payload.type)

    address = Address(user_id=current_user.id, **{**payload.model_dump(), "is_default": is_default})
    db.add(address)
    db.commit()
    db.refresh(address)

    write_log(db, user_id=current_user.id, action="ADDRESS_CREATE", resource="addresses", status="SUCCESS",
              ip=client_ip(request), meta={"id": address.id})
    return address


@router.put("/{address_id}", response_model=AddressOut)
def update_address(
    address_id: int,
    payload: AddressCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    address = _get_address(db, address_id, current_user.id)
    for key, value in payload.model_dump().items():
        setattr(address, key, value)
    if address.is_default:
        _clear_defaults(db, current_user.id, address.type, keep_id=address.id)
    db.commit()
    db.refresh(address)

    write_log(db, user_id=current_user.id, action="ADDRESS_UPDATE", resource="addresses", status="SUCCESS",
              ip=client_ip(request), meta={"id": address.id})
    return address


@router.put("/{address_id}/default", response_model=AddressOut)
def set_default_address(
    address_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    address = _get_address(db, address_id, current_user.id)
    _clear_defaults(db, current_user.id, address.type, keep_id=address.id)
    address.is_default = True
    db.commit()
    db.refresh(address)
    return address


@router.delete("/{address_id}")
def delete_address(
    address_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    address = _get_address(db, address_id, current_user.id)
    db.delete(address)
    db.commit()

    write_log(db, user_id=current_user.id, action="ADDRESS_DELETE", resource="addresses", status="SUCCESS",
              ip=client_ip(request), meta={"id": address_id})
    return {"detail": "Address deleted"}
