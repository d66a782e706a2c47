# backend/routes/favorites.py
from typing import List
from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from database import get_db
from utils.tokenJWT import get_current_user
from utils.audit import write_log, client_ip
from models.users import User
from models.product import Product, ProductType
from models.favorite import Favorite
from schemas.favorite import FavoriteCreate, FavoriteOut

router = APIRouter(prefix="/favorites", tags=["Favorites"])

@router.get("", response_model=List[FavoriteOut])
def list_favorites(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    # Newest first; deactivated products drop out of the list
    return (
        db.query(Favorite)
        .join(Product, Favorite.product_id == Product.id)
        .filter(Favorite.user_id == current_user.id, Product.is_active.is_(True))
        .order_by(Favorite.created_at.desc(), Favorite.id.desc())
        .all()
    )

@router.post("", response_model=FavoriteOut, status_code=status.HTTP_201_CREATED)
def add_favorite(
    payload: FavoriteCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    product = db.query(Product).filter(Product.id == payload.product_id, Product.is_active.is_(True)).first()
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    if product.type == ProductType.WHOLESALE.value and not (current_user.wholesale_access or current_user.is_admin):
        raise HTTPException(status_code=403, detail="Wholesale access required for this product")

    exists = db.query(Favorite.id).filter(
        Favorite.user_id == current_user.id, Favorite.product_id == product.id
    ).first()
    if exists:
        raise HTTPException(status_code=409, detail="Product already in favorites")

    favorite = Favorite(user_id=current_user.id, product_id=product.id)
    db.add(favorite)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="Product already in favorites")
    db.refresh(favorite)

    write_log(db, user_id=current_user.id, action="FAVORITE_ADD", resource="favorites", status="SUCCESS",
              ip=client_ip(request), meta={"product_id": product.id})
    return favorite

@router.delete("/{product_id}")
def remove_favorite(
    product_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    removed = db.query(Favorite).filter(
        Favorite.user_id == current_user.id, Favorite.product_id == product_id
    ).delete(synchronize_session=False)
    if not removed:
        raise HTTPException(status_code=404, detail="Product not found in favorites")
    db.commit()

    write_log(db, user_id=current_user.id, action="FAVORITE_REMOVE", resource="favorites", status="SUCCESS",
              ip=client_ip(request), meta={"product_id": product_id})
    return {"detail": "Product removed from favorites"}
