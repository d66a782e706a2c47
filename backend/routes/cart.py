# backend/routes/cart.py
from typing import List
from fastapi import APIRouter, Depends, HTTPException, status, Request
from sqlalchemy.orm import Session, joinedload
from database import get_db
from utils.tokenJWT import get_current_user
from utils.audit import write_log, client_ip
from models.users import User
from models.product import Product, ProductType
from models.cart import CartItem
from schemas.cart import CartAddItem, CartUpdateItem, CartOut, CartItemOut

router = APIRouter(prefix="/cart", tags=["Cart"])

def _cart_lines(db: Session, user_id: int) -> List[CartItem]:
    return (
        db.query(CartItem)
        .options(joinedload(CartItem.product))
        .filter(CartItem.user_id == user_id)
        .order_by(CartItem.id)
        .all()
    )

def _cart_to_out(lines: List[CartItem]) -> CartOut:
    items_out = []
    subtotal = 0.0

    for it in lines:
        product = it.product
        unit_price = product.effective_price if product else 0.0
        line_total = unit_price * it.quantity
        subtotal += line_total

        items_out.append(CartItemOut(
            id=it.id,
            product_id=it.product_id,
            name=product.name if product else "",
            image_url=product.image_url if product else None,
            quantity=it.quantity,
            unit_price=round(unit_price, 2),
            line_total=round(line_total, 2),
            stock_quantity=product.stock_quantity if product else 0,
        ))

    return CartOut(items=items_out, items_count=len(items_out), subtotal=round(subtotal, 2))

def _get_line(db: Session, item_id: int, user_id: int) -> CartItem:
    item = db.query(CartItem).filter(CartItem.id == item_id, CartItem.user_id == user_id).first()
    if not item:
        raise HTTPException(status_code=404, detail="Cart item not found")
    return item

@router.get("", response_model=CartOut)
def get_cart(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return _cart_to_out(_cart_lines(db, current_user.id))

@router.post("/add", response_model=CartOut, status_code=status.HTTP_200_OK)
def add_to_cart(
    payload: CartAddItem,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    product = db.query(Product).filter(Product.id == payload.product_id).first()
    if not product or not product.is_active:
        raise HTTPException(status_code=404, detail="Product not found")

    if product.type == ProductType.WHOLESALE.value and not (current_user.wholesale_access or current_user.is_admin):
        raise HTTPException(status_code=403, detail="Wholesale access required for this product")

    item = db.query(CartItem).filter(
        CartItem.user_id == current_user.id, CartItem.product_id == payload.product_id
    ).first()

    # Merged quantity must fit the current stock
    new_qty = (item.quantity if item else 0) + payload.quantity
    if new_qty > (product.stock_quantity or 0):
        raise HTTPException(status_code=400, detail="Insufficient stock")

    if item:
        item.quantity = new_qty
    else:
        item = CartItem(user_id=current_user.id, product_id=product.id, quantity=payload.quantity)
        db.add(item)

    db.commit()

    out = _cart_to_out(_cart_lines(db, current_user.id))
    write_log(
        db,
        user_id=current_user.id,
        action="CART_ADD",
        resource="cart",
        status="SUCCESS",
        ip=client_ip(request),
        meta={"product_id": product.id, "qty": payload.quantity, "cart_items": out.items_count, "subtotal": out.subtotal},
    )
    return out

@router.put("/items/{item_id}", response_model=CartOut)
def update_cart_item(
    item_id: int,
    payload: CartUpdateItem,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    item = _get_line(db, item_id, current_user.id)

    # Validate stock for the new quantity
    product = db.query(Product).filter(Product.id == item.product_id).first()
    if product and payload.quantity > (product.stock_quantity or 0):
        raise HTTPException(status_code=400, detail="Insufficient stock")

    item.quantity = payload.quantity
    db.commit()

    out = _cart_to_out(_cart_lines(db, current_user.id))
    write_log(
        db,
        user_id=current_user.id,
        action="CART_UPDATE",
        resource="cart",
        status="SUCCESS",
        ip=client_ip(request),
        meta={"item_id": item_id, "qty": payload.quantity, "subtotal": out.subtotal},
    )
    return out

@router.delete("/items/{item_id}", response_model=CartOut)
def delete_cart_item(
    item_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    item = _get_line(db, item_id, current_user.id)
    db.delete(item)
    db.commit()

    out = _cart_to_out(_cart_lines(db, current_user.id))
    write_log(
        db,
        user_id=current_user.id,
        action="CART_DELETE",
        resource="cart",
        status="SUCCESS",
        ip=client_ip(request),
        meta={"item_id": item_id, "cart_items": out.items_count, "subtotal": out.subtotal},
    )
    return out

@router.delete("", response_model=CartOut)
def clear_cart(
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    removed = db.query(CartItem).filter(CartItem.user_id == current_user.id).delete(synchronize_session=False)
    db.commit()

    write_log(db, user_id=current_user.id, action="CART_CLEAR", resource="cart",
              status="SUCCESS", ip=client_ip(request), meta={"removed": removed})
    return _cart_to_out([])
