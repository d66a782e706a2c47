# backend/routes/products.py
from typing import Optional, List, Literal
from datetime import datetime
from fastapi import (
    APIRouter, Depends, HTTPException, Query, Request,
    UploadFile, File, Form, status
)
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from database import get_db
from utils.tokenJWT import get_current_admin
from utils.audit import write_log, client_ip
from utils.uploads import save_upload, delete_upload, IMAGE_TYPES
from models.users import User
from models.product import Product, Category, ProductType
from models.cart import CartItem
from models.favorite import Favorite
from models.order import OrderItem
import schemas.product as product_schemas

router = APIRouter(prefix="/admin", tags=["Products"])

# ---- HELPERS ----
def _norm_sku(sku: Optional[str]) -> Optional[str]:
    if sku is None:
        return None
    s = sku.strip().upper()
    return s if s else None

def _check_type(value: Optional[str]):
    if value is not None and value not in {t.value for t in ProductType}:
        raise HTTPException(status_code=400, detail=f"Invalid product type: {value}")

def _check_category(db: Session, category_id: Optional[int]):
    if category_id is not None and not db.query(Category).filter(Category.id == category_id).first():
        raise HTTPException(status_code=400, detail="Category not found")

def _check_discount(price: float, discount_price: Optional[float]):
    if discount_price is not None and discount_price > price:
        raise HTTPException(status_code=400, detail="Discount price cannot exceed price")


# =========================
# CATEGORIES
# =========================
@router.get("/categories", response_model=List[product_schemas.CategoryOut])
def list_categories(db: Session = Depends(get_db), current_user: User = Depends(get_current_admin)):
    return db.query(Category).order_by(Category.name.asc()).all()

@router.post("/categories", response_model=product_schemas.CategoryOut, status_code=status.HTTP_201_CREATED)
def create_category(
    payload: product_schemas.CategoryCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin),
):
    name = payload.name.strip()
    if db.query(Category).filter(Category.name.ilike(name)).first():
        raise HTTPException(status_code=409, detail="Category already exists")

    category = Category(name=name, description=payload.description,
                        image_url=payload.image_url, is_active=payload.is_active)
    db.add(category)
    db.commit()
    db.refresh(category)

    write_log(db, user_id=current_user.id, action="CATEGORY_CREATE", resource="categories",
              status="SUCCESS", ip=client_ip(request), meta={"id": category.id, "name": category.name})
    return category

@router.delete("/categories/{category_id}")
def delete_category(
    category_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin),
):
    category = db.query(Category).filter(Category.id == category_id).first()
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")
    if db.query(Product.id).filter(Product.category_id == category_id).first():
        raise HTTPException(status_code=409, detail="Category still has products")

    name = category.name
    db.delete(category)
    db.commit()
    write_log(db, user_id=current_user.id, action="CATEGORY_DELETE", resource="categories",
              status="SUCCESS", ip=client_ip(request), meta={"id": category_id})
    return {"detail": f"Category '{name}' deleted"}


# =========================
# PRODUCT LIST
# =========================
@router.get("/products", response_model=product_schemas.ProductListPage)
def list_products(
    q: Optional[str] = Query(None),
    category_id: Optional[int] = Query(None),
    type: Optional[Literal["retail", "wholesale"]] = Query(None),
    low_stock: bool = Query(False),
    include_inactive: bool = Query(True),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=200),
    sort_by: Literal["id", "name", "sku", "price", "stock_quantity", "created_at"] = "id",
    order: Literal["asc", "desc"] = "asc",
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin),
):
    query = db.query(Product).options(joinedload(Product.category))

    if q:
        like = f"%{q}%"
        query = query.filter(or_(Product.name.ilike(like), Product.sku.ilike(like), Product.brand.ilike(like)))
    if category_id is not None:
        query = query.filter(Product.category_id == category_id)
    if type:
        query = query.filter(Product.type == type)
    if low_stock:
        query = query.filter(Product.stock_quantity <= Product.min_stock_level)
    if not include_inactive:
        query = query.filter(Product.is_active.is_(True))

    allowed = {
        "id": Product.id, "name": Product.name, "sku": Product.sku,
        "price": Product.price, "stock_quantity": Product.stock_quantity,
        "created_at": Product.created_at,
    }
    sort_col = allowed.get(sort_by, Product.id)
    query = query.order_by(sort_col.asc() if order == "asc" else sort_col.desc())

    total = query.count()
    items: List[Product] = query.offset((page - 1) * page_size).limit(page_size).all()
    return {"items": items, "total": total, "page": page, "page_size": page_size}


@router.get("/products/{product_id}", response_model=product_schemas.ProductOut)
def get_product(
    product_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin),
):
    product = db.query(Product).filter(Product.id == product_id).first()
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


# =========================
# CREATE PRODUCT (multipart)
# =========================
@router.post("/products", response_model=product_schemas.ProductOut, status_code=status.HTTP_201_CREATED)
def add_product(
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin),
    file: Optional[UploadFile] = File(None),
    name: str = Form(...),
    sku: str = Form(...),
    price: float = Form(..., ge=0),
    stock_quantity: int = Form(0, ge=0),
    discount_price: Optional[float] = Form(None, ge=0),
    min_stock_level: int = Form(5, ge=0),
    description: Optional[str] = Form(None),
    brand: Optional[str] = Form(None),
    category_id: Optional[int] = Form(None),
    type: str = Form(ProductType.RETAIL.value),
    is_active: bool = Form(True),
    is_featured: bool = Form(False),
    manufacturer: Optional[str] = Form(None),
    active_ingredient: Optional[str] = Form(None),
    dosage_form: Optional[str] = Form(None),
    strength: Optional[str] = Form(None),
    requires_prescription: bool = Form(False),
    expiry_date: Optional[datetime] = Form(None),
):
    norm_sku = _norm_sku(sku)
    if not norm_sku:
        raise HTTPException(status_code=400, detail="SKU is required")
    if db.query(Product).filter(Product.sku == norm_sku).first():
        raise HTTPException(status_code=409, detail="Product SKU already exists")
    _check_type(type)
    _check_category(db, category_id)
    _check_discount(price, discount_price)

    file_url = save_upload(file, IMAGE_TYPES, subdir="products") if file else None

    new_product = Product(
        name=name.strip(), sku=norm_sku, price=price, discount_price=discount_price,
        stock_quantity=stock_quantity, min_stock_level=min_stock_level,
        description=description, brand=brand, category_id=category_id, type=type,
        is_active=is_active, is_featured=is_featured, image_url=file_url,
        manufacturer=manufacturer, active_ingredient=active_ingredient,
        dosage_form=dosage_form, strength=strength,
        requires_prescription=requires_prescription, expiry_date=expiry_date,
    )
    db.add(new_product)
    db.commit()
    db.refresh(new_product)

    write_log(
        db, user_id=current_user.id, action="PRODUCT_CREATE", resource="products",
        status="SUCCESS", ip=client_ip(request), meta={"id": new_product.id, "sku": new_product.sku}
    )
    return new_product


# =========================
# PARTIAL EDIT (multipart)
# =========================
@router.patch("/products/{product_id}", response_model=product_schemas.ProductOut)
def edit_product(
    product_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin),
    file: Optional[UploadFile] = File(None),
    name: Optional[str] = Form(None),
    sku: Optional[str] = Form(None),
    price: Optional[float] = Form(None, ge=0),
    discount_price: Optional[float] = Form(None, ge=0),
    clear_discount: bool = Form(False),
    stock_quantity: Optional[int] = Form(None, ge=0),
    min_stock_level: Optional[int] = Form(None, ge=0),
    description: Optional[str] = Form(None),
    brand: Optional[str] = Form(None),
    category_id: Optional[int] = Form(None),
    type: Optional[str] = Form(None),
    is_active: Optional[bool] = Form(None),
    is_featured: Optional[bool] = Form(None),
    manufacturer: Optional[str] = Form(None),
    active_ingredient: Optional[str] = Form(None),
    dosage_form: Optional[str] = Form(None),
    strength: Optional[str] = Form(None),
    requires_prescription: Optional[bool] = Form(None),
    expiry_date: Optional[datetime] = Form(None),
):
    p = db.query(Product).filter(Product.id == product_id).first()
    if not p:
        raise HTTPException(status_code=404, detail="Product not found")

    if sku is not None:
        s = _norm_sku(sku)
        if not s:
            raise HTTPException(status_code=400, detail="SKU is required")
        if s != p.sku and db.query(Product).filter(Product.sku == s, Product.id != p.id).first():
            raise HTTPException(status_code=409, detail="Product SKU already exists")
        p.sku = s
    _check_type(type)
    _check_category(db, category_id)

    new_price = price if price is not None else p.price
    new_discount = None if clear_discount else (discount_price if discount_price is not None else p.discount_price)
    _check_discount(new_price, new_discount)
    p.price = new_price
    p.discount_price = new_discount

    # Simple optional fields
    updates = {
        "name": name, "stock_quantity": stock_quantity, "min_stock_level": min_stock_level,
        "description": description, "brand": brand, "category_id": category_id, "type": type,
        "is_active": is_active, "is_featured": is_featured, "manufacturer": manufacturer,
        "active_ingredient": active_ingredient, "dosage_form": dosage_form, "strength": strength,
        "requires_prescription": requires_prescription, "expiry_date": expiry_date,
    }
    for key, value in updates.items():
        if value is not None:
            setattr(p, key, value)

    if file:
        old_url = p.image_url
        p.image_url = save_upload(file, IMAGE_TYPES, subdir="products")
        delete_upload(old_url)

    db.commit()
    db.refresh(p)

    write_log(
        db, user_id=current_user.id, action="PRODUCT_EDIT", resource="products",
        status="SUCCESS", ip=client_ip(request), meta={"product_id": p.id}
    )
    return p


# =========================
# DELETE
# =========================
@router.delete("/products/{product_id}")
def delete_product(
    product_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin),
):
    product = db.query(Product).filter(Product.id == product_id).first()
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")

    pid, pname, image_url = product.id, product.name, product.image_url

    # Products with order history stay for the records; hide them from the shop instead
    if db.query(OrderItem.id).filter(OrderItem.product_id == pid).first():
        product.is_active = False
        db.query(CartItem).filter(CartItem.product_id == pid).delete(synchronize_session=False)
        db.commit()
        write_log(db, user_id=current_user.id, action="PRODUCT_DEACTIVATE", resource="products",
                  status="SUCCESS", ip=client_ip(request), meta={"id": pid})
        return {"detail": f"Product '{pname}' is referenced by orders and was deactivated"}

    db.query(CartItem).filter(CartItem.product_id == pid).delete(synchronize_session=False)
    db.query(Favorite).filter(Favorite.product_id == pid).delete(synchronize_session=False)
    db.delete(product)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="Product is still referenced and cannot be deleted")

    delete_upload(image_url)
    write_log(db, user_id=current_user.id, action="PRODUCT_DELETE", resource="products",
              status="SUCCESS", ip=client_ip(request), meta={"id": pid})
    return {"detail": f"Product '{pname}' deleted"}
