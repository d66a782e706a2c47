from typing import Optional, List, Literal
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from database import get_db
from utils.tokenJWT import get_optional_user
from models.users import User
from models.product import Product, Category, ProductType
from schemas.product import ProductOut, ProductListPage, CategoryOut

router = APIRouter(
    prefix="/shop",
    tags=["Shop"]
)

# Wholesale products are only shown to approved wholesale customers and staff
def _can_see_wholesale(user: Optional[User]) -> bool:
    return bool(user) and (user.wholesale_access or user.is_admin)

def _visible_products(db: Session, user: Optional[User]):
    query = db.query(Product).options(joinedload(Product.category)).filter(Product.is_active.is_(True))
    if not _can_see_wholesale(user):
        query = query.filter(Product.type == ProductType.RETAIL.value)
    return query

# Active categories for the storefront navigation
@router.get("/categories", response_model=List[CategoryOut])
def get_categories(db: Session = Depends(get_db)):
    return db.query(Category).filter(Category.is_active.is_(True)).order_by(Category.name.asc()).all()

@router.get("/products", response_model=ProductListPage)
def list_products_for_shop(
    # Search and filter parameters
    q: Optional[str] = Query(None, description="Search by name, SKU, brand or active ingredient"),
    category_id: Optional[int] = Query(None),
    type: Optional[Literal["retail", "wholesale"]] = Query(None),
    featured: Optional[bool] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(12, ge=1, le=100),
    sort_by: Literal["name", "price", "created_at"] = "name",
    order: Literal["asc", "desc"] = "asc",
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_optional_user),
):
    query = _visible_products(db, current_user)
    query = query.filter(Product.stock_quantity > 0) # Filter only available products

    # Apply general search filter
    if q:
        like = f"%{q}%"
        query = query.filter(
            or_(
                Product.name.ilike(like),
                Product.sku.ilike(like),
                Product.brand.ilike(like),
                Product.active_ingredient.ilike(like),
            )
        )

    if category_id is not None:
        query = query.filter(Product.category_id == category_id)
    if type:
        query = query.filter(Product.type == type)
    if featured is not None:
        query = query.filter(Product.is_featured.is_(featured))

    # Configure sorting logic
    allowed = {
        "name": Product.name,
        "price": Product.price,
        "created_at": Product.created_at,
    }
    sort_col = allowed.get(sort_by, Product.name)
    query = query.order_by(sort_col.desc() if order == "desc" else sort_col.asc())

    total = query.count()
    items: List[Product] = query.offset((page - 1) * page_size).limit(page_size).all()

    return {"items": items, "total": total, "page": page, "page_size": page_size}

@router.get("/products/{product_id}", response_model=ProductOut)
def get_shop_product(
    product_id: int,
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_optional_user),
):
    product = _visible_products(db, current_user).filter(Product.id == product_id).first()
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product
