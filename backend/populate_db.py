import os
import sys
from datetime import datetime, timedelta

# Add 'backend' folder to Python path
sys.path.append(os.path.abspath(os.path.dirname(__file__)))

# Database models and setup
from database import SessionLocal, init_db
from models.users import User, UserRole
from models.product import Category, Product, ProductType
from models.coupon import Coupon, CouponType
from utils.hashing import get_password_hash

# Configuration
ADMIN_EMAIL = os.getenv("SEED_ADMIN_EMAIL", "admin@example.com")
ADMIN_PASSWORD = os.getenv("SEED_ADMIN_PASSWORD", "admin123")

CATEGORIES = [
    ("Cosmetics", "Skin care and beauty products"),
    ("Medicines", "Over the counter medicines"),
    ("Vitamins", "Vitamins and dietary supplements"),
]

# (category, name, sku, price, discount_price, stock, type, featured)
PRODUCTS = [
    ("Cosmetics", "Skin Brightening Cream", "CR1001", 49.99, 39.99, 100, ProductType.RETAIL, True),
    ("Cosmetics", "Sunscreen SPF 50", "CR1002", 65.00, None, 60, ProductType.RETAIL, False),
    ("Medicines", "Paracetamol 500mg", "MD2001", 12.50, None, 250, ProductType.RETAIL, True),
    ("Medicines", "Ibuprofen 400mg", "MD2002", 18.00, 15.00, 8, ProductType.RETAIL, False),
    ("Vitamins", "Vitamin D3 1000 IU", "VT3001", 45.00, None, 80, ProductType.RETAIL, False),
    ("Vitamins", "Vitamin C Bulk Pack", "VT3002", 320.00, None, 40, ProductType.WHOLESALE, False),
]

WELCOME_COUPON = "WELCOME10"
# End Configuration


def seed_admin(session):
    """Creates the super admin account if it is missing."""
    admin = session.query(User).filter(User.email == ADMIN_EMAIL).first()
    if admin:
        print(f"Admin user already exists: {ADMIN_EMAIL}")
        return admin

    admin = User(
        email=ADMIN_EMAIL,
        password_hash=get_password_hash(ADMIN_PASSWORD),
        full_name="Admin User",
        role=UserRole.SUPER_ADMIN.value,
        is_active=True,
    )
    session.add(admin)
    session.commit()
    print(f"Admin user created: {ADMIN_EMAIL} / {ADMIN_PASSWORD}")
    return admin


def seed_catalog(session):
    """Inserts the sample categories and products, skipping existing SKUs."""
    categories = {}
    for name, description in CATEGORIES:
        category = session.query(Category).filter(Category.name == name).first()
        if not category:
            category = Category(name=name, description=description, is_active=True)
            session.add(category)
            session.flush()
            print(f"Created category: {name}")
        categories[name] = category

    created = 0
    for category_name, name, sku, price, discount, stock, product_type, featured in PRODUCTS:
        product = session.query(Product).filter(Product.sku == sku).first()
        if product:
            # Existing rows only get their featured flag refreshed
            product.is_featured = featured
            continue
        session.add(Product(
            name=name,
            sku=sku,
            description=f"{name} ({category_name.lower()})",
            category_id=categories[category_name].id,
            type=product_type.value,
            price=price,
            discount_price=discount,
            stock_quantity=stock,
            min_stock_level=10,
            image_url="https://via.placeholder.com/300",
            is_active=True,
            is_featured=featured,
        ))
        created += 1

    session.commit()
    print(f"Inserted {created} products.")


def seed_coupon(session):
    if session.query(Coupon).filter(Coupon.code == WELCOME_COUPON).first():
        return
    now = datetime.utcnow()
    session.add(Coupon(
        code=WELCOME_COUPON,
        type=CouponType.PERCENTAGE.value,
        value=10,
        min_order_amount=50,
        max_discount_amount=15,
        usage_limit=1000,
        is_active=True,
        valid_from=now,
        valid_until=now + timedelta(days=365),
    ))
    session.commit()
    print(f"Created coupon: {WELCOME_COUPON}")


def load_all_data():
    init_db()
    session = SessionLocal()
    try:
        seed_admin(session)
        seed_catalog(session)
        seed_coupon(session)
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
    print("Seeding completed successfully!")


if __name__ == "__main__":
    load_all_data()
