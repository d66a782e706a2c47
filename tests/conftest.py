import os
import tempfile
from datetime import datetime, timedelta

# Settings are read at import time, so the environment is prepared first
_TMP_DIR = tempfile.mkdtemp(prefix="pharmacy-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP_DIR, 'test.db')}"
os.environ["UPLOAD_DIR"] = os.path.join(_TMP_DIR, "uploads")
os.environ["SECRET_KEY"] = "test-secret"
os.environ.pop("FCM_SERVER_KEY", None)

import pytest
from fastapi.testclient import TestClient

from database import Base, SessionLocal, engine
from main import app
from models.product import Category, Product, ProductType
from models.users import User, UserRole, AccountType
from models.coupon import Coupon, CouponType
from models.cart import CartItem
from services.hub import NotificationHub
from utils.tokenJWT import create_access_token


@pytest.fixture
def shipping_address():
    return {
        "first_name": "Sara",
        "last_name": "Ali",
        "phone": "0500000000",
        "address_line1": "King Fahd Road 12",
        "city": "Riyadh",
        "state": "Riyadh",
        "postal_code": "12345",
        "country": "Saudi Arabia",
    }


@pytest.fixture
def pricing():
    return {"tax_rate": 0.15, "shipping_fee": 15.0, "free_shipping_threshold": 100.0}


@pytest.fixture(autouse=True)
def reset_database():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


@pytest.fixture
def hub():
    return NotificationHub(SessionLocal, queue_size=4, heartbeat=0.05, poll_interval=0.01)


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make(role=UserRole.CUSTOMER.value, wholesale=False, active=True, email=None, full_name="Test User"):
        counter["n"] += 1
        user = User(
            email=email or f"user{counter['n']}@pharmacy.sa",
            password_hash="not-a-real-hash",
            full_name=full_name,
            role=role,
            account_type=AccountType.WHOLESALE.value if wholesale else AccountType.RETAIL.value,
            wholesale_access=wholesale,
            is_active=active,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def customer(make_user):
    return make_user(full_name="Sara Ali")


@pytest.fixture
def admin(make_user):
    return make_user(role=UserRole.ADMIN.value, full_name="Store Admin")


@pytest.fixture
def auth_headers():
    def _headers(user) -> dict:
        token = create_access_token({"sub": user.email, "role": user.role, "uid": user.id})
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def category(db):
    cat = Category(name="Medicines", is_active=True)
    db.add(cat)
    db.commit()
    db.refresh(cat)
    return cat


@pytest.fixture
def make_product(db, category):
    counter = {"n": 0}

    def _make(price=10.0, stock=10, discount_price=None, active=True, product_type=ProductType.RETAIL, name=None):
        counter["n"] += 1
        product = Product(
            name=name or f"Product {counter['n']}",
            sku=f"SKU{counter['n']:04d}",
            category_id=category.id,
            type=product_type.value,
            price=price,
            discount_price=discount_price,
            stock_quantity=stock,
            min_stock_level=5,
            is_active=active,
        )
        db.add(product)
        db.commit()
        db.refresh(product)
        return product

    return _make


@pytest.fixture
def add_to_cart(db):
    def _add(user, product, quantity):
        db.add(CartItem(user_id=user.id, product_id=product.id, quantity=quantity))
        db.commit()

    return _add


@pytest.fixture
def make_coupon(db):
    def _make(code="SAVE10", type=CouponType.PERCENTAGE, value=10.0, max_discount=None,
              min_order=0.0, usage_limit=None, used_count=0, active=True, days_valid=30, starts_in_days=-1):
        now = datetime.utcnow()
        coupon = Coupon(
            code=code,
            type=type.value,
            value=value,
            min_order_amount=min_order,
            max_discount_amount=max_discount,
            usage_limit=usage_limit,
            used_count=used_count,
            is_active=active,
            valid_from=now + timedelta(days=starts_in_days),
            valid_until=now + timedelta(days=days_valid),
        )
        db.add(coupon)
        db.commit()
        db.refresh(coupon)
        return coupon

    return _make
