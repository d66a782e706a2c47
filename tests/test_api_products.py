import os

from config import settings
from models.product import Product


def _create(client, headers, files=None, **fields):
    data = {"name": "Panadol Extra", "sku": " pn-001 ", "price": "24.5", "stock_quantity": "30"}
    data.update({k: str(v) for k, v in fields.items()})
    return client.post("/admin/products", data=data, files=files, headers=headers)


def test_create_product_with_image(client, admin, category, auth_headers):
    files = {"file": ("box.png", b"\x89PNG\r\n\x1a\n pixels", "image/png")}
    resp = _create(client, auth_headers(admin), files=files, category_id=category.id, discount_price=20)

    assert resp.status_code == 201
    body = resp.json()
    assert body["sku"] == "PN-001"
    assert body["effective_price"] == 20.0
    assert body["category_name"] == "Medicines"
    assert body["image_url"].startswith("/uploads/products/")
    assert os.path.exists(os.path.join(settings.UPLOAD_DIR, body["image_url"][len("/uploads/"):]))


def test_duplicate_sku_and_bad_discount(client, admin, auth_headers):
    headers = auth_headers(admin)
    assert _create(client, headers).status_code == 201
    assert _create(client, headers, sku="PN-001").status_code == 409
    assert _create(client, headers, sku="PN-002", discount_price=99).status_code == 400


def test_patch_and_clear_discount(client, admin, make_product, auth_headers):
    product = make_product(price=40.0, discount_price=35.0)
    headers = auth_headers(admin)

    resp = client.patch(f"/admin/products/{product.id}", data={"stock_quantity": "2", "clear_discount": "true"},
                        headers=headers)

    assert resp.status_code == 200
    body = resp.json()
    assert body["discount_price"] is None
    assert body["effective_price"] == 40.0
    assert body["is_low_stock"] is True


def test_delete_ordered_product_deactivates(client, db, customer, admin, make_product, auth_headers,
                                            shipping_address):
    sold = make_product(stock=5)
    unsold = make_product(stock=5)
    client.post("/cart/add", json={"product_id": sold.id}, headers=auth_headers(customer))
    client.post("/orders", json={"shipping_address": shipping_address}, headers=auth_headers(customer))
    headers = auth_headers(admin)

    assert "deactivated" in client.delete(f"/admin/products/{sold.id}", headers=headers).json()["detail"]
    assert client.delete(f"/admin/products/{unsold.id}", headers=headers).status_code == 200

    db.expire_all()
    assert db.get(Product, sold.id).is_active is False
    assert db.get(Product, unsold.id) is None


def test_category_with_products_cannot_be_deleted(client, admin, category, make_product, auth_headers):
    make_product()
    headers = auth_headers(admin)

    assert client.post("/admin/categories", json={"name": "medicines"}, headers=headers).status_code == 409
    assert client.delete(f"/admin/categories/{category.id}", headers=headers).status_code == 409
