from models.notification import Notification
from models.order import Order
from models.product import Product


def _fill_cart(client, headers, *lines):
    for product, qty in lines:
        resp = client.post("/cart/add", json={"product_id": product.id, "quantity": qty}, headers=headers)
        assert resp.status_code == 200


def test_quote_then_checkout(client, db, customer, admin, make_product, auth_headers, shipping_address):
    headers = auth_headers(customer)
    _fill_cart(client, headers, (make_product(price=50.0, stock=10), 2), (make_product(price=30.0, stock=10), 1))

    quote = client.post("/orders/quote", json={}, headers=headers)
    assert quote.status_code == 200
    assert quote.json()["total_amount"] == 149.5

    resp = client.post("/orders", json={"payment_method": "card", "shipping_address": shipping_address},
                       headers=headers)
    assert resp.status_code == 201
    summary = resp.json()
    assert summary["status"] == "pending"
    assert summary["total_amount"] == 149.5
    assert summary["items_count"] == 2

    assert client.get("/cart", headers=headers).json()["items_count"] == 0

    # The customer and every admin are told about the new order
    customer_types = [n.type for n in db.query(Notification).filter(Notification.user_id == customer.id)]
    admin_types = [n.type for n in db.query(Notification).filter(Notification.user_id == admin.id)]
    assert customer_types == ["order_created"]
    assert admin_types == ["admin_order_created"]

    detail = client.get(f"/orders/{summary['id']}", headers=headers).json()
    assert detail["can_be_cancelled"] is True
    assert detail["shipping_address"]["city"] == "Riyadh"
    assert [t["status"] for t in detail["tracking"]] == ["pending"]


def test_checkout_with_empty_cart(client, db, customer, auth_headers, shipping_address):
    resp = client.post("/orders", json={"shipping_address": shipping_address}, headers=auth_headers(customer))

    assert resp.status_code == 400
    assert resp.json()["code"] == "EmptyCart"
    assert db.query(Order).count() == 0
    assert db.query(Notification).count() == 0


def test_checkout_with_incomplete_address(client, customer, make_product, auth_headers):
    headers = auth_headers(customer)
    _fill_cart(client, headers, (make_product(), 1))

    resp = client.post("/orders", json={"shipping_address": {"first_name": "Sara"}}, headers=headers)

    assert resp.status_code == 422
    assert resp.json()["code"] == "InvalidAddress"


def test_checkout_when_stock_ran_out(client, db, customer, make_product, auth_headers, shipping_address):
    headers = auth_headers(customer)
    product = make_product(stock=3)
    _fill_cart(client, headers, (product, 3))
    product.stock_quantity = 1
    db.commit()

    resp = client.post("/orders", json={"shipping_address": shipping_address}, headers=headers)

    assert resp.status_code == 400
    assert resp.json()["code"] == "InsufficientStock"


def test_orders_are_private(client, make_user, make_product, auth_headers, shipping_address):
    owner, other = make_user(), make_user()
    _fill_cart(client, auth_headers(owner), (make_product(), 1))
    order_id = client.post("/orders", json={"shipping_address": shipping_address},
                           headers=auth_headers(owner)).json()["id"]

    assert client.get(f"/orders/{order_id}", headers=auth_headers(other)).status_code == 404
    assert client.get("/orders", headers=auth_headers(other)).json()["total"] == 0
    assert client.get("/orders", headers=auth_headers(owner)).json()["total"] == 1


def test_customer_cancels_pending_order(client, db, customer, make_product, auth_headers, shipping_address):
    headers = auth_headers(customer)
    product = make_product(stock=5)
    _fill_cart(client, headers, (product, 2))
    order_id = client.post("/orders", json={"shipping_address": shipping_address}, headers=headers).json()["id"]

    resp = client.post(f"/orders/{order_id}/cancel", json={"reason": "Ordered by mistake"}, headers=headers)

    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "cancelled"
    assert body["can_be_cancelled"] is False
    assert [t["status"] for t in body["tracking"]] == ["pending", "cancelled"]
    db.expire_all()
    assert db.get(Product, product.id).stock_quantity == 5

    again = client.post(f"/orders/{order_id}/cancel", headers=headers)
    assert again.status_code == 400
    assert again.json()["code"] == "CannotCancel"


def test_admin_moves_order_through_lifecycle(client, db, customer, admin, make_product, auth_headers,
                                             shipping_address):
    _fill_cart(client, auth_headers(customer), (make_product(), 1))
    order_id = client.post("/orders", json={"shipping_address": shipping_address},
                           headers=auth_headers(customer)).json()["id"]
    headers = auth_headers(admin)

    skipped = client.put(f"/admin/orders/{order_id}/status", json={"status": "shipped"}, headers=headers)
    assert skipped.status_code == 400
    assert skipped.json()["code"] == "InvalidTransition"

    for step in ("confirmed", "processing", "shipped"):
        resp = client.put(f"/admin/orders/{order_id}/status", json={"status": step}, headers=headers)
        assert resp.status_code == 200
        assert resp.json()["status"] == step

    scan = client.post(f"/admin/orders/{order_id}/tracking",
                       json={"status": "in_transit", "location": "Jeddah"}, headers=headers)
    assert scan.status_code == 201

    tracking = client.get(f"/orders/{order_id}/tracking", headers=auth_headers(customer)).json()
    assert [t["status"] for t in tracking] == ["pending", "confirmed", "processing", "shipped", "in_transit"]

    updates = db.query(Notification).filter(
        Notification.user_id == customer.id, Notification.type == "order_status_updated"
    ).count()
    assert updates == 3

    cancel = client.post(f"/orders/{order_id}/cancel", headers=auth_headers(customer))
    assert cancel.status_code == 400


def test_admin_filters_orders_by_status(client, customer, admin, make_product, auth_headers, shipping_address):
    _fill_cart(client, auth_headers(customer), (make_product(), 1))
    client.post("/orders", json={"shipping_address": shipping_address}, headers=auth_headers(customer))

    pending = client.get("/admin/orders", params={"status": "pending"}, headers=auth_headers(admin)).json()
    shipped = client.get("/admin/orders", params={"status": "shipped"}, headers=auth_headers(admin)).json()

    assert pending["total"] == 1
    assert shipped["total"] == 0
