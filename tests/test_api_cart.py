from models.product import ProductType


def test_add_merges_lines(client, customer, make_product, auth_headers):
    product = make_product(price=12.5, stock=5)
    headers = auth_headers(customer)

    client.post("/cart/add", json={"product_id": product.id, "quantity": 2}, headers=headers)
    resp = client.post("/cart/add", json={"product_id": product.id, "quantity": 1}, headers=headers)

    assert resp.status_code == 200
    cart = resp.json()
    assert cart["items_count"] == 1
    assert cart["items"][0]["quantity"] == 3
    assert cart["subtotal"] == 37.5


def test_add_beyond_stock(client, customer, make_product, auth_headers):
    product = make_product(stock=2)
    resp = client.post("/cart/add", json={"product_id": product.id, "quantity": 3}, headers=auth_headers(customer))
    assert resp.status_code == 400


def test_inactive_product_cannot_be_added(client, customer, make_product, auth_headers):
    product = make_product(active=False)
    resp = client.post("/cart/add", json={"product_id": product.id}, headers=auth_headers(customer))
    assert resp.status_code == 404


def test_wholesale_product_needs_access(client, make_user, make_product, auth_headers):
    product = make_product(product_type=ProductType.WHOLESALE, stock=50)
    retail = make_user()
    trader = make_user(wholesale=True)

    denied = client.post("/cart/add", json={"product_id": product.id}, headers=auth_headers(retail))
    allowed = client.post("/cart/add", json={"product_id": product.id}, headers=auth_headers(trader))

    assert denied.status_code == 403
    assert allowed.status_code == 200


def test_update_remove_and_clear(client, customer, make_product, auth_headers):
    headers = auth_headers(customer)
    first = make_product(price=10.0, stock=10)
    second = make_product(price=4.0, stock=10)
    client.post("/cart/add", json={"product_id": first.id}, headers=headers)
    cart = client.post("/cart/add", json={"product_id": second.id}, headers=headers).json()
    first_line = cart["items"][0]["id"]

    updated = client.put(f"/cart/items/{first_line}", json={"quantity": 4}, headers=headers).json()
    assert updated["subtotal"] == 44.0

    removed = client.delete(f"/cart/items/{first_line}", headers=headers).json()
    assert removed["items_count"] == 1

    cleared = client.delete("/cart", headers=headers).json()
    assert cleared["items"] == []
    assert client.get("/cart", headers=headers).json()["items_count"] == 0


def test_shop_hides_wholesale_products_from_retail(client, make_user, make_product, auth_headers):
    make_product(name="Retail syrup", stock=5)
    make_product(name="Bulk syrup", product_type=ProductType.WHOLESALE, stock=5)
    make_product(name="Sold out", stock=0)

    anonymous = client.get("/shop/products").json()
    trader = client.get("/shop/products", headers=auth_headers(make_user(wholesale=True))).json()

    assert [p["name"] for p in anonymous["items"]] == ["Retail syrup"]
    assert {p["name"] for p in trader["items"]} == {"Retail syrup", "Bulk syrup"}
