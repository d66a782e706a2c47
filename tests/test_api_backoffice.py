from datetime import datetime


def _address(**overrides):
    body = {
        "first_name": "Sara",
        "last_name": "Ali",
        "address_line1": "Olaya Street 4",
        "city": "Riyadh",
        "state": "Riyadh",
        "postal_code": "11564",
    }
    body.update(overrides)
    return body


def _place_order(client, headers, product, qty, shipping_address):
    client.post("/cart/add", json={"product_id": product.id, "quantity": qty}, headers=headers)
    resp = client.post("/orders", json={"shipping_address": shipping_address}, headers=headers)
    assert resp.status_code == 201
    return resp.json()


def test_address_book_defaults(client, customer, auth_headers):
    headers = auth_headers(customer)

    home = client.post("/addresses", json=_address(), headers=headers).json()
    work = client.post("/addresses", json=_address(address_line1="Tahlia Street 9"), headers=headers).json()
    assert home["is_default"] is True
    assert work["is_default"] is False
    assert home["full_address"].startswith("Olaya Street 4, Riyadh, Riyadh 11564")

    client.put(f"/addresses/{work['id']}/default", headers=headers)
    book = client.get("/addresses", headers=headers).json()
    assert [(a["id"], a["is_default"]) for a in book] == [(work["id"], True), (home["id"], False)]

    assert client.delete(f"/addresses/{home['id']}", headers=headers).status_code == 200
    assert len(client.get("/addresses", headers=headers).json()) == 1


def test_address_of_another_user_is_hidden(client, make_user, auth_headers):
    owner, other = make_user(), make_user()
    address_id = client.post("/addresses", json=_address(), headers=auth_headers(owner)).json()["id"]
    assert client.delete(f"/addresses/{address_id}", headers=auth_headers(other)).status_code == 404


def test_dashboard_summary(client, customer, admin, make_product, auth_headers, shipping_address):
    low = make_product(price=50.0, stock=6)
    _place_order(client, auth_headers(customer), low, 2, shipping_address)

    summary = client.get("/admin/dashboard/summary", headers=auth_headers(admin)).json()

    assert summary["total_orders"] == 1
    assert summary["pending_orders"] == 1
    assert summary["total_customers"] == 1
    assert summary["total_sales"] == 115.0
    assert summary["low_stock_products"] == 1
    assert summary["pending_wholesale_requests"] == 0


def test_daily_revenue_and_top_products(client, customer, admin, make_product, auth_headers, shipping_address):
    product = make_product(price=20.0, stock=20, name="Vitamin C")
    _place_order(client, auth_headers(customer), product, 3, shipping_address)
    headers = auth_headers(admin)

    revenue = client.get("/admin/dashboard/daily-revenue", params={"days": 3}, headers=headers).json()["data"]
    assert len(revenue) == 3
    assert revenue[-1]["date"] == datetime.utcnow().strftime("%Y-%m-%d")
    assert revenue[-1]["orders"] == 1

    top = client.get("/admin/dashboard/top-products", headers=headers).json()["data"]
    assert top == [{"product_id": product.id, "product_name": "Vitamin C", "total_quantity_sold": 3}]


def test_reports(client, customer, admin, make_product, auth_headers, shipping_address):
    product = make_product(price=10.0, stock=8, name="Zinc")
    make_product(stock=100)
    _place_order(client, auth_headers(customer), product, 4, shipping_address)
    headers = auth_headers(admin)

    low = client.get("/admin/reports/low-stock", headers=headers).json()
    assert [i["name"] for i in low["items"]] == ["Zinc"]

    sales = client.get("/admin/reports/sales-summary", headers=headers).json()
    assert sales["total_orders"] == 1

    performance = client.get("/admin/reports/product-performance", headers=headers).json()
    assert performance["items"][0]["units_sold"] == 4
    assert performance["items"][0]["revenue"] == 40.0


def test_audit_log_is_admin_only(client, customer, admin, auth_headers):
    client.post("/addresses", json=_address(), headers=auth_headers(customer))

    assert client.get("/logs", headers=auth_headers(customer)).status_code == 403
    logs = client.get("/logs", params={"action": "ADDRESS_CREATE"}, headers=auth_headers(admin))
    assert logs.status_code == 200
    assert logs.json()["total"] == 1
