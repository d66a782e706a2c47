from models.product import ProductType


def test_add_list_and_remove(client, customer, make_product, auth_headers):
    product = make_product(price=30.0, discount_price=25.0, name="Omega 3")
    headers = auth_headers(customer)

    added = client.post("/favorites", json={"product_id": product.id}, headers=headers)
    assert added.status_code == 201
    assert added.json()["product"]["effective_price"] == 25.0

    listing = client.get("/favorites", headers=headers).json()
    assert [f["product"]["name"] for f in listing] == ["Omega 3"]

    assert client.post("/favorites", json={"product_id": product.id}, headers=headers).status_code == 409

    assert client.delete(f"/favorites/{product.id}", headers=headers).status_code == 200
    assert client.get("/favorites", headers=headers).json() == []
    assert client.delete(f"/favorites/{product.id}", headers=headers).status_code == 404


def test_only_visible_products_can_be_saved(client, customer, make_user, make_product, auth_headers):
    inactive = make_product(active=False)
    bulk = make_product(product_type=ProductType.WHOLESALE)

    assert client.post("/favorites", json={"product_id": inactive.id}, headers=auth_headers(customer)).status_code == 404
    assert client.post("/favorites", json={"product_id": bulk.id}, headers=auth_headers(customer)).status_code == 403

    trader = make_user(wholesale=True)
    assert client.post("/favorites", json={"product_id": bulk.id}, headers=auth_headers(trader)).status_code == 201


def test_favorites_are_private_and_hide_deactivated(client, db, customer, make_user, make_product, auth_headers):
    product = make_product()
    other = make_user()
    client.post("/favorites", json={"product_id": product.id}, headers=auth_headers(customer))

    assert client.get("/favorites", headers=auth_headers(other)).json() == []
    assert client.delete(f"/favorites/{product.id}", headers=auth_headers(other)).status_code == 404

    product.is_active = False
    db.commit()
    assert client.get("/favorites", headers=auth_headers(customer)).json() == []
