from models.log import Log
from models.users import UserRole


def _register(client, email="sara@pharmacy.sa", password="secret123"):
    return client.post("/register", json={"email": email, "password": password, "full_name": "Sara Ali"})


def test_register_and_login(client, db):
    resp = _register(client, email="Sara@Pharmacy.sa")
    assert resp.status_code == 201
    body = resp.json()
    assert body["email"] == "sara@pharmacy.sa"
    assert body["role"] == "customer"
    assert body["wholesale_access"] is False

    login = client.post("/login", json={"email": "sara@pharmacy.sa", "password": "secret123"})
    assert login.status_code == 200
    token = login.json()["access_token"]

    me = client.get("/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["full_name"] == "Sara Ali"
    assert db.query(Log).filter(Log.action == "LOGIN", Log.status == "SUCCESS").count() == 1


def test_duplicate_email(client):
    _register(client)
    assert _register(client).status_code == 400


def test_short_password_is_rejected(client):
    assert _register(client, password="123").status_code == 422


def test_bad_password(client, db):
    _register(client)
    resp = client.post("/login", json={"email": "sara@pharmacy.sa", "password": "wrong-one"})
    assert resp.status_code == 401
    assert db.query(Log).filter(Log.action == "LOGIN", Log.status == "FAIL").count() == 1


def test_disabled_account_cannot_log_in(client, db):
    from models.users import User

    _register(client)
    user = db.query(User).filter(User.email == "sara@pharmacy.sa").first()
    user.is_active = False
    db.commit()

    resp = client.post("/login", json={"email": "sara@pharmacy.sa", "password": "secret123"})
    assert resp.status_code == 403


def test_protected_route_needs_token(client):
    assert client.get("/me").status_code in (401, 403)
    assert client.get("/me", headers={"Authorization": "Bearer garbage"}).status_code == 401


def test_admin_routes_require_admin(client, customer, admin, auth_headers):
    assert client.get("/admin/users", headers=auth_headers(customer)).status_code == 403
    resp = client.get("/admin/users", headers=auth_headers(admin))
    assert resp.status_code == 200
    assert resp.json()["total"] == 2


def test_only_super_admin_grants_admin_role(client, make_user, customer, admin, auth_headers):
    boss = make_user(role=UserRole.SUPER_ADMIN.value)

    denied = client.put(f"/admin/users/{customer.id}/role", json={"role": "admin"}, headers=auth_headers(admin))
    assert denied.status_code == 403

    granted = client.put(f"/admin/users/{customer.id}/role", json={"role": "admin"}, headers=auth_headers(boss))
    assert granted.status_code == 200
    assert granted.json()["role"] == "admin"


def test_admin_cannot_delete_self(client, admin, auth_headers):
    resp = client.delete(f"/admin/users/{admin.id}", headers=auth_headers(admin))
    assert resp.status_code == 400
