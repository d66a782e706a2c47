from datetime import datetime, timedelta

from models.coupon import Coupon, CouponType

NOW = datetime(2026, 5, 1, 12, 0, 0)


def _coupon(**overrides):
    fields = dict(
        code="WELCOME",
        type=CouponType.PERCENTAGE.value,
        value=20.0,
        min_order_amount=0.0,
        max_discount_amount=None,
        usage_limit=None,
        used_count=0,
        is_active=True,
        valid_from=NOW - timedelta(days=1),
        valid_until=NOW + timedelta(days=1),
    )
    fields.update(overrides)
    return Coupon(**fields)


def test_percentage_discount():
    assert _coupon().calculate_discount(80.0, NOW) == 16.0


def test_discount_never_exceeds_cap_or_amount():
    capped = _coupon(value=50.0, max_discount_amount=10.0)
    assert capped.calculate_discount(100.0, NOW) == 10.0

    fixed = _coupon(type=CouponType.FIXED_AMOUNT.value, value=30.0)
    assert fixed.calculate_discount(12.5, NOW) == 12.5
    assert fixed.calculate_discount(100.0, NOW) == 30.0


def test_validity_window():
    coupon = _coupon()
    assert coupon.is_valid(NOW)
    assert not coupon.is_valid(NOW - timedelta(days=2))
    # valid_until itself is already outside the window
    assert not coupon.is_valid(NOW + timedelta(days=1))


def test_inactive_coupon_is_invalid():
    coupon = _coupon(is_active=False)
    assert not coupon.is_valid(NOW)
    assert coupon.calculate_discount(100.0, NOW) == 0.0


def test_usage_limit():
    assert _coupon(usage_limit=3, used_count=2).is_valid(NOW)
    assert not _coupon(usage_limit=3, used_count=3).is_valid(NOW)


def test_minimum_order_amount():
    coupon = _coupon(min_order_amount=50.0)
    assert not coupon.can_be_used_for(49.99, NOW)
    assert coupon.can_be_used_for(50.0, NOW)
    assert coupon.calculate_discount(49.99, NOW) == 0.0


def test_validate_endpoint_reports_discount(client, db, customer, auth_headers, make_coupon):
    coupon = make_coupon(code="SAVE10", value=10.0, max_discount=15.0)

    resp = client.post("/coupons/validate", json={"code": "save10", "subtotal": 200},
                       headers=auth_headers(customer))

    assert resp.status_code == 200
    body = resp.json()
    assert body["valid"] is True
    assert body["code"] == "SAVE10"
    assert body["discount_amount"] == 15.0

    # Validation is a preview and never consumes the coupon
    db.refresh(coupon)
    assert coupon.used_count == 0


def test_validate_endpoint_explains_rejection(client, customer, auth_headers, make_coupon):
    make_coupon(code="USEDUP", usage_limit=1, used_count=1)

    missing = client.post("/coupons/validate", json={"code": "NOPE", "subtotal": 50},
                          headers=auth_headers(customer)).json()
    used_up = client.post("/coupons/validate", json={"code": "USEDUP", "subtotal": 50},
                          headers=auth_headers(customer)).json()

    assert missing["valid"] is False
    assert missing["reason"] == "Coupon not found"
    assert used_up["valid"] is False
    assert used_up["reason"] == "Coupon usage limit reached"


def test_admin_creates_coupon_with_upper_case_code(client, admin, auth_headers):
    now = datetime.utcnow()
    payload = {
        "code": " spring ",
        "type": "percentage",
        "value": 15,
        "valid_from": now.isoformat(),
        "valid_until": (now + timedelta(days=10)).isoformat(),
    }

    resp = client.post("/admin/coupons", json=payload, headers=auth_headers(admin))
    assert resp.status_code == 201
    assert resp.json()["code"] == "SPRING"

    duplicate = client.post("/admin/coupons", json=payload, headers=auth_headers(admin))
    assert duplicate.status_code == 409


def test_admin_coupon_rejects_bad_percentage(client, admin, auth_headers):
    now = datetime.utcnow()
    resp = client.post("/admin/coupons", json={
        "code": "HUGE",
        "type": "percentage",
        "value": 150,
        "valid_from": now.isoformat(),
        "valid_until": (now + timedelta(days=1)).isoformat(),
    }, headers=auth_headers(admin))
    assert resp.status_code == 422


def test_customer_cannot_manage_coupons(client, customer, auth_headers):
    assert client.get("/admin/coupons", headers=auth_headers(customer)).status_code == 403
