from datetime import datetime, timedelta

import pytest

from models.coupon import Coupon, CouponType
from services.orders import compute_totals

NOW = datetime(2026, 5, 1, 12, 0, 0)


def _coupon(**overrides):
    fields = dict(
        code="SAVE10",
        type=CouponType.PERCENTAGE.value,
        value=10.0,
        min_order_amount=0.0,
        max_discount_amount=15.0,
        usage_limit=None,
        used_count=0,
        is_active=True,
        valid_from=NOW - timedelta(days=1),
        valid_until=NOW + timedelta(days=1),
    )
    fields.update(overrides)
    return Coupon(**fields)


def test_free_shipping_above_threshold(pricing):
    totals = compute_totals([(50.0, 2), (30.0, 1)], **pricing)

    assert totals.subtotal == 130.0
    assert totals.shipping_cost == 0.0
    assert totals.tax_amount == 19.5
    assert totals.discount_amount == 0.0
    assert totals.total_amount == 149.5
    assert totals.coupon_applied is False
    assert totals.coupon_code is None


def test_flat_shipping_below_threshold(pricing):
    totals = compute_totals([(20.0, 2)], **pricing)

    assert totals.subtotal == 40.0
    assert totals.shipping_cost == 15.0
    assert totals.tax_amount == 6.0
    assert totals.total_amount == 61.0


def test_threshold_is_inclusive(pricing):
    totals = compute_totals([(100.0, 1)], **pricing)
    assert totals.shipping_cost == 0.0


def test_percentage_coupon_is_capped(pricing):
    totals = compute_totals([(200.0, 1)], coupon=_coupon(), now=NOW, **pricing)

    assert totals.discount_amount == 15.0
    assert totals.total_amount == 215.0
    assert totals.coupon_applied is True
    assert totals.coupon_code == "SAVE10"


def test_expired_coupon_gives_no_discount(pricing):
    expired = _coupon(valid_until=NOW - timedelta(hours=1))
    totals = compute_totals([(200.0, 1)], coupon=expired, now=NOW, **pricing)

    assert totals.discount_amount == 0.0
    assert totals.coupon_applied is False
    assert totals.coupon_code is None
    assert totals.total_amount == 230.0


def test_coupon_below_minimum_order_is_ignored(pricing):
    coupon = _coupon(min_order_amount=500.0)
    totals = compute_totals([(200.0, 1)], coupon=coupon, now=NOW, **pricing)
    assert totals.discount_amount == 0.0


@pytest.mark.parametrize("lines", [
    [(12.99, 3)],
    [(0.1, 7), (19.95, 2)],
    [(250.0, 4), (3.5, 1)],
])
def test_total_matches_its_parts(pricing, lines):
    coupon = _coupon(type=CouponType.FIXED_AMOUNT.value, value=5.0, max_discount_amount=None)
    totals = compute_totals(lines, coupon=coupon, now=NOW, **pricing)

    expected = totals.subtotal + totals.shipping_cost + totals.tax_amount - totals.discount_amount
    assert totals.total_amount == pytest.approx(round(expected, 2))
    assert totals.total_amount >= 0
