from datetime import datetime, timezone
from decimal import Decimal

import pytest

from app.models import Coupon, CouponRedemption, Order
from app.services.checkout_service import CheckoutService
from app.services.coupon_service import CouponService


class TestQuote:
    def test_no_coupon(self, db_session, default_tax_rate):
        quote = CheckoutService(db_session).quote(1000, shipping_amount=150)

        assert quote.discount_amount == 0
        assert quote.shipping_amount == 150
        assert quote.taxable_amount == 1000
        assert quote.tax_amount == 120.0
        assert quote.total_amount == 1270.0
        assert quote.coupon is None
        assert quote.coupon_error is None

    def test_percentage_coupon_reduces_taxable_amount(self, db_session, default_tax_rate, make_coupon):
        make_coupon("SAVE10")

        quote = CheckoutService(db_session).quote(1000, coupon_code="SAVE10")

        assert quote.discount_amount == 100.0
        assert quote.taxable_amount == 900.0
        assert quote.tax_amount == 108.0
        assert quote.total_amount == 1008.0
        assert quote.coupon.code == "SAVE10"

    def test_fixed_discount_floors_at_zero(self, db_session, make_coupon):
        make_coupon("FLAT200", discount_type="FIXED_AMOUNT", discount_value=Decimal("200"))

        quote = CheckoutService(db_session).quote(100, shipping_amount=50, coupon_code="FLAT200")

        assert quote.discount_amount == 200.0
        assert quote.taxable_amount == 0
        assert quote.tax_amount == 0
        assert quote.total_amount == 50

    def test_free_shipping_coupon_waives_shipping(self, db_session, make_coupon):
        make_coupon("SHIPFREE", discount_type="FREE_SHIPPING", discount_value=Decimal("0"))

        quote = CheckoutService(db_session).quote(1000, shipping_amount=150, coupon_code="SHIPFREE")

        assert quote.discount_amount == 0
        assert quote.shipping_amount == 0

    def test_threshold_waives_shipping(self, db_session):
        quote = CheckoutService(db_session).quote(5000, shipping_amount=150)

        assert quote.shipping_amount == 0

    def test_invalid_coupon_is_reported_not_applied(self, db_session):
        quote = CheckoutService(db_session).quote(1000, coupon_code="NOPE")

        assert quote.coupon is None
        assert quote.coupon_error == "Invalid coupon code"
        assert quote.discount_amount == 0


class TestPlaceOrder:
    def test_order_without_coupon(self, db_session, default_tax_rate):
        order = CheckoutService(db_session).place_order(1000, shipping_amount=150, user_id="user-1")

        today = datetime.now(timezone.utc).strftime("%Y%m%d")
        assert order.order_number == f"ORD-{today}-0001"
        assert order.status == "PENDING"
        assert order.total_amount == Decimal("1270.00")
        assert order.tax_code == "VAT12"
        assert order.coupon_id is None

    def test_order_numbers_increase(self, db_session):
        service = CheckoutService(db_session)
        first = service.place_order(100)
        second = service.place_order(100)

        assert first.order_number.endswith("-0001")
        assert second.order_number.endswith("-0002")

    def test_coupon_is_redeemed_with_order(self, db_session, default_tax_rate, make_coupon):
        coupon = make_coupon("SAVE10")

        order = CheckoutService(db_session).place_order(1000, coupon_code="save10", user_id="user-1")

        db_session.refresh(coupon)
        redemption = db_session.query(CouponRedemption).one()
        assert order.coupon_id == coupon.id
        assert order.discount_amount == Decimal("100.00")
        assert coupon.usage_count == 1
        assert redemption.order_id == order.id
        assert redemption.user_id == "user-1"
        assert CouponService(db_session).get_user_coupon_usage("SAVE10", "user-1") == 1

    def test_rejected_coupon_creates_nothing(self, db_session, make_coupon):
        make_coupon("MIN2K", min_purchase_amount=Decimal("2000"))

        with pytest.raises(ValueError, match="Minimum purchase"):
            CheckoutService(db_session).place_order(1000, coupon_code="MIN2K")

        assert db_session.query(Order).count() == 0
        assert db_session.query(CouponRedemption).count() == 0

    def test_failed_redemption_rolls_back_order(self, db_session, make_coupon, monkeypatch):
        coupon = make_coupon("SAVE10")
        service = CheckoutService(db_session)

        def fail(*args, **kwargs):
            raise RuntimeError("redemption write failed")

        monkeypatch.setattr(service.coupon_service, "redeem_coupon", fail)

        with pytest.raises(RuntimeError):
            service.place_order(1000, coupon_code="SAVE10")

        assert db_session.query(Order).count() == 0
        assert db_session.get(Coupon, coupon.id).usage_count == 0
