import uuid
from datetime import timedelta
from decimal import Decimal

import pytest

from app.models import CouponRedemption
from app.services.coupon_service import CouponService, format_currency
from conftest import utcnow


class TestValidateCoupon:
    def test_percentage_coupon(self, db_session, make_coupon):
        make_coupon("SAVE10", discount_value=Decimal("10"))

        result = CouponService(db_session).validate_coupon("SAVE10", 1000)

        assert result.valid is True
        assert result.discount == 100.0
        assert result.coupon.code == "SAVE10"
        assert result.coupon.discount_type == "PERCENTAGE"
        assert result.error is None

    def test_lookup_ignores_case_and_whitespace(self, db_session, make_coupon):
        make_coupon("SAVE10")

        result = CouponService(db_session).validate_coupon("  save10 ", 1000)

        assert result.valid is True

    def test_percentage_is_capped(self, db_session, make_coupon):
        make_coupon("BIG50", discount_value=Decimal("50"), max_discount_amount=Decimal("300"))

        result = CouponService(db_session).validate_coupon("BIG50", 1000)

        assert result.discount == 300.0

    def test_fixed_amount_can_exceed_subtotal(self, db_session, make_coupon):
        make_coupon("FLAT200", discount_type="FIXED_AMOUNT", discount_value=Decimal("200"))

        result = CouponService(db_session).validate_coupon("FLAT200", 100)

        assert result.valid is True
        assert result.discount == 200.0

    def test_free_shipping_has_no_discount(self, db_session, make_coupon):
        make_coupon("SHIPFREE", discount_type="FREE_SHIPPING", discount_value=Decimal("0"))

        result = CouponService(db_session).validate_coupon("SHIPFREE", 1000)

        assert result.valid is True
        assert result.discount == 0.0

    def test_unknown_code(self, db_session):
        result = CouponService(db_session).validate_coupon("NOPE", 1000)

        assert result.valid is False
        assert result.error == "Invalid coupon code"
        assert result.coupon is None

    def test_inactive(self, db_session, make_coupon):
        make_coupon("OLD", is_active=False)

        assert CouponService(db_session).validate_coupon("OLD", 1000).error == "This coupon is no longer active"

    def test_not_yet_valid(self, db_session, make_coupon):
        make_coupon("SOON", valid_from=utcnow() + timedelta(days=1))

        assert CouponService(db_session).validate_coupon("SOON", 1000).error == "This coupon is not yet valid"

    def test_expired(self, db_session, make_coupon):
        make_coupon("GONE", valid_until=utcnow() - timedelta(days=1))

        assert CouponService(db_session).validate_coupon("GONE", 1000).error == "This coupon has expired"

    def test_inside_validity_window(self, db_session, make_coupon):
        make_coupon(
            "NOW",
            valid_from=utcnow() - timedelta(days=1),
            valid_until=utcnow() + timedelta(days=1),
        )

        assert CouponService(db_session).validate_coupon("NOW", 1000).valid is True

    def test_usage_limit_reached(self, db_session, make_coupon):
        make_coupon("LIMITED", usage_limit=5, usage_count=5)

        result = CouponService(db_session).validate_coupon("LIMITED", 1000)

        assert result.error == "This coupon has reached its usage limit"

    def test_zero_usage_limit_means_unlimited(self, db_session, make_coupon):
        make_coupon("OPEN", usage_limit=0, usage_count=42)

        assert CouponService(db_session).validate_coupon("OPEN", 1000).valid is True

    def test_per_user_limit(self, db_session, make_coupon, make_order):
        coupon = make_coupon("ONCE", per_user_limit=1)
        service = CouponService(db_session)
        service.redeem_coupon(coupon.id, make_order("user-1").id, 100, user_id="user-1")

        assert service.validate_coupon("ONCE", 1000, "user-1").error == (
            "You have already used this coupon the maximum number of times"
        )
        assert service.validate_coupon("ONCE", 1000, "user-2").valid is True
        # Anonymous checkouts skip the per-user check
        assert service.validate_coupon("ONCE", 1000).valid is True

    def test_minimum_purchase(self, db_session, make_coupon):
        make_coupon("MIN2K", min_purchase_amount=Decimal("2000"))

        result = CouponService(db_session).validate_coupon("MIN2K", 1500)

        assert result.valid is False
        assert result.error == "Minimum purchase of ₱2,000.00 required"

    def test_minimum_purchase_met_exactly(self, db_session, make_coupon):
        make_coupon("MIN2K", min_purchase_amount=Decimal("2000"))

        assert CouponService(db_session).validate_coupon("MIN2K", 2000).valid is True

    def test_first_failure_wins(self, db_session, make_coupon):
        make_coupon(
            "BROKEN",
            valid_until=utcnow() - timedelta(days=1),
            usage_limit=1,
            usage_count=1,
            min_purchase_amount=Decimal("5000"),
        )

        assert CouponService(db_session).validate_coupon("BROKEN", 10).error == "This coupon has expired"

    def test_lookup_failure_is_reported_not_raised(self, db_session, monkeypatch):
        service = CouponService(db_session)

        def boom(code):
            raise RuntimeError("database went away")

        monkeypatch.setattr(service, "get_coupon_by_code", boom)

        result = service.validate_coupon("SAVE10", 1000)
        assert result.valid is False
        assert result.error == "Failed to validate coupon"

    def test_lookup_failure_rolls_back_session(self, db_session, monkeypatch):
        service = CouponService(db_session)
        rollbacks = []
        real_rollback = db_session.rollback

        def boom(code):
            raise RuntimeError("current transaction is aborted")

        def tracking_rollback():
            rollbacks.append(True)
            real_rollback()

        monkeypatch.setattr(service, "get_coupon_by_code", boom)
        monkeypatch.setattr(db_session, "rollback", tracking_rollback)

        service.validate_coupon("SAVE10", 1000)

        assert rollbacks == [True]


class TestRedeemCoupon:
    def test_records_redemption_and_bumps_usage(self, db_session, make_coupon, make_order):
        coupon = make_coupon("SAVE10", usage_count=3)
        order = make_order("user-1")

        redemption = CouponService(db_session).redeem_coupon(coupon.id, order.id, 100, user_id="user-1")

        db_session.refresh(coupon)
        assert coupon.usage_count == 4
        assert redemption.order_id == order.id
        assert redemption.discount_amount == Decimal("100")
        assert db_session.query(CouponRedemption).count() == 1

    def test_unknown_coupon(self, db_session, make_order):
        order = make_order()
        with pytest.raises(ValueError, match="Coupon not found"):
            CouponService(db_session).redeem_coupon(uuid.uuid4(), order.id, 10)
        assert db_session.query(CouponRedemption).count() == 0

    def test_user_usage(self, db_session, make_coupon, make_order):
        coupon = make_coupon("SAVE10")
        service = CouponService(db_session)
        service.redeem_coupon(coupon.id, make_order("user-1").id, 100, user_id="user-1")
        service.redeem_coupon(coupon.id, make_order("user-1").id, 100, user_id="user-1")

        assert service.get_user_coupon_usage("save10", "user-1") == 2
        assert service.get_user_coupon_usage("SAVE10", "user-2") == 0
        assert service.get_user_coupon_usage("SAVE10", None) == 0


def test_format_currency():
    assert format_currency(Decimal("1234567.5")) == "₱1,234,567.50"
