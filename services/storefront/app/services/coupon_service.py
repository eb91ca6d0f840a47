from sqlalchemy.orm import Session
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional
from uuid import UUID
import logging

from app.config import settings
from app.models.coupon import Coupon, CouponRedemption, DiscountType
from app.schemas.coupon import CouponSummary, CouponValidationResult

logger = logging.getLogger(__name__)


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # Some backends hand timestamps back without tzinfo; they are stored as UTC
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _invalid(error: str) -> CouponValidationResult:
    return CouponValidationResult(valid=False, error=error)


def format_currency(amount: Decimal) -> str:
    return f"{settings.currency_symbol}{amount:,.2f}"


def to_summary(coupon: Coupon) -> CouponSummary:
    return CouponSummary(
        id=coupon.id,
        code=coupon.code,
        name=coupon.name,
        discount_type=coupon.discount_type,
        discount_value=float(coupon.discount_value),
        min_purchase_amount=float(coupon.min_purchase_amount) if coupon.min_purchase_amount else None,
        max_discount_amount=float(coupon.max_discount_amount) if coupon.max_discount_amount else None,
    )


def compute_discount(coupon: Coupon, subtotal: Decimal) -> Decimal:
    """Discount for an eligible coupon

    Percentage discounts respect max_discount_amount. Fixed amounts are not
    limited to the subtotal; the caller floors the order total. Free shipping
    is worth nothing here and is applied to the shipping fee by the caller.
    """
    if coupon.discount_type == DiscountType.PERCENTAGE.value:
        discount = subtotal * Decimal(coupon.discount_value) / 100
        if coupon.max_discount_amount and discount > coupon.max_discount_amount:
            discount = Decimal(coupon.max_discount_amount)
        return discount
    if coupon.discount_type == DiscountType.FIXED_AMOUNT.value:
        return Decimal(coupon.discount_value)
    return Decimal(0)


class CouponService:
    """Service layer for coupon validation and redemption"""

    def __init__(self, db: Session):
        self.db = db

    def get_coupon_by_code(self, code: str) -> Optional[Coupon]:
        return self.db.query(Coupon).filter(Coupon.code == code.strip().upper()).first()

    def count_user_redemptions(self, coupon_id: UUID, user_id: str) -> int:
        return self.db.query(CouponRedemption).filter(
            CouponRedemption.coupon_id == coupon_id,
            CouponRedemption.user_id == user_id
        ).count()

    def validate_coupon(self, code: str, subtotal: float, user_id: Optional[str] = None) -> CouponValidationResult:
        """Check a coupon against a cart subtotal

        Checks run in a fixed order and the first failure is returned, so the
        checkout page always shows the same message for the same coupon state.
        Never raises; lookup failures come back as an invalid result.
        """
        try:
            coupon = self.get_coupon_by_code(code)

            if not coupon:
                return _invalid("Invalid coupon code")

            if not coupon.is_active:
                return _invalid("This coupon is no longer active")

            now = datetime.now(timezone.utc)
            valid_from = _as_utc(coupon.valid_from)
            valid_until = _as_utc(coupon.valid_until)
            if valid_from and now < valid_from:
                return _invalid("This coupon is not yet valid")
            if valid_until and now > valid_until:
                return _invalid("This coupon has expired")

            if coupon.usage_limit and coupon.usage_count >= coupon.usage_limit:
                return _invalid("This coupon has reached its usage limit")

            if user_id and coupon.per_user_limit:
                if self.count_user_redemptions(coupon.id, user_id) >= coupon.per_user_limit:
                    return _invalid("You have already used this coupon the maximum number of times")

            amount = Decimal(str(subtotal))
            if coupon.min_purchase_amount and amount < coupon.min_purchase_amount:
                return _invalid(
                    f"Minimum purchase of {format_currency(Decimal(coupon.min_purchase_amount))} required"
                )

            discount = compute_discount(coupon, amount)

            return CouponValidationResult(
                valid=True,
                coupon=to_summary(coupon),
                discount=float(discount)
            )
        except Exception as e:
            logger.error(f"Error validating coupon {code}: {e}", exc_info=True)
            try:
                self.db.rollback()
            except Exception as rollback_error:
                logger.warning(f"Rollback after coupon validation failure failed: {rollback_error}")
            return _invalid("Failed to validate coupon")

    def redeem_coupon(
        self,
        coupon_id: UUID,
        order_id: UUID,
        discount_amount: float,
        user_id: Optional[str] = None,
        commit: bool = True
    ) -> CouponRedemption:
        """Record a redemption and bump the coupon's usage count

        Both writes go into the same transaction. Pass commit=False to leave
        the transaction open for the caller (order placement).
        """
        redemption = CouponRedemption(
            coupon_id=coupon_id,
            order_id=order_id,
            user_id=user_id,
            discount_amount=Decimal(str(discount_amount))
        )
        self.db.add(redemption)

        updated = self.db.query(Coupon).filter(Coupon.id == coupon_id).update(
            {Coupon.usage_count: Coupon.usage_count + 1},
            synchronize_session="fetch"
        )
        if not updated:
            self.db.rollback()
            raise ValueError(f"Coupon not found: {coupon_id}")

        if commit:
            try:
                self.db.commit()
            except Exception:
                self.db.rollback()
                raise
            self.db.refresh(redemption)

        logger.info(f"Redeemed coupon {coupon_id} on order {order_id}")
        return redemption

    def get_user_coupon_usage(self, code: str, user_id: Optional[str]) -> int:
        """Times a user has redeemed a coupon code (0 for anonymous users)"""
        if not user_id:
            return 0
        return self.db.query(CouponRedemption).join(Coupon).filter(
            Coupon.code == code.strip().upper(),
            CouponRedemption.user_id == user_id
        ).count()
