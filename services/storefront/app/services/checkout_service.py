"""
Checkout totals and order placement

Totals: discount from the coupon, shipping waived by a FREE_SHIPPING coupon or
a subtotal at the free-shipping threshold, tax on the discounted subtotal
(never below zero), total = taxable + tax + shipping.
"""
from sqlalchemy.orm import Session
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional
import logging

from app.config import settings
from app.models.coupon import DiscountType
from app.models.order import Order
from app.schemas.checkout import CheckoutQuote
from app.services.coupon_service import CouponService
from app.services.tax_service import TaxService, compute_tax

logger = logging.getLogger(__name__)


def _money(value: float) -> Decimal:
    return Decimal(str(value)).quantize(Decimal("0.01"))


class CheckoutService:
    """Service layer for checkout"""

    def __init__(self, db: Session):
        self.db = db
        self.coupon_service = CouponService(db)
        self.tax_service = TaxService(db)

    def quote(
        self,
        subtotal: float,
        shipping_amount: float = 0,
        coupon_code: Optional[str] = None,
        user_id: Optional[str] = None
    ) -> CheckoutQuote:
        coupon = None
        coupon_error = None
        discount = 0.0

        if coupon_code:
            result = self.coupon_service.validate_coupon(coupon_code, subtotal, user_id)
            if result.valid:
                coupon = result.coupon
                discount = result.discount or 0.0
            else:
                coupon_error = result.error

        free_shipping = (
            (coupon is not None and coupon.discount_type == DiscountType.FREE_SHIPPING.value)
            or subtotal >= settings.free_shipping_threshold
        )
        shipping = 0.0 if free_shipping else shipping_amount

        taxable = max(subtotal - discount, 0.0)
        tax_rate = self.tax_service.get_default_tax_rate()
        tax_amount = compute_tax(taxable, tax_rate)

        return CheckoutQuote(
            subtotal=subtotal,
            discount_amount=discount,
            shipping_amount=shipping,
            taxable_amount=taxable,
            tax_amount=tax_amount,
            total_amount=taxable + tax_amount + shipping,
            tax_rate=tax_rate,
            coupon=coupon,
            coupon_error=coupon_error
        )

    def _next_order_number(self) -> str:
        prefix = f"ORD-{datetime.now(timezone.utc):%Y%m%d}-"
        today_count = self.db.query(Order).filter(Order.order_number.like(f"{prefix}%")).count()
        return f"{prefix}{today_count + 1:04d}"

    def place_order(
        self,
        subtotal: float,
        shipping_amount: float = 0,
        coupon_code: Optional[str] = None,
        user_id: Optional[str] = None
    ) -> Order:
        """Create an order and redeem its coupon in a single transaction

        A coupon that fails validation is rejected with ValueError rather than
        silently dropped from the order.
        """
        quote = self.quote(subtotal, shipping_amount, coupon_code, user_id)
        if coupon_code and quote.coupon is None:
            raise ValueError(quote.coupon_error or "Invalid coupon code")

        try:
            order = Order(
                order_number=self._next_order_number(),
                user_id=user_id,
                status="PENDING",
                subtotal=_money(quote.subtotal),
                discount_amount=_money(quote.discount_amount),
                shipping_amount=_money(quote.shipping_amount),
                tax_amount=_money(quote.tax_amount),
                total_amount=_money(quote.total_amount),
                tax_code=quote.tax_rate.code,
                tax_rate=Decimal(str(quote.tax_rate.rate)),
                coupon_id=quote.coupon.id if quote.coupon else None
            )
            self.db.add(order)
            self.db.flush()

            if quote.coupon:
                self.coupon_service.redeem_coupon(
                    quote.coupon.id,
                    order.id,
                    quote.discount_amount,
                    user_id=user_id,
                    commit=False
                )

            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to place order: {e}", exc_info=True)
            raise

        self.db.refresh(order)
        logger.info(f"Placed order {order.order_number} (total {order.total_amount})")
        return order
