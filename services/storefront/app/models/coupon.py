from sqlalchemy import Column, String, Text, Integer, Numeric, Boolean, DateTime, ForeignKey, CheckConstraint, Index, Uuid
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum
import uuid
from app.db.database import Base


class DiscountType(str, enum.Enum):
    PERCENTAGE = "PERCENTAGE"
    FIXED_AMOUNT = "FIXED_AMOUNT"
    FREE_SHIPPING = "FREE_SHIPPING"


class Coupon(Base):
    __tablename__ = "coupons"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    code = Column(String(50), nullable=False, unique=True)  # stored upper-case
    name = Column(Text, nullable=False)
    description = Column(Text)
    discount_type = Column(String(20), nullable=False)
    discount_value = Column(Numeric(12, 2), nullable=False)
    min_purchase_amount = Column(Numeric(12, 2))
    max_discount_amount = Column(Numeric(12, 2))
    usage_limit = Column(Integer)
    usage_count = Column(Integer, nullable=False, default=0)
    per_user_limit = Column(Integer)
    valid_from = Column(DateTime(timezone=True))
    valid_until = Column(DateTime(timezone=True))
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (
        CheckConstraint(
            "discount_type IN ('PERCENTAGE', 'FIXED_AMOUNT', 'FREE_SHIPPING')",
            name="discount_type_valid"
        ),
    )

    redemptions = relationship("CouponRedemption", back_populates="coupon")


class CouponRedemption(Base):
    """One use of a coupon against an order; also the per-user usage counter"""
    __tablename__ = "coupon_redemptions"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    coupon_id = Column(Uuid(as_uuid=True), ForeignKey("coupons.id"), nullable=False)
    order_id = Column(Uuid(as_uuid=True), ForeignKey("orders.id"), nullable=False)
    user_id = Column(String(255))
    discount_amount = Column(Numeric(12, 2), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        Index("idx_redemption_coupon_user", "coupon_id", "user_id"),
    )

    coupon = relationship("Coupon", back_populates="redemptions")
