from pydantic import Field
from typing import Optional
from uuid import UUID

from app.schemas.common import CamelModel


class CouponValidateRequest(CamelModel):
    code: str = Field(..., min_length=1, max_length=50, examples=["SAVE10"])
    subtotal: float = Field(..., ge=0, examples=[1000])
    user_id: Optional[str] = Field(None, description="Customer id, enables per-user limits")


class CouponSummary(CamelModel):
    """Coupon fields exposed to checkout, with Decimal columns as plain numbers"""
    id: UUID
    code: str
    name: str
    discount_type: str
    discount_value: float
    min_purchase_amount: Optional[float] = None
    max_discount_amount: Optional[float] = None


class CouponValidationResult(CamelModel):
    valid: bool
    coupon: Optional[CouponSummary] = None
    discount: Optional[float] = None
    error: Optional[str] = None


class CouponUsageResponse(CamelModel):
    count: int
