from pydantic import Field
from typing import Optional
from uuid import UUID
from datetime import datetime

from app.schemas.common import CamelModel
from app.schemas.coupon import CouponSummary
from app.schemas.tax import TaxRateInfo


class CheckoutRequest(CamelModel):
    subtotal: float = Field(..., ge=0, examples=[1000])
    shipping_amount: float = Field(0, ge=0, examples=[150])
    coupon_code: Optional[str] = Field(None, examples=["SAVE10"])
    user_id: Optional[str] = None


class CheckoutQuote(CamelModel):
    subtotal: float
    discount_amount: float
    shipping_amount: float
    taxable_amount: float
    tax_amount: float
    total_amount: float
    tax_rate: TaxRateInfo
    coupon: Optional[CouponSummary] = None
    coupon_error: Optional[str] = None


class OrderResponse(CamelModel):
    id: UUID
    order_number: str
    status: str
    subtotal: float
    discount_amount: float
    shipping_amount: float
    tax_amount: float
    total_amount: float
    coupon_id: Optional[UUID] = None
    created_at: datetime
