# Package exports - these allow cleaner imports like:
# from app.schemas import ProgressEvent, CouponValidationResult
from app.schemas.inventory_sync import (
    LegacyInventoryRecord, LegacySite, RecordOutcome, SyncStats, ProgressEvent,
    SyncSummary, SyncRequest, SyncRunResponse
)
from app.schemas.common import CamelModel
from app.schemas.category import CategoryResponse, CategoryCountResponse
from app.schemas.coupon import CouponValidateRequest, CouponSummary, CouponValidationResult, CouponUsageResponse
from app.schemas.tax import TaxRateInfo, TaxCalculateRequest, TaxCalculation
from app.schemas.checkout import CheckoutRequest, CheckoutQuote, OrderResponse
