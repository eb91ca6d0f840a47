from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional
from app.db.database import get_db
from app.schemas.coupon import CouponValidateRequest, CouponValidationResult, CouponUsageResponse
from app.services.coupon_service import CouponService

router = APIRouter(
    prefix="/coupons",
    tags=["Coupons"]
)


def get_coupon_service(db: Session = Depends(get_db)) -> CouponService:
    """Dependency to get coupon service"""
    return CouponService(db)


@router.post(
    "/validate",
    response_model=CouponValidationResult,
    response_model_exclude_none=True,
    summary="Validate a coupon against a cart subtotal",
    description="""
    Validation failures are not HTTP errors: the response is `200` with
    `valid: false` and a human-readable `error`.

    Checks, first failure wins: unknown code, inactive, not yet valid,
    expired, global usage limit, per-user limit (when `userId` is given),
    minimum purchase.
    """,
    responses={
        200: {
            "description": "Validation result",
            "content": {
                "application/json": {
                    "example": {
                        "valid": True,
                        "coupon": {
                            "id": "123e4567-e89b-12d3-a456-426614174000",
                            "code": "SAVE10",
                            "name": "10% off",
                            "discountType": "PERCENTAGE",
                            "discountValue": 10,
                            "minPurchaseAmount": None,
                            "maxDiscountAmount": 500
                        },
                        "discount": 100
                    }
                }
            }
        }
    }
)
def validate_coupon(
    request: CouponValidateRequest,
    coupon_service: CouponService = Depends(get_coupon_service)
):
    return coupon_service.validate_coupon(request.code, request.subtotal, request.user_id)


@router.get(
    "/{code}/usage",
    response_model=CouponUsageResponse,
    summary="Times a user has redeemed a coupon"
)
def get_coupon_usage(
    code: str,
    user_id: Optional[str] = Query(None, alias="userId"),
    coupon_service: CouponService = Depends(get_coupon_service)
):
    return CouponUsageResponse(count=coupon_service.get_user_coupon_usage(code, user_id))
