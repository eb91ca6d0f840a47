from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from app.db.database import get_db
from app.schemas.checkout import CheckoutRequest, CheckoutQuote, OrderResponse
from app.services.checkout_service import CheckoutService

router = APIRouter(
    prefix="/checkout",
    tags=["Checkout"]
)


def get_checkout_service(db: Session = Depends(get_db)) -> CheckoutService:
    """Dependency to get checkout service"""
    return CheckoutService(db)


@router.post(
    "/quote",
    response_model=CheckoutQuote,
    response_model_exclude_none=True,
    summary="Price a cart",
    description="""
    Discount, shipping, tax and total for a subtotal and optional coupon. An
    invalid coupon is reported in `couponError` and not applied.
    """
)
def quote(
    request: CheckoutRequest,
    checkout_service: CheckoutService = Depends(get_checkout_service)
):
    return checkout_service.quote(
        request.subtotal,
        request.shipping_amount,
        request.coupon_code,
        request.user_id
    )


@router.post(
    "/orders",
    response_model=OrderResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Place an order",
    description="""
    Creates the order and, when a coupon is applied, its redemption in one
    transaction.
    """,
    responses={
        201: {"description": "Order created"},
        400: {"description": "Coupon rejected"}
    }
)
def place_order(
    request: CheckoutRequest,
    checkout_service: CheckoutService = Depends(get_checkout_service)
):
    try:
        order = checkout_service.place_order(
            request.subtotal,
            request.shipping_amount,
            request.coupon_code,
            request.user_id
        )
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )
    return OrderResponse(
        id=order.id,
        order_number=order.order_number,
        status=order.status,
        subtotal=float(order.subtotal),
        discount_amount=float(order.discount_amount),
        shipping_amount=float(order.shipping_amount),
        tax_amount=float(order.tax_amount),
        total_amount=float(order.total_amount),
        coupon_id=order.coupon_id,
        created_at=order.created_at
    )
