"""Purchases API endpoints"""
from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from seat_inventory.core.database import get_db
from seat_inventory.core.security import get_current_user_id
from seat_inventory.middleware.rate_limiter import limiter, PURCHASE_LIMIT
from seat_inventory.schemas import (
    PurchaseCreate,
    PurchaseResponse,
    PurchaseResultResponse,
    PurchaseListResponse,
    PaymentMethodResponse,
    PaymentMethodListResponse,
)

router = APIRouter()


@router.post("/purchases", response_model=PurchaseResultResponse, status_code=201)
@limiter.limit(PURCHASE_LIMIT)
async def create_purchase(
    request: Request,
    body: PurchaseCreate,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """
    Buy seats outright

    All seats are bought or none are. Seats the caller holds are accepted;
    the caller's holds for the event are cleared on success.
    """
    result = await request.app.state.purchases.purchase(
        db, user_id, body.event_id, body.seat_ids, body.payment_info
    )
    return PurchaseResultResponse.from_result(result)


@router.get("/purchases", response_model=PurchaseListResponse)
async def list_purchases(
    request: Request,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    purchases = await request.app.state.purchases.list_purchases(db, user_id)
    return PurchaseListResponse(
        purchases=[PurchaseResponse.model_validate(p) for p in purchases],
        total=len(purchases),
    )


@router.get("/payment-methods", response_model=PaymentMethodListResponse)
async def list_payment_methods(
    request: Request,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    methods = await request.app.state.purchases.list_payment_methods(db, user_id)
    return PaymentMethodListResponse(
        payment_methods=[PaymentMethodResponse.model_validate(m) for m in methods],
        total=len(methods),
    )
