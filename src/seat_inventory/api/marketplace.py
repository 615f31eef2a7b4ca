"""Marketplace API endpoints - resale listings"""
from typing import Optional
from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from seat_inventory.core.database import get_db
from seat_inventory.core.security import get_current_user_id
from seat_inventory.middleware.rate_limiter import limiter, MARKETPLACE_LIMIT
from seat_inventory.schemas import (
    ListingCreate,
    ListingPurchase,
    ListingResponse,
    ListingListResponse,
)

router = APIRouter(prefix="/marketplace")


@router.get("/listings", response_model=ListingListResponse)
async def list_listings(
    request: Request,
    event_id: Optional[str] = Query(None, description="Only listings for this event"),
    db: AsyncSession = Depends(get_db),
):
    listings = await request.app.state.marketplace.list_listings(db, event_id)
    return ListingListResponse(
        listings=[ListingResponse.model_validate(listing) for listing in listings],
        total=len(listings),
    )


@router.post("/listings", response_model=ListingResponse, status_code=201)
@limiter.limit(MARKETPLACE_LIMIT)
async def create_listing(
    request: Request,
    body: ListingCreate,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """List a seat the caller owns for resale"""
    listing = await request.app.state.marketplace.list_for_sale(
        db, user_id, body.event_id, body.seat_id, body.price
    )
    return ListingResponse.model_validate(listing)


@router.get("/listings/{listing_id}", response_model=ListingResponse)
async def get_listing(
    request: Request,
    listing_id: str,
    db: AsyncSession = Depends(get_db),
):
    listing = await request.app.state.marketplace.get_listing(db, listing_id)
    return ListingResponse.model_validate(listing)


@router.post("/listings/{listing_id}/purchase", response_model=ListingResponse)
@limiter.limit(MARKETPLACE_LIMIT)
async def purchase_listing(
    request: Request,
    listing_id: str,
    body: ListingPurchase,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Buy a listed seat; the seller's ticket moves to the caller"""
    listing = await request.app.state.marketplace.purchase_listing(
        db, user_id, listing_id, body.payment_info
    )
    return ListingResponse.model_validate(listing)


@router.delete("/listings/{listing_id}", response_model=ListingResponse)
async def remove_listing(
    request: Request,
    listing_id: str,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    listing = await request.app.state.marketplace.remove_listing(db, user_id, listing_id)
    return ListingResponse.model_validate(listing)
