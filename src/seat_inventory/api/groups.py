"""Group purchase API endpoints"""
from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from seat_inventory.core.database import get_db
from seat_inventory.core.security import get_current_user_id
from seat_inventory.middleware.rate_limiter import limiter, GROUP_LIMIT, PURCHASE_LIMIT
from seat_inventory.schemas import (
    GroupCreate,
    GroupInvite,
    GroupPrepay,
    GroupPurchaseRequest,
    GroupResponse,
    GroupListResponse,
)

router = APIRouter(prefix="/groups")


@router.post("", response_model=GroupResponse, status_code=201)
@limiter.limit(GROUP_LIMIT)
async def create_group(
    request: Request,
    body: GroupCreate,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Create a group with the caller as leader"""
    group = await request.app.state.groups.create_group(
        db,
        user_id,
        body.event_id,
        body.group_name,
        body.max_members,
        body.target_seats,
        body.estimated_price_per_seat,
    )
    return GroupResponse.from_group(group)


@router.get("", response_model=GroupListResponse)
async def list_groups(
    request: Request,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    groups = await request.app.state.groups.list_groups(db, user_id)
    return GroupListResponse(
        groups=[GroupResponse.from_group(group) for group in groups],
        total=len(groups),
    )


@router.get("/{group_id}", response_model=GroupResponse)
async def get_group(
    request: Request,
    group_id: str,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    group = await request.app.state.groups.get_group(db, user_id, group_id)
    return GroupResponse.from_group(group)


@router.post("/{group_id}/invite", response_model=GroupResponse)
@limiter.limit(GROUP_LIMIT)
async def invite_members(
    request: Request,
    group_id: str,
    body: GroupInvite,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    group = await request.app.state.groups.invite(db, user_id, group_id, body.friend_ids)
    return GroupResponse.from_group(group)


@router.post("/{group_id}/join", response_model=GroupResponse)
@limiter.limit(GROUP_LIMIT)
async def join_group(
    request: Request,
    group_id: str,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    group = await request.app.state.groups.join(db, user_id, group_id)
    return GroupResponse.from_group(group)


@router.post("/{group_id}/decline", response_model=GroupResponse)
@limiter.limit(GROUP_LIMIT)
async def decline_invitation(
    request: Request,
    group_id: str,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    group = await request.app.state.groups.decline(db, user_id, group_id)
    return GroupResponse.from_group(group)


@router.post("/{group_id}/prepay", response_model=GroupResponse)
@limiter.limit(GROUP_LIMIT)
async def prepay(
    request: Request,
    group_id: str,
    body: GroupPrepay,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Record an advisory prepayment; no seats are reserved by it"""
    group = await request.app.state.groups.prepay(db, user_id, group_id, body.amount)
    return GroupResponse.from_group(group)


@router.post("/{group_id}/purchase", response_model=GroupResponse)
@limiter.limit(PURCHASE_LIMIT)
async def purchase_for_group(
    request: Request,
    group_id: str,
    body: GroupPurchaseRequest,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """
    Leader buys one seat per joined member plus their own

    The seat count must equal joined members + 1. The leader gets the first
    seat, joined members the rest in the order they joined.
    """
    group = await request.app.state.groups.purchase_for_group(
        db, user_id, group_id, body.seat_ids, body.payment_info
    )
    return GroupResponse.from_group(group)
