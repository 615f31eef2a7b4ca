"""Pydantic schemas for group purchases"""
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from seat_inventory.models.group import GroupStatus, MemberStatus
from seat_inventory.schemas.payment import PaymentInfo


class GroupCreate(BaseModel):
    event_id: str
    group_name: str
    max_members: int
    target_seats: int
    estimated_price_per_seat: Optional[Decimal] = None


class GroupInvite(BaseModel):
    friend_ids: List[str] = Field(..., min_length=1)


class GroupPrepay(BaseModel):
    amount: Decimal


class GroupPurchaseRequest(BaseModel):
    seat_ids: List[str] = Field(..., min_length=1)
    payment_info: PaymentInfo = Field(default_factory=PaymentInfo)


class GroupMemberResponse(BaseModel):
    user_id: str
    status: MemberStatus
    prepaid_amount: Decimal
    seat_assigned_id: Optional[str] = None
    final_price: Optional[Decimal] = None
    invited_at: datetime
    joined_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class GroupResponse(BaseModel):
    id: str
    event_id: str
    leader_id: str
    group_name: str
    max_members: int
    target_seats: int
    status: GroupStatus
    total_prepaid: Decimal
    estimated_price_per_seat: Optional[Decimal] = None
    actual_total_cost: Optional[Decimal] = None
    leader_seat_id: Optional[str] = None
    leader_final_price: Optional[Decimal] = None
    joined_count: int
    members: List[GroupMemberResponse] = Field(default_factory=list)
    created_at: datetime
    completed_at: Optional[datetime] = None

    @classmethod
    def from_group(cls, group):
        """Convert GroupPurchase ORM model to response, members in seat order"""
        joined = group.joined_members
        pending = [m for m in group.members if m.status != MemberStatus.JOINED]
        return cls(
            id=group.id,
            event_id=group.event_id,
            leader_id=group.leader_id,
            group_name=group.group_name,
            max_members=group.max_members,
            target_seats=group.target_seats,
            status=group.status,
            total_prepaid=group.total_prepaid,
            estimated_price_per_seat=group.estimated_price_per_seat,
            actual_total_cost=group.actual_total_cost,
            leader_seat_id=group.leader_seat_id,
            leader_final_price=group.leader_final_price,
            joined_count=len(joined),
            members=[GroupMemberResponse.model_validate(m) for m in joined + pending],
            created_at=group.created_at,
            completed_at=group.completed_at,
        )


class GroupListResponse(BaseModel):
    groups: List[GroupResponse]
    total: int
