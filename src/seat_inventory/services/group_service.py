"""
Group purchase engine - leader-driven batch purchase bound to group membership
"""
from decimal import Decimal, InvalidOperation
from typing import List, Optional, Sequence, Tuple

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from seat_inventory.core import metrics
from seat_inventory.core.clock import Clock, utcnow
from seat_inventory.models import GroupMember, GroupPurchase, GroupStatus, MemberStatus
from seat_inventory.models.venue import CENTS
from seat_inventory.services.catalog import CatalogStore
from seat_inventory.services.errors import (
    ConflictError,
    ForbiddenError,
    GroupSizeMismatchError,
    NotFoundError,
    SeatUnavailableError,
    ValidationError,
)
from seat_inventory.services.purchase_service import PurchaseEngine, validate_payment
from seat_inventory.services.reservation_service import normalize_selection
import logging

logger = logging.getLogger(__name__)


def assign_seats(
    leader_id: str,
    joined_members: Sequence[GroupMember],
    seat_ids: Sequence[str],
) -> List[Tuple[str, str]]:
    """
    Pair seats with people: the leader takes the first seat, then joined
    members in join order take the rest, in the order the seats were given.
    """
    people = [leader_id] + [member.user_id for member in joined_members]
    if len(people) != len(seat_ids):
        raise GroupSizeMismatchError(expected=len(people), received=len(seat_ids))
    return list(zip(people, seat_ids))


def _positive_amount(amount, label: str) -> Decimal:
    try:
        value = Decimal(str(amount)).quantize(CENTS)
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{label} must be a number")
    if not value.is_finite():
        raise ValidationError(f"{label} must be a number")
    if value <= 0:
        raise ValidationError(f"{label} must be greater than zero")
    return value


class GroupPurchaseEngine:
    """
    Groups stay `forming` until the leader buys. The purchase itself runs
    through the primary purchase path in the same transaction as the
    assignment writes, so a failed seat leaves the group untouched.
    """

    def __init__(self, purchase_engine: Optional[PurchaseEngine] = None, clock: Clock = utcnow):
        self.clock = clock
        self.purchase_engine = purchase_engine or PurchaseEngine(clock=clock)

    async def _lock_group(self, db: AsyncSession, group_id: str) -> GroupPurchase:
        group = await db.get(GroupPurchase, group_id, with_for_update=True, populate_existing=True)
        if group is None:
            raise NotFoundError(f"Group {group_id} not found")
        return group

    @staticmethod
    def _require_forming(group: GroupPurchase):
        if group.status != GroupStatus.FORMING:
            raise ConflictError("Group purchase is already completed")

    # ==================== Membership ====================

    async def create_group(
        self,
        db: AsyncSession,
        leader_id: str,
        event_id: str,
        group_name: str,
        max_members: int,
        target_seats: int,
        estimated_price_per_seat=None,
    ) -> GroupPurchase:
        if not group_name or not group_name.strip():
            raise ValidationError("Group name is required")
        if max_members < 2:
            raise ValidationError("A group needs room for at least one member besides the leader")
        if target_seats < 1:
            raise ValidationError("Target seats must be at least 1")
        if estimated_price_per_seat is not None:
            estimated_price_per_seat = _positive_amount(estimated_price_per_seat, "Estimated price")

        now = self.clock()
        async with db.begin():
            event = await CatalogStore(db).get_event(event_id)
            if event is None:
                raise NotFoundError(f"Event {event_id} not found")

            group = GroupPurchase(
                event_id=event_id,
                leader_id=leader_id,
                group_name=group_name.strip(),
                max_members=max_members,
                target_seats=target_seats,
                status=GroupStatus.FORMING,
                total_prepaid=Decimal("0.00"),
                estimated_price_per_seat=estimated_price_per_seat,
                created_at=now,
                updated_at=now,
                members=[],
            )
            db.add(group)
            await db.flush()

        logger.info(
            f"Group '{group.group_name}' created",
            extra={'user_id': leader_id, 'event_id': event_id, 'group_id': group.id},
        )
        return group

    async def invite(
        self,
        db: AsyncSession,
        leader_id: str,
        group_id: str,
        friend_ids: Sequence[str],
    ) -> GroupPurchase:
        """Invite users; the leader and anyone already in the group are skipped"""
        now = self.clock()
        async with db.begin():
            group = await self._lock_group(db, group_id)
            if group.leader_id != leader_id:
                raise ForbiddenError("Only the group leader can invite members")
            self._require_forming(group)

            existing = {member.user_id for member in group.members}
            new_ids = [
                user_id for user_id in dict.fromkeys(friend_ids)
                if user_id and user_id != leader_id and user_id not in existing
            ]
            # the leader counts toward max_members
            if len(existing) + len(new_ids) + 1 > group.max_members:
                raise ValidationError(f"Group is limited to {group.max_members} people")

            for user_id in new_ids:
                group.members.append(
                    GroupMember(user_id=user_id, status=MemberStatus.INVITED, invited_at=now)
                )
            group.updated_at = now

        logger.info(
            f"Invited {len(new_ids)} users",
            extra={'user_id': leader_id, 'group_id': group_id},
        )
        return group

    def _member(self, group: GroupPurchase, user_id: str) -> GroupMember:
        for member in group.members:
            if member.user_id == user_id:
                return member
        raise ForbiddenError("You have not been invited to this group")

    async def join(self, db: AsyncSession, user_id: str, group_id: str) -> GroupPurchase:
        now = self.clock()
        async with db.begin():
            group = await self._lock_group(db, group_id)
            self._require_forming(group)
            member = self._member(group, user_id)
            if member.status != MemberStatus.JOINED:
                member.status = MemberStatus.JOINED
                member.joined_at = now
                group.updated_at = now

        logger.info("Member joined group", extra={'user_id': user_id, 'group_id': group_id})
        return group

    async def decline(self, db: AsyncSession, user_id: str, group_id: str) -> GroupPurchase:
        """Drop a pending invitation; joined members cannot back out"""
        async with db.begin():
            group = await self._lock_group(db, group_id)
            self._require_forming(group)
            member = self._member(group, user_id)
            if member.status != MemberStatus.INVITED:
                raise ConflictError("Joined members cannot decline")
            group.members.remove(member)
            group.updated_at = self.clock()

        logger.info("Invitation declined", extra={'user_id': user_id, 'group_id': group_id})
        return group

    async def prepay(self, db: AsyncSession, user_id: str, group_id: str, amount) -> GroupPurchase:
        """Advisory accounting only; nothing here reserves or buys seats"""
        amount = _positive_amount(amount, "Prepay amount")
        async with db.begin():
            group = await self._lock_group(db, group_id)
            self._require_forming(group)
            if user_id != group.leader_id:
                member = self._member(group, user_id)
                if member.status != MemberStatus.JOINED:
                    raise ForbiddenError("Join the group before prepaying")
                member.prepaid_amount = (member.prepaid_amount or Decimal("0.00")) + amount
            group.total_prepaid = (group.total_prepaid or Decimal("0.00")) + amount
            group.updated_at = self.clock()

        logger.info(
            f"Prepaid {amount}",
            extra={'user_id': user_id, 'group_id': group_id},
        )
        return group

    # ==================== Reads ====================

    async def get_group(self, db: AsyncSession, user_id: str, group_id: str) -> GroupPurchase:
        async with db.begin():
            group = await db.get(GroupPurchase, group_id, populate_existing=True)
        if group is None:
            raise NotFoundError(f"Group {group_id} not found")
        if not group.is_participant(user_id):
            raise ForbiddenError("You are not part of this group")
        return group

    async def list_groups(self, db: AsyncSession, user_id: str) -> List[GroupPurchase]:
        """Groups the user leads or has been invited to"""
        member_of = select(GroupMember.group_id).where(GroupMember.user_id == user_id)
        query = (
            select(GroupPurchase)
            .where(or_(GroupPurchase.leader_id == user_id, GroupPurchase.id.in_(member_of)))
            .order_by(GroupPurchase.created_at.desc())
        )
        async with db.begin():
            result = await db.execute(query)
            return list(result.scalars().all())

    # ==================== Purchase ====================

    async def purchase_for_group(
        self,
        db: AsyncSession,
        leader_id: str,
        group_id: str,
        seat_ids: Sequence[str],
        payment,
    ) -> GroupPurchase:
        validate_payment(payment)
        seat_ids = normalize_selection(seat_ids)

        try:
            async with db.begin():
                group = await self._lock_group(db, group_id)
                if group.leader_id != leader_id:
                    raise ForbiddenError("Only the group leader can complete the purchase")
                self._require_forming(group)

                joined = group.joined_members
                assignments = assign_seats(leader_id, joined, seat_ids)

                result = await self.purchase_engine.commit_purchase(
                    db, leader_id, group.event_id, seat_ids, payment
                )
                prices = {p.seat_id: p.price for p in result.purchases}

                now = self.clock()
                members = {member.user_id: member for member in joined}
                for user_id, seat_id in assignments:
                    if user_id == leader_id:
                        group.leader_seat_id = seat_id
                        group.leader_final_price = prices[seat_id]
                    else:
                        members[user_id].seat_assigned_id = seat_id
                        members[user_id].final_price = prices[seat_id]

                group.status = GroupStatus.COMPLETED
                group.actual_total_cost = result.total_price
                group.completed_at = now
                group.updated_at = now
        except GroupSizeMismatchError as e:
            logger.warning(
                f"Group purchase rejected: expected {e.expected} seats, got {e.received}",
                extra={'user_id': leader_id, 'group_id': group_id, 'seat_ids': seat_ids},
            )
            raise
        except SeatUnavailableError as e:
            metrics.record_conflict("group")
            logger.warning(
                "Group purchase aborted: seats unavailable",
                extra={'user_id': leader_id, 'group_id': group_id, 'seat_ids': e.seat_ids},
            )
            raise

        metrics.record_sale("group", len(seat_ids))
        metrics.group_purchases_completed_total.inc()
        logger.info(
            f"Group purchase completed for {group.actual_total_cost}",
            extra={'user_id': leader_id, 'group_id': group_id, 'seat_ids': seat_ids},
        )
        return group
