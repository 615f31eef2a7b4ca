"""
Group purchase models - a leader buys one seat per joined member plus one for themself
"""
from decimal import Decimal
from enum import Enum as PyEnum

from sqlalchemy import Column, String, Integer, DateTime, Numeric, ForeignKey, Enum, UniqueConstraint
from sqlalchemy.orm import relationship

from seat_inventory.core.clock import utcnow
from seat_inventory.core.database import Base
from seat_inventory.models.venue import new_id


def _values(enum_cls):
    return [m.value for m in enum_cls]


class GroupStatus(PyEnum):
    FORMING = "forming"
    COMPLETED = "completed"


class MemberStatus(PyEnum):
    INVITED = "invited"
    JOINED = "joined"


class GroupPurchase(Base):
    __tablename__ = "group_purchases"

    id = Column(String(36), primary_key=True, default=new_id)
    event_id = Column(String(36), ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    leader_id = Column(String(36), nullable=False, index=True)
    group_name = Column(String(255), nullable=False)
    max_members = Column(Integer, nullable=False)
    target_seats = Column(Integer, nullable=False)
    status = Column(
        Enum(GroupStatus, name="group_status", values_callable=_values),
        nullable=False,
        default=GroupStatus.FORMING,
    )
    total_prepaid = Column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    estimated_price_per_seat = Column(Numeric(10, 2), nullable=True)
    actual_total_cost = Column(Numeric(10, 2), nullable=True)
    # the leader is not a member row, so the leader's seat lives here
    leader_seat_id = Column(String(36), ForeignKey("seats.id"), nullable=True)
    leader_final_price = Column(Numeric(10, 2), nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, nullable=False)
    completed_at = Column(DateTime, nullable=True)

    members = relationship(
        "GroupMember",
        back_populates="group",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="GroupMember.invited_at",
    )

    def __repr__(self):
        return (f"<GroupPurchase(id={self.id}, leader_id={self.leader_id}, "
                f"status='{self.status.value}', members={len(self.members)})>")

    @property
    def joined_members(self):
        """Joined members in join order, oldest first"""
        joined = [m for m in self.members if m.status == MemberStatus.JOINED]
        return sorted(joined, key=lambda m: (m.joined_at, m.id))

    def is_participant(self, user_id: str) -> bool:
        return user_id == self.leader_id or any(m.user_id == user_id for m in self.members)


class GroupMember(Base):
    __tablename__ = "group_members"
    __table_args__ = (
        UniqueConstraint('group_id', 'user_id', name='uq_group_member'),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    group_id = Column(String(36), ForeignKey("group_purchases.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String(36), nullable=False, index=True)
    status = Column(
        Enum(MemberStatus, name="member_status", values_callable=_values),
        nullable=False,
        default=MemberStatus.INVITED,
    )
    prepaid_amount = Column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    seat_assigned_id = Column(String(36), ForeignKey("seats.id"), nullable=True)
    final_price = Column(Numeric(10, 2), nullable=True)
    invited_at = Column(DateTime, default=utcnow, nullable=False)
    joined_at = Column(DateTime, nullable=True)

    group = relationship("GroupPurchase", back_populates="members")

    def __repr__(self):
        return f"<GroupMember(group_id={self.group_id}, user_id={self.user_id}, status='{self.status.value}')>"
