"""
MarketplaceListing model - resale offer for a seat the seller already owns
"""
from enum import Enum as PyEnum

from sqlalchemy import Column, String, DateTime, Numeric, ForeignKey, Enum, Index, text

from seat_inventory.core.clock import utcnow
from seat_inventory.core.database import Base
from seat_inventory.models.venue import new_id


class ListingStatus(PyEnum):
    ACTIVE = "active"
    SOLD = "sold"
    REMOVED = "removed"


ACTIVE_ONLY = text("status = 'active'")


class MarketplaceListing(Base):
    __tablename__ = "marketplace_listings"
    __table_args__ = (
        # at most one active listing per seat; sold/removed rows are history
        Index(
            'uq_listing_active_seat', 'event_id', 'seat_id',
            unique=True,
            postgresql_where=ACTIVE_ONLY,
            sqlite_where=ACTIVE_ONLY,
        ),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    seller_id = Column(String(36), nullable=False, index=True)
    event_id = Column(String(36), ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    seat_id = Column(String(36), ForeignKey("seats.id"), nullable=False)
    purchase_id = Column(String(36), ForeignKey("purchases.id", ondelete="CASCADE"), nullable=False)
    list_price = Column(Numeric(10, 2), nullable=False)
    status = Column(
        Enum(ListingStatus, name="listing_status", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=ListingStatus.ACTIVE,
        index=True,
    )
    buyer_id = Column(String(36), nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    sold_at = Column(DateTime, nullable=True)

    def __repr__(self):
        return (f"<MarketplaceListing(id={self.id}, seat_id={self.seat_id}, "
                f"status='{self.status.value}', price=${self.list_price})>")

    @property
    def is_active(self) -> bool:
        return self.status == ListingStatus.ACTIVE
