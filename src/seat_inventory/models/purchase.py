"""
Purchase model - durable seat ownership for one event

At most one Purchase row exists per (event_id, seat_id); the unique constraint
is what makes the second of two concurrent buyers fail at insert time.
Marketplace resale rewrites user_id on the existing row.
"""
from sqlalchemy import Column, String, DateTime, Numeric, ForeignKey, UniqueConstraint

from seat_inventory.core.clock import utcnow
from seat_inventory.core.database import Base
from seat_inventory.models.venue import new_id


class Purchase(Base):
    __tablename__ = "purchases"
    __table_args__ = (
        UniqueConstraint('event_id', 'seat_id', name='uq_purchase_event_seat'),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), nullable=False, index=True)
    event_id = Column(String(36), ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    seat_id = Column(String(36), ForeignKey("seats.id"), nullable=False)
    price = Column(Numeric(10, 2), nullable=False)  # Snapshot of basePrice x multiplier
    purchase_date = Column(DateTime, default=utcnow, nullable=False)

    def __repr__(self):
        return (f"<Purchase(id={self.id}, user_id={self.user_id}, event_id={self.event_id}, "
                f"seat_id={self.seat_id}, price=${self.price})>")


class PaymentMethod(Base):
    """Simplified saved card: never more than the last four digits"""
    __tablename__ = "payment_methods"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), nullable=False, index=True)
    cardholder_name = Column(String(255), nullable=False)
    last_four_digits = Column(String(4), nullable=False)
    expiry_date = Column(String(7), nullable=False)
    billing_address = Column(String(500), nullable=False)
    billing_city = Column(String(100), nullable=False)
    billing_state = Column(String(100), nullable=False)
    billing_zip = Column(String(20), nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    def __repr__(self):
        return f"<PaymentMethod(id={self.id}, user_id={self.user_id}, card=****{self.last_four_digits})>"
