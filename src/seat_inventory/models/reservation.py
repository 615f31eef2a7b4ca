"""
Reservation model - time-boxed soft hold on one seat for one event

The composite primary key (seat_id, event_id) allows a single row per seat,
so two users can never both hold it. Expired rows may linger until swept;
every reader filters them through `is_live`.
"""
from datetime import datetime

from sqlalchemy import Column, String, DateTime, ForeignKey, Index

from seat_inventory.core.clock import utcnow
from seat_inventory.core.database import Base


class Reservation(Base):
    __tablename__ = "reservations"
    __table_args__ = (
        Index('ix_reservations_user_event', 'user_id', 'event_id'),
    )

    seat_id = Column(String(36), ForeignKey("seats.id"), primary_key=True)
    event_id = Column(String(36), ForeignKey("events.id", ondelete="CASCADE"), primary_key=True)
    user_id = Column(String(36), nullable=False)
    expires_at = Column(DateTime, nullable=False, index=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    def __repr__(self):
        return (f"<Reservation(seat_id={self.seat_id}, event_id={self.event_id}, "
                f"user_id={self.user_id}, expires_at='{self.expires_at}')>")


def is_live(reservation, now: datetime) -> bool:
    """A hold counts only until its expiry timestamp"""
    return reservation is not None and reservation.expires_at > now
