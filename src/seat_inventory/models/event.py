"""
Event model - a dated show at a venue, with an optional on-sale gate
"""
from datetime import datetime

from sqlalchemy import Column, String, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from seat_inventory.core.clock import utcnow
from seat_inventory.core.database import Base
from seat_inventory.models.venue import new_id


class Event(Base):
    __tablename__ = "events"

    id = Column(String(36), primary_key=True, default=new_id)
    venue_id = Column(String(36), ForeignKey("venues.id"), nullable=False, index=True)
    title = Column(String(500), nullable=False)
    description = Column(Text)
    date = Column(DateTime, nullable=False, index=True)
    on_sale_date = Column(DateTime, nullable=True)  # NULL means on sale immediately
    image_url = Column(Text)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    venue = relationship("Venue", back_populates="events")

    def __repr__(self):
        return f"<Event(id={self.id}, title='{self.title}', date='{self.date}')>"

    def is_on_sale(self, now: datetime) -> bool:
        return self.on_sale_date is None or self.on_sale_date <= now
