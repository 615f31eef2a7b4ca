"""
Venue and Seat models - immutable reference data created at venue setup
"""
import uuid
from decimal import Decimal, ROUND_HALF_UP

from sqlalchemy import Column, String, Integer, Numeric, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from seat_inventory.core.database import Base

CENTS = Decimal("0.01")


def new_id() -> str:
    return str(uuid.uuid4())


def seat_price(base_price, multiplier) -> Decimal:
    """basePrice x multiplier, rounded to cents"""
    return (Decimal(base_price) * Decimal(multiplier)).quantize(CENTS, rounding=ROUND_HALF_UP)


class Venue(Base):
    __tablename__ = "venues"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(255), nullable=False)
    address = Column(String(500), nullable=False)
    capacity = Column(Integer, nullable=False)

    seats = relationship("Seat", back_populates="venue", cascade="all, delete-orphan")
    events = relationship("Event", back_populates="venue")

    def __repr__(self):
        return f"<Venue(id={self.id}, name='{self.name}')>"


class Seat(Base):
    __tablename__ = "seats"
    __table_args__ = (
        UniqueConstraint('venue_id', 'section', 'row', 'number', name='uq_seat_location'),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    venue_id = Column(String(36), ForeignKey("venues.id", ondelete="CASCADE"), nullable=False, index=True)
    section = Column(String(50), nullable=False)
    row = Column(String(10), nullable=False)
    number = Column(Integer, nullable=False)
    base_price = Column(Numeric(10, 2), nullable=False)
    multiplier = Column(Numeric(4, 2), nullable=False, default=Decimal("1.00"))
    x = Column(Integer, nullable=False)
    y = Column(Integer, nullable=False)

    venue = relationship("Venue", back_populates="seats")

    def __repr__(self):
        return (f"<Seat(id={self.id}, section='{self.section}', "
                f"row='{self.row}', number={self.number})>")

    @property
    def price(self) -> Decimal:
        return seat_price(self.base_price, self.multiplier)

    @property
    def seat_label(self) -> str:
        """Human-readable seat label"""
        return f"{self.section}-{self.row}-{self.number}"
