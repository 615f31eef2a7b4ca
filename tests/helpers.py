"""Shared constants and helpers for the test suite"""
from datetime import datetime, timedelta

EVENT_ID = "event-1"
LATER_EVENT_ID = "event-later"
VENUE_ID = "venue-1"
SEAT_IDS = [f"seat-{n}" for n in range(1, 9)]


class FakeClock:
    """Controllable naive-UTC clock"""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)
        return self.now
