"""
Time source shared by the services.

Timestamps are stored as naive UTC, so the clock hands out naive UTC too.
"""
from datetime import datetime, timezone
from typing import Callable

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)
