"""
Prometheus metrics for monitoring
"""
import time
from functools import wraps

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST

# ==================== HTTP Metrics ====================

http_requests_total = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'status']
)

# ==================== Reservation Metrics ====================

reservations_created_total = Counter(
    'reservations_created_total',
    'Total seat holds written'
)

reservations_released_total = Counter(
    'reservations_released_total',
    'Total seat holds released explicitly'
)

reservations_expired_total = Counter(
    'reservations_expired_total',
    'Total expired seat holds swept'
)

# ==================== Purchase Metrics ====================

seat_conflicts_total = Counter(
    'seat_conflicts_total',
    'Seat requests rejected because another user holds or owns the seat',
    ['operation']  # reserve, purchase, marketplace, group
)

purchases_completed_total = Counter(
    'purchases_completed_total',
    'Total seats sold',
    ['channel']  # primary, marketplace, group
)

purchase_duration_seconds = Histogram(
    'purchase_duration_seconds',
    'Time to commit a purchase',
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.0, 5.0]
)

group_purchases_completed_total = Counter(
    'group_purchases_completed_total',
    'Total group purchases completed'
)


# ==================== Helper Functions ====================

def track_time(metric: Histogram):
    """Decorator to track execution time"""
    def decorator(func):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            start_time = time.time()
            try:
                return await func(*args, **kwargs)
            finally:
                metric.observe(time.time() - start_time)
        return wrapper
    return decorator


def record_conflict(operation: str):
    seat_conflicts_total.labels(operation=operation).inc()


def record_sale(channel: str, seat_count: int = 1):
    purchases_completed_total.labels(channel=channel).inc(seat_count)


def get_metrics():
    """Get current metrics in Prometheus format"""
    return generate_latest()


__all__ = [
    "CONTENT_TYPE_LATEST",
    "get_metrics",
    "group_purchases_completed_total",
    "http_requests_total",
    "purchase_duration_seconds",
    "record_conflict",
    "record_sale",
    "reservations_created_total",
    "reservations_expired_total",
    "reservations_released_total",
    "track_time",
]
