"""
Structured logging configuration with trace IDs
"""
import contextvars
import logging
import uuid
from typing import Any, Dict, Optional

from pythonjsonlogger import jsonlogger

from seat_inventory.core.clock import utcnow
from seat_inventory.core.config import settings

# Context variable to store trace ID across async calls
trace_id_var = contextvars.ContextVar('trace_id', default=None)

# Fields services pass through `extra=` that are promoted onto the JSON record
PROMOTED_FIELDS = (
    'user_id',
    'event_id',
    'seat_ids',
    'group_id',
    'listing_id',
    'duration_ms',
)


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with trace ID and additional fields"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)

        log_record['timestamp'] = utcnow().isoformat()
        log_record['level'] = record.levelname

        trace_id = trace_id_var.get()
        if trace_id:
            log_record['trace_id'] = trace_id

        log_record['service'] = 'seat-inventory'

        for field in PROMOTED_FIELDS:
            if hasattr(record, field):
                log_record[field] = getattr(record, field)


def setup_logging(level: Optional[str] = None, json_format: Optional[bool] = None, log_file: Optional[str] = None):
    """Configure structured JSON logging"""
    level = level or settings.LOG_LEVEL
    json_format = settings.LOG_JSON if json_format is None else json_format
    log_file = log_file or settings.LOG_FILE

    if json_format:
        formatter = CustomJsonFormatter('%(timestamp)s %(level)s %(name)s %(message)s')
    else:
        formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = [console_handler]

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    # Reduce noise from libraries
    logging.getLogger('uvicorn.access').setLevel(logging.WARNING)
    logging.getLogger('sqlalchemy.engine').setLevel(logging.WARNING)

    return root_logger


def get_trace_id() -> Optional[str]:
    """Get current trace ID"""
    return trace_id_var.get()


def set_trace_id(trace_id: str):
    """Set trace ID for current context"""
    trace_id_var.set(trace_id)


def generate_trace_id() -> str:
    """Generate a new trace ID"""
    return str(uuid.uuid4())
