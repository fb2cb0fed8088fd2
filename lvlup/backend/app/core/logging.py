# backend/app/core/logging.py
import logging
import sys
from datetime import datetime, timezone
from typing import Dict, Any
from pythonjsonlogger import jsonlogger

from app.core.config import settings


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter for structured logging"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]):
        super().add_fields(log_record, record, message_dict)

        if not log_record.get("timestamp"):
            log_record["timestamp"] = datetime.now(timezone.utc).isoformat()

        if record.name:
            log_record["logger"] = record.name

        log_record["level"] = record.levelname

        # Request context, when passed through `extra=`
        for key in ("tenant_id", "user_id", "request_id"):
            if hasattr(record, key):
                log_record[key] = getattr(record, key)


def setup_logging(level: str = "INFO") -> logging.Logger:
    """Configure structured JSON logging"""
    logger = logging.getLogger("lvlup")
    logger.setLevel(level)
    logger.propagate = False

    if not logger.handlers:
        console_handler = logging.StreamHandler(sys.stdout)
        formatter = CustomJsonFormatter(
            "%(timestamp)s %(level)s %(logger)s %(message)s"
        )
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    return logger


# Initialize logger
logger = setup_logging(settings.LOG_LEVEL)
