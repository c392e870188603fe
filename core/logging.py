"""
Logging configuration

Ingestion code logs failures with an `error_context` extra (the
IngestionError.to_dict() payload). The formatter here appends it to the
line so the context survives a plain stdout handler.
"""

import json
import logging
import sys
from typing import Optional
from core.config import settings

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Third-party loggers that are chatty at INFO/DEBUG during a sync run
QUIET_LOGGERS = {
    "sqlalchemy.engine": logging.WARNING,
    "sqlalchemy.pool": logging.WARNING,
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
    "asyncio": logging.WARNING,
    "playwright": logging.WARNING,
    "aiosqlite": logging.WARNING,
}


class ErrorContextFormatter(logging.Formatter):
    """Appends a record's `error_context` extra as compact JSON"""

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        context = getattr(record, "error_context", None)
        if context:
            message = f"{message} | context={json.dumps(context, default=str, sort_keys=True)}"
        return message


def setup_logging(level: Optional[str] = None):
    """Configure application logging; `level` overrides settings.LOG_LEVEL"""

    level_name = (level or settings.LOG_LEVEL).upper()
    log_level = getattr(logging, level_name, logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(ErrorContextFormatter(LOG_FORMAT, datefmt=DATE_FORMAT))

    logging.basicConfig(level=log_level, handlers=[handler], force=True)

    for name, quiet_level in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(max(quiet_level, log_level))

    logger = logging.getLogger(__name__)
    logger.info(f"Logging configured at {level_name} level")
