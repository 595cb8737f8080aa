"""Logging configuration and setup."""

import json
import logging
import os
import sys
import traceback
import uuid
from datetime import datetime
from pathlib import Path
from zoneinfo import ZoneInfo

# Get log level and directory from environment
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_DIR = Path(os.getenv("LOG_DIR", "logs"))

# UK timezone (Linnworks EU account)
UK_TZ = ZoneInfo("Europe/London")

# Session ID distinguishes multiple process starts on the same day
SESSION_ID = str(uuid.uuid4())[:8]

LOG_DATE = datetime.now(UK_TZ).strftime("%Y-%m-%d")
LOG_FILENAME = f"profit_{LOG_DATE}_{SESSION_ID}.log"


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON (UK timezone)."""
        log_data = {
            "timestamp": datetime.now(UK_TZ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": traceback.format_exception(*record.exc_info),
            }

        # Correlates every line of one enrichment run
        if hasattr(record, "run_id"):
            log_data["run_id"] = record.run_id

        return json.dumps(log_data, default=str)


# Configure the package logger once
package_logger = logging.getLogger("linnworks_profit")
package_logger.setLevel(logging.DEBUG)

if not package_logger.handlers:
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(getattr(logging, LOG_LEVEL, logging.INFO))
    console_handler.setFormatter(JSONFormatter())
    package_logger.addHandler(console_handler)

    if os.getenv("LOG_TO_FILE", "true").lower() == "true":
        LOG_DIR.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(LOG_DIR / LOG_FILENAME)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(JSONFormatter())
        package_logger.addHandler(file_handler)


def setup_logger(name: str) -> logging.Logger:
    """Get logger for a module."""
    logger = logging.getLogger(name)
    logger.propagate = True
    return logger


logger = setup_logger("linnworks_profit")
