"""
Market price sync event log.

Sync events go to the "agriconnect.sync" logger, which propagates to the
application log and, once configure_sync_logging() has run, is also written
as JSON lines to <LOG_DIR>/market-sync.log for ops review.
"""
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional
from agriconnect.core.config import LOG_DIR

SYNC_LOGGER_NAME = "agriconnect.sync"
SYNC_LOG_FILENAME = "market-sync.log"

sync_logger = logging.getLogger(SYNC_LOGGER_NAME)


class JsonLineFormatter(logging.Formatter):
    """Format records as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname.lower(),
            "message": record.getMessage(),
        }
        data = getattr(record, "data", None)
        if data:
            entry["data"] = data
        return json.dumps(entry, default=str)


def configure_sync_logging(log_dir: Optional[str] = None) -> logging.Handler:
    """Attach the JSON-lines file handler to the sync logger (once)."""
    log_path = Path(log_dir or LOG_DIR)
    log_path.mkdir(parents=True, exist_ok=True)
    target = (log_path / SYNC_LOG_FILENAME).resolve()

    for handler in sync_logger.handlers:
        if isinstance(handler, logging.FileHandler) and Path(handler.baseFilename) == target:
            return handler

    handler = logging.FileHandler(target, encoding="utf-8")
    handler.setFormatter(JsonLineFormatter())
    sync_logger.addHandler(handler)
    sync_logger.setLevel(logging.INFO)
    return handler


def _log(level: int, message: str, data: Optional[dict] = None):
    sync_logger.log(level, message, extra={"data": data})


def log_sync_start():
    _log(logging.INFO, "=== Market Price Sync Started ===")


def log_sync_complete(stats: dict):
    _log(logging.INFO, "=== Market Price Sync Completed ===", stats)


def log_sync_error(error: Exception):
    sync_logger.error("Market Price Sync Failed", exc_info=error, extra={"data": {"message": str(error)}})


def format_change(change_percent, places: int = 2) -> str:
    """Signed percentage string, e.g. '+4.25%' or '-10.0%'."""
    sign = "+" if change_percent > 0 else ""
    return f"{sign}{change_percent:.{places}f}%"


def log_price_update(crop: str, region: str, old_price, new_price, change_percent):
    _log(logging.INFO, "Price Updated", {
        "crop": crop,
        "region": region,
        "old_price": str(old_price),
        "new_price": str(new_price),
        "change_percent": format_change(change_percent),
    })


def log_notifications_sent(notification_type: str, count: int, details: dict):
    _log(logging.INFO, "Notifications Sent", {
        "type": notification_type,
        "recipient_count": count,
        "details": details,
    })


def log_api_fetch(source: str, success: bool, **details):
    _log(logging.INFO if success else logging.WARNING, f"API Fetch: {source}", {
        "success": success,
        **details,
    })
