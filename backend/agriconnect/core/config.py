"""
Configuration management.
Loads from config_local.py (gitignored) for deployment overrides, with defaults.
"""
from typing import Optional

# Try to import local config (gitignored)
try:
    from agriconnect.config_local import (
        DATABASE_DSN,
        ADMIN_API_KEY,
        ENABLE_PRICE_SCHEDULER,
        CORS_ORIGINS,
    )
    # Price sync tuning with fallbacks if not present
    try:
        from agriconnect.config_local import (
            FAO_API_BASE,
            FAO_COUNTRY_CODE,
            PRICE_FETCH_TIMEOUT_SECONDS,
            PRICE_FETCH_MAX_RETRIES,
            PRICE_FETCH_RETRY_DELAY_SECONDS,
            PRICE_CACHE_TTL_MINUTES,
            PRICE_ALERT_THRESHOLD_PERCENT,
            PRICE_FLUCTUATION_PERCENT,
            DEFAULT_REGION,
            SCHEDULER_TIMEZONE,
            PRICE_SYNC_CRON_HOURS,
            INITIAL_SYNC_DELAY_SECONDS,
            LOG_DIR,
        )
    except ImportError:
        FAO_API_BASE = "https://fpma.apps.fao.org/giews/food-prices/api/v1"
        FAO_COUNTRY_CODE = "BWA"
        PRICE_FETCH_TIMEOUT_SECONDS = 10.0
        PRICE_FETCH_MAX_RETRIES = 3
        PRICE_FETCH_RETRY_DELAY_SECONDS = 2.0
        PRICE_CACHE_TTL_MINUTES = 15
        PRICE_ALERT_THRESHOLD_PERCENT = 10
        PRICE_FLUCTUATION_PERCENT = 3
        DEFAULT_REGION = "Gaborone"
        SCHEDULER_TIMEZONE = "Africa/Gaborone"
        PRICE_SYNC_CRON_HOURS = "*/3"
        INITIAL_SYNC_DELAY_SECONDS = 5
        LOG_DIR = "logs"
except ImportError:
    # Fallback defaults (local SQLite database, scheduler on, admin routes open)
    DATABASE_DSN: str = "sqlite:///./agriconnect.db"
    ADMIN_API_KEY: Optional[str] = None  # None = admin routes are not key-protected (dev only)
    ENABLE_PRICE_SCHEDULER: bool = True
    CORS_ORIGINS: list = [
        "http://localhost:5173",  # Vite dev server
        "http://127.0.0.1:5173",
    ]
    FAO_API_BASE: str = "https://fpma.apps.fao.org/giews/food-prices/api/v1"
    FAO_COUNTRY_CODE: str = "BWA"  # Botswana
    PRICE_FETCH_TIMEOUT_SECONDS: float = 10.0
    PRICE_FETCH_MAX_RETRIES: int = 3
    PRICE_FETCH_RETRY_DELAY_SECONDS: float = 2.0  # Multiplied by the attempt number
    PRICE_CACHE_TTL_MINUTES: int = 15
    PRICE_ALERT_THRESHOLD_PERCENT: int = 10  # Inclusive
    PRICE_FLUCTUATION_PERCENT: int = 3  # Fallback perturbation, +/- percent
    DEFAULT_REGION: str = "Gaborone"  # Capital, used when an external market is unknown
    SCHEDULER_TIMEZONE: str = "Africa/Gaborone"
    PRICE_SYNC_CRON_HOURS: str = "*/3"  # Minute 0 of every 3rd hour
    INITIAL_SYNC_DELAY_SECONDS: int = 5
    LOG_DIR: str = "logs"


def get_settings():
    """Return settings object (for FastAPI dependency injection if needed)."""
    return type("Settings", (), {
        "database_dsn": DATABASE_DSN,
        "admin_api_key": ADMIN_API_KEY,
        "enable_price_scheduler": ENABLE_PRICE_SCHEDULER,
        "cors_origins": CORS_ORIGINS,
        "fao_api_base": FAO_API_BASE,
        "fao_country_code": FAO_COUNTRY_CODE,
        "price_fetch_timeout_seconds": PRICE_FETCH_TIMEOUT_SECONDS,
        "price_fetch_max_retries": PRICE_FETCH_MAX_RETRIES,
        "price_fetch_retry_delay_seconds": PRICE_FETCH_RETRY_DELAY_SECONDS,
        "price_cache_ttl_minutes": PRICE_CACHE_TTL_MINUTES,
        "price_alert_threshold_percent": PRICE_ALERT_THRESHOLD_PERCENT,
        "price_fluctuation_percent": PRICE_FLUCTUATION_PERCENT,
        "default_region": DEFAULT_REGION,
        "scheduler_timezone": SCHEDULER_TIMEZONE,
        "price_sync_cron_hours": PRICE_SYNC_CRON_HOURS,
        "initial_sync_delay_seconds": INITIAL_SYNC_DELAY_SECONDS,
        "log_dir": LOG_DIR,
    })()
