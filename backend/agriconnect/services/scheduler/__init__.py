"""
Scheduler service for periodic market price syncs.
"""
from agriconnect.services.scheduler.scheduler_service import (
    PriceSyncScheduler,
    SYNC_JOB_ID,
    INITIAL_SYNC_JOB_ID,
)

__all__ = [
    "PriceSyncScheduler",
    "SYNC_JOB_ID",
    "INITIAL_SYNC_JOB_ID",
]
