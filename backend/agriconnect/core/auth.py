"""
Admin guard for price maintenance endpoints.

User authentication lives in the main marketplace API; here admin routes only
check the shared X-Admin-Key header.
"""
import hmac
from typing import Optional
from fastapi import Header, HTTPException, status
from agriconnect.core.config import ADMIN_API_KEY


def require_admin_key(x_admin_key: Optional[str] = Header(default=None)):
    """Dependency that rejects requests without the configured admin key."""
    if ADMIN_API_KEY is None:
        return
    if not x_admin_key or not hmac.compare_digest(x_admin_key, ADMIN_API_KEY):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
