"""Shared API dependencies."""
import hmac

from fastapi import Header, HTTPException, status

from app.config import get_settings
from app.database import get_db

__all__ = ["get_db", "require_cron_secret"]


def require_cron_secret(authorization: str | None = Header(None)) -> None:
    """Reject cron calls without ``Authorization: Bearer <CRON_SECRET>``."""
    expected = f"Bearer {get_settings().cron_secret}"
    if not authorization or not hmac.compare_digest(authorization.encode("utf-8"), expected.encode("utf-8")):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )
