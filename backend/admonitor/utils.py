"""
Shared utility functions.
"""

import logging
from datetime import datetime, timezone
from fastapi import HTTPException

from admonitor.ad_platform import AdPlatformError, AdPlatformNotFoundError, AdPlatformTimeoutError

logger = logging.getLogger(__name__)


def safe_error_detail(exc: Exception, fallback: str = "An internal error occurred. Please try again later.") -> str:
    """
    Return a sanitized error message safe for client consumption.
    Logs the real exception detail server-side.
    """
    logger.error(f"Operation failed: {exc}", exc_info=True)
    return fallback


def platform_http_exception(
    exc: AdPlatformError,
    fallback: str = "Failed to communicate with the ad platform.",
) -> HTTPException:
    """Translate an ad platform failure into the matching HTTP error."""
    if isinstance(exc, AdPlatformNotFoundError):
        return HTTPException(status_code=404, detail="Target not found on the ad platform")
    if isinstance(exc, AdPlatformTimeoutError):
        logger.warning(f"Ad platform timeout: {exc}")
        return HTTPException(status_code=504, detail="The ad platform timed out. Please retry.")
    return HTTPException(status_code=502, detail=safe_error_detail(exc, fallback))


def utcnow() -> datetime:
    """
    Return the current UTC time as a naive datetime (no tzinfo).
    Naive datetimes are used because our DB columns are TIMESTAMP WITHOUT TIME ZONE.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


def utc_midnight(moment: datetime | None = None) -> datetime:
    """Start of the UTC day containing ``moment`` (default: now), naive.

    Daily metric rows are keyed on this value, so every sync in the same
    UTC day lands on the same row.
    """
    moment = moment or utcnow()
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def isoformat_or_none(value: datetime | None) -> str | None:
    return value.isoformat() if value else None
