"""
Timestamp helpers.
"""
from datetime import datetime, timezone


def utc_now() -> str:
    """Current UTC time as an ISO-8601 string (the format stored in the database)."""
    return datetime.now(timezone.utc).isoformat()
