"""Naive-UTC clock shared by entities and stores"""

from datetime import datetime, timezone


def utcnow() -> datetime:
    """Current UTC time without tzinfo, matching what the SQL columns store."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
