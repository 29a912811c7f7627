from __future__ import annotations

"""Optimistic version checks for service documents.

A stale version never blocks a write. The structural merge is what resolves
the conflict; the guard only reports it.
"""

from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional

from service_planner.logging_utils import get_logger

logger = get_logger(__name__)


class ConflictStatus(str, Enum):
    NO_CONFLICT = "no_conflict"
    CONFLICT = "conflict"


def check_version(
    stored: Optional[str],
    incoming: Optional[str],
    *,
    date: Optional[str] = None,
) -> ConflictStatus:
    """Compare the caller's last known version with the stored one."""
    if not stored or not incoming:
        return ConflictStatus.NO_CONFLICT
    if stored == incoming:
        return ConflictStatus.NO_CONFLICT
    logger.warning(
        "version_conflict date=%s stored=%s incoming=%s resolution=merge",
        date,
        stored,
        incoming,
    )
    return ConflictStatus.CONFLICT


def next_version(previous: Optional[str] = None) -> str:
    """Return a fresh ISO-8601 version token that differs from ``previous``."""
    now = datetime.now(timezone.utc)
    candidate = now.isoformat()
    if previous and candidate <= previous:
        try:
            last = datetime.fromisoformat(previous)
        except ValueError:
            return candidate
        if last.tzinfo is None:
            last = last.replace(tzinfo=timezone.utc)
        candidate = (last + timedelta(microseconds=1)).isoformat()
    return candidate
