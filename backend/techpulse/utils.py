"""
Shared utility functions for the news aggregation application.
"""
from __future__ import annotations

import re
from datetime import date, datetime, timezone


def now_utc() -> datetime:
    """
    Get current UTC datetime with timezone information.

    Returns:
        Current UTC datetime
    """
    return datetime.now(timezone.utc)


def now_local() -> datetime:
    """
    Get current local datetime with timezone information.

    Calendar-day logic (reading streaks, "today" counts) uses local time so a
    day boundary matches the reader's wall clock.

    Returns:
        Current local datetime
    """
    return datetime.now().astimezone()


def normalize_text(text: str | None) -> str:
    """
    Normalize whitespace in text content.

    Args:
        text: Input text string (can be None)

    Returns:
        Normalized text with single spaces and trimmed edges
    """
    if not text:
        return ""
    return re.sub(r"\s+", " ", text).strip()


def parse_iso_date(value: str | None) -> date | None:
    """Parse an ISO ``YYYY-MM-DD`` string, returning None for anything else."""
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError):
        return None
