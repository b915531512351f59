"""
Derived-state store: bookmarks, reading history, preferences and analytics.

The store is the single writer of the user's derived state. Every operation
replaces the in-memory snapshot and then writes the whole snapshot to
storage. A failed write is logged and leaves the in-memory state in place;
the next mutation writes everything again.
"""
from __future__ import annotations

import json
import logging
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Mapping, Optional

from pydantic import ValidationError

from techpulse.config import HISTORY_LIMIT, STATE_KEY
from techpulse.core.storage import KeyValueStorage
from techpulse.schemas import (
    AnalyticsSnapshot,
    Bookmark,
    CanonicalArticle,
    HistoryEntry,
    Preferences,
    ReadingStats,
    StateSnapshot,
)
from techpulse.utils import now_local, parse_iso_date

logger = logging.getLogger(__name__)

SNAPSHOT_VERSION = 1
TOP_CATEGORY_LIMIT = 5
UNKNOWN_SOURCE = "Unknown"

Clock = Callable[[], datetime]


def _article_fields(article: CanonicalArticle) -> Dict[str, Any]:
    # Bookmarks and history entries may be passed back in; keep only article fields
    return article.model_dump(include=set(CanonicalArticle.model_fields))


def next_streak(analytics: AnalyticsSnapshot, today: datetime) -> int:
    """
    Compute the reading streak after a read on ``today``.

    Same-day reads leave the streak alone, a read the day after the last one
    extends it, anything else starts over at 1.
    """
    last_read = parse_iso_date(analytics.last_read_date)
    day = today.date()
    if last_read == day:
        return analytics.reading_streak
    if last_read == day - timedelta(days=1):
        return analytics.reading_streak + 1
    return 1


class StateStore:
    """Owns the persisted snapshot and exposes the only operations that change it."""

    def __init__(
        self,
        storage: KeyValueStorage,
        state: Optional[StateSnapshot] = None,
        clock: Clock = now_local,
        history_limit: int = HISTORY_LIMIT,
        key: str = STATE_KEY,
    ):
        self._storage = storage
        self._state = state or StateSnapshot(version=SNAPSHOT_VERSION)
        self._clock = clock
        self.history_limit = history_limit
        self.key = key

    @classmethod
    def load(
        cls,
        storage: KeyValueStorage,
        clock: Clock = now_local,
        history_limit: int = HISTORY_LIMIT,
        key: str = STATE_KEY,
    ) -> "StateStore":
        """
        Create a store from the persisted snapshot merged over defaults.

        Unreadable snapshots fall back to defaults; a single invalid top-level
        field is dropped without discarding the rest.
        """
        return cls(storage, _load_snapshot(storage, key), clock=clock, history_limit=history_limit, key=key)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def snapshot(self) -> StateSnapshot:
        return self._state.model_copy(deep=True)

    def is_bookmarked(self, url: str) -> bool:
        return any(b.url == url for b in self._state.bookmarks)

    def reading_stats(self) -> ReadingStats:
        now = self._clock()
        today = now.date()
        week_ago = now - timedelta(days=7)

        history = self._state.reading_history
        today_count = sum(1 for h in history if h.read_at.astimezone(now.tzinfo).date() == today)
        week_count = sum(1 for h in history if h.read_at >= week_ago)

        ranked = sorted(self._state.analytics.top_categories.items(), key=lambda kv: kv[1], reverse=True)
        return ReadingStats(
            today_count=today_count,
            week_count=week_count,
            top_categories=dict(ranked[:TOP_CATEGORY_LIMIT]),
        )

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def toggle_dark_mode(self) -> StateSnapshot:
        return self._commit(dark_mode=not self._state.dark_mode)

    def add_bookmark(self, article: CanonicalArticle) -> StateSnapshot:
        if self.is_bookmarked(article.url):
            return self.snapshot
        bookmark = Bookmark.model_validate({**_article_fields(article), "bookmarked_at": self._clock()})
        return self._commit(bookmarks=[bookmark, *self._state.bookmarks])

    def remove_bookmark(self, url: str) -> StateSnapshot:
        return self._commit(bookmarks=[b for b in self._state.bookmarks if b.url != url])

    def add_to_history(self, article: CanonicalArticle) -> StateSnapshot:
        """Record an article open: bump and move to front, or insert at front."""
        history = self._state.reading_history
        existing = next((h for h in history if h.url == article.url), None)

        entry = HistoryEntry.model_validate({
            **_article_fields(article),
            "read_at": self._clock(),
            "read_count": existing.read_count + 1 if existing else 1,
        })
        rest = [h for h in history if h.url != article.url]
        return self._commit(reading_history=[entry, *rest][: self.history_limit])

    def clear_history(self) -> StateSnapshot:
        return self._commit(reading_history=[])

    def track_article_read(self, source_name: Optional[str]) -> StateSnapshot:
        """Count a read against its source and update the daily reading streak."""
        source_name = source_name or UNKNOWN_SOURCE
        now = self._clock()
        analytics = self._state.analytics

        top_categories = dict(analytics.top_categories)
        top_categories[source_name] = top_categories.get(source_name, 0) + 1

        updated = analytics.model_copy(update={
            "articles_read": analytics.articles_read + 1,
            "top_categories": top_categories,
            "reading_streak": next_streak(analytics, now),
            "last_read_date": now.date().isoformat(),
        })
        return self._commit(analytics=updated)

    def update_preferences(self, partial: Mapping[str, Any]) -> StateSnapshot:
        """
        Shallow-merge ``partial`` into preferences.

        Keys may use either the field name or its camelCase alias.

        Raises:
            ValidationError: If the merged preferences are invalid; state is unchanged
        """
        aliases = {name: field.alias or name for name, field in Preferences.model_fields.items()}
        merged = self._state.preferences.model_dump(by_alias=True)
        for key, value in partial.items():
            merged[aliases.get(key, key)] = value
        return self._commit(preferences=Preferences.model_validate(merged))

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _commit(self, **changes: Any) -> StateSnapshot:
        self._state = self._state.model_copy(update=changes)
        self._persist()
        return self.snapshot

    def _persist(self) -> None:
        try:
            self._storage.set(self.key, self._state.model_dump_json(by_alias=True))
        except Exception as e:
            logger.error("Error saving state to %r: %s: %s", self.key, type(e).__name__, e)


def _load_snapshot(storage: KeyValueStorage, key: str) -> StateSnapshot:
    state = StateSnapshot(version=SNAPSHOT_VERSION)

    try:
        raw = storage.get(key)
    except Exception as e:
        logger.error("Error loading state from %r: %s: %s", key, type(e).__name__, e)
        return state
    if not raw:
        return state

    try:
        saved = json.loads(raw)
    except ValueError as e:
        logger.error("Saved state %r is not valid JSON, using defaults: %s", key, e)
        return state
    if not isinstance(saved, dict):
        logger.error("Saved state %r is not an object, using defaults", key)
        return state

    saved_version = saved.get("version")
    if isinstance(saved_version, int) and saved_version > SNAPSHOT_VERSION:
        logger.warning("Saved state %r has newer version %s; loading known fields only", key, saved_version)

    for name, field in StateSnapshot.model_fields.items():
        if name == "version":
            continue
        alias = field.alias or name
        if alias in saved:
            value = saved[alias]
        elif name in saved:
            value = saved[name]
        else:
            continue
        try:
            state = StateSnapshot.model_validate({**state.model_dump(by_alias=True), alias: value})
        except ValidationError as e:
            logger.warning("Ignoring invalid %r in saved state (%d errors)", alias, e.error_count())

    return state
