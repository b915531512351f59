"""
Calling-layer helper for feed loads and debounced search.

The aggregator never cancels in-flight provider requests. Instead each feed
load and each search here takes a generation token; when a result arrives
for a token that is no longer the newest, it is dropped and the caller gets
None, so a late response cannot overwrite a newer view.
"""
from __future__ import annotations

import asyncio
import itertools
import logging
from typing import List, Optional, Sequence

from techpulse.config import SEARCH_DEBOUNCE_SECONDS
from techpulse.schemas import AggregationResult, CanonicalArticle
from techpulse.sources.base import NewsAdapter
from techpulse.sources.collector import aggregate_news, build_adapters, search_all_sources

logger = logging.getLogger(__name__)


class Generation:
    """Monotonically increasing request counter."""

    def __init__(self):
        self._counter = itertools.count(1)
        self.current = 0

    def next(self) -> int:
        self.current = next(self._counter)
        return self.current

    def is_current(self, token: int) -> bool:
        return token == self.current


class FeedSession:
    def __init__(
        self,
        adapters: Optional[Sequence[NewsAdapter]] = None,
        debounce_seconds: float = SEARCH_DEBOUNCE_SECONDS,
    ):
        self.adapters = list(adapters) if adapters is not None else build_adapters()
        self.debounce_seconds = debounce_seconds
        self._feed = Generation()
        self._search = Generation()

    async def load_category(self, category_id: str, page: int = 1) -> Optional[AggregationResult]:
        """Aggregate a category; returns None if a newer load started meanwhile."""
        token = self._feed.next()
        result = await aggregate_news(category_id, page=page, adapters=self.adapters)
        if not self._feed.is_current(token):
            logger.debug("Discarding stale feed result for %r (generation %d)", category_id, token)
            return None
        return result

    async def search(self, query: str, page: int = 1) -> Optional[List[CanonicalArticle]]:
        """
        Debounced search across all sources.

        Waits ``debounce_seconds`` before dispatching; if another search was
        issued during the wait, no request is made. Results of a search that
        was superseded while in flight are dropped.

        Returns:
            Articles for the newest query, [] for a blank query, or None when
            superseded
        """
        token = self._search.next()
        query = (query or "").strip()
        if not query:
            return []

        await asyncio.sleep(self.debounce_seconds)
        if not self._search.is_current(token):
            return None

        results = await search_all_sources(query, page=page, adapters=self.adapters)
        if not self._search.is_current(token):
            logger.debug("Discarding stale search results for %r (generation %d)", query, token)
            return None
        return results
