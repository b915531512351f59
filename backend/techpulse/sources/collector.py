"""
News collection coordinator that aggregates from multiple providers.
"""
from __future__ import annotations

import asyncio
import logging
import re
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from techpulse.config import REQUEST_TIMEOUT_SECONDS
from techpulse.models import FetchResult
from techpulse.schemas import AggregationResult, CanonicalArticle, SourceInfo
from techpulse.sources.base import NewsAdapter
from techpulse.sources.categories import resolve_category
from techpulse.sources.common import parse_utc_datetime
from techpulse.sources.currents import CurrentsAdapter
from techpulse.sources.gnews import GNewsAdapter
from techpulse.sources.newsapi import NewsAPIAdapter
from techpulse.sources.newsdata import NewsDataAdapter

logger = logging.getLogger(__name__)

FINGERPRINT_LENGTH = 50
_NON_ALNUM = re.compile(r"[^a-z0-9]")


def build_adapters() -> List[NewsAdapter]:
    """
    Create one adapter per provider, in canonical provider order.

    The order matters: it decides which copy of a duplicated story survives
    and the order of ``sources_used``.
    """
    return [NewsAPIAdapter(), GNewsAdapter(), CurrentsAdapter(), NewsDataAdapter()]


def title_fingerprint(title: Optional[str]) -> str:
    """
    Build the dedup key for an article title.

    Args:
        title: Article title (may be None)

    Returns:
        Lower-cased title with everything outside [a-z0-9] removed, cut to
        50 characters; empty string when there is no usable title
    """
    if not title:
        return ""
    return _NON_ALNUM.sub("", title.lower())[:FINGERPRINT_LENGTH]


def remove_duplicates(articles: Iterable[CanonicalArticle]) -> List[CanonicalArticle]:
    """
    Remove duplicate articles based on normalized title.

    Identical stories are often republished at different URLs, so titles
    rather than URLs decide. The first article seen per fingerprint wins;
    articles without a usable title are dropped.

    Args:
        articles: Articles in provider-concatenation order

    Returns:
        List of unique articles, input order preserved
    """
    seen: set[str] = set()
    unique_articles: List[CanonicalArticle] = []

    for article in articles:
        fingerprint = title_fingerprint(article.title)
        if not fingerprint or fingerprint in seen:
            continue
        seen.add(fingerprint)
        unique_articles.append(article)

    return unique_articles


def sort_by_published(articles: Iterable[CanonicalArticle]) -> List[CanonicalArticle]:
    """
    Sort articles newest first; undated or unparseable entries go last.

    The sort is stable, so ties and undated entries keep their input order.
    """
    def sort_key(article: CanonicalArticle) -> Tuple[int, float]:
        published = parse_utc_datetime(article.published_at)
        if published is None:
            return (1, 0.0)
        return (0, -published.timestamp())

    return sorted(articles, key=sort_key)


async def _fetch_one(
    adapter: NewsAdapter,
    category: Optional[str],
    query: Optional[str],
    page: int,
    timeout: float,
) -> FetchResult:
    return await asyncio.wait_for(adapter.fetch(category=category, query=query, page=page), timeout=timeout)


async def _fan_out(
    adapters: Sequence[NewsAdapter],
    category_for: Callable[[NewsAdapter], Optional[str]],
    query: Optional[str],
    page: int,
    timeout: float,
) -> List[Tuple[NewsAdapter, FetchResult]]:
    """
    Call every adapter concurrently and settle all of them.

    A raised exception or a timeout counts as an empty result for that
    adapter only; siblings are never cancelled.
    """
    outcomes = await asyncio.gather(
        *(_fetch_one(adapter, category_for(adapter), query, page, timeout) for adapter in adapters),
        return_exceptions=True,
    )

    settled: List[Tuple[NewsAdapter, FetchResult]] = []
    for adapter, outcome in zip(adapters, outcomes):
        if isinstance(outcome, BaseException):
            if isinstance(outcome, asyncio.TimeoutError):
                logger.warning("%s timed out after %.1fs", adapter.name, timeout)
            else:
                logger.warning("%s failed: %s: %s", adapter.name, type(outcome).__name__, outcome)
            outcome = FetchResult.empty()
        settled.append((adapter, outcome))
    return settled


async def aggregate_news(
    category_id: str,
    page: int = 1,
    adapters: Optional[Sequence[NewsAdapter]] = None,
    timeout: float = REQUEST_TIMEOUT_SECONDS,
) -> AggregationResult:
    """
    Aggregate a category feed from every provider.

    Args:
        category_id: UI category (e.g. 'technology', 'ai'); unknown ids use technology
        page: 1-based page number
        adapters: Providers in canonical order (defaults to build_adapters())
        timeout: Per-adapter timeout in seconds

    Returns:
        AggregationResult with deduplicated articles sorted newest first,
        per-source raw counts and the sources that survived dedup
    """
    adapters = list(adapters) if adapters is not None else build_adapters()
    route = resolve_category(category_id)

    settled = await _fan_out(
        adapters,
        lambda adapter: None if route.query else route.category_for(adapter.key),
        route.query,
        page,
        timeout,
    )

    all_articles: List[CanonicalArticle] = []
    total_articles = 0
    source_stats: dict[str, int] = {}
    for adapter, result in settled:
        source_stats[adapter.name] = len(result.articles)
        if result.articles:
            all_articles.extend(result.articles)
            total_articles += result.total

    unique_articles = sort_by_published(remove_duplicates(all_articles))

    contributing = {article.provider_name for article in unique_articles}
    sources_used = [adapter.name for adapter in adapters if adapter.name in contributing]

    logger.info(
        "Aggregated %d unique of %d articles for %r (page %d) from %s",
        len(unique_articles), len(all_articles), category_id, page, sources_used or "no sources",
    )

    return AggregationResult(
        articles=unique_articles,
        total_articles=total_articles,
        source_stats=source_stats,
        sources_used=sources_used,
    )


async def search_all_sources(
    query: str,
    page: int = 1,
    adapters: Optional[Sequence[NewsAdapter]] = None,
    timeout: float = REQUEST_TIMEOUT_SECONDS,
) -> List[CanonicalArticle]:
    """
    Free-text search across every provider, ignoring the category table.

    Args:
        query: Search string
        page: 1-based page number
        adapters: Providers in canonical order (defaults to build_adapters())
        timeout: Per-adapter timeout in seconds

    Returns:
        Deduplicated articles sorted newest first
    """
    adapters = list(adapters) if adapters is not None else build_adapters()
    settled = await _fan_out(adapters, lambda adapter: None, query, page, timeout)

    all_articles: List[CanonicalArticle] = []
    for _, result in settled:
        all_articles.extend(result.articles)

    return sort_by_published(remove_duplicates(all_articles))


def get_active_sources(adapters: Optional[Sequence[NewsAdapter]] = None) -> List[SourceInfo]:
    """List the providers that have a usable API key."""
    adapters = adapters if adapters is not None else build_adapters()
    return [
        SourceInfo(id=adapter.key, name=adapter.name, enabled=adapter.enabled)
        for adapter in adapters
        if adapter.enabled
    ]


def is_multi_source_enabled(adapters: Optional[Sequence[NewsAdapter]] = None) -> bool:
    return len(get_active_sources(adapters)) > 1
