"""Tests for sources/collector.py"""

import asyncio

import pytest

from techpulse.models import FetchResult
from techpulse.schemas import ArticleSource, CanonicalArticle
from techpulse.sources.collector import (
    aggregate_news,
    get_active_sources,
    is_multi_source_enabled,
    remove_duplicates,
    search_all_sources,
    sort_by_published,
    title_fingerprint,
)


def make_article(title, url=None, published_at=None, provider="NewsAPI"):
    url = url or f"https://example.com/{abs(hash((title, provider)))}"
    return CanonicalArticle(
        id=f"{provider.lower()}-{url}",
        url=url,
        title=title,
        published_at=published_at,
        source=ArticleSource(name="Example"),
        provider_name=provider,
    )


class FakeAdapter:
    """Stands in for a NewsAdapter; records the arguments it was called with."""

    def __init__(self, key, name, articles=(), total=None, error=None, delay=0.0, enabled=True):
        self.key = key
        self.name = name
        self.enabled = enabled
        self._articles = list(articles)
        self._total = total if total is not None else len(self._articles)
        self._error = error
        self._delay = delay
        self.calls = []

    async def fetch(self, category=None, query=None, page=1):
        self.calls.append({"category": category, "query": query, "page": page})
        if self._delay:
            await asyncio.sleep(self._delay)
        if self._error:
            raise self._error
        return FetchResult(articles=list(self._articles), total=self._total)


class TestFingerprint:
    def test_case_and_punctuation_ignored(self):
        assert title_fingerprint("Apple Unveils New Chip!") == title_fingerprint("apple unveils new chip")

    def test_truncated_to_50(self):
        assert len(title_fingerprint("a" * 80)) == 50

    def test_empty_title(self):
        assert title_fingerprint(None) == ""
        assert title_fingerprint("!!! ???") == ""


class TestRemoveDuplicates:
    def test_first_seen_survives(self):
        first = make_article("Apple Unveils New Chip!", url="https://a.com/1")
        second = make_article("apple unveils new chip", url="https://b.com/2")

        result = remove_duplicates([first, second])

        assert result == [first]

    def test_untitled_articles_dropped(self):
        untitled = make_article(None, url="https://a.com/none")
        punctuation = make_article("...", url="https://a.com/dots")
        kept = make_article("Real title", url="https://a.com/real")

        assert remove_duplicates([untitled, punctuation, kept]) == [kept]

    def test_idempotent(self):
        articles = [
            make_article("One", url="https://a.com/1"),
            make_article("one!", url="https://a.com/2"),
            make_article("Two", url="https://a.com/3"),
            make_article(None, url="https://a.com/4"),
            make_article("TWO", url="https://a.com/5"),
        ]
        once = remove_duplicates(articles)
        assert remove_duplicates(once) == once
        assert [a.url for a in once] == ["https://a.com/1", "https://a.com/3"]


class TestSortByPublished:
    def test_newest_first_with_missing_last(self):
        articles = [
            make_article("c", published_at="2024-01-03"),
            make_article("a", published_at="2024-01-01"),
            make_article("missing", published_at=None),
            make_article("b", published_at="2024-01-02"),
        ]

        ordered = sort_by_published(articles)

        assert [a.published_at for a in ordered] == ["2024-01-03", "2024-01-02", "2024-01-01", None]

    def test_unparseable_sorts_with_missing_in_input_order(self):
        articles = [
            make_article("bad", published_at="garbage"),
            make_article("none", published_at=None),
            make_article("good", published_at="2024-01-01T00:00:00Z"),
        ]

        ordered = sort_by_published(articles)

        assert [a.title for a in ordered] == ["good", "bad", "none"]

    def test_mixed_offsets_compare_as_instants(self):
        earlier = make_article("earlier", published_at="2024-01-01T12:00:00+02:00")
        later = make_article("later", published_at="2024-01-01T11:00:00Z")

        assert sort_by_published([earlier, later]) == [later, earlier]


class TestAggregateNews:
    @pytest.mark.asyncio
    async def test_partial_failure_is_isolated(self):
        adapters = [
            FakeAdapter("newsapi", "NewsAPI", [make_article("A1", provider="NewsAPI"),
                                               make_article("A2", provider="NewsAPI")], total=30),
            FakeAdapter("gnews", "GNews", error=RuntimeError("boom")),
            FakeAdapter("currents", "Currents", [make_article("C1", provider="Currents")], total=5),
            FakeAdapter("newsdata", "NewsData", error=ValueError("bad json")),
        ]

        result = await aggregate_news("technology", adapters=adapters)

        assert result.source_stats == {"NewsAPI": 2, "GNews": 0, "Currents": 1, "NewsData": 0}
        assert len(result.articles) == 3
        assert result.total_articles == 35
        assert result.sources_used == ["NewsAPI", "Currents"]

    @pytest.mark.asyncio
    async def test_total_failure_is_an_empty_result(self):
        adapters = [
            FakeAdapter("newsapi", "NewsAPI", error=RuntimeError("down")),
            FakeAdapter("gnews", "GNews", enabled=False),
        ]

        result = await aggregate_news("ai", adapters=adapters)

        assert result.articles == []
        assert result.total_articles == 0
        assert result.sources_used == []
        assert result.source_stats == {"NewsAPI": 0, "GNews": 0}

    @pytest.mark.asyncio
    async def test_slow_adapter_times_out_without_blocking_siblings(self):
        adapters = [
            FakeAdapter("newsapi", "NewsAPI", [make_article("Fast", provider="NewsAPI")]),
            FakeAdapter("gnews", "GNews", [make_article("Slow", provider="GNews")], delay=5),
        ]

        result = await aggregate_news("technology", adapters=adapters, timeout=0.05)

        assert [a.title for a in result.articles] == ["Fast"]
        assert result.source_stats["GNews"] == 0

    @pytest.mark.asyncio
    async def test_provider_order_beats_recency_for_duplicates(self):
        provider_a = FakeAdapter("newsapi", "NewsAPI", [
            make_article("OpenAI releases GPT-5", url="https://x.com/gpt5",
                         published_at="2024-05-01T10:00:00Z", provider="NewsAPI"),
        ])
        provider_b = FakeAdapter("gnews", "GNews", [
            make_article("OpenAI Releases GPT-5!!", url="https://y.com/gpt5",
                         published_at="2024-05-01T12:00:00Z", provider="GNews"),
        ])

        result = await aggregate_news("technology", adapters=[provider_a, provider_b])

        assert len(result.articles) == 1
        assert result.articles[0].url == "https://x.com/gpt5"
        # GNews returned an article, but none survived dedup
        assert result.source_stats == {"NewsAPI": 1, "GNews": 1}
        assert result.sources_used == ["NewsAPI"]

    @pytest.mark.asyncio
    async def test_native_category_route(self):
        adapter = FakeAdapter("gnews", "GNews")

        await aggregate_news("technology", page=3, adapters=[adapter])

        assert adapter.calls == [{"category": "technology", "query": None, "page": 3}]

    @pytest.mark.asyncio
    async def test_query_category_route(self):
        adapter = FakeAdapter("gnews", "GNews")

        await aggregate_news("crypto", adapters=[adapter])

        call = adapter.calls[0]
        assert call["category"] is None
        assert "bitcoin" in call["query"]

    @pytest.mark.asyncio
    async def test_unknown_category_falls_back_to_technology(self):
        adapter = FakeAdapter("newsapi", "NewsAPI")

        await aggregate_news("underwater-basket-weaving", adapters=[adapter])

        assert adapter.calls[0]["category"] == "technology"

    @pytest.mark.asyncio
    async def test_sources_used_follows_canonical_order(self):
        adapters = [
            FakeAdapter("newsapi", "NewsAPI", [make_article("Old", published_at="2024-01-01", provider="NewsAPI")]),
            FakeAdapter("gnews", "GNews", [make_article("New", published_at="2024-02-01", provider="GNews")]),
        ]

        result = await aggregate_news("technology", adapters=adapters)

        assert [a.title for a in result.articles] == ["New", "Old"]
        assert result.sources_used == ["NewsAPI", "GNews"]


class TestSearchAllSources:
    @pytest.mark.asyncio
    async def test_ignores_category_table(self):
        adapter = FakeAdapter("newsapi", "NewsAPI", [
            make_article("Rust 2.0", published_at="2024-01-01"),
            make_article("rust 2.0!", published_at="2024-01-02"),
            make_article("Go 2.0", published_at="2024-01-03"),
        ])

        results = await search_all_sources("crypto", page=2, adapters=[adapter])

        assert adapter.calls == [{"category": None, "query": "crypto", "page": 2}]
        assert [a.title for a in results] == ["Go 2.0", "Rust 2.0"]

    @pytest.mark.asyncio
    async def test_failures_do_not_raise(self):
        adapters = [FakeAdapter("newsapi", "NewsAPI", error=RuntimeError("x"))]

        assert await search_all_sources("anything", adapters=adapters) == []


class TestActiveSources:
    def test_lists_enabled_only(self):
        adapters = [
            FakeAdapter("newsapi", "NewsAPI"),
            FakeAdapter("gnews", "GNews", enabled=False),
        ]

        active = get_active_sources(adapters)

        assert [s.id for s in active] == ["newsapi"]
        assert is_multi_source_enabled(adapters) is False

    def test_multi_source(self):
        adapters = [FakeAdapter("newsapi", "NewsAPI"), FakeAdapter("gnews", "GNews")]
        assert is_multi_source_enabled(adapters) is True
