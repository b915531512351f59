"""Tests for the provider adapters against a mocked HTTP transport."""

import httpx
import pytest

from techpulse.config import USER_AGENT
from techpulse.sources.currents import CurrentsAdapter
from techpulse.sources.gnews import GNewsAdapter
from techpulse.sources.newsapi import NewsAPIAdapter
from techpulse.sources.newsdata import NewsDataAdapter


def mock_client(handler):
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def json_handler(payload, status_code=200, seen=None):
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        return httpx.Response(status_code, json=payload)
    return handler


NEWSAPI_PAYLOAD = {
    "status": "ok",
    "totalResults": 120,
    "articles": [
        {
            "source": {"id": None, "name": "The Verge"},
            "title": "New laptop announced",
            "url": "https://theverge.com/laptop",
            "urlToImage": "https://theverge.com/laptop.jpg",
            "publishedAt": "2024-01-03T08:00:00Z",
        },
        {
            "source": {"name": "Unknown"},
            "title": "[Removed]",
            "url": "https://removed.com",
            "urlToImage": "https://removed.com/img.jpg",
            "publishedAt": "2024-01-01T00:00:00Z",
        },
        {
            "source": {"name": "Blog"},
            "title": "No picture here",
            "url": "https://blog.example.com/post",
            "urlToImage": None,
            "publishedAt": "2024-01-02T00:00:00Z",
        },
    ],
}


class TestNewsAPIAdapter:
    @pytest.mark.asyncio
    async def test_headlines_filter_removed_and_imageless(self):
        seen = []
        adapter = NewsAPIAdapter(api_key="k" * 32, client=mock_client(json_handler(NEWSAPI_PAYLOAD, seen=seen)))

        result = await adapter.fetch(category="technology", page=2)

        assert [a.url for a in result.articles] == ["https://theverge.com/laptop"]
        assert result.total == 120
        request = seen[0]
        assert request.url.path == "/v2/top-headlines"
        assert request.url.params["category"] == "technology"
        assert request.url.params["page"] == "2"

    @pytest.mark.asyncio
    async def test_query_uses_everything_endpoint(self):
        seen = []
        adapter = NewsAPIAdapter(api_key="k" * 32, client=mock_client(json_handler(NEWSAPI_PAYLOAD, seen=seen)))

        await adapter.fetch(category="technology", query="bitcoin OR ethereum")

        assert seen[0].url.path == "/v2/everything"
        assert seen[0].url.params["q"] == "bitcoin OR ethereum"
        assert "category" not in seen[0].url.params

    @pytest.mark.asyncio
    async def test_error_status_payload_is_empty(self):
        payload = {"status": "error", "code": "rateLimited", "message": "Too many requests"}
        adapter = NewsAPIAdapter(api_key="k" * 32, client=mock_client(json_handler(payload)))

        result = await adapter.fetch(category="technology")

        assert result.articles == []
        assert result.total == 0


class TestDisabledAndFailures:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("key", ["", "your_api_key_here"])
    async def test_missing_key_never_hits_network(self, key):
        seen = []
        adapter = GNewsAdapter(api_key=key, client=mock_client(json_handler({}, seen=seen)))

        result = await adapter.fetch(category="technology")

        assert adapter.enabled is False
        assert result.articles == []
        assert seen == []

    @pytest.mark.asyncio
    async def test_http_error_degrades_to_empty(self):
        adapter = GNewsAdapter(api_key="key", client=mock_client(json_handler({"errors": ["boom"]}, status_code=500)))

        result = await adapter.fetch(query="ai")

        assert result.articles == []
        assert result.total == 0

    @pytest.mark.asyncio
    async def test_transport_error_degrades_to_empty(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        adapter = GNewsAdapter(api_key="key", client=mock_client(handler))

        result = await adapter.fetch(query="ai")

        assert result.articles == []

    @pytest.mark.asyncio
    async def test_malformed_json_degrades_to_empty(self):
        def handler(request):
            return httpx.Response(200, content=b"<html>not json</html>")

        adapter = CurrentsAdapter(api_key="key", client=mock_client(handler))

        result = await adapter.fetch(category="technology")

        assert result.articles == []


class TestGNewsAdapter:
    @pytest.mark.asyncio
    async def test_search_keeps_articles_without_images(self):
        payload = {
            "totalArticles": 2,
            "articles": [
                {
                    "title": "Startup raises seed round",
                    "url": "https://example.com/seed",
                    "image": None,
                    "publishedAt": "2024-01-03T08:00:00Z",
                    "source": {"name": "Example", "url": "https://example.com"},
                },
            ],
        }
        seen = []
        adapter = GNewsAdapter(api_key="key", client=mock_client(json_handler(payload, seen=seen)))

        result = await adapter.fetch(query="startup funding")

        assert len(result.articles) == 1
        assert result.articles[0].source.url == "https://example.com"
        assert result.total == 2
        assert seen[0].url.path == "/api/v4/search"


class TestCurrentsAdapter:
    @pytest.mark.asyncio
    async def test_none_image_sentinel_is_filtered(self):
        payload = {
            "status": "ok",
            "news": [
                {"title": "Has image", "url": "https://a.com/1", "image": "https://a.com/1.jpg",
                 "published": "2024-01-03 08:00:00 +0000", "author": "A"},
                {"title": "No image", "url": "https://a.com/2", "image": "None",
                 "published": "2024-01-03 09:00:00 +0000", "author": "A"},
            ],
        }
        adapter = CurrentsAdapter(api_key="key", client=mock_client(json_handler(payload)))

        result = await adapter.fetch(category="technology")

        assert [a.title for a in result.articles] == ["Has image"]
        assert all(a.image_url != "None" for a in result.articles)


class TestNewsDataAdapter:
    @pytest.mark.asyncio
    async def test_success_payload(self):
        payload = {
            "status": "success",
            "totalResults": 40,
            "results": [
                {"title": "Cyber attack", "link": "https://n.com/1", "image_url": "https://n.com/1.png",
                 "pubDate": "2024-01-03 07:00:00", "source_id": "n", "creator": None},
            ],
        }
        seen = []
        adapter = NewsDataAdapter(api_key="key", client=mock_client(json_handler(payload, seen=seen)))

        result = await adapter.fetch(query="cybersecurity")

        assert result.total == 40
        assert result.articles[0].url == "https://n.com/1"
        assert result.articles[0].author is None
        assert seen[0].url.params["q"] == "cybersecurity"

    @pytest.mark.asyncio
    async def test_error_payload_is_empty(self):
        payload = {"status": "error", "results": {"message": "API key invalid"}}
        adapter = NewsDataAdapter(api_key="key", client=mock_client(json_handler(payload)))

        result = await adapter.fetch(category="technology")

        assert result.articles == []


class TestRequestHeaders:
    @pytest.mark.asyncio
    async def test_shared_client_sends_user_agent(self):
        seen = []
        adapter = GNewsAdapter(api_key="key", client=mock_client(json_handler({"articles": []}, seen=seen)))

        await adapter.fetch(category="technology")

        assert seen[0].headers["User-Agent"] == USER_AGENT
        assert seen[0].headers["Accept"] == "application/json"
