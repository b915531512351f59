"""
GNews.io adapter.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from techpulse.config import settings
from techpulse.models import JsonDict
from techpulse.sources.base import NewsAdapter


class GNewsAdapter(NewsAdapter):
    key = "gnews"
    name = "GNews"
    base_url = "https://gnews.io/api/v4"
    page_size = 10

    @staticmethod
    def default_api_key() -> str:
        return settings.GNEWS_API_KEY

    def build_request(self, category: Optional[str], query: Optional[str], page: int) -> Tuple[str, Dict[str, Any]]:
        common = {"lang": "en", "max": self.page_size, "page": page, "apikey": self.api_key}
        if query:
            return "search", {"q": query, **common}
        return "top-headlines", {"category": category or "technology", **common}

    def parse_payload(self, payload: JsonDict) -> Tuple[List[JsonDict], int]:
        if "articles" not in payload:
            raise ValueError(payload.get("errors") or "response has no articles")
        articles = payload.get("articles") or []
        return articles, int(payload.get("totalArticles") or len(articles))
