"""
NewsAPI.org adapter.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from techpulse.config import settings
from techpulse.models import JsonDict
from techpulse.schemas import CanonicalArticle
from techpulse.sources.base import NewsAdapter
from techpulse.sources.common import REMOVED_TITLE


class NewsAPIAdapter(NewsAdapter):
    """Top headlines by category, or /everything for free-text queries."""

    key = "newsapi"
    name = "NewsAPI"
    base_url = "https://newsapi.org/v2"
    page_size = 15
    require_image = True

    @staticmethod
    def default_api_key() -> str:
        return settings.NEWS_API_KEY

    def build_request(self, category: Optional[str], query: Optional[str], page: int) -> Tuple[str, Dict[str, Any]]:
        common = {"pageSize": self.page_size, "page": page, "apiKey": self.api_key}
        if query:
            return "everything", {"q": query, "sortBy": "publishedAt", "language": "en", **common}
        return "top-headlines", {"country": "us", "category": category or "technology", **common}

    def parse_payload(self, payload: JsonDict) -> Tuple[List[JsonDict], int]:
        if payload.get("status") != "ok":
            raise ValueError(payload.get("message") or f"status={payload.get('status')!r}")
        return payload.get("articles") or [], int(payload.get("totalResults") or 0)

    def keep(self, article: CanonicalArticle) -> bool:
        # NewsAPI keeps placeholders for taken-down stories
        if article.title == REMOVED_TITLE:
            return False
        return super().keep(article)
