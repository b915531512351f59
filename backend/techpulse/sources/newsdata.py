"""
NewsData.io adapter.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from techpulse.config import settings
from techpulse.models import JsonDict
from techpulse.sources.base import NewsAdapter


class NewsDataAdapter(NewsAdapter):
    key = "newsdata"
    name = "NewsData"
    base_url = "https://newsdata.io/api/1"
    require_image = True

    @staticmethod
    def default_api_key() -> str:
        return settings.NEWSDATA_API_KEY

    def build_request(self, category: Optional[str], query: Optional[str], page: int) -> Tuple[str, Dict[str, Any]]:
        # Paging is cursor-based (nextPage token); only the first page is requested
        if query:
            return "news", {"q": query, "language": "en", "apikey": self.api_key}
        return "news", {"category": category or "technology", "language": "en", "apikey": self.api_key}

    def parse_payload(self, payload: JsonDict) -> Tuple[List[JsonDict], int]:
        if payload.get("status") != "success" or payload.get("results") is None:
            results = payload.get("results")
            message = results.get("message") if isinstance(results, dict) else None
            raise ValueError(message or f"status={payload.get('status')!r}")
        results = payload["results"]
        return results, int(payload.get("totalResults") or len(results))
