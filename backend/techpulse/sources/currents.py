"""
Currents API adapter.

Currents reports the literal string "None" for missing images and has no
usable paging, so every call returns the latest batch.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from techpulse.config import settings
from techpulse.models import JsonDict
from techpulse.sources.base import NewsAdapter


class CurrentsAdapter(NewsAdapter):
    key = "currents"
    name = "Currents"
    base_url = "https://api.currentsapi.services/v1"
    require_image = True

    @staticmethod
    def default_api_key() -> str:
        return settings.CURRENTS_API_KEY

    def build_request(self, category: Optional[str], query: Optional[str], page: int) -> Tuple[str, Dict[str, Any]]:
        if query:
            return "search", {"keywords": query, "language": "en", "apiKey": self.api_key}
        return "latest-news", {"category": category or "technology", "language": "en", "apiKey": self.api_key}

    def parse_payload(self, payload: JsonDict) -> Tuple[List[JsonDict], int]:
        if payload.get("status") != "ok" or payload.get("news") is None:
            raise ValueError(payload.get("msg") or f"status={payload.get('status')!r}")
        news = payload["news"]
        return news, len(news)
