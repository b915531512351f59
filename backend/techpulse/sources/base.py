"""
Base class shared by all provider adapters.
"""
from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Tuple

import httpx

from techpulse.config import HTTP_HEADERS, REQUEST_TIMEOUT_SECONDS, has_credential
from techpulse.models import FetchResult, JsonDict
from techpulse.schemas import CanonicalArticle
from techpulse.sources.common import normalize_article


class NewsAdapter(ABC):
    """
    Fetches one provider's articles and maps them into CanonicalArticle.

    Subclasses provide the request shape and the payload envelope; field
    mapping comes from the shared mapping table. ``fetch`` never raises: a
    missing key, transport error or malformed payload all yield an empty
    result.
    """

    key: str = ""
    name: str = ""
    base_url: str = ""
    page_size: int = 10
    require_image: bool = False

    def __init__(
        self,
        api_key: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
    ):
        self.api_key = api_key if api_key is not None else self.default_api_key()
        self.timeout = timeout
        self._client = client
        self.logger = logging.getLogger(f"{__name__}.{self.key or self.__class__.__name__}")

    @staticmethod
    def default_api_key() -> str:
        return ""

    @property
    def enabled(self) -> bool:
        return has_credential(self.api_key)

    @abstractmethod
    def build_request(self, category: Optional[str], query: Optional[str], page: int) -> Tuple[str, Dict[str, Any]]:
        """Return (path, params) for a headlines or search request."""

    @abstractmethod
    def parse_payload(self, payload: JsonDict) -> Tuple[List[JsonDict], int]:
        """Return (raw articles, reported total) or raise ValueError for a failed payload."""

    def keep(self, article: CanonicalArticle) -> bool:
        """Provider-specific post-normalization filter."""
        if self.require_image and not article.image_url:
            return False
        return True

    async def fetch(self, category: Optional[str] = None, query: Optional[str] = None, page: int = 1) -> FetchResult:
        """
        Fetch and normalize articles for a category or a free-text query.

        Args:
            category: Provider-native category token (ignored when query is set)
            query: Free-text search string
            page: 1-based page number; ignored by providers without paging

        Returns:
            FetchResult with normalized articles and the provider's total
        """
        if not self.enabled:
            self.logger.debug("[%s] No API key configured, skipping", self.name)
            return FetchResult.empty()

        label = f"query={query!r}" if query else f"category={category!r}"
        started = time.perf_counter()
        try:
            path, params = self.build_request(category, query, page)
            payload = await self._get_json(path, params)
            raw_items, total = self.parse_payload(payload)
        except Exception as e:
            self.logger.warning("[%s] Error fetching %s: %s: %s", self.name, label, type(e).__name__, e)
            return FetchResult.empty()

        articles: List[CanonicalArticle] = []
        for raw in raw_items:
            try:
                article = normalize_article(raw, self.key, self.name)
            except Exception as e:
                # Skip malformed entries
                self.logger.debug("[%s] Skipping malformed entry: %s", self.name, e)
                continue
            if article is not None and self.keep(article):
                articles.append(article)

        elapsed_ms = int((time.perf_counter() - started) * 1000)
        self.logger.info("[%s] Fetched %d articles for %s in %dms", self.name, len(articles), label, elapsed_ms)
        return FetchResult(articles=articles, total=total or len(articles))

    async def _get_json(self, path: str, params: Dict[str, Any]) -> JsonDict:
        url = f"{self.base_url}/{path}"
        params = {k: v for k, v in params.items() if v is not None}

        if self._client is not None:
            response = await self._client.get(url, params=params, headers=HTTP_HEADERS, timeout=self.timeout)
        else:
            async with httpx.AsyncClient(headers=HTTP_HEADERS, timeout=self.timeout) as client:
                response = await client.get(url, params=params)

        response.raise_for_status()
        data = response.json()
        if not isinstance(data, dict):
            raise ValueError(f"Unexpected payload type {type(data).__name__}")
        return data
