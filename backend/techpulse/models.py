"""
File: techpulse/models.py
Internal data structures used during fetching and aggregation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from techpulse.schemas import CanonicalArticle


JsonDict = Dict[str, Any]


@dataclass(frozen=True)
class FieldMap:
    """One row of the provider mapping table.

    Each attribute is a dotted path into the provider's raw article record
    (integer segments index into lists, e.g. ``"creator.0"``). ``None`` means
    the provider never reports that field.
    """

    title: str = "title"
    description: Optional[str] = "description"
    content: Optional[str] = "content"
    url: str = "url"
    image: Optional[str] = "image"
    published_at: Optional[str] = "publishedAt"
    source_name: Optional[str] = "source.name"
    source_id: Optional[str] = None
    source_url: Optional[str] = None
    author: Optional[str] = None

    # Used when source_name is absent from the record
    default_source_name: str = "Unknown"


@dataclass
class FetchResult:
    """Normalized output of a single adapter call."""

    articles: List[CanonicalArticle] = field(default_factory=list)
    total: int = 0

    @classmethod
    def empty(cls) -> "FetchResult":
        return cls()


@dataclass(frozen=True)
class CategoryRoute:
    """How a UI category is requested from providers.

    Category-only routes carry a native provider category per adapter key;
    query routes use full-text search instead.
    """

    provider_categories: Mapping[str, str] = field(default_factory=dict)
    query: Optional[str] = None

    def category_for(self, provider_key: str, default: str = "technology") -> str:
        return self.provider_categories.get(provider_key, default)


__all__ = ["FieldMap", "FetchResult", "CategoryRoute", "JsonDict"]
