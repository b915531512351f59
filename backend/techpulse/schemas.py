# techpulse/schemas.py
from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


Sentiment = Literal["positive", "neutral", "negative"]


class CamelModel(BaseModel):
    """Base model serialized with camelCase keys; accepts either spelling on input."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class ArticleSource(CamelModel):
    name: str
    id: Optional[str] = None
    url: Optional[str] = None


class CanonicalArticle(CamelModel):
    id: str                                   # stable per (provider_name, url)
    url: str                                  # dedup / bookmark / history key
    title: Optional[str] = None
    description: Optional[str] = None
    content: Optional[str] = None
    image_url: Optional[str] = None
    published_at: Optional[str] = None        # ISO-8601, None sorts last
    source: ArticleSource
    author: Optional[str] = None
    provider_name: str


def _assume_utc(value: datetime) -> datetime:
    # Saved timestamps without an offset are treated as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class Bookmark(CanonicalArticle):
    bookmarked_at: datetime

    @field_validator("bookmarked_at")
    @classmethod
    def assume_utc(cls, value: datetime) -> datetime:
        return _assume_utc(value)


class HistoryEntry(CanonicalArticle):
    read_at: datetime
    read_count: int = Field(default=1, ge=1)

    @field_validator("read_at")
    @classmethod
    def assume_utc(cls, value: datetime) -> datetime:
        return _assume_utc(value)


class AnalyticsSnapshot(CamelModel):
    articles_read: int = 0
    total_reading_time: int = 0               # carried for compatibility, never updated
    top_categories: Dict[str, int] = Field(default_factory=dict)
    reading_streak: int = 0
    last_read_date: Optional[str] = None      # ISO date, e.g. "2024-01-31"


class Preferences(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    categories: List[str] = Field(default_factory=lambda: ["technology"])
    notifications: bool = True
    reading_speed: int = 200                  # words per minute


class StateSnapshot(CamelModel):
    version: int = 1
    dark_mode: bool = True
    bookmarks: List[Bookmark] = Field(default_factory=list)
    reading_history: List[HistoryEntry] = Field(default_factory=list)
    preferences: Preferences = Field(default_factory=Preferences)
    analytics: AnalyticsSnapshot = Field(default_factory=AnalyticsSnapshot)


class ReadingStats(CamelModel):
    today_count: int
    week_count: int
    top_categories: Dict[str, int]            # ordered highest count first


class AggregationResult(CamelModel):
    articles: List[CanonicalArticle]
    total_articles: int
    source_stats: Dict[str, int]
    sources_used: List[str]


class SourceInfo(CamelModel):
    id: str
    name: str
    enabled: bool


class SummaryResult(CamelModel):
    summary: str = ""
    key_points: List[str] = Field(default_factory=list)
    sentiment: Sentiment = "neutral"
    read_time: str = "2-3"
    topics: List[str] = Field(default_factory=list)

    @field_validator("read_time", mode="before")
    @classmethod
    def stringify_read_time(cls, value: Any) -> Any:
        if value is None:
            return "2-3"
        return value if isinstance(value, str) else str(value)

    @field_validator("key_points", "topics", mode="before")
    @classmethod
    def string_list(cls, value: Any) -> List[str]:
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        if not isinstance(value, (list, tuple)):
            return []
        return [item if isinstance(item, str) else str(item) for item in value if item is not None]


class AnalysisResult(CamelModel):
    sentiment: Sentiment = "neutral"
    topics: List[str] = Field(default_factory=list)
    category: str = "technology"


class DigestStory(CamelModel):
    title: str
    one_liner: str = ""


class DigestResult(CamelModel):
    headline: str
    overview: str = ""
    stories: List[DigestStory] = Field(default_factory=list)
    trending_topics: List[str] = Field(default_factory=list)


class ChatRequest(CamelModel):
    article: CanonicalArticle
    question: str = Field(..., min_length=1)


class ChatResponse(CamelModel):
    answer: str


class DigestRequest(CamelModel):
    articles: List[CanonicalArticle]
    max_articles: int = Field(default=5, ge=1, le=20)
