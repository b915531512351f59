"""
Common utilities for news provider adapters.

The provider mapping table lives here: one ``FieldMap`` row per provider,
keyed by adapter key. Adding a provider means adding a row here and an
adapter module; the collector never changes.
"""
from __future__ import annotations

import hashlib
from datetime import datetime, timezone
from typing import Any, Optional

from dateutil import parser as dateparser

from techpulse.models import FieldMap, JsonDict
from techpulse.schemas import ArticleSource, CanonicalArticle
from techpulse.utils import normalize_text


REMOVED_TITLE = "[Removed]"

# Values some providers put in image fields instead of omitting them
MISSING_IMAGE_SENTINELS = {"none", "null", "undefined", "n/a"}


FIELD_MAPS: dict[str, FieldMap] = {
    "newsapi": FieldMap(
        image="urlToImage",
        source_id="source.id",
        author="author",
        default_source_name="NewsAPI",
    ),
    "gnews": FieldMap(
        image="image",
        source_url="source.url",
        default_source_name="GNews",
    ),
    "currents": FieldMap(
        content="description",
        image="image",
        published_at="published",
        source_name="author",
        author="author",
        default_source_name="Currents",
    ),
    "newsdata": FieldMap(
        url="link",
        image="image_url",
        published_at="pubDate",
        source_name="source_id",
        author="creator.0",
        default_source_name="NewsData",
    ),
}


def make_article_id(provider_key: str, url: str) -> str:
    """
    Generate a deterministic ID for an article.

    Args:
        provider_key: Adapter key (e.g. 'newsapi')
        url: Article origin URL

    Returns:
        '<provider_key>-<16 hex chars>', stable per (provider, url)
    """
    key = f"{provider_key}|{url}".encode("utf-8", "ignore")
    return f"{provider_key}-{hashlib.blake2b(key, digest_size=8).hexdigest()}"


def parse_utc_datetime(date_string: Optional[str]) -> Optional[datetime]:
    """
    Parse a date string and convert to UTC datetime.

    Args:
        date_string: Date string in various formats, or None

    Returns:
        UTC datetime object, or None if input is missing or unparseable
    """
    if not date_string or not isinstance(date_string, str):
        return None

    try:
        parsed_date = dateparser.parse(date_string)
    except (ValueError, OverflowError):
        return None

    if parsed_date.tzinfo:
        return parsed_date.astimezone(timezone.utc)
    return parsed_date.replace(tzinfo=timezone.utc)


def normalize_published_at(value: Any) -> Optional[str]:
    """Return a UTC ISO-8601 string for a provider timestamp, or None."""
    parsed = parse_utc_datetime(value)
    return parsed.isoformat() if parsed else None


def clean_text(text: Any) -> Optional[str]:
    """
    Clean and normalize text content.

    Args:
        text: Raw provider value

    Returns:
        Whitespace-normalized string, or None when absent or blank
    """
    if not isinstance(text, str):
        return None
    return normalize_text(text) or None


def clean_image_url(value: Any) -> Optional[str]:
    """Map provider image values to a URL or None, dropping sentinel strings."""
    url = clean_text(value)
    if not url or url.lower() in MISSING_IMAGE_SENTINELS:
        return None
    return url


def lookup(record: Any, path: Optional[str]) -> Any:
    """
    Resolve a dotted path against a raw provider record.

    Args:
        record: Raw JSON value (dict/list)
        path: Dotted path, e.g. 'source.name' or 'creator.0'

    Returns:
        The value at path, or None if any segment is missing
    """
    if not path:
        return None
    value = record
    for segment in path.split("."):
        if isinstance(value, dict):
            value = value.get(segment)
        elif isinstance(value, list) and segment.isdigit():
            index = int(segment)
            value = value[index] if index < len(value) else None
        else:
            return None
        if value is None:
            return None
    return value


def normalize_article(raw: JsonDict, provider_key: str, provider_name: str) -> Optional[CanonicalArticle]:
    """
    Map one raw provider record onto the canonical article shape.

    Args:
        raw: Provider article record
        provider_key: Adapter key used to pick the mapping row
        provider_name: Display name recorded as provider_name

    Returns:
        CanonicalArticle, or None when the record has no usable URL or title
    """
    mapping = FIELD_MAPS[provider_key]

    url = clean_text(lookup(raw, mapping.url))
    title = clean_text(lookup(raw, mapping.title))
    if not url or not title:
        return None

    source = ArticleSource(
        name=clean_text(lookup(raw, mapping.source_name)) or mapping.default_source_name,
        id=clean_text(lookup(raw, mapping.source_id)),
        url=clean_text(lookup(raw, mapping.source_url)),
    )

    return CanonicalArticle(
        id=make_article_id(provider_key, url),
        url=url,
        title=title,
        description=clean_text(lookup(raw, mapping.description)),
        content=clean_text(lookup(raw, mapping.content)),
        image_url=clean_image_url(lookup(raw, mapping.image)),
        published_at=normalize_published_at(lookup(raw, mapping.published_at)),
        source=source,
        author=clean_text(lookup(raw, mapping.author)),
        provider_name=provider_name,
    )
