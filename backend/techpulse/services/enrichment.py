"""
AI-powered article enrichment: summaries, Q&A, analysis and digests.
"""
from __future__ import annotations

import json
import logging
import re
from textwrap import shorten
from typing import Any, List, Optional, Sequence

from openai import AsyncOpenAI
from pydantic import ValidationError

from techpulse.config import REQUEST_TIMEOUT_SECONDS, has_credential, settings
from techpulse.schemas import AnalysisResult, CanonicalArticle, DigestResult, SummaryResult

logger = logging.getLogger(__name__)


SUMMARY_FALLBACK_CHARS = 500
SENTIMENTS = {"positive", "negative", "neutral"}
CHAT_APOLOGY = "Sorry, I couldn't answer that right now. Please try again in a moment."
EMPTY_CHAT_RESPONSE = "Unable to generate response"

_FENCE = re.compile(r"```(?:json)?\s*", re.IGNORECASE)


class EnrichmentError(Exception):
    """Base exception for enrichment failures."""


class NotConfiguredError(EnrichmentError):
    """No AI provider credential is configured."""


SUMMARY_PROMPT = """You are a professional news summarizer. Summarize the following news article in a clear, concise way.

Title: {title}

Content: {content}

Source: {source}

Provide a response in the following JSON format:
{{
  "summary": "A 2-3 sentence summary of the key points",
  "keyPoints": ["Point 1", "Point 2", "Point 3"],
  "sentiment": "positive/negative/neutral",
  "readTime": "estimated read time in minutes for full article",
  "topics": ["topic1", "topic2"]
}}

Return ONLY valid JSON, no markdown or extra text."""

CHAT_PROMPT = """Based on this news article, answer the user's question:

Article Title: {title}
Article Content: {content}
Source: {source}

User Question: {question}

Provide a helpful, concise answer based on the article content. If the answer isn't in the article, say so and provide relevant context if possible."""

ANALYZE_PROMPT = """Analyze this news headline and return JSON with sentiment (positive/negative/neutral), topics array, and primary category:

"{title}"

Return format: {{"sentiment": "...", "topics": [...], "category": "..."}}
Return ONLY valid JSON."""

DIGEST_PROMPT = """You are a tech news editor. Create a brief digest of these top tech news stories:

{article_list}

Provide a response in the following JSON format:
{{
  "headline": "A catchy headline summarizing today's tech news",
  "overview": "A 2-3 sentence overview of the major themes",
  "stories": [
    {{
      "title": "Brief title",
      "oneLiner": "One line summary"
    }}
  ],
  "trendingTopics": ["topic1", "topic2", "topic3"]
}}

Return ONLY valid JSON."""


def strip_code_fence(text: str) -> str:
    """Remove markdown code fences (```json ... ```) around a model response."""
    return _FENCE.sub("", text or "").strip()


def parse_json_response(text: str) -> Any:
    """
    Decode a model response that should be a JSON document.

    Raises:
        ValueError: If the response is not valid JSON after unfencing
    """
    return json.loads(strip_code_fence(text))


def _article_body(article: CanonicalArticle, fallback: str) -> str:
    return article.description or article.content or fallback


def _coerce_sentiment(value: Any) -> str:
    value = str(value or "").strip().lower()
    return value if value in SENTIMENTS else "neutral"


class EnrichmentClient:
    """
    Thin wrapper around the OpenAI chat completions API for per-article work.

    ``summarize``/``chat``/``digest`` require a configured key and raise
    NotConfiguredError otherwise; callers are expected to check
    ``is_configured`` first. ``analyze`` never raises.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        client: Optional[AsyncOpenAI] = None,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
    ):
        self.api_key = api_key if api_key is not None else settings.OPENAI_API_KEY
        self.model = model or settings.OPENAI_MODEL
        self.timeout = timeout
        self._client = client

    @property
    def is_configured(self) -> bool:
        return self._client is not None or has_credential(self.api_key)

    def _get_client(self) -> AsyncOpenAI:
        """Get the OpenAI client only when needed and a key is available."""
        if not self.is_configured:
            raise NotConfiguredError("AI provider API key not configured")
        if self._client is None:
            self._client = AsyncOpenAI(api_key=self.api_key, timeout=self.timeout)
        return self._client

    async def _complete(self, prompt: str, temperature: float, max_tokens: int) -> str:
        client = self._get_client()
        response = await client.chat.completions.create(
            model=self.model,
            messages=[{"role": "user", "content": prompt}],
            temperature=temperature,
            max_tokens=max_tokens,
        )
        return (response.choices[0].message.content or "").strip()

    async def summarize(self, article: CanonicalArticle) -> SummaryResult:
        """
        Summarize a single article.

        Args:
            article: Article to summarize

        Returns:
            SummaryResult; a malformed model response degrades to the raw text
            as the summary with neutral sentiment

        Raises:
            NotConfiguredError: If no API key is configured
            EnrichmentError: If the provider call fails
        """
        self._get_client()
        prompt = SUMMARY_PROMPT.format(
            title=article.title or "",
            content=_article_body(article, "No content available"),
            source=article.source.name or "Unknown",
        )

        try:
            text = await self._complete(prompt, temperature=0.3, max_tokens=500)
        except Exception as e:
            logger.error("Error summarizing %s: %s", article.url, e)
            raise EnrichmentError("Failed to summarize article") from e

        try:
            data = parse_json_response(text)
            if not isinstance(data, dict):
                raise ValueError("summary response is not a JSON object")
            data["sentiment"] = _coerce_sentiment(data.get("sentiment"))
            return SummaryResult.model_validate(data)
        except (ValueError, ValidationError) as e:
            logger.info("Summary for %s was not valid JSON, using raw text: %s", article.url, e)
            return SummaryResult(summary=text[:SUMMARY_FALLBACK_CHARS])

    async def chat(self, article: CanonicalArticle, question: str) -> str:
        """
        Answer a question about an article.

        Raises:
            NotConfiguredError: If no API key is configured
        """
        self._get_client()
        prompt = CHAT_PROMPT.format(
            title=article.title or "",
            content=_article_body(article, "Limited content available"),
            source=article.source.name or "Unknown",
            question=question,
        )

        try:
            answer = await self._complete(prompt, temperature=0.4, max_tokens=300)
        except Exception as e:
            logger.error("Chat error for %s: %s", article.url, e)
            return CHAT_APOLOGY

        return answer or EMPTY_CHAT_RESPONSE

    async def analyze(self, article: CanonicalArticle) -> AnalysisResult:
        """Classify sentiment, topics and category for an article headline; never raises."""
        if not self.is_configured:
            return AnalysisResult()

        try:
            text = await self._complete(ANALYZE_PROMPT.format(title=article.title or ""), temperature=0.1, max_tokens=150)
            data = parse_json_response(text)
            if not isinstance(data, dict):
                raise ValueError("analysis response is not a JSON object")
            data["sentiment"] = _coerce_sentiment(data.get("sentiment"))
            if not data.get("category"):
                data.pop("category", None)
            return AnalysisResult.model_validate(data)
        except Exception as e:
            logger.debug("Analysis for %s fell back to neutral: %s", article.url, e)
            return AnalysisResult()

    async def digest(self, articles: Sequence[CanonicalArticle], max_articles: int = 5) -> DigestResult:
        """
        Build a short editorial digest of the top articles.

        Args:
            articles: Articles, most important first
            max_articles: How many articles to include

        Raises:
            NotConfiguredError: If no API key is configured
            EnrichmentError: If the provider call fails or returns malformed JSON
        """
        self._get_client()
        selected: List[CanonicalArticle] = list(articles)[:max_articles]
        if not selected:
            raise EnrichmentError("No articles to digest")

        article_list = "\n\n".join(
            f'{i}. "{a.title}" - '
            + (shorten(a.description, width=200, placeholder="...") if a.description else "No description")
            for i, a in enumerate(selected, start=1)
        )

        try:
            text = await self._complete(DIGEST_PROMPT.format(article_list=article_list), temperature=0.5, max_tokens=800)
            return DigestResult.model_validate(parse_json_response(text))
        except (ValueError, ValidationError) as e:
            logger.error("Digest response could not be parsed: %s", e)
            raise EnrichmentError("Malformed digest response") from e
        except Exception as e:
            logger.error("Digest generation error: %s", e)
            raise EnrichmentError("Failed to generate digest") from e
