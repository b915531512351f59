"""
Main FastAPI application and routing layer.

This is the local bridge the presentation layer talks to: feed and search
through the aggregator, AI enrichment, and the derived-state operations.
"""
from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any, Dict, List

from fastapi import Body, Depends, FastAPI, HTTPException, Query, Response
from fastapi.middleware.cors import CORSMiddleware
from pydantic import ValidationError

from techpulse.config import CORS_ALLOW_ORIGINS, LOG_FORMAT, LOG_LEVEL, settings
from techpulse.core.feed_session import FeedSession
from techpulse.core.state import StateStore
from techpulse.core.storage import JsonFileStorage
from techpulse.schemas import (
    AggregationResult,
    AnalysisResult,
    CanonicalArticle,
    ChatRequest,
    ChatResponse,
    DigestRequest,
    DigestResult,
    ReadingStats,
    StateSnapshot,
    SummaryResult,
)
from techpulse.services.enrichment import EnrichmentClient, EnrichmentError, NotConfiguredError
from techpulse.sources.collector import get_active_sources, is_multi_source_enabled
from techpulse.utils import now_utc

# Configure logging
logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT)
logger = logging.getLogger("uvicorn")


@lru_cache(maxsize=1)
def get_state_store() -> StateStore:
    """Load the derived-state store once per process."""
    store = StateStore.load(JsonFileStorage(settings.STATE_DIR))
    logger.info("Loaded state from %s", settings.STATE_DIR)
    return store


@lru_cache(maxsize=1)
def get_feed_session() -> FeedSession:
    return FeedSession()


@lru_cache(maxsize=1)
def get_enrichment_client() -> EnrichmentClient:
    return EnrichmentClient()


def _enrichment_http_error(e: EnrichmentError) -> HTTPException:
    if isinstance(e, NotConfiguredError):
        return HTTPException(status_code=503, detail="AI features are not configured")
    return HTTPException(status_code=502, detail=str(e))


# Initialize FastAPI app
app = FastAPI(
    title="TechPulse News API",
    version="0.1.0",
    description="Multi-source tech news aggregation with local bookmarks, history and analytics",
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
async def health_check(client: EnrichmentClient = Depends(get_enrichment_client)):
    """Health check endpoint."""
    return {
        "status": "ok",
        "as_of": now_utc().isoformat(),
        "service": "techpulse-api",
        "ai_configured": client.is_configured,
    }


# ----------------------------------------------------------------------
# Feed
# ----------------------------------------------------------------------

@app.get("/news", response_model=AggregationResult)
async def get_news(
    category: str = Query("technology", description="Feed category (e.g. technology, ai, crypto)"),
    page: int = Query(1, ge=1, le=50),
    session: FeedSession = Depends(get_feed_session),
):
    """Aggregated, deduplicated feed for a category; 204 if superseded by a newer load."""
    logger.info(f"Loading {category} feed, page {page}")
    result = await session.load_category(category, page=page)
    if result is None:
        return Response(status_code=204)
    return result


@app.get("/search", response_model=List[CanonicalArticle])
async def search(
    q: str = Query("", max_length=200, description="Free-text search"),
    page: int = Query(1, ge=1, le=50),
    session: FeedSession = Depends(get_feed_session),
):
    """Debounced search across all sources; 204 if superseded by a newer query."""
    results = await session.search(q, page=page)
    if results is None:
        return Response(status_code=204)
    return results


@app.get("/sources")
async def list_sources(session: FeedSession = Depends(get_feed_session)):
    return {
        "sources": [s.to_json_dict() for s in get_active_sources(session.adapters)],
        "multiSource": is_multi_source_enabled(session.adapters),
    }


# ----------------------------------------------------------------------
# AI enrichment
# ----------------------------------------------------------------------

@app.post("/ai/summary", response_model=SummaryResult)
async def summarize_article(
    article: CanonicalArticle,
    client: EnrichmentClient = Depends(get_enrichment_client),
):
    try:
        return await client.summarize(article)
    except EnrichmentError as e:
        raise _enrichment_http_error(e)


@app.post("/ai/chat", response_model=ChatResponse)
async def chat_with_article(
    request: ChatRequest,
    client: EnrichmentClient = Depends(get_enrichment_client),
):
    try:
        answer = await client.chat(request.article, request.question)
    except EnrichmentError as e:
        raise _enrichment_http_error(e)
    return ChatResponse(answer=answer)


@app.post("/ai/analyze", response_model=AnalysisResult)
async def analyze_article(
    article: CanonicalArticle,
    client: EnrichmentClient = Depends(get_enrichment_client),
):
    return await client.analyze(article)


@app.post("/ai/digest", response_model=DigestResult)
async def build_digest(
    request: DigestRequest,
    client: EnrichmentClient = Depends(get_enrichment_client),
):
    try:
        return await client.digest(request.articles, max_articles=request.max_articles)
    except EnrichmentError as e:
        raise _enrichment_http_error(e)


# ----------------------------------------------------------------------
# Derived state
# ----------------------------------------------------------------------

@app.get("/state", response_model=StateSnapshot)
async def get_state(store: StateStore = Depends(get_state_store)):
    return store.snapshot


@app.post("/state/dark-mode", response_model=StateSnapshot)
async def toggle_dark_mode(store: StateStore = Depends(get_state_store)):
    return store.toggle_dark_mode()


@app.post("/bookmarks", response_model=StateSnapshot)
async def add_bookmark(article: CanonicalArticle, store: StateStore = Depends(get_state_store)):
    return store.add_bookmark(article)


@app.delete("/bookmarks", response_model=StateSnapshot)
async def remove_bookmark(
    url: str = Query(..., min_length=1),
    store: StateStore = Depends(get_state_store),
):
    return store.remove_bookmark(url)


@app.post("/history", response_model=StateSnapshot)
async def record_read(article: CanonicalArticle, store: StateStore = Depends(get_state_store)):
    """An article was opened: update reading history and analytics together."""
    store.add_to_history(article)
    return store.track_article_read(article.source.name)


@app.delete("/history", response_model=StateSnapshot)
async def clear_history(store: StateStore = Depends(get_state_store)):
    return store.clear_history()


@app.patch("/preferences", response_model=StateSnapshot)
async def update_preferences(
    partial: Dict[str, Any] = Body(...),
    store: StateStore = Depends(get_state_store),
):
    try:
        return store.update_preferences(partial)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=e.errors(include_url=False, include_context=False))


@app.get("/analytics", response_model=ReadingStats)
async def get_reading_stats(store: StateStore = Depends(get_state_store)):
    return store.reading_stats()


if __name__ == "__main__":
    # For development
    import uvicorn
    uvicorn.run("techpulse.main:app", host="127.0.0.1", port=settings.PORT, reload=True)
