"""
Static mapping from UI categories to provider requests.
"""
from __future__ import annotations

from typing import Dict

from techpulse.models import CategoryRoute


DEFAULT_CATEGORY = "technology"

CATEGORY_ROUTES: Dict[str, CategoryRoute] = {
    # Native provider category filter
    "technology": CategoryRoute(
        provider_categories={
            "newsapi": "technology",
            "gnews": "technology",
            "currents": "technology",
            "newsdata": "technology",
        },
    ),
    # Full-text search
    "ai": CategoryRoute(query="artificial intelligence OR machine learning OR GPT OR ChatGPT"),
    "startups": CategoryRoute(query="startup funding OR venture capital OR unicorn"),
    "crypto": CategoryRoute(query="cryptocurrency OR bitcoin OR ethereum OR blockchain"),
    "programming": CategoryRoute(query="programming OR software development OR javascript OR python"),
    "cybersecurity": CategoryRoute(query="cybersecurity OR hacking OR data breach"),
    "gadgets": CategoryRoute(query="gadgets OR smartphone OR iPhone OR laptop"),
}


def resolve_category(category_id: str | None) -> CategoryRoute:
    """Return the route for a category id, falling back to technology."""
    return CATEGORY_ROUTES.get((category_id or "").strip().lower(), CATEGORY_ROUTES[DEFAULT_CATEGORY])
