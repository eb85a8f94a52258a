"""Resolved regulation-to-framework mapping models."""

from __future__ import annotations

from pydantic import BaseModel

UNSPECIFIED_FRAMEWORK = "_unspecified"


class RegulationMapping(BaseModel):
    """Per-framework control IDs referenced by a regulation's articles."""

    regulation_id: str
    by_framework: dict[str, set[str]] = {}
    total_articles: int = 0
    mapped_articles: int = 0
    coverage_percentage: int = 0
    framework_article_counts: dict[str, int] = {}
    warnings: list[str] = []
