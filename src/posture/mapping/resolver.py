"""Framework mapping resolver.

Normalizes the two historical shapes of ``Article.mapped_controls`` into one
canonical ``{framework: {control_id, ...}}`` relation:

- legacy ``["AC-1", "AC-2"]`` lists, with no framework attribution, land
  under the ``_unspecified`` framework key;
- current ``{"ISO 27001": ["A.9.1"], ...}`` maps are kept per framework.

Nothing downstream of this module branches on the shape.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, Optional

from ..errors import InputError
from ..models.entities import Regulation
from ..models.mapping import UNSPECIFIED_FRAMEWORK, RegulationMapping
from ..utils.numbers import percentage

logger = logging.getLogger(__name__)

FrameworkMap = dict[str, set[str]]


def _check_ids(ids: Any, where: str) -> set[str]:
    if not isinstance(ids, (list, tuple, set, frozenset)):
        raise InputError(
            f"Expected a list of control IDs for {where}, got {type(ids).__name__}",
            {"where": where},
        )
    bad = [i for i in ids if not isinstance(i, str)]
    if bad:
        raise InputError(
            f"Non-string control IDs for {where}: {bad!r}",
            {"where": where},
        )
    return set(ids)


def _normalize(value: Any) -> FrameworkMap:
    """Strictly normalize one ``mapped_controls`` value, raising on bad shapes."""
    if value is None:
        return {}

    # Legacy: flat list of external control IDs
    if isinstance(value, (list, tuple)):
        ids = _check_ids(value, "legacy mapping")
        return {UNSPECIFIED_FRAMEWORK: ids} if ids else {}

    # Current: framework name -> list of control IDs
    if isinstance(value, dict):
        result: FrameworkMap = {}
        for framework, ids in value.items():
            if not isinstance(framework, str) or not framework:
                raise InputError(
                    f"Invalid framework key: {framework!r}",
                    {"framework": framework},
                )
            checked = _check_ids(ids, f"framework '{framework}'")
            if checked:
                result[framework] = checked
        return result

    raise InputError(
        f"Unrecognized mapped_controls shape: {type(value).__name__}",
        {"type": type(value).__name__},
    )


def resolve_mapped_controls(
    value: Any,
    warnings: Optional[list[str]] = None,
) -> FrameworkMap:
    """Resolve an article's ``mapped_controls`` to ``{framework: set(ids)}``.

    Never raises. Malformed values resolve to an empty map; the problem is
    logged and appended to ``warnings`` when a list is given.
    """
    try:
        return _normalize(value)
    except InputError as e:
        logger.warning("Ignoring malformed control mapping: %s", e.message)
        if warnings is not None:
            warnings.append(e.message)
        return {}


def merge_mappings(*maps: FrameworkMap) -> FrameworkMap:
    """Union control ID sets per framework key. Inputs are not mutated."""
    merged: dict[str, set[str]] = defaultdict(set)
    for m in maps:
        for framework, ids in m.items():
            merged[framework] |= ids
    return dict(merged)


def resolve_regulation(regulation: Regulation) -> RegulationMapping:
    """Resolve and merge the control mappings of every article in a regulation."""
    warnings: list[str] = []
    resolved: list[FrameworkMap] = []
    framework_counts: dict[str, int] = defaultdict(int)
    mapped_articles = 0

    for article in regulation.articles:
        article_warnings: list[str] = []
        mapping = resolve_mapped_controls(article.mapped_controls, article_warnings)
        warnings.extend(f"{article.id}: {w}" for w in article_warnings)

        if mapping:
            mapped_articles += 1
            resolved.append(mapping)
            for framework in mapping:
                framework_counts[framework] += 1

    total = len(regulation.articles)
    return RegulationMapping(
        regulation_id=regulation.id,
        by_framework=merge_mappings(*resolved),
        total_articles=total,
        mapped_articles=mapped_articles,
        coverage_percentage=percentage(mapped_articles, total),
        framework_article_counts=dict(sorted(framework_counts.items())),
        warnings=warnings,
    )
