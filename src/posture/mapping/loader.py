"""Regulation reference data loading from YAML files."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import yaml
from pydantic import ValidationError

from ..models.entities import Regulation

logger = logging.getLogger(__name__)


def _read_yaml(path: Path) -> Optional[dict]:
    try:
        content = yaml.safe_load(path.read_text(encoding="utf-8-sig"))
    except (OSError, yaml.YAMLError) as e:
        logger.warning("Skipping unreadable regulation file %s: %s", path.name, e)
        return None
    return content if isinstance(content, dict) else None


def _validate(content: dict, path: Path) -> Optional[Regulation]:
    try:
        return Regulation.model_validate(content)
    except ValidationError as e:
        logger.warning("Skipping invalid regulation file %s: %s", path.name, e)
        return None


def _scan(regulations_dir: Path) -> list[tuple[Path, dict]]:
    """Readable regulation documents that declare an ID, sorted by ID."""
    found: list[tuple[Path, dict]] = []

    if not regulations_dir.exists():
        return found

    for yaml_file in sorted(regulations_dir.rglob("*.yaml")):
        content = _read_yaml(yaml_file)
        if content and content.get("id"):
            found.append((yaml_file, content))

    found.sort(key=lambda item: str(item[1]["id"]))
    return found


def get_available_regulations(regulations_dir: Path) -> list[dict]:
    """List the regulations found under a directory, sorted by ID."""
    return [
        {
            "id": content["id"],
            "name": content.get("name", ""),
            "articles": len(content.get("articles") or []),
            "questions": len(content.get("questions") or []),
            "path": str(path),
        }
        for path, content in _scan(regulations_dir)
    ]


def load_regulations(regulations_dir: Path) -> list[Regulation]:
    """Load every valid regulation under a directory, sorted by ID.

    Files that fail validation are logged and skipped.
    """
    regulations: list[Regulation] = []
    for path, content in _scan(regulations_dir):
        regulation = _validate(content, path)
        if regulation is not None:
            regulations.append(regulation)
    return regulations


def get_regulation_by_id(regulation_id: str, regulations_dir: Path) -> Optional[Regulation]:
    """Load a specific regulation by ID.

    Returns None if no file declares it or the declaring file is invalid.
    """
    for path, content in _scan(regulations_dir):
        if content["id"] == regulation_id:
            return _validate(content, path)
    return None
