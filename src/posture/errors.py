"""Exception hierarchy for the posture engine.

Only boundary validation raises: numeric computations are total over
well-typed inputs.
"""

from __future__ import annotations

from typing import Any, Optional


class PostureError(Exception):
    """Base class for all posture engine errors."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} (details: {self.details})"
        return self.message


class InputError(PostureError):
    """A framework mapping has an unrecognized shape.

    Recovered where it is raised: the mapping is treated as empty.
    """


class NoQuestionsError(PostureError):
    """A regulation has no readiness questionnaire. Not retryable."""

    def __init__(self, regulation_id: str):
        super().__init__(
            f"Regulation '{regulation_id}' has no readiness questions",
            {"regulation_id": regulation_id},
        )
        self.regulation_id = regulation_id


class NotFoundError(PostureError):
    """A referenced client or regulation does not exist."""

    def __init__(self, kind: str, identifier: Any):
        super().__init__(f"{kind} not found: {identifier}", {"kind": kind, "id": identifier})
        self.kind = kind
        self.identifier = identifier


class ConfigError(PostureError):
    """A configuration file could not be read as a mapping."""
