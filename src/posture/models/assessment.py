"""Combined per-client assessment models."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel

from .coverage import CoverageSnapshot
from .entities import (
    Client,
    ClientControl,
    ClientPolicy,
    Evidence,
    PolicyControlLink,
    RiskSummary,
)
from .gaps import GapAnalysis
from .readiness import ReadinessResult
from .scores import ComplianceScoreSnapshot, FrameworkProgress, StatusBreakdowns


class ClientSnapshot(BaseModel):
    """Everything the engine reads for one client, fetched once per request."""

    client: Client
    controls: list[ClientControl] = []
    policies: list[ClientPolicy] = []
    evidence: list[Evidence] = []
    links: list[PolicyControlLink] = []
    risks: Optional[RiskSummary] = None


class PostureAssessment(BaseModel):
    client: Client
    score: ComplianceScoreSnapshot
    coverage: CoverageSnapshot
    breakdowns: StatusBreakdowns
    frameworks: list[FrameworkProgress] = []
    readiness: list[ReadinessResult] = []
    unassessed_regulations: list[str] = []
    gaps: GapAnalysis
    # Client target, else the configured default
    target_compliance_score: Optional[int] = None
