"""Score aggregation output models."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel


class ScoreBand(str, Enum):
    ON_TRACK = "on_track"
    AT_RISK = "at_risk"
    CRITICAL = "critical"


class ComplianceScoreSnapshot(BaseModel):
    """Composite compliance score for one client."""

    overall: int = 0
    controls_implemented: int = 0
    total_controls: int = 0
    policies_approved: int = 0
    total_policies: int = 0
    evidence_verified: int = 0
    total_evidence: int = 0


class ControlStatusBreakdown(BaseModel):
    implemented: int = 0
    in_progress: int = 0
    not_implemented: int = 0
    not_applicable: int = 0
    total: int = 0


class PolicyStatusBreakdown(BaseModel):
    approved: int = 0
    review: int = 0
    draft: int = 0
    archived: int = 0
    total: int = 0


class EvidenceStatusBreakdown(BaseModel):
    verified: int = 0
    pending: int = 0
    expired: int = 0
    total: int = 0


class StatusBreakdowns(BaseModel):
    """The three status breakdowns the gap reporter consumes together."""

    controls: ControlStatusBreakdown = ControlStatusBreakdown()
    policies: PolicyStatusBreakdown = PolicyStatusBreakdown()
    evidence: EvidenceStatusBreakdown = EvidenceStatusBreakdown()


class FrameworkProgress(BaseModel):
    framework: str
    total: int
    implemented: int
    percentage: int
