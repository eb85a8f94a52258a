"""Gap analysis output models."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel

from .scores import ScoreBand


class GapSeverity(str, Enum):
    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"


class ActionKind(str, Enum):
    LINK_RISK = "link_risk"
    LINK_CONTROL = "link_control"
    REVIEW_CONTROLS = "review_controls"


class GapAlert(BaseModel):
    severity: GapSeverity
    message: str
    recommended_action: str
    action_kind: ActionKind


class EstimateSource(str, Enum):
    QUESTIONNAIRE = "questionnaire"
    CONTROL_IMPLEMENTATION = "control_implementation"


class RegulationEstimate(BaseModel):
    regulation_id: str
    name: str
    articles_analyzed: int
    estimated_readiness: int
    source: EstimateSource


class ControlGap(BaseModel):
    """A client control that is not yet implemented."""

    control_id: str
    name: str
    framework: str
    owner: Optional[str] = None


class GapAnalysis(BaseModel):
    band: ScoreBand
    alerts: list[GapAlert] = []
    recommendations: list[str] = []
    regulations: list[RegulationEstimate] = []
    critical_gaps: list[ControlGap] = []
