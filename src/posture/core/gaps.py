"""Gap classification, ranking and roadmap recommendations.

Alert rules are evaluated in a fixed order, and that order (not severity) is
the output order:

1. INFO: no risks linked / no controls at all
2. CRITICAL: high-severity risks with zero linked controls
3. WARNING: controls not yet implemented
4. CRITICAL: critical risks outnumber implemented (mitigating) controls

An empty list means no gaps were detected. Failures raise instead.
"""

from __future__ import annotations

from typing import Optional

from ..models.coverage import CoverageSnapshot
from ..models.entities import ClientControl, ControlStatus, Regulation, RiskSummary
from ..models.gaps import (
    ActionKind,
    ControlGap,
    EstimateSource,
    GapAlert,
    GapAnalysis,
    GapSeverity,
    RegulationEstimate,
)
from ..models.readiness import ReadinessResult
from ..models.scores import (
    ComplianceScoreSnapshot,
    ControlStatusBreakdown,
    PolicyStatusBreakdown,
    StatusBreakdowns,
)
from ..utils.numbers import percentage
from .scoring import score_band

MAINTAIN_POSTURE = "Maintain current compliance posture and continue regular reviews."


def report_gaps(
    coverage: CoverageSnapshot,
    score: ComplianceScoreSnapshot,
    control_breakdown: ControlStatusBreakdown,
    policy_breakdown: PolicyStatusBreakdown,
    risks: Optional[RiskSummary] = None,
) -> list[GapAlert]:
    """Classify the client's gaps into ordered alerts.

    ``risks`` comes from an external risk subsystem; without it the
    risk-based rules are skipped.
    """
    alerts: list[GapAlert] = []
    no_controls = coverage.total_controls == 0

    # 1. Nothing linked
    if risks is not None and risks.linked_risks == 0:
        alerts.append(GapAlert(
            severity=GapSeverity.INFO,
            message="No risks linked",
            recommended_action="Consider linking relevant risks to assess policy coverage",
            action_kind=ActionKind.LINK_RISK,
        ))
    if no_controls:
        alerts.append(GapAlert(
            severity=GapSeverity.INFO,
            message="No controls linked",
            recommended_action="Link controls to demonstrate how policies are enforced",
            action_kind=ActionKind.LINK_CONTROL,
        ))

    # 2. High risks with no controls at all
    if risks is not None and risks.high_risk_count > 0 and no_controls:
        alerts.append(GapAlert(
            severity=GapSeverity.CRITICAL,
            message=f"{risks.high_risk_count} high/critical risk(s) with no linked controls",
            recommended_action="Urgent: link mitigating controls to address high-risk exposures",
            action_kind=ActionKind.LINK_CONTROL,
        ))

    # 3. Unimplemented controls
    if control_breakdown.not_implemented > 0:
        alerts.append(GapAlert(
            severity=GapSeverity.WARNING,
            message=(
                f"{control_breakdown.not_implemented} of {control_breakdown.total} "
                f"controls not yet implemented"
            ),
            recommended_action="Review control implementation status",
            action_kind=ActionKind.REVIEW_CONTROLS,
        ))

    # 4. Critical risks without a mitigating control
    if risks is not None and risks.critical_risk_count > 0:
        unmitigated = risks.critical_risk_count - score.controls_implemented
        if unmitigated > 0:
            alerts.append(GapAlert(
                severity=GapSeverity.CRITICAL,
                message=f"{unmitigated} critical risk(s) without a mitigating control",
                recommended_action="Immediate attention required for critical risks",
                action_kind=ActionKind.LINK_CONTROL,
            ))

    return alerts


def build_recommendations(
    coverage: CoverageSnapshot,
    breakdowns: StatusBreakdowns,
    overall: int,
    target_score: Optional[int] = None,
) -> list[str]:
    """Build the ordered roadmap list that closes a compliance report."""
    controls = breakdowns.controls
    policies = breakdowns.policies
    evidence = breakdowns.evidence
    recommendations: list[str] = []

    if coverage.unmapped_controls > 0:
        recommendations.append(
            f"Map {coverage.unmapped_controls} unmapped controls to appropriate "
            f"policies to improve coverage."
        )
    if controls.not_implemented > 0:
        recommendations.append(
            f"Address {controls.not_implemented} not-implemented controls to "
            f"improve compliance posture."
        )
    if policies.draft > 0:
        recommendations.append(f"Review and approve {policies.draft} draft policies.")
    if evidence.expired > 0:
        recommendations.append(f"Re-verify {evidence.expired} expired evidence items.")
    if evidence.pending > 0:
        recommendations.append(f"Review {evidence.pending} pending evidence items.")
    if target_score and overall < target_score:
        recommendations.append(
            f"Focus on closing the {target_score - overall}% gap to reach "
            f"target compliance score."
        )

    if not recommendations:
        recommendations.append(MAINTAIN_POSTURE)
    return recommendations


def estimate_regulation_readiness(
    regulation: Regulation,
    readiness: Optional[ReadinessResult],
    score: ComplianceScoreSnapshot,
) -> RegulationEstimate:
    """Estimate a regulation's readiness for the batch gap-analysis report.

    Uses the questionnaire score when the client has one for this
    regulation, otherwise the share of implemented controls.
    """
    if readiness is not None:
        value = readiness.score
        source = EstimateSource.QUESTIONNAIRE
    else:
        value = percentage(score.controls_implemented, score.total_controls)
        source = EstimateSource.CONTROL_IMPLEMENTATION

    return RegulationEstimate(
        regulation_id=regulation.id,
        name=regulation.name,
        articles_analyzed=len(regulation.articles),
        estimated_readiness=value,
        source=source,
    )


def collect_control_gaps(controls: list[ClientControl]) -> list[ControlGap]:
    """Every not-implemented control, in input order."""
    gaps: list[ControlGap] = []
    for cc in controls:
        if cc.status != ControlStatus.NOT_IMPLEMENTED:
            continue
        ctrl = cc.control
        gaps.append(ControlGap(
            control_id=ctrl.external_control_id if ctrl else "N/A",
            name=ctrl.name if ctrl else "Unknown Control",
            framework=(ctrl.framework if ctrl else None) or "General",
            owner=cc.owner,
        ))
    return gaps


def build_gap_analysis(
    coverage: CoverageSnapshot,
    score: ComplianceScoreSnapshot,
    breakdowns: StatusBreakdowns,
    controls: list[ClientControl],
    regulations: Optional[list[Regulation]] = None,
    readiness: Optional[dict[str, ReadinessResult]] = None,
    risks: Optional[RiskSummary] = None,
    target_score: Optional[int] = None,
    bands: Optional[dict[str, int]] = None,
) -> GapAnalysis:
    """Merge coverage, scoring and readiness output into one gap analysis."""
    readiness = readiness or {}
    return GapAnalysis(
        band=score_band(score.overall, bands),
        alerts=report_gaps(coverage, score, breakdowns.controls, breakdowns.policies, risks),
        recommendations=build_recommendations(coverage, breakdowns, score.overall, target_score),
        regulations=[
            estimate_regulation_readiness(reg, readiness.get(reg.id), score)
            for reg in regulations or []
        ],
        critical_gaps=collect_control_gaps(controls),
    )
