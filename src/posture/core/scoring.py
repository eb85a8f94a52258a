"""Compliance score aggregation.

The overall score weighs three independent ratios equally:

- implemented / total client controls
- approved / total client policies
- verified / total evidence items

Each ratio is 0 when its denominator is 0. The overall score is always
recomputed from the snapshot; no cached or externally supplied value is read.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Optional

from ..models.entities import (
    ClientControl,
    ClientPolicy,
    ControlStatus,
    Evidence,
    EvidenceStatus,
    PolicyStatus,
)
from ..models.scores import (
    ComplianceScoreSnapshot,
    ControlStatusBreakdown,
    EvidenceStatusBreakdown,
    FrameworkProgress,
    PolicyStatusBreakdown,
    ScoreBand,
    StatusBreakdowns,
)
from ..utils.numbers import percentage, ratio, round_half_up

DEFAULT_BANDS: dict[str, int] = {"on_track": 80, "at_risk": 50}


def aggregate_scores(
    controls: list[ClientControl],
    policies: list[ClientPolicy],
    evidence: list[Evidence],
) -> ComplianceScoreSnapshot:
    """Combine control, policy and evidence ratios into one score."""
    implemented = sum(1 for c in controls if c.status == ControlStatus.IMPLEMENTED)
    approved = sum(1 for p in policies if p.status == PolicyStatus.APPROVED)
    verified = sum(1 for e in evidence if e.status == EvidenceStatus.VERIFIED)

    combined = (
        ratio(implemented, len(controls))
        + ratio(approved, len(policies))
        + ratio(verified, len(evidence))
    )
    overall = max(0, min(100, round_half_up(combined / 3 * 100)))

    return ComplianceScoreSnapshot(
        overall=overall,
        controls_implemented=implemented,
        total_controls=len(controls),
        policies_approved=approved,
        total_policies=len(policies),
        evidence_verified=verified,
        total_evidence=len(evidence),
    )


def score_band(overall: int, thresholds: Optional[dict[str, int]] = None) -> ScoreBand:
    """Map an overall score to its presentation band.

    - ON_TRACK: overall >= 80
    - AT_RISK: 50 <= overall < 80
    - CRITICAL: everything below
    """
    bands = {**DEFAULT_BANDS, **(thresholds or {})}
    if overall >= bands["on_track"]:
        return ScoreBand.ON_TRACK
    if overall >= bands["at_risk"]:
        return ScoreBand.AT_RISK
    return ScoreBand.CRITICAL


def control_status_breakdown(controls: list[ClientControl]) -> ControlStatusBreakdown:
    counts = {status: 0 for status in ControlStatus}
    for c in controls:
        counts[c.status] += 1
    return ControlStatusBreakdown(
        implemented=counts[ControlStatus.IMPLEMENTED],
        in_progress=counts[ControlStatus.IN_PROGRESS],
        not_implemented=counts[ControlStatus.NOT_IMPLEMENTED],
        not_applicable=counts[ControlStatus.NOT_APPLICABLE],
        total=len(controls),
    )


def policy_status_breakdown(policies: list[ClientPolicy]) -> PolicyStatusBreakdown:
    counts = {status: 0 for status in PolicyStatus}
    for p in policies:
        counts[p.status] += 1
    return PolicyStatusBreakdown(
        approved=counts[PolicyStatus.APPROVED],
        review=counts[PolicyStatus.REVIEW],
        draft=counts[PolicyStatus.DRAFT],
        archived=counts[PolicyStatus.ARCHIVED],
        total=len(policies),
    )


def evidence_status_breakdown(evidence: list[Evidence]) -> EvidenceStatusBreakdown:
    counts = {status: 0 for status in EvidenceStatus}
    for e in evidence:
        counts[e.status] += 1
    return EvidenceStatusBreakdown(
        verified=counts[EvidenceStatus.VERIFIED],
        pending=counts[EvidenceStatus.PENDING],
        expired=counts[EvidenceStatus.EXPIRED],
        total=len(evidence),
    )


def status_breakdowns(
    controls: list[ClientControl],
    policies: list[ClientPolicy],
    evidence: list[Evidence],
) -> StatusBreakdowns:
    return StatusBreakdowns(
        controls=control_status_breakdown(controls),
        policies=policy_status_breakdown(policies),
        evidence=evidence_status_breakdown(evidence),
    )


def framework_progress(controls: list[ClientControl]) -> list[FrameworkProgress]:
    """Implementation progress per framework, sorted by framework name."""
    groups: dict[str, list[ClientControl]] = defaultdict(list)
    for cc in controls:
        framework = (cc.control.framework if cc.control else None) or "Unknown"
        groups[framework].append(cc)

    result: list[FrameworkProgress] = []
    for framework, members in sorted(groups.items()):
        implemented = sum(1 for cc in members if cc.status == ControlStatus.IMPLEMENTED)
        result.append(FrameworkProgress(
            framework=framework,
            total=len(members),
            implemented=implemented,
            percentage=percentage(implemented, len(members)),
        ))
    return result
