"""Markdown compliance readiness report and CI exit codes."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from .. import __version__
from ..models.assessment import PostureAssessment
from ..models.scores import ScoreBand
from ..utils.numbers import percentage
from .config import DEFAULT_CONFIG

BAND_LABELS = {
    ScoreBand.ON_TRACK: "ON TRACK",
    ScoreBand.AT_RISK: "AT RISK",
    ScoreBand.CRITICAL: "CRITICAL",
}


def get_exit_code(band: ScoreBand, config: Optional[dict] = None) -> int:
    """Map a score band to a CI exit code."""
    codes = ((config or DEFAULT_CONFIG).get("ci") or {}).get("exit_codes") or {}
    defaults = DEFAULT_CONFIG["ci"]["exit_codes"]
    return int(codes.get(band.value, defaults[band.value]))


def _share(part: int, total: int) -> str:
    return f"{part} ({percentage(part, total)}%)"


def generate_posture_report(
    assessment: PostureAssessment,
    config: Optional[dict] = None,
    generated_at: Optional[datetime] = None,
) -> str:
    """Render an assessment as a Markdown compliance readiness report."""
    report_cfg = (config or DEFAULT_CONFIG).get("report") or DEFAULT_CONFIG["report"]
    top_policies = int(report_cfg.get("top_policies", 10))
    unmapped_limit = int(report_cfg.get("unmapped_display_limit", 15))
    gap_limit = int(report_cfg.get("critical_gap_limit", 10))

    client = assessment.client
    score = assessment.score
    coverage = assessment.coverage
    gaps = assessment.gaps
    timestamp = (generated_at or datetime.now()).strftime("%Y-%m-%d %H:%M:%S")

    lines: list[str] = []
    lines.append("# Compliance Readiness Report")
    lines.append("")
    lines.append(f"**Client:** {client.name}")
    if client.industry:
        lines.append(f"**Industry:** {client.industry}")
    lines.append(f"**Date:** {timestamp}")
    lines.append(f"**Overall Score:** {score.overall}% ({BAND_LABELS[gaps.band]})")
    target = assessment.target_compliance_score
    if target:
        gap = target - score.overall
        if gap > 0:
            lines.append(f"**Target:** {target}% ({gap}% gap to target)")
        else:
            lines.append(f"**Target:** {target}% (achieved)")
    lines.append("")

    # Executive summary
    lines.append("## Executive Summary")
    lines.append("")
    lines.append("| Metric | Value |")
    lines.append("|--------|-------|")
    lines.append(f"| Controls implemented | {score.controls_implemented}/{score.total_controls} |")
    lines.append(f"| Policies approved | {score.policies_approved}/{score.total_policies} |")
    lines.append(f"| Evidence verified | {score.evidence_verified}/{score.total_evidence} |")
    lines.append(f"| Policy mapping coverage | {coverage.coverage_percentage}% |")
    lines.append("")

    # Coverage
    lines.append("## Control-Policy Mapping Coverage")
    lines.append("")
    lines.append(
        f"{coverage.coverage_percentage}% ({coverage.mapped_controls} of "
        f"{coverage.total_controls} controls mapped to policies)"
    )
    lines.append("")
    if coverage.policy_coverage:
        lines.append("| Policy | Controls |")
        lines.append("|--------|----------|")
        for pc in coverage.policy_coverage[:top_policies]:
            lines.append(f"| {pc.policy_name} | {pc.control_count} |")
        if len(coverage.policy_coverage) > top_policies:
            lines.append("")
            lines.append(f"... and {len(coverage.policy_coverage) - top_policies} more policies")
        lines.append("")

    if coverage.unmapped_controls > 0:
        lines.append("### Gap Analysis: Unmapped Controls")
        lines.append("")
        lines.append(
            f"{coverage.unmapped_controls} controls are not mapped to any policy."
        )
        lines.append("")
        for uc in coverage.unmapped_controls_list[:unmapped_limit]:
            lines.append(f"- {uc.control_id} - {uc.name}")
        if len(coverage.unmapped_controls_list) > unmapped_limit:
            lines.append(
                f"- ... and {len(coverage.unmapped_controls_list) - unmapped_limit} "
                f"more unmapped controls"
            )
        lines.append("")
    else:
        lines.append("All controls are mapped to policies.")
        lines.append("")

    # Status breakdowns
    controls = assessment.breakdowns.controls
    policies = assessment.breakdowns.policies
    evidence = assessment.breakdowns.evidence
    lines.append("## Status Breakdown")
    lines.append("")
    lines.append("| Area | Status | Count |")
    lines.append("|------|--------|-------|")
    lines.append(f"| Controls | Implemented | {_share(controls.implemented, controls.total)} |")
    lines.append(f"| Controls | In Progress | {_share(controls.in_progress, controls.total)} |")
    lines.append(f"| Controls | Not Implemented | {_share(controls.not_implemented, controls.total)} |")
    lines.append(f"| Controls | Not Applicable | {_share(controls.not_applicable, controls.total)} |")
    lines.append(f"| Policies | Approved | {_share(policies.approved, policies.total)} |")
    lines.append(f"| Policies | In Review | {_share(policies.review, policies.total)} |")
    lines.append(f"| Policies | Draft | {_share(policies.draft, policies.total)} |")
    lines.append(f"| Policies | Archived | {policies.archived} |")
    lines.append(f"| Evidence | Verified | {_share(evidence.verified, evidence.total)} |")
    lines.append(f"| Evidence | Pending Review | {_share(evidence.pending, evidence.total)} |")
    lines.append(f"| Evidence | Expired | {_share(evidence.expired, evidence.total)} |")
    lines.append("")

    if assessment.frameworks:
        lines.append("## Framework Progress")
        lines.append("")
        lines.append("| Framework | Implemented | Total | Progress |")
        lines.append("|-----------|-------------|-------|----------|")
        for fp in assessment.frameworks:
            lines.append(f"| {fp.framework} | {fp.implemented} | {fp.total} | {fp.percentage}% |")
        lines.append("")

    # Regulations
    if gaps.regulations:
        lines.append("## Regulation Breakdown")
        lines.append("")
        for est in gaps.regulations:
            lines.append(f"### {est.name}")
            lines.append(f"**Estimated Readiness:** {est.estimated_readiness}%")
            lines.append(f"**Articles Analyzed:** {est.articles_analyzed}")
            lines.append("")

    for result in assessment.readiness:
        lines.append(f"## {result.regulation_name or result.regulation_id} Readiness Assessment")
        lines.append("")
        lines.append(f"**Readiness Score:** {result.score}% ({result.answered}/{result.total_questions} answered)")
        lines.append("")
        for i, verdict in enumerate(result.per_question, 1):
            mark = "PASS" if verdict.compliant else ("UNASSESSED" if not verdict.answered else "FAIL")
            lines.append(f"{i}. {verdict.text or verdict.question_id} [{mark}]")
            lines.append(f"   Response: {verdict.answer.upper()}")
            if verdict.guidance:
                lines.append(f"   Recommendation: {verdict.guidance}")
        lines.append("")

    # Alerts and critical gaps
    if gaps.alerts:
        lines.append("## Gap Alerts")
        lines.append("")
        for alert in gaps.alerts:
            lines.append(f"- **{alert.severity.value.upper()}**: {alert.message} - {alert.recommended_action}")
        lines.append("")

    lines.append("## Critical Gaps (Not Implemented)")
    lines.append("")
    if not gaps.critical_gaps:
        lines.append("No critical gaps found.")
    else:
        for cg in gaps.critical_gaps[:gap_limit]:
            lines.append(f"- [{cg.control_id}] {cg.name} ({cg.framework})")
        if len(gaps.critical_gaps) > gap_limit:
            lines.append("- ... and more.")
    lines.append("")

    # Roadmap
    lines.append("## Compliance Roadmap")
    lines.append("")
    for i, rec in enumerate(gaps.recommendations, 1):
        lines.append(f"{i}. {rec}")
    lines.append("")

    lines.append("---")
    lines.append(f"*Generated by posture-engine v{__version__} at {timestamp}*")

    return "\n".join(lines)
