"""Tests for core/gaps.py."""

from __future__ import annotations

from posture.core.coverage import analyze_coverage
from posture.core.gaps import (
    MAINTAIN_POSTURE,
    build_gap_analysis,
    build_recommendations,
    collect_control_gaps,
    estimate_regulation_readiness,
    report_gaps,
)
from posture.core.readiness import assess_readiness
from posture.core.scoring import aggregate_scores, status_breakdowns
from posture.models.coverage import CoverageSnapshot
from posture.models.entities import (
    ClientReadinessResponse,
    ControlStatus,
    EvidenceStatus,
    PolicyStatus,
    RiskSummary,
)
from posture.models.gaps import ActionKind, EstimateSource, GapSeverity
from posture.models.scores import ComplianceScoreSnapshot, ScoreBand, StatusBreakdowns


def _inputs(controls, policies, links, evidence=()):
    coverage = analyze_coverage(controls, links, policies)
    score = aggregate_scores(controls, policies, list(evidence))
    breakdowns = status_breakdowns(controls, policies, list(evidence))
    return coverage, score, breakdowns


class TestReportGaps:
    def test_all_implemented_no_risks_is_empty(self, control_factory, two_policies, three_links):
        controls = [control_factory(i, ControlStatus.IMPLEMENTED) for i in (1, 2)]
        coverage, score, b = _inputs(controls, two_policies, three_links)
        risks = RiskSummary(linked_risks=2)
        assert report_gaps(coverage, score, b.controls, b.policies, risks) == []

    def test_no_risks_and_no_controls(self, two_policies):
        coverage, score, b = _inputs([], two_policies, [])
        alerts = report_gaps(coverage, score, b.controls, b.policies, RiskSummary())
        assert [(a.severity, a.action_kind) for a in alerts] == [
            (GapSeverity.INFO, ActionKind.LINK_RISK),
            (GapSeverity.INFO, ActionKind.LINK_CONTROL),
        ]

    def test_high_risk_without_controls_is_critical(self, two_policies):
        coverage, score, b = _inputs([], two_policies, [])
        risks = RiskSummary(linked_risks=1, high_risk_count=1)
        alerts = report_gaps(coverage, score, b.controls, b.policies, risks)
        assert alerts[-1].severity == GapSeverity.CRITICAL
        assert alerts[-1].message.startswith("1 high/critical risk(s)")

    def test_unimplemented_controls_warning(self, four_controls, two_policies, three_links):
        coverage, score, b = _inputs(four_controls, two_policies, three_links)
        alerts = report_gaps(coverage, score, b.controls, b.policies)
        assert len(alerts) == 1
        assert alerts[0].severity == GapSeverity.WARNING
        assert alerts[0].message == "1 of 4 controls not yet implemented"
        assert alerts[0].action_kind == ActionKind.REVIEW_CONTROLS

    def test_critical_risks_outnumber_implemented(self, four_controls, two_policies, three_links):
        coverage, score, b = _inputs(four_controls, two_policies, three_links)
        risks = RiskSummary(linked_risks=5, critical_risk_count=3)
        alerts = report_gaps(coverage, score, b.controls, b.policies, risks)
        assert alerts[-1].severity == GapSeverity.CRITICAL
        assert alerts[-1].message == "1 critical risk(s) without a mitigating control"

    def test_critical_risks_covered_by_implemented(self, four_controls, two_policies, three_links):
        coverage, score, b = _inputs(four_controls, two_policies, three_links)
        risks = RiskSummary(linked_risks=5, critical_risk_count=2)
        alerts = report_gaps(coverage, score, b.controls, b.policies, risks)
        assert all(a.severity != GapSeverity.CRITICAL for a in alerts)

    def test_rule_order_not_severity_order(self, two_policies):
        coverage, score, b = _inputs([], two_policies, [])
        risks = RiskSummary(linked_risks=0, high_risk_count=2, critical_risk_count=1)
        severities = [a.severity for a in report_gaps(coverage, score, b.controls, b.policies, risks)]
        assert severities == [
            GapSeverity.INFO,
            GapSeverity.INFO,
            GapSeverity.CRITICAL,
            GapSeverity.CRITICAL,
        ]

    def test_without_risk_summary_risk_rules_skipped(self, two_policies):
        coverage, score, b = _inputs([], two_policies, [])
        alerts = report_gaps(coverage, score, b.controls, b.policies)
        assert [a.action_kind for a in alerts] == [ActionKind.LINK_CONTROL]


class TestBuildRecommendations:
    def test_full_roadmap(self, four_controls, two_policies, three_links, evidence_factory):
        evidence = [
            evidence_factory(1, EvidenceStatus.PENDING),
            evidence_factory(2, EvidenceStatus.EXPIRED),
        ]
        coverage, score, b = _inputs(four_controls, two_policies, three_links, evidence)
        recs = build_recommendations(coverage, b, score.overall, target_score=90)
        assert recs[0].startswith("Map 2 unmapped controls")
        assert recs[1].startswith("Address 1 not-implemented controls")
        assert recs[2] == "Review and approve 1 draft policies."
        assert recs[3] == "Re-verify 1 expired evidence items."
        assert recs[4] == "Review 1 pending evidence items."
        assert f"{90 - score.overall}% gap" in recs[5]

    def test_nothing_to_do(self):
        recs = build_recommendations(CoverageSnapshot(), StatusBreakdowns(), 100)
        assert recs == [MAINTAIN_POSTURE]

    def test_target_already_met(self):
        recs = build_recommendations(CoverageSnapshot(), StatusBreakdowns(), 95, target_score=90)
        assert recs == [MAINTAIN_POSTURE]


class TestEstimateRegulationReadiness:
    def test_uses_questionnaire_score(self, gdpr):
        answers = [ClientReadinessResponse(client_id=1, regulation_id="gdpr", question_id="q1", response="yes")]
        readiness = assess_readiness(gdpr, answers)
        est = estimate_regulation_readiness(gdpr, readiness, ComplianceScoreSnapshot())
        assert est.estimated_readiness == 33
        assert est.source == EstimateSource.QUESTIONNAIRE
        assert est.articles_analyzed == 3

    def test_falls_back_to_control_implementation(self, gdpr):
        score = ComplianceScoreSnapshot(controls_implemented=3, total_controls=4)
        est = estimate_regulation_readiness(gdpr, None, score)
        assert est.estimated_readiness == 75
        assert est.source == EstimateSource.CONTROL_IMPLEMENTATION

    def test_deterministic(self, gdpr):
        score = ComplianceScoreSnapshot(controls_implemented=1, total_controls=3)
        first = estimate_regulation_readiness(gdpr, None, score)
        assert all(estimate_regulation_readiness(gdpr, None, score) == first for _ in range(5))


class TestControlGaps:
    def test_only_not_implemented(self, four_controls):
        gaps = collect_control_gaps(four_controls)
        assert [(g.control_id, g.framework) for g in gaps] == [("CTL-4", "SOC 2")]

    def test_missing_framework_is_general(self, control_factory):
        gaps = collect_control_gaps([control_factory(1, framework=None)])
        assert gaps[0].framework == "General"


class TestBuildGapAnalysis:
    def test_combines_everything(self, four_controls, two_policies, three_links, gdpr):
        coverage, score, b = _inputs(four_controls, two_policies, three_links)
        analysis = build_gap_analysis(
            coverage=coverage,
            score=score,
            breakdowns=b,
            controls=four_controls,
            regulations=[gdpr],
            risks=RiskSummary(linked_risks=1),
            target_score=90,
        )
        # controls 2/4, policies 1/2, evidence 0/0 -> 33
        assert score.overall == 33
        assert analysis.band == ScoreBand.CRITICAL
        assert len(analysis.alerts) == 1
        assert analysis.regulations[0].source == EstimateSource.CONTROL_IMPLEMENTATION
        assert analysis.regulations[0].estimated_readiness == 50
        assert len(analysis.critical_gaps) == 1

    def test_custom_bands(self, four_controls, two_policies, three_links):
        coverage, score, b = _inputs(four_controls, two_policies, three_links)
        analysis = build_gap_analysis(coverage, score, b, four_controls, bands={"at_risk": 30})
        assert analysis.band == ScoreBand.AT_RISK

    def test_policy_status_does_not_raise_alerts(self, control_factory, policy_factory):
        controls = [control_factory(1, ControlStatus.IMPLEMENTED)]
        policies = [policy_factory(1, "A", PolicyStatus.DRAFT)]
        coverage, score, b = _inputs(controls, policies, [])
        assert report_gaps(coverage, score, b.controls, b.policies) == []
