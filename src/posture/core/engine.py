"""Posture engine entry points.

Snapshot-fetching collaborators are passed in explicitly. The engine itself
performs no I/O: a snapshot is fetched once, then coverage, scoring and
readiness run independently over it and the gap reporter joins their output.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional, Protocol, TypeVar, runtime_checkable

import yaml
from pydantic import BaseModel, ValidationError

from ..errors import ConfigError, NoQuestionsError, NotFoundError
from ..mapping.loader import get_regulation_by_id
from ..models.assessment import ClientSnapshot, PostureAssessment
from ..models.coverage import CoverageSnapshot
from ..models.entities import (
    Client,
    ClientControl,
    ClientPolicy,
    ClientReadinessResponse,
    Control,
    Evidence,
    PolicyControlLink,
    Regulation,
    RiskSummary,
)
from ..models.gaps import GapAlert
from ..models.readiness import ReadinessResult
from ..models.scores import ComplianceScoreSnapshot, StatusBreakdowns
from .coverage import analyze_coverage
from .gaps import build_gap_analysis, report_gaps
from .readiness import assess_readiness
from .scoring import aggregate_scores, framework_progress, status_breakdowns

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


@runtime_checkable
class SnapshotSource(Protocol):
    """Read-only queries the engine needs from the persistence layer."""

    def get_client(self, client_id: int) -> Optional[Client]: ...

    def get_client_controls(self, client_id: int) -> list[ClientControl]: ...

    def get_client_policies(self, client_id: int) -> list[ClientPolicy]: ...

    def get_evidence(self, client_id: int) -> list[Evidence]: ...

    def get_policy_control_links(self, client_id: int) -> list[PolicyControlLink]: ...

    def get_client_readiness_responses(
        self, client_id: int, regulation_id: str
    ) -> list[ClientReadinessResponse]: ...

    def get_regulation(self, regulation_id: str) -> Optional[Regulation]: ...

    def get_risk_summary(self, client_id: int) -> Optional[RiskSummary]: ...


def fetch_snapshot(source: SnapshotSource, client_id: int) -> ClientSnapshot:
    """Fetch everything the engine reads for a client in one pass."""
    client = source.get_client(client_id)
    if client is None:
        raise NotFoundError("Client", client_id)

    return ClientSnapshot(
        client=client,
        controls=source.get_client_controls(client_id),
        policies=source.get_client_policies(client_id),
        evidence=source.get_evidence(client_id),
        links=source.get_policy_control_links(client_id),
        risks=source.get_risk_summary(client_id),
    )


def load_regulation(source: SnapshotSource, regulation_id: str) -> Regulation:
    regulation = source.get_regulation(regulation_id)
    if regulation is None:
        raise NotFoundError("Regulation", regulation_id)
    return regulation


def compute_compliance_score(snapshot: ClientSnapshot) -> ComplianceScoreSnapshot:
    return aggregate_scores(snapshot.controls, snapshot.policies, snapshot.evidence)


def compute_coverage(snapshot: ClientSnapshot) -> CoverageSnapshot:
    return analyze_coverage(snapshot.controls, snapshot.links, snapshot.policies)


def compute_readiness(
    regulation: Regulation,
    answers: list[ClientReadinessResponse],
) -> ReadinessResult:
    return assess_readiness(regulation, answers)


def compute_gaps(
    coverage: CoverageSnapshot,
    score: ComplianceScoreSnapshot,
    breakdowns: StatusBreakdowns,
    risks: Optional[RiskSummary] = None,
) -> list[GapAlert]:
    return report_gaps(coverage, score, breakdowns.controls, breakdowns.policies, risks)


def assess_client(
    source: SnapshotSource,
    client_id: int,
    regulation_ids: tuple[str, ...] | list[str] = (),
    config: Optional[dict] = None,
) -> PostureAssessment:
    """Run the full assessment for one client.

    Regulations without a questionnaire are listed in
    ``unassessed_regulations``; their gap-analysis estimate falls back to
    control implementation.

    Raises:
        NotFoundError: the client or a requested regulation does not exist.
    """
    config = config or {}
    snapshot = fetch_snapshot(source, client_id)

    score = compute_compliance_score(snapshot)
    coverage = compute_coverage(snapshot)
    breakdowns = status_breakdowns(snapshot.controls, snapshot.policies, snapshot.evidence)

    regulations: list[Regulation] = []
    readiness: dict[str, ReadinessResult] = {}
    unassessed: list[str] = []
    for regulation_id in regulation_ids:
        regulation = load_regulation(source, regulation_id)
        regulations.append(regulation)
        answers = source.get_client_readiness_responses(client_id, regulation_id)
        try:
            readiness[regulation_id] = compute_readiness(regulation, answers)
        except NoQuestionsError:
            logger.info("Regulation %s has no questionnaire; readiness not assessed", regulation_id)
            unassessed.append(regulation_id)

    target = snapshot.client.target_compliance_score
    if target is None:
        target = (config.get("client") or {}).get("target_compliance_score")

    gaps = build_gap_analysis(
        coverage=coverage,
        score=score,
        breakdowns=breakdowns,
        controls=snapshot.controls,
        regulations=regulations,
        readiness=readiness,
        risks=snapshot.risks,
        target_score=target,
        bands=(config.get("scoring") or {}).get("bands"),
    )

    return PostureAssessment(
        client=snapshot.client,
        score=score,
        coverage=coverage,
        breakdowns=breakdowns,
        frameworks=framework_progress(snapshot.controls),
        readiness=[readiness[r.id] for r in regulations if r.id in readiness],
        unassessed_regulations=unassessed,
        gaps=gaps,
        target_compliance_score=target,
    )


class YamlSnapshotSource:
    """Snapshot source backed by a single YAML export of the compliance data.

    Expected top-level sections: ``clients``, ``controls``,
    ``client_controls``, ``policies``, ``evidence``, ``policy_control_links``,
    ``readiness_responses``, ``risks`` and optionally inline ``regulations``.
    Regulations not found inline are looked up in ``regulations_dir``.

    Rows that are not mappings or fail model validation raise ``ConfigError``
    naming the section and row index.
    """

    def __init__(self, snapshot_path: Path, regulations_dir: Optional[Path] = None):
        self.path = snapshot_path
        self.regulations_dir = regulations_dir
        try:
            data = yaml.safe_load(snapshot_path.read_text(encoding="utf-8-sig")) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Cannot read snapshot file {snapshot_path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"Snapshot file {snapshot_path} must contain a mapping")
        self.data = data

        self._controls = {c.id: c for c in self._parse("controls", Control)}

    def _rows(self, name: str) -> list[tuple[int, dict]]:
        section = self.data.get(name) or []
        if not isinstance(section, list):
            raise ConfigError(
                f"Section '{name}' in {self.path} must be a list",
                {"section": name},
            )
        for index, row in enumerate(section):
            if not isinstance(row, dict):
                raise ConfigError(
                    f"Row {index} of section '{name}' in {self.path} must be a mapping",
                    {"section": name, "row": index},
                )
        return list(enumerate(section))

    def _validate(self, name: str, index: int, row: dict, model: type[M]) -> M:
        try:
            return model.model_validate(row)
        except ValidationError as e:
            raise ConfigError(
                f"Invalid row {index} in section '{name}' of {self.path}: {e}",
                {"section": name, "row": index},
            ) from e

    def _parse(self, name: str, model: type[M], **match: Any) -> list[M]:
        return [
            self._validate(name, index, row, model)
            for index, row in self._rows(name)
            if all(row.get(key) == value for key, value in match.items())
        ]

    def get_client(self, client_id: int) -> Optional[Client]:
        clients = self._parse("clients", Client, id=client_id)
        return clients[0] if clients else None

    def get_client_controls(self, client_id: int) -> list[ClientControl]:
        result = self._parse("client_controls", ClientControl, client_id=client_id)
        for cc in result:
            if cc.control is None:
                cc.control = self._controls.get(cc.control_id)
        return result

    def get_client_policies(self, client_id: int) -> list[ClientPolicy]:
        return self._parse("policies", ClientPolicy, client_id=client_id)

    def get_evidence(self, client_id: int) -> list[Evidence]:
        return self._parse("evidence", Evidence, client_id=client_id)

    def get_policy_control_links(self, client_id: int) -> list[PolicyControlLink]:
        policy_ids = {p.id for p in self.get_client_policies(client_id)}
        links = self._parse("policy_control_links", PolicyControlLink)
        return [link for link in links if link.policy_id in policy_ids]

    def get_client_readiness_responses(
        self, client_id: int, regulation_id: str
    ) -> list[ClientReadinessResponse]:
        return self._parse(
            "readiness_responses",
            ClientReadinessResponse,
            client_id=client_id,
            regulation_id=regulation_id,
        )

    def get_regulation(self, regulation_id: str) -> Optional[Regulation]:
        inline = self._parse("regulations", Regulation, id=regulation_id)
        if inline:
            return inline[0]
        if self.regulations_dir is None:
            return None
        return get_regulation_by_id(regulation_id, self.regulations_dir)

    def get_risk_summary(self, client_id: int) -> Optional[RiskSummary]:
        risks = self._parse("risks", RiskSummary, client_id=client_id)
        return risks[0] if risks else None
