"""Shared fixtures for posture engine tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from posture.models.entities import (
    Article,
    Client,
    ClientControl,
    ClientPolicy,
    Control,
    ControlStatus,
    Evidence,
    EvidenceStatus,
    PolicyControlLink,
    PolicyStatus,
    Regulation,
    WizardQuestion,
)


def make_control(
    cc_id: int,
    status: ControlStatus = ControlStatus.NOT_IMPLEMENTED,
    framework: str | None = "ISO 27001",
    client_id: int = 1,
) -> ClientControl:
    return ClientControl(
        id=cc_id,
        client_id=client_id,
        control_id=100 + cc_id,
        status=status,
        control=Control(
            id=100 + cc_id,
            external_control_id=f"CTL-{cc_id}",
            name=f"Control {cc_id}",
            framework=framework,
            suggested_policies=[f"Policy for {cc_id}"],
        ),
    )


def make_policy(
    policy_id: int,
    name: str,
    status: PolicyStatus = PolicyStatus.DRAFT,
    client_id: int = 1,
) -> ClientPolicy:
    return ClientPolicy(id=policy_id, client_id=client_id, name=name, status=status)


def make_evidence(evidence_id: int, status: EvidenceStatus, client_id: int = 1) -> Evidence:
    return Evidence(id=evidence_id, client_id=client_id, title=f"Evidence {evidence_id}", status=status)


@pytest.fixture
def client() -> Client:
    return Client(id=1, name="Acme Corp", industry="Finance", target_compliance_score=90)


@pytest.fixture
def four_controls() -> list[ClientControl]:
    """C1..C4: two implemented, one in progress, one not implemented."""
    return [
        make_control(1, ControlStatus.IMPLEMENTED),
        make_control(2, ControlStatus.IMPLEMENTED),
        make_control(3, ControlStatus.IN_PROGRESS, framework="SOC 2"),
        make_control(4, ControlStatus.NOT_IMPLEMENTED, framework="SOC 2"),
    ]


@pytest.fixture
def two_policies() -> list[ClientPolicy]:
    return [
        make_policy(10, "Access Control Policy", PolicyStatus.APPROVED),
        make_policy(20, "Incident Response Policy", PolicyStatus.DRAFT),
    ]


@pytest.fixture
def three_links() -> list[PolicyControlLink]:
    """P1 covers C1 and C2; P2 covers C2."""
    return [
        PolicyControlLink(policy_id=10, control_id=1),
        PolicyControlLink(policy_id=10, control_id=2),
        PolicyControlLink(policy_id=20, control_id=2),
    ]


@pytest.fixture
def gdpr() -> Regulation:
    return Regulation(
        id="gdpr",
        name="GDPR",
        articles=[
            Article(id="art-5", numeric_id="5", title="Principles", mapped_controls=["AC-1", "AC-2"]),
            Article(
                id="art-32",
                numeric_id="32",
                title="Security of processing",
                mapped_controls={"ISO 27001": ["A.9.1"], "SOC 2": ["CC6.1"]},
            ),
            Article(id="art-99", numeric_id="99", title="Entry into force"),
        ],
        questions=[
            WizardQuestion(id="q1", text="Do you keep a processing register?", failure_guidance="Create a register"),
            WizardQuestion(id="q2", text="Have you appointed a DPO?", failure_guidance="Appoint a DPO"),
            WizardQuestion(id="q3", text="Do you encrypt personal data?", failure_guidance="Enable encryption"),
        ],
    )


SNAPSHOT_YAML = """\
clients:
  - id: 1
    name: Acme Corp
    industry: Finance
    target_compliance_score: 90
  - id: 2
    name: Empty Co
controls:
  - id: 101
    external_control_id: AC-1
    name: Access policy
    framework: ISO 27001
    suggested_policies: [Access Control Policy]
  - id: 102
    external_control_id: AC-2
    name: Account management
    framework: ISO 27001
  - id: 103
    external_control_id: CC6.1
    name: Logical access
    framework: SOC 2
  - id: 104
    external_control_id: IR-1
    name: Incident handling
    framework: SOC 2
client_controls:
  - {id: 1, client_id: 1, control_id: 101, status: implemented, owner: alice}
  - {id: 2, client_id: 1, control_id: 102, status: implemented}
  - {id: 3, client_id: 1, control_id: 103, status: in_progress}
  - {id: 4, client_id: 1, control_id: 104, status: not_implemented, owner: bob}
policies:
  - {id: 10, client_id: 1, name: Access Control Policy, status: approved}
  - {id: 20, client_id: 1, name: Incident Response Policy, status: draft}
  - {id: 30, client_id: 2, name: Other Tenant Policy, status: approved}
evidence:
  - {id: 1, client_id: 1, title: Access review, status: verified}
  - {id: 2, client_id: 1, title: Pen test, status: pending}
  - {id: 3, client_id: 1, title: Old audit, status: expired}
policy_control_links:
  - {policy_id: 10, control_id: 1}
  - {policy_id: 10, control_id: 2}
  - {policy_id: 20, control_id: 2}
  - {policy_id: 30, control_id: 3}
readiness_responses:
  - {client_id: 1, regulation_id: gdpr, question_id: q1, response: "yes"}
  - {client_id: 1, regulation_id: gdpr, question_id: q2, response: "no"}
  - {client_id: 2, regulation_id: gdpr, question_id: q1, response: "yes"}
risks:
  - {client_id: 1, linked_risks: 3, high_risk_count: 1, critical_risk_count: 0}
regulations:
  - id: nis2
    name: NIS2 Directive
    articles:
      - {id: art-21, title: Risk management, mapped_controls: [AC-1]}
"""

GDPR_YAML = """\
id: gdpr
name: GDPR
articles:
  - id: art-5
    title: Principles
    mapped_controls: [AC-1, AC-2]
  - id: art-32
    title: Security of processing
    mapped_controls:
      ISO 27001: [A.9.1]
      SOC 2: [CC6.1]
questions:
  - id: q1
    text: Do you keep a processing register?
    failure_guidance: Create a register
  - id: q2
    text: Have you appointed a DPO?
    failure_guidance: Appoint a DPO
  - id: q3
    text: Do you encrypt personal data?
    failure_guidance: Enable encryption
"""


@pytest.fixture
def regulations_dir(tmp_path: Path) -> Path:
    reg_dir = tmp_path / "regulations"
    reg_dir.mkdir()
    (reg_dir / "gdpr.yaml").write_text(GDPR_YAML, encoding="utf-8")
    return reg_dir


@pytest.fixture
def snapshot_file(tmp_path: Path, regulations_dir: Path) -> Path:
    """A snapshot export with a sibling regulations/ directory."""
    path = tmp_path / "snapshot.yaml"
    path.write_text(SNAPSHOT_YAML, encoding="utf-8")
    return path


@pytest.fixture
def control_factory():
    return make_control


@pytest.fixture
def policy_factory():
    return make_policy


@pytest.fixture
def evidence_factory():
    return make_evidence
