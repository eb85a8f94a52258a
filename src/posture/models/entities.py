"""Entity snapshots supplied by the persistence layer."""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel


class ControlStatus(str, Enum):
    IMPLEMENTED = "implemented"
    IN_PROGRESS = "in_progress"
    NOT_IMPLEMENTED = "not_implemented"
    NOT_APPLICABLE = "not_applicable"


class PolicyStatus(str, Enum):
    DRAFT = "draft"
    REVIEW = "review"
    APPROVED = "approved"
    ARCHIVED = "archived"


class EvidenceStatus(str, Enum):
    VERIFIED = "verified"
    PENDING = "pending"
    EXPIRED = "expired"


class QuestionType(str, Enum):
    BOOLEAN = "boolean"
    SELECT = "select"
    SCALE = "scale"


class Client(BaseModel):
    id: int
    name: str
    industry: Optional[str] = None
    target_compliance_score: Optional[int] = None


class Control(BaseModel):
    """Framework-agnostic master control record."""

    id: int
    external_control_id: str
    name: str
    framework: Optional[str] = None
    description: str = ""
    category: Optional[str] = None
    suggested_policies: list[str] = []


class ClientControl(BaseModel):
    """A client's implementation record for one master control.

    ``control`` is the joined master record; the persistence layer always
    returns client controls joined with their control.
    """

    id: int
    client_id: int
    control_id: int
    status: ControlStatus = ControlStatus.NOT_IMPLEMENTED
    owner: Optional[str] = None
    control: Optional[Control] = None


class ClientPolicy(BaseModel):
    id: int
    client_id: int
    name: str
    status: PolicyStatus = PolicyStatus.DRAFT
    version: str = "1.0"


class Evidence(BaseModel):
    id: int
    client_id: int
    title: str
    status: EvidenceStatus = EvidenceStatus.PENDING
    collection_frequency: Optional[str] = None


class PolicyControlLink(BaseModel):
    """Many-to-many link between a client policy and a client control."""

    policy_id: int
    control_id: int


class SubArticle(BaseModel):
    id: str
    title: str
    description: str = ""


class Article(BaseModel):
    id: str
    numeric_id: str = ""
    title: str
    description: str = ""
    sub_articles: Optional[list[SubArticle]] = None
    # Either list[str] (legacy) or dict[str, list[str]]; interpreted only by
    # posture.mapping.resolver.
    mapped_controls: Any = None


class WizardQuestion(BaseModel):
    id: str
    text: str
    type: QuestionType = QuestionType.BOOLEAN
    related_articles: Optional[list[str]] = None
    failure_guidance: Optional[str] = None


class Regulation(BaseModel):
    id: str
    name: str
    description: str = ""
    articles: list[Article] = []
    questions: Optional[list[WizardQuestion]] = None


class ClientReadinessResponse(BaseModel):
    client_id: int
    regulation_id: str
    question_id: str
    response: str


class RiskSummary(BaseModel):
    """Counts supplied by an external risk subsystem, when one is present."""

    linked_risks: int = 0
    high_risk_count: int = 0
    critical_risk_count: int = 0
