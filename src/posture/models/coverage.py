"""Control-to-policy coverage models."""

from __future__ import annotations

from pydantic import BaseModel


class PolicyCoverage(BaseModel):
    policy_id: int
    policy_name: str
    control_count: int


class UnmappedControl(BaseModel):
    control_id: str
    name: str
    suggested_policies: list[str] = []


class CoverageSnapshot(BaseModel):
    """Which client controls are linked to at least one policy."""

    total_controls: int = 0
    mapped_controls: int = 0
    unmapped_controls: int = 0
    coverage_percentage: int = 0
    policy_coverage: list[PolicyCoverage] = []
    unmapped_controls_list: list[UnmappedControl] = []
