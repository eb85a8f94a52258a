"""Control-to-policy coverage analysis.

A control counts as mapped when at least one policy links to it, whatever
that policy's approval status. Draft policies count: a link records the
intent to cover a control.
"""

from __future__ import annotations

import logging
from collections import defaultdict

from ..models.coverage import CoverageSnapshot, PolicyCoverage, UnmappedControl
from ..models.entities import ClientControl, ClientPolicy, PolicyControlLink
from ..utils.numbers import percentage

logger = logging.getLogger(__name__)


def _unmapped_entry(cc: ClientControl) -> UnmappedControl:
    if cc.control is None:
        return UnmappedControl(control_id="N/A", name="Unknown Control")
    return UnmappedControl(
        control_id=cc.control.external_control_id,
        name=cc.control.name,
        suggested_policies=list(cc.control.suggested_policies),
    )


def analyze_coverage(
    client_controls: list[ClientControl],
    links: list[PolicyControlLink],
    policies: list[ClientPolicy],
) -> CoverageSnapshot:
    """Compute which client controls are covered by at least one policy.

    Links that reference a control or policy outside the given lists are
    ignored, so ``mapped + unmapped == total`` always holds.
    """
    known_controls = {cc.id for cc in client_controls}
    known_policies = {p.id for p in policies}

    mapped_ids: set[int] = set()
    controls_by_policy: dict[int, set[int]] = defaultdict(set)
    ignored = 0

    for link in links:
        if link.control_id not in known_controls or link.policy_id not in known_policies:
            ignored += 1
            continue
        mapped_ids.add(link.control_id)
        controls_by_policy[link.policy_id].add(link.control_id)

    if ignored:
        logger.debug("Ignored %d link(s) to controls or policies outside the snapshot", ignored)

    policy_coverage = [
        PolicyCoverage(
            policy_id=p.id,
            policy_name=p.name,
            control_count=len(controls_by_policy.get(p.id, ())),
        )
        for p in policies
    ]
    # Reports paginate the top entries, so the order must be total
    policy_coverage.sort(key=lambda pc: (-pc.control_count, pc.policy_name, pc.policy_id))

    unmapped = [_unmapped_entry(cc) for cc in client_controls if cc.id not in mapped_ids]

    total = len(client_controls)
    mapped = total - len(unmapped)

    return CoverageSnapshot(
        total_controls=total,
        mapped_controls=mapped,
        unmapped_controls=len(unmapped),
        coverage_percentage=percentage(mapped, total),
        policy_coverage=policy_coverage,
        unmapped_controls_list=unmapped,
    )
