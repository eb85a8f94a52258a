"""JUnit XML formatter for CI/CD integration.

Each regulation becomes a testsuite with one testcase per questionnaire
question; gap alerts form a final ``GAPS`` testsuite.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Optional
from xml.dom import minidom
from xml.etree import ElementTree as ET

from ..models.gaps import GapAlert
from ..models.readiness import ReadinessResult


def export_junit_results(
    readiness: list[ReadinessResult],
    alerts: list[GapAlert],
    output_path: Path,
    fail_on: Optional[list[str]] = None,
    client_name: str = "posture",
    generated_at: Optional[datetime] = None,
) -> dict:
    """Export readiness verdicts and gap alerts as JUnit XML.

    Args:
        readiness: Readiness results; non-compliant answers are failures and
            unanswered questions are skipped.
        alerts: Gap alerts; those whose severity is in ``fail_on`` are failures.
        output_path: Path to write the XML file.
        fail_on: Alert severities to mark as failures. Default: critical, warning.
        client_name: Name for the testsuites element.
        generated_at: Timestamp recorded on the testsuites element.

    Returns:
        Dict with: path, total_tests, failures, skipped, passed.
    """
    if fail_on is None:
        fail_on = ["critical", "warning"]
    fail_set = set(fail_on)

    testsuites = ET.Element("testsuites")
    testsuites.set("name", client_name)
    testsuites.set("timestamp", (generated_at or datetime.now()).strftime("%Y-%m-%dT%H:%M:%S"))

    total_tests = 0
    total_failures = 0
    total_skipped = 0

    for result in readiness:
        suite_name = result.regulation_id.upper()
        testsuite = ET.SubElement(testsuites, "testsuite")
        testsuite.set("name", suite_name)
        testsuite.set("tests", str(len(result.per_question)))

        suite_failures = 0
        suite_skipped = 0

        for verdict in result.per_question:
            total_tests += 1
            testcase = ET.SubElement(testsuite, "testcase")
            testcase.set("name", f"{verdict.question_id}: {verdict.text}")
            testcase.set("classname", suite_name)

            if verdict.compliant:
                continue
            if not verdict.answered:
                total_skipped += 1
                suite_skipped += 1
                skipped = ET.SubElement(testcase, "skipped")
                skipped.set("message", verdict.answer)
                continue

            total_failures += 1
            suite_failures += 1
            failure = ET.SubElement(testcase, "failure")
            failure.set("message", f"Response: {verdict.answer}")
            failure.set("type", "non_compliant")
            if verdict.guidance:
                failure.text = f"Remediation:\n{verdict.guidance}"

        testsuite.set("failures", str(suite_failures))
        testsuite.set("errors", "0")
        testsuite.set("skipped", str(suite_skipped))

    if alerts:
        testsuite = ET.SubElement(testsuites, "testsuite")
        testsuite.set("name", "GAPS")
        testsuite.set("tests", str(len(alerts)))
        suite_failures = 0

        for alert in alerts:
            total_tests += 1
            testcase = ET.SubElement(testsuite, "testcase")
            testcase.set("name", alert.message)
            testcase.set("classname", "GAPS")

            severity = alert.severity.value
            if severity in fail_set:
                total_failures += 1
                suite_failures += 1
                failure = ET.SubElement(testcase, "failure")
                failure.set("message", f"[{severity.upper()}] {alert.message}")
                failure.set("type", severity)
                failure.text = f"Action ({alert.action_kind.value}):\n{alert.recommended_action}"

        testsuite.set("failures", str(suite_failures))
        testsuite.set("errors", "0")
        testsuite.set("skipped", "0")

    testsuites.set("tests", str(total_tests))
    testsuites.set("failures", str(total_failures))
    testsuites.set("errors", "0")
    testsuites.set("skipped", str(total_skipped))

    output_path.parent.mkdir(parents=True, exist_ok=True)

    # Pretty-print XML
    rough = ET.tostring(testsuites, encoding="unicode")
    dom = minidom.parseString(rough)
    xml_str = dom.toprettyxml(indent="  ", encoding="UTF-8")
    output_path.write_bytes(xml_str)

    return {
        "path": str(output_path),
        "total_tests": total_tests,
        "failures": total_failures,
        "skipped": total_skipped,
        "passed": total_tests - total_failures - total_skipped,
    }
