"""JUnit XML formatter for CI/CD integration.

One testsuite per crew run, one testcase per task.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from xml.dom import minidom
from xml.etree import ElementTree as ET

from ..models.run import RunResult
from ..models.task import FailureKind, TaskStatus


def build_junit_tree(result: RunResult) -> ET.Element:
    testsuites = ET.Element("testsuites")
    testsuites.set("name", result.crew)
    testsuites.set("timestamp", (result.started_at or datetime.now()).strftime("%Y-%m-%dT%H:%M:%S"))

    testsuite = ET.SubElement(testsuites, "testsuite")
    testsuite.set("name", f"{result.crew} ({result.process.value})")
    testsuite.set("tests", str(result.total_tasks))

    failures = 0
    skipped = 0
    for r in result.results:
        testcase = ET.SubElement(testsuite, "testcase")
        testcase.set("name", r.name)
        testcase.set("classname", f"{result.crew}.{r.agent or 'unassigned'}")
        testcase.set("time", str(round(r.duration_seconds, 3)))

        if r.status is not TaskStatus.FAILED:
            continue

        if r.failure_kind is FailureKind.DEPENDENCY_FAILED:
            skipped += 1
            skip = ET.SubElement(testcase, "skipped")
            skip.set("message", r.error or "Dependency failed")
            continue

        failures += 1
        failure = ET.SubElement(testcase, "failure")
        kind = r.failure_kind.value if r.failure_kind else "execution_error"
        failure.set("type", kind)
        failure.set("message", (r.error or "").splitlines()[0] if r.error else kind)
        text_parts = [f"Attempts: {r.attempts}"]
        if r.agent:
            text_parts.append(f"Agent: {r.agent}")
        if r.error:
            text_parts.append(f"\nError:\n{r.error}")
        failure.text = "\n".join(text_parts)

    testsuite.set("failures", str(failures))
    testsuite.set("errors", "0")
    testsuite.set("skipped", str(skipped))

    testsuites.set("tests", str(result.total_tasks))
    testsuites.set("failures", str(failures))
    testsuites.set("errors", "0")
    if result.duration_seconds > 0:
        testsuites.set("time", str(round(result.duration_seconds, 2)))
    return testsuites


def export_junit_results(result: RunResult, output_path: Path) -> dict:
    """Export a run result as JUnit XML.

    Tasks blocked by a failed dependency are reported as skipped, so the
    failure count points at the tasks that actually broke.

    Returns:
        Dict with: path, total_tests, failures, skipped, passed.
    """
    tree = build_junit_tree(result)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    rough = ET.tostring(tree, encoding="unicode")
    dom = minidom.parseString(rough)
    output_path.write_bytes(dom.toprettyxml(indent="  ", encoding="UTF-8"))

    failures = int(tree.get("failures", "0"))
    skipped = int(tree.find("testsuite").get("skipped", "0"))
    return {
        "path": str(output_path),
        "total_tests": result.total_tasks,
        "failures": failures,
        "skipped": skipped,
        "passed": result.total_tasks - failures - skipped,
    }
