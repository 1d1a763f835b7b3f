"""Tests for formatters/junit.py."""

from __future__ import annotations

from pathlib import Path
from xml.etree import ElementTree as ET

from conductor.formatters.junit import build_junit_tree, export_junit_results
from conductor.models.run import ProcessMode, RunResult, TaskResult
from conductor.models.task import FailureKind, TaskStatus


def _make_result() -> RunResult:
    return RunResult(
        crew="research_crew",
        process=ProcessMode.CONCURRENT,
        total_tasks=3,
        completed_tasks=1,
        failed_tasks=2,
        success_rate=100 / 3,
        duration_seconds=1.5,
        results=[
            TaskResult(name="research", status=TaskStatus.COMPLETED, agent="researcher",
                       result="Findings", attempts=1, duration_seconds=0.4),
            TaskResult(name="analysis", status=TaskStatus.FAILED, agent="analyst",
                       error="Task 'analysis' failed on attempt 3: boom\ntrace line",
                       failure_kind=FailureKind.EXECUTION_ERROR, attempts=3),
            TaskResult(name="report", status=TaskStatus.FAILED, agent="writer",
                       error="Dependency failed: analysis",
                       failure_kind=FailureKind.DEPENDENCY_FAILED),
        ],
    )


class TestBuildJunitTree:
    def test_one_testcase_per_task(self):
        tree = build_junit_tree(_make_result())
        cases = tree.findall(".//testcase")
        assert [c.get("name") for c in cases] == ["research", "analysis", "report"]
        assert cases[0].get("classname") == "research_crew.researcher"

    def test_failure_type_is_failure_kind(self):
        tree = build_junit_tree(_make_result())
        failure = tree.find(".//testcase[@name='analysis']/failure")
        assert failure.get("type") == "execution_error"
        assert failure.get("message") == "Task 'analysis' failed on attempt 3: boom"
        assert "Attempts: 3" in failure.text

    def test_dependency_failure_is_skipped(self):
        tree = build_junit_tree(_make_result())
        case = tree.find(".//testcase[@name='report']")
        assert case.find("failure") is None
        assert case.find("skipped").get("message") == "Dependency failed: analysis"

    def test_counts(self):
        tree = build_junit_tree(_make_result())
        suite = tree.find("testsuite")
        assert suite.get("tests") == "3"
        assert suite.get("failures") == "1"
        assert suite.get("skipped") == "1"
        assert tree.get("time") == "1.5"


class TestExportJunitResults:
    def test_creates_xml_file(self, tmp_path: Path):
        out = tmp_path / "reports" / "results.xml"
        summary = export_junit_results(_make_result(), out)
        assert out.exists()
        assert summary == {
            "path": str(out),
            "total_tests": 3,
            "failures": 1,
            "skipped": 1,
            "passed": 1,
        }
        root = ET.parse(out).getroot()
        assert root.tag == "testsuites"
        assert root.get("name") == "research_crew"

    def test_all_passing(self, tmp_path: Path):
        result = RunResult(
            crew="c",
            process=ProcessMode.SEQUENTIAL,
            total_tasks=1,
            completed_tasks=1,
            results=[TaskResult(name="only", status=TaskStatus.COMPLETED)],
        )
        summary = export_junit_results(result, tmp_path / "ok.xml")
        assert summary["failures"] == 0
        assert summary["passed"] == 1
