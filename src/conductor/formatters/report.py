"""Markdown and JSON run reports."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

from .. import __version__
from ..models.run import RunResult
from ..models.task import TaskStatus

STATUS_LABELS = {
    TaskStatus.COMPLETED: "PASS",
    TaskStatus.FAILED: "FAIL",
    TaskStatus.RUNNING: "RUNNING",
    TaskStatus.PENDING: "PENDING",
}


def _one_line(text: str, limit: int = 80) -> str:
    flat = " ".join(text.split())
    return flat if len(flat) <= limit else flat[: limit - 3] + "..."


def generate_run_report(result: RunResult) -> str:
    """Render a RunResult as a Markdown report."""
    timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")

    lines: list[str] = []
    lines.append(f"# Crew Run Report: {result.crew}")
    lines.append("")
    lines.append(f"**Process:** {result.process.value}")
    lines.append(f"**Max concurrency:** {result.max_concurrency}")
    if result.manager:
        lines.append(f"**Manager:** {result.manager}")
    lines.append(f"**Duration:** {round(result.duration_seconds, 1)}s")
    lines.append(f"**Success rate:** {round(result.success_rate, 1)}%")
    lines.append("")

    lines.append("## Summary")
    lines.append("")
    lines.append("| Metric | Count |")
    lines.append("|--------|-------|")
    lines.append(f"| Total     | {result.total_tasks} |")
    lines.append(f"| Completed | {result.completed_tasks} |")
    lines.append(f"| Failed    | {result.failed_tasks} |")
    lines.append(f"| Waves     | {result.waves} |")
    lines.append("")

    lines.append("## Tasks")
    lines.append("")
    lines.append("| Task | Status | Agent | Wave | Attempts | Duration |")
    lines.append("|------|--------|-------|------|----------|----------|")
    for r in result.results:
        agent = r.agent or "-"
        if r.delegated:
            agent += " (delegated)"
        wave = r.phase if r.phase is not None else "-"
        lines.append(
            f"| {r.name} | {STATUS_LABELS.get(r.status, r.status.value)} | {agent} | "
            f"{wave} | {r.attempts} | {round(r.duration_seconds, 1)}s |"
        )
    lines.append("")

    failures = [r for r in result.results if r.status is TaskStatus.FAILED]
    if failures:
        lines.append("## Failures")
        lines.append("")
        for r in failures:
            kind = r.failure_kind.value if r.failure_kind else "unknown"
            lines.append(f"### {r.name} [{kind}]")
            if r.error:
                lines.append(f"\n{r.error}")
            lines.append("")

    completed = [r for r in result.results if r.status is TaskStatus.COMPLETED and r.result]
    if completed:
        lines.append("## Outputs")
        lines.append("")
        for r in completed:
            lines.append(f"- **{r.name}:** {_one_line(r.result)}")
        lines.append("")

    lines.append("---")
    lines.append(f"*Generated by Crew Conductor v{__version__} at {timestamp}*")

    return "\n".join(lines)


def export_run_json(result: RunResult, output_path: Path) -> Path:
    """Write the run result to a JSON file (UTF-8, no BOM)."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(result.model_dump_json(indent=2), encoding="utf-8")
    return output_path
