"""Crew Conductor (conductor) - run crews defined in YAML files."""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import click
from rich.console import Console

console = Console()

EXIT_OK = 0
EXIT_TASKS_FAILED = 1
EXIT_INVALID_CREW = 11
EXIT_RUNTIME_INIT = 13

SAMPLE_CREW = """\
# Crew Conductor crew definition
name: research_crew
process: concurrent        # sequential | concurrent | hierarchical
max_concurrency: 2

runtime:
  provider: mock           # anthropic | openai | ollama | mock

agents:
  - name: researcher
    role: Market Research Specialist
    goal: Conduct thorough market analysis and competitive research
    tools: [web_search]
  - name: writer
    role: Content Writer
    goal: Turn research into clear written reports

tasks:
  - name: market_research
    description: Research the market for AI coding assistants
    expected_output: A list of competitors with strengths and weaknesses
    agent: researcher
    async: true
  - name: trend_scan
    description: Identify emerging trends in developer tooling
    agent: researcher
    async: true
  - name: report
    description: Write a market report from the research
    expected_output: A two page report
    agent: writer
    context: [market_research, trend_scan]
"""


def _render(result, output_format: str) -> str:
    if output_format == "json":
        return result.model_dump_json(indent=2)
    if output_format == "junit":
        from xml.etree import ElementTree as ET

        from ..formatters.junit import build_junit_tree

        return ET.tostring(build_junit_tree(result), encoding="unicode")
    from ..formatters.report import generate_run_report

    return generate_run_report(result)


@click.group()
@click.version_option(package_name="crew-conductor", prog_name="conductor")
def conductor_cli() -> None:
    """Crew Conductor - dependency-aware execution for agent crews."""


@conductor_cli.command()
@click.argument("crew_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--process", type=click.Choice(["sequential", "concurrent", "hierarchical"]), help="Process override")
@click.option("--max-concurrency", "-c", type=click.IntRange(min=1), help="Worker pool size for this run")
@click.option("--concurrent", is_flag=True, help="Schedule a sequential crew concurrently for this run")
@click.option("--dry-run", is_flag=True, help="Use the mock runtime (no API calls)")
@click.option("--verbose", "-v", is_flag=True, help="Print per-task progress")
@click.option("--ai-provider", type=click.Choice(["anthropic", "openai", "ollama", "mock"]))
@click.option("--ai-model", type=str, help="Model override")
@click.option("--output-format", "-f", type=click.Choice(["markdown", "json", "junit"]), default="markdown")
@click.option("--output", "-o", type=click.Path(dir_okay=False, path_type=Path), help="Write the report to a file")
def run(
    crew_file: Path,
    process: str | None,
    max_concurrency: int | None,
    concurrent: bool,
    dry_run: bool,
    verbose: bool,
    ai_provider: str | None,
    ai_model: str | None,
    output_format: str,
    output: Path | None,
) -> None:
    """Run every task in CREW_FILE and report the outcome."""
    from ..core.config import get_effective_config
    from ..core.errors import CrewError
    from ..core.loader import build_crew
    from ..runtimes.base import get_agent_runtime

    cli_overrides: dict = {}
    if process:
        cli_overrides.setdefault("crew", {})["process"] = process
    if verbose:
        cli_overrides.setdefault("crew", {})["verbose"] = True
    if dry_run:
        cli_overrides.setdefault("runtime", {})["provider"] = "mock"
    elif ai_provider:
        cli_overrides.setdefault("runtime", {})["provider"] = ai_provider

    try:
        config = get_effective_config(crew_file, cli_overrides=cli_overrides or None)
        provider = config["runtime"].get("provider", "anthropic")
        # validate the provider name up front, not inside the first task
        if provider not in ("anthropic", "openai", "ollama", "mock"):
            console.print(f"  [red]ERROR[/red] Unknown runtime provider: {provider}")
            sys.exit(EXIT_RUNTIME_INIT)

        crew = build_crew(
            config,
            runtime_factory=lambda agent: get_agent_runtime(config, agent, model_override=ai_model),
        )
        crew.validate()
    except CrewError as e:
        console.print(f"  [red]ERROR[/red] {e}")
        sys.exit(EXIT_INVALID_CREW)

    console.print()
    console.print(f"  [bold cyan]CREW CONDUCTOR[/bold cyan] {crew.name}")
    console.print(f"  Process:  [white]{crew.process.value}[/white]")
    console.print(f"  Agents:   [white]{', '.join(a.name for a in crew.agents)}[/white]")
    console.print(f"  Runtime:  [white]{provider}[/white]")
    if dry_run:
        console.print("  Mode:     [yellow]DRY RUN[/yellow]")
    console.print()

    try:
        result = asyncio.run(crew.execute(concurrent=concurrent or None, max_concurrency=max_concurrency))
    except CrewError as e:
        console.print(f"  [red]ERROR[/red] {e}")
        sys.exit(EXIT_INVALID_CREW)

    if output_format == "junit" and output:
        from ..formatters.junit import export_junit_results

        junit = export_junit_results(result, output)
        console.print(
            f"  [green]OK[/green] JUnit XML: {junit['total_tests']} tests, "
            f"{junit['failures']} failures, written to {output}"
        )
    else:
        text = _render(result, output_format)
        if output:
            output.parent.mkdir(parents=True, exist_ok=True)
            output.write_text(text, encoding="utf-8")
            console.print(f"  [green]OK[/green] Report written to {output}")
        else:
            click.echo(text)

    color = "green" if result.succeeded else "red"
    console.print(
        f"\n  [{color}]{result.completed_tasks}/{result.total_tasks} tasks completed "
        f"({round(result.success_rate, 1)}%)[/{color}]"
    )
    sys.exit(EXIT_OK if result.succeeded else EXIT_TASKS_FAILED)


@conductor_cli.command()
@click.argument("crew_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def validate(crew_file: Path) -> None:
    """Check CREW_FILE and print its dependency phases."""
    from ..core.config import get_effective_config
    from ..core.errors import CrewError
    from ..core.loader import build_crew

    try:
        crew = build_crew(get_effective_config(crew_file))
        phases = crew.plan()
    except CrewError as e:
        console.print(f"  [red]INVALID[/red] {e}")
        sys.exit(EXIT_INVALID_CREW)

    console.print(
        f"  [green]OK[/green] {crew.name}: {len(crew.tasks)} tasks, "
        f"{len(crew.agents)} agents, {crew.process.value} process"
    )
    for i, phase in enumerate(phases, start=1):
        console.print(f"  Phase {i}: {', '.join(phase)}")


@conductor_cli.command()
@click.argument("path", type=click.Path(path_type=Path), default=Path("crew.yaml"))
@click.option("--force", is_flag=True, help="Overwrite an existing file")
def init(path: Path, force: bool) -> None:
    """Write a sample crew definition to PATH."""
    if path.exists() and not force:
        console.print(f"  [yellow]WARN[/yellow] {path} already exists (use --force to overwrite)")
        sys.exit(EXIT_INVALID_CREW)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(SAMPLE_CREW, encoding="utf-8")
    console.print(f"  [green]Initialized[/green] {path}")


def main() -> None:
    conductor_cli()


if __name__ == "__main__":
    main()
