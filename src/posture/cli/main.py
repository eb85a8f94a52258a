"""posture - compliance posture scoring and gap analysis CLI.

Reads a YAML export of a tenant's compliance data and prints scores,
coverage, readiness and gap analysis.
"""

from __future__ import annotations

import logging
import sys
from functools import wraps
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from ..errors import ConfigError, NoQuestionsError, NotFoundError

console = Console()
err_console = Console(stderr=True)

EXIT_INPUT_ERROR = 3

BAND_COLORS = {"on_track": "green", "at_risk": "yellow", "critical": "red"}
SEVERITY_COLORS = {"critical": "red", "warning": "yellow", "info": "cyan"}


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _handle_errors(f):
    """Turn user-facing engine errors into a red message and exit code 3."""

    @wraps(f)
    def wrapper(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except (NotFoundError, NoQuestionsError, ConfigError) as e:
            err_console.print(f"  [red]ERROR[/red] {escape(e.message)}")
            sys.exit(EXIT_INPUT_ERROR)

    return wrapper


def _snapshot_options(f):
    f = click.option("--regulations-dir", "-r", type=click.Path(file_okay=False),
                     help="Directory of regulation YAML files")(f)
    f = click.option("--config", "config_path", type=click.Path(exists=True, dir_okay=False),
                     help="Config file (default: posture.yaml beside the snapshot)")(f)
    f = click.option("--client", "-c", "client_id", type=int, required=True, help="Client ID")(f)
    f = click.option("--snapshot", "-s", type=click.Path(exists=True, dir_okay=False),
                     required=True, help="Snapshot YAML file")(f)
    return f


def _load(snapshot: str, config_path: str | None, regulations_dir: str | None):
    """Build the config and snapshot source for a command."""
    from ..core.config import find_config_file, get_effective_config
    from ..core.engine import YamlSnapshotSource

    snapshot_path = Path(snapshot)
    cfg_path = Path(config_path) if config_path else find_config_file(snapshot_path)
    config = get_effective_config(cfg_path)

    if regulations_dir:
        reg_dir = Path(regulations_dir)
    else:
        reg_dir = snapshot_path.parent / config["regulations"]["directory"]

    return config, YamlSnapshotSource(snapshot_path, reg_dir)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging")
@click.version_option(package_name="posture-engine")
def posture_cli(verbose: bool) -> None:
    """Posture - compliance scoring, coverage, readiness and gap analysis."""
    _configure_logging(verbose)


@posture_cli.command()
@_snapshot_options
@click.option("--output-format", "-f", type=click.Choice(["table", "json"]), default="table")
@click.option("--ci", is_flag=True, help="CI mode: exit with the score band's exit code")
@_handle_errors
def score(snapshot, client_id, config_path, regulations_dir, output_format, ci) -> None:
    """Composite compliance score for a client."""
    from ..core.engine import compute_compliance_score, fetch_snapshot
    from ..core.report import get_exit_code
    from ..core.scoring import score_band

    config, source = _load(snapshot, config_path, regulations_dir)
    result = compute_compliance_score(fetch_snapshot(source, client_id))
    band = score_band(result.overall, config["scoring"]["bands"])

    if output_format == "json":
        click.echo(result.model_dump_json(indent=2))
    else:
        color = BAND_COLORS[band.value]
        console.print(f"  Overall: [{color}]{result.overall}% ({band.value})[/{color}]")
        console.print(f"  Controls implemented: {result.controls_implemented}/{result.total_controls}")
        console.print(f"  Policies approved:    {result.policies_approved}/{result.total_policies}")
        console.print(f"  Evidence verified:    {result.evidence_verified}/{result.total_evidence}")

    if ci:
        sys.exit(get_exit_code(band, config))


@posture_cli.command()
@_snapshot_options
@click.option("--output-format", "-f", type=click.Choice(["table", "json"]), default="table")
@_handle_errors
def coverage(snapshot, client_id, config_path, regulations_dir, output_format) -> None:
    """Control-to-policy mapping coverage for a client."""
    from ..core.engine import compute_coverage, fetch_snapshot

    config, source = _load(snapshot, config_path, regulations_dir)
    result = compute_coverage(fetch_snapshot(source, client_id))

    if output_format == "json":
        click.echo(result.model_dump_json(indent=2))
        return

    console.print(
        f"  Coverage: {result.coverage_percentage}% "
        f"({result.mapped_controls} of {result.total_controls} controls mapped)"
    )
    top = config["report"]["top_policies"]
    if result.policy_coverage:
        table = Table(title="Policy coverage")
        table.add_column("Policy")
        table.add_column("Controls", justify="right")
        for pc in result.policy_coverage[:top]:
            table.add_row(pc.policy_name, str(pc.control_count))
        console.print(table)

    limit = config["report"]["unmapped_display_limit"]
    if result.unmapped_controls_list:
        console.print(f"  [red]{result.unmapped_controls} unmapped control(s)[/red]")
        for uc in result.unmapped_controls_list[:limit]:
            console.print(f"    - {uc.control_id} {uc.name}")
        hidden = len(result.unmapped_controls_list) - limit
        if hidden > 0:
            console.print(f"    [dim]... and {hidden} more[/dim]")


@posture_cli.command()
@_snapshot_options
@click.argument("regulation_id")
@click.option("--output-format", "-f", type=click.Choice(["table", "json", "junit"]), default="table")
@click.option("--output", "-o", type=click.Path(dir_okay=False), help="Output file (junit)")
@_handle_errors
def readiness(snapshot, client_id, config_path, regulations_dir, regulation_id,
              output_format, output) -> None:
    """Questionnaire readiness of a client against one regulation."""
    from ..core.engine import compute_readiness, fetch_snapshot, load_regulation
    from ..formatters.junit import export_junit_results

    _, source = _load(snapshot, config_path, regulations_dir)
    snap = fetch_snapshot(source, client_id)
    regulation = load_regulation(source, regulation_id)
    answers = source.get_client_readiness_responses(client_id, regulation_id)
    result = compute_readiness(regulation, answers)

    if output_format == "json":
        click.echo(result.model_dump_json(indent=2, exclude_none=True))
        return
    if output_format == "junit":
        out = Path(output or "posture-readiness.xml")
        summary = export_junit_results([result], [], out, client_name=snap.client.name)
        console.print(f"  Wrote {summary['total_tests']} test(s) to {summary['path']}")
        return

    console.print(f"  [bold]{regulation.name}[/bold] readiness: {result.score}%")
    table = Table()
    table.add_column("#", justify="right")
    table.add_column("Question")
    table.add_column("Answer")
    table.add_column("Guidance")
    for i, v in enumerate(result.per_question, 1):
        color = "green" if v.compliant else ("dim" if not v.answered else "red")
        table.add_row(str(i), v.text, f"[{color}]{v.answer}[/{color}]", v.guidance or "")
    console.print(table)


@posture_cli.command()
@_snapshot_options
@click.option("--regulation", "regulations", multiple=True, help="Regulation ID (repeatable)")
@click.option("--output-format", "-f", type=click.Choice(["table", "json", "junit"]), default="table")
@click.option("--output", "-o", type=click.Path(dir_okay=False), help="Output file (junit)")
@click.option("--ci", is_flag=True, help="CI mode: exit with the score band's exit code")
@_handle_errors
def gaps(snapshot, client_id, config_path, regulations_dir, regulations,
         output_format, output, ci) -> None:
    """Prioritized gap alerts and roadmap for a client."""
    from ..core.config import get_selected_regulations
    from ..core.engine import assess_client
    from ..core.report import get_exit_code
    from ..formatters.junit import export_junit_results

    config, source = _load(snapshot, config_path, regulations_dir)
    selected = get_selected_regulations(config, add_regulations=list(regulations))
    assessment = assess_client(source, client_id, selected, config)
    analysis = assessment.gaps

    if output_format == "json":
        click.echo(analysis.model_dump_json(indent=2, exclude_none=True))
    elif output_format == "junit":
        out = Path(output or "posture-gaps.xml")
        summary = export_junit_results(
            assessment.readiness, analysis.alerts, out, client_name=assessment.client.name
        )
        console.print(f"  Wrote {summary['total_tests']} test(s) to {summary['path']}")
    else:
        if not analysis.alerts:
            console.print("  [green]No gaps detected[/green]")
        for alert in analysis.alerts:
            color = SEVERITY_COLORS[alert.severity.value]
            console.print(f"  [{color}]{alert.severity.value.upper()}[/{color}] {alert.message}")
            console.print(f"    [dim]{alert.recommended_action}[/dim]")
        for est in analysis.regulations:
            console.print(f"  {est.name}: estimated readiness {est.estimated_readiness}%")
        console.print()
        console.print("  [bold]Roadmap[/bold]")
        for i, rec in enumerate(analysis.recommendations, 1):
            console.print(f"  {i}. {rec}")

    if ci:
        sys.exit(get_exit_code(analysis.band, config))


@posture_cli.command()
@_snapshot_options
@click.option("--regulation", "regulations", multiple=True, help="Regulation ID (repeatable)")
@click.option("--output", "-o", type=click.Path(dir_okay=False), help="Write the report to a file")
@click.option("--ci", is_flag=True, help="CI mode: exit with the score band's exit code")
@_handle_errors
def report(snapshot, client_id, config_path, regulations_dir, regulations, output, ci) -> None:
    """Markdown compliance readiness report for a client."""
    from ..core.config import get_selected_regulations
    from ..core.engine import assess_client
    from ..core.report import generate_posture_report, get_exit_code

    config, source = _load(snapshot, config_path, regulations_dir)
    selected = get_selected_regulations(config, add_regulations=list(regulations))
    assessment = assess_client(source, client_id, selected, config)
    content = generate_posture_report(assessment, config)

    if output:
        out = Path(output)
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(content, encoding="utf-8")
        console.print(f"  [green]Report written[/green] {out}")
    else:
        click.echo(content)

    if ci:
        sys.exit(get_exit_code(assessment.gaps.band, config))


@posture_cli.command("regulations")
@click.option("--regulations-dir", "-r", type=click.Path(exists=True, file_okay=False), required=True)
@_handle_errors
def list_regulations(regulations_dir: str) -> None:
    """List regulations and their framework mapping coverage."""
    from ..mapping.loader import load_regulations
    from ..mapping.resolver import resolve_regulation

    regulations = load_regulations(Path(regulations_dir))
    if not regulations:
        console.print("  [yellow]No regulations found[/yellow]")
        return

    table = Table(title="Regulations")
    table.add_column("ID")
    table.add_column("Name")
    table.add_column("Questions", justify="right")
    table.add_column("Mapped articles", justify="right")
    table.add_column("Frameworks")
    for regulation in regulations:
        mapping = resolve_regulation(regulation)
        table.add_row(
            regulation.id,
            regulation.name,
            str(len(regulation.questions or [])),
            f"{mapping.mapped_articles}/{mapping.total_articles} ({mapping.coverage_percentage}%)",
            ", ".join(mapping.framework_article_counts),
        )
        for warning in mapping.warnings:
            err_console.print(f"  [yellow]WARN[/yellow] {regulation.id}: {escape(warning)}")
    console.print(table)


def main() -> None:
    posture_cli()


if __name__ == "__main__":
    main()
