"""Command-line interface for Renoplan."""

from __future__ import annotations

from datetime import date
from enum import Enum
from pathlib import Path
from typing import Annotated

import typer

from .exceptions import RenoplanError
from .gantt import GanttRenderer, wrap_markdown
from .loader import discover_config, load_modifications, load_request
from .logger import setup_logger
from .models import TimelineConstraints, TimelineOptimizationRequest
from .report import format_text, result_to_json
from .timeline import OptimizationResult, TimelineOptimizationService, create_advisor
from .unified_config import UnifiedConfig

app = typer.Typer(
    name="renoplan",
    help="Renovation timeline optimization - critical path, parallel work and dated schedules",
    add_completion=False,
)


class OutputFormat(str, Enum):
    """Output formats for optimization results."""

    TEXT = "text"
    JSON = "json"
    MERMAID = "mermaid"


@app.callback()
def main_callback(
    ctx: typer.Context,
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose",
            "-v",
            help="Verbosity level: 0=silent (default), 1=show changes, 2=show all checks, 3=debug",
            min=0,
            max=3,
        ),
    ] = 0,
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to unified config file (default: renoplan_config.yaml)",
        ),
    ] = None,
) -> None:
    """Global options for renoplan commands."""
    setup_logger(verbose)
    ctx.obj = config


def _parse_date_option(date_str: str | None, option_name: str) -> date | None:
    """Parse a date string from CLI option.

    Args:
        date_str: Date string in YYYY-MM-DD format or None
        option_name: Name of the option for error messages

    Returns:
        Parsed date object or None if date_str is None
    """
    if date_str is None:
        return None

    try:
        return date.fromisoformat(date_str)
    except ValueError:
        typer.echo(
            f"Error: Invalid {option_name} '{date_str}'. Use YYYY-MM-DD format.",
            err=True,
        )
        raise typer.Exit(1) from None


def _with_start_date(
    request: TimelineOptimizationRequest, start_date: date | None
) -> TimelineOptimizationRequest:
    """Override the request's available start date."""
    if start_date is None:
        return request
    constraints = request.constraints or TimelineConstraints()
    return request.model_copy(
        update={"constraints": constraints.model_copy(update={"available_start_date": start_date})}
    )


def _build_service(config: UnifiedConfig) -> TimelineOptimizationService:
    advisor = create_advisor(config.advisor, max_timeout=config.engine.advisor_timeout_seconds)
    return TimelineOptimizationService(config.engine, advisor=advisor)


def _write_output(content: str, output_path: Path | None, what: str) -> None:
    """Print output or write it to a file."""
    if output_path:
        output_path.write_text(content, encoding="utf-8")
        typer.echo(f"{what} written to {output_path}")
    else:
        typer.echo(content)


def _render(
    result: OptimizationResult,
    output_format: OutputFormat,
    config: UnifiedConfig,
    output_path: Path | None,
) -> str:
    if output_format == OutputFormat.JSON:
        return result_to_json(result)
    if output_format == OutputFormat.MERMAID:
        mermaid = GanttRenderer(config.gantt).generate_mermaid(result.gantt_chart)
        if output_path is not None and output_path.suffix.lower() == ".md":
            return wrap_markdown(mermaid)
        return mermaid
    return format_text(result)


def _report_warnings(result: OptimizationResult) -> None:
    if result.warnings:
        typer.echo("\nWarnings:", err=True)
        for warning in result.warnings:
            typer.echo(f"  - {warning}", err=True)


@app.command()
def optimize(
    ctx: typer.Context,
    request_file: Annotated[
        Path, typer.Argument(help="Path to the optimization request (YAML or JSON)")
    ],
    *,
    start_date: Annotated[
        str | None,
        typer.Option("--start-date", help="Project start date (YYYY-MM-DD), overrides the request"),
    ] = None,
    output_format: Annotated[
        OutputFormat, typer.Option("--format", "-f", help="Output format")
    ] = OutputFormat.TEXT,
    output: Annotated[Path | None, typer.Option("--output", "-o", help="Output file path")] = None,
) -> None:
    """Optimize a renovation task list into a dated schedule."""
    start = _parse_date_option(start_date, "--start-date")
    try:
        config = discover_config(request_file, ctx.obj)
        request = _with_start_date(load_request(request_file), start)
        result = _build_service(config).optimize(request)
    except RenoplanError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None

    _write_output(_render(result, output_format, config, output), output, "Result")
    _report_warnings(result)


@app.command()
def regenerate(
    ctx: typer.Context,
    request_file: Annotated[
        Path, typer.Argument(help="Path to the original optimization request (YAML or JSON)")
    ],
    modifications_file: Annotated[
        Path, typer.Argument(help="Path to the modifications (YAML or JSON)")
    ],
    *,
    output_format: Annotated[
        OutputFormat, typer.Option("--format", "-f", help="Output format")
    ] = OutputFormat.TEXT,
    output: Annotated[Path | None, typer.Option("--output", "-o", help="Output file path")] = None,
) -> None:
    """Apply task edits and constraint/preference changes, then re-optimize."""
    try:
        config = discover_config(request_file, ctx.obj)
        request = load_request(request_file)
        modifications = load_modifications(modifications_file)
        result = _build_service(config).regenerate(request, modifications)
    except RenoplanError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None

    _write_output(_render(result, output_format, config, output), output, "Result")
    _report_warnings(result)


@app.command()
def gantt(
    ctx: typer.Context,
    request_file: Annotated[
        Path, typer.Argument(help="Path to the optimization request (YAML or JSON)")
    ],
    *,
    title: Annotated[str | None, typer.Option("--title", help="Chart title")] = None,
    start_date: Annotated[
        str | None,
        typer.Option("--start-date", help="Project start date (YYYY-MM-DD), overrides the request"),
    ] = None,
    output: Annotated[Path | None, typer.Option("--output", "-o", help="Output file path")] = None,
) -> None:
    """Generate a Mermaid Gantt chart of the optimized schedule."""
    start = _parse_date_option(start_date, "--start-date")
    try:
        config = discover_config(request_file, ctx.obj)
        request = _with_start_date(load_request(request_file), start)
        result = _build_service(config).optimize(request)
    except RenoplanError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None

    mermaid = GanttRenderer(config.gantt).generate_mermaid(result.gantt_chart, title=title)
    if output is not None and output.suffix.lower() == ".md":
        mermaid = wrap_markdown(mermaid)
    _write_output(mermaid, output, "Gantt chart")
    _report_warnings(result)


def main() -> int:
    """Main entry point."""
    # Typer handles sys.exit() internally
    app()
    return 0


if __name__ == "__main__":
    main()
