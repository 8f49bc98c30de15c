"""Command-line interface.

    php-insight analyze PATH [--output FILE] [--exclude a,b] [--workers N]
                             [--analyzers a,b] [--config FILE] [--linters]
                             [--verbose] [--quiet]
"""

import json
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from . import __version__
from .config import load_config
from .core.aggregator import sort_findings
from .core.pipeline import AnalysisPipeline
from .exceptions import PhpInsightError
from .logging_config import setup_logging
from .models import AnalysisResult, Severity

app = typer.Typer(
    name="php-insight",
    help="PHP Insight - static analysis and duplication detection for PHP code",
    add_completion=False,
    rich_markup_mode="rich",
)

console = Console()

SEVERITY_STYLES = {
    Severity.CRITICAL: "bold red",
    Severity.MAJOR: "yellow",
    Severity.MINOR: "cyan",
    Severity.INFO: "dim",
}

MAX_SUMMARY_TYPES = 15


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"php-insight {__version__}")
        raise typer.Exit()


@app.callback()
def callback(
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show the version and exit",
    ),
) -> None:
    """PHP Insight - static analysis and duplication detection for PHP code."""


def _split_csv(value: Optional[str]) -> Optional[list[str]]:
    if value is None:
        return None
    return [item.strip() for item in value.split(",") if item.strip()]


@app.command()
def analyze(
    path: Path = typer.Argument(
        ...,
        help="Project root to analyze",
        exists=True,
        file_okay=False,
        dir_okay=True,
        readable=True,
    ),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Write the JSON report to this file (default: stdout)"
    ),
    exclude: Optional[str] = typer.Option(
        None, "--exclude", help="Comma-separated directory names to skip"
    ),
    workers: Optional[int] = typer.Option(
        None, "--workers", "-w", min=1, help="Files analyzed concurrently"
    ),
    analyzers: Optional[str] = typer.Option(
        None, "--analyzers", "-a", help="Comma-separated analyzer names to run (default: all)"
    ),
    config: Optional[Path] = typer.Option(
        None, "--config", "-c", help="TOML configuration file", exists=True, dir_okay=False
    ),
    linters: bool = typer.Option(False, "--linters", help="Also run PHPCS and PHPMD"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Only show errors"),
) -> None:
    """Analyze PHP files under PATH and emit a JSON report."""
    setup_logging(verbose=verbose, quiet=quiet)

    try:
        settings = load_config(
            config_file=config,
            exclude_dirs=_split_csv(exclude),
            workers=workers,
            analyzers=_split_csv(analyzers),
            enable_linters=True if linters else None,
            verbose=verbose,
            quiet=quiet,
        )
        pipeline = AnalysisPipeline(settings)
        if quiet:
            result = pipeline.run(path)
        else:
            with console.status("Analyzing...") as status:
                result = pipeline.run(path, on_progress=lambda msg: status.update(msg))
    except PhpInsightError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    except KeyboardInterrupt:
        console.print("\n[yellow]Analysis interrupted[/yellow]")
        raise typer.Exit(130)

    report = result.to_dict()
    report["issues"] = [issue.to_dict() for issue in sort_findings(result.issues)]
    text = json.dumps(report, indent=2, ensure_ascii=False)

    if output is not None:
        output.write_text(text + "\n", encoding="utf-8")
        if not quiet:
            _print_summary(result)
            console.print(f"Report written to [bold]{output}[/bold]")
    else:
        print(text)


def _print_summary(result: AnalysisResult) -> None:
    stats = result.statistics
    console.print()
    console.print(
        f"[bold cyan]PHP INSIGHT[/bold cyan] - {result.analyzed_files}/{result.total_files} "
        f"files analyzed, {stats.total_issues} issue{'s' if stats.total_issues != 1 else ''}"
    )

    severity_table = Table(show_header=True, header_style="bold")
    severity_table.add_column("Severity")
    severity_table.add_column("Issues", justify="right")
    for severity, count in stats.by_severity.items():
        style = SEVERITY_STYLES.get(severity, "")
        severity_table.add_row(f"[{style}]{severity.value}[/{style}]", str(count))
    console.print(severity_table)

    if stats.by_type:
        type_table = Table(show_header=True, header_style="bold")
        type_table.add_column("Type")
        type_table.add_column("Issues", justify="right")
        ranked = sorted(stats.by_type.items(), key=lambda item: (-item[1], item[0]))
        for issue_type, count in ranked[:MAX_SUMMARY_TYPES]:
            type_table.add_row(issue_type, str(count))
        if len(ranked) > MAX_SUMMARY_TYPES:
            type_table.add_row(f"[dim]... {len(ranked) - MAX_SUMMARY_TYPES} more[/dim]", "")
        console.print(type_table)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
