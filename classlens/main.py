"""Command-line entry point: analyze Java source files and report findings."""

import argparse
import json
import sys
from pathlib import Path

from loguru import logger
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from .analyzer import ClassAnalysisResult, NoAnalyzableInputError, analyze_source
from .config import AnalysisConfig, load_config

console = Console()

SEVERITY_STYLES = {"CRITICAL": "bold red", "HIGH": "red", "MEDIUM": "yellow", "LOW": "cyan"}


def configure_logging(verbose: bool) -> None:
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "WARNING")


def _findings_table(title: str, findings: list, snippet_attr: str) -> Table:
    table = Table(title=title)
    table.add_column("Line", justify="right")
    table.add_column("Severity", style="bold")
    table.add_column("Type")
    table.add_column("Description")
    table.add_column("Code", overflow="fold")
    for finding in sorted(findings, key=lambda f: f.line_number):
        severity = finding.severity.value
        table.add_row(
            str(finding.line_number),
            f"[{SEVERITY_STYLES[severity]}]{severity}[/]",
            finding.type,
            escape(finding.description),
            escape(getattr(finding, snippet_attr)),
        )
    return table


def print_report(result: ClassAnalysisResult) -> None:
    """Render one analysis result with rich tables."""
    console.print(
        Panel(
            f"[bold cyan]{escape(result.file_path)}[/bold cyan]\n"
            f"Quality score: {result.overall_quality_score:.1f}\n"
            f"Issues: {result.total_issue_count} "
            f"([red]{result.critical_issue_count} critical[/red])",
            style="cyan",
        )
    )

    if result.optimizations:
        console.print(
            _findings_table("Optimization Suggestions", result.optimizations, "original_snippet")
        )
    if result.security_issues:
        console.print(
            _findings_table("Security Issues", result.security_issues, "vulnerable_snippet")
        )

    if result.method_metrics:
        table = Table(title="Method Quality")
        table.add_column("Method")
        table.add_column("Lines", justify="right")
        table.add_column("Complexity", justify="right")
        table.add_column("Score", justify="right")
        for method in result.method_metrics:
            table.add_row(
                f"{method.class_name}.{method.key}",
                f"{method.start_line}-{method.end_line}",
                str(method.cyclomatic_complexity),
                f"{result.scores.method_scores.get(method.key, 100.0):.1f}",
            )
        console.print(table)

    if result.regions:
        table = Table(title="Heatmap Regions")
        table.add_column("Lines")
        table.add_column("Average", justify="right")
        table.add_column("Band")
        for region in result.regions:
            table.add_row(
                f"{region.start_line}-{region.end_line}",
                f"{region.average_score:.1f}",
                region.band.value,
            )
        console.print(table)


def analyze_file(path: Path, config: AnalysisConfig) -> ClassAnalysisResult:
    source = path.read_text(encoding="utf-8")
    return analyze_source(source, config, str(path))


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Heuristic optimization, security and quality analysis of Java classes"
    )
    parser.add_argument("files", nargs="+", help="Java source files to analyze")
    parser.add_argument("--config", help="TOML file with analysis thresholds")
    parser.add_argument("--json", action="store_true", help="Print results as JSON")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)

    configure_logging(args.verbose)
    config = load_config(args.config)

    results = []
    exit_code = 0
    for name in args.files:
        path = Path(name)
        if not path.exists():
            console.print(f"[red]Error: File does not exist: {escape(str(path))}[/red]")
            exit_code = 1
            continue
        try:
            results.append(analyze_file(path, config))
        except NoAnalyzableInputError as e:
            console.print(f"[red]Error: {escape(str(e))}[/red]")
            exit_code = 1
        except UnicodeDecodeError as e:
            logger.error(f"Failed to decode {path}: {e}")
            console.print(f"[red]Error: Not a UTF-8 source file: {escape(str(path))}[/red]")
            exit_code = 1

    if args.json:
        print(json.dumps([result.to_dict() for result in results], indent=2))
    else:
        for result in results:
            print_report(result)
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
