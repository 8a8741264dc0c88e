"""CLI entry point for standalone usage: depsentinel.

Subcommands:
    depsentinel scan /path/to/project            # OSV vulnerability scan
    depsentinel scan /path/to/project --json     # machine-readable report
    depsentinel deps /path/to/project            # list dependencies only (offline)

Exit codes of ``scan``: 0 no HIGH/CRITICAL, 1 HIGH present, 2 CRITICAL present,
3 the scan itself failed. A failed scan does not exit 1, so CI can tell "HIGH
findings" apart from "no scan happened".
"""

from __future__ import annotations

import asyncio
import dataclasses
import json
import sys
from pathlib import Path

import click

from depsentinel.core.config import ScannerSettings
from depsentinel.core.logging import setup_logging
from depsentinel.engines.dependency_scanner.models import CollectResult
from depsentinel.engines.dependency_scanner.scanner import collect_dependencies
from depsentinel.engines.vuln_scanner.formatter import (
    EXIT_CRITICAL,
    EXIT_HIGH,
    exit_code,
    format_scan_json,
    format_scan_result,
)
from depsentinel.engines.vuln_scanner.scanner import SecurityScanner
from depsentinel.exceptions import ScanError

EXIT_SCAN_FAILED = 3


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Verbose logging")
def main(verbose: bool) -> None:
    """depsentinel: find known-vulnerable dependencies with OSV.dev."""
    setup_logging("DEBUG" if verbose else None)


@main.command("scan")
@click.argument("project_path", type=click.Path())
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.option("--osv-url", default=None, help="OSV API base URL")
@click.option("--batch-size", type=click.IntRange(min=1), default=None, help="Queries per batch")
@click.option(
    "--timeout",
    type=click.FloatRange(min=0, min_open=True),
    default=None,
    help="Per-request timeout in seconds",
)
def scan(
    project_path: str,
    as_json: bool,
    osv_url: str | None,
    batch_size: int | None,
    timeout: float | None,
) -> None:
    """Scan a project's dependency manifests for known vulnerabilities."""
    try:
        settings = _settings(osv_url, batch_size, timeout)
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(EXIT_SCAN_FAILED)

    try:
        result = asyncio.run(SecurityScanner(project_path, settings=settings).scan())
    except ScanError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(EXIT_SCAN_FAILED)

    output = format_scan_json(result) if as_json else format_scan_result(result)
    click.echo(output.rstrip("\n"))

    code = exit_code(result)
    if code == EXIT_CRITICAL:
        click.echo("CRITICAL vulnerabilities found. Fix immediately.", err=True)
    elif code == EXIT_HIGH:
        click.echo("HIGH severity vulnerabilities found. Address soon.", err=True)
    elif result.total_vulnerabilities:
        click.echo("Some vulnerabilities found, none HIGH or CRITICAL.", err=True)
    else:
        click.echo("No known vulnerabilities found.", err=True)
    sys.exit(code)


@main.command("deps")
@click.argument("project_path", type=click.Path())
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def deps(project_path: str, as_json: bool) -> None:
    """List the dependencies declared in a project, without network access."""
    try:
        collected = collect_dependencies(Path(project_path))
    except ScanError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(EXIT_SCAN_FAILED)
    _print_deps(collected, Path(project_path).resolve(), as_json)


def _settings(
    osv_url: str | None, batch_size: int | None, timeout: float | None
) -> ScannerSettings:
    """Environment settings with command-line overrides applied on top."""
    settings = ScannerSettings.from_env()
    overrides: dict[str, object] = {}
    if osv_url:
        overrides["osv_url"] = osv_url.rstrip("/")
    if batch_size is not None:
        overrides["batch_size"] = batch_size
    if timeout is not None:
        overrides["timeout"] = timeout
    return dataclasses.replace(settings, **overrides) if overrides else settings


def _print_deps(collected: CollectResult, root: Path, as_json: bool) -> None:
    if as_json:
        payload = {
            "dependencies": [d.to_dict() for d in collected.dependencies],
            "parse_failures": [f.to_dict() for f in collected.parse_failures],
        }
        click.echo(json.dumps(payload, indent=2))
        return

    if not collected.dependencies:
        click.echo("No dependencies found.")
    else:
        # Group by manifest
        by_file: dict[str, list] = {}
        for d in collected.dependencies:
            by_file.setdefault(d.file_path, []).append(d)

        click.echo(
            f"Found {len(collected.dependencies)} dependencies in {len(by_file)} manifest(s)\n"
        )
        for file_path, file_deps in sorted(by_file.items()):
            click.echo(f"  {_relative(file_path, root)}  ({file_deps[0].ecosystem.value})")
            for d in file_deps:
                click.echo(f"    {d.name} {d.version}".rstrip())
            click.echo()

    for failure in collected.parse_failures:
        click.echo(
            f"Skipped {_relative(failure.file_path, root)} ({failure.parser}): {failure.reason}",
            err=True,
        )


def _relative(file_path: str, root: Path) -> str:
    try:
        return Path(file_path).relative_to(root).as_posix()
    except ValueError:
        return file_path


if __name__ == "__main__":
    main()
