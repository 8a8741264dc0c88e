"""Render a ScanResult as a text or JSON report, and map it to an exit code."""

from __future__ import annotations

import json
from pathlib import Path

from depsentinel.engines.dependency_scanner.models import Dependency
from depsentinel.engines.vuln_scanner.models import ScanResult, Severity, Vulnerability

_RULE = "=" * 72
_THIN_RULE = "-" * 72
_MAX_REFERENCES = 5

EXIT_OK = 0
EXIT_HIGH = 1
EXIT_CRITICAL = 2


def exit_code(result: ScanResult) -> int:
    """2 if any CRITICAL, else 1 if any HIGH, else 0."""
    if result.severity_counts.get(Severity.CRITICAL, 0) > 0:
        return EXIT_CRITICAL
    if result.severity_counts.get(Severity.HIGH, 0) > 0:
        return EXIT_HIGH
    return EXIT_OK


def format_scan_json(result: ScanResult) -> str:
    return json.dumps(result.to_dict(), indent=2)


def format_scan_result(result: ScanResult) -> str:
    """Human-readable report. Identical input always yields identical text."""
    lines: list[str] = [
        _RULE,
        "DEPENDENCY VULNERABILITY REPORT",
        _RULE,
        f"Project:   {result.project_path}",
        f"Scanned:   {result.timestamp.isoformat(timespec='seconds')}",
        f"Duration:  {result.scan_duration:.2f}s",
        "",
        "SUMMARY",
        _THIN_RULE,
        f"Dependencies scanned:     {result.total_dependencies}",
        f"Vulnerable dependencies:  {result.vulnerable_dependencies}",
        f"Total vulnerabilities:    {result.total_vulnerabilities}",
        "",
    ]
    for severity in Severity:
        lines.append(f"  {severity.value:<10}{result.severity_counts.get(severity, 0):>5}")
    lines.append("")

    if not result.reports:
        lines.append("No known vulnerabilities found.")
    else:
        lines.append("VULNERABLE DEPENDENCIES")
        lines.append(_THIN_RULE)
        for report in result.reports:
            lines.extend(_format_dependency(report.dependency, result.project_path))
            for vuln in report.vulnerabilities:
                lines.extend(_format_vulnerability(vuln))
            lines.append("")

    if result.parse_failures:
        lines.append("")
        lines.append("SKIPPED MANIFESTS")
        lines.append(_THIN_RULE)
        for failure in result.parse_failures:
            path = _display_path(failure.file_path, result.project_path)
            lines.append(f"  {path} ({failure.parser}): {failure.reason}")

    return "\n".join(lines).rstrip() + "\n"


def _format_dependency(dep: Dependency, project_path: str) -> list[str]:
    location = _display_path(dep.file_path, project_path)
    if dep.line_number is not None:
        location = f"{location}:{dep.line_number}"
    version = dep.version or "(unpinned)"
    return [
        f"{dep.name}@{version} ({dep.ecosystem.value})",
        f"  declared in {location}",
    ]


def _format_vulnerability(vuln: Vulnerability) -> list[str]:
    lines = [f"  [{vuln.severity.value}] {vuln.id}: {vuln.summary}"]
    if vuln.cvss is not None:
        lines.append(f"      CVSS: {vuln.cvss:.1f}")
    if vuln.cve_ids:
        lines.append(f"      CVE: {', '.join(vuln.cve_ids)}")
    if vuln.fixed_versions:
        lines.append(f"      Fix: upgrade to {', '.join(vuln.fixed_versions)}")
    else:
        lines.append("      Fix: no fixed version available")
    if vuln.references:
        lines.append("      References:")
        for url in vuln.references[:_MAX_REFERENCES]:
            lines.append(f"        - {url}")
        hidden = len(vuln.references) - _MAX_REFERENCES
        if hidden > 0:
            lines.append(f"        ... and {hidden} more")
    return lines


def _display_path(file_path: str, project_path: str) -> str:
    try:
        return Path(file_path).relative_to(project_path).as_posix()
    except ValueError:
        return file_path
