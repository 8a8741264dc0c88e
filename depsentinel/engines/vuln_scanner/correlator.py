"""Correlate raw OSV advisories into normalized vulnerability reports."""

from __future__ import annotations

import re
import time
from collections.abc import Iterable
from datetime import datetime, timezone

from cvss import CVSS3
from cvss.exceptions import CVSSError

from depsentinel.engines.dependency_scanner.models import (
    Dependency,
    Ecosystem,
    ParseFailure,
)
from depsentinel.engines.vuln_scanner.models import (
    ScanResult,
    Severity,
    Vulnerability,
    VulnerabilityReport,
)
from depsentinel.engines.vuln_scanner.schemas import (
    OSVAffected,
    OSVPackage,
    OSVSeverity,
    OSVVulnerability,
)

CVE_PATTERN = re.compile(r"^CVE-\d{4}-\d{4,}$", re.IGNORECASE)

_PYPI_NAME_SEP_RE = re.compile(r"[-_.]+")

# Ranges whose events are commit hashes rather than package versions.
_COMMIT_RANGE_TYPES = frozenset({"GIT"})


# ── severity ─────────────────────────────────────────────────────────────


def severity_from_cvss(score: float | None) -> Severity:
    """Bucket a CVSS v3 base score into a Severity."""
    if score is None:
        return Severity.UNKNOWN
    if score >= 9.0:
        return Severity.CRITICAL
    if score >= 7.0:
        return Severity.HIGH
    if score >= 4.0:
        return Severity.MEDIUM
    if score > 0:
        return Severity.LOW
    return Severity.UNKNOWN


def parse_cvss_score(entry: OSVSeverity) -> float | None:
    """Score one OSV severity entry: a CVSS v3 vector or a bare number."""
    raw = entry.score.strip()
    if raw.upper().startswith("CVSS:3"):
        try:
            return float(CVSS3(raw).base_score)
        except CVSSError:
            return None
    try:
        score = float(raw)
    except ValueError:
        return None
    return score if 0.0 <= score <= 10.0 else None


def cvss_score(
    advisory: OSVVulnerability, dependency: Dependency | None = None
) -> float | None:
    """First usable CVSS v3 score, from the advisory or its affected entries."""
    candidates = list(advisory.severity)
    for affected in _affected_for(advisory, dependency):
        candidates.extend(affected.severity)

    for entry in candidates:
        if entry.type.upper() != "CVSS_V3":
            continue
        score = parse_cvss_score(entry)
        if score is not None:
            return score
    return None


# ── field extraction ─────────────────────────────────────────────────────


def extract_cve_ids(advisory: OSVVulnerability) -> list[str]:
    """All CVE identifiers among the advisory id and its aliases."""
    return _unique(
        ident.upper()
        for ident in [advisory.id, *advisory.aliases]
        if CVE_PATTERN.match(ident)
    )


def extract_fixed_versions(
    advisory: OSVVulnerability, dependency: Dependency | None = None
) -> list[str]:
    """Every version marked as a fix point; empty when no fix is known."""
    return _unique(
        event.fixed
        for affected in _affected_for(advisory, dependency)
        for version_range in affected.ranges
        if version_range.type.upper() not in _COMMIT_RANGE_TYPES
        for event in version_range.events
        if event.fixed
    )


def extract_affected_versions(
    advisory: OSVVulnerability, dependency: Dependency | None = None
) -> list[str]:
    """Affected ranges rendered as constraints, e.g. ``>=1.0.0, <1.2.3``.

    Falls back to the explicit version list when an entry has no usable
    ranges.
    """
    rendered: list[str] = []
    for affected in _affected_for(advisory, dependency):
        ranges = [
            r for r in affected.ranges if r.type.upper() not in _COMMIT_RANGE_TYPES
        ]
        if not ranges:
            rendered.extend(affected.versions)
            continue
        for version_range in ranges:
            lower: str | None = None
            for event in version_range.events:
                if event.introduced is not None:
                    lower = event.introduced
                elif event.fixed is not None:
                    rendered.append(_render_range(lower, f"<{event.fixed}"))
                    lower = None
                elif event.last_affected is not None:
                    rendered.append(_render_range(lower, f"<={event.last_affected}"))
                    lower = None
            if lower is not None:
                rendered.append(_render_range(lower, None))
    return _unique(rendered)


def _render_range(lower: str | None, upper: str | None) -> str:
    parts = []
    if lower and lower != "0":
        parts.append(f">={lower}")
    if upper:
        parts.append(upper)
    return ", ".join(parts) or "*"


def _affected_for(
    advisory: OSVVulnerability, dependency: Dependency | None
) -> list[OSVAffected]:
    """Affected entries for *dependency*'s package; all of them if none match."""
    if dependency is None:
        return list(advisory.affected)
    matching = [
        a
        for a in advisory.affected
        if a.package is not None and _same_package(a.package, dependency)
    ]
    return matching or list(advisory.affected)


def _same_package(pkg: OSVPackage, dependency: Dependency) -> bool:
    # OSV ecosystems may carry a suffix, e.g. "Debian:11".
    if pkg.ecosystem.split(":", 1)[0].lower() != dependency.ecosystem.value.lower():
        return False
    return _canonical_name(pkg.name, dependency.ecosystem) == _canonical_name(
        dependency.name, dependency.ecosystem
    )


def _canonical_name(name: str, ecosystem: Ecosystem) -> str:
    if ecosystem is Ecosystem.PYPI:
        return _PYPI_NAME_SEP_RE.sub("-", name).lower()
    return name.lower()


def _unique(items: Iterable[str]) -> list[str]:
    """Order-preserving dedupe."""
    return list(dict.fromkeys(items))


# ── correlation ──────────────────────────────────────────────────────────


def to_vulnerability(
    advisory: OSVVulnerability, dependency: Dependency | None = None
) -> Vulnerability:
    """Map one validated OSV advisory to a :class:`Vulnerability`."""
    score = cvss_score(advisory, dependency)
    return Vulnerability(
        id=advisory.id,
        summary=_summary(advisory),
        details=advisory.details or None,
        severity=severity_from_cvss(score),
        cvss=score,
        cve_ids=extract_cve_ids(advisory),
        affected_versions=extract_affected_versions(advisory, dependency),
        fixed_versions=extract_fixed_versions(advisory, dependency),
        references=_unique(ref.url for ref in advisory.references if ref.url),
        published_at=advisory.published,
        modified_at=advisory.modified,
    )


def _summary(advisory: OSVVulnerability) -> str:
    if advisory.summary and advisory.summary.strip():
        return advisory.summary.strip()
    if advisory.details and advisory.details.strip():
        first_line = advisory.details.strip().splitlines()[0]
        return first_line if len(first_line) <= 200 else first_line[:197] + "..."
    return advisory.id


def correlate(
    dependency: Dependency, advisories: list[OSVVulnerability]
) -> VulnerabilityReport | None:
    """Build the report for one dependency, or None when nothing matched.

    An advisory id seen twice is kept once (first occurrence wins).
    Vulnerabilities are ordered by severity, then id.
    """
    seen: set[str] = set()
    vulns: list[Vulnerability] = []
    for advisory in advisories:
        if advisory.id in seen:
            continue
        seen.add(advisory.id)
        vulns.append(to_vulnerability(advisory, dependency))

    if not vulns:
        return None
    vulns.sort(key=lambda v: (v.severity.rank, v.id))
    return VulnerabilityReport(dependency=dependency, vulnerabilities=vulns)


def build_scan_result(
    project_path: str,
    total_dependencies: int,
    matches: list[tuple[Dependency, list[OSVVulnerability]]],
    *,
    started_at: float,
    parse_failures: list[ParseFailure] | None = None,
    timestamp: datetime | None = None,
) -> ScanResult:
    """Aggregate per-dependency matches into the final :class:`ScanResult`.

    *started_at* is a ``time.monotonic()`` reading taken when the scan began.
    """
    reports: list[VulnerabilityReport] = []
    for dependency, advisories in matches:
        report = correlate(dependency, advisories)
        if report is not None:
            reports.append(report)

    reports.sort(
        key=lambda r: (r.highest_severity.rank, r.dependency.name, r.dependency.version)
    )

    severity_counts = {severity: 0 for severity in Severity}
    for report in reports:
        for vuln in report.vulnerabilities:
            severity_counts[vuln.severity] += 1

    return ScanResult(
        timestamp=timestamp or datetime.now(timezone.utc),
        project_path=project_path,
        total_dependencies=total_dependencies,
        vulnerable_dependencies=len(reports),
        total_vulnerabilities=sum(len(r.vulnerabilities) for r in reports),
        severity_counts=severity_counts,
        reports=reports,
        scan_duration=max(time.monotonic() - started_at, 0.0),
        parse_failures=list(parse_failures or []),
    )
