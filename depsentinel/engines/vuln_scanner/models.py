"""Data models for the vulnerability scanner engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from depsentinel.engines.dependency_scanner.models import Dependency, ParseFailure


class Severity(str, Enum):
    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"
    UNKNOWN = "UNKNOWN"

    @property
    def rank(self) -> int:
        """0 for CRITICAL up to 4 for UNKNOWN."""
        return _SEVERITY_ORDER.index(self)


_SEVERITY_ORDER = list(Severity)


@dataclass(frozen=True)
class Vulnerability:
    """One advisory, normalized from the upstream record."""

    id: str
    summary: str
    severity: Severity
    details: str | None = None
    cvss: float | None = None
    cve_ids: list[str] = field(default_factory=list)
    affected_versions: list[str] = field(default_factory=list)
    fixed_versions: list[str] = field(default_factory=list)
    references: list[str] = field(default_factory=list)
    published_at: datetime | None = None
    modified_at: datetime | None = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "summary": self.summary,
            "details": self.details,
            "severity": self.severity.value,
            "cvss": self.cvss,
            "cve_ids": list(self.cve_ids),
            "affected_versions": list(self.affected_versions),
            "fixed_versions": list(self.fixed_versions),
            "references": list(self.references),
            "published_at": self.published_at.isoformat() if self.published_at else None,
            "modified_at": self.modified_at.isoformat() if self.modified_at else None,
        }


@dataclass(frozen=True)
class VulnerabilityReport:
    """A dependency and the advisories that match it (never empty)."""

    dependency: Dependency
    vulnerabilities: list[Vulnerability]

    @property
    def highest_severity(self) -> Severity:
        return min((v.severity for v in self.vulnerabilities), key=lambda s: s.rank)

    def to_dict(self) -> dict:
        return {
            "dependency": self.dependency.to_dict(),
            "vulnerabilities": [v.to_dict() for v in self.vulnerabilities],
        }


@dataclass(frozen=True)
class ScanResult:
    """Aggregate result of one scan. Built once, read-only afterwards."""

    timestamp: datetime
    project_path: str
    total_dependencies: int
    vulnerable_dependencies: int
    total_vulnerabilities: int
    severity_counts: dict[Severity, int]
    reports: list[VulnerabilityReport]
    scan_duration: float  # seconds
    parse_failures: list[ParseFailure] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "timestamp": self.timestamp.isoformat(),
            "project_path": self.project_path,
            "total_dependencies": self.total_dependencies,
            "vulnerable_dependencies": self.vulnerable_dependencies,
            "total_vulnerabilities": self.total_vulnerabilities,
            "severity_counts": {s.value: self.severity_counts.get(s, 0) for s in Severity},
            "reports": [r.to_dict() for r in self.reports],
            "scan_duration": round(self.scan_duration, 3),
            "parse_failures": [f.to_dict() for f in self.parse_failures],
        }
