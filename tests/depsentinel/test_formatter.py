"""Tests for report rendering and the exit-code contract."""

from __future__ import annotations

import json
from datetime import datetime, timezone

import pytest

from depsentinel.engines.dependency_scanner.models import Dependency, Ecosystem, ParseFailure
from depsentinel.engines.vuln_scanner.formatter import (
    EXIT_CRITICAL,
    EXIT_HIGH,
    EXIT_OK,
    exit_code,
    format_scan_json,
    format_scan_result,
)
from depsentinel.engines.vuln_scanner.models import (
    ScanResult,
    Severity,
    Vulnerability,
    VulnerabilityReport,
)

_TS = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


def _result(*severities: Severity, failures=None) -> ScanResult:
    dep = Dependency(
        name="lodash",
        version="4.17.0",
        ecosystem=Ecosystem.NPM,
        file_path="/proj/package.json",
        line_number=3,
    )
    vulns = [
        Vulnerability(
            id=f"GHSA-{i}",
            summary=f"issue {i}",
            severity=sev,
            cvss=9.8 if sev is Severity.CRITICAL else None,
            cve_ids=[f"CVE-2019-1000{i}"],
            fixed_versions=["4.17.12"] if i == 0 else [],
            references=[f"https://example.com/{j}" for j in range(7)],
        )
        for i, sev in enumerate(severities)
    ]
    counts = {s: 0 for s in Severity}
    for sev in severities:
        counts[sev] += 1
    reports = [VulnerabilityReport(dependency=dep, vulnerabilities=vulns)] if vulns else []
    return ScanResult(
        timestamp=_TS,
        project_path="/proj",
        total_dependencies=4,
        vulnerable_dependencies=len(reports),
        total_vulnerabilities=len(vulns),
        severity_counts=counts,
        reports=reports,
        scan_duration=1.23456,
        parse_failures=failures or [],
    )


class TestExitCode:
    @pytest.mark.parametrize(
        ("severities", "expected"),
        [
            ((), EXIT_OK),
            ((Severity.LOW, Severity.MEDIUM, Severity.UNKNOWN), EXIT_OK),
            ((Severity.HIGH, Severity.LOW), EXIT_HIGH),
            ((Severity.HIGH, Severity.CRITICAL), EXIT_CRITICAL),
            ((Severity.CRITICAL,), EXIT_CRITICAL),
        ],
    )
    def test_contract(self, severities, expected):
        assert exit_code(_result(*severities)) == expected

    def test_values(self):
        assert (EXIT_OK, EXIT_HIGH, EXIT_CRITICAL) == (0, 1, 2)


class TestFormatScanResult:
    def test_no_vulnerabilities(self):
        text = format_scan_result(_result())
        assert "No known vulnerabilities found." in text
        assert "Dependencies scanned:     4" in text
        assert "VULNERABLE DEPENDENCIES" not in text
        assert text.endswith("\n")

    def test_deterministic(self):
        result = _result(Severity.CRITICAL, Severity.LOW)
        assert format_scan_result(result) == format_scan_result(result)

    def test_vulnerability_block(self):
        text = format_scan_result(_result(Severity.CRITICAL, Severity.LOW))
        assert "lodash@4.17.0 (npm)" in text
        assert "  declared in package.json:3" in text
        assert "  [CRITICAL] GHSA-0: issue 0" in text
        assert "      CVSS: 9.8" in text
        assert "      CVE: CVE-2019-10000" in text
        assert "      Fix: upgrade to 4.17.12" in text
        assert "      Fix: no fixed version available" in text
        assert "        ... and 2 more" in text
        assert "https://example.com/5" not in text
        assert "Scanned:   2024-05-01T12:00:00+00:00" in text
        assert "Duration:  1.23s" in text

    def test_summary_counts(self):
        text = format_scan_result(_result(Severity.HIGH, Severity.HIGH))
        assert "  HIGH          2" in text
        assert "  CRITICAL      0" in text

    def test_skipped_manifests(self):
        failure = ParseFailure("/proj/web/package.json", "npm-package-json", "invalid JSON")
        text = format_scan_result(_result(failures=[failure]))
        assert "SKIPPED MANIFESTS" in text
        assert "  web/package.json (npm-package-json): invalid JSON" in text


class TestFormatScanJson:
    def test_round_trips_through_json(self):
        data = json.loads(format_scan_json(_result(Severity.HIGH)))
        assert data["project_path"] == "/proj"
        assert data["total_vulnerabilities"] == 1
        assert data["severity_counts"] == {
            "CRITICAL": 0,
            "HIGH": 1,
            "MEDIUM": 0,
            "LOW": 0,
            "UNKNOWN": 0,
        }
        assert data["scan_duration"] == 1.235
        vuln = data["reports"][0]["vulnerabilities"][0]
        assert vuln["id"] == "GHSA-0"
        assert vuln["fixed_versions"] == ["4.17.12"]
