"""Vulnerability scanner engine: OSV lookups, correlation, reporting."""

from depsentinel.engines.vuln_scanner.formatter import (
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
from depsentinel.engines.vuln_scanner.osv_client import OSVClient
from depsentinel.engines.vuln_scanner.scanner import SecurityScanner, scan_project

__all__ = [
    "OSVClient",
    "ScanResult",
    "SecurityScanner",
    "Severity",
    "Vulnerability",
    "VulnerabilityReport",
    "exit_code",
    "format_scan_json",
    "format_scan_result",
    "scan_project",
]
