"""SecurityScanner: locate, parse, query, and correlate in one pass."""

from __future__ import annotations

import time
from pathlib import Path
from typing import Any

import structlog

from depsentinel.core.config import ScannerSettings
from depsentinel.engines.dependency_scanner.scanner import collect_dependencies
from depsentinel.engines.vuln_scanner.correlator import build_scan_result
from depsentinel.engines.vuln_scanner.models import ScanResult
from depsentinel.engines.vuln_scanner.osv_client import OSVClient
from depsentinel.exceptions import ProjectNotFoundError

log = structlog.get_logger("depsentinel.engine")


class SecurityScanner:
    """Scan one project for dependencies with known vulnerabilities.

    ``scan()`` either returns a complete :class:`ScanResult` or raises a
    :class:`~depsentinel.exceptions.ScanError`; there is no partial result.
    Dependencies whose lookup failed are reported as having no advisories.
    """

    def __init__(
        self,
        project_path: str | Path,
        *,
        settings: ScannerSettings | None = None,
        client: OSVClient | None = None,
        logger: Any = None,
    ) -> None:
        self._project_path = Path(project_path).expanduser()
        self._settings = settings or ScannerSettings()
        self._client = client
        self._log = logger or log

    async def scan(self) -> ScanResult:
        started_at = time.monotonic()
        root = self._project_path
        if not root.is_dir():
            raise ProjectNotFoundError(str(root))
        root = root.resolve()

        self._log.info("scan.started", project=str(root))

        # ── Locate + parse (no network) ──────────────────────────────────
        collected = collect_dependencies(root, logger=self._log)

        # ── Query OSV ────────────────────────────────────────────────────
        if self._client is not None:
            matches = await self._client.query_all(collected.dependencies)
        else:
            async with OSVClient(self._settings, logger=self._log) as client:
                matches = await client.query_all(collected.dependencies)

        # ── Correlate ────────────────────────────────────────────────────
        result = build_scan_result(
            str(root),
            len(collected.dependencies),
            matches,
            started_at=started_at,
            parse_failures=collected.parse_failures,
        )

        self._log.info(
            "scan.completed",
            project=str(root),
            dependencies=result.total_dependencies,
            vulnerable=result.vulnerable_dependencies,
            vulnerabilities=result.total_vulnerabilities,
            duration=round(result.scan_duration, 3),
        )
        return result


async def scan_project(
    project_path: str | Path,
    *,
    settings: ScannerSettings | None = None,
    client: OSVClient | None = None,
    logger: Any = None,
) -> ScanResult:
    """Convenience wrapper: ``await SecurityScanner(path, ...).scan()``."""
    scanner = SecurityScanner(project_path, settings=settings, client=client, logger=logger)
    return await scanner.scan()
