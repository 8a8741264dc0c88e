"""End-to-end scanner tests against a mocked OSV endpoint."""

from __future__ import annotations

import json
from unittest.mock import MagicMock

import httpx
import pytest

from depsentinel.core.config import ScannerSettings
from depsentinel.engines.vuln_scanner.formatter import EXIT_CRITICAL, EXIT_OK, exit_code
from depsentinel.engines.vuln_scanner.models import Severity
from depsentinel.engines.vuln_scanner.osv_client import OSVClient
from depsentinel.engines.vuln_scanner.scanner import SecurityScanner, scan_project
from depsentinel.exceptions import ProjectNotFoundError

_FAST = ScannerSettings(retry_base_delay=0, batch_delay=0)

LODASH_ADVISORY = {
    "id": "GHSA-jf85-cpcp-j695",
    "summary": "Prototype Pollution in lodash",
    "aliases": ["CVE-2019-10744"],
    "severity": [
        {"type": "CVSS_V3", "score": "CVSS:3.1/AV:N/AC:L/PR:N/UI:N/S:U/C:H/I:H/A:H"}
    ],
    "affected": [
        {
            "package": {"ecosystem": "npm", "name": "lodash"},
            "ranges": [
                {"type": "SEMVER", "events": [{"introduced": "0"}, {"fixed": "4.17.12"}]}
            ],
        }
    ],
    "references": [{"type": "ADVISORY", "url": "https://nvd.nist.gov/vuln/detail/CVE-2019-10744"}],
}


class FakeOSV:
    """MockTransport handler that answers from a {(ecosystem, name): [advisory]} table."""

    def __init__(self, table=None, status=200):
        self.table = table or {}
        self.status = status
        self.queries: list[dict] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        self.queries.append(body)
        if self.status != 200:
            return httpx.Response(self.status, text="upstream down")
        pkg = body["package"]
        vulns = self.table.get((pkg["ecosystem"], pkg["name"]), [])
        return httpx.Response(200, json={"vulns": vulns} if vulns else {})


def _client(handler) -> OSVClient:
    return OSVClient(_FAST, transport=httpx.MockTransport(handler), logger=MagicMock())


class TestSecurityScanner:
    @pytest.mark.anyio
    async def test_lodash_critical(self, tmp_path, write):
        write("package.json", '{"dependencies": {"lodash": "4.17.0"}}')
        fake = FakeOSV({("npm", "lodash"): [LODASH_ADVISORY]})

        async with _client(fake) as client:
            result = await SecurityScanner(tmp_path, client=client, logger=MagicMock()).scan()

        assert result.total_dependencies == 1
        assert result.vulnerable_dependencies == 1
        assert result.total_vulnerabilities == 1
        assert result.severity_counts[Severity.CRITICAL] == 1
        assert len(result.reports) == 1

        report = result.reports[0]
        assert report.dependency.name == "lodash"
        assert report.dependency.version == "4.17.0"
        vuln = report.vulnerabilities[0]
        assert vuln.cve_ids == ["CVE-2019-10744"]
        assert vuln.fixed_versions == ["4.17.12"]
        assert vuln.severity is Severity.CRITICAL
        assert exit_code(result) == EXIT_CRITICAL

        assert fake.queries == [
            {"package": {"name": "lodash", "ecosystem": "npm"}, "version": "4.17.0"}
        ]

    @pytest.mark.anyio
    async def test_many_clean_dependencies(self, tmp_path, write):
        deps = {f"pkg-{i}": f"1.0.{i}" for i in range(25)}
        write("package.json", json.dumps({"dependencies": deps}))
        fake = FakeOSV()

        async with _client(fake) as client:
            result = await SecurityScanner(tmp_path, client=client, logger=MagicMock()).scan()

        assert result.total_dependencies == 25
        assert result.total_vulnerabilities == 0
        assert result.reports == []
        assert exit_code(result) == EXIT_OK
        assert len(fake.queries) == 25

    @pytest.mark.anyio
    async def test_upstream_failure_degrades_to_empty(self, tmp_path, write):
        write("requirements.txt", "flask==2.3.1\ndjango==4.2\n")
        fake = FakeOSV(status=500)

        async with _client(fake) as client:
            result = await SecurityScanner(tmp_path, client=client, logger=MagicMock()).scan()

        assert result.total_dependencies == 2
        assert result.total_vulnerabilities == 0
        assert exit_code(result) == EXIT_OK
        # 3 attempts per dependency
        assert len(fake.queries) == 6

    @pytest.mark.anyio
    async def test_unpinned_not_queried(self, tmp_path, write):
        write("package.json", '{"dependencies": {"a": "*", "b": "latest", "c": "1.0.0"}}')
        fake = FakeOSV()

        async with _client(fake) as client:
            result = await SecurityScanner(tmp_path, client=client, logger=MagicMock()).scan()

        assert result.total_dependencies == 3
        assert [q["package"]["name"] for q in fake.queries] == ["c"]

    @pytest.mark.anyio
    async def test_parse_failures_carried(self, tmp_path, write):
        write("package.json", "{broken")
        write("requirements.txt", "flask==2.3.1\n")

        async with _client(FakeOSV()) as client:
            result = await SecurityScanner(tmp_path, client=client, logger=MagicMock()).scan()

        assert result.total_dependencies == 1
        assert [f.parser for f in result.parse_failures] == ["npm-package-json"]

    @pytest.mark.anyio
    async def test_idempotent(self, tmp_path, write):
        write("package.json", '{"dependencies": {"lodash": "4.17.0", "express": "4.17.1"}}')
        write("go.mod", "module m\nrequire github.com/gin-gonic/gin v1.9.1\n")
        fake = FakeOSV({("npm", "lodash"): [LODASH_ADVISORY]})

        async with _client(fake) as client:
            scanner = SecurityScanner(tmp_path, client=client, logger=MagicMock())
            first = (await scanner.scan()).to_dict()
            second = (await scanner.scan()).to_dict()

        for data in (first, second):
            data.pop("timestamp")
            data.pop("scan_duration")
        assert first == second

    @pytest.mark.anyio
    async def test_missing_project(self, tmp_path):
        with pytest.raises(ProjectNotFoundError):
            await SecurityScanner(tmp_path / "missing", logger=MagicMock()).scan()

    @pytest.mark.anyio
    async def test_project_path_is_resolved(self, tmp_path):
        async with _client(FakeOSV()) as client:
            result = await scan_project(tmp_path, client=client, logger=MagicMock())
        assert result.project_path == str(tmp_path.resolve())
        assert result.total_dependencies == 0

    @pytest.mark.anyio
    async def test_lifecycle_events_logged(self, tmp_path, write):
        write("requirements.txt", "flask==2.3.1\n")
        logger = MagicMock()

        async with _client(FakeOSV()) as client:
            await SecurityScanner(tmp_path, client=client, logger=logger).scan()

        events = [c.args[0] for c in logger.info.call_args_list]
        assert events == ["scan.started", "dependencies.collected", "scan.completed"]
