"""Async OSV.dev client with batching, pacing, pagination, and retries."""

from __future__ import annotations

import asyncio
from typing import Any

import httpx
import structlog
from pydantic import ValidationError

from depsentinel import __version__
from depsentinel.core.config import ScannerSettings
from depsentinel.engines.dependency_scanner.models import Dependency
from depsentinel.engines.dependency_scanner.versions import normalize_version
from depsentinel.engines.vuln_scanner.schemas import OSVQueryPage, OSVVulnerability

log = structlog.get_logger("depsentinel.engine")

_QUERY_PATH = "/v1/query"


class OSVClient:
    """Thin async wrapper around the OSV ``/v1/query`` endpoint.

    Network trouble never escapes :meth:`query`: after the retry budget is
    spent the dependency is reported as having no known advisories.
    """

    def __init__(
        self,
        settings: ScannerSettings | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        logger: Any = None,
    ) -> None:
        self._settings = settings or ScannerSettings()
        self._log = logger or log
        self._client = httpx.AsyncClient(
            base_url=self._settings.osv_url,
            headers={
                "Accept": "application/json",
                "User-Agent": f"depsentinel/{__version__}",
            },
            timeout=self._settings.timeout,
            transport=transport,
        )

    # ── lifecycle ──────────────────────────────────────────────────────────

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> OSVClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    # ── public ─────────────────────────────────────────────────────────────

    async def query_all(
        self, dependencies: list[Dependency]
    ) -> list[tuple[Dependency, list[OSVVulnerability]]]:
        """Query every dependency, one batch at a time.

        Requests inside a batch run concurrently; successive batches are
        separated by ``batch_delay``. Output order matches input order.
        """
        size = self._settings.batch_size
        results: list[tuple[Dependency, list[OSVVulnerability]]] = []

        for start in range(0, len(dependencies), size):
            if start:
                await asyncio.sleep(self._settings.batch_delay)
            batch = dependencies[start : start + size]
            outcomes = await asyncio.gather(
                *(self.query(dep) for dep in batch), return_exceptions=True
            )
            for dep, outcome in zip(batch, outcomes):
                if isinstance(outcome, Exception):
                    self._log.error(
                        "osv.query_crashed",
                        package=dep.name,
                        ecosystem=dep.ecosystem.value,
                        exc_info=outcome,
                    )
                    outcome = []
                elif isinstance(outcome, BaseException):
                    raise outcome
                results.append((dep, outcome))

            self._log.debug(
                "osv.batch_done",
                batch=start // size + 1,
                size=len(batch),
                total=len(dependencies),
            )

        return results

    async def query(self, dependency: Dependency) -> list[OSVVulnerability]:
        """Return the advisories matching one dependency's pinned version.

        Returns ``[]`` for unpinned dependencies, exhausted retries, error
        statuses and malformed bodies.
        """
        version = normalize_version(dependency.version, dependency.ecosystem)
        if not version:
            self._log.debug(
                "osv.skip_unpinned",
                package=dependency.name,
                ecosystem=dependency.ecosystem.value,
                declared=dependency.version,
            )
            return []

        payload: dict[str, Any] = {
            "package": {"name": dependency.name, "ecosystem": dependency.ecosystem.value},
            "version": version,
        }
        advisories: list[OSVVulnerability] = []

        for _ in range(self._settings.max_pages):
            try:
                response = await self._request_with_retry(payload)
            except httpx.HTTPError as exc:
                self._log.warning(
                    "osv.query_failed",
                    package=dependency.name,
                    ecosystem=dependency.ecosystem.value,
                    version=version,
                    error=str(exc) or type(exc).__name__,
                )
                return []

            page = self._parse_page(response, dependency)
            if page is None:
                return []
            advisories.extend(self._validate_advisories(page.vulns, dependency))

            if not page.next_page_token:
                break
            payload = {**payload, "page_token": page.next_page_token}

        return advisories

    # ── internal ───────────────────────────────────────────────────────────

    async def _request_with_retry(self, payload: dict[str, Any]) -> httpx.Response:
        """POST with exponential backoff on 5xx, 429, timeout, and transport errors.

        Other 4xx statuses raise ``httpx.HTTPStatusError`` straight away.
        """
        max_retries = self._settings.max_retries
        last_exc: Exception | None = None
        for attempt in range(max_retries):
            try:
                resp = await self._client.post(_QUERY_PATH, json=payload)

                if resp.status_code != 429 and resp.status_code < 500:
                    resp.raise_for_status()
                    return resp

                # 5xx / 429 are retried
                self._log.warning(
                    "osv.server_error",
                    status=resp.status_code,
                    attempt=attempt + 1,
                    max_retries=max_retries,
                )
                last_exc = httpx.HTTPStatusError(
                    f"{resp.status_code}", request=resp.request, response=resp
                )
            except httpx.TimeoutException as exc:
                self._log.warning(
                    "osv.timeout",
                    attempt=attempt + 1,
                    max_retries=max_retries,
                )
                last_exc = exc
            except httpx.TransportError as exc:
                self._log.warning(
                    "osv.transport_error",
                    error=str(exc),
                    attempt=attempt + 1,
                    max_retries=max_retries,
                )
                last_exc = exc

            if attempt < max_retries - 1:
                delay = self._settings.retry_base_delay * (2**attempt)
                await asyncio.sleep(delay)

        raise last_exc  # type: ignore[misc]

    def _parse_page(
        self, response: httpx.Response, dependency: Dependency
    ) -> OSVQueryPage | None:
        try:
            data = response.json()
        except ValueError:
            self._log.warning("osv.malformed_body", package=dependency.name)
            return None
        if not isinstance(data, dict):
            self._log.warning("osv.malformed_body", package=dependency.name)
            return None
        try:
            return OSVQueryPage.model_validate(data)
        except ValidationError as exc:
            self._log.warning(
                "osv.malformed_body", package=dependency.name, error=str(exc)
            )
            return None

    def _validate_advisories(
        self, raw_vulns: list[Any], dependency: Dependency
    ) -> list[OSVVulnerability]:
        advisories: list[OSVVulnerability] = []
        for raw in raw_vulns:
            try:
                advisories.append(OSVVulnerability.model_validate(raw))
            except ValidationError as exc:
                self._log.warning(
                    "osv.advisory_invalid",
                    package=dependency.name,
                    advisory=raw.get("id") if isinstance(raw, dict) else None,
                    errors=exc.error_count(),
                )
        return advisories
