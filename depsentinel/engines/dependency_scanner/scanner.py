"""Dependency collection: locate manifests, parse them, dedupe the result."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import structlog

# Ensure parsers are registered before any scan runs.
import depsentinel.engines.dependency_scanner.parsers  # noqa: F401
from depsentinel.engines.dependency_scanner.models import (
    CollectResult,
    Dependency,
    Ecosystem,
    ParseFailure,
)
from depsentinel.engines.dependency_scanner.registry import discover_manifests
from depsentinel.engines.dependency_scanner.versions import normalize_version
from depsentinel.exceptions import ManifestParseError

log = structlog.get_logger("depsentinel.engine")


def collect_dependencies(repo_path: Path, *, logger: Any = None) -> CollectResult:
    """Scan a local project directory for dependencies (no network access).

    Every manifest is parsed in isolation: a file that cannot be read or
    parsed becomes a :class:`ParseFailure` and the remaining manifests are
    still processed. The returned dependencies are unique per
    (name, normalized version, ecosystem), first occurrence wins.

    Raises ProjectNotFoundError if *repo_path* is not a directory.
    """
    logger = logger or log
    matches = discover_manifests(repo_path, logger=logger)

    parsed: list[Dependency] = []
    failures: list[ParseFailure] = []
    for parser, file_path in matches:
        try:
            content = file_path.read_text(encoding="utf-8", errors="replace")
        except OSError as exc:
            logger.debug("manifest.read_failed", path=str(file_path), error=str(exc))
            failures.append(ParseFailure(str(file_path), parser.detection_method, str(exc)))
            continue

        try:
            deps = parser.parse(file_path, content)
        except (ManifestParseError, ValueError) as exc:
            logger.warning(
                "manifest.parse_failed",
                path=str(file_path),
                parser=parser.detection_method,
                error=str(exc),
            )
            failures.append(ParseFailure(str(file_path), parser.detection_method, str(exc)))
            continue

        logger.debug(
            "manifest.parsed",
            path=str(file_path),
            parser=parser.detection_method,
            count=len(deps),
        )
        parsed.extend(deps)

    unique = dedupe_dependencies(parsed)
    logger.info(
        "dependencies.collected",
        manifests=len(matches),
        parsed=len(parsed),
        unique=len(unique),
        failures=len(failures),
    )
    return CollectResult(
        dependencies=unique,
        parse_failures=failures,
        manifest_count=len(matches),
    )


def dedupe_dependencies(deps: list[Dependency]) -> list[Dependency]:
    """Drop repeats of the same (name, normalized version, ecosystem)."""
    seen: set[tuple[str, str, Ecosystem]] = set()
    unique: list[Dependency] = []
    for dep in deps:
        key = (dep.name, normalize_version(dep.version, dep.ecosystem), dep.ecosystem)
        if key in seen:
            continue
        seen.add(key)
        unique.append(dep)
    return unique
