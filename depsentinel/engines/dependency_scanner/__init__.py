"""Dependency scanner engine: detect project dependencies from manifests."""

from depsentinel.engines.dependency_scanner.models import (
    CollectResult,
    Dependency,
    Ecosystem,
    ParseFailure,
)
from depsentinel.engines.dependency_scanner.scanner import (
    collect_dependencies,
    dedupe_dependencies,
)
from depsentinel.engines.dependency_scanner.versions import normalize_version

__all__ = [
    "CollectResult",
    "Dependency",
    "Ecosystem",
    "ParseFailure",
    "collect_dependencies",
    "dedupe_dependencies",
    "normalize_version",
]
