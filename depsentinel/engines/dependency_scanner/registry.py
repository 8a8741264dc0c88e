"""Parser registry: discover manifest files and match them to parsers."""

from __future__ import annotations

import os
from pathlib import Path, PurePosixPath
from typing import Any, Protocol, runtime_checkable

import structlog

from depsentinel.engines.dependency_scanner.models import Dependency, Ecosystem
from depsentinel.exceptions import ProjectNotFoundError

log = structlog.get_logger("depsentinel.engine")

# Directory names never descended into, at any depth.
EXCLUDED_DIRS = frozenset(
    {
        "node_modules",
        "vendor",
        "dist",
        "build",
        "target",
        ".git",
        ".hg",
        ".svn",
        "__pycache__",
        ".venv",
        "venv",
        ".tox",
    }
)


@runtime_checkable
class ManifestParser(Protocol):
    """Interface that every manifest parser must satisfy."""

    detection_method: str
    ecosystem: Ecosystem
    file_patterns: list[str]

    def parse(self, file_path: Path, content: str) -> list[Dependency]: ...


PARSER_REGISTRY: dict[str, ManifestParser] = {}


def register_parser(parser: ManifestParser) -> None:
    """Register a parser instance by its detection_method."""
    PARSER_REGISTRY[parser.detection_method] = parser


def match_parsers(rel_path: PurePosixPath) -> list[ManifestParser]:
    """Return every registered parser whose patterns match *rel_path*.

    Patterns are matched from the right, so ``requirements/*.txt`` matches
    ``services/api/requirements/dev.txt``.
    """
    return [
        parser
        for parser in PARSER_REGISTRY.values()
        if any(rel_path.match(pattern) for pattern in parser.file_patterns)
    ]


def discover_manifests(
    repo_path: Path, *, logger: Any = None
) -> list[tuple[ManifestParser, Path]]:
    """Walk the project and match manifest files to registered parsers.

    Returns (parser, absolute_path) pairs sorted by path, then detection
    method. Excluded directories are pruned; symlinked directories are not
    followed; unreadable directories are skipped with a debug event.

    Raises ProjectNotFoundError if *repo_path* is not an existing directory.
    """
    logger = logger or log
    root = Path(repo_path).expanduser()
    if not root.is_dir():
        raise ProjectNotFoundError(str(repo_path))
    root = root.resolve()

    def _on_walk_error(exc: OSError) -> None:
        logger.debug("manifest.walk_error", path=exc.filename, error=str(exc))

    seen: set[tuple[str, Path]] = set()
    matches: list[tuple[ManifestParser, Path]] = []
    for dirpath, dirnames, filenames in os.walk(root, onerror=_on_walk_error):
        dirnames[:] = sorted(d for d in dirnames if d not in EXCLUDED_DIRS)
        current = Path(dirpath)
        for filename in filenames:
            file_path = current / filename
            rel = PurePosixPath(file_path.relative_to(root).as_posix())
            for parser in match_parsers(rel):
                try:
                    resolved = file_path.resolve()
                except OSError as exc:
                    logger.debug("manifest.resolve_error", path=str(file_path), error=str(exc))
                    continue
                if not resolved.is_file():
                    continue
                key = (parser.detection_method, resolved)
                if key in seen:
                    continue
                seen.add(key)
                matches.append((parser, resolved))

    matches.sort(key=lambda pair: (str(pair[1]), pair[0].detection_method))
    return matches
