"""Parser for npm package-lock.json files (lockfileVersion 1, 2 and 3)."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from depsentinel.engines.dependency_scanner.models import Dependency, Ecosystem
from depsentinel.engines.dependency_scanner.parsers._common import load_json_object
from depsentinel.engines.dependency_scanner.registry import register_parser

_NODE_MODULES = "node_modules/"


def _name_from_package_path(path: str) -> str | None:
    """``node_modules/a/node_modules/@s/b`` -> ``@s/b``; workspace paths -> None."""
    idx = path.rfind(_NODE_MODULES)
    if idx == -1:
        return None
    return path[idx + len(_NODE_MODULES) :] or None


class NpmPackageLockParser:
    detection_method = "npm-package-lock"
    ecosystem = Ecosystem.NPM
    file_patterns = ["package-lock.json"]

    def parse(self, file_path: Path, content: str) -> list[Dependency]:
        data = load_json_object(file_path, content)

        pairs: list[tuple[str, str]] = []
        packages = data.get("packages")
        if isinstance(packages, dict):
            # v2 / v3: flat map keyed by install path; "" is the root project.
            for path, meta in packages.items():
                if not path or not isinstance(meta, dict) or meta.get("link"):
                    continue
                name = meta.get("name") or _name_from_package_path(path)
                version = meta.get("version")
                if isinstance(name, str) and isinstance(version, str):
                    pairs.append((name, version))
        else:
            # v1: nested "dependencies" tree.
            self._walk_v1(data.get("dependencies"), pairs)

        seen: set[tuple[str, str]] = set()
        deps: list[Dependency] = []
        for name, version in pairs:
            if (name, version) in seen:
                continue
            seen.add((name, version))
            deps.append(
                Dependency(
                    name=name,
                    version=version,
                    ecosystem=self.ecosystem,
                    file_path=str(file_path),
                )
            )
        return deps

    def _walk_v1(self, tree: Any, out: list[tuple[str, str]]) -> None:
        if not isinstance(tree, dict):
            return
        for name, meta in tree.items():
            if not isinstance(meta, dict):
                continue
            version = meta.get("version")
            if isinstance(version, str):
                out.append((name, version))
            self._walk_v1(meta.get("dependencies"), out)


register_parser(NpmPackageLockParser())
