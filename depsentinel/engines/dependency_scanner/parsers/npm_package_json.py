"""Parser for npm package.json files."""

from __future__ import annotations

from pathlib import Path

from depsentinel.engines.dependency_scanner.models import Dependency, Ecosystem
from depsentinel.engines.dependency_scanner.parsers._common import (
    load_json_object,
    string_items,
)
from depsentinel.engines.dependency_scanner.registry import register_parser

_DEP_SECTIONS = (
    "dependencies",
    "devDependencies",
    "peerDependencies",
    "optionalDependencies",
)


class NpmPackageJsonParser:
    detection_method = "npm-package-json"
    ecosystem = Ecosystem.NPM
    file_patterns = ["package.json"]

    def parse(self, file_path: Path, content: str) -> list[Dependency]:
        data = load_json_object(file_path, content)

        deps: list[Dependency] = []
        for section in _DEP_SECTIONS:
            for name, spec in string_items(data.get(section)):
                deps.append(
                    Dependency(
                        name=name,
                        version=spec,
                        ecosystem=self.ecosystem,
                        file_path=str(file_path),
                    )
                )
        return deps


register_parser(NpmPackageJsonParser())
