"""Parser for Pipenv Pipfile.lock files."""

from __future__ import annotations

from pathlib import Path

from depsentinel.engines.dependency_scanner.models import Dependency, Ecosystem
from depsentinel.engines.dependency_scanner.parsers._common import load_json_object
from depsentinel.engines.dependency_scanner.registry import register_parser

_SECTIONS = ("default", "develop")


class PipfileLockParser:
    detection_method = "pipfile-lock"
    ecosystem = Ecosystem.PYPI
    file_patterns = ["Pipfile.lock"]

    def parse(self, file_path: Path, content: str) -> list[Dependency]:
        data = load_json_object(file_path, content)

        deps: list[Dependency] = []
        for section in _SECTIONS:
            table = data.get(section)
            if not isinstance(table, dict):
                continue
            for name, meta in table.items():
                if not isinstance(meta, dict):
                    continue
                version = meta.get("version")
                if not isinstance(version, str):
                    continue
                deps.append(
                    Dependency(
                        name=name,
                        version=version,
                        ecosystem=self.ecosystem,
                        file_path=str(file_path),
                    )
                )
        return deps


register_parser(PipfileLockParser())
