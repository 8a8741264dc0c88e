"""Parser for Pipenv Pipfile files.

Pipfile is TOML, but only the ``[packages]`` and ``[dev-packages]`` tables
matter here, so entries are pulled out line by line:

  requests = "==2.31.0"
  django = {version = ">=4.2", extras = ["bcrypt"]}
  flask = "*"
"""

from __future__ import annotations

import re
from pathlib import Path

from depsentinel.engines.dependency_scanner.models import Dependency, Ecosystem
from depsentinel.engines.dependency_scanner.registry import register_parser

_SECTIONS = ("packages", "dev-packages")

# [packages], or an array-of-tables header such as [[source]]
_SECTION_RE = re.compile(r"^\[\[?([^\[\]]+)\]\]?\s*(?:#.*)?$")

# name = "spec"
_STRING_RE = re.compile(
    r"""^["']?([A-Za-z0-9][A-Za-z0-9._-]*)["']?\s*=\s*["']([^"']*)["']"""
)

# name = { ... version = "spec" ... }
_TABLE_RE = re.compile(r"""^["']?([A-Za-z0-9][A-Za-z0-9._-]*)["']?\s*=\s*\{(.*)\}""")

_TABLE_VERSION_RE = re.compile(r"""\bversion\s*=\s*["']([^"']*)["']""")


class PipfileParser:
    detection_method = "pipfile"
    ecosystem = Ecosystem.PYPI
    file_patterns = ["Pipfile"]

    def parse(self, file_path: Path, content: str) -> list[Dependency]:
        deps: list[Dependency] = []
        section: str | None = None

        for lineno, raw_line in enumerate(content.splitlines(), start=1):
            line = raw_line.strip()
            if not line or line.startswith("#"):
                continue

            header = _SECTION_RE.match(line)
            if header:
                # [[source]] entries are never dependencies
                section = None if line.startswith("[[") else header.group(1).strip()
                continue
            if section not in _SECTIONS:
                continue

            name: str | None = None
            spec: str | None = None
            table = _TABLE_RE.match(line)
            if table:
                name = table.group(1)
                version = _TABLE_VERSION_RE.search(table.group(2))
                # git / path entries carry no version
                spec = version.group(1) if version else ""
            else:
                m = _STRING_RE.match(line)
                if m:
                    name, spec = m.group(1), m.group(2)

            if name is None or spec is None:
                continue

            deps.append(
                Dependency(
                    name=name,
                    version=spec,
                    ecosystem=self.ecosystem,
                    file_path=str(file_path),
                    line_number=lineno,
                )
            )

        return deps


register_parser(PipfileParser())
