"""Parser for Go go.mod files."""

from __future__ import annotations

import re
from pathlib import Path

from depsentinel.engines.dependency_scanner.models import Dependency, Ecosystem
from depsentinel.engines.dependency_scanner.registry import register_parser

# Single require: require github.com/foo/bar v1.2.3
_SINGLE_RE = re.compile(r"^require\s+(\S+)\s+(v\S+)")

# Inside require block: github.com/foo/bar v1.2.3 [// indirect]
_BLOCK_RE = re.compile(r"^(\S+)\s+(v\S+)")

_BLOCK_START_RE = re.compile(r"^require\s*\($")


class GoModParser:
    detection_method = "go-mod"
    ecosystem = Ecosystem.GO
    file_patterns = ["go.mod"]

    def parse(self, file_path: Path, content: str) -> list[Dependency]:
        deps: list[Dependency] = []
        in_require_block = False

        for lineno, raw_line in enumerate(content.splitlines(), start=1):
            # Trailing comments such as "// indirect" are dropped; indirect
            # requirements are still compiled in and can still be vulnerable.
            line = raw_line.split("//", 1)[0].strip()
            if not line:
                continue

            # Detect require block boundaries
            if _BLOCK_START_RE.match(line):
                in_require_block = True
                continue
            if in_require_block and line == ")":
                in_require_block = False
                continue

            m = _BLOCK_RE.match(line) if in_require_block else _SINGLE_RE.match(line)
            if not m:
                continue

            deps.append(
                Dependency(
                    name=m.group(1),
                    version=m.group(2),
                    ecosystem=self.ecosystem,
                    file_path=str(file_path),
                    line_number=lineno,
                )
            )

        return deps


register_parser(GoModParser())
