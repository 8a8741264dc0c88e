"""Parser for Go go.sum checksum files.

Each module version appears twice, once for the module zip and once for its
go.mod file:

  golang.org/x/text v0.3.7 h1:olpwvP2KacW1ZWvsR7uQhoyTYvKAupfQrRGBFM352Gk=
  golang.org/x/text v0.3.7/go.mod h1:u+2+/6zg+i71rQMx5EYifcz6MCKuco9NR6JIITiCfzQ=
"""

from __future__ import annotations

import re
from pathlib import Path

from depsentinel.engines.dependency_scanner.models import Dependency, Ecosystem
from depsentinel.engines.dependency_scanner.registry import register_parser

_LINE_RE = re.compile(r"^(\S+)\s+(v[^\s/]+)(/go\.mod)?\s+\S+$")


class GoSumParser:
    detection_method = "go-sum"
    ecosystem = Ecosystem.GO
    file_patterns = ["go.sum"]

    def parse(self, file_path: Path, content: str) -> list[Dependency]:
        seen: set[tuple[str, str]] = set()
        deps: list[Dependency] = []

        for lineno, raw_line in enumerate(content.splitlines(), start=1):
            line = raw_line.strip()
            if not line or line.startswith("//"):
                continue
            m = _LINE_RE.match(line)
            if not m or m.group(3):
                continue

            key = (m.group(1), m.group(2))
            if key in seen:
                continue
            seen.add(key)

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


register_parser(GoSumParser())
