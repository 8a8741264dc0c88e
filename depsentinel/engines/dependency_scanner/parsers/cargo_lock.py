"""Parser for Rust Cargo.lock files."""

from __future__ import annotations

import re
from pathlib import Path

from depsentinel.engines.dependency_scanner.models import Dependency, Ecosystem
from depsentinel.engines.dependency_scanner.registry import register_parser

_PACKAGE_HEADER = "[[package]]"

_FIELD_RE = re.compile(r"""^(name|version|source)\s*=\s*"([^"]*)"$""")


class CargoLockParser:
    detection_method = "cargo-lock"
    ecosystem = Ecosystem.CRATES_IO
    file_patterns = ["Cargo.lock"]

    def parse(self, file_path: Path, content: str) -> list[Dependency]:
        deps: list[Dependency] = []
        block: dict[str, str] | None = None
        block_line = 0

        def flush() -> None:
            if not block or "name" not in block or "version" not in block:
                return
            # Workspace members have no source; git sources are not on crates.io.
            if not block.get("source", "").startswith("registry+"):
                return
            deps.append(
                Dependency(
                    name=block["name"],
                    version=block["version"],
                    ecosystem=self.ecosystem,
                    file_path=str(file_path),
                    line_number=block_line,
                )
            )

        for lineno, raw_line in enumerate(content.splitlines(), start=1):
            line = raw_line.strip()
            if line == _PACKAGE_HEADER:
                flush()
                block = {}
                block_line = lineno
                continue
            if line.startswith("["):
                flush()
                block = None
                continue
            if block is None:
                continue
            m = _FIELD_RE.match(line)
            if m:
                block[m.group(1)] = m.group(2)

        flush()
        return deps


register_parser(CargoLockParser())
