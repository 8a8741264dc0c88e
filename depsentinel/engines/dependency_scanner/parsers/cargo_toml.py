"""Parser for Rust Cargo.toml files.

Handled shapes:

  [dependencies]
  serde = "1.0"
  tokio = { version = "1.35", features = ["full"] }
  json = { package = "serde_json", version = "1" }
  axum = {
      version = "0.7",
      features = ["macros"],
  }

  [target.'cfg(unix)'.dependencies]
  nix = "0.27"

  [dependencies.reqwest]
  version = "0.11"

Array-of-tables headers ([[bin]], [[example]], ...) end any open
dependency table.
"""

from __future__ import annotations

import re
from pathlib import Path

from depsentinel.engines.dependency_scanner.models import Dependency, Ecosystem
from depsentinel.engines.dependency_scanner.registry import register_parser

_DEP_SECTIONS = ("dependencies", "dev-dependencies", "build-dependencies")

# [table] or [[array-of-tables]]
_SECTION_RE = re.compile(r"^\[\[?([^\[\]]+)\]\]?\s*(?:#.*)?$")

_STRING_RE = re.compile(r"""^([A-Za-z0-9_-]+)\s*=\s*["']([^"']*)["']""")

_TABLE_START_RE = re.compile(r"""^([A-Za-z0-9_-]+)\s*=\s*\{(.*)$""")

_KEY_RE = r"""\b{key}\s*=\s*["']([^"']*)["']"""
_VERSION_RE = re.compile(_KEY_RE.format(key="version"))
_PACKAGE_RE = re.compile(_KEY_RE.format(key="package"))


def _is_dep_table(header: str) -> bool:
    """[dependencies], [workspace.dependencies], [target.'cfg(x)'.dev-dependencies]..."""
    last = header.rsplit(".", 1)[-1]
    return last in _DEP_SECTIONS


def _sub_table_crate(header: str) -> str | None:
    """[dependencies.reqwest] -> "reqwest"."""
    parts = header.split(".")
    if len(parts) >= 2 and parts[-2] in _DEP_SECTIONS:
        return parts[-1].strip("'\"")
    return None


def _brace_depth(text: str) -> int:
    return text.count("{") - text.count("}")


class CargoTomlParser:
    detection_method = "cargo-toml"
    ecosystem = Ecosystem.CRATES_IO
    file_patterns = ["Cargo.toml"]

    def parse(self, file_path: Path, content: str) -> list[Dependency]:
        deps: list[Dependency] = []
        in_dep_table = False
        # (name, line, version, package rename) of an open [dependencies.<name>] table
        sub_table: list | None = None
        # (name, line, body so far) of an inline table spanning several lines
        inline: list | None = None

        def flush_sub_table() -> None:
            if sub_table is not None:
                name, lineno, version, package = sub_table
                deps.append(self._dep(package or name, version or "", file_path, lineno))

        for lineno, raw_line in enumerate(content.splitlines(), start=1):
            line = raw_line.strip()
            if not line or line.startswith("#"):
                continue

            if inline is not None:
                inline[2] += " " + line
                if _brace_depth(inline[2]) < 0:
                    deps.append(self._inline_dep(inline[0], inline[2], file_path, inline[1]))
                    inline = None
                continue

            header = _SECTION_RE.match(line)
            if header:
                flush_sub_table()
                sub_table = None
                if line.startswith("[["):
                    in_dep_table = False
                    continue
                name = header.group(1).strip()
                in_dep_table = _is_dep_table(name)
                crate = None if in_dep_table else _sub_table_crate(name)
                if crate:
                    sub_table = [crate, lineno, None, None]
                continue

            if sub_table is not None:
                version = _VERSION_RE.match(line)
                if version:
                    sub_table[2] = version.group(1)
                package = _PACKAGE_RE.match(line)
                if package:
                    sub_table[3] = package.group(1)
                continue

            if not in_dep_table:
                continue

            table = _TABLE_START_RE.match(line)
            if table:
                # Opening brace already consumed by the regex.
                if _brace_depth(table.group(2)) < 0:
                    deps.append(self._inline_dep(table.group(1), table.group(2), file_path, lineno))
                else:
                    inline = [table.group(1), lineno, table.group(2)]
                continue

            m = _STRING_RE.match(line)
            if m:
                deps.append(self._dep(m.group(1), m.group(2), file_path, lineno))

        flush_sub_table()
        return deps

    def _inline_dep(self, name: str, body: str, file_path: Path, lineno: int) -> Dependency:
        version = _VERSION_RE.search(body)
        package = _PACKAGE_RE.search(body)
        return self._dep(
            package.group(1) if package else name,
            version.group(1) if version else "",
            file_path,
            lineno,
        )

    def _dep(self, name: str, version: str, file_path: Path, lineno: int) -> Dependency:
        return Dependency(
            name=name,
            version=version,
            ecosystem=self.ecosystem,
            file_path=str(file_path),
            line_number=lineno,
        )


register_parser(CargoTomlParser())
