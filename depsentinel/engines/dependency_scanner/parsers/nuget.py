"""Parsers for .NET NuGet references (*.csproj / packages.config).

Attribute order and element form vary between tools:

  <PackageReference Include="Serilog" Version="3.1.1" />
  <PackageReference Version="13.0.1" Include="Newtonsoft.Json"/>
  <PackageReference Include="Dapper">
    <Version>2.1.24</Version>
  </PackageReference>
"""

from __future__ import annotations

import re
from pathlib import Path

from depsentinel.engines.dependency_scanner.models import Dependency, Ecosystem
from depsentinel.engines.dependency_scanner.parsers._common import line_number_at
from depsentinel.engines.dependency_scanner.registry import register_parser

_COMMENT_RE = re.compile(r"<!--.*?-->", re.DOTALL)

# Self-closing, or with a body up to the closing tag.
_PACKAGE_REF_RE = re.compile(
    r"<PackageReference\b([^>]*?)(?:/>|>(.*?)</PackageReference\s*>)",
    re.DOTALL,
)

_PACKAGE_RE = re.compile(r"<package\b([^>]*?)/?>")

_VERSION_ELEMENT_RE = re.compile(r"<Version\s*>\s*([^<]*?)\s*</Version\s*>")


def _attr(attrs: str, name: str) -> str | None:
    m = re.search(rf"""\b{name}\s*=\s*(?:"([^"]*)"|'([^']*)')""", attrs)
    if not m:
        return None
    return m.group(1) if m.group(1) is not None else m.group(2)


def _blank_comments(content: str) -> str:
    return _COMMENT_RE.sub(lambda m: "\n" * m.group(0).count("\n"), content)


class CsprojParser:
    detection_method = "nuget-csproj"
    ecosystem = Ecosystem.NUGET
    file_patterns = ["*.csproj"]

    def parse(self, file_path: Path, content: str) -> list[Dependency]:
        text = _blank_comments(content)
        deps: list[Dependency] = []

        for m in _PACKAGE_REF_RE.finditer(text):
            attrs, body = m.group(1), m.group(2) or ""
            name = _attr(attrs, "Include")
            if not name:
                # <PackageReference Update="..."> only tweaks an existing reference
                continue

            version = _attr(attrs, "Version") or _attr(attrs, "VersionOverride")
            if version is None:
                element = _VERSION_ELEMENT_RE.search(body)
                version = element.group(1) if element else ""

            deps.append(
                Dependency(
                    name=name,
                    version=version,
                    ecosystem=self.ecosystem,
                    file_path=str(file_path),
                    line_number=line_number_at(text, m.start()),
                )
            )

        return deps


class PackagesConfigParser:
    detection_method = "nuget-packages-config"
    ecosystem = Ecosystem.NUGET
    file_patterns = ["packages.config"]

    def parse(self, file_path: Path, content: str) -> list[Dependency]:
        text = _blank_comments(content)
        deps: list[Dependency] = []

        for m in _PACKAGE_RE.finditer(text):
            name = _attr(m.group(1), "id")
            version = _attr(m.group(1), "version")
            if not name or version is None:
                continue
            deps.append(
                Dependency(
                    name=name,
                    version=version,
                    ecosystem=self.ecosystem,
                    file_path=str(file_path),
                    line_number=line_number_at(text, m.start()),
                )
            )

        return deps


register_parser(CsprojParser())
register_parser(PackagesConfigParser())
