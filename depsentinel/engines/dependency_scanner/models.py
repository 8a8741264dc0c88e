"""Data models for the dependency scanner engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class Ecosystem(str, Enum):
    """Package ecosystems; values are the OSV ecosystem names."""

    NPM = "npm"
    PYPI = "PyPI"
    GO = "Go"
    CRATES_IO = "crates.io"
    MAVEN = "Maven"
    PACKAGIST = "Packagist"
    RUBYGEMS = "RubyGems"
    NUGET = "NuGet"


@dataclass(frozen=True)
class Dependency:
    """A single dependency declared in a manifest file.

    Identity is (name, version, ecosystem, file_path); the line number is
    informational only.
    """

    name: str
    version: str  # raw, as declared
    ecosystem: Ecosystem
    file_path: str
    line_number: int | None = field(default=None, compare=False)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "version": self.version,
            "ecosystem": self.ecosystem.value,
            "file_path": self.file_path,
            "line_number": self.line_number,
        }


@dataclass(frozen=True)
class ParseFailure:
    """A manifest that was skipped because it could not be read or parsed."""

    file_path: str
    parser: str
    reason: str

    def to_dict(self) -> dict:
        return {"file_path": self.file_path, "parser": self.parser, "reason": self.reason}


@dataclass
class CollectResult:
    """Outcome of locating and parsing every manifest under a project root."""

    dependencies: list[Dependency]
    parse_failures: list[ParseFailure] = field(default_factory=list)
    manifest_count: int = 0
