"""Parser for Gradle build files (build.gradle / build.gradle.kts).

Extracts dependencies declared with standard Gradle configurations like
implementation, api, compileOnly, runtimeOnly, etc.

Handles both Groovy DSL and Kotlin DSL syntax:
  - implementation "group:artifact:version"
  - implementation("group:artifact:version")
  - implementation group: 'g', name: 'a', version: 'v'
  - api(project(":submodule"))          → skipped (internal)
"""

from __future__ import annotations

import re
from pathlib import Path

from depsentinel.engines.dependency_scanner.models import Dependency, Ecosystem
from depsentinel.engines.dependency_scanner.parsers._common import line_number_at
from depsentinel.engines.dependency_scanner.registry import register_parser

# Gradle configuration names (not exhaustive, but covers the common ones)
_CONFIGS = (
    r"(?:implementation|api|compileOnly|compileOnlyApi|runtimeOnly|"
    r"annotationProcessor|kapt|ksp|"
    r"testImplementation|testCompileOnly|testRuntimeOnly|"
    r"androidTestImplementation|debugImplementation|releaseImplementation|"
    r"optional|provided|compile|runtime|testCompile|testRuntime|"
    r"\w+Implementation|\w+Api|\w+CompileOnly|\w+RuntimeOnly)"
)

# configuration("group:artifact:version") or configuration "group:artifact:version"
_DEP_RE = re.compile(
    rf"\b{_CONFIGS}"
    r"\s*\(?\s*"
    r"""["']"""                          # opening quote
    r"([A-Za-z0-9._-]+)"                # group
    r":"
    r"([A-Za-z0-9._-]+)"                # artifact
    r"(?::([A-Za-z0-9._+\-\[\](),]+))?" # optional version
    r"""["']"""                          # closing quote
)

# configuration group: 'g', name: 'a', version: 'v'  (Groovy map notation)
# configuration(group = "g", name = "a", version = "v")  (Kotlin named args)
_MAP_RE = re.compile(
    rf"\b{_CONFIGS}"
    r"\s*\(?\s*"
    r"""group\s*[:=]\s*["']([^"']+)["']\s*,\s*"""
    r"""name\s*[:=]\s*["']([^"']+)["']"""
    r"""(?:\s*,\s*version\s*[:=]\s*["']([^"']+)["'])?"""
)


class GradleBuildParser:
    detection_method = "gradle"
    ecosystem = Ecosystem.MAVEN
    file_patterns = ["build.gradle", "build.gradle.kts"]

    def parse(self, file_path: Path, content: str) -> list[Dependency]:
        seen: set[tuple[str, str]] = set()
        deps: list[Dependency] = []

        matches = sorted(
            [*_DEP_RE.finditer(content), *_MAP_RE.finditer(content)],
            key=lambda m: m.start(),
        )
        for m in matches:
            group, artifact, version = m.group(1), m.group(2), m.group(3) or ""
            name = f"{group}:{artifact}"

            # Dedup
            if (name, version) in seen:
                continue
            seen.add((name, version))

            deps.append(
                Dependency(
                    name=name,
                    version=version,
                    ecosystem=self.ecosystem,
                    file_path=str(file_path),
                    line_number=line_number_at(content, m.start()),
                )
            )

        return deps


register_parser(GradleBuildParser())
