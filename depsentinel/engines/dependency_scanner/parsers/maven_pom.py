"""Parser for Maven pom.xml files.

Regex-based rather than a full XML parse: POMs in the wild are often not
well-formed enough for ElementTree (unescaped entities, stray BOMs, template
placeholders), and only the ``<dependency>`` blocks are needed.
"""

from __future__ import annotations

import re
from pathlib import Path

from depsentinel.engines.dependency_scanner.models import Dependency, Ecosystem
from depsentinel.engines.dependency_scanner.parsers._common import line_number_at
from depsentinel.engines.dependency_scanner.registry import register_parser

_COMMENT_RE = re.compile(r"<!--.*?-->", re.DOTALL)

_DEPENDENCY_RE = re.compile(r"<dependency\b[^>/]*>(.*?)</dependency\s*>", re.DOTALL)

_EXCLUSIONS_RE = re.compile(r"<exclusions\b[^>]*>.*?</exclusions\s*>", re.DOTALL)

_PROPERTIES_RE = re.compile(r"<properties\b[^>]*>(.*?)</properties\s*>", re.DOTALL)

_PROPERTY_RE = re.compile(r"<([A-Za-z_][\w.-]*)\s*>\s*([^<]*?)\s*</\1\s*>")

_PROP_REF_RE = re.compile(r"\$\{([^}]+)\}")


def _child(body: str, tag: str) -> str | None:
    m = re.search(rf"<{tag}\b[^>]*>\s*([^<]*?)\s*</{tag}\s*>", body)
    return m.group(1) if m and m.group(1) else None


def _blank_comments(content: str) -> str:
    """Remove XML comments but keep their newlines so offsets map to lines."""
    return _COMMENT_RE.sub(lambda m: "\n" * m.group(0).count("\n"), content)


def _resolve_props(value: str, props: dict[str, str]) -> str:
    """Replace ${property} placeholders with values from <properties>."""

    def _replace(m: re.Match) -> str:
        key = m.group(1)
        return props.get(key, m.group(0))  # keep original if not found

    return _PROP_REF_RE.sub(_replace, value)


class MavenPomParser:
    detection_method = "maven-pom"
    ecosystem = Ecosystem.MAVEN
    file_patterns = ["pom.xml"]

    def parse(self, file_path: Path, content: str) -> list[Dependency]:
        text = _blank_comments(content)
        props = self._extract_properties(text)

        deps: list[Dependency] = []
        for m in _DEPENDENCY_RE.finditer(text):
            body = _EXCLUSIONS_RE.sub("", m.group(1))
            group_id = _child(body, "groupId")
            artifact_id = _child(body, "artifactId")
            if not artifact_id:
                continue

            version = _child(body, "version") or ""
            if version:
                version = _resolve_props(version, props)

            name = f"{group_id}:{artifact_id}" if group_id else artifact_id
            deps.append(
                Dependency(
                    name=_resolve_props(name, props),
                    version=version,
                    ecosystem=self.ecosystem,
                    file_path=str(file_path),
                    line_number=line_number_at(text, m.start()),
                )
            )

        return deps

    @staticmethod
    def _extract_properties(text: str) -> dict[str, str]:
        """Extract <properties> key-value pairs for ${...} substitution."""
        props: dict[str, str] = {}
        for block in _PROPERTIES_RE.finditer(text):
            for m in _PROPERTY_RE.finditer(block.group(1)):
                props[m.group(1)] = m.group(2)
        return props


register_parser(MavenPomParser())
