"""Parser for Ruby Bundler Gemfile files."""

from __future__ import annotations

import re
from pathlib import Path

from depsentinel.engines.dependency_scanner.models import Dependency, Ecosystem
from depsentinel.engines.dependency_scanner.registry import register_parser

# gem "rails", "~> 7.0", ">= 7.0.4", require: false
_GEM_RE = re.compile(r"""^gem\s*\(?\s*["']([^"']+)["']((?:\s*,\s*["'][^"']*["'])*)""")

_CONSTRAINT_RE = re.compile(r"""["']([^"']*)["']""")


class GemfileParser:
    detection_method = "gemfile"
    ecosystem = Ecosystem.RUBYGEMS
    file_patterns = ["Gemfile"]

    def parse(self, file_path: Path, content: str) -> list[Dependency]:
        deps: list[Dependency] = []

        for lineno, raw_line in enumerate(content.splitlines(), start=1):
            line = raw_line.strip()
            if not line or line.startswith("#"):
                continue

            m = _GEM_RE.match(line)
            if not m:
                continue

            constraints = _CONSTRAINT_RE.findall(m.group(2))
            deps.append(
                Dependency(
                    name=m.group(1),
                    # Extra constraints narrow the range; the first one carries the pin.
                    version=constraints[0] if constraints else "",
                    ecosystem=self.ecosystem,
                    file_path=str(file_path),
                    line_number=lineno,
                )
            )

        return deps


register_parser(GemfileParser())
