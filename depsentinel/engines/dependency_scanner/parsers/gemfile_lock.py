"""Parser for Ruby Bundler Gemfile.lock files.

Only the ``specs:`` list of the ``GEM`` section is read; ``GIT`` and
``PATH`` sources are not published on RubyGems.org.

  GEM
    remote: https://rubygems.org/
    specs:
      rack (2.2.8)
      nokogiri (1.15.4-x86_64-linux)
        racc (~> 1.4)
"""

from __future__ import annotations

import re
from pathlib import Path

from depsentinel.engines.dependency_scanner.models import Dependency, Ecosystem
from depsentinel.engines.dependency_scanner.registry import register_parser

# Exactly four spaces: resolved gems. Six spaces are their own requirements.
_SPEC_RE = re.compile(r"^ {4}([A-Za-z0-9._-]+) \(([^)\s]+)\)\s*$")

# Platform suffix on native gems: 1.15.4-x86_64-linux
_PLATFORM_SUFFIX_RE = re.compile(
    r"-(?:x86|x64|arm|aarch|universal|java|mswin|mingw|darwin)[\w.-]*$"
)


class GemfileLockParser:
    detection_method = "gemfile-lock"
    ecosystem = Ecosystem.RUBYGEMS
    file_patterns = ["Gemfile.lock"]

    def parse(self, file_path: Path, content: str) -> list[Dependency]:
        deps: list[Dependency] = []
        section: str | None = None
        in_specs = False

        for lineno, raw_line in enumerate(content.splitlines(), start=1):
            if not raw_line.strip():
                continue
            if not raw_line.startswith(" "):
                section = raw_line.strip()
                in_specs = False
                continue
            if section != "GEM":
                continue
            if raw_line.strip() == "specs:":
                in_specs = True
                continue
            if not in_specs:
                continue

            m = _SPEC_RE.match(raw_line)
            if not m:
                continue

            deps.append(
                Dependency(
                    name=m.group(1),
                    version=_PLATFORM_SUFFIX_RE.sub("", m.group(2)),
                    ecosystem=self.ecosystem,
                    file_path=str(file_path),
                    line_number=lineno,
                )
            )

        return deps


register_parser(GemfileLockParser())
