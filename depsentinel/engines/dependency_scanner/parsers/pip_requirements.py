"""Parser for pip requirements files."""

from __future__ import annotations

import re
from pathlib import Path

from depsentinel.engines.dependency_scanner.models import Dependency, Ecosystem
from depsentinel.engines.dependency_scanner.registry import register_parser

# Matches: package_name, optional [extras], then the version specifier(s)
_REQ_RE = re.compile(
    r"^([A-Za-z0-9]([A-Za-z0-9._-]*[A-Za-z0-9])?)"  # package name
    r"\s*(\[[^\]]*\])?"  # optional extras
    r"\s*"
    r"(.*)?$",  # everything after name = constraint
)

_SPEC_RE = re.compile(r"^(?:===|==|~=|!=|>=|<=|>|<)")


class PipRequirementsParser:
    detection_method = "pip-requirements"
    ecosystem = Ecosystem.PYPI
    file_patterns = ["requirements.txt", "requirements-*.txt", "requirements/*.txt"]

    def parse(self, file_path: Path, content: str) -> list[Dependency]:
        deps: list[Dependency] = []

        for lineno, raw_line in enumerate(content.splitlines(), start=1):
            line = raw_line.split(" #", 1)[0].strip()
            if not line or line.startswith("#"):
                continue
            if line.startswith("-"):
                # -r / -c / -e / --index-url and friends
                continue
            if "://" in line:
                continue

            # Environment markers: "pywin32==306; sys_platform == 'win32'"
            line = line.split(";", 1)[0].strip()

            m = _REQ_RE.match(line)
            if not m:
                continue

            name = m.group(1)
            constraint = (m.group(4) or "").strip()
            if constraint.startswith("@"):
                # PEP 508 direct reference, no registry version
                continue
            if constraint and not _SPEC_RE.match(constraint):
                continue

            deps.append(
                Dependency(
                    name=name,
                    version=constraint,
                    ecosystem=self.ecosystem,
                    file_path=str(file_path),
                    line_number=lineno,
                )
            )

        return deps


register_parser(PipRequirementsParser())
