"""Parsers for PHP Composer files (composer.json / composer.lock)."""

from __future__ import annotations

from pathlib import Path

from depsentinel.engines.dependency_scanner.models import Dependency, Ecosystem
from depsentinel.engines.dependency_scanner.parsers._common import (
    load_json_object,
    string_items,
)
from depsentinel.engines.dependency_scanner.registry import register_parser


def _is_platform_package(name: str) -> bool:
    """php, hhvm, ext-*, lib-*, composer-plugin-api: resolved by the runtime.

    Packagist packages are always ``vendor/name``; platform ones never are.
    """
    return "/" not in name


class ComposerJsonParser:
    detection_method = "composer-json"
    ecosystem = Ecosystem.PACKAGIST
    file_patterns = ["composer.json"]

    def parse(self, file_path: Path, content: str) -> list[Dependency]:
        data = load_json_object(file_path, content)

        deps: list[Dependency] = []
        for section in ("require", "require-dev"):
            for name, spec in string_items(data.get(section)):
                if _is_platform_package(name):
                    continue
                deps.append(
                    Dependency(
                        name=name,
                        version=spec,
                        ecosystem=self.ecosystem,
                        file_path=str(file_path),
                    )
                )
        return deps


class ComposerLockParser:
    detection_method = "composer-lock"
    ecosystem = Ecosystem.PACKAGIST
    file_patterns = ["composer.lock"]

    def parse(self, file_path: Path, content: str) -> list[Dependency]:
        data = load_json_object(file_path, content)

        deps: list[Dependency] = []
        for section in ("packages", "packages-dev"):
            packages = data.get(section)
            if not isinstance(packages, list):
                continue
            for pkg in packages:
                if not isinstance(pkg, dict):
                    continue
                name, version = pkg.get("name"), pkg.get("version")
                if not isinstance(name, str) or not isinstance(version, str):
                    continue
                deps.append(
                    Dependency(
                        name=name,
                        version=version,
                        ecosystem=self.ecosystem,
                        file_path=str(file_path),
                    )
                )
        return deps


register_parser(ComposerJsonParser())
register_parser(ComposerLockParser())
