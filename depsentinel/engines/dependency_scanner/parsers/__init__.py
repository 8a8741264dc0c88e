"""Manifest parsers: auto-registered on import."""

from depsentinel.engines.dependency_scanner.parsers import (
    cargo_lock,  # noqa: F401
    cargo_toml,  # noqa: F401
    composer,  # noqa: F401
    gemfile,  # noqa: F401
    gemfile_lock,  # noqa: F401
    go_mod,  # noqa: F401
    go_sum,  # noqa: F401
    gradle_build,  # noqa: F401
    maven_pom,  # noqa: F401
    npm_package_json,  # noqa: F401
    npm_package_lock,  # noqa: F401
    nuget,  # noqa: F401
    pip_requirements,  # noqa: F401
    pipfile,  # noqa: F401
    pipfile_lock,  # noqa: F401
)
