"""Helpers shared by the manifest parsers."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from depsentinel.exceptions import ManifestParseError


def load_json_object(file_path: Path, content: str) -> dict[str, Any]:
    """Parse *content* as a JSON object or raise ManifestParseError."""
    try:
        data = json.loads(content)
    except json.JSONDecodeError as exc:
        raise ManifestParseError(
            f"{file_path.name}: invalid JSON ({exc.msg} at line {exc.lineno})"
        ) from exc
    if not isinstance(data, dict):
        raise ManifestParseError(f"{file_path.name}: expected a JSON object")
    return data


def string_items(table: Any) -> list[tuple[str, str]]:
    """Return the (name, spec) pairs of a JSON mapping whose values are strings."""
    if not isinstance(table, dict):
        return []
    return [(k, v) for k, v in table.items() if isinstance(k, str) and isinstance(v, str)]


def line_number_at(content: str, offset: int) -> int:
    """1-based line number of character *offset* in *content*."""
    return content.count("\n", 0, offset) + 1
