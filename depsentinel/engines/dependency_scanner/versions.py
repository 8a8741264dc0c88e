"""Version normalizer: reduce a declared constraint to a queryable version.

This is a best-effort heuristic, not a range solver: a range is reduced to
its lower or pinned bound. When the version a package manager would actually
resolve differs from that bound, matches can be missed.
"""

from __future__ import annotations

import re

from depsentinel.engines.dependency_scanner.models import Ecosystem

# Longest operators first so "~>" is not read as "~" + ">".
_OPERATOR_RE = re.compile(r"^(?:===|==|~=|~>|>=|<=|!=|\^|~|>|<|=)\s*")

_INTERVAL_RE = re.compile(r"^[\[(]\s*([^,\])]*)\s*(?:,\s*([^\])]*))?\s*[\])]$")

_WILDCARD_SEGMENT_RE = re.compile(r"(?<=\.)[xX*](?=\.|$)")

_GO_TAG_RE = re.compile(r"^[vV](?=\d)")

# Bounds that never name an installable version.
_UPPER_OR_EXCLUDED = ("<", "!=")

_UNPINNED = frozenset({"", "*", "x", "X", "latest", "next", "any"})

_NON_REGISTRY_PREFIXES = (
    "git+",
    "git:",
    "git@",
    "github:",
    "file:",
    "link:",
    "http:",
    "https:",
    "workspace:",
    "portal:",
    "path:",
)


def normalize_version(raw: str | None, ecosystem: Ecosystem | None = None) -> str:
    """Return the pinned (or lowest) version implied by *raw*, or ``""``.

    An empty result means the declaration carries no usable version (no
    constraint, ``*``, a git/file source) and cannot be used as an exact
    query key.

        >>> normalize_version("^1.2.3")
        '1.2.3'
        >>> normalize_version(">=1.0,<2.0")
        '1.0'
        >>> normalize_version("[1.0,2.0)", Ecosystem.MAVEN)
        '1.0'
    """
    if raw is None:
        return ""
    value = raw.strip().strip("'\"").strip()

    # npm alias: "npm:other-package@1.2.3"
    if value.startswith("npm:"):
        _, _, value = value[4:].rpartition("@")

    if value in _UNPINNED or value.startswith(_NON_REGISTRY_PREFIXES):
        return ""
    # Unresolved ${maven.property}, $(MSBuildProperty), or a "user/repo" shorthand
    if "$" in value or "/" in value:
        return ""

    # Alternatives: "1.x || 2.x"
    value = value.split("||")[0].strip()

    # Maven / NuGet interval notation.
    interval = _INTERVAL_RE.match(value)
    if interval:
        lower, upper = interval.group(1).strip(), (interval.group(2) or "").strip()
        value = lower or upper

    # Hyphen range: "1.2.3 - 2.0.0"
    if " - " in value:
        value = value.split(" - ")[0].strip()

    # Compound range: ">=1.0, <2.0" or "<2.0 >=1.0"
    value = _lower_bound(value)

    value = _OPERATOR_RE.sub("", value).strip()
    value = _GO_TAG_RE.sub("", value)

    if ecosystem is Ecosystem.GO or ecosystem is None:
        value = value.removesuffix("+incompatible")

    value = _WILDCARD_SEGMENT_RE.sub("0", value)

    if value in _UNPINNED:
        return ""
    return value


def _bounds(value: str) -> list[str]:
    """Split a compound range into operator+version pairs, in declared order."""
    bounds: list[str] = []
    for part in re.split(r"\s*,\s*", value):
        pending = ""
        for token in part.split():
            # "~> 5.0" / ">= 1.2": operator separated from its version by a space.
            if _OPERATOR_RE.fullmatch(token + " "):
                pending += token
                continue
            bounds.append(pending + token)
            pending = ""
        if pending:
            bounds.append(pending)
    return bounds


def _lower_bound(value: str) -> str:
    """First bound that is not an upper limit or exclusion; else the first one."""
    bounds = _bounds(value)
    if not bounds:
        return ""
    for bound in bounds:
        if not bound.startswith(_UPPER_OR_EXCLUDED):
            return bound
    return bounds[0]
