"""OSV.dev response schemas.

Only the fields the correlator reads are modelled; anything else in the
upstream payload is ignored. Each advisory is validated on its own so one
malformed record never poisons the rest of a response.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class _OSVModel(BaseModel):
    # Some mirrors send CVSS scores as JSON numbers.
    model_config = ConfigDict(extra="ignore", frozen=True, coerce_numbers_to_str=True)


class OSVSeverity(_OSVModel):
    type: str
    score: str


class OSVEvent(_OSVModel):
    introduced: str | None = None
    fixed: str | None = None
    last_affected: str | None = None
    limit: str | None = None


class OSVRange(_OSVModel):
    type: str
    repo: str | None = None
    events: list[OSVEvent] = Field(default_factory=list)


class OSVPackage(_OSVModel):
    ecosystem: str = ""
    name: str = ""
    purl: str | None = None


class OSVAffected(_OSVModel):
    package: OSVPackage | None = None
    severity: list[OSVSeverity] = Field(default_factory=list)
    ranges: list[OSVRange] = Field(default_factory=list)
    versions: list[str] = Field(default_factory=list)
    database_specific: dict[str, Any] | None = None


class OSVReference(_OSVModel):
    type: str = "WEB"
    url: str


class OSVVulnerability(_OSVModel):
    id: str = Field(min_length=1)
    summary: str | None = None
    details: str | None = None
    aliases: list[str] = Field(default_factory=list)
    published: datetime | None = None
    modified: datetime | None = None
    severity: list[OSVSeverity] = Field(default_factory=list)
    affected: list[OSVAffected] = Field(default_factory=list)
    references: list[OSVReference] = Field(default_factory=list)
    database_specific: dict[str, Any] | None = None


class OSVQueryPage(_OSVModel):
    """One page of ``POST /v1/query``; advisories stay raw until validated."""

    vulns: list[Any] = Field(default_factory=list)
    next_page_token: str | None = None
