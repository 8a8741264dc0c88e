"""Shared fixtures for depsentinel tests. No network access is needed."""

from __future__ import annotations

import pytest


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


@pytest.fixture
def write(tmp_path):
    """Write a file under tmp_path (creating parents) and return its path."""

    def _write(rel: str, content: str):
        path = tmp_path / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
        return path

    return _write
