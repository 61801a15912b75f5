"""Shared test fixtures for timebox tests."""

import stat
from pathlib import Path

import pytest
from rich.console import Console


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def console() -> Console:
    return Console(
        width=70,
        force_terminal=True,
        highlight=False,
        color_system=None,
        legacy_windows=False,
    )


@pytest.fixture
def make_script(tmp_path: Path):
    """Return a function that writes an executable shell script."""

    def _make(name: str, body: str, *, executable: bool = True) -> Path:
        path = tmp_path / name
        _ = path.write_text(f"#!/bin/sh\n{body}\n")
        if executable:
            path.chmod(path.stat().st_mode | stat.S_IXUSR)
        return path

    return _make
