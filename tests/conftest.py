# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Test fixtures for dumpstream tests.

Provides scratch directories, executor settings and helpers for building
stub pipelines out of plain shell commands.
"""

import tempfile
from pathlib import Path
from typing import Generator

import pytest

from dumpstream.config import ExecutorSettings, PipelineSpec


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def settings(temp_dir: Path) -> ExecutorSettings:
    """Executor settings writing archives into the test scratch dir."""
    return ExecutorSettings(scratch_dir=temp_dir)


def stub_spec(
    command: str,
    *,
    timeout_seconds: float | None = None,
    env: dict | None = None,
    prefix: str = "stub",
) -> PipelineSpec:
    """Build a PipelineSpec around a stub shell command."""
    return PipelineSpec(
        command=command,
        env=env or {},
        timeout_seconds=timeout_seconds,
        prefix=prefix,
        extension="out",
        engine="stub",
    )


def archives_in(directory: Path) -> list[Path]:
    """List archive files left in a scratch directory."""
    return sorted(p for p in directory.iterdir() if p.is_file())


@pytest.fixture
def make_spec():
    """Factory fixture for stub pipeline specs."""
    return stub_spec


@pytest.fixture
def list_archives():
    """Helper fixture listing files in a scratch directory."""
    return archives_in
