# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Environment-based configuration helpers.

Build a dump request and executor settings from a small set of
well-known environment variables:

- DUMPSTREAM_DATABASE_URL (or DATABASE_URL): what to dump
- DUMPSTREAM_COMPRESSION: 'gzip' | 'zstd' | 'none' (default: gzip)
- DUMPSTREAM_COMPRESSION_LEVEL: 1-9 (default: 6, clamped)
- DUMPSTREAM_TIMEOUT_SECONDS: deadline in seconds (default: none)
- DUMPSTREAM_SCRATCH_DIR: archive directory (default: platform temp dir)
- DUMPSTREAM_SHELL: shell used to run pipelines (default: bash if installed, else sh)
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Mapping

from dumpstream.builder import request_from_url
from dumpstream.config import Compression, DumpRequest, ExecutorSettings
from dumpstream.errors import (
    explain_invalid_compression_env,
    explain_invalid_number_env,
    explain_missing_database_url_env,
)
from dumpstream.exceptions import ConfigurationError


def _parse_compression(value: str | None) -> Compression:
    if not value:
        return Compression.GZIP
    try:
        return Compression(value.lower())
    except ValueError as exc:
        raise ConfigurationError(explain_invalid_compression_env(value)) from exc


def _parse_int(name: str, value: str | None) -> int | None:
    if not value:
        return None
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(explain_invalid_number_env(name, value)) from exc


def _parse_float(name: str, value: str | None) -> float | None:
    if not value:
        return None
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(explain_invalid_number_env(name, value)) from exc


def create_request_from_env(
    environ: Mapping[str, str] | None = None,
    **overrides: Any,
) -> DumpRequest:
    """
    Create a dump request from environment variables.

    Args:
        environ: Mapping to read instead of os.environ
        **overrides: Request fields applied on top (e.g. exclude=[...])

    Returns:
        Validated dump request
    """
    env = os.environ if environ is None else environ

    url = env.get("DUMPSTREAM_DATABASE_URL") or env.get("DATABASE_URL")
    if not url:
        raise ConfigurationError(explain_missing_database_url_env())

    fields: dict[str, Any] = {
        "compression": _parse_compression(env.get("DUMPSTREAM_COMPRESSION")),
    }

    level = _parse_int(
        "DUMPSTREAM_COMPRESSION_LEVEL", env.get("DUMPSTREAM_COMPRESSION_LEVEL")
    )
    if level is not None:
        fields["compression_level"] = level

    timeout = _parse_float(
        "DUMPSTREAM_TIMEOUT_SECONDS", env.get("DUMPSTREAM_TIMEOUT_SECONDS")
    )
    if timeout is not None:
        fields["timeout_seconds"] = timeout

    fields.update(overrides)
    return request_from_url(url, **fields)


def settings_from_env(environ: Mapping[str, str] | None = None) -> ExecutorSettings:
    """
    Create executor settings from environment variables.
    """
    env = os.environ if environ is None else environ

    scratch = env.get("DUMPSTREAM_SCRATCH_DIR")
    return ExecutorSettings(
        shell=env.get("DUMPSTREAM_SHELL") or None,
        scratch_dir=Path(scratch) if scratch else None,
    )
