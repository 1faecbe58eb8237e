# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Remote object naming shared by the uploaders.
"""

from datetime import datetime, UTC
from pathlib import Path


def blob_name_for(path: Path | str, prefix: str = "", now: datetime | None = None) -> str:
    """
    Build ``<prefix>/<YYYY>/<MM>/<DD>/<file name>`` for an archive.

    Args:
        path: Local archive path (only the file name is used)
        prefix: Optional leading folder
        now: Timestamp for the date folders (default: current UTC time)

    Returns:
        Remote object name
    """
    now = now or datetime.now(UTC)
    parts = [
        prefix.strip("/"),
        f"{now.year:04d}",
        f"{now.month:02d}",
        f"{now.day:02d}",
        Path(path).name,
    ]
    return "/".join(part for part in parts if part)


def strip_query(url: str) -> str:
    """Drop the query string (e.g. a SAS token) from a URL."""
    return url.split("?", 1)[0]
