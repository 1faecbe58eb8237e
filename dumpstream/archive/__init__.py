# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Archive Layer - Scratch paths, streamed sink and integrity checks.
"""

from dumpstream.archive.verify import verify_archive
from dumpstream.archive.writer import (
    ArchiveWriter,
    iter_archive,
    new_archive_path,
    remove_archive,
    scratch_directory,
)

__all__ = [
    "ArchiveWriter",
    "iter_archive",
    "new_archive_path",
    "remove_archive",
    "scratch_directory",
    "verify_archive",
]
