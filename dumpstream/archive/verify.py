# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
dumpstream Archive Verification - Integrity checks before upload.

Archives are streamed through the matching decompressor in a worker thread;
nothing is held in memory beyond one read buffer.
"""

import asyncio
import gzip
import zlib
from pathlib import Path

import structlog
import zstandard as zstd

from dumpstream.config import Compression

logger = structlog.get_logger()

_READ_SIZE = 1024 * 1024


async def verify_archive(path: Path, compression: Compression) -> bool:
    """
    Verify that an archive decompresses cleanly.

    Args:
        path: Archive path
        compression: Compressor the archive was produced with

    Returns:
        True if the archive is non-empty and decompresses without error
    """
    loop = asyncio.get_running_loop()
    try:
        return await loop.run_in_executor(
            None, _verify_archive_sync, Path(path), Compression(compression)
        )
    except (OSError, EOFError, zlib.error, zstd.ZstdError) as e:
        logger.warning("archive_verification_failed", path=str(path), error=str(e))
        return False


def _verify_archive_sync(path: Path, compression: Compression) -> bool:
    if path.stat().st_size == 0:
        return False

    if compression == Compression.GZIP:
        with gzip.open(path, "rb") as stream:
            while stream.read(_READ_SIZE):
                pass
        return True

    if compression == Compression.ZSTD:
        dctx = zstd.ZstdDecompressor()
        with open(path, "rb") as raw, dctx.stream_reader(raw) as stream:
            while stream.read(_READ_SIZE):
                pass
        return True

    return True
