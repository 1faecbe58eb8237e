# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
dumpstream Archive Writer - Scratch paths and the streamed archive sink.

Each pipeline writes to its own uniquely named file, so concurrent
pipelines share the scratch directory without locking.
"""

import asyncio
import os
import secrets
import tempfile
from pathlib import Path
from typing import AsyncIterator

import aiofiles
import structlog

from dumpstream.exceptions import SinkError

logger = structlog.get_logger()

# 12 random bytes -> 24 hex chars
_SUFFIX_BYTES = 12


def scratch_directory(directory: Path | str | None = None) -> Path:
    """Return the scratch directory, defaulting to the platform temp dir."""
    if directory is None:
        return Path(tempfile.gettempdir())
    return Path(directory)


def new_archive_path(
    prefix: str,
    extension: str,
    directory: Path | str | None = None,
) -> Path:
    """
    Allocate a collision-resistant archive path.

    Args:
        prefix: Caller-chosen prefix (e.g. the engine name)
        extension: File extension without the leading dot (e.g. ``sql.gz``)
        directory: Scratch directory (default: platform temp dir)

    Returns:
        ``<directory>/<prefix>-<random-hex>.<extension>``
    """
    suffix = secrets.token_hex(_SUFFIX_BYTES)
    extension = extension.lstrip(".")
    name = f"{prefix}-{suffix}.{extension}" if extension else f"{prefix}-{suffix}"
    return scratch_directory(directory) / name


def remove_archive(path: Path | str | None) -> bool:
    """
    Delete an archive file, best effort.

    Returns:
        True if a file was removed
    """
    if path is None:
        return False
    try:
        os.unlink(path)
    except FileNotFoundError:
        return False
    except OSError as e:
        logger.warning("archive_remove_failed", path=str(path), error=str(e))
        return False
    logger.debug("archive_removed", path=str(path))
    return True


class ArchiveWriter:
    """
    Scoped sink for a compressed dump stream.

    The file is created exclusively on enter and the handle is closed on
    every exit path. ``finalize()`` is the completion signal: it returns only
    after the data is flushed to disk and the handle is closed.

    Example:
        async with ArchiveWriter(path) as sink:
            await sink.write(chunk)
            await sink.finalize()
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self.bytes_written = 0
        self._file = None
        self._closed = False

    async def __aenter__(self) -> "ArchiveWriter":
        try:
            self._file = await aiofiles.open(self.path, "xb")
        except OSError as e:
            raise SinkError(
                f"Failed to open archive: {e}",
                details={"path": str(self.path)},
            ) from e
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self._close()

    @property
    def opened(self) -> bool:
        """True once this writer has created the file."""
        return self._file is not None

    @property
    def closed(self) -> bool:
        return self._closed

    async def write(self, chunk: bytes) -> None:
        if self._file is None or self._closed:
            raise SinkError(
                "Archive is not open for writing",
                details={"path": str(self.path)},
            )
        try:
            await self._file.write(chunk)
        except OSError as e:
            raise SinkError(
                f"Failed to write archive: {e}",
                details={"path": str(self.path), "bytes_written": self.bytes_written},
            ) from e
        self.bytes_written += len(chunk)

    async def finalize(self) -> Path:
        """Flush, fsync and close the archive; return its path."""
        if self._file is None:
            raise SinkError(
                "Archive was never opened",
                details={"path": str(self.path)},
            )
        if not self._closed:
            try:
                await self._file.flush()
                loop = asyncio.get_running_loop()
                await loop.run_in_executor(None, os.fsync, self._file.fileno())
            except OSError as e:
                await self._close()
                raise SinkError(
                    f"Failed to flush archive: {e}",
                    details={"path": str(self.path)},
                ) from e
            await self._close()
        return self.path

    async def _close(self) -> None:
        if self._file is None or self._closed:
            return
        self._closed = True
        try:
            await self._file.close()
        except OSError as e:
            logger.warning("archive_close_failed", path=str(self.path), error=str(e))


async def iter_archive(path: Path | str, chunk_size: int) -> AsyncIterator[bytes]:
    """Read a finished archive in chunks without blocking the event loop."""
    async with aiofiles.open(path, "rb") as f:
        while True:
            chunk = await f.read(chunk_size)
            if not chunk:
                break
            yield chunk
