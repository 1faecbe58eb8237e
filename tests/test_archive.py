# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Archive writer, path allocation and verification tests.
"""

import gzip
import re
from pathlib import Path

import pytest
import zstandard as zstd

from dumpstream.archive import (
    ArchiveWriter,
    iter_archive,
    new_archive_path,
    remove_archive,
    scratch_directory,
    verify_archive,
)
from dumpstream.config import Compression
from dumpstream.exceptions import SinkError


# ============================================================================
# Temp path allocation
# ============================================================================

def test_archive_path_naming(temp_dir: Path):
    path = new_archive_path("mysql", "sql.gz", temp_dir)

    assert path.parent == temp_dir
    assert re.fullmatch(r"mysql-[0-9a-f]{24}\.sql\.gz", path.name)


def test_archive_path_strips_leading_dot(temp_dir: Path):
    assert new_archive_path("pg", ".sql", temp_dir).name.endswith(".sql")
    assert "." not in new_archive_path("raw", "", temp_dir).name


def test_archive_paths_do_not_collide(temp_dir: Path):
    paths = {new_archive_path("dump", "out", temp_dir) for _ in range(2000)}
    assert len(paths) == 2000


def test_scratch_directory_defaults_to_platform_temp():
    import tempfile

    assert scratch_directory() == Path(tempfile.gettempdir())


# ============================================================================
# ArchiveWriter
# ============================================================================

@pytest.mark.asyncio
async def test_writer_writes_and_finalizes(temp_dir: Path):
    path = temp_dir / "a.out"

    async with ArchiveWriter(path) as sink:
        await sink.write(b"abc")
        await sink.write(b"def")
        finalized = await sink.finalize()
        assert sink.closed

    assert finalized == path
    assert path.read_bytes() == b"abcdef"
    assert sink.bytes_written == 6


@pytest.mark.asyncio
async def test_writer_closes_handle_on_error(temp_dir: Path):
    path = temp_dir / "b.out"
    sink = ArchiveWriter(path)

    with pytest.raises(RuntimeError):
        async with sink:
            await sink.write(b"partial")
            raise RuntimeError("stream broke")

    assert sink.closed
    assert sink.opened


@pytest.mark.asyncio
async def test_writer_refuses_existing_file(temp_dir: Path):
    path = temp_dir / "taken.out"
    path.write_bytes(b"someone else's data")
    sink = ArchiveWriter(path)

    with pytest.raises(SinkError):
        async with sink:
            pass

    assert not sink.opened
    assert path.read_bytes() == b"someone else's data"


@pytest.mark.asyncio
async def test_write_after_finalize_fails(temp_dir: Path):
    async with ArchiveWriter(temp_dir / "c.out") as sink:
        await sink.write(b"x")
        await sink.finalize()
        with pytest.raises(SinkError):
            await sink.write(b"y")


@pytest.mark.asyncio
async def test_iter_archive_reads_in_chunks(temp_dir: Path):
    path = temp_dir / "d.out"
    path.write_bytes(b"abcdefghij")

    chunks = [chunk async for chunk in iter_archive(path, 4)]

    assert chunks == [b"abcd", b"efgh", b"ij"]


def test_remove_archive(temp_dir: Path):
    path = temp_dir / "gone.out"
    path.write_bytes(b"x")

    assert remove_archive(path) is True
    assert not path.exists()
    assert remove_archive(path) is False
    assert remove_archive(None) is False


# ============================================================================
# Verification
# ============================================================================

@pytest.mark.asyncio
async def test_verify_gzip_archive(temp_dir: Path):
    good = temp_dir / "good.sql.gz"
    good.write_bytes(gzip.compress(b"CREATE TABLE t (id int);\n" * 100))
    bad = temp_dir / "bad.sql.gz"
    bad.write_bytes(gzip.compress(b"CREATE TABLE t (id int);\n" * 100)[:-12])

    assert await verify_archive(good, Compression.GZIP) is True
    assert await verify_archive(bad, Compression.GZIP) is False


@pytest.mark.asyncio
async def test_verify_zstd_archive(temp_dir: Path):
    good = temp_dir / "good.archive.zst"
    good.write_bytes(zstd.ZstdCompressor(level=3).compress(b"mongo archive bytes" * 50))
    bad = temp_dir / "bad.archive.zst"
    bad.write_bytes(b"definitely not zstd")

    assert await verify_archive(good, Compression.ZSTD) is True
    assert await verify_archive(bad, Compression.ZSTD) is False


@pytest.mark.asyncio
async def test_verify_uncompressed_archive(temp_dir: Path):
    full = temp_dir / "full.sql"
    full.write_bytes(b"data")
    empty = temp_dir / "empty.sql"
    empty.write_bytes(b"")

    assert await verify_archive(full, Compression.NONE) is True
    assert await verify_archive(empty, Compression.NONE) is False
    assert await verify_archive(temp_dir / "missing.sql", Compression.NONE) is False
