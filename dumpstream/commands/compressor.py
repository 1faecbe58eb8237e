# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Compressor stage of a dump pipeline.
"""

from dumpstream.commands.quoting import CommandLine
from dumpstream.config import DEFAULT_COMPRESSION_LEVEL, Compression

MIN_LEVEL = 1
MAX_LEVEL = 9

# File suffix appended to the dump extension
SUFFIXES = {
    Compression.GZIP: ".gz",
    Compression.ZSTD: ".zst",
    Compression.NONE: "",
}


def clamp_level(level: int | None) -> int:
    """Clamp a compression level into [1, 9]; None means the default."""
    if level is None:
        return DEFAULT_COMPRESSION_LEVEL
    return min(MAX_LEVEL, max(MIN_LEVEL, int(level)))


def compressor_command(compression: Compression, level: int | None = None) -> CommandLine:
    """
    Build the compressor invocation that reads stdin and writes stdout.

    Args:
        compression: Compressor to use
        level: Compression level, clamped into [1, 9]

    Returns:
        CommandLine for the compressor
    """
    lvl = clamp_level(level)
    if compression == Compression.GZIP:
        return CommandLine("gzip").flag("-c").flag(f"-{lvl}")
    if compression == Compression.ZSTD:
        return CommandLine("zstd").flag("-c").flag("-q").flag(f"-{lvl}")
    return CommandLine("cat")


def archive_extension(base: str, compression: Compression) -> str:
    """Return the archive extension, e.g. ``sql.gz``."""
    return f"{base}{SUFFIXES[compression]}"
