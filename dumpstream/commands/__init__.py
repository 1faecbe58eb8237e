# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Command Builders - Turn dump requests into pipeline specs.
"""

from typing import Callable, Dict, Tuple

from dumpstream.commands.compressor import archive_extension, compressor_command
from dumpstream.commands.mongo import build_mongo_command
from dumpstream.commands.mysql import build_mysql_command
from dumpstream.commands.postgres import build_postgres_command
from dumpstream.commands.quoting import CommandLine, pipe, quote
from dumpstream.config import DumpRequest, Engine, PipelineSpec
from dumpstream.exceptions import BuildError

CommandBuilder = Callable[[DumpRequest], Tuple[CommandLine, Dict[str, str]]]

_BUILDERS: Dict[Engine, CommandBuilder] = {
    Engine.MYSQL: build_mysql_command,
    Engine.POSTGRES: build_postgres_command,
    Engine.MONGODB: build_mongo_command,
}

_BASE_EXTENSIONS = {
    Engine.MYSQL: "sql",
    Engine.POSTGRES: "sql",
    Engine.MONGODB: "archive",
}


def build_pipeline_spec(request: DumpRequest) -> PipelineSpec:
    """
    Build the full ``dump | compress`` pipeline for a request.

    Args:
        request: A MySQL, PostgreSQL or MongoDB dump request

    Returns:
        Immutable PipelineSpec

    Raises:
        BuildError: If the request type is not supported
    """
    engine = getattr(request, "engine", None)
    builder = _BUILDERS.get(engine)
    if builder is None:
        raise BuildError(
            f"Unsupported dump request: {type(request).__name__}",
            details={"engine": str(engine)},
        )

    dump_cmd, env = builder(request)
    compress_cmd = compressor_command(request.compression, request.compression_level)

    return PipelineSpec(
        command=pipe(dump_cmd, compress_cmd),
        env=env,
        timeout_seconds=request.timeout_seconds,
        prefix=engine.value,
        extension=archive_extension(_BASE_EXTENSIONS[engine], request.compression),
        engine=engine.value,
    )


__all__ = [
    "CommandLine",
    "build_pipeline_spec",
    "compressor_command",
    "pipe",
    "quote",
]
