# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
dumpstream - Streamed, compressed database dumps with hard deadlines.

Runs mysqldump, pg_dump or mongodump piped through a compressor in one
shell, streams the result into a scratch archive, kills the whole process
group on timeout and never leaves partial archives behind.
"""

__version__ = "0.1.0"

# Request creation (user-facing API)
from dumpstream.builder import create_request, request_from_url

# Core functions
from dumpstream.core import (
    DumpUploadResult,
    dump_and_upload,
    dump_database,
    dump_databases,
)

# Environment-based configuration
from dumpstream.env import create_request_from_env, settings_from_env

# Engine building blocks
from dumpstream.commands import build_pipeline_spec, quote
from dumpstream.config import (
    Compression,
    Engine,
    ExecutorSettings,
    MongoDumpRequest,
    MySQLDumpRequest,
    PipelineSpec,
    PostgresDumpRequest,
)
from dumpstream.pipeline import PipelineResult, run_pipeline

__all__ = [
    # Version
    "__version__",
    # Request creation
    "create_request",
    "request_from_url",
    "create_request_from_env",
    "settings_from_env",
    # Orchestration
    "dump_database",
    "dump_databases",
    "dump_and_upload",
    "DumpUploadResult",
    # Engine
    "build_pipeline_spec",
    "quote",
    "run_pipeline",
    "PipelineResult",
    "PipelineSpec",
    "ExecutorSettings",
    "Engine",
    "Compression",
    "MySQLDumpRequest",
    "PostgresDumpRequest",
    "MongoDumpRequest",
]
