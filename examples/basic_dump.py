# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Example nightly dump job.

Dumps the database named by DUMPSTREAM_DATABASE_URL and uploads the
archive to S3 or Azure Blob Storage.

Run with:
    python examples/basic_dump.py

Environment variables:
    DUMPSTREAM_DATABASE_URL: Database to dump (mysql://, postgresql://, mongodb://)
    DUMPSTREAM_COMPRESSION: gzip | zstd | none
    DUMPSTREAM_TIMEOUT_SECONDS: Hard deadline for the dump
    S3_BUCKET: Upload to this S3 bucket
    AZURE_STORAGE_CONNECTION_STRING: Upload to Azure instead of S3
"""

import asyncio
import os
import sys

import structlog

from dumpstream import create_request_from_env, dump_and_upload, settings_from_env
from dumpstream.upload import ConnectionStringTarget, S3Target

logger = structlog.get_logger()


def create_target():
    connection_string = os.getenv("AZURE_STORAGE_CONNECTION_STRING")
    if connection_string:
        return ConnectionStringTarget(
            connection_string=connection_string,
            container=os.getenv("AZURE_CONTAINER", "backups"),
            blob_prefix="nightly",
        )
    return S3Target(
        bucket=os.getenv("S3_BUCKET", "my-app-backups"),
        region=os.getenv("AWS_REGION", "us-east-1"),
        prefix="nightly",
    )


async def main() -> int:
    request = create_request_from_env()
    settings = settings_from_env()

    result = await dump_and_upload(request, create_target(), settings)
    if not result.ok:
        logger.error(
            "nightly_dump_failed",
            error=str(result.error),
            kept_archive=str(result.archive_path) if result.archive_path else None,
        )
        return 1

    logger.info("nightly_dump_done", blob_url=result.blob_url)
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
