# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
dumpstream Core - Orchestration functions for dump runs.

This module ties the components together: build the pipeline for a
request, run it, optionally verify and upload the archive. Failures are
returned as values; retry policy is left to the caller.
"""

import asyncio
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List

import structlog
from ulid import ULID

from dumpstream.archive import remove_archive, verify_archive
from dumpstream.commands import build_pipeline_spec
from dumpstream.config import DumpRequest, ExecutorSettings
from dumpstream.exceptions import BuildError, DumpStreamError, ToolFailureError, UploadError
from dumpstream.pipeline import PipelineResult, run_pipeline
from dumpstream.upload import UploadTarget, upload_archive

logger = structlog.get_logger()


@dataclass
class DumpUploadResult:
    """Result of a dump followed by an upload."""

    pipeline: PipelineResult
    blob_url: str | None = None
    error: DumpStreamError | None = None
    archive_path: Path | None = None  # Set when the local archive was kept

    @property
    def ok(self) -> bool:
        return self.error is None and self.blob_url is not None


async def dump_database(
    request: DumpRequest,
    settings: ExecutorSettings | None = None,
) -> PipelineResult:
    """
    Dump one database into a compressed archive in the scratch directory.

    Args:
        request: Validated dump request
        settings: Executor settings

    Returns:
        PipelineResult; on success the caller owns the archive file
    """
    try:
        spec = build_pipeline_spec(request)
    except BuildError as e:
        logger.error("pipeline_build_failed", error=str(e))
        return PipelineResult(
            run_id=str(ULID()),
            engine=str(getattr(getattr(request, "engine", None), "value", "unknown")),
            error=e,
        )
    return await run_pipeline(spec, settings)


async def dump_databases(
    requests: Iterable[DumpRequest],
    settings: ExecutorSettings | None = None,
) -> List[PipelineResult]:
    """
    Dump several databases concurrently.

    No concurrency limit is applied here; bound the input if needed.

    Returns:
        One PipelineResult per request, in input order
    """
    return list(
        await asyncio.gather(
            *(dump_database(request, settings) for request in requests)
        )
    )


async def dump_and_upload(
    request: DumpRequest,
    target: UploadTarget,
    settings: ExecutorSettings | None = None,
    *,
    verify: bool = True,
    keep_archive: bool = False,
) -> DumpUploadResult:
    """
    Dump a database, verify the archive and upload it.

    The local archive is removed after a successful upload unless
    ``keep_archive`` is set. When the upload fails the archive is kept
    and returned so the caller can retry.

    Args:
        request: Validated dump request
        target: Azure or S3 upload target
        settings: Executor settings
        verify: Decompress the archive once before uploading
        keep_archive: Keep the local archive after upload

    Returns:
        DumpUploadResult
    """
    start = time.monotonic()
    result = await dump_database(request, settings)
    if not result.ok:
        return DumpUploadResult(pipeline=result, error=result.error)

    path = result.path

    if verify and not await verify_archive(path, request.compression):
        remove_archive(path)
        error = ToolFailureError(
            "Archive failed integrity verification",
            details={"run_id": result.run_id, "compression": request.compression.value},
        )
        return DumpUploadResult(pipeline=result, error=error)

    try:
        blob_url = await upload_archive(target, path)
    except UploadError as e:
        logger.error("archive_upload_failed", run_id=result.run_id, error=str(e))
        return DumpUploadResult(pipeline=result, error=e, archive_path=path)

    if not keep_archive:
        remove_archive(path)

    logger.info(
        "dump_uploaded",
        run_id=result.run_id,
        blob_url=blob_url,
        bytes_written=result.bytes_written,
        duration=time.monotonic() - start,
    )
    return DumpUploadResult(
        pipeline=result,
        blob_url=blob_url,
        archive_path=path if keep_archive else None,
    )
