# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
S3 uploader built on aiobotocore.

Archives up to ``part_size`` bytes go up in one ``put_object``; larger
ones are sent as a multipart upload, one part in memory at a time.
"""

from contextlib import aclosing
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List

import aiofiles
import structlog

from dumpstream.archive import iter_archive
from dumpstream.exceptions import UploadError
from dumpstream.upload.naming import blob_name_for

logger = structlog.get_logger()

# S3 requires every part except the last to be at least 5 MiB
MIN_PART_SIZE = 5 * 1024 * 1024
DEFAULT_PART_SIZE = 8 * 1024 * 1024


@dataclass(frozen=True)
class S3Target:
    bucket: str
    region: str = "us-east-1"
    prefix: str = ""
    endpoint_url: str | None = None
    part_size: int = DEFAULT_PART_SIZE


async def _put_small(s3_client: Any, bucket: str, key: str, path: Path) -> None:
    async with aiofiles.open(path, "rb") as f:
        content = await f.read()

    await s3_client.put_object(
        Bucket=bucket,
        Key=key,
        Body=content,
    )


async def _put_multipart(
    s3_client: Any,
    bucket: str,
    key: str,
    path: Path,
    part_size: int,
) -> int:
    """Upload ``path`` in parts; aborts the upload on failure. Returns part count."""
    upload = await s3_client.create_multipart_upload(Bucket=bucket, Key=key)
    upload_id = upload["UploadId"]
    parts: List[Dict[str, Any]] = []

    try:
        async with aclosing(iter_archive(path, part_size)) as chunks:
            async for chunk in chunks:
                part_number = len(parts) + 1
                response = await s3_client.upload_part(
                    Bucket=bucket,
                    Key=key,
                    UploadId=upload_id,
                    PartNumber=part_number,
                    Body=chunk,
                )
                parts.append({"ETag": response["ETag"], "PartNumber": part_number})

        await s3_client.complete_multipart_upload(
            Bucket=bucket,
            Key=key,
            UploadId=upload_id,
            MultipartUpload={"Parts": parts},
        )
    except Exception:
        try:
            await s3_client.abort_multipart_upload(
                Bucket=bucket, Key=key, UploadId=upload_id
            )
        except Exception as abort_error:
            logger.warning(
                "s3_multipart_abort_failed",
                bucket=bucket,
                key=key,
                error=str(abort_error),
            )
        raise

    return len(parts)


async def upload_to_s3(
    target: S3Target,
    archive_path: Path | str,
    session: Any = None,
) -> str:
    """
    Upload a finalized archive to S3.

    Args:
        target: Bucket, region and key prefix
        archive_path: Local archive to upload
        session: aiobotocore session (default: a new one)

    Returns:
        ``s3://bucket/key`` reference

    Raises:
        UploadError: If the upload fails
    """
    if session is None:
        from aiobotocore.session import get_session

        session = get_session()

    path = Path(archive_path)
    key = blob_name_for(path, target.prefix)
    part_size = max(target.part_size, MIN_PART_SIZE)

    try:
        size = path.stat().st_size
        async with session.create_client(
            "s3",
            region_name=target.region,
            endpoint_url=target.endpoint_url,
        ) as s3_client:
            if size <= part_size:
                parts = 1
                await _put_small(s3_client, target.bucket, key, path)
            else:
                parts = await _put_multipart(
                    s3_client, target.bucket, key, path, part_size
                )
    except Exception as e:
        raise UploadError(
            f"S3 upload failed: {e}",
            details={"bucket": target.bucket, "key": key},
        ) from e

    logger.info(
        "s3_upload_complete",
        bucket=target.bucket,
        key=key,
        size=size,
        parts=parts,
    )
    return f"s3://{target.bucket}/{key}"
