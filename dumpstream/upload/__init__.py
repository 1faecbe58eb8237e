# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Upload Layer - Hand finalized archives to blob storage.
"""

from pathlib import Path
from typing import Union

from dumpstream.exceptions import UploadError
from dumpstream.upload.azure import (
    AzureBlobTarget,
    ConnectionStringTarget,
    ContainerSasTarget,
    SharedKeyTarget,
    upload_to_azure,
)
from dumpstream.upload.naming import blob_name_for
from dumpstream.upload.s3 import S3Target, upload_to_s3

UploadTarget = Union[ConnectionStringTarget, SharedKeyTarget, ContainerSasTarget, S3Target]


async def upload_archive(target: UploadTarget, archive_path: Path | str) -> str:
    """
    Upload an archive to whichever backend the target describes.

    Args:
        target: Azure or S3 target
        archive_path: Local archive to upload

    Returns:
        Reference to the uploaded object

    Raises:
        UploadError: If the target type is unknown or the upload fails
    """
    if isinstance(target, S3Target):
        return await upload_to_s3(target, archive_path)
    if isinstance(target, (ConnectionStringTarget, SharedKeyTarget, ContainerSasTarget)):
        return await upload_to_azure(target, archive_path)
    raise UploadError(f"Unsupported upload target: {type(target).__name__}")


__all__ = [
    "AzureBlobTarget",
    "ConnectionStringTarget",
    "ContainerSasTarget",
    "S3Target",
    "SharedKeyTarget",
    "UploadTarget",
    "blob_name_for",
    "upload_archive",
    "upload_to_azure",
    "upload_to_s3",
]
