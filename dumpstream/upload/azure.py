# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Azure Blob Storage uploader.

Three ways to reach a container are supported:
- a storage account connection string
- an account name plus shared key
- a container URL carrying a SAS token

The returned URL never includes the SAS query string.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Union

import structlog

from dumpstream.archive import iter_archive
from dumpstream.exceptions import UploadError
from dumpstream.upload.naming import blob_name_for, strip_query

logger = structlog.get_logger()

UPLOAD_CHUNK_SIZE = 4 * 1024 * 1024


@dataclass(frozen=True)
class ConnectionStringTarget:
    connection_string: str = field(repr=False)
    container: str
    blob_prefix: str = ""


@dataclass(frozen=True)
class SharedKeyTarget:
    account_name: str
    account_key: str = field(repr=False)
    container: str
    blob_prefix: str = ""

    @property
    def account_url(self) -> str:
        return f"https://{self.account_name}.blob.core.windows.net"


@dataclass(frozen=True)
class ContainerSasTarget:
    container_sas_url: str = field(repr=False)
    blob_prefix: str = ""


AzureBlobTarget = Union[ConnectionStringTarget, SharedKeyTarget, ContainerSasTarget]


def _container_client(target: AzureBlobTarget) -> Any:
    """Create an async ContainerClient for the target."""
    from azure.storage.blob import StorageSharedKeyCredential
    from azure.storage.blob.aio import ContainerClient

    if isinstance(target, ConnectionStringTarget):
        return ContainerClient.from_connection_string(
            target.connection_string, container_name=target.container
        )

    if isinstance(target, ContainerSasTarget):
        return ContainerClient.from_container_url(target.container_sas_url)

    if not target.container:
        raise UploadError(
            "container is required for shared key uploads",
            details={"account_name": target.account_name},
        )
    credential = StorageSharedKeyCredential(target.account_name, target.account_key)
    return ContainerClient(
        account_url=target.account_url,
        container_name=target.container,
        credential=credential,
    )


async def upload_to_azure(
    target: AzureBlobTarget,
    archive_path: Path | str,
    blob_prefix: str | None = None,
) -> str:
    """
    Upload a finalized archive to Azure Blob Storage.

    The container is created when missing. An existing blob with the same
    name is overwritten. The archive is streamed to the SDK in chunks.

    Args:
        target: Connection string, shared key or container SAS target
        archive_path: Local archive to upload
        blob_prefix: Overrides the target's blob_prefix when given

    Returns:
        Blob URL without query string

    Raises:
        UploadError: If the upload fails
    """
    from azure.core.exceptions import AzureError, ResourceExistsError

    path = Path(archive_path)
    prefix = target.blob_prefix if blob_prefix is None else blob_prefix
    blob_name = blob_name_for(path, prefix)

    try:
        container = _container_client(target)
        async with container:
            try:
                await container.create_container()
            except ResourceExistsError:
                pass
            except AzureError as e:
                # SAS tokens scoped to a container usually cannot create it
                logger.warning("azure_container_create_skipped", error=str(e))

            blob = container.get_blob_client(blob_name)
            size = path.stat().st_size
            await blob.upload_blob(
                iter_archive(path, UPLOAD_CHUNK_SIZE),
                length=size,
                overwrite=True,
            )
            url = strip_query(blob.url)
    except UploadError:
        raise
    except Exception as e:
        raise UploadError(
            f"Azure upload failed: {e}",
            details={"archive_path": str(path), "blob_name": blob_name},
        ) from e

    logger.info(
        "azure_upload_complete",
        blob_name=blob_name,
        size=size,
    )
    return url
