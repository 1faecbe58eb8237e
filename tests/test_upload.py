# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Uploader tests with in-memory fakes for the storage clients.
"""

from datetime import datetime, UTC
from pathlib import Path

import pytest
from azure.core.exceptions import HttpResponseError, ResourceExistsError

import dumpstream.upload.azure as azure_upload
import dumpstream.upload.s3 as s3_upload
from dumpstream.exceptions import UploadError
from dumpstream.upload import (
    ConnectionStringTarget,
    ContainerSasTarget,
    S3Target,
    SharedKeyTarget,
    blob_name_for,
    upload_archive,
    upload_to_azure,
    upload_to_s3,
)
from dumpstream.upload.naming import strip_query


@pytest.fixture
def archive(temp_dir: Path) -> Path:
    path = temp_dir / "mysql-0123456789abcdef01234567.sql.gz"
    path.write_bytes(b"archive-bytes")
    return path


# ============================================================================
# Naming
# ============================================================================

def test_blob_name_uses_date_folders():
    now = datetime(2026, 3, 7, 12, 0, tzinfo=UTC)

    assert blob_name_for("/tmp/a.sql.gz", "backups/prod/", now) == (
        "backups/prod/2026/03/07/a.sql.gz"
    )
    assert blob_name_for("a.sql.gz", now=now) == "2026/03/07/a.sql.gz"


def test_strip_query():
    assert strip_query("https://acct.blob.core.windows.net/c/b?sv=1&sig=x") == (
        "https://acct.blob.core.windows.net/c/b"
    )
    assert strip_query("https://host/path") == "https://host/path"


def test_secrets_are_not_in_target_repr():
    assert "SECRET" not in repr(SharedKeyTarget("acct", "SECRET", "c"))
    assert "SECRET" not in repr(ContainerSasTarget("https://x/c?sig=SECRET"))
    assert "SECRET" not in repr(ConnectionStringTarget("AccountKey=SECRET", "c"))


def test_shared_key_account_url():
    assert SharedKeyTarget("acct", "k", "c").account_url == (
        "https://acct.blob.core.windows.net"
    )


# ============================================================================
# S3
# ============================================================================

class FakeS3Client:
    def __init__(self, fail: bool = False, fail_on_part: int | None = None):
        self.fail = fail
        self.fail_on_part = fail_on_part
        self.objects = {}
        self.parts = {}
        self.completed = []
        self.aborted = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return False

    async def put_object(self, Bucket, Key, Body):
        if self.fail:
            raise RuntimeError("access denied")
        assert isinstance(Body, bytes)
        self.objects[(Bucket, Key)] = Body

    async def create_multipart_upload(self, Bucket, Key):
        return {"UploadId": "upload-1"}

    async def upload_part(self, Bucket, Key, UploadId, PartNumber, Body):
        if PartNumber == self.fail_on_part:
            raise RuntimeError("connection reset")
        self.parts[PartNumber] = Body
        return {"ETag": f'"etag-{PartNumber}"'}

    async def complete_multipart_upload(self, Bucket, Key, UploadId, MultipartUpload):
        self.completed.append(MultipartUpload["Parts"])
        data = b"".join(self.parts[p["PartNumber"]] for p in MultipartUpload["Parts"])
        self.objects[(Bucket, Key)] = data

    async def abort_multipart_upload(self, Bucket, Key, UploadId):
        self.aborted.append(UploadId)


class FakeSession:
    def __init__(self, client: FakeS3Client):
        self.client = client
        self.calls = []

    def create_client(self, service, **kwargs):
        self.calls.append((service, kwargs))
        return self.client


@pytest.mark.asyncio
async def test_upload_to_s3(archive: Path):
    client = FakeS3Client()
    session = FakeSession(client)
    target = S3Target(bucket="dumps", region="eu-west-1", prefix="nightly")

    ref = await upload_to_s3(target, archive, session=session)

    [(bucket, key)] = client.objects
    assert bucket == "dumps"
    assert key.startswith("nightly/")
    assert key.endswith("/" + archive.name)
    assert client.objects[(bucket, key)] == b"archive-bytes"
    assert ref == f"s3://dumps/{key}"
    assert session.calls[0] == (
        "s3",
        {"region_name": "eu-west-1", "endpoint_url": None},
    )


@pytest.mark.asyncio
async def test_upload_to_s3_wraps_errors(archive: Path):
    session = FakeSession(FakeS3Client(fail=True))

    with pytest.raises(UploadError) as exc_info:
        await upload_to_s3(S3Target(bucket="dumps"), archive, session=session)

    assert isinstance(exc_info.value.__cause__, RuntimeError)
    assert exc_info.value.details["bucket"] == "dumps"


@pytest.mark.asyncio
async def test_large_archive_uses_multipart_upload(temp_dir: Path, monkeypatch):
    monkeypatch.setattr(s3_upload, "MIN_PART_SIZE", 1)
    path = temp_dir / "pg-0123456789abcdef01234567.sql.zst"
    path.write_bytes(b"0123456789")
    client = FakeS3Client()

    ref = await upload_to_s3(
        S3Target(bucket="dumps", part_size=4), path, session=FakeSession(client)
    )

    [(bucket, key)] = client.objects
    assert client.objects[(bucket, key)] == b"0123456789"
    assert client.parts == {1: b"0123", 2: b"4567", 3: b"89"}
    assert [p["PartNumber"] for p in client.completed[0]] == [1, 2, 3]
    assert client.aborted == []
    assert ref == f"s3://dumps/{key}"


@pytest.mark.asyncio
async def test_failed_multipart_upload_is_aborted(temp_dir: Path, monkeypatch):
    monkeypatch.setattr(s3_upload, "MIN_PART_SIZE", 1)
    path = temp_dir / "pg-0123456789abcdef01234567.sql.zst"
    path.write_bytes(b"0123456789")
    client = FakeS3Client(fail_on_part=2)

    with pytest.raises(UploadError):
        await upload_to_s3(
            S3Target(bucket="dumps", part_size=4), path, session=FakeSession(client)
        )

    assert client.aborted == ["upload-1"]
    assert client.completed == []
    assert client.objects == {}


# ============================================================================
# Azure
# ============================================================================

class FakeBlobClient:
    def __init__(self, container: "FakeContainerClient", name: str):
        self.container = container
        self.name = name
        self.url = f"https://acct.blob.core.windows.net/dumps/{name}?sv=2024&sig=abc"

    async def upload_blob(self, data, length=None, overwrite=False):
        if self.container.upload_error is not None:
            raise self.container.upload_error
        assert hasattr(data, "__aiter__")
        content = b"".join([chunk async for chunk in data])
        assert len(content) == length
        self.container.blobs[self.name] = (content, overwrite)


class FakeContainerClient:
    def __init__(self, create_error=None, upload_error=None):
        self.create_error = create_error
        self.upload_error = upload_error
        self.blobs = {}
        self.closed = False

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        self.closed = True
        return False

    async def create_container(self):
        if self.create_error is not None:
            raise self.create_error

    def get_blob_client(self, name):
        return FakeBlobClient(self, name)


@pytest.mark.asyncio
async def test_upload_to_azure(archive: Path, monkeypatch):
    container = FakeContainerClient(create_error=ResourceExistsError("exists"))
    monkeypatch.setattr(azure_upload, "_container_client", lambda target: container)
    target = ContainerSasTarget("https://acct.blob.core.windows.net/dumps?sig=abc", "db")

    url = await upload_to_azure(target, archive)

    [(name, (data, overwrite))] = container.blobs.items()
    assert name.startswith("db/")
    assert name.endswith(archive.name)
    assert data == b"archive-bytes"
    assert overwrite is True
    assert "?" not in url
    assert url.endswith(name)
    assert container.closed


@pytest.mark.asyncio
async def test_upload_to_azure_continues_when_container_cannot_be_created(
    archive: Path, monkeypatch
):
    container = FakeContainerClient(create_error=HttpResponseError("forbidden"))
    monkeypatch.setattr(azure_upload, "_container_client", lambda target: container)

    await upload_to_azure(ConnectionStringTarget("UseDevelopmentStorage=true", "dumps"), archive)

    assert len(container.blobs) == 1


@pytest.mark.asyncio
async def test_upload_to_azure_wraps_errors(archive: Path, monkeypatch):
    container = FakeContainerClient(upload_error=OSError("connection reset"))
    monkeypatch.setattr(azure_upload, "_container_client", lambda target: container)

    with pytest.raises(UploadError) as exc_info:
        await upload_to_azure(SharedKeyTarget("acct", "key", "dumps"), archive)

    assert isinstance(exc_info.value.__cause__, OSError)
    assert exc_info.value.details["archive_path"] == str(archive)


# ============================================================================
# Dispatch
# ============================================================================

@pytest.mark.asyncio
async def test_upload_archive_dispatches_by_target(archive: Path, monkeypatch):
    seen = []

    async def fake_s3(target, path):
        seen.append(("s3", target))
        return "s3://b/k"

    async def fake_azure(target, path):
        seen.append(("azure", target))
        return "https://acct/c/k"

    monkeypatch.setattr("dumpstream.upload.upload_to_s3", fake_s3)
    monkeypatch.setattr("dumpstream.upload.upload_to_azure", fake_azure)

    assert await upload_archive(S3Target(bucket="b"), archive) == "s3://b/k"
    assert await upload_archive(SharedKeyTarget("acct", "k", "c"), archive) == (
        "https://acct/c/k"
    )
    assert [kind for kind, _ in seen] == ["s3", "azure"]


@pytest.mark.asyncio
async def test_upload_archive_rejects_unknown_target(archive: Path):
    with pytest.raises(UploadError):
        await upload_archive(object(), archive)


@pytest.mark.asyncio
async def test_upload_to_azure_prefix_override(archive: Path, monkeypatch):
    container = FakeContainerClient()
    monkeypatch.setattr(azure_upload, "_container_client", lambda target: container)
    target = ConnectionStringTarget("UseDevelopmentStorage=true", "dumps", blob_prefix="db")

    await upload_to_azure(target, archive, blob_prefix="adhoc")

    [name] = container.blobs
    assert name.startswith("adhoc/")
