"""Attachment storage backends and helpers.

Attachments are opaque blobs addressed by a generated file name. Two backends
are provided: a directory on local disk and a MinIO bucket. Both expose the
same blocking interface; async callers run them through ``asyncio.to_thread``.
"""

from __future__ import annotations

import mimetypes
import os
import re
import tempfile
from datetime import timedelta
from io import BytesIO
from pathlib import Path
from typing import Protocol, runtime_checkable
from uuid import uuid4

from minio import Minio
from minio.error import S3Error

from core import Settings, TooLarge

MISSING_OBJECT_CODES = frozenset({"NoSuchKey", "NoSuchObject", "ResourceNotFound"})
EXISTING_BUCKET_CODES = frozenset({"BucketAlreadyOwnedByYou", "BucketAlreadyExists"})
DEFAULT_CONTENT_TYPE = "application/octet-stream"
MAX_ATTACHMENT_NAME_LENGTH = 255
_UNSAFE_NAME_CHARS = re.compile(r"[^A-Za-z0-9_-]")
_ATTACHMENT_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_-][A-Za-z0-9_.-]*$")


@runtime_checkable
class AttachmentStore(Protocol):
    def put(self, name: str, data: bytes, content_type: str) -> None: ...

    def delete(self, name: str) -> None: ...

    def exists(self, name: str) -> bool: ...

    def list_names(self) -> list[str]: ...


def is_valid_attachment_name(name: str) -> bool:
    return (
        0 < len(name) <= MAX_ATTACHMENT_NAME_LENGTH
        and ".." not in name
        and _ATTACHMENT_NAME_PATTERN.match(name) is not None
    )


def generate_attachment_name(original_filename: str | None) -> str:
    """Return a collision-resistant name that keeps the original hints.

    ``"beach.photo.png"`` becomes ``"beach<uuid4>.png"``: the text before the
    first dot, a fresh uuid and the last extension.
    """
    basename = Path((original_filename or "").replace("\\", "/")).name
    parts = basename.split(".")
    stem = _UNSAFE_NAME_CHARS.sub("", parts[0])[:100]
    name = f"{stem}{uuid4()}"
    if len(parts) > 1:
        extension = _UNSAFE_NAME_CHARS.sub("", parts[-1])[:16]
        if extension:
            name = f"{name}.{extension}"
    return name


def guess_content_type(name: str) -> str:
    content_type, _ = mimetypes.guess_type(name)
    return content_type or DEFAULT_CONTENT_TYPE


def store_attachment(
    store: AttachmentStore,
    original_filename: str | None,
    data: bytes,
    *,
    size_limit: int,
    content_type: str | None = None,
) -> str:
    """Write ``data`` under a generated name and return that name."""
    if len(data) > size_limit:
        raise TooLarge(f"File too big. Should be at most {size_limit} bytes.")
    name = generate_attachment_name(original_filename)
    store.put(name, data, content_type or guess_content_type(name))
    return name


class LocalAttachmentStore:
    """Attachments kept as files in a single directory."""

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def ensure_ready(self) -> None:
        self.root.mkdir(parents=True, exist_ok=True)

    def path_for(self, name: str) -> Path:
        if not is_valid_attachment_name(name):
            raise ValueError(f"Invalid attachment name: {name!r}")
        return self.root / name

    def put(self, name: str, data: bytes, content_type: str) -> None:
        target = self.path_for(name)
        self.ensure_ready()
        # Write-then-rename so readers never observe a partial file.
        fd, tmp_path = tempfile.mkstemp(dir=self.root, prefix=".upload-")
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(data)
            os.replace(tmp_path, target)
        except BaseException:
            Path(tmp_path).unlink(missing_ok=True)
            raise

    def delete(self, name: str) -> None:
        self.path_for(name).unlink(missing_ok=True)

    def exists(self, name: str) -> bool:
        if not is_valid_attachment_name(name):
            return False
        return self.path_for(name).is_file()

    def list_names(self) -> list[str]:
        if not self.root.is_dir():
            return []
        return sorted(
            entry.name
            for entry in self.root.iterdir()
            if entry.is_file() and is_valid_attachment_name(entry.name)
        )


def build_minio_client(settings: Settings) -> Minio:
    """Return a MinIO client configured from settings."""
    # Local development runs without TLS; production can override via endpoint/port.
    return Minio(
        settings.minio_endpoint,
        access_key=settings.minio_access_key,
        secret_key=settings.minio_secret_key,
        secure=settings.minio_secure,
    )


def ensure_bucket(client: Minio, bucket_name: str) -> None:
    """Ensure the configured bucket exists."""
    if client.bucket_exists(bucket_name):  # pragma: no cover - network call
        return

    try:
        client.make_bucket(bucket_name)  # pragma: no cover - network call
    except S3Error as exc:  # pragma: no cover - handle race conditions
        if exc.code not in EXISTING_BUCKET_CODES:
            raise


def delete_object(client: Minio, bucket_name: str, object_key: str) -> None:
    """Delete an object from the bucket when it exists."""
    try:
        client.remove_object(bucket_name, object_key)  # pragma: no cover - network call
    except S3Error as exc:  # pragma: no cover - network call
        if exc.code not in MISSING_OBJECT_CODES:
            raise


def create_presigned_get_url(
    client: Minio,
    bucket_name: str,
    object_key: str,
    *,
    expires_seconds: int = 120,
) -> str:
    """Return a short-lived pre-signed URL for an object."""
    normalized_object_key = object_key.strip()
    if not normalized_object_key:
        raise ValueError("object_key must not be empty")
    if expires_seconds <= 0:
        raise ValueError("expires_seconds must be positive")

    return client.presigned_get_object(
        bucket_name,
        normalized_object_key,
        expires=timedelta(seconds=expires_seconds),
    )


class MinioAttachmentStore:
    """Attachments kept as objects in a MinIO bucket."""

    def __init__(self, client: Minio, bucket: str) -> None:
        self.client = client
        self.bucket = bucket

    def ensure_ready(self) -> None:
        ensure_bucket(self.client, self.bucket)

    def put(self, name: str, data: bytes, content_type: str) -> None:
        if not is_valid_attachment_name(name):
            raise ValueError(f"Invalid attachment name: {name!r}")
        ensure_bucket(self.client, self.bucket)
        self.client.put_object(
            self.bucket,
            name,
            data=BytesIO(data),
            length=len(data),
            content_type=content_type,
        )

    def delete(self, name: str) -> None:
        delete_object(self.client, self.bucket, name)

    def exists(self, name: str) -> bool:
        if not is_valid_attachment_name(name):
            return False
        try:
            self.client.stat_object(self.bucket, name)  # pragma: no cover - network call
        except S3Error as exc:  # pragma: no cover - network call
            if exc.code in MISSING_OBJECT_CODES:
                return False
            raise
        return True

    def list_names(self) -> list[str]:
        return sorted(
            obj.object_name
            for obj in self.client.list_objects(self.bucket)
            if obj.object_name and is_valid_attachment_name(obj.object_name)
        )

    def presigned_url(self, name: str, *, expires_seconds: int) -> str:
        return create_presigned_get_url(
            self.client,
            self.bucket,
            name,
            expires_seconds=expires_seconds,
        )


def build_attachment_store(settings: Settings) -> LocalAttachmentStore | MinioAttachmentStore:
    if settings.storage_backend == "minio":
        return MinioAttachmentStore(build_minio_client(settings), settings.minio_bucket)
    return LocalAttachmentStore(settings.upload_dir)
