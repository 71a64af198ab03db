"""Bounded reading of multipart uploads."""

from __future__ import annotations

from fastapi import UploadFile

READ_CHUNK_SIZE = 64 * 1024


class UploadTooLargeError(ValueError):
    """Raised when an upload exceeds its byte budget."""

    def __init__(self, max_bytes: int) -> None:
        super().__init__(f"File too big. Should be at most {max_bytes} bytes.")
        self.max_bytes = max_bytes


def has_upload(upload: UploadFile | None) -> bool:
    """Return True when the client actually attached a file."""
    return upload is not None and bool(upload.filename)


async def read_upload_file(upload: UploadFile, max_bytes: int) -> bytes:
    """Read an upload fully, refusing to buffer more than ``max_bytes``."""
    if max_bytes <= 0:
        raise ValueError("max_bytes must be positive")

    buffer = bytearray()
    while True:
        chunk = await upload.read(READ_CHUNK_SIZE)
        if not chunk:
            break
        buffer.extend(chunk)
        if len(buffer) > max_bytes:
            raise UploadTooLargeError(max_bytes)
    return bytes(buffer)
