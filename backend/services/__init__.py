"""Business logic services."""

from .attachment_saga import AttachmentSaga, SagaState
from .storage import (
    AttachmentStore,
    LocalAttachmentStore,
    MinioAttachmentStore,
    build_attachment_store,
    generate_attachment_name,
    store_attachment,
)
from .uploads import UploadTooLargeError, read_upload_file

__all__ = [
    "AttachmentSaga",
    "SagaState",
    "AttachmentStore",
    "LocalAttachmentStore",
    "MinioAttachmentStore",
    "build_attachment_store",
    "generate_attachment_name",
    "store_attachment",
    "UploadTooLargeError",
    "read_upload_file",
]
