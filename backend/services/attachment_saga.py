"""Two-phase attachment + record mutation.

The attachment store and the record store do not share a transaction, so every
mutation that writes a new attachment is driven through :class:`AttachmentSaga`:

    IDLE --write_attachment--> ATTACHMENT_WRITTEN --commit--> RECORD_WRITTEN
         --retire superseded--> COMMITTED

If the record commit fails the freshly written attachment is deleted again and
the saga returns to IDLE. When that compensating delete fails too, the saga
parks in COMPENSATION_PENDING and the orphan is logged for the reconciliation
sweep (``scripts/reconcile_attachments.py``).
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from enum import Enum

from sqlalchemy.ext.asyncio import AsyncSession

from core import BlogError, StorageError, UpdateFailed

from .storage import AttachmentStore, store_attachment

logger = logging.getLogger(__name__)


class SagaState(str, Enum):
    IDLE = "idle"
    ATTACHMENT_WRITTEN = "attachment_written"
    RECORD_WRITTEN = "record_written"
    COMMITTED = "committed"
    COMPENSATION_PENDING = "compensation_pending"


class InvalidSagaTransition(RuntimeError):
    pass


class AttachmentSaga:
    """Coordinates one attachment write with one record commit."""

    def __init__(self, store: AttachmentStore, *, supersedes: str | None = None) -> None:
        self.store = store
        self.supersedes = supersedes
        self.state = SagaState.IDLE
        self.attachment_name: str | None = None

    def _require(self, expected: SagaState) -> None:
        if self.state is not expected:
            raise InvalidSagaTransition(
                f"expected saga state {expected.value}, found {self.state.value}"
            )

    async def write_attachment(
        self,
        original_filename: str | None,
        data: bytes,
        *,
        size_limit: int,
        content_type: str | None = None,
    ) -> str:
        self._require(SagaState.IDLE)
        try:
            name = await asyncio.to_thread(
                store_attachment,
                self.store,
                original_filename,
                data,
                size_limit=size_limit,
                content_type=content_type,
            )
        except BlogError:
            raise
        except Exception as exc:
            logger.error("Failed to write attachment", exc_info=exc)
            raise StorageError("Couldn't store the uploaded file.") from exc

        self.attachment_name = name
        self.state = SagaState.ATTACHMENT_WRITTEN
        return name

    async def commit(
        self,
        session: AsyncSession,
        *,
        stage: Callable[[], Awaitable[object]] | None = None,
        failure: BlogError | None = None,
    ) -> None:
        """Commit pending record changes, compensating on failure.

        ``stage`` runs inside the same transaction right before the commit, for
        statements that must land atomically with the record change.
        """
        self._require(SagaState.ATTACHMENT_WRITTEN)
        try:
            if stage is not None:
                await stage()
            await session.commit()
        except Exception as exc:
            await session.rollback()
            await self.compensate()
            raise (failure or UpdateFailed()) from exc

        self.state = SagaState.RECORD_WRITTEN
        await self._retire_superseded()
        self.state = SagaState.COMMITTED

    async def compensate(self) -> None:
        self._require(SagaState.ATTACHMENT_WRITTEN)
        name = self.attachment_name
        if name is None:
            self.state = SagaState.IDLE
            return
        try:
            await asyncio.to_thread(self.store.delete, name)
        except Exception as cleanup_error:
            self.state = SagaState.COMPENSATION_PENDING
            logger.error(
                "Failed to remove attachment after record write failure; needs reconciliation",
                extra={"attachment": name},
                exc_info=cleanup_error,
            )
            return

        logger.info("Removed attachment after record write failure", extra={"attachment": name})
        self.attachment_name = None
        self.state = SagaState.IDLE

    async def _retire_superseded(self) -> None:
        previous = self.supersedes
        if previous is None or previous == self.attachment_name:
            return
        try:
            await asyncio.to_thread(self.store.delete, previous)
        except Exception as cleanup_error:
            logger.warning(
                "Failed to remove superseded attachment",
                extra={"attachment": previous},
                exc_info=cleanup_error,
            )
