"""Maintenance script reconciling attachments and post counters with records.

Usage:
    uv run python scripts/reconcile_attachments.py

Environment overrides:
    RECONCILE_FIX_POST_COUNTS=true     rewrite drifted users.post_count values
    RECONCILE_DELETE_ORPHANS=false     delete attachments no record references

Orphans are only reported unless deletion is enabled. Attachments written by
requests still in flight look orphaned, so deletion is meant for quiet periods.
"""

from __future__ import annotations

import asyncio
import os
import sys
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any, cast

from sqlalchemy import select, update
from sqlalchemy.sql import ColumnElement

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.append(str(ROOT_DIR))

from core import settings  # noqa: E402
from db.session import AsyncSessionMaker  # noqa: E402
from models import Post, User  # noqa: E402
from services.post_counts import count_posts_by_creator  # noqa: E402
from services.storage import AttachmentStore, build_attachment_store  # noqa: E402

FIX_POST_COUNTS_ENV = "RECONCILE_FIX_POST_COUNTS"
DELETE_ORPHANS_ENV = "RECONCILE_DELETE_ORPHANS"
TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
FALSE_VALUES = frozenset({"0", "false", "no", "off"})


def _parse_bool(raw_value: str | None, *, default: bool, label: str) -> bool:
    if raw_value is None or raw_value.strip() == "":
        return default
    normalized = raw_value.strip().lower()
    if normalized in TRUE_VALUES:
        return True
    if normalized in FALSE_VALUES:
        return False
    raise ValueError(f"{label} must be a boolean")


def _eq(column: Any, value: Any) -> ColumnElement[bool]:
    return cast(ColumnElement[bool], column == value)


def find_orphaned_attachments(
    stored_names: Iterable[str],
    referenced_names: Iterable[str | None],
) -> list[str]:
    referenced = {name for name in referenced_names if name}
    return sorted(name for name in set(stored_names) if name not in referenced)


def compute_post_count_drift(
    stored_counts: Mapping[str, int],
    actual_counts: Mapping[str, int],
) -> dict[str, tuple[int, int]]:
    """Return ``{user_id: (stored, actual)}`` for every user whose counter is off."""
    drift: dict[str, tuple[int, int]] = {}
    for user_id, stored in stored_counts.items():
        actual = actual_counts.get(user_id, 0)
        if stored != actual:
            drift[user_id] = (stored, actual)
    return drift


async def _load_references() -> tuple[dict[str, int], dict[str, int], set[str]]:
    async with AsyncSessionMaker() as session:
        user_rows = await session.execute(
            select(
                cast(ColumnElement[str], User.id),
                cast(ColumnElement[int], User.post_count),
                cast(ColumnElement[str | None], User.avatar),
            )
        )
        stored_counts: dict[str, int] = {}
        referenced: set[str] = set()
        for user_id, post_count, avatar in user_rows.all():
            stored_counts[user_id] = int(post_count)
            if avatar:
                referenced.add(avatar)

        thumbnail_rows = await session.execute(
            select(cast(ColumnElement[str], Post.thumbnail))
        )
        referenced.update(name for name in thumbnail_rows.scalars().all() if name)

        actual_counts = await count_posts_by_creator(session)
    return stored_counts, actual_counts, referenced


async def _rewrite_post_counts(drift: Mapping[str, tuple[int, int]]) -> None:
    async with AsyncSessionMaker() as session:
        for user_id, (_stored, actual) in drift.items():
            await session.execute(
                update(User).where(_eq(User.id, user_id)).values(post_count=actual)
            )
        await session.commit()


async def run(store: AttachmentStore | None = None) -> None:
    fix_post_counts = _parse_bool(
        os.getenv(FIX_POST_COUNTS_ENV),
        default=True,
        label=FIX_POST_COUNTS_ENV,
    )
    delete_orphans = _parse_bool(
        os.getenv(DELETE_ORPHANS_ENV),
        default=False,
        label=DELETE_ORPHANS_ENV,
    )
    attachment_store = store or build_attachment_store(settings)

    stored_counts, actual_counts, referenced = await _load_references()

    drift = compute_post_count_drift(stored_counts, actual_counts)
    for user_id, (stored, actual) in sorted(drift.items()):
        print(f"Post count drift for user {user_id}: stored={stored} actual={actual}")
    if drift and fix_post_counts:
        await _rewrite_post_counts(drift)

    stored_names = await asyncio.to_thread(attachment_store.list_names)
    orphans = find_orphaned_attachments(stored_names, referenced)
    deleted = 0
    for name in orphans:
        if not delete_orphans:
            print(f"Orphaned attachment: {name}")
            continue
        await asyncio.to_thread(attachment_store.delete, name)
        deleted += 1
        print(f"Deleted orphaned attachment: {name}")

    dangling = sorted(name for name in referenced if name not in set(stored_names))
    for name in dangling:
        print(f"Dangling reference (attachment missing): {name}")

    print(
        "Attachment reconciliation complete: "
        f"users_drifted={len(drift)}, counts_fixed={len(drift) if fix_post_counts else 0}, "
        f"orphans={len(orphans)}, orphans_deleted={deleted}, dangling={len(dangling)}"
    )


def main() -> None:
    asyncio.run(run())


if __name__ == "__main__":
    main()
