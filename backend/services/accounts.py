"""Account lifecycle: registration, login, profile reads and edits."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from fastapi import UploadFile
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core import (
    Conflict,
    InvalidCredentials,
    NotFound,
    PasswordMismatch,
    TokenService,
    TooLarge,
    UpdateFailed,
    ValidationFailed,
    hash_password,
    needs_rehash,
    verify_password,
)
from db.errors import is_unique_violation
from models import User

from .attachment_saga import AttachmentSaga
from .auth import (
    email_taken_by_other,
    get_user,
    list_users,
    normalize_email,
    resolve_login_user,
)
from .storage import AttachmentStore
from .uploads import UploadTooLargeError, has_upload, read_upload_file

MIN_PASSWORD_LENGTH = 6


@dataclass(frozen=True)
class LoginResult:
    token: str
    id: str
    name: str


def _required(*values: str | None, message: str = "Fill in all fields.") -> tuple[str, ...]:
    present: list[str] = []
    for value in values:
        if value is None or not value.strip():
            raise ValidationFailed(message)
        present.append(value)
    return tuple(present)


def _check_new_password(password: str, confirmation: str | None, *, mismatch: str) -> None:
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationFailed(
            f"Password should be at least {MIN_PASSWORD_LENGTH} characters."
        )
    if password != confirmation:
        raise PasswordMismatch(mismatch)


async def _commit_user(session: AsyncSession, *, failure: str) -> None:
    try:
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        if is_unique_violation(exc, column="email"):
            raise Conflict("Email already exists.") from exc
        raise UpdateFailed(failure) from exc


async def register_user(
    session: AsyncSession,
    *,
    name: str | None,
    email: str | None,
    password: str | None,
    password2: str | None,
) -> User:
    name, email, password, password2 = _required(name, email, password, password2)

    normalized_email = normalize_email(email)
    if await email_taken_by_other(session, email=normalized_email):
        raise Conflict("Email already exists.")

    _check_new_password(password, password2, mismatch="Passwords do not match.")

    user = User(
        name=name.strip(),
        email=normalized_email,
        password_hash=hash_password(password),
        post_count=0,
    )
    session.add(user)
    await _commit_user(session, failure="User registration failed.")
    return user


async def login_user(
    session: AsyncSession,
    tokens: TokenService,
    *,
    email: str | None,
    password: str | None,
) -> LoginResult:
    email, password = _required(email, password)

    user = await resolve_login_user(session, email=email, password=password)
    if user is None:
        raise InvalidCredentials("Invalid credentials.")

    if needs_rehash(user.password_hash):
        user.password_hash = hash_password(password)
        await session.commit()

    token = tokens.issue(user.id, user.name)
    return LoginResult(token=token, id=user.id, name=user.name)


async def get_profile(session: AsyncSession, user_id: str) -> User:
    user = await get_user(session, user_id)
    if user is None:
        raise NotFound("User not found.")
    return user


async def list_authors(session: AsyncSession) -> Sequence[User]:
    return await list_users(session)


async def change_avatar(
    session: AsyncSession,
    store: AttachmentStore,
    *,
    caller_id: str,
    avatar: UploadFile | None,
    max_bytes: int,
) -> User:
    if avatar is None or not has_upload(avatar):
        raise ValidationFailed("Please choose an image.")

    user = await get_user(session, caller_id)
    if user is None:
        raise NotFound("User not found.")

    try:
        data = await read_upload_file(avatar, max_bytes)
    except UploadTooLargeError as exc:
        raise TooLarge(
            f"Profile picture too big. Should be at most {max_bytes} bytes."
        ) from exc

    saga = AttachmentSaga(store, supersedes=user.avatar)
    user.avatar = await saga.write_attachment(
        avatar.filename,
        data,
        size_limit=max_bytes,
        content_type=avatar.content_type,
    )
    session.add(user)
    await saga.commit(session, failure=UpdateFailed("Avatar couldn't be changed."))
    await session.refresh(user)
    return user


async def edit_profile(
    session: AsyncSession,
    *,
    caller_id: str,
    name: str | None,
    email: str | None,
    current_password: str | None,
    new_password: str | None,
    confirm_new_password: str | None,
) -> User:
    name, email, current_password, new_password, confirm_new_password = _required(
        name, email, current_password, new_password, confirm_new_password
    )

    user = await get_user(session, caller_id)
    if user is None:
        raise NotFound("User not found.")

    normalized_email = normalize_email(email)
    if await email_taken_by_other(session, email=normalized_email, user_id=user.id):
        raise Conflict("Email already exists.")

    if not verify_password(current_password, user.password_hash):
        raise InvalidCredentials("Invalid current password.")

    _check_new_password(new_password, confirm_new_password, mismatch="New passwords do not match.")

    user.name = name.strip()
    user.email = normalized_email
    user.password_hash = hash_password(new_password)
    session.add(user)
    await _commit_user(session, failure="Couldn't update user details.")
    await session.refresh(user)
    return user
