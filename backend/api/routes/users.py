"""User account and profile endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, File, UploadFile, status
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import (
    get_attachment_store,
    get_current_identity,
    get_db,
    get_settings,
    get_token_service,
)
from core import Settings, TokenClaims, TokenService
from services import accounts
from services.storage import AttachmentStore

from .schemas import CamelModel, UserResponse

router = APIRouter(prefix="/users", tags=["users"])


class RegisterRequest(BaseModel):
    name: str | None = None
    email: str | None = None
    password: str | None = None
    password2: str | None = None


class LoginRequest(BaseModel):
    email: str | None = None
    password: str | None = None


class LoginResponse(BaseModel):
    token: str
    id: str
    name: str


class EditUserRequest(CamelModel):
    name: str | None = None
    email: str | None = None
    current_password: str | None = None
    new_password: str | None = None
    confirm_new_password: str | None = None


@router.post("/register", status_code=status.HTTP_201_CREATED, response_model=str)
async def register(
    payload: RegisterRequest,
    session: AsyncSession = Depends(get_db),
) -> str:
    user = await accounts.register_user(
        session,
        name=payload.name,
        email=payload.email,
        password=payload.password,
        password2=payload.password2,
    )
    return f"New user {user.email} registered."


@router.post("/login", response_model=LoginResponse)
async def login(
    payload: LoginRequest,
    session: AsyncSession = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
) -> LoginResponse:
    result = await accounts.login_user(
        session,
        tokens,
        email=payload.email,
        password=payload.password,
    )
    return LoginResponse(token=result.token, id=result.id, name=result.name)


@router.get("/authors", response_model=list[UserResponse])
async def list_authors(session: AsyncSession = Depends(get_db)) -> list[UserResponse]:
    users = await accounts.list_authors(session)
    return [UserResponse.model_validate(user) for user in users]


@router.post("/change-avatar", response_model=UserResponse)
async def change_avatar(
    avatar: UploadFile | None = File(default=None),
    identity: TokenClaims = Depends(get_current_identity),
    session: AsyncSession = Depends(get_db),
    store: AttachmentStore = Depends(get_attachment_store),
    settings: Settings = Depends(get_settings),
) -> UserResponse:
    user = await accounts.change_avatar(
        session,
        store,
        caller_id=identity.id,
        avatar=avatar,
        max_bytes=settings.avatar_max_bytes,
    )
    return UserResponse.model_validate(user)


@router.post("/edit-user", response_model=UserResponse)
async def edit_user(
    payload: EditUserRequest,
    identity: TokenClaims = Depends(get_current_identity),
    session: AsyncSession = Depends(get_db),
) -> UserResponse:
    user = await accounts.edit_profile(
        session,
        caller_id=identity.id,
        name=payload.name,
        email=payload.email,
        current_password=payload.current_password,
        new_password=payload.new_password,
        confirm_new_password=payload.confirm_new_password,
    )
    return UserResponse.model_validate(user)


@router.get("/{user_id}", response_model=UserResponse)
async def get_user_profile(
    user_id: str,
    _identity: TokenClaims = Depends(get_current_identity),
    session: AsyncSession = Depends(get_db),
) -> UserResponse:
    user = await accounts.get_profile(session, user_id)
    return UserResponse.model_validate(user)
