# routers/auth.py
import logging

from fastapi import APIRouter, Depends
from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette import status

from core.database import get_db
from core.exceptions import Conflict, Unauthorized
from core.security import create_access_token, get_current_user, hash_password, verify_password
from models.user import User
from schemas.auth import LoginRequest, RegisterRequest, TokenResponse, UserRead

router = APIRouter(prefix="/api/auth", tags=["Auth"])
logger = logging.getLogger(__name__)


def _token_response(user: User) -> TokenResponse:
    token, expires = create_access_token(user.id)
    return TokenResponse(
        id=user.id,
        username=user.username,
        email=user.email,
        token=token,
        token_type="bearer",
        expires_in_ms=int(expires.timestamp() * 1000),
    )


@router.post(
    "/register",
    response_model=TokenResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Регистрация нового пользователя → выдаёт JWT",
)
async def register(
    payload: RegisterRequest,
    db: AsyncSession = Depends(get_db),
) -> TokenResponse:
    username = payload.username.strip()
    email = payload.email.lower()

    exists = await db.execute(
        select(User.id).where(or_(User.username == username, User.email == email))
    )
    if exists.first():
        raise Conflict("User already exists")

    user = User(username=username, email=email, password_hash=hash_password(payload.password))
    db.add(user)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise Conflict("User already exists")
    await db.refresh(user)

    logger.info("User %s registered with email %s", user.username, user.email)
    return _token_response(user)


@router.post(
    "/login",
    response_model=TokenResponse,
    summary="Вход по email и паролю → выдаёт JWT",
)
async def login(
    payload: LoginRequest,
    db: AsyncSession = Depends(get_db),
) -> TokenResponse:
    result = await db.execute(select(User).where(User.email == payload.email.lower()))
    user = result.scalar_one_or_none()
    if not user or not verify_password(payload.password, user.password_hash):
        logger.info("Invalid credentials for email %s", payload.email)
        raise Unauthorized("Invalid credentials")

    logger.info("User %s logged in", user.username)
    return _token_response(user)


@router.get(
    "/me",
    response_model=UserRead,
    summary="Текущий пользователь",
)
async def me(current_user: User = Depends(get_current_user)) -> UserRead:
    return UserRead.model_validate(current_user)
