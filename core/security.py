# core/security.py
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

import bcrypt
from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from jose import jwt, JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from core.database import get_db
from core.exceptions import Unauthorized
from models.user import User

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=10)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # битый хеш в базе: пароль не совпал
        logger.warning("Malformed password hash encountered")
        return False


def create_access_token(user_id: int) -> Tuple[str, datetime]:
    """Выпускает JWT для пользователя. Возвращает (token, expires_at)."""
    expires = datetime.now(timezone.utc) + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    token_payload = {
        "user_id": user_id,
        "exp": expires,
    }
    token = jwt.encode(token_payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)
    return token, expires


def user_id_from_token(token: Optional[str]) -> int:
    """
    Проверяет подпись и срок действия токена и возвращает user_id.
    Бросает Unauthorized, если токен отсутствует или невалиден.
    """
    if not token:
        raise Unauthorized("Could not validate credentials")
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        raise Unauthorized("Could not validate credentials")

    user_id = payload.get("user_id")
    if not isinstance(user_id, int):
        raise Unauthorized("Could not validate credentials")
    return user_id


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    user_id = user_id_from_token(token)
    user = await db.get(User, user_id)
    if not user:
        raise Unauthorized("User not found")
    return user
