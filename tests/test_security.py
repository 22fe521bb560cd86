from datetime import datetime, timedelta, timezone

import pytest
from fastapi import HTTPException
from jose import jwt

from core.config import settings
from core.security import create_access_token, hash_password, user_id_from_token, verify_password


def test_password_hash_roundtrip():
    hashed = hash_password("correct horse")

    assert hashed != "correct horse"
    assert verify_password("correct horse", hashed)
    assert not verify_password("wrong horse", hashed)


def test_verify_password_rejects_malformed_hash():
    assert not verify_password("whatever", "not-a-bcrypt-hash")


def test_token_carries_user_id():
    token, expires = create_access_token(4200000001)

    assert user_id_from_token(token) == 4200000001
    assert expires > datetime.now(timezone.utc)


@pytest.mark.parametrize("token", [None, "", "garbage.token.value"])
def test_invalid_tokens_are_unauthorized(token):
    with pytest.raises(HTTPException) as exc:
        user_id_from_token(token)

    assert exc.value.status_code == 401


def test_expired_token_is_unauthorized():
    expired = jwt.encode(
        {"user_id": 1, "exp": datetime.now(timezone.utc) - timedelta(minutes=1)},
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
    )

    with pytest.raises(HTTPException) as exc:
        user_id_from_token(expired)

    assert exc.value.status_code == 401


def test_token_signed_with_other_secret_is_unauthorized():
    foreign = jwt.encode({"user_id": 1}, "someone-else", algorithm="HS256")

    with pytest.raises(HTTPException) as exc:
        user_id_from_token(foreign)

    assert exc.value.status_code == 401
