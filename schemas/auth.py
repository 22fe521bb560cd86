from pydantic import BaseModel, EmailStr, Field, field_validator

# bcrypt учитывает только первые 72 байта пароля
MAX_PASSWORD_BYTES = 72


def _check_password_bytes(value: str) -> str:
    if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValueError(f"Password must not exceed {MAX_PASSWORD_BYTES} bytes")
    return value


class RegisterRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=64, description="Имя пользователя")
    email: EmailStr = Field(..., description="Email")
    password: str = Field(
        ...,
        min_length=6,
        max_length=MAX_PASSWORD_BYTES,
        description="Пароль, от 6 символов и не длиннее 72 байт",
    )

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, value: str) -> str:
        return _check_password_bytes(value)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=MAX_PASSWORD_BYTES)

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, value: str) -> str:
        return _check_password_bytes(value)


class UserRead(BaseModel):
    id: int
    username: str
    email: str

    class Config:
        from_attributes = True


class TokenResponse(UserRead):
    """
    Ответ при успешной регистрации или логине.
    """
    token: str
    token_type: str = "bearer"
    expires_in_ms: int
