"""Ошибки приложения.

Каждая ошибка является HTTPException с фиксированным статусом, поэтому
FastAPI отдаёт её клиенту без дополнительных обработчиков, а сервисы
могут бросать её напрямую.
"""
from typing import Optional

from fastapi import HTTPException
from starlette import status


class AppError(HTTPException):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail: str = "Internal server error"

    def __init__(self, detail: Optional[str] = None, headers: Optional[dict] = None):
        super().__init__(
            status_code=self.status_code,
            detail=detail or self.default_detail,
            headers=headers,
        )


class Unauthorized(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Unauthorized"

    def __init__(self, detail: Optional[str] = None):
        super().__init__(detail, headers={"WWW-Authenticate": "Bearer"})


class InvalidArgument(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid request"


class Forbidden(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Forbidden access"


class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found"


class Conflict(AppError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Conflict"


class Internal(AppError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Internal server error"
