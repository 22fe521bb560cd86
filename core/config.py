from typing import Optional

from pydantic.v1 import BaseSettings


class Settings(BaseSettings):

    DATABASE_URL: str = "sqlite+aiosqlite:///./tandem.db"

    JWT_SECRET: str = "change-me"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 1440

    CLIENT_URL: str = "http://localhost:5173"

    S3_ENDPOINT_URL: str = "http://localhost:9000"
    S3_ACCESS_KEY_ID: str = "minioadmin"
    S3_SECRET_ACCESS_KEY: str = "minioadmin"
    S3_BUCKET_NAME: str = "tandem"
    S3_REGION: Optional[str] = None
    S3_SECURE: bool = False

    PROFILE_PICTURE_SIZE: int = 200
    MAX_UPLOAD_BYTES: int = 5 * 1024 * 1024
    DISCOVERY_BATCH_SIZE: int = 10

    DEBUG: bool = False

    @property
    def s3_base_url(self) -> str:
        return self.S3_ENDPOINT_URL.rstrip("/") + "/" + self.S3_BUCKET_NAME

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


# Глобальный объект настроек, импортируется везде
settings = Settings()
