import uuid
from io import BytesIO

from minio import Minio
from minio.error import S3Error

from core.config import settings
from core.exceptions import Internal, InvalidArgument
from utils.image_tools import ALLOWED_CONTENT_TYPES, prepare_profile_picture

# ==== Клиент MinIO / S3 ====
_endpoint = settings.S3_ENDPOINT_URL.replace("https://", "").replace("http://", "")
_s3 = Minio(
    _endpoint,
    access_key=settings.S3_ACCESS_KEY_ID,
    secret_key=settings.S3_SECRET_ACCESS_KEY,
    region=settings.S3_REGION,
    secure=settings.S3_SECURE,
)


def public_url(s3_key: str) -> str:
    return f"{settings.s3_base_url}/{s3_key}"


def upload_profile_picture(
    data: bytes,
    content_type: str | None,
    user_id: int,
) -> str:
    """
    Проверяет и ужимает аватар, кладёт его в бакет и возвращает публичный URL.
    Бросает InvalidArgument для неподходящего файла и Internal при ошибке S3.
    """
    if content_type not in ALLOWED_CONTENT_TYPES:
        raise InvalidArgument("Profile picture must be a JPEG, PNG or WebP image")
    if len(data) > settings.MAX_UPLOAD_BYTES:
        raise InvalidArgument("Profile picture is too large")

    try:
        picture, ext = prepare_profile_picture(data, size=settings.PROFILE_PICTURE_SIZE)
    except ValueError as ve:
        raise InvalidArgument(str(ve))

    s3_key = f"profile-pictures/{user_id}_{uuid.uuid4().hex}.{ext}"
    try:
        _s3.put_object(
            settings.S3_BUCKET_NAME,
            s3_key,
            BytesIO(picture),
            length=len(picture),
            content_type=f"image/{'jpeg' if ext == 'jpg' else ext}",
        )
    except S3Error as e:
        raise Internal(f"Error uploading profile picture: {e}")

    return public_url(s3_key)
