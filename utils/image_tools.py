# utils/image_tools.py

from io import BytesIO

from PIL import Image, ImageOps, UnidentifiedImageError

ALLOWED_CONTENT_TYPES = {"image/jpeg", "image/png", "image/webp"}


def prepare_profile_picture(
    data: bytes,
    size: int = 200,
    quality: int = 85
) -> tuple[bytes, str]:
    """
    Готовит аватар профиля:
    - поворачивает по EXIF и выбрасывает метаданные;
    - обрезает по центру до квадрата size x size (как crop "fill");
    - сохраняет в WebP, если исходник WebP, иначе в JPEG.

    Возвращает (bytes, ext), где ext: "webp" или "jpg".
    Бросает ValueError, если файл не распознан как изображение.
    """
    try:
        img = Image.open(BytesIO(data))
        img.load()
    except (UnidentifiedImageError, OSError):
        raise ValueError("Unsupported file: not an image")

    orig_fmt = (img.format or "JPEG").upper()

    img = ImageOps.exif_transpose(img)
    img.info.pop("exif", None)

    if img.mode not in ("RGB", "L"):
        img = img.convert("RGB")

    img = ImageOps.fit(img, (size, size), method=Image.LANCZOS)

    buf = BytesIO()
    if orig_fmt == "WEBP":
        img.save(buf, "WEBP", quality=quality)
        ext = "webp"
    else:
        img.save(buf, "JPEG", quality=quality, optimize=True, progressive=True)
        ext = "jpg"

    return buf.getvalue(), ext
