"""
Upload checks that run before the model is called.
"""

import io
import logging
from typing import Optional

from PIL import Image, UnidentifiedImageError

from .errors import (
    EmptyFileError,
    FileTooLargeError,
    MissingFileError,
    UnreadableImageError,
    UnsupportedMediaTypeError,
)
from .models import UploadedImage

logger = logging.getLogger(__name__)

ALLOWED_TYPES = ("image/jpeg", "image/jpg", "image/png", "image/gif", "image/webp")

# Pillow format name -> content type sent upstream
PIL_FORMATS = {
    "JPEG": "image/jpeg",
    "PNG": "image/png",
    "GIF": "image/gif",
    "WEBP": "image/webp",
}


def normalize_content_type(content_type: Optional[str]) -> str:
    """``"Image/JPG; charset=x"`` -> ``"image/jpeg"``"""
    if not content_type:
        return ""
    mime = content_type.split(";", 1)[0].strip().lower()
    return "image/jpeg" if mime == "image/jpg" else mime


def format_size(num_bytes: int) -> str:
    if num_bytes < 1024:
        return f"{num_bytes} Bytes"
    for unit in ("KB", "MB", "GB"):
        num_bytes /= 1024
        if num_bytes < 1024 or unit == "GB":
            return f"{num_bytes:.2f} {unit}"


def validate_upload(upload: Optional[UploadedImage], max_bytes: int) -> UploadedImage:
    """
    Check presence, type, size and decodability of an uploaded chart.

    Returns a copy with a normalized content type; raises an
    UploadValidationError subclass on the first failed check.
    """
    if upload is None:
        raise MissingFileError()

    mime = normalize_content_type(upload.content_type)
    if mime not in ALLOWED_TYPES:
        raise UnsupportedMediaTypeError(
            f"Invalid file type '{upload.content_type or 'unknown'}'. "
            "Please upload PNG, JPG, GIF or WebP images only."
        )

    if upload.size == 0:
        raise EmptyFileError()

    if upload.size > max_bytes:
        raise FileTooLargeError(
            f"File is too large ({format_size(upload.size)}). "
            f"Maximum size is {format_size(max_bytes)}."
        )

    try:
        with Image.open(io.BytesIO(upload.data)) as image:
            image_format = image.format
            image.verify()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, SyntaxError, ValueError) as e:
        raise UnreadableImageError(f"Uploaded file is not a readable image: {e}") from e

    detected = PIL_FORMATS.get(image_format)
    if detected is None:
        raise UnsupportedMediaTypeError(
            f"Image format {image_format} is not supported. Please upload PNG, JPG, GIF or WebP images only."
        )
    if detected != mime:
        logger.warning("Declared type %s does not match image content %s, sending %s", mime, image_format, detected)
        mime = detected

    logger.info("Upload accepted: %s (%s, %s)", upload.filename, mime, format_size(upload.size))
    return upload.model_copy(update={"content_type": mime})
