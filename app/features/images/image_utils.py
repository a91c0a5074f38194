from fastapi import UploadFile

from app.core import config
from app.core.errors import ValidationError
from app.features.images.image_store import MIME_TYPE_EXTENSIONS


async def read_valid_image(file: UploadFile) -> bytes:
    """Return the contents of the uploaded image, raising ValidationError if it isn't an acceptable image."""
    if file.content_type not in MIME_TYPE_EXTENSIONS:
        raise ValidationError("Invalid mime type, image must be a png or jpeg.")
    data = await file.read(config.MAX_IMAGE_SIZE_BYTES + 1)
    if len(data) > config.MAX_IMAGE_SIZE_BYTES:
        raise ValidationError(f"Max image size is {config.MAX_IMAGE_SIZE_BYTES // (1024 * 1024)}MB.")
    if not data:
        raise ValidationError("Image is empty.")
    return data
