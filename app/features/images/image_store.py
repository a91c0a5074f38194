import functools
import os
from asyncio import get_event_loop
from typing import Protocol

from app.core import config
from app.core.database.defaults import gen_ulid
from app.core.errors import ImageUploadError
from app.core.firebase import FirebaseAdminProtocol
from app.utils import get_logger

log = get_logger(__name__)

MIME_TYPE_EXTENSIONS = {
    "image/png": "png",
    "image/jpeg": "jpeg",
    "image/jpg": "jpg",
}


class ImageStore(Protocol):
    async def store(self, data: bytes, content_type: str) -> str:
        """Persist the image and return a stable reference to it."""
        ...

    async def delete(self, reference: str) -> bool:
        """Delete the referenced image. Failures are logged and reported as False, never raised."""
        ...


def _file_name(content_type: str) -> str:
    extension = MIME_TYPE_EXTENSIONS.get(content_type, "bin")
    return f"{gen_ulid()}.{extension}"


class LocalImageStore(ImageStore):
    """Keeps images on the local disk. The reference is the file path, which is also the URL path it's served at."""

    def __init__(self, directory: str = config.UPLOAD_DIR):
        self.directory = directory

    async def store(self, data: bytes, content_type: str) -> str:
        path = os.path.join(self.directory, _file_name(content_type))
        loop = get_event_loop()
        await loop.run_in_executor(None, functools.partial(self._write, path, data))
        return path

    async def delete(self, reference: str) -> bool:
        loop = get_event_loop()
        try:
            await loop.run_in_executor(None, os.remove, reference)
        except OSError:
            log.exception("Failed to delete image %s", reference)
            return False
        return True

    def _write(self, path: str, data: bytes) -> None:
        os.makedirs(self.directory, exist_ok=True)
        with open(path, "wb") as f:
            f.write(data)


class FirebaseImageStore(ImageStore):
    """Keeps images in the Firebase storage bucket. The reference is the blob name."""

    def __init__(self, firebase_admin: FirebaseAdminProtocol):
        self._firebase = firebase_admin

    async def store(self, data: bytes, content_type: str) -> str:
        blob_name = f"images/{_file_name(content_type)}"
        if not await self._firebase.upload_image(blob_name, data, content_type):
            raise ImageUploadError()
        return blob_name

    async def delete(self, reference: str) -> bool:
        try:
            return await self._firebase.delete_image(reference)
        except Exception:  # noqa
            log.exception("Unexpected exception deleting image %s", reference)
            return False
