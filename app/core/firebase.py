import functools
import uuid
from asyncio import get_event_loop
from dataclasses import dataclass
from typing import Optional, Protocol

import firebase_admin  # type: ignore
from fastapi import Header, HTTPException
from firebase_admin import auth, storage
from firebase_admin.auth import (  # type: ignore
    InvalidIdTokenError,
    ExpiredIdTokenError,
    RevokedIdTokenError,
    CertificateFetchError,
)
from google.cloud.exceptions import GoogleCloudError
from google.cloud.storage import Bucket  # type: ignore

from app.core import config
from app.utils import get_logger

log = get_logger(__name__)


class FirebaseAdminProtocol(Protocol):
    async def get_uid_from_token(self, id_token: str) -> Optional[str]:
        ...

    async def get_uid_from_auth_header(self, authorization: Optional[str]) -> Optional[str]:
        ...

    async def upload_image(self, blob_name: str, data: bytes, content_type: str) -> bool:
        ...

    async def delete_image(self, blob_name: str) -> bool:
        ...


class FirebaseAdmin(FirebaseAdminProtocol):
    def __init__(self):
        self._app = firebase_admin.initialize_app(options={"storageBucket": config.STORAGE_BUCKET})

    async def get_uid_from_token(self, id_token: str) -> Optional[str]:
        """Get the user's uid from the given Firebase id token."""
        loop = get_event_loop()
        try:
            decoded_token = await loop.run_in_executor(None, auth.verify_id_token, id_token, self._app)
            return decoded_token.get("uid")
        except (
            ValueError,
            InvalidIdTokenError,
            ExpiredIdTokenError,
            RevokedIdTokenError,
            CertificateFetchError,
        ):
            return None
        except Exception:  # noqa
            log.exception("Unexpected exception")
            return None

    async def get_uid_from_auth_header(self, authorization: Optional[str]) -> Optional[str]:
        """Get the user's uid from the given authorization header."""
        if authorization is None or not authorization.startswith("Bearer "):
            return None
        id_token = authorization[7:]
        return await self.get_uid_from_token(id_token)

    # Storage
    async def upload_image(self, blob_name: str, data: bytes, content_type: str) -> bool:
        """Upload the given image to Firebase, returning whether uploading was successful."""
        loop = get_event_loop()
        bucket = await self._get_bucket(loop)
        blob = bucket.blob(blob_name)
        # Known issue in firebase, this metadata is necessary to view images via Firebase console
        blob.metadata = {"firebaseStorageDownloadTokens": uuid.uuid4()}
        try:
            await loop.run_in_executor(
                None,
                functools.partial(blob.upload_from_string, data, content_type=content_type),
            )
        except GoogleCloudError:
            log.exception("Failed to upload image")
            return False
        return True

    async def delete_image(self, blob_name: str) -> bool:
        """Delete the given image, returning whether it was deleted."""
        loop = get_event_loop()
        bucket = await self._get_bucket(loop)
        try:
            blob = await loop.run_in_executor(None, bucket.get_blob, blob_name)
            if blob is None:
                log.warning("Image %s does not exist", blob_name)
                return False
            await loop.run_in_executor(None, blob.delete)
        except GoogleCloudError:
            log.exception("Failed to delete image %s", blob_name)
            return False
        return True

    async def _get_bucket(self, loop) -> Bucket:
        return await loop.run_in_executor(None, functools.partial(storage.bucket, app=self._app))


@dataclass
class FirebaseUser:
    shared_firebase: FirebaseAdminProtocol
    uid: str


@functools.cache
def get_firebase_admin() -> FirebaseAdminProtocol:
    return FirebaseAdmin()


async def get_firebase_user(
    authorization: Optional[str] = Header(None),
) -> FirebaseUser:
    firebase = get_firebase_admin()
    uid = await firebase.get_uid_from_auth_header(authorization)
    if uid is None:
        raise HTTPException(401, "Not authenticated")
    return FirebaseUser(shared_firebase=firebase, uid=uid)
