# backend/app/services/object_store.py
"""
Object Store

Local-disk blob storage for uploaded audio. The client first asks for an
upload URL (carrying a short-lived signed token), POSTs the raw bytes to it,
and receives a storage reference (StoredObject id) to hand to the import API.
"""
import logging
import uuid
from pathlib import Path
from typing import Optional

import jwt
from tortoise.exceptions import IntegrityError

from ..config import settings
from ..core.errors import NotFound, UploadFailure
from ..core.security import create_upload_token, decode_upload_token
from ..models.stored_object import StoredObject

logger = logging.getLogger(__name__)

# Whisper accepts: m4a, mp3, mp4, mpeg, mpga, wav, webm (others are converted first)
AUDIO_EXTENSIONS = {
    "audio/m4a": "m4a",
    "audio/x-m4a": "m4a",
    "audio/mp4": "m4a",
    "audio/mpeg": "mp3",
    "audio/mp3": "mp3",
    "audio/wav": "wav",
    "audio/wave": "wav",
    "audio/x-wav": "wav",
    "audio/webm": "webm",
    "audio/ogg": "ogg",
    "audio/aac": "aac",
    "audio/flac": "flac",
}
DEFAULT_CONTENT_TYPE = "audio/m4a"


def extension_for(content_type: Optional[str]) -> str:
    """Unknown or missing MIME types fall back to m4a (the iOS recorder default)"""
    mime = (content_type or "").split(";", 1)[0].strip().lower()
    return AUDIO_EXTENSIONS.get(mime, "m4a")


class ObjectStore:
    def __init__(self, root: Optional[str] = None):
        self.root = Path(root or settings.storage_dir)

    def generate_upload_url(self, owner_id: str, base_url: str) -> str:
        token = create_upload_token(str(owner_id), settings.upload_url_expire_minutes)
        return f"{base_url.rstrip('/')}/api/v1/storage/upload/{token}"

    def read_token(self, token: str) -> dict:
        """Claims of an upload URL token: sub (owner) and jti (single-use id)"""
        try:
            return decode_upload_token(token)
        except jwt.InvalidTokenError as e:
            raise UploadFailure(f"Invalid or expired upload URL: {e}")

    def owner_for_token(self, token: str) -> str:
        return self.read_token(token)["sub"]

    async def put(
        self,
        owner_id: str,
        data: bytes,
        content_type: Optional[str],
        upload_token_id: Optional[str] = None,
    ) -> StoredObject:
        """
        Write the blob and its metadata row. With upload_token_id, each upload URL is accepted once.
        """
        if not data:
            raise UploadFailure("Uploaded file is empty")
        if upload_token_id and await StoredObject.filter(upload_token_id=upload_token_id).exists():
            raise UploadFailure("Upload URL has already been used")

        content_type = (content_type or DEFAULT_CONTENT_TYPE).split(";", 1)[0].strip().lower()
        object_id = uuid.uuid4()
        path = self.root / str(owner_id) / f"{object_id}.{extension_for(content_type)}"
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as e:
            raise UploadFailure(f"Failed to store upload: {e}")

        try:
            obj = await StoredObject.create(
                id=object_id,
                owner_id=owner_id,
                content_type=content_type,
                size_bytes=len(data),
                path=str(path),
                upload_token_id=upload_token_id,
            )
        except IntegrityError:
            path.unlink(missing_ok=True)
            raise UploadFailure("Upload URL has already been used")
        logger.info("[storage] stored %s (%d bytes, %s) for owner=%s", obj.id, len(data), content_type, owner_id)
        return obj

    async def get(self, storage_ref, owner_id: Optional[str] = None) -> StoredObject:
        """
        Look up a stored object; with owner_id, objects owned by someone else count as missing
        """
        try:
            object_id = uuid.UUID(str(storage_ref))
        except ValueError:
            raise NotFound("Audio file not found", storageId=str(storage_ref))

        query = StoredObject.filter(id=object_id)
        if owner_id is not None:
            query = query.filter(owner_id=owner_id)
        obj = await query.first()
        if obj is None or not Path(obj.path).exists():
            raise NotFound("Audio file not found", storageId=str(storage_ref))
        return obj


object_store = ObjectStore()
