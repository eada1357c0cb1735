# app/api/v1/routers/storage.py
from fastapi import APIRouter, Depends, Request
from app.api.v1.deps import get_current_user, get_object_store
from app.core.errors import UploadFailure
from app.models.user import User
from app.services.object_store import ObjectStore

router = APIRouter(prefix="/storage", tags=["storage"])

@router.post("/upload-url")
async def generate_upload_url(
    request: Request,
    user: User = Depends(get_current_user),
    store: ObjectStore = Depends(get_object_store),
):
    """
    Issue a short-lived URL the client POSTs raw audio bytes to.

    Returns:
        dict: Response containing:
            - success: bool (always True)
            - data: dict with uploadUrl: str
    """
    return {"success": True, "data": {"uploadUrl": store.generate_upload_url(str(user.id), str(request.base_url))}}

@router.post("/upload/{token}")
async def upload(token: str, request: Request, store: ObjectStore = Depends(get_object_store)):
    """
    Receive the raw audio body for a previously issued upload URL.

    The request body is the file itself; Content-Type decides the stored extension.

    Returns:
        dict: Response containing:
            - success: bool (always True)
            - data: dict with storageId: str (pass to the import endpoints)

    Each URL accepts one upload.

    Errors (UPLOAD_FAILED, 400): invalid/expired/already used URL, unknown owner, empty body
    """
    claims = store.read_token(token)
    owner_id = claims["sub"]
    if not await User.filter(id=owner_id).exists():
        raise UploadFailure("Upload URL owner no longer exists")
    data = await request.body()
    obj = await store.put(owner_id, data, request.headers.get("content-type"), upload_token_id=claims.get("jti"))
    return {"success": True, "data": {"storageId": str(obj.id), "sizeBytes": obj.size_bytes}}
