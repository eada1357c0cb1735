# app/api/v1/deps.py
from fastapi import Depends, Header, HTTPException, Request, status
from app.core.security import decode_access_token
from app.models.user import User
from app.services.asr_base import SpeechRecognitionService
from app.services.asr_factory import get_speech_service
from app.services.conversation_gateway import ConversationGateway
from app.services.import_pipeline import ImportPipeline
from app.services.object_store import ObjectStore, object_store
from app.services.user_directory import UserDirectory

async def get_current_user(
    request: Request,
    authorization: str | None = Header(default=None),
):
    """
    FastAPI dependency to get the current authenticated user.

    This dependency extracts and validates the JWT token from either:
    1. Authorization header (Bearer token) - used by the mobile app
    2. HttpOnly cookie (accessToken) - used by the web dashboard

    Returns:
        User: The authenticated user object from database

    Raises:
        HTTPException (401): If no token is provided (AUTH_REQUIRED)
        HTTPException (401): If token is invalid or expired (AUTH_INVALID_TOKEN)
        HTTPException (401): If user not found in database (AUTH_USER_NOT_FOUND)
    """
    token = None
    # 1) Prioritize Authorization: Bearer xxx
    if authorization and authorization.lower().startswith("bearer "):
        token = authorization.split(" ", 1)[1].strip()
    # 2) Secondly HttpOnly Cookie: accessToken
    if not token:
        token = request.cookies.get("accessToken")

    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="AUTH_REQUIRED")

    try:
        payload = decode_access_token(token)
        user_id: str = payload.get("sub")
    except Exception:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="AUTH_INVALID_TOKEN")

    user = await User.get_or_none(id=user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="AUTH_USER_NOT_FOUND")
    return user

def get_object_store() -> ObjectStore:
    return object_store

def get_gateway() -> ConversationGateway:
    return ConversationGateway()

def get_user_directory() -> UserDirectory:
    return UserDirectory()

def get_speech() -> SpeechRecognitionService:
    """
    Speech service for import routes.

    Raises:
        HTTPException (503): If no speech provider is configured (ASR_UNAVAILABLE)
    """
    try:
        return get_speech_service()
    except RuntimeError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                            detail={"code": "ASR_UNAVAILABLE", "message": str(e)})

def get_import_pipeline(
    gateway: ConversationGateway = Depends(get_gateway),
    speech: SpeechRecognitionService = Depends(get_speech),
    users: UserDirectory = Depends(get_user_directory),
    store: ObjectStore = Depends(get_object_store),
) -> ImportPipeline:
    """
    Build the import pipeline with explicit collaborators.
    Tests swap any of them through app.dependency_overrides.
    """
    return ImportPipeline(gateway=gateway, speech=speech, users=users, store=store)
