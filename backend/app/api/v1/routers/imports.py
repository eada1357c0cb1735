# app/api/v1/routers/imports.py
import logging
from fastapi import APIRouter, Depends
from app.api.v1.deps import get_current_user, get_import_pipeline
from app.models.user import User
from app.schemas.imports import ImportAudioIn, ImportChunksIn
from app.services.import_pipeline import ImportPipeline, ImportResult

logger = logging.getLogger("uvicorn.error")

router = APIRouter(prefix="/imports", tags=["imports"])

def result_out(result: ImportResult) -> dict:
    return {"success": True, "data": {"conversationId": result.conversation_id, "success": result.success}}

@router.post("/audio")
async def import_audio(
    body: ImportAudioIn,
    user: User = Depends(get_current_user),
    pipeline: ImportPipeline = Depends(get_import_pipeline),
):
    """
    Import one uploaded audio file as a new conversation.

    Creates the conversation, links the friend (or marks it solo), attaches the
    audio and transcribes it. The request blocks until transcription finishes.

    Returns:
        dict: Response containing:
            - success: bool
            - data: dict with conversationId: str, success: bool

    Errors:
        - NOT_FOUND (404): friend or uploaded file missing
        - TRANSCRIPTION_FAILED (502): speech service failed; the conversation
          exists, is ended and has no transcript
        - SPEAKER_MAPPING_ERROR (422): a second speaker in a solo recording
    """
    logger.info("[imports] single-file import by user=%s", user.id)
    result = await pipeline.import_single_file(user, body.storageId, body.friendId, body.location)
    return result_out(result)

@router.post("/audio/chunks")
async def import_audio_chunks(
    body: ImportChunksIn,
    user: User = Depends(get_current_user),
    pipeline: ImportPipeline = Depends(get_import_pipeline),
):
    """
    Import a long recording the client split into chunks.

    Chunks are transcribed in order and merged (facts deduplicated, summaries
    combined as "Part i"), then saved in one write.

    Errors:
        - NOT_FOUND (404): friend or one of the uploaded chunks missing
        - CHUNK_TRANSCRIPTION_FAILED (502, chunkIndex): nothing is saved; the
          conversation stays active without a transcript
        - SPEAKER_MAPPING_ERROR (422): a second speaker in a solo recording
    """
    logger.info("[imports] chunked import (%d chunks) by user=%s", len(body.storageIds), user.id)
    result = await pipeline.import_chunked(user, body.storageIds, body.friendId, body.location)
    return result_out(result)
