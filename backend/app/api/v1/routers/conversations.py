import uuid
from fastapi import APIRouter, Depends, HTTPException, Query, status
from tortoise.expressions import Q
from app.api.v1.deps import get_current_user, get_gateway
from app.models.user import User
from app.models.conversation import Conversation, ConversationStatus
from app.models.transcript import TranscriptTurn
from app.schemas.conversation import ConversationLocationIn, ConversationStatusIn
from app.services.conversation_gateway import ConversationGateway

router = APIRouter(prefix="/conversations", tags=["conversations"])

def _iso(ts):
    return ts.isoformat() + "Z" if ts else None

def conversation_item(c: Conversation) -> dict:
    return {
        "id": str(c.id),
        "status": c.status.value,
        "location": c.location,
        "initiatorId": str(c.initiator_id),
        "participantId": str(c.participant_id) if c.participant_id else None,
        "startedAt": _iso(c.started_at),
        "endedAt": _iso(c.ended_at),
    }

def _visible_to(user: User) -> Q:
    return Q(initiator_id=user.id) | Q(participant_id=user.id)

async def _get_visible(cid: str, user: User) -> Conversation:
    """Conversation the user initiated or joined, else 404"""
    try:
        conv_id = uuid.UUID(cid)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="NOT_FOUND")
    c = await Conversation.filter(_visible_to(user), id=conv_id).first()
    if not c:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="NOT_FOUND")
    return c

def _require_initiator(c: Conversation, user: User) -> None:
    if c.initiator_id != user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="FORBIDDEN_NOT_INITIATOR")

# ===== Routes =====
@router.get("", response_model=dict)
async def list_conversations(
    user: User = Depends(get_current_user),
    offset: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=200),
):
    """
    Get paginated list of conversations the user initiated or joined.

    Returns conversations ordered by start time (newest first).

    Returns:
        dict: Response containing:
            - success: bool (always True)
            - data: dict with items, offset, limit, total
    """
    query = Conversation.filter(_visible_to(user))
    total = await query.count()
    rows = await query.order_by("-started_at").offset(offset).limit(limit)
    items = [conversation_item(c) for c in rows]
    return {"success": True, "data": {"items": items, "offset": offset, "limit": limit, "total": total}}

@router.get("/{cid}", response_model=dict)
async def get_conversation_detail(cid: str, user: User = Depends(get_current_user)):
    """
    Get a conversation with its transcript, per-speaker facts and summary.

    A failed single-file import shows up here as status "ended" with an empty
    transcript; a failed chunked import as status "active" with an empty transcript.

    Raises:
        HTTPException (404): If conversation not found or not visible to the user
    """
    c = await _get_visible(cid, user)
    turns = await TranscriptTurn.filter(conversation_id=c.id).order_by("seq")
    return {
        "success": True,
        "data": {
            "conversation": {
                **conversation_item(c),
                "inviteCode": c.invite_code,
                "audioStorageId": str(c.audio_storage_id) if c.audio_storage_id else None,
                "initiatorName": c.initiator_name,
                "participantName": c.participant_name,
                "initiatorFacts": c.initiator_facts or [],
                "participantFacts": c.participant_facts or [],
                "summary": c.summary,
            },
            "transcript": [{"seq": t.seq, "userId": str(t.user_id), "text": t.text} for t in turns],
        },
    }

@router.patch("/{cid}", response_model=dict)
async def rename_conversation(cid: str, body: ConversationLocationIn, user: User = Depends(get_current_user)):
    """
    Update the location label of a conversation. Trimmed to 80 characters.

    Raises:
        HTTPException (404): If conversation not found or not visible to the user
    """
    c = await _get_visible(cid, user)
    c.location = (body.location or "").strip()[:80]
    await c.save(update_fields=["location"])
    return {"success": True, "data": {"id": str(c.id), "location": c.location}}

@router.post("/{cid}/status", response_model=dict)
async def update_status(
    cid: str,
    body: ConversationStatusIn,
    user: User = Depends(get_current_user),
    gateway: ConversationGateway = Depends(get_gateway),
):
    """
    Change a conversation's status (initiator only). "ended" is terminal.

    Raises:
        HTTPException (403): If the user is not the initiator
        HTTPException (404): If conversation not found or not visible to the user
        HTTPException (409): If the conversation already ended and another status is requested
    """
    c = await _get_visible(cid, user)
    _require_initiator(c, user)
    new_status = ConversationStatus(body.status)
    if c.is_ended and new_status is not ConversationStatus.ENDED:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="CONVERSATION_ENDED")
    await gateway.set_status(c.id, new_status)
    return {"success": True, "data": {"id": str(c.id), "status": new_status.value}}

@router.delete("/{cid}", response_model=dict)
async def delete_conversation(cid: str, user: User = Depends(get_current_user)):
    """
    Delete a conversation and its transcript (initiator only).

    Raises:
        HTTPException (403): If the user is not the initiator
        HTTPException (404): If conversation not found or not visible to the user
    """
    c = await _get_visible(cid, user)
    _require_initiator(c, user)
    await TranscriptTurn.filter(conversation_id=c.id).delete()
    await c.delete()
    return {"success": True, "data": {"id": cid, "deleted": True}}
