# backend/app/services/conversation_gateway.py
"""
Conversation Lifecycle Gateway

Thin wrapper around the record store for the calls the import pipeline makes:
create, link_participant / mark_solo, attach_audio, save_transcript, set_status.

Each call is one round trip (save_transcript is one transaction). Nothing is
retried here; store errors surface as PersistenceFailure.
"""
import datetime as dt
import logging
import uuid
from dataclasses import dataclass
from typing import List, Optional

from tortoise.exceptions import BaseORMException
from tortoise.transactions import in_transaction

from ..core.errors import NotFound, PersistenceFailure
from ..core.security import random_invite_code
from ..models.conversation import Conversation, ConversationStatus
from ..models.transcript import TranscriptTurn
from .speaker_mapper import MappedTurn

logger = logging.getLogger(__name__)

INVITE_CODE_ATTEMPTS = 20


@dataclass(frozen=True)
class CreatedConversation:
    id: str
    invite_code: str


def parse_id(raw, what: str = "Conversation") -> uuid.UUID:
    """Malformed ids are reported the same way as missing rows"""
    try:
        return raw if isinstance(raw, uuid.UUID) else uuid.UUID(str(raw))
    except (TypeError, ValueError):
        raise NotFound(f"{what} not found", id=str(raw))


class ConversationGateway:
    """Record-store calls for one conversation's lifecycle"""

    async def get(self, conversation_id) -> Conversation:
        conv = await self._run(Conversation.get_or_none(id=parse_id(conversation_id)))
        if conv is None:
            raise NotFound("Conversation not found", conversationId=str(conversation_id))
        return conv

    async def create(self, initiator_id, location: str) -> CreatedConversation:
        invite_code = await self._unused_invite_code()
        conv = await self._run(Conversation.create(
            initiator_id=parse_id(initiator_id, "User"),
            location=location,
            invite_code=invite_code,
            status=ConversationStatus.PENDING,
        ))
        logger.info("[gateway] created conversation id=%s location=%r", conv.id, location)
        return CreatedConversation(id=str(conv.id), invite_code=invite_code)

    async def link_participant(self, conversation_id, participant_id) -> None:
        conv = await self._get_open(conversation_id)
        conv.participant_id = parse_id(participant_id, "User")
        conv.status = ConversationStatus.ACTIVE
        await self._run(conv.save(update_fields=["participant_id", "status"]))
        logger.info("[gateway] linked participant=%s to conversation=%s", participant_id, conv.id)

    async def mark_solo(self, conversation_id) -> None:
        conv = await self._get_open(conversation_id)
        conv.participant_id = None
        conv.status = ConversationStatus.ACTIVE
        await self._run(conv.save(update_fields=["participant_id", "status"]))
        logger.info("[gateway] conversation=%s marked solo", conv.id)

    async def attach_audio(self, conversation_id, storage_ref) -> None:
        conv = await self._get_open(conversation_id)
        conv.audio_storage_id = parse_id(storage_ref, "Stored object")
        await self._run(conv.save(update_fields=["audio_storage_id"]))
        logger.info("[gateway] attached audio=%s to conversation=%s", storage_ref, conv.id)

    async def save_transcript(
        self,
        conversation_id,
        turns: List[MappedTurn],
        s1_facts: List[str],
        s2_facts: List[str],
        initiator_name: str,
        participant_name: Optional[str],
        summary: str,
    ) -> None:
        """
        Write transcript, both fact sets and summary, and end the conversation.
        Rejected once the conversation has ended.
        """
        conv = await self._get_open(conversation_id)
        conv.initiator_facts = list(s1_facts)
        conv.participant_facts = list(s2_facts)
        conv.initiator_name = initiator_name
        conv.participant_name = participant_name
        conv.summary = summary
        conv.status = ConversationStatus.ENDED
        conv.ended_at = dt.datetime.utcnow()

        try:
            async with in_transaction() as connection:
                if turns:
                    await TranscriptTurn.bulk_create(
                        [
                            TranscriptTurn(conversation_id=conv.id, seq=seq, user_id=parse_id(turn.user_id, "User"), text=turn.text)
                            for seq, turn in enumerate(turns, start=1)
                        ],
                        using_db=connection,
                    )
                await conv.save(using_db=connection)
        except BaseORMException as e:
            raise PersistenceFailure(f"Failed to save transcript: {e}", conversationId=str(conv.id)) from e
        logger.info("[gateway] saved transcript conversation=%s turns=%d s1_facts=%d s2_facts=%d",
                    conv.id, len(turns), len(s1_facts), len(s2_facts))

    async def set_status(self, conversation_id, status: ConversationStatus) -> None:
        status = ConversationStatus(status)
        conv = await self.get(conversation_id)
        if conv.is_ended:
            if status is ConversationStatus.ENDED:
                return
            raise PersistenceFailure("Conversation has ended", conversationId=str(conv.id))
        conv.status = status
        fields = ["status"]
        if status is ConversationStatus.ENDED:
            conv.ended_at = dt.datetime.utcnow()
            fields.append("ended_at")
        await self._run(conv.save(update_fields=fields))
        logger.info("[gateway] conversation=%s status -> %s", conv.id, status.value)

    async def _get_open(self, conversation_id) -> Conversation:
        conv = await self.get(conversation_id)
        if conv.is_ended:
            raise PersistenceFailure("Conversation has ended; it can no longer be modified",
                                     conversationId=str(conv.id))
        return conv

    async def _unused_invite_code(self) -> str:
        for _ in range(INVITE_CODE_ATTEMPTS):
            code = random_invite_code()
            taken = await self._run(
                Conversation.filter(invite_code=code).exclude(status=ConversationStatus.ENDED).exists()
            )
            if not taken:
                return code
        raise PersistenceFailure(f"Failed to generate unique invite code after {INVITE_CODE_ATTEMPTS} attempts")

    @staticmethod
    async def _run(awaitable):
        try:
            return await awaitable
        except BaseORMException as e:
            raise PersistenceFailure(f"Record store error: {e}") from e
