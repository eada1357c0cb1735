# backend/app/services/import_pipeline.py
"""
Import Pipeline

Turns uploaded audio into a persisted conversation:
create conversation -> link participant (or mark solo) -> attach audio ->
transcribe -> aggregate facts/summaries -> map speakers -> save transcript.

Two entry points:
- import_single_file: the speech service transcribes and persists the whole file.
  On failure the conversation is force-ended so it is not left half-imported.
- import_chunked: chunks are transcribed one by one, merged in memory and saved
  with a single call. On failure nothing is persisted and the conversation is
  left active without a transcript (unless end_on_chunk_failure is set).

Nothing is retried and there is no checkpoint: a failed import is re-run from
scratch and creates a new conversation.
"""
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from ..config import settings
from ..core.errors import (
    ChunkTranscriptionFailure,
    NotFound,
    PipelineError,
    TranscriptionFailure,
    Unauthenticated,
)
from ..models.conversation import ConversationStatus
from ..models.user import User
from .aggregator import aggregate_chunks
from .asr_base import ChunkResult, SpeechRecognitionService
from .conversation_gateway import ConversationGateway
from .object_store import ObjectStore
from .speaker_mapper import map_turns
from .user_directory import UserDirectory

logger = logging.getLogger(__name__)

DEFAULT_INITIATOR_NAME = "You"
DEFAULT_PARTICIPANT_NAME = "Friend"


@dataclass(frozen=True)
class ImportResult:
    conversation_id: str
    success: bool = True


@dataclass
class _PreparedImport:
    conversation_id: str
    initiator: User
    participant: Optional[User]

    @property
    def initiator_name(self) -> str:
        return self.initiator.name or DEFAULT_INITIATOR_NAME

    @property
    def participant_name(self) -> Optional[str]:
        if self.participant is None:
            return None
        return self.participant.name or DEFAULT_PARTICIPANT_NAME

    @property
    def participant_id(self) -> Optional[str]:
        return str(self.participant.id) if self.participant else None


class ImportPipeline:
    def __init__(
        self,
        gateway: ConversationGateway,
        speech: SpeechRecognitionService,
        users: UserDirectory,
        store: ObjectStore,
        end_on_chunk_failure: Optional[bool] = None,
    ):
        self.gateway = gateway
        self.speech = speech
        self.users = users
        self.store = store
        self.end_on_chunk_failure = (
            settings.end_on_chunk_failure if end_on_chunk_failure is None else end_on_chunk_failure
        )

    async def import_single_file(
        self,
        current_user: Optional[User],
        storage_ref: str,
        participant_id: Optional[str] = None,
        location: Optional[str] = None,
    ) -> ImportResult:
        logger.info("[import] single-file import storage=%s", storage_ref)
        prepared = await self._prepare(current_user, [storage_ref], participant_id, location)

        logger.info("[import] conversation=%s transcribing", prepared.conversation_id)
        try:
            await self.speech.batch_transcribe(
                storage_ref,
                prepared.conversation_id,
                initiator_name=prepared.initiator_name,
                participant_name=prepared.participant_name or DEFAULT_PARTICIPANT_NAME,
                user_email=prepared.initiator.email,
                user_name=prepared.initiator.name,
            )
        except Exception as e:
            logger.error("[import] conversation=%s transcription failed: %s", prepared.conversation_id, e)
            await self._end_quietly(prepared.conversation_id)
            if isinstance(e, PipelineError):
                raise
            raise TranscriptionFailure(
                f"Failed to process audio: {e}", conversationId=prepared.conversation_id
            ) from e

        logger.info("[import] conversation=%s import completed", prepared.conversation_id)
        return ImportResult(conversation_id=prepared.conversation_id, success=True)

    async def import_chunked(
        self,
        current_user: Optional[User],
        storage_refs: Sequence[str],
        participant_id: Optional[str] = None,
        location: Optional[str] = None,
    ) -> ImportResult:
        if not storage_refs:
            raise NotFound("No audio chunks to import")
        logger.info("[import] chunked import with %d chunks", len(storage_refs))
        prepared = await self._prepare(current_user, list(storage_refs), participant_id, location)

        results: List[ChunkResult] = []
        try:
            for index, storage_ref in enumerate(storage_refs, start=1):
                logger.info("[import] conversation=%s chunk %d/%d", prepared.conversation_id, index, len(storage_refs))
                try:
                    results.append(await self.speech.transcribe_chunk_only(storage_ref))
                except PipelineError:
                    raise
                except Exception as e:
                    raise ChunkTranscriptionFailure(
                        f"Failed to process chunk {index}: {e}",
                        chunk_index=index,
                        conversationId=prepared.conversation_id,
                    ) from e

            merged = aggregate_chunks(results)
            turns = map_turns(merged.transcript, str(prepared.initiator.id), prepared.participant_id)
        except PipelineError as e:
            logger.error("[import] conversation=%s aborted, nothing persisted: %s", prepared.conversation_id, e)
            if self.end_on_chunk_failure:
                await self._end_quietly(prepared.conversation_id)
            raise

        logger.info("[import] conversation=%s all %d chunks processed, saving %d turns",
                    prepared.conversation_id, len(results), len(turns))
        await self.gateway.save_transcript(
            prepared.conversation_id,
            turns=turns,
            s1_facts=merged.s1_facts,
            s2_facts=merged.s2_facts,
            initiator_name=prepared.initiator_name,
            participant_name=prepared.participant_name,
            summary=merged.summary,
        )
        logger.info("[import] conversation=%s import completed", prepared.conversation_id)
        return ImportResult(conversation_id=prepared.conversation_id, success=True)

    async def _prepare(
        self,
        current_user: Optional[User],
        storage_refs: List[str],
        participant_id: Optional[str],
        location: Optional[str],
    ) -> _PreparedImport:
        """Resolve users, check uploads, then create / link / attach"""
        if current_user is None:
            raise Unauthenticated("Not authenticated")

        participant = None
        if participant_id is not None:
            participant = await self.users.get_user(participant_id)
            if participant is None:
                raise NotFound("Friend not found", friendId=str(participant_id))

        for storage_ref in storage_refs:
            await self.store.get(storage_ref, owner_id=current_user.id)

        created = await self.gateway.create(current_user.id, location or settings.default_import_location)
        if participant is not None:
            await self.gateway.link_participant(created.id, participant.id)
        else:
            await self.gateway.mark_solo(created.id)
        await self.gateway.attach_audio(created.id, storage_refs[0])

        return _PreparedImport(conversation_id=created.id, initiator=current_user, participant=participant)

    async def _end_quietly(self, conversation_id: str) -> None:
        """Compensating transition; a failure here must not hide the original error"""
        try:
            await self.gateway.set_status(conversation_id, ConversationStatus.ENDED)
            logger.warning("[import] conversation=%s marked ended without transcript", conversation_id)
        except PipelineError as e:
            logger.error("[import] conversation=%s could not be marked ended: %s", conversation_id, e)
