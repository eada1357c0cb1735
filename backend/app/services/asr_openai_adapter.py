"""
OpenAI Whisper API Adapter

Implements the speech recognition interface with Whisper (transcription) and
GPT (S1/S2 speaker split, facts, summary) on top of the object store.
"""
import asyncio
import logging
import os
from dataclasses import dataclass
from typing import Optional

import httpx

from .aggregator import aggregate_chunks
from .asr_base import ChunkResult, SpeechRecognitionService
from .audio_convert import to_wav_16k_mono
from .conversation_analyzer import ConversationAnalyzer, conversation_analyzer
from .conversation_gateway import ConversationGateway
from .object_store import ObjectStore, object_store
from .speaker_mapper import map_turns
from ..config import settings

logger = logging.getLogger(__name__)


@dataclass
class WhisperTranscript:
    text: str
    language: Optional[str] = None
    duration_sec: Optional[float] = None


class OpenAIWhisperService(SpeechRecognitionService):
    """OpenAI Whisper API Service"""

    def __init__(
        self,
        store: Optional[ObjectStore] = None,
        analyzer: Optional[ConversationAnalyzer] = None,
        gateway: Optional[ConversationGateway] = None,
    ):
        self.api_key = settings.openai_api_key
        self.api_url = settings.whisper_api_url
        self.model = settings.whisper_model
        self.timeout = settings.asr_timeout_sec
        self.store = store or object_store
        self.analyzer = analyzer or conversation_analyzer
        self.gateway = gateway or ConversationGateway()

    @property
    def name(self) -> str:
        return "OpenAI Whisper API"

    def is_available(self) -> bool:
        """Check if API key is configured"""
        return bool(self.api_key)

    async def transcribe(self, audio_path: str, language: Optional[str] = None) -> WhisperTranscript:
        """
        Call OpenAI Whisper API for transcription

        Uses verbose_json so the detected language and duration come back too
        """
        if not self.is_available():
            raise RuntimeError(f"{self.name}: API key not configured")

        headers = {"Authorization": f"Bearer {self.api_key}"}
        data = {
            "model": self.model,
            "response_format": "verbose_json",
            "temperature": 0.0,  # 0 = most deterministic
        }
        if language:
            data["language"] = language

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            with open(audio_path, "rb") as f:
                files = {"file": ("audio.wav", f, "audio/wav")}
                resp = await client.post(self.api_url, headers=headers, data=data, files=files)
            resp.raise_for_status()
            result = resp.json()

        return WhisperTranscript(
            text=(result.get("text") or "").strip(),
            language=result.get("language"),
            duration_sec=result.get("duration"),
        )

    async def transcribe_chunk_only(self, storage_ref: str) -> ChunkResult:
        obj = await self.store.get(storage_ref)
        logger.info("[asr] chunk %s (%s, %d bytes)", obj.id, obj.content_type, obj.size_bytes)

        wav_path = await asyncio.to_thread(to_wav_16k_mono, obj.path)
        try:
            whisper = await self.transcribe(wav_path)
        finally:
            os.unlink(wav_path)

        logger.info("[asr] chunk %s transcribed: %d chars, language=%s, duration=%s",
                    obj.id, len(whisper.text), whisper.language or "auto", whisper.duration_sec)
        analysis = await self.analyzer.analyze(whisper.text, whisper.language)
        return ChunkResult.from_payload(analysis)

    async def batch_transcribe(
        self,
        storage_ref: str,
        conversation_id: str,
        initiator_name: str,
        participant_name: str,
        user_email: Optional[str] = None,
        user_name: Optional[str] = None,
    ) -> None:
        conv = await self.gateway.get(conversation_id)
        logger.info("[asr] batch transcription conversation=%s requested by %s <%s>",
                    conversation_id, user_name or "?", user_email or "?")

        result = await self.transcribe_chunk_only(storage_ref)
        merged = aggregate_chunks([result])
        turns = map_turns(
            merged.transcript,
            initiator_id=str(conv.initiator_id),
            participant_id=str(conv.participant_id) if conv.participant_id else None,
        )
        await self.gateway.save_transcript(
            conversation_id,
            turns=turns,
            s1_facts=merged.s1_facts,
            s2_facts=merged.s2_facts,
            initiator_name=initiator_name,
            participant_name=participant_name if conv.participant_id else None,
            summary=merged.summary,
        )


# Global singleton (optional)
openai_whisper_service = OpenAIWhisperService()
