"""
Services Module

Provides the import pipeline and the collaborators it drives:
- Speech recognition: OpenAI Whisper API + GPT analysis (S1/S2 turns, facts, summary)
- Conversation lifecycle gateway (record store)
- Object store for uploaded audio
- Fact/summary aggregation and speaker-to-user mapping
"""

# Speech recognition - service interface
from .asr_base import (
    ChunkResult,
    ChunkTurn,
    SpeakerLabel,
    SpeechRecognitionService,
)
from .asr_factory import get_speech_service
from .asr_openai_adapter import openai_whisper_service

# Pipeline
from .aggregator import AggregatedChunks, aggregate_chunks
from .speaker_mapper import MappedTurn, SpeakerRole, map_turns
from .conversation_gateway import ConversationGateway
from .object_store import ObjectStore, object_store
from .user_directory import UserDirectory
from .import_pipeline import ImportPipeline, ImportResult

__all__ = [
    # Speech recognition
    "ChunkResult",
    "ChunkTurn",
    "SpeakerLabel",
    "SpeechRecognitionService",
    "get_speech_service",
    "openai_whisper_service",
    # Pipeline
    "AggregatedChunks",
    "aggregate_chunks",
    "MappedTurn",
    "SpeakerRole",
    "map_turns",
    "ConversationGateway",
    "ObjectStore",
    "object_store",
    "UserDirectory",
    "ImportPipeline",
    "ImportResult",
]
