"""
Speech Recognition Service Abstract Interface

Provides a unified interface for speech providers used by the import pipeline,
plus the per-chunk result types they return.
"""
from abc import ABC, abstractmethod
from enum import Enum
from typing import Dict, List, Optional
from dataclasses import dataclass, field

from ..core.errors import MappingError


class SpeakerLabel(str, Enum):
    """Chunk-local speaker label: who spoke first (S1) vs. second (S2) in this chunk"""
    S1 = "S1"
    S2 = "S2"

    @classmethod
    def parse(cls, raw) -> "SpeakerLabel":
        try:
            return cls(str(raw).strip().upper())
        except ValueError:
            raise MappingError(f"Unknown speaker label from speech service: {raw!r}", label=str(raw))


@dataclass
class ChunkTurn:
    """One speaker turn inside a chunk"""
    speaker: SpeakerLabel
    text: str


@dataclass
class ChunkResult:
    """
    Transcription + analysis of one audio chunk

    Note: speaker labels are chunk-local, the service has no persistent identity
    """
    transcript: List[ChunkTurn]
    facts_by_speaker: Dict[SpeakerLabel, List[str]] = field(default_factory=dict)
    summary: str = ""

    @property
    def s1_facts(self) -> List[str]:
        return list(self.facts_by_speaker.get(SpeakerLabel.S1, []))

    @property
    def s2_facts(self) -> List[str]:
        return list(self.facts_by_speaker.get(SpeakerLabel.S2, []))

    @classmethod
    def from_payload(cls, payload: dict) -> "ChunkResult":
        """
        Build from the service's JSON shape:
        {"transcript": [{"speaker": "S1", "text": "..."}], "S1_facts": [...], "S2_facts": [...], "summary": "..."}
        """
        turns = []
        for turn in payload.get("transcript") or []:
            text = (turn.get("text") or "").strip()
            if not text:
                continue
            turns.append(ChunkTurn(speaker=SpeakerLabel.parse(turn.get("speaker")), text=text))
        return cls(
            transcript=turns,
            facts_by_speaker={
                SpeakerLabel.S1: _clean_facts(payload.get("S1_facts")),
                SpeakerLabel.S2: _clean_facts(payload.get("S2_facts")),
            },
            summary=_clean_summary(payload.get("summary")),
        )


def _clean_facts(raw) -> List[str]:
    """A bare string is one fact; anything else must be a list"""
    if raw is None:
        return []
    if isinstance(raw, str):
        raw = [raw]
    if not isinstance(raw, list):
        raise ValueError(f"facts must be a list of strings, got {type(raw).__name__}")
    return [str(f).strip() for f in raw if str(f).strip()]


def _clean_summary(raw) -> str:
    if raw is None:
        return ""
    if not isinstance(raw, str):
        raise ValueError(f"summary must be a string, got {type(raw).__name__}")
    return raw.strip()


class SpeechRecognitionService(ABC):
    """Speech Recognition Service Abstract Base Class"""

    @abstractmethod
    async def transcribe_chunk_only(self, storage_ref: str) -> ChunkResult:
        """
        Transcribe and analyze one stored audio chunk, without persisting anything

        Parameters:
        - storage_ref: StoredObject id returned by the upload endpoint

        Returns:
        - ChunkResult: S1/S2 turns, per-speaker facts and a summary
        """
        pass

    @abstractmethod
    async def batch_transcribe(
        self,
        storage_ref: str,
        conversation_id: str,
        initiator_name: str,
        participant_name: str,
        user_email: Optional[str] = None,
        user_name: Optional[str] = None,
    ) -> None:
        """
        Transcribe a whole file and save transcript, facts and summary onto the conversation
        """
        pass

    @abstractmethod
    def is_available(self) -> bool:
        """Check if service is available"""
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        """Service name (e.g., "OpenAI Whisper API")"""
        pass
