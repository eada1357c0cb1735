# backend/app/services/speaker_mapper.py
"""
Speaker-to-User Mapper

Maps chunk-local speaker labels onto platform identities. The mapping is fixed
for the whole conversation: S1 is always the initiator, S2 the participant.
"""
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from .asr_base import ChunkTurn, SpeakerLabel
from ..core.errors import MappingError


class SpeakerRole(str, Enum):
    INITIATOR = "initiator"
    PARTICIPANT = "participant"


_ROLE_BY_LABEL = {
    SpeakerLabel.S1: SpeakerRole.INITIATOR,
    SpeakerLabel.S2: SpeakerRole.PARTICIPANT,
}


@dataclass(frozen=True)
class MappedTurn:
    user_id: str
    role: SpeakerRole
    text: str


def role_for_label(label) -> SpeakerRole:
    if not isinstance(label, SpeakerLabel):
        label = SpeakerLabel.parse(label)
    return _ROLE_BY_LABEL[label]


def resolve_user_id(label, initiator_id: str, participant_id: Optional[str]) -> str:
    """
    S1 -> initiator_id, S2 -> participant_id

    Raises MappingError for an S2 turn in a solo conversation
    """
    role = role_for_label(label)
    if role is SpeakerRole.INITIATOR:
        return initiator_id
    if participant_id is None:
        raise MappingError(
            "Speech service returned a second speaker for a solo conversation",
            label=SpeakerLabel.S2.value,
        )
    return participant_id


def map_turns(
    turns: List[ChunkTurn],
    initiator_id: str,
    participant_id: Optional[str],
) -> List[MappedTurn]:
    """Order of the input turns is preserved"""
    return [
        MappedTurn(
            user_id=resolve_user_id(turn.speaker, initiator_id, participant_id),
            role=role_for_label(turn.speaker),
            text=turn.text,
        )
        for turn in turns
    ]
