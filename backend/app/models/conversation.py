# app/models/conversation.py
"""
Database model for conversations.
A conversation is one recorded interaction between an initiator and an
optional participant, holding the playback reference, the per-speaker facts
and the summary. Transcript turns live in their own table.
"""
import uuid
from enum import Enum
from tortoise import fields, models


class ConversationStatus(str, Enum):
    PENDING = "pending"  # created, second participant not linked yet
    ACTIVE = "active"    # participant linked (or solo); transcript not saved yet
    ENDED = "ended"      # terminal: transcript saved, or import failed


class Conversation(models.Model):
    """
    Conversation database model.

    Relationships:
    - Belongs to an initiator User (many-to-one)
    - Optionally belongs to a participant User (null for solo recordings)
    - Has many TranscriptTurn rows (via related_name="turns")

    Invariant: once status is "ended" the transcript, facts and summary are frozen.
    """
    id = fields.UUIDField(pk=True, default=uuid.uuid4)
    initiator = fields.ForeignKeyField(
        "models.User",
        related_name="initiated_conversations",
        on_delete=fields.CASCADE,
    )
    participant = fields.ForeignKeyField(
        "models.User",
        related_name="joined_conversations",
        null=True,
        on_delete=fields.SET_NULL,
    )
    status = fields.CharEnumField(ConversationStatus, max_length=16, default=ConversationStatus.PENDING)
    location = fields.CharField(max_length=128, null=True)  # Free-text label, e.g. "Imported from Mobile"
    invite_code = fields.CharField(max_length=8, index=True)  # Out-of-band join code (not used by imports)
    audio_storage_id = fields.UUIDField(null=True)  # StoredObject id of the primary chunk, for playback

    initiator_name = fields.CharField(max_length=256, null=True)
    participant_name = fields.CharField(max_length=256, null=True)
    initiator_facts = fields.JSONField(default=list)    # S1 facts
    participant_facts = fields.JSONField(default=list)  # S2 facts
    summary = fields.TextField(null=True)

    started_at = fields.DatetimeField(auto_now_add=True)
    ended_at = fields.DatetimeField(null=True)

    class Meta:
        """Tortoise ORM metadata configuration."""
        table = "conversations"

    @property
    def is_ended(self) -> bool:
        return self.status == ConversationStatus.ENDED
