# app/models/user.py
"""
Database model for users.
Represents a platform identity: the initiator or participant of a recorded
conversation, with the profile fields the import pipeline needs (display
name, email) and the invite code used for out-of-band joining.
"""
import uuid
from tortoise import fields, models

class User(models.Model):
    """
    User database model.

    Relationships:
    - Has many initiated Conversations (related_name="initiated_conversations")
    - Has many joined Conversations (related_name="joined_conversations")
    - Has many StoredObjects (uploaded audio, related_name="stored_objects")

    Security:
    - Password is stored as an argon2 hash
    - Username and invite code are unique across all users
    """
    id = fields.UUIDField(pk=True, default=uuid.uuid4)  # Primary key: stable user identifier
    username = fields.CharField(max_length=256, unique=True, index=True)  # Login name
    name = fields.CharField(max_length=256, null=True)  # Display name shown in transcripts
    email = fields.CharField(max_length=256, null=True)
    image = fields.CharField(max_length=1024, null=True)  # Profile picture URL
    password_hash = fields.CharField(max_length=255)
    invite_code = fields.CharField(max_length=8, unique=True, index=True)  # 4-digit code, e.g. "0427"
    invited_by_code = fields.CharField(max_length=8, null=True)  # Invite code used at sign-up
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        """Tortoise ORM metadata configuration."""
        table = "users"

    @property
    def display_name(self) -> str:
        return self.name or self.username
