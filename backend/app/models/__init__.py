# app/models/__init__.py
"""
Database models module initialization.
Exports all database models for convenient imports throughout the application.

Models exported:
- User: Platform identity (initiator / participant)
- Conversation: One recorded interaction and its merged facts/summary
- ConversationStatus: pending | active | ended
- TranscriptTurn: One speaker turn, resolved to a User
- StoredObject: Uploaded audio blob
"""
from .user import User
from .conversation import Conversation, ConversationStatus
from .transcript import TranscriptTurn
from .stored_object import StoredObject
