# app/schemas/conversation.py
"""
Pydantic schemas for conversation endpoints.
Defines request models for renaming and status changes.
"""
from pydantic import BaseModel, Field
from typing import Literal

class ConversationLocationIn(BaseModel):
    """
    Request model for renaming a conversation's location label.
    """
    location: str = Field(max_length=128)

class ConversationStatusIn(BaseModel):
    """
    Request model for status changes. "ended" is terminal.
    """
    status: Literal["pending", "active", "ended"]
