# app/schemas/imports.py
"""
Pydantic schemas for the audio import endpoints.
The mobile client uploads audio first (see /storage) and passes the returned
storage ids here.
"""
from typing import List, Optional
from pydantic import BaseModel, Field

class ImportAudioIn(BaseModel):
    """
    Request model for importing one audio file.
    friendId is omitted for a solo recording.
    """
    storageId: str  # StoredObject id returned by the upload endpoint
    friendId: Optional[str] = None  # Participant user id
    location: Optional[str] = Field(default=None, max_length=128)  # Label, defaults to "Imported from Mobile"

class ImportChunksIn(BaseModel):
    """
    Request model for importing a recording the client split into chunks.
    Chunks are transcribed in list order; the first one is used for playback.
    """
    storageIds: List[str] = Field(min_length=1)
    friendId: Optional[str] = None
    location: Optional[str] = Field(default=None, max_length=128)
