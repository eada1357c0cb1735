# app/schemas/auth.py
"""
Pydantic schemas for authentication endpoints.
Defines request models for registration, login and the user profile.
"""
from typing import Optional
from pydantic import BaseModel

class RegisterIn(BaseModel):
    """
    Request model for sign-up.
    invitedByCode is the 4-digit invite code of the user who shared the app, if any.
    """
    username: str
    password: str
    name: Optional[str] = None
    email: Optional[str] = None
    invitedByCode: Optional[str] = None

class LoginRequest(BaseModel):
    """
    Request model for user login endpoint.
    """
    username: str
    password: str  # Plain text, verified against the argon2 hash

class ProfileIn(BaseModel):
    """
    Request model for syncing profile fields from the identity provider.
    Only provided fields are updated.
    """
    name: Optional[str] = None
    email: Optional[str] = None
    image: Optional[str] = None
