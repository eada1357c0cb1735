# app/core/security.py
"""
Security module for authentication and signed upload URLs.
Handles password hashing, JWT access tokens, short-lived upload tokens and
invite-code generation.
"""
import os
import secrets
import datetime as dt
import jwt  # PyJWT
from passlib.context import CryptContext
from dotenv import load_dotenv
from pathlib import Path

# Load environment variables from project root
ENV_PATH = Path(__file__).resolve().parents[2] / ".env"
load_dotenv(dotenv_path=ENV_PATH)

# Argon2 only
pwd_context = CryptContext(
    schemes=["argon2"],
    deprecated="auto",
)

# JWT configuration
JWT_SECRET = os.getenv("JWT_SECRET", "dev-secret")  # Use a strong secret in production
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))
JWT_ALG = "HS256"

ACCESS_PURPOSE = "access"
UPLOAD_PURPOSE = "upload"

def hash_password(plain: str) -> str:
    """
    Hash a plain text password using Argon2.

    Args:
        plain: Plain text password to hash

    Returns:
        Hashed password string (safe to store in database)
    """
    return pwd_context.hash(plain)

def verify_password(plain: str, hashed: str) -> bool:
    """
    Verify a plain text password against a hashed password.

    Returns:
        True if password matches, False otherwise
    """
    return pwd_context.verify(plain, hashed)

def create_access_token(user_id: str) -> str:
    """
    Create a JWT access token identifying a user.

    Token payload includes:
        - sub: Subject (user ID)
        - purpose: "access"
        - iat / exp: Issued at / expiration timestamps
    """
    now = dt.datetime.utcnow()
    payload = {
        "sub": user_id,
        "purpose": ACCESS_PURPOSE,
        "iat": now,
        "exp": now + dt.timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES),
    }
    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALG)

def decode_access_token(token: str) -> dict:
    """
    Decode and validate a JWT access token.

    Raises:
        jwt.ExpiredSignatureError: If token has expired
        jwt.InvalidTokenError: If token is invalid, malformed, or not an access token
    """
    payload = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALG])
    if payload.get("purpose") != ACCESS_PURPOSE:
        raise jwt.InvalidTokenError("not an access token")
    return payload

def create_upload_token(owner_id: str, expire_minutes: int) -> str:
    """Signed, single-owner token embedded in an upload URL."""
    now = dt.datetime.utcnow()
    payload = {
        "sub": owner_id,
        "purpose": UPLOAD_PURPOSE,
        "jti": secrets.token_hex(8),
        "iat": now,
        "exp": now + dt.timedelta(minutes=expire_minutes),
    }
    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALG)

def decode_upload_token(token: str) -> dict:
    """
    Raises:
        jwt.InvalidTokenError: If the token is expired, forged, or an access token
    """
    payload = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALG])
    if payload.get("purpose") != UPLOAD_PURPOSE:
        raise jwt.InvalidTokenError("not an upload token")
    return payload

def random_invite_code() -> str:
    """Four-digit, zero-padded code ("0042")."""
    return f"{secrets.randbelow(10000):04d}"
