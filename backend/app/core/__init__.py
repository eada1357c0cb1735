# app/core/__init__.py
"""
Core application modules.
Contains essential infrastructure components:
- db: Database configuration and connection management
- errors: Import pipeline error taxonomy and FastAPI error handlers
- security: Password hashing, access/upload tokens, invite codes
"""
