"""
User directory: profile lookups the import pipeline needs from the identity side.
"""
import uuid
from typing import Optional

from ..core.security import random_invite_code
from ..models.user import User

INVITE_CODE_ATTEMPTS = 20


async def generate_unique_invite_code() -> str:
    for _ in range(INVITE_CODE_ATTEMPTS):
        code = random_invite_code()
        if not await User.filter(invite_code=code).exists():
            return code
    raise RuntimeError(f"Failed to generate unique invite code after {INVITE_CODE_ATTEMPTS} attempts")


class UserDirectory:
    async def get_user(self, user_id) -> Optional[User]:
        """None for unknown or malformed ids"""
        try:
            uid = user_id if isinstance(user_id, uuid.UUID) else uuid.UUID(str(user_id))
        except (TypeError, ValueError):
            return None
        return await User.get_or_none(id=uid)

    async def get_by_invite_code(self, code: str) -> Optional[User]:
        return await User.get_or_none(invite_code=code.strip())
