# app/api/v1/routers/users.py
from fastapi import APIRouter, Depends, HTTPException, status
from app.api.v1.deps import get_current_user, get_user_directory
from app.models.user import User
from app.services.user_directory import UserDirectory

router = APIRouter(prefix="/users", tags=["users"])

def public_user(u: User) -> dict:
    return {"id": str(u.id), "name": u.display_name, "image": u.image}

@router.get("/by-invite/{code}")
async def get_user_by_invite_code(
    code: str,
    _: User = Depends(get_current_user),
    users: UserDirectory = Depends(get_user_directory),
):
    """
    Look up a user by their 4-digit invite code (used to pick the friend for an import).

    Raises:
        HTTPException (404): If no user has this code
    """
    u = await users.get_by_invite_code(code)
    if not u:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="NOT_FOUND")
    return {"success": True, "data": public_user(u)}

@router.get("/{uid}")
async def get_user(
    uid: str,
    _: User = Depends(get_current_user),
    users: UserDirectory = Depends(get_user_directory),
):
    """
    Public profile of a user.

    Raises:
        HTTPException (404): If the user does not exist
    """
    u = await users.get_user(uid)
    if not u:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="NOT_FOUND")
    return {"success": True, "data": public_user(u)}
