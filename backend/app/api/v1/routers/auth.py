# app/api/v1/routers/auth.py
from fastapi import APIRouter, HTTPException, Response, status, Depends
from pydantic import BaseModel
from app.core.security import verify_password, create_access_token, hash_password
from app.api.v1.deps import get_current_user
from app.models.user import User
from app.schemas.auth import RegisterIn, LoginRequest, ProfileIn
from app.services.user_directory import generate_unique_invite_code

router = APIRouter(prefix="/auth", tags=["auth"])

class ChangePasswordIn(BaseModel):
    newPassword: str

def user_out(u: User) -> dict:
    return {"id": str(u.id), "username": u.username, "name": u.name, "email": u.email,
            "image": u.image, "inviteCode": u.invite_code}

@router.post("/register")
async def register(body: RegisterIn):
    """
    Register a new user account.

    Creates the account with a hashed password and a unique 4-digit invite
    code other users can enter to connect. Username and email must be unique.

    Returns:
        dict: Success response with user data, or error response:
            - success: bool
            - data: user object (if success)
            - error: dict with error code and message (if failure)

    Error codes:
        - BAD_REQUEST: Missing username or password
        - USERNAME_EXISTS: Username already taken
        - EMAIL_EXISTS: Email already registered
    """
    if not body.username or not body.password:
        return {"success": False, "error": {"code": "BAD_REQUEST", "message": "username/password required"}}
    if await User.get_or_none(username=body.username):
        return {"success": False, "error": {"code": "USERNAME_EXISTS", "message": "Username already exists"}}
    if body.email and await User.get_or_none(email=body.email):
        return {"success": False, "error": {"code": "EMAIL_EXISTS", "message": "Email already registered"}}
    u = await User.create(
        username=body.username,
        name=(body.name or None),
        email=(body.email or None),
        password_hash=hash_password(body.password),
        invite_code=await generate_unique_invite_code(),
        invited_by_code=(body.invitedByCode or None),
    )
    return {"success": True, "data": user_out(u)}

@router.post("/login")
async def login(payload: LoginRequest, response: Response):
    """
    Authenticate user and create access token.

    The token is returned in the response body (mobile app) and also set as
    an HttpOnly cookie (web dashboard).

    Raises:
        HTTPException (401): If credentials are invalid
    """
    user = await User.get_or_none(username=payload.username)
    if not user or not verify_password(payload.password, user.password_hash):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED,
                            detail={"code": "AUTH_INVALID_CREDENTIALS", "message": "Incorrect username or password"})
    token = create_access_token(str(user.id))
    response.set_cookie("accessToken", token, httponly=True, secure=False, samesite="lax")
    return {"success": True, "data": {"user": user_out(user), "accessToken": token}}

@router.get("/me")
async def me(user: User = Depends(get_current_user)):
    """
    Get current authenticated user information.
    """
    return {"success": True, "data": user_out(user)}

@router.patch("/me")
async def update_profile(body: ProfileIn, user: User = Depends(get_current_user)):
    """
    Sync profile fields (name, email, picture) from the identity provider.

    Only fields present in the body are written, and only when they changed.

    Error codes:
        - EMAIL_EXISTS: Email already registered to another account
    """
    changes = body.model_dump(exclude_unset=True)
    if changes.get("email") and await User.filter(email=changes["email"]).exclude(id=user.id).exists():
        return {"success": False, "error": {"code": "EMAIL_EXISTS", "message": "Email already registered"}}
    changed = [k for k, v in changes.items() if getattr(user, k) != v]
    for k in changed:
        setattr(user, k, changes[k])
    if changed:
        await user.save(update_fields=changed)
    return {"success": True, "data": user_out(user)}

@router.post("/logout")
async def logout(response: Response):
    """
    Log out the current user by clearing the access token cookie.

    Note:
        The JWT itself remains valid until it expires.
    """
    response.delete_cookie("accessToken")
    return {"success": True}

@router.post("/change-password")
async def change_password(body: ChangePasswordIn, user: User = Depends(get_current_user)):
    """
    Change password for the currently authenticated user.
    """
    user.password_hash = hash_password(body.newPassword)
    await user.save()
    return {"success": True, "data": {"ok": True}}
