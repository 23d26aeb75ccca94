import logging

from fastapi import APIRouter, Depends, HTTPException, status

from app.core.config import settings
from app.core.errors import InvalidUsername
from app.core.security import get_current_user, hash_password, verify_password, create_jwt
from app.db.stores import get_user_store
from app.db.user_store import UserStore
from app.models.user import normalize_username
from app.schemas.auth_schema import LoginIn, ChangePasswordIn, UserOut, AuthResponse

router = APIRouter(prefix="/auth", tags=["auth"])

logger = logging.getLogger("uvicorn.error")


@router.post("/login", response_model=AuthResponse)
async def login(payload: LoginIn, users: UserStore = Depends(get_user_store)):
    try:
        username = normalize_username(payload.username, settings.USERNAME_DOMAIN)
    except InvalidUsername as exc:
        # Unknown and malformed usernames look the same to the caller
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials") from exc
    user = await users.get_by_username(username)
    if not user or not user.is_active or not verify_password(payload.password, user.password_hash):
        logger.info("Failed login for %s", username)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    token = create_jwt({"sub": user.id, "role": user.role.value})
    return {"user": user.public(), "token": token}


@router.get("/me", response_model=UserOut)
async def get_me(current_user=Depends(get_current_user)):
    return current_user


@router.post("/change-password")
async def change_password(
    payload: ChangePasswordIn,
    users: UserStore = Depends(get_user_store),
    current_user=Depends(get_current_user),
):
    user = await users.get(current_user["id"])
    if not user or not verify_password(payload.current_password, user.password_hash):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Current password is incorrect")
    await users.set_password_hash(user.id, hash_password(payload.new_password))
    return {"status": "ok"}
