import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status

from app.core.config import settings
from app.core.rbac import require_admin
from app.core.security import hash_password
from app.db.stores import get_user_store
from app.db.user_store import UserStore
from app.models.user import User, normalize_username
from app.schemas.auth_schema import UserIn, UserOut, UserListOut

router = APIRouter(prefix="/users", tags=["users"])

logger = logging.getLogger("uvicorn.error")


@router.get("", response_model=UserListOut)
async def list_users(
    search: Optional[str] = Query(None),
    users: UserStore = Depends(get_user_store),
    current_user=Depends(require_admin),
):
    items = [u.public() for u in await users.list(search)]
    return {"items": items, "total": len(items)}


@router.post("", response_model=UserOut, status_code=status.HTTP_201_CREATED)
async def create_user(
    payload: UserIn,
    users: UserStore = Depends(get_user_store),
    current_user=Depends(require_admin),
):
    # Raises InvalidUsername (422) before anything is stored
    username = normalize_username(payload.username, settings.USERNAME_DOMAIN)
    if await users.get_by_username(username):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Username already registered")
    user = await users.create(User(
        username=username,
        name=payload.name.strip(),
        role=payload.role,
        password_hash=hash_password(payload.password),
    ))
    logger.info("Admin %s created user %s (%s)", current_user["id"], user.username, user.role.value)
    return user.public()


@router.delete("/{user_id}")
async def delete_user(
    user_id: str = Path(...),
    users: UserStore = Depends(get_user_store),
    current_user=Depends(require_admin),
):
    if user_id == current_user["id"]:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot delete your own account")
    await users.delete(user_id)
    return {"status": "deleted", "id": user_id}
