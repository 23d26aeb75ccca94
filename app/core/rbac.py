from fastapi import Depends, HTTPException, status

from app.core.security import get_current_user


def is_admin(role: str) -> bool:
    return role == "admin"


def can_view_user_scope(user: dict, user_id: str | None) -> bool:
    if is_admin(str(user.get("role", ""))):
        return True
    # staff can only see their own entries
    return bool(user_id) and str(user.get("id", "")) == str(user_id)


async def require_admin(current_user=Depends(get_current_user)) -> dict:
    if not is_admin(str(current_user.get("role", ""))):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
    return current_user
