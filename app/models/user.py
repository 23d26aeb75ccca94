from __future__ import annotations

from typing import Optional

from email_validator import EmailNotValidError, validate_email
from pydantic import BaseModel

from app.core.errors import InvalidUsername
from app.schemas.common import Role


def normalize_username(value: str, domain: str) -> str:
    """Canonical identity is a lower-cased email address.

    A bare handle such as ``john`` becomes ``john@<domain>``. Anything that
    is not a deliverable-looking address afterwards raises ``InvalidUsername``.
    """
    username = value.strip().lower()
    if "@" not in username:
        username = f"{username}@{domain}"
    try:
        return validate_email(username, check_deliverability=False).normalized
    except EmailNotValidError as exc:
        raise InvalidUsername(f"Invalid username '{value}': {exc}") from exc


def validate_username_domain(domain: str) -> None:
    """Fail fast when handles under ``domain`` could never be valid emails."""
    try:
        validate_email(f"user@{domain}", check_deliverability=False)
    except EmailNotValidError as exc:
        raise InvalidUsername(f"USERNAME_DOMAIN '{domain}' is not usable: {exc}") from exc


class User(BaseModel):
    id: Optional[str] = None
    username: str
    name: str
    role: Role = Role.staff
    password_hash: str = ""
    is_active: bool = True

    def public(self) -> dict:
        return {"id": self.id, "username": self.username, "name": self.name, "role": self.role.value}
