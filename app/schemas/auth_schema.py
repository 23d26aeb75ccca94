from pydantic import BaseModel, EmailStr, Field

from .common import Role


class LoginIn(BaseModel):
    # Bare handle or full email; normalized to an email address
    username: str = Field(min_length=1)
    password: str


class ChangePasswordIn(BaseModel):
    current_password: str
    new_password: str = Field(min_length=6)


class UserIn(BaseModel):
    username: str = Field(min_length=1)
    name: str = Field(min_length=1)
    password: str = Field(min_length=6)
    role: Role = Role.staff


class UserOut(BaseModel):
    id: str
    username: EmailStr
    name: str
    role: Role


class UserListOut(BaseModel):
    items: list[UserOut]
    total: int


class AuthResponse(BaseModel):
    user: UserOut
    token: str
