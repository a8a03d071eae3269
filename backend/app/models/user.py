from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from app.models import BaseDBModel


class UserRole(str, Enum):
    USER = "user"
    MANAGER = "manager"


class User(BaseDBModel):
    username: str
    email: EmailStr
    name: Optional[str] = None
    role: UserRole = UserRole.USER
    bio: str = ""
    profile_picture: Optional[str] = None
    updated_at: Optional[datetime] = None


class UserSummary(BaseModel):
    id: UUID
    username: str
    name: Optional[str] = None

    @staticmethod
    def from_user(user: User) -> "UserSummary":
        return UserSummary(id=user.id, username=user.username, name=user.name)


class UserProfile(UserSummary):
    role: UserRole
    bio: str = ""
    profile_picture: Optional[str] = None


class UserRegister(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    username: str = Field(..., min_length=3, max_length=40, pattern=r"^[A-Za-z0-9_.-]+$")
    email: EmailStr
    password: str = Field(..., min_length=6)


class UserLogin(BaseModel):
    username: str = Field(..., min_length=1, description="Username or email")
    password: str


class UserUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=120)
    username: Optional[str] = Field(
        None, min_length=3, max_length=40, pattern=r"^[A-Za-z0-9_.-]+$"
    )
    bio: Optional[str] = Field(None, max_length=500)


class TokenPair(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: Optional[int] = None


class RefreshRequest(BaseModel):
    refresh_token: str
