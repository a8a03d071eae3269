from typing import List, Optional
from pydantic import BaseModel, Field, model_validator
from uuid import UUID
from app.models import BaseDBModel
from app.models.user import UserSummary


class TeamBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    bio: str = Field("", max_length=1000)


class TeamCreate(TeamBase):
    pass


class TeamUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=120)
    bio: Optional[str] = Field(None, max_length=1000)
    profile_picture: Optional[str] = None


class Team(TeamBase, BaseDBModel):
    manager_id: UUID
    members: List[UUID] = []
    profile_picture: Optional[str] = None

    def is_manager(self, user_id: UUID) -> bool:
        return self.manager_id == user_id

    def is_member(self, user_id: UUID) -> bool:
        return user_id in self.members


class MemberIdentifier(BaseModel):
    """Either a user id or a username; the id wins when both are sent."""

    user_id: Optional[str] = None
    username: Optional[str] = None

    @model_validator(mode="after")
    def require_identifier(self):
        if not (self.user_id or self.username):
            raise ValueError("username or user_id is required")
        return self

    @property
    def identifier(self) -> str:
        return self.user_id or self.username


class MembershipChange(BaseModel):
    team: Team
    user: UserSummary
