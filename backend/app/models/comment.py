from typing import Optional
from pydantic import BaseModel, ConfigDict, Field
from uuid import UUID
from datetime import datetime
from app.models import BaseDBModel
from app.models.user import UserSummary


class CommentCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    content: str = Field(..., min_length=1, max_length=1000)


class CommentUpdate(CommentCreate):
    pass


class Comment(BaseDBModel):
    task_id: UUID
    user_id: UUID
    content: str
    updated_at: Optional[datetime] = None
    author: Optional[UserSummary] = None
