from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import Field

from app.models import BaseDBModel


class TimeLog(BaseDBModel):
    task_id: UUID
    user_id: UUID
    duration: float = Field(..., ge=1)
    note: str = ""
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
