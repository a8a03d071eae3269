from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID

from app.models import BaseDBModel


class LeaveStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


LEAVE_STATUS_FILTERS = {"pending", "approved", "rejected", "all"}


class TeamLeaveRequest(BaseDBModel):
    team_id: UUID
    user_id: UUID
    status: LeaveStatus = LeaveStatus.PENDING
    updated_at: Optional[datetime] = None
