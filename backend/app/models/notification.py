from enum import Enum
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel

from app.models import BaseDBModel


class NotificationType(str, Enum):
    TASK_ASSIGNED = "task_assigned"
    LEAVE_REQUEST = "leave_request"
    LEAVE_APPROVED = "leave_approved"
    LEAVE_REJECTED = "leave_rejected"
    COMMENT_ADDED = "comment_added"
    TASK_APPROVED = "task_approved"
    TASK_REJECTED = "task_rejected"


class Notification(BaseDBModel):
    recipient_id: UUID
    sender_id: Optional[UUID] = None
    type: NotificationType
    message: str
    link: Optional[str] = None
    is_read: bool = False
    is_urgent: bool = False


class NotificationList(BaseModel):
    notifications: List[Notification]
    unread_count: int
