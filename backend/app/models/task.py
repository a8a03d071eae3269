from datetime import datetime, timedelta
from enum import Enum
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from app.models import BaseDBModel, as_utc, utcnow
from app.models.attachment import Attachment


class TaskStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    SUBMITTED = "submitted"
    COMPLETED = "completed"
    # Accepted by the status endpoint only; no workflow transition produces
    # or consumes it until its semantics are decided.
    ARCHIVED = "archived"


class TaskPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


# Lower sorts first.
PRIORITY_ORDER = {
    TaskPriority.HIGH: 1,
    TaskPriority.MEDIUM: 2,
    TaskPriority.LOW: 3,
}

# Minutes before the deadline at which a task becomes urgent when the owner
# has not set urgent_before_minutes. Low priority tasks never become urgent.
DEFAULT_URGENCY_MINUTES = {
    TaskPriority.HIGH: 60,
    TaskPriority.MEDIUM: 30,
}

EDITABLE_STATUSES = {TaskStatus.PENDING, TaskStatus.IN_PROGRESS, TaskStatus.COMPLETED}
DIRECT_STATUSES = EDITABLE_STATUSES | {TaskStatus.ARCHIVED}


def _future_deadline(value: Optional[datetime]) -> Optional[datetime]:
    value = as_utc(value)
    if value is not None and value < utcnow():
        raise ValueError("Deadline must be a future date")
    return value


def _editable_status(value: Optional[TaskStatus]) -> Optional[TaskStatus]:
    if value is not None and value not in EDITABLE_STATUSES:
        raise ValueError(
            "Status must be one of: pending, in-progress, completed"
        )
    return value


class TaskCreate(BaseModel):
    title: str = Field(..., min_length=3, max_length=280)
    description: str = ""
    priority: TaskPriority = TaskPriority.MEDIUM
    status: TaskStatus = TaskStatus.PENDING
    deadline: Optional[datetime] = None
    urgent_before_minutes: Optional[int] = Field(None, ge=0)

    @field_validator("deadline")
    @classmethod
    def check_deadline(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _future_deadline(value)

    @field_validator("status")
    @classmethod
    def check_status(cls, value: Optional[TaskStatus]) -> Optional[TaskStatus]:
        return _editable_status(value)


class TaskAssign(BaseModel):
    title: str = Field(..., min_length=3, max_length=280)
    description: str = ""
    priority: TaskPriority = TaskPriority.MEDIUM
    deadline: Optional[datetime] = None
    urgent_before_minutes: Optional[int] = Field(None, ge=0)
    user_id: UUID
    team_id: UUID

    @field_validator("deadline")
    @classmethod
    def check_deadline(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _future_deadline(value)


class TaskUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=3, max_length=280)
    description: Optional[str] = None
    priority: Optional[TaskPriority] = None
    status: Optional[TaskStatus] = None
    deadline: Optional[datetime] = None
    urgent_before_minutes: Optional[int] = Field(None, ge=0)

    @field_validator("deadline")
    @classmethod
    def check_deadline(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _future_deadline(value)

    @field_validator("status")
    @classmethod
    def check_status(cls, value: Optional[TaskStatus]) -> Optional[TaskStatus]:
        return _editable_status(value)


class StatusUpdate(BaseModel):
    status: str = Field(..., min_length=1)


class PriorityUpdate(BaseModel):
    priority: str = Field(..., min_length=1)


class SubmissionCreate(BaseModel):
    link: str = ""
    note: str = Field("", max_length=2000)


class ReviewRequest(BaseModel):
    action: str
    note: str = Field("", max_length=2000)


class TimeTrackRequest(BaseModel):
    minutes: float
    note: str = ""
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None


class Task(BaseDBModel):
    title: str
    description: str = ""
    priority: TaskPriority = TaskPriority.MEDIUM
    status: TaskStatus = TaskStatus.PENDING
    deadline: Optional[datetime] = None
    user_id: UUID
    assigned_by: Optional[UUID] = None
    team_id: Optional[UUID] = None
    time_spent: float = 0
    urgent_before_minutes: Optional[int] = None
    attachments: List[Attachment] = []
    submission_link: str = ""
    submission_note: str = ""
    manager_feedback: str = ""
    updated_at: Optional[datetime] = None
    comment_count: Optional[int] = None

    @field_validator("deadline")
    @classmethod
    def deadline_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return as_utc(value)

    @property
    def is_assigned(self) -> bool:
        return self.assigned_by is not None

    def minutes_left(self, now: Optional[datetime] = None) -> Optional[float]:
        if self.deadline is None:
            return None
        return (self.deadline - (now or utcnow())) / timedelta(minutes=1)

    def is_overdue(self, now: Optional[datetime] = None) -> bool:
        if self.deadline is None or self.status == TaskStatus.COMPLETED:
            return False
        return (now or utcnow()) > self.deadline

    def is_urgent(self, now: Optional[datetime] = None) -> bool:
        if self.status == TaskStatus.COMPLETED:
            return False

        minutes_left = self.minutes_left(now)
        if minutes_left is None:
            return False

        if self.urgent_before_minutes is not None:
            return minutes_left <= self.urgent_before_minutes

        threshold = DEFAULT_URGENCY_MINUTES.get(self.priority)
        return threshold is not None and minutes_left <= threshold
