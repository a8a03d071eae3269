import logging
import math
from datetime import datetime, timezone
from typing import List, Optional, Tuple
from uuid import UUID, uuid4

from app.config import settings
from app.db.store import Database
from app.errors import (
    AccessDeniedError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from app.models import utcnow
from app.models.notification import NotificationType
from app.models.task import (
    DIRECT_STATUSES,
    PRIORITY_ORDER,
    Task,
    TaskAssign,
    TaskCreate,
    TaskPriority,
    TaskStatus,
    TaskUpdate,
    TimeTrackRequest,
)
from app.models.team import Team
from app.models.time_log import TimeLog
from app.services import access_control
from app.services.notification_service import NotificationService

logger = logging.getLogger(__name__)

URGENT_FALLBACK_LIMIT = 3
_FAR_FUTURE = datetime.max.replace(tzinfo=timezone.utc)


def sort_by_deadline(tasks: List[Task]) -> List[Task]:
    """Closest deadline first, tasks without a deadline last, then newest first."""
    tasks = sorted(
        tasks,
        key=lambda task: task.created_at or _FAR_FUTURE,
        reverse=True,
    )
    return sorted(tasks, key=lambda task: task.deadline or _FAR_FUTURE)


def select_urgent(tasks: List[Task], now: Optional[datetime] = None) -> List[Task]:
    """Urgent tasks, or when none qualify the nearest open deadlines."""
    now = now or utcnow()
    urgent = [task for task in tasks if task.is_urgent(now)]
    if urgent:
        return urgent

    upcoming = [
        task
        for task in tasks
        if task.status != TaskStatus.COMPLETED and task.deadline is not None
    ]
    upcoming.sort(key=lambda task: (task.deadline, PRIORITY_ORDER[task.priority]))
    return upcoming[:URGENT_FALLBACK_LIMIT]


class TaskService:
    """Task store access and the status workflow (assign, submit, review)."""

    def __init__(self, db: Database, notifications: NotificationService):
        self.db = db
        self.notifications = notifications

    # Loading

    async def _load(self, task_id: UUID) -> Task:
        row = await self.db.tasks.get(task_id)
        if not row:
            raise NotFoundError("Task not found")
        return Task(**row)

    async def _load_team(self, team_id: Optional[UUID]) -> Optional[Team]:
        if team_id is None:
            return None
        row = await self.db.teams.get(team_id)
        return Team(**row) if row else None

    async def _require_team(self, team_id: UUID) -> Team:
        team = await self._load_team(team_id)
        if not team:
            raise NotFoundError("Team not found")
        return team

    async def _load_visible(self, task_id: UUID, actor_id: UUID) -> Tuple[Task, Optional[Team]]:
        task = await self._load(task_id)
        team = await self._load_team(task.team_id)
        access_control.ensure_can_view_task(task, team, actor_id)
        return task, team

    async def _load_owned(self, task_id: UUID, actor_id: UUID) -> Task:
        task, _ = await self._load_visible(task_id, actor_id)
        access_control.ensure_can_mutate_task(task, actor_id)
        return task

    async def _write(
        self, task: Task, patch: dict, expected_status: Optional[TaskStatus] = None
    ) -> Task:
        patch["updated_at"] = utcnow()
        expected = {"status": expected_status} if expected_status else None
        row = await self.db.tasks.update(task.id, patch, expected=expected)
        if row:
            return Task(**row)
        if expected and await self.db.tasks.get(task.id):
            raise InvalidTransitionError(
                "Task status changed while updating; reload and try again"
            )
        raise NotFoundError("Task not found")

    # Creation

    async def create_task(self, payload: TaskCreate, actor_id: UUID) -> Task:
        row = await self.db.tasks.insert(
            {
                **payload.model_dump(),
                "user_id": actor_id,
                "assigned_by": None,
                "team_id": None,
                "time_spent": 0,
                "attachments": [],
            }
        )
        return Task(**row)

    async def assign_task(self, payload: TaskAssign, manager_id: UUID) -> Task:
        team = await self._require_team(payload.team_id)
        access_control.ensure_can_assign(team, manager_id, payload.user_id)

        data = payload.model_dump(exclude={"user_id", "team_id"})
        row = await self.db.tasks.insert(
            {
                **data,
                "status": TaskStatus.PENDING,
                "user_id": payload.user_id,
                "assigned_by": manager_id,
                "team_id": team.id,
                "time_spent": 0,
                "attachments": [],
            }
        )
        task = Task(**row)
        logger.info(f"Manager {manager_id} assigned task {task.id} to {task.user_id}")

        await self.notifications.notify(
            task.user_id,
            NotificationType.TASK_ASSIGNED,
            f"You have been assigned a new task: {task.title}",
            sender_id=manager_id,
            link=f"/tasks/{task.id}",
            is_urgent=task.priority == TaskPriority.HIGH,
        )
        return task

    # Queries

    async def get_task(self, task_id: UUID, actor_id: UUID) -> Task:
        task, _ = await self._load_visible(task_id, actor_id)
        task.comment_count = await self.db.comments.count({"task_id": task_id})
        return task

    async def list_tasks(self, actor_id: UUID, search: Optional[str] = None) -> List[Task]:
        tasks = [Task(**row) for row in await self.db.tasks.find({"user_id": actor_id})]
        if search:
            needle = search.lower()
            tasks = [task for task in tasks if needle in task.title.lower()]
        return sort_by_deadline(tasks)

    async def list_assigned(self, actor_id: UUID) -> List[Task]:
        tasks = await self.list_tasks(actor_id)
        return [task for task in tasks if task.is_assigned]

    async def list_overdue(self, actor_id: UUID) -> List[Task]:
        now = utcnow()
        return [task for task in await self.list_tasks(actor_id) if task.is_overdue(now)]

    async def list_urgent(self, actor_id: UUID) -> List[Task]:
        return select_urgent(await self.list_tasks(actor_id))

    async def list_team_tasks(self, team_id: UUID, actor_id: UUID) -> List[Task]:
        team = await self._require_team(team_id)
        access_control.ensure_team_manager(
            team, actor_id, "Only the team manager can view all team tasks"
        )
        rows = await self.db.tasks.find({"team_id": team_id})
        return sort_by_deadline([Task(**row) for row in rows])

    async def list_member_tasks(
        self, team_id: UUID, member_id: UUID, actor_id: UUID
    ) -> List[Task]:
        team = await self._require_team(team_id)
        access_control.ensure_team_access(
            team,
            actor_id,
            "Access denied: You must be a team manager or member to view team tasks",
        )
        if not team.is_member(member_id):
            raise ValidationError("Target user is not a member of this team")

        rows = await self.db.tasks.find({"team_id": team_id, "user_id": member_id})
        return sort_by_deadline([Task(**row) for row in rows])

    async def list_my_team_tasks(self, team_id: UUID, actor_id: UUID) -> List[Task]:
        team = await self._require_team(team_id)
        access_control.ensure_team_access(
            team, actor_id, "Access denied: You are not a member of this team"
        )
        rows = await self.db.tasks.find({"team_id": team_id, "user_id": actor_id})
        return sort_by_deadline([Task(**row) for row in rows])

    # Mutation

    def _check_completion(self, task: Task, status: Optional[TaskStatus], actor_id: UUID):
        if status == TaskStatus.COMPLETED and task.status != TaskStatus.COMPLETED:
            if not access_control.can_complete_directly(task, actor_id):
                raise InvalidTransitionError(
                    "Assigned tasks must be submitted for review before completion"
                )

    async def update_task(self, task_id: UUID, patch: TaskUpdate, actor_id: UUID) -> Task:
        task = await self._load_owned(task_id, actor_id)

        payload = patch.model_dump(exclude_unset=True)
        for key in ("title", "priority", "status"):
            if key in payload and payload[key] is None:
                del payload[key]
        if not payload:
            return task

        status = payload.get("status")
        if status is None or status == task.status:
            return await self._write(task, payload)

        self._check_completion(task, status, actor_id)
        return await self._write(task, payload, expected_status=task.status)

    async def update_status(self, task_id: UUID, status: str, actor_id: UUID) -> Task:
        if not status:
            raise ValidationError("Status is required")
        try:
            new_status = TaskStatus(status)
        except ValueError:
            new_status = None
        if new_status not in DIRECT_STATUSES:
            raise ValidationError("Invalid status value")

        task = await self._load_owned(task_id, actor_id)
        self._check_completion(task, new_status, actor_id)
        return await self._write(task, {"status": new_status}, expected_status=task.status)

    async def update_priority(self, task_id: UUID, priority: str, actor_id: UUID) -> Task:
        if not priority:
            raise ValidationError("Priority is required")
        try:
            new_priority = TaskPriority(priority)
        except ValueError:
            raise ValidationError("Invalid priority value")

        task = await self._load_owned(task_id, actor_id)
        return await self._write(task, {"priority": new_priority})

    async def delete_task(self, task_id: UUID, actor_id: UUID) -> None:
        task = await self._load(task_id)
        team = await self._load_team(task.team_id)
        access_control.ensure_can_delete_task(task, team, actor_id)

        await self.db.comments.delete_many({"task_id": task_id})
        # Time logs stay behind.
        await self.db.tasks.delete(task_id)
        logger.info(f"User {actor_id} deleted task {task_id}")

    # Review workflow

    async def submit_task(
        self, task_id: UUID, actor_id: UUID, link: str = "", note: str = ""
    ) -> Task:
        task = await self._load(task_id)
        if not access_control.can_submit(task, actor_id):
            raise AccessDeniedError("Only the assigned user can submit this task")
        if task.status == TaskStatus.COMPLETED:
            raise InvalidTransitionError("Task is already completed")
        if not task.is_assigned:
            raise InvalidTransitionError(
                "Only assigned tasks can be submitted for review"
            )

        submitted = await self._write(
            task,
            {
                "status": TaskStatus.SUBMITTED,
                "submission_link": link,
                "submission_note": note,
            },
            expected_status=task.status,
        )
        logger.info(f"User {actor_id} submitted task {task_id}")
        return submitted

    async def review_task(
        self, task_id: UUID, reviewer_id: UUID, action: str, note: str = ""
    ) -> Task:
        task = await self._load(task_id)
        if not access_control.can_review(task, reviewer_id):
            raise AccessDeniedError(
                "Only the manager who assigned this task can review it"
            )
        if task.status != TaskStatus.SUBMITTED:
            raise InvalidTransitionError("Task must be submitted before review")

        if action == "approve":
            new_status = TaskStatus.COMPLETED
        elif action == "reject":
            new_status = TaskStatus.PENDING
        else:
            raise InvalidTransitionError(
                "Invalid review action. Use 'approve' or 'reject'"
            )

        reviewed = await self._write(
            task,
            {"status": new_status, "manager_feedback": note},
            expected_status=TaskStatus.SUBMITTED,
        )
        logger.info(f"Reviewer {reviewer_id} {action}d task {task_id}")

        if action == "approve":
            await self.notifications.notify(
                task.user_id,
                NotificationType.TASK_APPROVED,
                f"Your task '{task.title}' was approved",
                sender_id=reviewer_id,
                link=f"/tasks/{task_id}",
            )
        else:
            await self.notifications.notify(
                task.user_id,
                NotificationType.TASK_REJECTED,
                f"Your task '{task.title}' was rejected" + (f": {note}" if note else ""),
                sender_id=reviewer_id,
                link=f"/tasks/{task_id}",
                is_urgent=True,
            )
        return reviewed

    # Time tracking

    async def track_time(
        self, task_id: UUID, payload: TimeTrackRequest, actor_id: UUID
    ) -> Task:
        minutes = payload.minutes
        if minutes is None or not math.isfinite(minutes):
            raise ValidationError("Invalid minutes")
        if minutes <= 0:
            raise ValidationError("Minutes must be positive")
        if minutes < 1:
            raise ValidationError("Time logs must be at least 1 minute")

        task, _ = await self._load_visible(task_id, actor_id)

        await self.db.time_logs.insert(
            {
                "task_id": task.id,
                "user_id": actor_id,
                "duration": minutes,
                "note": payload.note,
                "start_time": payload.start_time,
                "end_time": payload.end_time,
            }
        )
        row = await self.db.tasks.increment(task.id, "time_spent", minutes)
        if not row:
            raise NotFoundError("Task not found")
        return Task(**row)

    async def list_time_logs(self, task_id: UUID, actor_id: UUID) -> List[TimeLog]:
        await self._load_visible(task_id, actor_id)
        rows = await self.db.time_logs.find(
            {"task_id": task_id}, order_by="created_at", desc=True
        )
        return [TimeLog(**row) for row in rows]

    # Attachments

    async def add_attachment(
        self,
        task_id: UUID,
        file_name: str,
        content_type: Optional[str],
        data: bytes,
        actor_id: UUID,
    ) -> Task:
        if not data:
            raise ValidationError("No file uploaded")
        if len(data) > settings.max_upload_bytes:
            raise ValidationError("File is too large")

        task, _ = await self._load_visible(task_id, actor_id)

        attachment_id = uuid4()
        url = await self.db.blobs.upload(
            settings.attachments_bucket,
            f"{task.id}/{attachment_id}-{file_name}",
            data,
            content_type,
        )
        row = await self.db.tasks.append(
            task.id,
            "attachments",
            {
                "id": attachment_id,
                "file_name": file_name,
                "url": url,
                "content_type": content_type,
                "size": len(data),
                "uploaded_by": actor_id,
                "uploaded_at": utcnow(),
            },
        )
        if not row:
            raise NotFoundError("Task not found")
        return Task(**row)
