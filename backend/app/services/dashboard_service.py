from datetime import datetime, timedelta
from typing import Iterable, Optional
from uuid import UUID

from app.db.store import Database
from app.errors import NotFoundError
from app.models import utcnow
from app.models.dashboard import TaskCounts, TeamDashboard, UserDashboard
from app.models.task import Task, TaskStatus
from app.models.team import Team
from app.services import access_control


def count_tasks(tasks: Iterable[Task], now: Optional[datetime] = None) -> dict:
    now = now or utcnow()
    counts = TaskCounts().model_dump()
    for task in tasks:
        counts["total_tasks"] += 1
        if task.status == TaskStatus.COMPLETED:
            counts["completed_tasks"] += 1
        elif task.status == TaskStatus.PENDING:
            counts["pending_tasks"] += 1
        elif task.status == TaskStatus.IN_PROGRESS:
            counts["in_progress_tasks"] += 1
        elif task.status == TaskStatus.SUBMITTED:
            counts["submitted_tasks"] += 1
        if task.is_overdue(now):
            counts["overdue_tasks"] += 1
    return counts


def is_due_today(task: Task, now: Optional[datetime] = None) -> bool:
    if task.deadline is None or task.status == TaskStatus.COMPLETED:
        return False
    start = (now or utcnow()).replace(hour=0, minute=0, second=0, microsecond=0)
    return start <= task.deadline < start + timedelta(days=1)


class DashboardService:
    """Read-only task statistics for a user or a team."""

    def __init__(self, db: Database):
        self.db = db

    async def get_user_dashboard(self, user_id: UUID) -> UserDashboard:
        now = utcnow()
        tasks = [Task(**row) for row in await self.db.tasks.find({"user_id": user_id})]
        return UserDashboard(
            **count_tasks(tasks, now),
            due_today_tasks=sum(1 for task in tasks if is_due_today(task, now)),
        )

    async def get_team_dashboard(self, team_id: UUID, actor_id: UUID) -> TeamDashboard:
        row = await self.db.teams.get(team_id)
        if not row:
            raise NotFoundError("Team not found")
        team = Team(**row)
        access_control.ensure_team_manager(team, actor_id, "Access denied")

        tasks = [Task(**row) for row in await self.db.tasks.find({"team_id": team_id})]
        return TeamDashboard(**count_tasks(tasks), member_count=len(team.members))
