from pydantic import BaseModel


class TaskCounts(BaseModel):
    total_tasks: int = 0
    completed_tasks: int = 0
    pending_tasks: int = 0
    in_progress_tasks: int = 0
    submitted_tasks: int = 0
    overdue_tasks: int = 0


class UserDashboard(TaskCounts):
    due_today_tasks: int = 0


class TeamDashboard(TaskCounts):
    member_count: int = 0
