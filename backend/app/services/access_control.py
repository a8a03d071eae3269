"""Authorization decisions for tasks and teams.

Every function here is pure: callers load the task and team snapshots first
and pass them in. The ``ensure_*`` variants raise ``AccessDeniedError`` (or
``ValidationError`` where the actor is entitled but the input is not) with the
message shown to the client.
"""

from typing import Optional
from uuid import UUID

from app.errors import AccessDeniedError, ValidationError
from app.models.task import Task
from app.models.team import Team


def is_team_manager(team: Optional[Team], actor_id: UUID) -> bool:
    return team is not None and team.manager_id == actor_id


def is_team_member(team: Optional[Team], actor_id: UUID) -> bool:
    return team is not None and actor_id in team.members


def has_team_access(team: Optional[Team], actor_id: UUID) -> bool:
    return is_team_manager(team, actor_id) or is_team_member(team, actor_id)


def can_view_task(task: Task, team: Optional[Team], actor_id: UUID) -> bool:
    """Owners always see their task; team tasks are also visible to the
    team's manager and members."""
    if task.user_id == actor_id:
        return True
    if task.team_id is None or team is None or team.id != task.team_id:
        return False
    return has_team_access(team, actor_id)


# Comments follow exactly the same visibility as the task itself.
can_comment_or_view = can_view_task


def ensure_can_view_task(
    task: Task,
    team: Optional[Team],
    actor_id: UUID,
    message: str = "Not allowed to access this task",
) -> None:
    if not can_view_task(task, team, actor_id):
        raise AccessDeniedError(message)


def can_mutate_task(task: Task, actor_id: UUID) -> bool:
    """Content, status and priority edits belong to the owner. Managers and
    teammates only see the task; the assigner acts on it through review."""
    return task.user_id == actor_id


def ensure_can_mutate_task(task: Task, actor_id: UUID) -> None:
    if not can_mutate_task(task, actor_id):
        raise AccessDeniedError("Only the task owner can modify this task")


def can_delete_task(task: Task, team: Optional[Team], actor_id: UUID) -> bool:
    if task.user_id == actor_id:
        return True
    if task.assigned_by is None:
        return False
    return actor_id == task.assigned_by or is_team_manager(team, actor_id)


def ensure_can_delete_task(task: Task, team: Optional[Team], actor_id: UUID) -> None:
    if not can_delete_task(task, team, actor_id):
        raise AccessDeniedError("Not allowed to delete this task")


def can_assign(team: Team, actor_id: UUID, target_user_id: UUID) -> bool:
    return is_team_manager(team, actor_id) and is_team_member(team, target_user_id)


def ensure_can_assign(team: Team, actor_id: UUID, target_user_id: UUID) -> None:
    if can_assign(team, actor_id, target_user_id):
        return
    if not is_team_manager(team, actor_id):
        raise AccessDeniedError("Only the team manager can assign tasks")
    raise ValidationError("Target user is not a member of this team")


def can_complete_directly(task: Task, actor_id: UUID) -> bool:
    """Assigned work reaches ``completed`` through submit and review, never
    by the assignee setting the status themselves."""
    return not (task.is_assigned and task.user_id == actor_id)


def can_submit(task: Task, actor_id: UUID) -> bool:
    return task.user_id == actor_id


def can_review(task: Task, actor_id: UUID) -> bool:
    return task.assigned_by is not None and task.assigned_by == actor_id


def ensure_team_manager(
    team: Team, actor_id: UUID, message: str = "Only the team manager can do this"
) -> None:
    if not is_team_manager(team, actor_id):
        raise AccessDeniedError(message)


def ensure_team_access(
    team: Team, actor_id: UUID, message: str = "Access denied"
) -> None:
    if not has_team_access(team, actor_id):
        raise AccessDeniedError(message)
