from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from app.errors import AccessDeniedError
from app.models import utcnow
from app.models.task import Task, TaskAssign, TaskCreate, TaskStatus
from app.services.dashboard_service import count_tasks, is_due_today


def make_task(**fields) -> Task:
    return Task(id=uuid4(), title="Task", user_id=uuid4(), **fields)


def test_count_tasks_by_status_and_overdue():
    now = datetime(2026, 5, 10, 12, tzinfo=timezone.utc)
    tasks = [
        make_task(status=TaskStatus.PENDING, deadline=now - timedelta(hours=1)),
        make_task(status=TaskStatus.IN_PROGRESS),
        make_task(status=TaskStatus.SUBMITTED),
        make_task(status=TaskStatus.COMPLETED, deadline=now - timedelta(days=1)),
    ]

    counts = count_tasks(tasks, now)

    assert counts == {
        "total_tasks": 4,
        "completed_tasks": 1,
        "pending_tasks": 1,
        "in_progress_tasks": 1,
        "submitted_tasks": 1,
        "overdue_tasks": 1,
    }


def test_due_today_uses_utc_day():
    now = datetime(2026, 5, 10, 12, tzinfo=timezone.utc)

    assert is_due_today(make_task(deadline=datetime(2026, 5, 10, 23, 59, tzinfo=timezone.utc)), now)
    assert is_due_today(make_task(deadline=datetime(2026, 5, 10, 0, 0, tzinfo=timezone.utc)), now)
    assert not is_due_today(make_task(deadline=datetime(2026, 5, 11, 0, 0, tzinfo=timezone.utc)), now)
    assert not is_due_today(
        make_task(
            deadline=datetime(2026, 5, 10, 18, tzinfo=timezone.utc),
            status=TaskStatus.COMPLETED,
        ),
        now,
    )
    assert not is_due_today(make_task(), now)


async def test_user_dashboard(dashboard_service, task_service, outsider):
    await task_service.create_task(TaskCreate(title="One"), outsider.id)
    done = await task_service.create_task(TaskCreate(title="Two"), outsider.id)
    await task_service.update_status(done.id, "completed", outsider.id)

    dashboard = await dashboard_service.get_user_dashboard(outsider.id)

    assert dashboard.total_tasks == 2
    assert dashboard.completed_tasks == 1
    assert dashboard.pending_tasks == 1


async def test_user_dashboard_due_today(dashboard_service, task_service, outsider):
    end_of_day = utcnow().replace(hour=23, minute=59, second=0, microsecond=0)
    if end_of_day <= utcnow():
        pytest.skip("too close to midnight UTC")
    await task_service.create_task(TaskCreate(title="Today", deadline=end_of_day), outsider.id)

    dashboard = await dashboard_service.get_user_dashboard(outsider.id)
    assert dashboard.due_today_tasks == 1


async def test_team_dashboard(dashboard_service, task_service, team, manager, member):
    await task_service.assign_task(
        TaskAssign(title="Team work", user_id=member.id, team_id=team.id), manager.id
    )
    await task_service.create_task(TaskCreate(title="Private"), member.id)

    dashboard = await dashboard_service.get_team_dashboard(team.id, manager.id)

    assert dashboard.total_tasks == 1
    assert dashboard.pending_tasks == 1
    assert dashboard.member_count == 1


async def test_team_dashboard_is_manager_only(dashboard_service, team, member):
    with pytest.raises(AccessDeniedError, match="Access denied"):
        await dashboard_service.get_team_dashboard(team.id, member.id)
