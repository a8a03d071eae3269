import os
import tempfile
from datetime import timedelta
from uuid import uuid4

import pytest

os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="taskflow-logs-"))

from app.db.store import Database  # noqa: E402
from app.models import utcnow  # noqa: E402
from app.models.task import TaskAssign, TaskCreate, TaskPriority  # noqa: E402
from app.models.team import TeamCreate  # noqa: E402
from app.models.user import User, UserRole  # noqa: E402
from app.services.comment_service import CommentService  # noqa: E402
from app.services.dashboard_service import DashboardService  # noqa: E402
from app.services.notification_service import NotificationService  # noqa: E402
from app.services.task_service import TaskService  # noqa: E402
from app.services.team_service import TeamService  # noqa: E402
from app.services.user_service import UserService  # noqa: E402


@pytest.fixture
def db() -> Database:
    return Database.in_memory()


@pytest.fixture
def user_service(db):
    return UserService(db)


@pytest.fixture
def notification_service(db):
    return NotificationService(db)


@pytest.fixture
def team_service(db, user_service, notification_service):
    return TeamService(db, user_service, notification_service)


@pytest.fixture
def task_service(db, notification_service):
    return TaskService(db, notification_service)


@pytest.fixture
def comment_service(db, user_service, notification_service):
    return CommentService(db, user_service, notification_service)


@pytest.fixture
def dashboard_service(db):
    return DashboardService(db)


async def make_user(db: Database, username: str) -> User:
    row = await db.users.insert(
        {
            "id": uuid4(),
            "username": username,
            "email": f"{username}@taskflow.io",
            "name": username.title(),
            "role": UserRole.USER,
            "bio": "",
        }
    )
    return User(**row)


@pytest.fixture
async def manager(db):
    return await make_user(db, "maya")


@pytest.fixture
async def member(db):
    return await make_user(db, "umar")


@pytest.fixture
async def outsider(db):
    return await make_user(db, "nina")


@pytest.fixture
async def team(team_service, manager, member):
    created = await team_service.create_team(TeamCreate(name="Reports"), manager.id)
    change = await team_service.add_member(created.id, member.username, manager.id)
    return change.team


@pytest.fixture
async def assigned_task(task_service, team, manager, member):
    return await task_service.assign_task(
        TaskAssign(
            title="Ship report",
            priority=TaskPriority.HIGH,
            user_id=member.id,
            team_id=team.id,
        ),
        manager.id,
    )


@pytest.fixture
async def personal_task(task_service, outsider):
    return await task_service.create_task(
        TaskCreate(title="Water plants", deadline=utcnow() + timedelta(days=2)),
        outsider.id,
    )
