import asyncio
from uuid import uuid4

import pytest

from conftest import make_user

from app.errors import (
    AccessDeniedError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from app.models.leave_request import LeaveStatus
from app.models.notification import NotificationType
from app.models.task import TaskAssign, TaskStatus
from app.models.team import TeamCreate, TeamUpdate
from app.models.user import UserRole


async def test_create_team_promotes_creator(team_service, user_service, outsider):
    team = await team_service.create_team(TeamCreate(name="  Design  "), outsider.id)

    assert team.name == "Design"
    assert team.manager_id == outsider.id
    assert team.members == []
    assert (await user_service.get_user(outsider.id)).role == UserRole.MANAGER

    second = await team_service.create_team(TeamCreate(name="Design 2"), outsider.id)
    assert second.manager_id == outsider.id
    assert (await user_service.get_user(outsider.id)).role == UserRole.MANAGER


async def test_create_team_requires_name(team_service, outsider):
    with pytest.raises(ValidationError, match="Team name is required"):
        await team_service.create_team(TeamCreate(name="   "), outsider.id)


async def test_add_member_by_id_or_username(team_service, db, team, manager, outsider):
    change = await team_service.add_member(team.id, str(outsider.id), manager.id)
    assert outsider.id in change.team.members
    assert change.user.username == outsider.username

    extra = await make_user(db, "zoe")
    change = await team_service.add_member(team.id, "zoe", manager.id)
    assert extra.id in change.team.members


async def test_add_existing_member_is_noop(team_service, team, manager, member):
    change = await team_service.add_member(team.id, member.username, manager.id)
    assert change.team.members.count(member.id) == 1


async def test_add_unknown_user(team_service, team, manager):
    with pytest.raises(NotFoundError, match="User not found"):
        await team_service.add_member(team.id, "ghost", manager.id)


async def test_manager_cannot_join_own_team(team_service, team, manager):
    with pytest.raises(ValidationError):
        await team_service.add_member(team.id, manager.username, manager.id)


async def test_only_manager_manages_members(team_service, team, member, outsider):
    with pytest.raises(AccessDeniedError):
        await team_service.add_member(team.id, outsider.username, member.id)
    with pytest.raises(AccessDeniedError):
        await team_service.remove_member(team.id, member.username, member.id)


async def test_remove_member(team_service, team, manager, member):
    change = await team_service.remove_member(team.id, member.username, manager.id)
    assert member.id not in change.team.members
    assert change.user.id == member.id


async def test_team_lists(team_service, team, manager, member):
    managed = await team_service.list_managed(manager.id)
    joined = await team_service.list_joined(member.id)

    assert [t.id for t in managed] == [team.id]
    assert [t.id for t in joined] == [team.id]
    assert await team_service.list_joined(manager.id) == []


async def test_get_by_name(team_service, team, manager, member):
    found = await team_service.get_by_name(manager.id, "Reports")
    assert found.id == team.id
    with pytest.raises(NotFoundError):
        await team_service.get_by_name(member.id, "Reports")


async def test_visible_team(team_service, team, member, outsider):
    assert (await team_service.get_visible_team(team.id, member.id)).id == team.id
    with pytest.raises(AccessDeniedError, match="Access denied"):
        await team_service.get_visible_team(team.id, outsider.id)


async def test_update_team_profile(team_service, team, manager, member):
    updated = await team_service.update_team(
        team.id, TeamUpdate(bio="Quarterly reporting"), manager.id
    )
    assert updated.bio == "Quarterly reporting"
    assert updated.name == "Reports"

    with pytest.raises(AccessDeniedError):
        await team_service.update_team(team.id, TeamUpdate(name="Mine"), member.id)


async def test_delete_team_cascades(team_service, db, team, assigned_task, manager, member):
    await team_service.request_leave(team.id, member.id)

    with pytest.raises(AccessDeniedError):
        await team_service.delete_team(team.id, member.id)

    await team_service.delete_team(team.id, manager.id)

    assert await db.teams.get(team.id) is None
    assert await db.tasks.get(assigned_task.id) is None
    assert await db.leave_requests.count({"team_id": team.id}) == 0


async def test_request_leave_is_idempotent(team_service, db, team, manager, member):
    first = await team_service.request_leave(team.id, member.id)
    second = await team_service.request_leave(team.id, member.id)

    assert first.id == second.id
    assert first.status == LeaveStatus.PENDING

    notes = await db.notifications.find(
        {"recipient_id": manager.id, "type": NotificationType.LEAVE_REQUEST}
    )
    assert len(notes) == 1
    assert notes[0]["is_urgent"] is True


async def test_concurrent_leave_requests_share_one_row(team_service, db, team, member):
    first, second = await asyncio.gather(
        team_service.request_leave(team.id, member.id),
        team_service.request_leave(team.id, member.id),
    )
    assert first.id == second.id
    assert await db.leave_requests.count({"team_id": team.id}) == 1


async def test_request_leave_requires_membership(team_service, team, outsider):
    with pytest.raises(AccessDeniedError):
        await team_service.request_leave(team.id, outsider.id)


async def test_approve_leave_detaches_tasks(
    team_service, task_service, db, team, assigned_task, manager, member
):
    request = await team_service.request_leave(team.id, member.id)
    approved = await team_service.approve_leave(request.id, manager.id)

    assert approved.status == LeaveStatus.APPROVED
    team_after = await team_service.get_team(team.id)
    assert member.id not in team_after.members

    task = await task_service.get_task(assigned_task.id, member.id)
    assert task.team_id is None
    assert task.assigned_by is None
    assert task.status == TaskStatus.PENDING

    note = await db.notifications.find_one(
        {"recipient_id": member.id, "type": NotificationType.LEAVE_APPROVED}
    )
    assert note is not None


async def test_leave_approval_keeps_other_members_tasks(
    team_service, task_service, db, team, manager, member
):
    colleague = await make_user(db, "carl")
    await team_service.add_member(team.id, colleague.username, manager.id)
    kept = await task_service.assign_task(
        TaskAssign(title="Other work", user_id=colleague.id, team_id=team.id), manager.id
    )

    request = await team_service.request_leave(team.id, member.id)
    await team_service.approve_leave(request.id, manager.id)

    assert (await task_service.get_task(kept.id, colleague.id)).team_id == team.id


async def test_reject_leave_only_changes_status(team_service, team, manager, member):
    request = await team_service.request_leave(team.id, member.id)
    rejected = await team_service.reject_leave(request.id, manager.id)

    assert rejected.status == LeaveStatus.REJECTED
    assert member.id in (await team_service.get_team(team.id)).members


async def test_processed_request_cannot_be_processed_again(
    team_service, team, manager, member
):
    request = await team_service.request_leave(team.id, member.id)
    await team_service.reject_leave(request.id, manager.id)

    with pytest.raises(InvalidTransitionError, match="already been processed"):
        await team_service.approve_leave(request.id, manager.id)


async def test_leave_decisions_are_manager_only(team_service, team, member):
    request = await team_service.request_leave(team.id, member.id)
    with pytest.raises(AccessDeniedError):
        await team_service.approve_leave(request.id, member.id)
    with pytest.raises(AccessDeniedError):
        await team_service.reject_leave(request.id, member.id)


async def test_unknown_leave_request(team_service, manager):
    with pytest.raises(NotFoundError, match="Leave request not found"):
        await team_service.approve_leave(uuid4(), manager.id)


async def test_list_leave_requests_filters(team_service, team, manager, member):
    request = await team_service.request_leave(team.id, member.id)

    pending = await team_service.list_leave_requests(team.id, manager.id)
    assert [r.id for r in pending] == [request.id]

    await team_service.reject_leave(request.id, manager.id)
    assert await team_service.list_leave_requests(team.id, manager.id, "pending") == []
    assert len(await team_service.list_leave_requests(team.id, manager.id, "rejected")) == 1
    assert len(await team_service.list_leave_requests(team.id, manager.id, "all")) == 1

    with pytest.raises(ValidationError, match="Invalid status filter"):
        await team_service.list_leave_requests(team.id, manager.id, "maybe")
    with pytest.raises(AccessDeniedError):
        await team_service.list_leave_requests(team.id, member.id)
