from uuid import uuid4

import pytest
from pydantic import ValidationError as PayloadError

from app.errors import AccessDeniedError, NotFoundError
from app.models.comment import CommentCreate, CommentUpdate
from app.models.notification import NotificationType


async def test_team_members_and_manager_can_comment(
    comment_service, assigned_task, manager, member
):
    first = await comment_service.create_comment(
        assigned_task.id, CommentCreate(content="  Started on it  "), member.id
    )
    second = await comment_service.create_comment(
        assigned_task.id, CommentCreate(content="Thanks"), manager.id
    )

    assert first.content == "Started on it"
    assert first.author.username == member.username
    assert second.author.id == manager.id

    comments = await comment_service.list_comments(assigned_task.id, member.id)
    assert [c.id for c in comments] == [first.id, second.id]
    assert all(c.author is not None for c in comments)


async def test_outsider_cannot_comment_on_team_task(comment_service, assigned_task, outsider):
    with pytest.raises(
        AccessDeniedError,
        match="Access denied: Only team members can comment on team tasks",
    ):
        await comment_service.create_comment(
            assigned_task.id, CommentCreate(content="hello"), outsider.id
        )
    with pytest.raises(AccessDeniedError):
        await comment_service.list_comments(assigned_task.id, outsider.id)


async def test_personal_task_comments_are_owner_only(
    comment_service, personal_task, outsider, manager
):
    await comment_service.create_comment(
        personal_task.id, CommentCreate(content="note to self"), outsider.id
    )
    with pytest.raises(
        AccessDeniedError, match="Only task owner can comment on personal tasks"
    ):
        await comment_service.create_comment(
            personal_task.id, CommentCreate(content="hi"), manager.id
        )


async def test_comment_on_missing_task(comment_service, member):
    with pytest.raises(NotFoundError, match="Task not found"):
        await comment_service.create_comment(uuid4(), CommentCreate(content="x"), member.id)


def test_comment_content_limits():
    with pytest.raises(PayloadError):
        CommentCreate(content="   ")
    with pytest.raises(PayloadError):
        CommentCreate(content="x" * 1001)


async def test_comment_notifications(comment_service, db, assigned_task, manager, member):
    await comment_service.create_comment(
        assigned_task.id, CommentCreate(content="from manager"), manager.id
    )
    await comment_service.create_comment(
        assigned_task.id, CommentCreate(content="from owner"), member.id
    )

    to_member = await db.notifications.find(
        {"recipient_id": member.id, "type": NotificationType.COMMENT_ADDED}
    )
    to_manager = await db.notifications.find(
        {"recipient_id": manager.id, "type": NotificationType.COMMENT_ADDED}
    )
    assert len(to_member) == 1
    assert to_member[0]["sender_id"] == str(manager.id)
    assert len(to_manager) == 1
    assert to_manager[0]["sender_id"] == str(member.id)


async def test_own_comment_on_personal_task_sends_nothing(
    comment_service, db, personal_task, outsider
):
    await comment_service.create_comment(
        personal_task.id, CommentCreate(content="reminder"), outsider.id
    )
    assert await db.notifications.count() == 0


async def test_only_author_edits_or_deletes(comment_service, db, assigned_task, manager, member):
    comment = await comment_service.create_comment(
        assigned_task.id, CommentCreate(content="draft"), member.id
    )

    with pytest.raises(AccessDeniedError):
        await comment_service.update_comment(comment.id, CommentUpdate(content="mine"), manager.id)
    with pytest.raises(AccessDeniedError):
        await comment_service.delete_comment(comment.id, manager.id)

    updated = await comment_service.update_comment(
        comment.id, CommentUpdate(content="final"), member.id
    )
    assert updated.content == "final"
    assert updated.updated_at is not None

    await comment_service.delete_comment(comment.id, member.id)
    assert await db.comments.get(comment.id) is None

    with pytest.raises(NotFoundError, match="Comment not found"):
        await comment_service.delete_comment(comment.id, member.id)
