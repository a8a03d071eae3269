import logging
from typing import List
from uuid import UUID

from app.db.store import Database
from app.errors import AccessDeniedError, NotFoundError
from app.models import utcnow
from app.models.comment import Comment, CommentCreate, CommentUpdate
from app.models.notification import NotificationType
from app.models.task import Task
from app.models.team import Team
from app.models.user import UserSummary
from app.services import access_control
from app.services.notification_service import NotificationService
from app.services.user_service import UserService

logger = logging.getLogger(__name__)


class CommentService:
    def __init__(
        self, db: Database, users: UserService, notifications: NotificationService
    ):
        self.db = db
        self.users = users
        self.notifications = notifications

    async def _load_task(self, task_id: UUID, actor_id: UUID, verb: str) -> Task:
        row = await self.db.tasks.get(task_id)
        if not row:
            raise NotFoundError("Task not found")
        task = Task(**row)

        team = None
        if task.team_id:
            team_row = await self.db.teams.get(task.team_id)
            if not team_row:
                raise NotFoundError("Team not found")
            team = Team(**team_row)

        if not access_control.can_comment_or_view(task, team, actor_id):
            if task.team_id:
                raise AccessDeniedError(
                    f"Access denied: Only team members can {verb} team tasks"
                )
            raise AccessDeniedError(
                f"Access denied: Only task owner can {verb} personal tasks"
            )
        return task

    async def _load_own_comment(self, comment_id: UUID, actor_id: UUID, verb: str) -> Comment:
        row = await self.db.comments.get(comment_id)
        if not row:
            raise NotFoundError("Comment not found")
        comment = Comment(**row)
        if comment.user_id != actor_id:
            raise AccessDeniedError(f"Only the comment author can {verb} this comment")
        return comment

    async def _with_author(self, comment: Comment) -> Comment:
        authors = await self.users.get_summaries([comment.user_id])
        if comment.user_id in authors:
            comment.author = UserSummary.from_user(authors[comment.user_id])
        return comment

    async def create_comment(
        self, task_id: UUID, payload: CommentCreate, actor_id: UUID
    ) -> Comment:
        """Add a comment to a task the actor can see and tell the other party."""
        task = await self._load_task(task_id, actor_id, "comment on")

        row = await self.db.comments.insert(
            {"task_id": task.id, "user_id": actor_id, "content": payload.content}
        )
        comment = Comment(**row)

        recipients = {task.user_id}
        if task.assigned_by and actor_id == task.user_id:
            recipients.add(task.assigned_by)
        recipients.discard(actor_id)

        for recipient_id in recipients:
            await self.notifications.notify(
                recipient_id,
                NotificationType.COMMENT_ADDED,
                f"New comment on your task: {task.title}",
                sender_id=actor_id,
                link=f"/tasks/{task.id}",
            )

        return await self._with_author(comment)

    async def list_comments(self, task_id: UUID, actor_id: UUID) -> List[Comment]:
        """Comments on a task, oldest first, each with its author."""
        await self._load_task(task_id, actor_id, "view comments on")

        rows = await self.db.comments.find({"task_id": task_id}, order_by="created_at")
        comments = [Comment(**row) for row in rows]

        authors = await self.users.get_summaries([c.user_id for c in comments])
        for comment in comments:
            author = authors.get(comment.user_id)
            if author:
                comment.author = UserSummary.from_user(author)
        return comments

    async def update_comment(
        self, comment_id: UUID, patch: CommentUpdate, actor_id: UUID
    ) -> Comment:
        await self._load_own_comment(comment_id, actor_id, "update")

        row = await self.db.comments.update(
            comment_id, {"content": patch.content, "updated_at": utcnow()}
        )
        if not row:
            raise NotFoundError("Comment not found")
        return await self._with_author(Comment(**row))

    async def delete_comment(self, comment_id: UUID, actor_id: UUID) -> None:
        await self._load_own_comment(comment_id, actor_id, "delete")
        await self.db.comments.delete(comment_id)
        logger.info(f"User {actor_id} deleted comment {comment_id}")
