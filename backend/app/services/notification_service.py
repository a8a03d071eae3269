import logging
from typing import Optional
from uuid import UUID

from app.db.store import Database
from app.errors import AccessDeniedError, NotFoundError
from app.models.notification import Notification, NotificationList, NotificationType

logger = logging.getLogger(__name__)


class NotificationService:
    def __init__(self, db: Database):
        self.db = db

    async def notify(
        self,
        recipient_id: UUID,
        type: NotificationType,
        message: str,
        sender_id: Optional[UUID] = None,
        link: Optional[str] = None,
        is_urgent: bool = False,
    ) -> Optional[Notification]:
        """Record a notification. Delivery problems are logged and never
        propagate to the workflow step that triggered them."""
        try:
            notification = await self.db.notifications.insert(
                {
                    "recipient_id": recipient_id,
                    "sender_id": sender_id,
                    "type": type,
                    "message": message,
                    "link": link,
                    "is_read": False,
                    "is_urgent": is_urgent,
                }
            )
            return Notification(**notification)
        except Exception:
            logger.exception(f"Failed to deliver {type.value} notification to {recipient_id}")
            return None

    async def list_notifications(self, user_id: UUID) -> NotificationList:
        rows = await self.db.notifications.find(
            {"recipient_id": user_id}, order_by="created_at", desc=True
        )
        notifications = [Notification(**row) for row in rows]
        return NotificationList(
            notifications=notifications,
            unread_count=sum(1 for n in notifications if not n.is_read),
        )

    async def mark_as_read(self, notification_id: UUID, user_id: UUID) -> Notification:
        row = await self.db.notifications.get(notification_id)
        if not row:
            raise NotFoundError("Notification not found")

        notification = Notification(**row)
        if notification.recipient_id != user_id:
            raise AccessDeniedError("Not allowed to update this notification")

        updated = await self.db.notifications.update(notification_id, {"is_read": True})
        return Notification(**updated)

    async def mark_all_as_read(self, user_id: UUID) -> int:
        return await self.db.notifications.update_many(
            {"recipient_id": user_id, "is_read": False}, {"is_read": True}
        )
