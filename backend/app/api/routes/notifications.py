from uuid import UUID

from fastapi import APIRouter, Depends

from app.api.dependencies import get_current_user_id, get_notification_service
from app.models.notification import Notification, NotificationList
from app.services.notification_service import NotificationService

router = APIRouter()


@router.get("", response_model=NotificationList)
async def list_notifications(
    current_user_id: UUID = Depends(get_current_user_id),
    notifications: NotificationService = Depends(get_notification_service),
):
    return await notifications.list_notifications(current_user_id)


@router.patch("/read-all")
async def mark_all_as_read(
    current_user_id: UUID = Depends(get_current_user_id),
    notifications: NotificationService = Depends(get_notification_service),
):
    updated = await notifications.mark_all_as_read(current_user_id)
    return {"message": "Notifications marked as read", "updated": updated}


@router.patch("/{notification_id}/read", response_model=Notification)
async def mark_as_read(
    notification_id: UUID,
    current_user_id: UUID = Depends(get_current_user_id),
    notifications: NotificationService = Depends(get_notification_service),
):
    return await notifications.mark_as_read(notification_id, current_user_id)
