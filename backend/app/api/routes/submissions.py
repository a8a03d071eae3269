from uuid import UUID

from fastapi import APIRouter, Depends

from app.api.dependencies import get_current_user_id, get_task_service
from app.models.task import ReviewRequest, SubmissionCreate, Task
from app.services.task_service import TaskService

router = APIRouter()


@router.post("/task/{task_id}", response_model=Task)
async def submit_task(
    task_id: UUID,
    payload: SubmissionCreate,
    current_user_id: UUID = Depends(get_current_user_id),
    tasks: TaskService = Depends(get_task_service),
):
    """Hand an assigned task back to its manager for review."""
    return await tasks.submit_task(task_id, current_user_id, payload.link, payload.note)


@router.post("/task/{task_id}/review", response_model=Task)
async def review_task(
    task_id: UUID,
    payload: ReviewRequest,
    current_user_id: UUID = Depends(get_current_user_id),
    tasks: TaskService = Depends(get_task_service),
):
    return await tasks.review_task(task_id, current_user_id, payload.action, payload.note)
