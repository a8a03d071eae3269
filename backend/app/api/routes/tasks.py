from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, UploadFile

from app.api.dependencies import get_current_user_id, get_task_service
from app.models.task import (
    PriorityUpdate,
    StatusUpdate,
    Task,
    TaskAssign,
    TaskCreate,
    TaskUpdate,
    TimeTrackRequest,
)
from app.models.time_log import TimeLog
from app.services.task_service import TaskService

router = APIRouter()


@router.post("", response_model=Task, status_code=201)
async def create_task(
    payload: TaskCreate,
    current_user_id: UUID = Depends(get_current_user_id),
    tasks: TaskService = Depends(get_task_service),
):
    return await tasks.create_task(payload, current_user_id)


@router.post("/assign", response_model=Task, status_code=201)
async def assign_task(
    payload: TaskAssign,
    current_user_id: UUID = Depends(get_current_user_id),
    tasks: TaskService = Depends(get_task_service),
):
    """Create a task for a team member on behalf of the team manager."""
    return await tasks.assign_task(payload, current_user_id)


@router.get("", response_model=List[Task])
async def list_tasks(
    search: Optional[str] = None,
    current_user_id: UUID = Depends(get_current_user_id),
    tasks: TaskService = Depends(get_task_service),
):
    return await tasks.list_tasks(current_user_id, search)


@router.get("/assigned", response_model=List[Task])
async def list_assigned(
    current_user_id: UUID = Depends(get_current_user_id),
    tasks: TaskService = Depends(get_task_service),
):
    return await tasks.list_assigned(current_user_id)


@router.get("/overdue", response_model=List[Task])
async def list_overdue(
    current_user_id: UUID = Depends(get_current_user_id),
    tasks: TaskService = Depends(get_task_service),
):
    return await tasks.list_overdue(current_user_id)


@router.get("/urgent", response_model=List[Task])
async def list_urgent(
    current_user_id: UUID = Depends(get_current_user_id),
    tasks: TaskService = Depends(get_task_service),
):
    return await tasks.list_urgent(current_user_id)


@router.get("/team/{team_id}", response_model=List[Task])
async def list_team_tasks(
    team_id: UUID,
    current_user_id: UUID = Depends(get_current_user_id),
    tasks: TaskService = Depends(get_task_service),
):
    return await tasks.list_team_tasks(team_id, current_user_id)


@router.get("/team/{team_id}/mine", response_model=List[Task])
async def list_my_team_tasks(
    team_id: UUID,
    current_user_id: UUID = Depends(get_current_user_id),
    tasks: TaskService = Depends(get_task_service),
):
    return await tasks.list_my_team_tasks(team_id, current_user_id)


@router.get("/team/{team_id}/member/{user_id}", response_model=List[Task])
async def list_member_tasks(
    team_id: UUID,
    user_id: UUID,
    current_user_id: UUID = Depends(get_current_user_id),
    tasks: TaskService = Depends(get_task_service),
):
    return await tasks.list_member_tasks(team_id, user_id, current_user_id)


@router.get("/{task_id}", response_model=Task)
async def get_task(
    task_id: UUID,
    current_user_id: UUID = Depends(get_current_user_id),
    tasks: TaskService = Depends(get_task_service),
):
    return await tasks.get_task(task_id, current_user_id)


@router.put("/{task_id}", response_model=Task)
async def update_task(
    task_id: UUID,
    patch: TaskUpdate,
    current_user_id: UUID = Depends(get_current_user_id),
    tasks: TaskService = Depends(get_task_service),
):
    return await tasks.update_task(task_id, patch, current_user_id)


@router.delete("/{task_id}")
async def delete_task(
    task_id: UUID,
    current_user_id: UUID = Depends(get_current_user_id),
    tasks: TaskService = Depends(get_task_service),
):
    await tasks.delete_task(task_id, current_user_id)
    return {"message": "Task deleted"}


@router.patch("/{task_id}/status", response_model=Task)
async def update_status(
    task_id: UUID,
    payload: StatusUpdate,
    current_user_id: UUID = Depends(get_current_user_id),
    tasks: TaskService = Depends(get_task_service),
):
    return await tasks.update_status(task_id, payload.status, current_user_id)


@router.patch("/{task_id}/priority", response_model=Task)
async def update_priority(
    task_id: UUID,
    payload: PriorityUpdate,
    current_user_id: UUID = Depends(get_current_user_id),
    tasks: TaskService = Depends(get_task_service),
):
    return await tasks.update_priority(task_id, payload.priority, current_user_id)


@router.post("/{task_id}/track", response_model=Task)
async def track_time(
    task_id: UUID,
    payload: TimeTrackRequest,
    current_user_id: UUID = Depends(get_current_user_id),
    tasks: TaskService = Depends(get_task_service),
):
    return await tasks.track_time(task_id, payload, current_user_id)


@router.get("/{task_id}/logs", response_model=List[TimeLog])
async def list_time_logs(
    task_id: UUID,
    current_user_id: UUID = Depends(get_current_user_id),
    tasks: TaskService = Depends(get_task_service),
):
    return await tasks.list_time_logs(task_id, current_user_id)


@router.post("/{task_id}/attachments", response_model=Task)
async def add_attachment(
    task_id: UUID,
    file: UploadFile = File(...),
    current_user_id: UUID = Depends(get_current_user_id),
    tasks: TaskService = Depends(get_task_service),
):
    data = await file.read()
    return await tasks.add_attachment(
        task_id, file.filename or "attachment", file.content_type, data, current_user_id
    )
