from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends

from app.api.dependencies import get_comment_service, get_current_user_id
from app.models.comment import Comment, CommentCreate, CommentUpdate
from app.services.comment_service import CommentService

router = APIRouter()


@router.post("/task/{task_id}", response_model=Comment, status_code=201)
async def create_comment(
    task_id: UUID,
    payload: CommentCreate,
    current_user_id: UUID = Depends(get_current_user_id),
    comments: CommentService = Depends(get_comment_service),
):
    """Create a new comment on a task."""
    return await comments.create_comment(task_id, payload, current_user_id)


@router.get("/task/{task_id}", response_model=List[Comment])
async def list_comments(
    task_id: UUID,
    current_user_id: UUID = Depends(get_current_user_id),
    comments: CommentService = Depends(get_comment_service),
):
    """List comments for a task."""
    return await comments.list_comments(task_id, current_user_id)


@router.patch("/{comment_id}", response_model=Comment)
async def update_comment(
    comment_id: UUID,
    patch: CommentUpdate,
    current_user_id: UUID = Depends(get_current_user_id),
    comments: CommentService = Depends(get_comment_service),
):
    """Update a comment's content."""
    return await comments.update_comment(comment_id, patch, current_user_id)


@router.delete("/{comment_id}")
async def delete_comment(
    comment_id: UUID,
    current_user_id: UUID = Depends(get_current_user_id),
    comments: CommentService = Depends(get_comment_service),
):
    await comments.delete_comment(comment_id, current_user_id)
    return {"message": "Comment deleted"}
