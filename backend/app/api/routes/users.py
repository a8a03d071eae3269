from uuid import UUID

from fastapi import APIRouter, Depends, File, UploadFile

from app.api.dependencies import get_current_user_id, get_user_service
from app.models.user import User, UserProfile, UserUpdate
from app.services.user_service import UserService

router = APIRouter()


@router.get("/me", response_model=User)
async def get_me(
    current_user_id: UUID = Depends(get_current_user_id),
    users: UserService = Depends(get_user_service),
):
    return await users.get_user(current_user_id)


@router.patch("/me", response_model=User)
async def update_me(
    patch: UserUpdate,
    current_user_id: UUID = Depends(get_current_user_id),
    users: UserService = Depends(get_user_service),
):
    return await users.update_profile(current_user_id, patch)


@router.post("/me/picture", response_model=User)
async def upload_picture(
    file: UploadFile = File(...),
    current_user_id: UUID = Depends(get_current_user_id),
    users: UserService = Depends(get_user_service),
):
    data = await file.read()
    return await users.upload_picture(
        current_user_id, file.filename or "picture", file.content_type, data
    )


@router.get("/{user_id}", response_model=UserProfile)
async def get_profile(
    user_id: UUID,
    _: UUID = Depends(get_current_user_id),
    users: UserService = Depends(get_user_service),
):
    """Public profile of any user."""
    return await users.get_profile(user_id)
