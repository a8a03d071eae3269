from typing import List
from uuid import UUID

from fastapi import APIRouter, Body, Depends

from app.api.dependencies import get_current_user_id, get_team_service
from app.models.leave_request import TeamLeaveRequest
from app.models.team import (
    MemberIdentifier,
    MembershipChange,
    Team,
    TeamCreate,
    TeamUpdate,
)
from app.services.team_service import TeamService

router = APIRouter()


@router.post("", response_model=Team, status_code=201)
async def create_team(
    payload: TeamCreate,
    current_user_id: UUID = Depends(get_current_user_id),
    teams: TeamService = Depends(get_team_service),
):
    return await teams.create_team(payload, current_user_id)


@router.get("/managed", response_model=List[Team])
async def list_managed(
    current_user_id: UUID = Depends(get_current_user_id),
    teams: TeamService = Depends(get_team_service),
):
    return await teams.list_managed(current_user_id)


@router.get("/joined", response_model=List[Team])
async def list_joined(
    current_user_id: UUID = Depends(get_current_user_id),
    teams: TeamService = Depends(get_team_service),
):
    return await teams.list_joined(current_user_id)


@router.get("/by-name/{name}", response_model=Team)
async def get_by_name(
    name: str,
    current_user_id: UUID = Depends(get_current_user_id),
    teams: TeamService = Depends(get_team_service),
):
    """Find one of the caller's managed teams by its name."""
    return await teams.get_by_name(current_user_id, name)


@router.get("/{team_id}", response_model=Team)
async def get_team(
    team_id: UUID,
    current_user_id: UUID = Depends(get_current_user_id),
    teams: TeamService = Depends(get_team_service),
):
    return await teams.get_visible_team(team_id, current_user_id)


@router.patch("/{team_id}", response_model=Team)
async def update_team(
    team_id: UUID,
    patch: TeamUpdate,
    current_user_id: UUID = Depends(get_current_user_id),
    teams: TeamService = Depends(get_team_service),
):
    return await teams.update_team(team_id, patch, current_user_id)


@router.delete("/{team_id}")
async def delete_team(
    team_id: UUID,
    current_user_id: UUID = Depends(get_current_user_id),
    teams: TeamService = Depends(get_team_service),
):
    await teams.delete_team(team_id, current_user_id)
    return {"message": "Team deleted"}


@router.post("/{team_id}/members", response_model=MembershipChange)
async def add_member(
    team_id: UUID,
    member: MemberIdentifier,
    current_user_id: UUID = Depends(get_current_user_id),
    teams: TeamService = Depends(get_team_service),
):
    return await teams.add_member(team_id, member.identifier, current_user_id)


@router.delete("/{team_id}/members", response_model=MembershipChange)
async def remove_member(
    team_id: UUID,
    member: MemberIdentifier = Body(...),
    current_user_id: UUID = Depends(get_current_user_id),
    teams: TeamService = Depends(get_team_service),
):
    return await teams.remove_member(team_id, member.identifier, current_user_id)


@router.post("/{team_id}/leave", response_model=TeamLeaveRequest)
async def request_leave(
    team_id: UUID,
    current_user_id: UUID = Depends(get_current_user_id),
    teams: TeamService = Depends(get_team_service),
):
    """Ask the team manager to let the caller leave the team."""
    return await teams.request_leave(team_id, current_user_id)


@router.get("/{team_id}/leave-requests", response_model=List[TeamLeaveRequest])
async def list_leave_requests(
    team_id: UUID,
    status: str = "pending",
    current_user_id: UUID = Depends(get_current_user_id),
    teams: TeamService = Depends(get_team_service),
):
    return await teams.list_leave_requests(team_id, current_user_id, status)


@router.post("/leave-requests/{request_id}/approve", response_model=TeamLeaveRequest)
async def approve_leave(
    request_id: UUID,
    current_user_id: UUID = Depends(get_current_user_id),
    teams: TeamService = Depends(get_team_service),
):
    return await teams.approve_leave(request_id, current_user_id)


@router.post("/leave-requests/{request_id}/reject", response_model=TeamLeaveRequest)
async def reject_leave(
    request_id: UUID,
    current_user_id: UUID = Depends(get_current_user_id),
    teams: TeamService = Depends(get_team_service),
):
    return await teams.reject_leave(request_id, current_user_id)
