from uuid import UUID

from fastapi import APIRouter, Depends

from app.api.dependencies import get_current_user_id, get_dashboard_service
from app.models.dashboard import TeamDashboard, UserDashboard
from app.services.dashboard_service import DashboardService

router = APIRouter()


@router.get("", response_model=UserDashboard)
async def get_dashboard(
    current_user_id: UUID = Depends(get_current_user_id),
    dashboard: DashboardService = Depends(get_dashboard_service),
):
    return await dashboard.get_user_dashboard(current_user_id)


@router.get("/team/{team_id}", response_model=TeamDashboard)
async def get_team_dashboard(
    team_id: UUID,
    current_user_id: UUID = Depends(get_current_user_id),
    dashboard: DashboardService = Depends(get_dashboard_service),
):
    """Task counts across a team (manager only)."""
    return await dashboard.get_team_dashboard(team_id, current_user_id)
