from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from supabase import AsyncClient

from app.db.database import get_db, get_service_client
from app.db.store import Database
from app.services.auth_service import AuthenticationError, AuthService
from app.services.comment_service import CommentService
from app.services.dashboard_service import DashboardService
from app.services.notification_service import NotificationService
from app.services.task_service import TaskService
from app.services.team_service import TeamService
from app.services.user_service import UserService

security = HTTPBearer()


def get_database() -> Database:
    return get_db()


def get_supabase_service_client() -> AsyncClient:
    """Get the Supabase service client."""
    client = get_service_client()
    if client is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Authentication service is not configured",
        )
    return client


def get_user_service(db: Database = Depends(get_database)) -> UserService:
    return UserService(db)


def get_notification_service(
    db: Database = Depends(get_database),
) -> NotificationService:
    return NotificationService(db)


def get_auth_service(
    service_client: AsyncClient = Depends(get_supabase_service_client),
    users: UserService = Depends(get_user_service),
) -> AuthService:
    return AuthService(service_client, users)


def get_team_service(
    db: Database = Depends(get_database),
    users: UserService = Depends(get_user_service),
    notifications: NotificationService = Depends(get_notification_service),
) -> TeamService:
    return TeamService(db, users, notifications)


def get_task_service(
    db: Database = Depends(get_database),
    notifications: NotificationService = Depends(get_notification_service),
) -> TaskService:
    return TaskService(db, notifications)


def get_comment_service(
    db: Database = Depends(get_database),
    users: UserService = Depends(get_user_service),
    notifications: NotificationService = Depends(get_notification_service),
) -> CommentService:
    return CommentService(db, users, notifications)


def get_dashboard_service(db: Database = Depends(get_database)) -> DashboardService:
    return DashboardService(db)


async def get_access_token(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> str:
    if not credentials or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing token"
        )
    return credentials.credentials


async def get_current_user_id(
    token: str = Depends(get_access_token),
    auth: AuthService = Depends(get_auth_service),
) -> UUID:
    """Resolve the bearer token to the id of the user making the request."""
    try:
        return await auth.verify(token)
    except AuthenticationError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e))
