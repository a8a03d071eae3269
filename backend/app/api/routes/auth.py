from fastapi import APIRouter, Depends

from app.api.dependencies import get_access_token, get_auth_service
from app.models.user import RefreshRequest, TokenPair, User, UserLogin, UserRegister
from app.services.auth_service import AuthService

router = APIRouter()


@router.post("/register", response_model=User, status_code=201)
async def register(
    payload: UserRegister, auth: AuthService = Depends(get_auth_service)
):
    """Create a Supabase Auth account and the matching user record."""
    return await auth.register(payload)


@router.post("/login", response_model=TokenPair)
async def login(creds: UserLogin, auth: AuthService = Depends(get_auth_service)):
    """Login with username or email. Returns access and refresh tokens."""
    return await auth.login(creds)


@router.post("/refresh", response_model=TokenPair)
async def refresh(payload: RefreshRequest, auth: AuthService = Depends(get_auth_service)):
    return await auth.refresh(payload.refresh_token)


@router.post("/logout")
async def logout(
    token: str = Depends(get_access_token),
    auth: AuthService = Depends(get_auth_service),
):
    await auth.logout(token)
    return {"message": "Logged out"}
