import logging
from uuid import UUID

from supabase import AsyncClient
from supabase_auth.errors import AuthError

from app.db.database import create_session_client
from app.errors import TaskflowError, ValidationError
from app.models.user import TokenPair, User, UserLogin, UserRegister
from app.services.user_service import UserService

logger = logging.getLogger(__name__)


class AuthenticationError(TaskflowError):
    status_code = 401


class AuthService:
    """Credentials and tokens are owned by Supabase Auth; this service keeps
    the user directory in step with it."""

    def __init__(self, supabase_client: AsyncClient, users: UserService):
        self.client = supabase_client
        self.users = users

    async def register(self, payload: UserRegister) -> User:
        await self.users.ensure_available(payload.username, payload.email)

        try:
            client = await create_session_client()
            result = await client.auth.sign_up(
                {
                    "email": payload.email,
                    "password": payload.password,
                    "options": {
                        "data": {"username": payload.username, "name": payload.name}
                    },
                }
            )
        except AuthError as e:
            raise ValidationError(str(e)) from e
        if not result.user:
            raise ValidationError("Sign-up failed")

        return await self.users.create_user(UUID(result.user.id), payload)

    async def login(self, creds: UserLogin) -> TokenPair:
        if "@" in creds.username:
            user = await self.users.find_by_email(creds.username)
        else:
            user = await self.users.find_by_username(creds.username)
        if not user:
            raise AuthenticationError("Invalid credentials")

        try:
            client = await create_session_client()
            session = await client.auth.sign_in_with_password(
                {"email": user.email, "password": creds.password}
            )
        except AuthError as e:
            raise AuthenticationError("Invalid credentials") from e

        if not session or not session.session:
            raise AuthenticationError("Invalid credentials")

        logger.info(f"User {user.username} logged in")
        return TokenPair(
            access_token=session.session.access_token,
            refresh_token=session.session.refresh_token,
            expires_in=session.session.expires_in,
        )

    async def refresh(self, refresh_token: str) -> TokenPair:
        try:
            client = await create_session_client()
            result = await client.auth.refresh_session(refresh_token)
        except AuthError as e:
            raise AuthenticationError("Invalid or expired refresh token") from e

        if not result or not result.session:
            raise AuthenticationError("Invalid or expired refresh token")

        return TokenPair(
            access_token=result.session.access_token,
            refresh_token=result.session.refresh_token,
            expires_in=result.session.expires_in,
        )

    async def logout(self, access_token: str) -> None:
        await self.client.auth.admin.sign_out(access_token)

    async def verify(self, access_token: str) -> UUID:
        try:
            result = await self.client.auth.get_user(access_token)
        except AuthError as e:
            raise AuthenticationError("Invalid token") from e

        if not result or not result.user:
            raise AuthenticationError("Invalid user")
        return UUID(result.user.id)
